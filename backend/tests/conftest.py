"""Shared test fixtures."""

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from fastapi.testclient import TestClient
from datetime import timedelta
from decimal import Decimal
import uuid

import subwatch.main as main_module
from subwatch.database import Base, get_db
from subwatch.main import app
from subwatch.models.transaction import Transaction
from subwatch.services.deduplication_service import generate_transaction_hash
from subwatch.services.merchant_service import Charge


@pytest.fixture(scope="function")
def db_session():
    """Create a fresh database for each test using in-memory SQLite."""
    # Use StaticPool to ensure all connections use the same in-memory database
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    # Create all tables
    Base.metadata.create_all(bind=engine)

    # Create session
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = TestingSessionLocal()

    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture(scope="function")
def client(db_session, monkeypatch):
    """Create a test client with database override."""
    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    # Tables already exist in the in-memory database
    monkeypatch.setattr(main_module, "init_db", lambda: None)

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def add_transaction(db_session):
    """Factory that inserts a transaction and returns it."""
    def _add(txn_date, amount, description, tags=()):
        amount = Decimal(str(amount))
        txn = Transaction(
            id=str(uuid.uuid4()),
            hash=generate_transaction_hash(txn_date, amount, description),
            date=txn_date,
            amount=amount,
            raw_description=description,
        )
        txn.set_tags(tags)
        db_session.add(txn)
        db_session.commit()
        db_session.refresh(txn)
        return txn
    return _add


@pytest.fixture
def add_series(add_transaction):
    """Factory that inserts one charge per day offset from a start date."""
    def _add(start, offsets, amount, description, tags=()):
        return [
            add_transaction(start + timedelta(days=offset), amount, description, tags)
            for offset in offsets
        ]
    return _add


@pytest.fixture
def make_charges():
    """Factory building in-memory charges for pure service tests."""
    def _make(start, offsets, amount, description, tags=()):
        return [
            Charge(
                date=start + timedelta(days=offset),
                amount=amount,
                description=description,
                tags=frozenset(tags),
            )
            for offset in offsets
        ]
    return _make
