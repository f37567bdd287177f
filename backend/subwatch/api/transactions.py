"""
Transaction API endpoints.
"""

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session, selectinload
from typing import Optional
from datetime import date
import uuid

from subwatch.database import get_db
from subwatch.models.transaction import Transaction, TransactionTag, normalize_tag
from subwatch.schemas.transaction import (
    TransactionCreate,
    TransactionResponse,
    TransactionUpdate,
    TransactionListResponse
)
from subwatch.services.deduplication_service import generate_transaction_hash, is_duplicate

router = APIRouter(prefix="/transactions", tags=["transactions"])


@router.get("", response_model=TransactionListResponse)
def list_transactions(
    page: int = Query(1, ge=1),
    per_page: int = Query(50, ge=1, le=100),
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    search: Optional[str] = None,
    tag: Optional[str] = None,
    db: Session = Depends(get_db)
):
    """List transactions with filtering and pagination"""
    query = db.query(Transaction)

    if start_date:
        query = query.filter(Transaction.date >= start_date)
    if end_date:
        query = query.filter(Transaction.date <= end_date)
    if search:
        query = query.filter(Transaction.raw_description.ilike(f"%{search}%"))
    if tag:
        query = query.filter(Transaction.tag_rows.any(TransactionTag.tag == normalize_tag(tag)))

    total = query.count()

    query = query.options(selectinload(Transaction.tag_rows))
    query = query.order_by(Transaction.date.desc())
    query = query.offset((page - 1) * per_page).limit(per_page)

    transactions = query.all()
    pages = (total + per_page - 1) // per_page

    return TransactionListResponse(
        items=[TransactionResponse.model_validate(t) for t in transactions],
        total=total,
        page=page,
        pages=pages
    )


@router.get("/{transaction_id}", response_model=TransactionResponse)
def get_transaction(
    transaction_id: str,
    db: Session = Depends(get_db)
):
    """Get a single transaction"""
    transaction = db.query(Transaction).filter(Transaction.id == transaction_id).first()
    if not transaction:
        raise HTTPException(status_code=404, detail="Transaction not found")
    return TransactionResponse.model_validate(transaction)


@router.post("", response_model=TransactionResponse, status_code=201)
def create_transaction(
    data: TransactionCreate,
    db: Session = Depends(get_db)
):
    """Record a transaction, rejecting exact duplicates"""
    txn_hash = generate_transaction_hash(data.date, data.amount, data.raw_description)
    if is_duplicate(db, txn_hash):
        raise HTTPException(status_code=409, detail="Duplicate transaction")

    transaction = Transaction(
        id=str(uuid.uuid4()),
        hash=txn_hash,
        date=data.date,
        amount=data.amount,
        raw_description=data.raw_description,
        notes=data.notes,
    )
    transaction.set_tags(data.tags)
    db.add(transaction)
    db.commit()
    db.refresh(transaction)

    return TransactionResponse.model_validate(transaction)


@router.patch("/{transaction_id}", response_model=TransactionResponse)
def update_transaction(
    transaction_id: str,
    update: TransactionUpdate,
    db: Session = Depends(get_db)
):
    """Update notes and/or replace the tag set of a transaction"""
    transaction = db.query(Transaction).filter(Transaction.id == transaction_id).first()
    if not transaction:
        raise HTTPException(status_code=404, detail="Transaction not found")

    update_data = update.model_dump(exclude_unset=True)
    if "notes" in update_data:
        transaction.notes = update_data["notes"]
    if update.tags is not None:
        transaction.set_tags(update.tags)

    db.commit()
    db.refresh(transaction)

    return TransactionResponse.model_validate(transaction)
