"""
Transaction database models.
"""

import uuid
from datetime import datetime
from sqlalchemy import Column, String, DateTime, Date, Numeric, Text, ForeignKey, Index, UniqueConstraint
from sqlalchemy.orm import relationship
from subwatch.database import Base


class Transaction(Base):
    """Transaction model."""

    __tablename__ = "transactions"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    hash = Column(String(64), unique=True, nullable=False, index=True)  # For deduplication
    date = Column(Date, nullable=False, index=True)
    amount = Column(Numeric(12, 2), nullable=False)  # Negative = debit, positive = credit
    raw_description = Column(Text, nullable=True)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    # Relationships
    tag_rows = relationship(
        "TransactionTag",
        back_populates="transaction",
        cascade="all, delete-orphan",
        order_by="TransactionTag.tag",
    )

    __table_args__ = (
        Index("idx_transaction_amount_date", "amount", "date"),
    )

    @property
    def tags(self) -> list[str]:
        return [row.tag for row in self.tag_rows]

    def set_tags(self, tags) -> None:
        """Replace the tag set; tags are stored trimmed and lower-cased."""
        cleaned = sorted({normalize_tag(t) for t in tags if t and t.strip()})
        # Reuse existing rows so a re-added tag never collides with its own pending delete
        existing = {row.tag: row for row in self.tag_rows}
        self.tag_rows = [existing.get(t) or TransactionTag(tag=t) for t in cleaned]


class TransactionTag(Base):
    """A single user-assigned tag on a transaction."""

    __tablename__ = "transaction_tags"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    transaction_id = Column(String(36), ForeignKey("transactions.id", ondelete="CASCADE"), nullable=False)
    tag = Column(String(100), nullable=False, index=True)

    transaction = relationship("Transaction", back_populates="tag_rows")

    __table_args__ = (
        UniqueConstraint("transaction_id", "tag", name="uq_transaction_tag"),
    )


def normalize_tag(tag: str) -> str:
    return tag.strip().lower()
