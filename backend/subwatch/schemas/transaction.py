"""
Transaction schemas.
"""

from pydantic import BaseModel, Field
from typing import List, Optional
from datetime import date, datetime
from decimal import Decimal


class TransactionBase(BaseModel):
    date: date
    amount: Decimal
    raw_description: Optional[str] = None
    notes: Optional[str] = None


class TransactionCreate(TransactionBase):
    tags: List[str] = Field(default_factory=list)


class TransactionUpdate(BaseModel):
    notes: Optional[str] = None
    tags: Optional[List[str]] = None  # Replaces the whole tag set


class TransactionResponse(BaseModel):
    id: str
    hash: str
    date: date
    amount: Decimal
    raw_description: Optional[str]
    notes: Optional[str]
    tags: List[str]
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class TransactionListResponse(BaseModel):
    items: list[TransactionResponse]
    total: int
    page: int
    pages: int
