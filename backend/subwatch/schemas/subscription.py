"""Pydantic schemas for detected subscriptions."""

from pydantic import BaseModel
from typing import Any, Dict, List, Optional
from datetime import date, datetime

from subwatch.services.classification_service import Frequency


class SubscriptionResponse(BaseModel):
    merchant: str
    merchant_key: str
    amount: float
    frequency: Frequency
    interval_days: int
    occurrence_count: int
    annual_cost: float
    ytd_cost: float
    first_charge: date
    last_charge: date
    next_expected: date
    days_since_last: int
    is_stale: bool
    is_manual: bool
    is_hidden: bool = False

    class Config:
        from_attributes = True


class SubscriptionListResponse(BaseModel):
    items: List[SubscriptionResponse]
    total_annual: float
    total_monthly: float
    total_ytd: float
    counted: int  # Subscriptions included in the totals
    hidden_count: int
    stale_count: int


class HiddenMerchantResponse(BaseModel):
    merchant_key: str
    hidden_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class DetectionDescription(BaseModel):
    """Parameters and queries behind a detection run."""
    parameters: Dict[str, Any]
    detection_sql: str
    manual_tag_sql: Optional[str] = None
    steps: List[str]
