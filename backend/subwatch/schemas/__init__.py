"""
Pydantic schemas package.
"""

from subwatch.schemas.transaction import (
    TransactionBase,
    TransactionCreate,
    TransactionUpdate,
    TransactionResponse,
    TransactionListResponse,
)
from subwatch.schemas.subscription import (
    SubscriptionResponse,
    SubscriptionListResponse,
    HiddenMerchantResponse,
    DetectionDescription,
)
from subwatch.schemas.settings import (
    SubscriptionSettingsResponse,
    SubscriptionSettingsUpdate,
)

__all__ = [
    "TransactionBase",
    "TransactionCreate",
    "TransactionUpdate",
    "TransactionResponse",
    "TransactionListResponse",
    "SubscriptionResponse",
    "SubscriptionListResponse",
    "HiddenMerchantResponse",
    "DetectionDescription",
    "SubscriptionSettingsResponse",
    "SubscriptionSettingsUpdate",
]
