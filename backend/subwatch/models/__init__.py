"""
Database models package.
"""

from subwatch.models.transaction import Transaction, TransactionTag, normalize_tag
from subwatch.models.hidden_merchant import HiddenMerchant
from subwatch.models.subscription_settings import SubscriptionSettings, get_or_create_subscription_settings

__all__ = [
    "Transaction",
    "TransactionTag",
    "normalize_tag",
    "HiddenMerchant",
    "SubscriptionSettings",
    "get_or_create_subscription_settings",
]
