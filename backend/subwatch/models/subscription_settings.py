"""Subscription settings model - persisted in database like privacy settings."""

from sqlalchemy import Column, Integer, String, DateTime
from sqlalchemy.sql import func

from subwatch.config import settings as app_settings
from subwatch.database import Base


class SubscriptionSettings(Base):
    """
    User-editable subscription settings.
    Singleton pattern - only one row with id=1.
    """
    __tablename__ = "subscription_settings"

    id = Column(Integer, primary_key=True, default=1)

    # Tag that marks a transaction as a manually asserted subscription.
    # Blank disables the manual path.
    subscription_tag = Column(String(100), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())


def get_or_create_subscription_settings(db) -> SubscriptionSettings:
    """Get the singleton subscription settings, creating with defaults if needed."""
    row = db.query(SubscriptionSettings).filter(SubscriptionSettings.id == 1).first()
    if not row:
        row = SubscriptionSettings(id=1, subscription_tag=app_settings.subscription_tag)
        db.add(row)
        db.commit()
        db.refresh(row)
    return row
