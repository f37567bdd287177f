"""
Hidden merchant database model.
"""

import uuid
from sqlalchemy import Column, String, DateTime
from subwatch.database import Base


class HiddenMerchant(Base):
    """
    User override marking a detected merchant group as "not a real subscription".

    One row per merchant key. A non-null hidden_at means the merchant is hidden;
    restoring it clears hidden_at instead of deleting the row.
    """

    __tablename__ = "hidden_merchants"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    merchant_key = Column(String(255), unique=True, nullable=False, index=True)
    hidden_at = Column(DateTime, nullable=True)
