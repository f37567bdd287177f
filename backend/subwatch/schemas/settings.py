from pydantic import BaseModel
from typing import Optional


class SubscriptionSettingsResponse(BaseModel):
    subscription_tag: Optional[str] = None
    manual_path_enabled: bool
    interval_consistency_tolerance: float
    similarity_threshold: float


class SubscriptionSettingsUpdate(BaseModel):
    subscription_tag: Optional[str] = None
