from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from subwatch.config import settings
from subwatch.database import get_db
from subwatch.models.subscription_settings import SubscriptionSettings, get_or_create_subscription_settings
from subwatch.schemas.settings import SubscriptionSettingsResponse, SubscriptionSettingsUpdate
from subwatch.services.manual_tag_service import resolve_subscription_tag

router = APIRouter(prefix="/settings", tags=["settings"])


def _to_response(row: SubscriptionSettings) -> SubscriptionSettingsResponse:
    return SubscriptionSettingsResponse(
        subscription_tag=row.subscription_tag,
        manual_path_enabled=resolve_subscription_tag(row.subscription_tag) is not None,
        interval_consistency_tolerance=settings.interval_consistency_tolerance,
        similarity_threshold=settings.similarity_threshold,
    )


@router.get("/subscriptions", response_model=SubscriptionSettingsResponse)
def get_subscription_settings(db: Session = Depends(get_db)):
    return _to_response(get_or_create_subscription_settings(db))


@router.patch("/subscriptions", response_model=SubscriptionSettingsResponse)
def update_subscription_settings(
    update: SubscriptionSettingsUpdate,
    db: Session = Depends(get_db)
):
    row = get_or_create_subscription_settings(db)
    if "subscription_tag" in update.model_fields_set:
        # An empty string disables the manual path
        row.subscription_tag = (update.subscription_tag or "").strip()
    db.commit()
    db.refresh(row)
    return _to_response(row)
