"""API endpoints for detected subscriptions."""

import logging
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session
from typing import List

from subwatch.database import get_db
from subwatch.schemas.subscription import (
    SubscriptionResponse,
    SubscriptionListResponse,
    HiddenMerchantResponse,
    DetectionDescription,
)
from subwatch.services import subscription_service
from subwatch.exceptions import DataAccessError
from subwatch.services.visibility_service import VisibilityStore, compute_totals, visible_subscriptions

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/subscriptions", tags=["subscriptions"])


@router.get("", response_model=SubscriptionListResponse)
def list_subscriptions(
    show_hidden: bool = Query(False, description="Include hidden merchants in items"),
    include_stale_in_totals: bool = Query(False),
    db: Session = Depends(get_db)
):
    """
    Run detection and return subscriptions sorted by annual cost.
    Totals are always computed over visible subscriptions only.
    """
    try:
        context = subscription_service.build_detection_context(db)
        subscriptions = subscription_service.run_detection(db, context)
    except DataAccessError as e:
        logger.error("Subscription detection failed: %s", e)
        raise HTTPException(status_code=503, detail=str(e))

    hidden_keys = set(context.hidden_keys)
    visible = visible_subscriptions(subscriptions, hidden_keys)
    totals = compute_totals(visible, include_stale=include_stale_in_totals)

    shown = subscriptions if show_hidden else visible
    items = []
    for sub in sorted(shown, key=lambda s: s.annual_cost, reverse=True):
        response = SubscriptionResponse.model_validate(sub)
        response.is_hidden = sub.merchant_key in hidden_keys
        items.append(response)

    return SubscriptionListResponse(
        items=items,
        total_annual=totals.annual,
        total_monthly=totals.monthly,
        total_ytd=totals.ytd,
        counted=totals.count,
        hidden_count=len(subscriptions) - len(visible),
        stale_count=sum(1 for s in visible if s.is_stale),
    )


@router.get("/detection", response_model=DetectionDescription)
def describe_detection(db: Session = Depends(get_db)):
    """Show the parameters and SQL used to detect subscriptions."""
    try:
        context = subscription_service.build_detection_context(db)
    except DataAccessError as e:
        raise HTTPException(status_code=503, detail=str(e))
    return DetectionDescription(**subscription_service.describe_detection(db, context))


@router.get("/hidden", response_model=List[HiddenMerchantResponse])
def list_hidden(db: Session = Depends(get_db)):
    """List merchants the user has hidden."""
    try:
        rows = VisibilityStore(db).list_hidden_rows()
    except DataAccessError as e:
        raise HTTPException(status_code=503, detail=str(e))
    return [HiddenMerchantResponse.model_validate(row) for row in rows]


@router.post("/hidden/{merchant_key:path}", response_model=HiddenMerchantResponse)
def hide_merchant(merchant_key: str, db: Session = Depends(get_db)):
    """Hide a merchant ("not a subscription")."""
    try:
        row = VisibilityStore(db).hide(merchant_key)
    except DataAccessError as e:
        logger.error("Hiding merchant %r failed: %s", merchant_key, e)
        raise HTTPException(status_code=503, detail=str(e))
    logger.info("Hid merchant %r", merchant_key)
    return HiddenMerchantResponse.model_validate(row)


@router.delete("/hidden/{merchant_key:path}", response_model=HiddenMerchantResponse)
def unhide_merchant(merchant_key: str, db: Session = Depends(get_db)):
    """Restore a hidden merchant."""
    try:
        row = VisibilityStore(db).unhide(merchant_key)
    except DataAccessError as e:
        logger.error("Restoring merchant %r failed: %s", merchant_key, e)
        raise HTTPException(status_code=503, detail=str(e))
    if row is None:
        raise HTTPException(status_code=404, detail="Merchant is not hidden")
    logger.info("Restored merchant %r", merchant_key)
    return HiddenMerchantResponse.model_validate(row)
