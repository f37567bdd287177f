"""Hidden-merchant overrides and the presentation-side filters built on them."""

from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, List, Optional, Set

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from subwatch.exceptions import DataAccessError
from subwatch.models.hidden_merchant import HiddenMerchant
from subwatch.services.classification_service import Subscription, round_half_up


class VisibilityStore:
    """
    Persists which merchant keys the user marked as "not a subscription".

    Each hide/unhide is a single-key upsert, independent of detection runs.
    """

    def __init__(self, db: Session):
        self.db = db

    def _get(self, merchant_key: str) -> Optional[HiddenMerchant]:
        return self.db.query(HiddenMerchant).filter(
            HiddenMerchant.merchant_key == merchant_key
        ).first()

    def _fail(self, action: str, merchant_key: Optional[str], error: SQLAlchemyError) -> DataAccessError:
        self.db.rollback()
        target = f" for {merchant_key!r}" if merchant_key is not None else ""
        return DataAccessError(f"Could not {action} hidden merchants{target}: {error}")

    def is_hidden(self, merchant_key: str) -> bool:
        try:
            row = self._get(merchant_key)
        except SQLAlchemyError as e:
            raise self._fail("read", merchant_key, e) from e
        return row is not None and row.hidden_at is not None

    def hide(self, merchant_key: str) -> HiddenMerchant:
        try:
            row = self._get(merchant_key)
            if row is None:
                row = HiddenMerchant(merchant_key=merchant_key)
                self.db.add(row)
            row.hidden_at = datetime.utcnow()
            try:
                self.db.commit()
            except IntegrityError:
                # Another writer inserted the same key first; update its row instead
                self.db.rollback()
                row = self._get(merchant_key)
                row.hidden_at = datetime.utcnow()
                self.db.commit()
            self.db.refresh(row)
        except SQLAlchemyError as e:
            raise self._fail("hide", merchant_key, e) from e
        return row

    def unhide(self, merchant_key: str) -> Optional[HiddenMerchant]:
        """Restore a merchant. Returns None if it is not currently hidden."""
        try:
            row = self._get(merchant_key)
            if row is None or row.hidden_at is None:
                return None
            row.hidden_at = None
            self.db.commit()
            self.db.refresh(row)
        except SQLAlchemyError as e:
            raise self._fail("restore", merchant_key, e) from e
        return row

    def list_hidden(self) -> Set[str]:
        try:
            rows = self.db.query(HiddenMerchant.merchant_key).filter(
                HiddenMerchant.hidden_at.isnot(None)
            ).all()
        except SQLAlchemyError as e:
            raise self._fail("list", None, e) from e
        return {key for (key,) in rows}

    def list_hidden_rows(self) -> List[HiddenMerchant]:
        try:
            return self.db.query(HiddenMerchant).filter(
                HiddenMerchant.hidden_at.isnot(None)
            ).order_by(HiddenMerchant.hidden_at.desc()).all()
        except SQLAlchemyError as e:
            raise self._fail("list", None, e) from e


def visible_subscriptions(subscriptions: Iterable[Subscription], hidden_keys: Set[str]) -> List[Subscription]:
    return [s for s in subscriptions if s.merchant_key not in hidden_keys]


def hidden_subscriptions(subscriptions: Iterable[Subscription], hidden_keys: Set[str]) -> List[Subscription]:
    return [s for s in subscriptions if s.merchant_key in hidden_keys]


@dataclass(frozen=True)
class SubscriptionTotals:
    count: int
    annual: float
    monthly: float
    ytd: float


def compute_totals(subscriptions: Iterable[Subscription], include_stale: bool = False) -> SubscriptionTotals:
    """Aggregate costs over the given subscriptions, skipping stale ones unless asked."""
    counted = [s for s in subscriptions if include_stale or not s.is_stale]
    annual = sum(s.annual_cost for s in counted)
    return SubscriptionTotals(
        count=len(counted),
        annual=round_half_up(annual, 2),
        monthly=round_half_up(annual / 12, 2),
        ytd=round_half_up(sum(s.ytd_cost for s in counted), 2),
    )
