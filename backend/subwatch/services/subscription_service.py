"""
Service for subscription detection runs.

A run reads every debit, recomputes all subscriptions and returns a new list.
Nothing is updated in place and nothing is cached between runs; callers keep
their previous result when a run fails.
"""

import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Dict, FrozenSet, List, Optional

from sqlalchemy import and_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Query, Session, selectinload

from subwatch.config import settings
from subwatch.exceptions import DataAccessError
from subwatch.models.subscription_settings import get_or_create_subscription_settings
from subwatch.models.transaction import Transaction, TransactionTag
from subwatch.services.classification_service import Subscription, build_subscription
from subwatch.services.interval_service import analyze_intervals, is_periodic
from subwatch.services.manual_tag_service import collect_manual_subscriptions, resolve_subscription_tag
from subwatch.services.merchant_service import Charge, cluster_charges
from subwatch.services.reconciliation_service import reconcile
from subwatch.services.visibility_service import VisibilityStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DetectionContext:
    """Everything a detection run reads besides the transactions themselves."""
    today: date
    subscription_tag: Optional[str] = None
    tolerance: float = settings.interval_consistency_tolerance
    similarity_threshold: float = settings.similarity_threshold
    min_occurrences: int = settings.min_occurrences
    min_interval_days: int = settings.min_interval_days
    max_interval_days: int = settings.max_interval_days
    stale_floor_days: int = settings.stale_floor_days
    manual_default_interval_days: int = settings.manual_default_interval_days
    hidden_keys: FrozenSet[str] = field(default_factory=frozenset)


def build_detection_context(db: Session, today: Optional[date] = None) -> DetectionContext:
    """Read the subscription tag and hidden keys once for a run."""
    try:
        stored = get_or_create_subscription_settings(db)
        hidden_keys = frozenset(VisibilityStore(db).list_hidden())
    except SQLAlchemyError as e:
        raise DataAccessError(f"Could not load detection settings: {e}") from e

    return DetectionContext(
        today=today or date.today(),
        subscription_tag=resolve_subscription_tag(stored.subscription_tag),
        hidden_keys=hidden_keys,
    )


def detection_query(db: Session) -> Query:
    """Debits with a description, oldest first."""
    return db.query(Transaction).filter(
        Transaction.amount < 0,
        Transaction.raw_description.isnot(None),
        Transaction.raw_description != "",
    ).order_by(Transaction.date, Transaction.created_at)


def manual_tag_query(db: Session, tag: str) -> Query:
    """Debits with a description that carry the subscription tag, oldest first."""
    return detection_query(db).join(
        TransactionTag,
        and_(TransactionTag.transaction_id == Transaction.id, TransactionTag.tag == tag),
    )


def to_charge(transaction: Transaction) -> Optional[Charge]:
    """Convert a row to a Charge, or None when it has no description."""
    if not transaction.raw_description or not transaction.raw_description.strip():
        return None
    return Charge(
        date=transaction.date,
        amount=round(abs(float(transaction.amount)), 2),
        description=transaction.raw_description,
        tags=frozenset(transaction.tags),
    )


def load_charges(query: Query) -> List[Charge]:
    charges = []
    for transaction in query.options(selectinload(Transaction.tag_rows)).all():
        charge = to_charge(transaction)
        if charge is not None:
            charges.append(charge)
    return charges


def detect_subscriptions(charges: List[Charge], context: DetectionContext) -> List[Subscription]:
    """Pattern-detected subscriptions from a list of debits."""
    groups = cluster_charges(charges, threshold=context.similarity_threshold)

    results = []
    for group in groups:
        try:
            stats = analyze_intervals(group.dates, context.today)
            if stats is None or not is_periodic(
                stats,
                tolerance=context.tolerance,
                min_occurrences=context.min_occurrences,
                min_interval_days=context.min_interval_days,
                max_interval_days=context.max_interval_days,
            ):
                continue
            results.append(build_subscription(
                group,
                stats,
                context.today,
                stale_floor_days=context.stale_floor_days,
            ))
        except (ValueError, TypeError, ArithmeticError) as e:
            logger.warning("Skipping merchant group %r: %s", group.group_key, e)

    logger.debug("Clustered %d charges into %d groups, %d periodic",
                 len(charges), len(groups), len(results))
    return results


def run_detection(db: Session, context: Optional[DetectionContext] = None) -> List[Subscription]:
    """
    Run a full detection pass and return the reconciled subscription list.

    Hidden merchants are included; filtering them is up to the caller.
    Raises DataAccessError if the transaction store cannot be read.
    """
    if context is None:
        context = build_detection_context(db)

    try:
        charges = load_charges(detection_query(db))
        tagged = load_charges(manual_tag_query(db, context.subscription_tag)) if context.subscription_tag else []
    except SQLAlchemyError as e:
        raise DataAccessError(f"Could not read transactions: {e}") from e

    detected = detect_subscriptions(charges, context)
    manual = collect_manual_subscriptions(
        tagged,
        context.subscription_tag,
        context.today,
        default_interval_days=context.manual_default_interval_days,
        stale_floor_days=context.stale_floor_days,
    )
    subscriptions = reconcile(detected, manual)

    logger.info("Detection run found %d subscriptions (%d detected, %d tagged)",
                len(subscriptions), len(detected), len(manual))
    return subscriptions


def _render_sql(db: Session, query: Query) -> str:
    statement = query.statement.compile(
        dialect=db.get_bind().dialect,
        compile_kwargs={"literal_binds": True},
    )
    return str(statement)


def describe_detection(db: Session, context: DetectionContext) -> Dict[str, Any]:
    """Parameters and rendered queries of a detection run, for inspection."""
    parameters = {
        "today": context.today.isoformat(),
        "similarity_threshold": context.similarity_threshold,
        "interval_consistency_tolerance": context.tolerance,
        "min_occurrences": context.min_occurrences,
        "min_interval_days": context.min_interval_days,
        "max_interval_days": context.max_interval_days,
        "stale_floor_days": context.stale_floor_days,
        "manual_default_interval_days": context.manual_default_interval_days,
        "subscription_tag": context.subscription_tag,
    }
    return {
        "parameters": parameters,
        "detection_sql": _render_sql(db, detection_query(db)),
        "manual_tag_sql": _render_sql(db, manual_tag_query(db, context.subscription_tag))
        if context.subscription_tag else None,
        "steps": [
            "Select debits with a non-empty description ordered by date",
            "Round amounts to cents and uppercase/collapse descriptions",
            "Per amount, compare each description to the earliest one with Jaro-Winkler "
            f"(> {context.similarity_threshold} joins its group)",
            f"Keep groups with >= {context.min_occurrences} charges, average gap in "
            f"[{context.min_interval_days}, {context.max_interval_days}] days and "
            f"stddev < average * {context.tolerance}",
            "Classify frequency from the rounded average gap and compute annual and year-to-date cost",
            f"Flag stale when days since last charge > max(2 * interval, {context.stale_floor_days})",
            "Merge tagged subscriptions by merchant key or amount + first merchant word",
        ],
    }
