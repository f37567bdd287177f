"""Subscriptions asserted by the user through a transaction tag."""

import logging
from datetime import date
from typing import Iterable, List, Optional

from subwatch.models.transaction import normalize_tag
from subwatch.services.classification_service import Subscription, build_subscription, interval_days_for
from subwatch.services.interval_service import analyze_intervals
from subwatch.services.merchant_service import Charge, group_by_description

logger = logging.getLogger(__name__)


def resolve_subscription_tag(raw_tag) -> Optional[str]:
    """
    Return the usable tag, or None when the manual path is disabled.
    Anything other than a non-blank string disables it.
    """
    if raw_tag is None:
        return None
    if not isinstance(raw_tag, str):
        logger.warning("Ignoring non-string subscription tag %r; manual path disabled", raw_tag)
        return None
    tag = normalize_tag(raw_tag)
    return tag or None


def collect_manual_subscriptions(
    charges: Iterable[Charge],
    tag: Optional[str],
    today: date,
    default_interval_days: int = 30,
    stale_floor_days: int = 90,
) -> List[Subscription]:
    """
    Build subscriptions from charges carrying the subscription tag.

    Charges are grouped by exact normalized description. Any group with two or
    more charges qualifies; there is no consistency gate. When a group has a
    single gap, or its average gap rounds to zero days, the interval falls back
    to default_interval_days.
    """
    if not tag:
        return []

    tagged = [c for c in charges if tag in c.tags]
    results = []
    for group in group_by_description(tagged):
        if len(group.charges) < 2:
            continue

        stats = analyze_intervals(group.dates, today)
        avg = stats.avg_interval_days
        if stats.gap_count < 2 or avg is None or interval_days_for(avg) <= 0:
            avg = default_interval_days

        try:
            results.append(build_subscription(
                group,
                stats,
                today,
                avg_interval_days=avg,
                is_manual=True,
                stale_floor_days=stale_floor_days,
            ))
        except (ValueError, TypeError, ArithmeticError) as e:
            logger.warning("Skipping tagged merchant %r: %s", group.group_key, e)

    logger.debug("Manual tag %r produced %d subscriptions", tag, len(results))
    return results
