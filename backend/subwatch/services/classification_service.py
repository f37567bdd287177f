"""Frequency classification, cost estimates and staleness for subscriptions."""

import enum
import statistics
from dataclasses import dataclass, replace
from datetime import date, timedelta
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable, Optional

from subwatch.services.interval_service import IntervalStats
from subwatch.services.merchant_service import Charge, MerchantGroup


class Frequency(str, enum.Enum):
    """Billing frequency enumeration."""
    weekly = "weekly"
    biweekly = "bi-weekly"
    monthly = "monthly"
    quarterly = "quarterly"
    semiannual = "semi-annual"
    annual = "annual"


# Upper bound (inclusive) of interval_days for each bucket; anything longer is annual
FREQUENCY_BUCKETS = [
    (8, Frequency.weekly),
    (16, Frequency.biweekly),
    (35, Frequency.monthly),
    (100, Frequency.quarterly),
    (200, Frequency.semiannual),
]


@dataclass(frozen=True)
class Subscription:
    """A recurring charge. Recomputed from scratch on every detection run."""
    merchant: str
    merchant_key: str
    amount: float
    frequency: Frequency
    interval_days: int
    occurrence_count: int
    annual_cost: float
    ytd_cost: float
    first_charge: date
    last_charge: date
    days_since_last: int
    is_stale: bool
    is_manual: bool = False

    @property
    def next_expected(self) -> date:
        return self.last_charge + timedelta(days=self.interval_days)

    def as_manual(self) -> "Subscription":
        return replace(self, is_manual=True)


def round_half_up(value: float, places: int = 0) -> float:
    """Round like a spreadsheet/SQL ROUND, halves away from zero."""
    exponent = Decimal(1).scaleb(-places)
    return float(Decimal(str(value)).quantize(exponent, rounding=ROUND_HALF_UP))


def interval_days_for(avg_interval_days: float) -> int:
    return int(round_half_up(avg_interval_days))


def classify_frequency(interval_days: int) -> Frequency:
    for upper_bound, frequency in FREQUENCY_BUCKETS:
        if interval_days <= upper_bound:
            return frequency
    return Frequency.annual


def annual_cost(avg_amount: float, interval_days: int) -> float:
    if interval_days <= 0:
        raise ValueError(f"interval_days must be positive, got {interval_days}")
    return round_half_up(avg_amount * 365 / interval_days, 2)


def ytd_cost(charges: Iterable[Charge], today: date) -> float:
    """Sum of charges since January 1st of today's year."""
    year_start = date(today.year, 1, 1)
    total = sum(abs(c.amount) for c in charges if c.date >= year_start)
    return round_half_up(total, 2)


def stale_threshold(interval_days: int, floor_days: int = 90) -> int:
    return max(interval_days * 2, floor_days)


def is_stale(days_since_last: int, interval_days: int, floor_days: int = 90) -> bool:
    """A subscription is stale once its next charge is well overdue."""
    return days_since_last > stale_threshold(interval_days, floor_days)


def build_subscription(
    group: MerchantGroup,
    stats: IntervalStats,
    today: date,
    avg_interval_days: Optional[float] = None,
    is_manual: bool = False,
    stale_floor_days: int = 90,
) -> Subscription:
    """
    Turn a merchant group and its interval statistics into a Subscription.

    avg_interval_days overrides the measured average, which the manual path
    uses when a group has too few gaps to measure one.
    """
    interval_avg = stats.avg_interval_days if avg_interval_days is None else avg_interval_days
    if interval_avg is None:
        raise ValueError(f"no interval for merchant group {group.group_key!r}")

    interval_days = interval_days_for(interval_avg)
    avg_amount = statistics.mean(abs(a) for a in group.amounts)

    return Subscription(
        merchant=group.display_name,
        merchant_key=group.group_key,
        amount=round_half_up(avg_amount, 2),
        frequency=classify_frequency(interval_days),
        interval_days=interval_days,
        occurrence_count=stats.occurrence_count,
        annual_cost=annual_cost(avg_amount, interval_days),
        ytd_cost=ytd_cost(group.charges, today),
        first_charge=stats.first_charge_date,
        last_charge=stats.last_charge_date,
        days_since_last=stats.days_since_last,
        is_stale=is_stale(stats.days_since_last, interval_days, stale_floor_days),
        is_manual=is_manual,
    )
