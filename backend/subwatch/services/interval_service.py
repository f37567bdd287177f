"""Interval statistics and the periodicity filter for merchant groups."""

import statistics
from dataclasses import dataclass
from datetime import date
from typing import List, Optional, Sequence


@dataclass(frozen=True)
class IntervalStats:
    occurrence_count: int
    avg_interval_days: Optional[float]  # None when there is no gap
    stddev_interval_days: Optional[float]  # Sample stddev, None with fewer than two gaps
    first_charge_date: date
    last_charge_date: date
    days_since_last: int

    @property
    def gap_count(self) -> int:
        return self.occurrence_count - 1


def consecutive_gaps(dates: Sequence[date]) -> List[int]:
    """Day gaps between chronologically consecutive dates."""
    ordered = sorted(dates)
    return [(ordered[i] - ordered[i - 1]).days for i in range(1, len(ordered))]


def analyze_intervals(dates: Sequence[date], today: date) -> Optional[IntervalStats]:
    """
    Compute interval statistics for a charge timeline.
    Returns None for an empty timeline.
    """
    if not dates:
        return None
    if any(d is None for d in dates):
        raise ValueError("charge timeline contains a missing date")

    ordered = sorted(dates)
    gaps = consecutive_gaps(ordered)

    avg = statistics.mean(gaps) if gaps else None
    stddev = statistics.stdev(gaps) if len(gaps) >= 2 else None

    return IntervalStats(
        occurrence_count=len(ordered),
        avg_interval_days=avg,
        stddev_interval_days=stddev,
        first_charge_date=ordered[0],
        last_charge_date=ordered[-1],
        days_since_last=(today - ordered[-1]).days,
    )


def is_periodic(
    stats: IntervalStats,
    tolerance: float = 0.5,
    min_occurrences: int = 3,
    min_interval_days: float = 5,
    max_interval_days: float = 400,
) -> bool:
    """
    Decide whether a group's timeline looks like a subscription.

    Needs at least min_occurrences charges (two or more gaps), an average gap
    inside [min_interval_days, max_interval_days] and a standard deviation
    below avg * tolerance.
    """
    if stats.occurrence_count < min_occurrences:
        return False
    if stats.avg_interval_days is None or stats.stddev_interval_days is None:
        return False
    if not (min_interval_days <= stats.avg_interval_days <= max_interval_days):
        return False
    return stats.stddev_interval_days < stats.avg_interval_days * tolerance
