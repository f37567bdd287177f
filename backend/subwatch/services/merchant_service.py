"""
Merchant normalization and fuzzy clustering.

Bank descriptions for the same merchant drift between statements
("NETFLIX.COM LOS GATOS CA" vs "NETFLIX.COM NETFLIX.COM CA"). Charges are
bucketed by amount first; inside a bucket every description is compared to
the bucket's canonical description, which is the normalized description of
the chronologically earliest charge at that amount.

The comparison is single-pass: a charge that does not resemble the canonical
description starts its own group, but later charges are still only compared
against the canonical description, never against those newer groups.
"""

import re
from dataclasses import dataclass, field
from datetime import date
from typing import Callable, Dict, Iterable, List, Optional, Tuple

from rapidfuzz.distance import JaroWinkler

_WHITESPACE_RE = re.compile(r"\s+")


@dataclass(frozen=True)
class Charge:
    """A single debit as seen by the detection engine."""
    date: date
    amount: float  # Absolute value, rounded to cents
    description: str
    tags: frozenset = frozenset()


@dataclass
class MerchantGroup:
    """Charges treated as coming from one recurring source."""
    group_key: str
    canonical_amount: float
    display_name: str
    charges: List[Charge] = field(default_factory=list)

    @property
    def dates(self) -> List[date]:
        return [c.date for c in self.charges]

    @property
    def amounts(self) -> List[float]:
        return [c.amount for c in self.charges]


def normalize_description(description: Optional[str]) -> str:
    """Uppercase and collapse whitespace so descriptions can be compared."""
    if not description:
        return ""
    return _WHITESPACE_RE.sub(" ", description).strip().upper()


def description_similarity(a: str, b: str) -> float:
    """Jaro-Winkler similarity in [0, 1]."""
    return JaroWinkler.normalized_similarity(a, b)


def cluster_charges(
    charges: Iterable[Charge],
    threshold: float = 0.7,
    similarity: Callable[[str, str], float] = description_similarity,
) -> List[MerchantGroup]:
    """
    Group charges into merchant groups keyed by (amount, description).

    Charges with a blank description are ignored. Within an amount, ties on
    date keep their input order. Groups are returned in the order they were
    first formed and their charges are in ascending date order.
    """
    by_amount: Dict[float, List[Tuple[int, Charge]]] = {}
    for index, charge in enumerate(charges):
        if not normalize_description(charge.description):
            continue
        by_amount.setdefault(charge.amount, []).append((index, charge))

    groups: Dict[Tuple[float, str], MerchantGroup] = {}
    for amount, indexed in by_amount.items():
        ordered = [c for _, c in sorted(indexed, key=lambda pair: (pair[1].date, pair[0]))]
        canonical = normalize_description(ordered[0].description)

        for charge in ordered:
            normalized = normalize_description(charge.description)
            if normalized == canonical or similarity(normalized, canonical) > threshold:
                key = canonical
            else:
                key = normalized

            group = groups.get((amount, key))
            if group is None:
                group = MerchantGroup(
                    group_key=key,
                    canonical_amount=amount,
                    display_name=charge.description.strip(),
                )
                groups[(amount, key)] = group
            group.charges.append(charge)

    return list(groups.values())


def group_by_description(charges: Iterable[Charge]) -> List[MerchantGroup]:
    """
    Group charges by exact normalized description, ignoring amount.

    Used for user-tagged charges, where the tag already asserts the merchant
    is a subscription and price changes should stay in one group.
    """
    groups: Dict[str, MerchantGroup] = {}
    for _, charge in sorted(enumerate(charges), key=lambda pair: (pair[1].date, pair[0])):
        key = normalize_description(charge.description)
        if not key:
            continue
        group = groups.get(key)
        if group is None:
            group = MerchantGroup(
                group_key=key,
                canonical_amount=charge.amount,
                display_name=charge.description.strip(),
            )
            groups[key] = group
        group.charges.append(charge)
    return list(groups.values())
