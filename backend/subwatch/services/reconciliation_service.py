"""
Merge pattern-detected and tag-asserted subscriptions into one list.

A detected subscription matches a manual one when their merchant keys are
equal, or when their fingerprints (amount to the cent plus the first word of
the merchant name) are equal. Detected statistics win on a match; the entry is
only marked manual. Manual entries with no detected match are appended as-is.
"""

from typing import List, Sequence

from subwatch.services.classification_service import Subscription, round_half_up


def fingerprint(subscription: Subscription) -> str:
    tokens = subscription.merchant.upper().split()
    first_word = tokens[0] if tokens else ""
    return f"{round_half_up(subscription.amount, 2):.2f}|{first_word}"


def reconcile(
    detected: Sequence[Subscription],
    manual: Sequence[Subscription],
) -> List[Subscription]:
    manual_keys = {s.merchant_key for s in manual}
    manual_prints = {fingerprint(s) for s in manual}
    detected_keys = {s.merchant_key for s in detected}
    detected_prints = {fingerprint(s) for s in detected}

    merged = []
    for sub in detected:
        if sub.merchant_key in manual_keys or fingerprint(sub) in manual_prints:
            merged.append(sub.as_manual())
        else:
            merged.append(sub)

    for sub in manual:
        if sub.merchant_key in detected_keys or fingerprint(sub) in detected_prints:
            continue
        merged.append(sub if sub.is_manual else sub.as_manual())

    return merged
