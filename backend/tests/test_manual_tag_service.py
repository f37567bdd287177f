"""Tests for the tag-driven subscription path."""

import pytest
from datetime import date

from subwatch.services.classification_service import Frequency
from subwatch.services.manual_tag_service import collect_manual_subscriptions, resolve_subscription_tag

START = date(2025, 1, 10)
TODAY = date(2025, 6, 15)


class TestResolveSubscriptionTag:
    """Test tag configuration handling."""

    def test_normalizes(self):
        assert resolve_subscription_tag("  Subscriptions ") == "subscriptions"

    def test_blank_disables(self):
        assert resolve_subscription_tag("") is None
        assert resolve_subscription_tag("   ") is None
        assert resolve_subscription_tag(None) is None

    def test_non_string_disables(self):
        assert resolve_subscription_tag(42) is None
        assert resolve_subscription_tag(["subscriptions"]) is None


class TestCollectManualSubscriptions:
    """Test building subscriptions from tagged charges."""

    def test_disabled_without_tag(self, make_charges):
        charges = make_charges(START, [0, 30, 60], 9.99, "GYM", tags={"subscriptions"})
        assert collect_manual_subscriptions(charges, None, TODAY) == []

    def test_only_tagged_charges(self, make_charges):
        charges = (
            make_charges(START, [0, 30, 60], 9.99, "GYM", tags={"subscriptions"})
            + make_charges(START, [0, 30, 60], 4.99, "COFFEE", tags={"food"})
        )
        subs = collect_manual_subscriptions(charges, "subscriptions", TODAY)
        assert [s.merchant_key for s in subs] == ["GYM"]
        assert subs[0].is_manual is True

    def test_two_charges_default_to_monthly(self, make_charges):
        """A single gap is not trusted; the interval falls back to 30 days."""
        charges = make_charges(START, [0, 90], 120.00, "INSURANCE", tags={"subscriptions"})
        subs = collect_manual_subscriptions(charges, "subscriptions", TODAY)
        assert len(subs) == 1
        assert subs[0].interval_days == 30
        assert subs[0].frequency == Frequency.monthly
        assert subs[0].occurrence_count == 2

    def test_single_charge_excluded(self, make_charges):
        charges = make_charges(START, [0], 120.00, "INSURANCE", tags={"subscriptions"})
        assert collect_manual_subscriptions(charges, "subscriptions", TODAY) == []

    def test_no_consistency_gate(self, make_charges):
        """Irregular tagged charges still count, using their measured average."""
        charges = make_charges(START, [0, 5, 65, 70], 20.00, "PARKING", tags={"subscriptions"})
        subs = collect_manual_subscriptions(charges, "subscriptions", TODAY)
        assert len(subs) == 1
        assert subs[0].interval_days == 23

    def test_same_day_charges_fall_back(self, make_charges):
        charges = make_charges(START, [0, 0, 0], 3.00, "APP STORE", tags={"subscriptions"})
        subs = collect_manual_subscriptions(charges, "subscriptions", TODAY)
        assert subs[0].interval_days == 30

    def test_amount_is_average(self, make_charges):
        charges = (
            make_charges(START, [0, 30], 10.00, "GYM", tags={"subscriptions"})
            + make_charges(START, [60], 13.00, "gym", tags={"subscriptions"})
        )
        subs = collect_manual_subscriptions(charges, "subscriptions", TODAY)
        assert len(subs) == 1
        assert subs[0].amount == 11.00
