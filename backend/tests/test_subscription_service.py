"""Tests for full detection runs against the database."""

import pytest
from dataclasses import replace
from datetime import date, timedelta
from unittest.mock import patch

from sqlalchemy.exc import OperationalError

from subwatch.exceptions import DataAccessError
from subwatch.models.subscription_settings import get_or_create_subscription_settings
from subwatch.services.classification_service import Frequency
from subwatch.services.subscription_service import (
    DetectionContext,
    build_detection_context,
    describe_detection,
    detect_subscriptions,
    run_detection,
)
from subwatch.services.visibility_service import VisibilityStore, visible_subscriptions

TODAY = date(2025, 6, 15)
START = date(2025, 1, 10)


@pytest.fixture
def context(db_session):
    return build_detection_context(db_session, today=TODAY)


class TestRunDetection:
    """Test detection end to end."""

    def test_empty_store(self, db_session, context):
        assert run_detection(db_session, context) == []

    def test_monthly_subscription(self, db_session, add_series):
        add_series(START, [0, 30, 61, 89], "-15.99", "NETFLIX.COM LOS GATOS CA")
        context = build_detection_context(db_session, today=START + timedelta(days=100))

        subs = run_detection(db_session, context)

        assert len(subs) == 1
        sub = subs[0]
        assert sub.merchant_key == "NETFLIX.COM LOS GATOS CA"
        assert sub.frequency == Frequency.monthly
        assert sub.interval_days == 30
        assert sub.occurrence_count == 4
        assert sub.amount == 15.99
        assert sub.days_since_last == 11
        assert sub.is_stale is False
        assert sub.is_manual is False

    def test_description_variants_cluster(self, db_session, add_transaction, context):
        add_transaction(START, "-15.99", "NETFLIX.COM LOS GATOS CA")
        add_transaction(START + timedelta(days=30), "-15.99", "NETFLIX.COM NETFLIX.COM CA")
        add_transaction(START + timedelta(days=60), "-15.99", "Netflix.com  Los Gatos CA")
        add_transaction(START + timedelta(days=2), "-15.99", "SPOTIFY USA")

        subs = run_detection(db_session, context)

        assert [s.merchant_key for s in subs] == ["NETFLIX.COM LOS GATOS CA"]
        assert subs[0].occurrence_count == 3

    def test_credits_and_blank_descriptions_ignored(self, db_session, add_series, context):
        add_series(START, [0, 30, 60], "1500.00", "PAYROLL")
        add_series(START, [0, 30, 60], "-9.99", None)
        add_series(START, [1, 31, 61], "-9.99", "")
        assert run_detection(db_session, context) == []

    def test_two_charges_not_detected(self, db_session, add_series, context):
        add_series(START, [0, 30], "-15.99", "NETFLIX.COM")
        assert run_detection(db_session, context) == []

    def test_stale_subscription_still_returned(self, db_session, add_series):
        add_series(START, [0, 30, 60], "-9.99", "OLD MAGAZINE")
        context = build_detection_context(db_session, today=START + timedelta(days=60 + 91))

        subs = run_detection(db_session, context)

        assert len(subs) == 1
        assert subs[0].is_stale is True

    def test_manual_merge(self, db_session, add_series, context):
        """A tagged merchant that is also detected appears once, marked manual."""
        add_series(START, [0, 30], "-9.99", "ACME")
        add_series(START, [60, 90], "-9.99", "ACME CORP", tags=["Subscriptions"])

        subs = run_detection(db_session, context)

        assert len(subs) == 1
        assert subs[0].merchant_key == "ACME"
        assert subs[0].is_manual is True
        assert subs[0].occurrence_count == 4

    def test_manual_only(self, db_session, add_series, context):
        add_series(START, [0, 90], "-120.00", "HOME INSURANCE", tags=["subscriptions"])

        subs = run_detection(db_session, context)

        assert len(subs) == 1
        assert subs[0].is_manual is True
        assert subs[0].frequency == Frequency.monthly

    def test_manual_path_disabled(self, db_session, add_series):
        add_series(START, [0, 90], "-120.00", "HOME INSURANCE", tags=["subscriptions"])
        row = get_or_create_subscription_settings(db_session)
        row.subscription_tag = ""
        db_session.commit()

        context = build_detection_context(db_session, today=TODAY)

        assert context.subscription_tag is None
        assert run_detection(db_session, context) == []

    def test_idempotent(self, db_session, add_series, context):
        add_series(START, [0, 30, 60, 90], "-15.99", "NETFLIX.COM")
        add_series(START, [0, 7, 14, 21, 28], "-4.50", "COFFEE CLUB")
        add_series(START, [0, 90], "-120.00", "HOME INSURANCE", tags=["subscriptions"])

        assert run_detection(db_session, context) == run_detection(db_session, context)

    def test_hidden_merchants_still_returned(self, db_session, add_series, context):
        add_series(START, [0, 30, 60], "-15.99", "NETFLIX.COM")
        store = VisibilityStore(db_session)

        store.hide("NETFLIX.COM")
        context = build_detection_context(db_session, today=TODAY)
        subs = run_detection(db_session, context)
        assert [s.merchant_key for s in subs] == ["NETFLIX.COM"]
        assert visible_subscriptions(subs, context.hidden_keys) == []

        store.unhide("NETFLIX.COM")
        context = build_detection_context(db_session, today=TODAY)
        subs = run_detection(db_session, context)
        assert len(visible_subscriptions(subs, context.hidden_keys)) == 1

    def test_tolerance_from_context(self, db_session, add_series, context):
        # gaps 20, 40, 20, 40: stddev ~11.5 against an average of 30
        add_series(START, [0, 20, 60, 80, 120], "-30.00", "MEAL KIT")
        assert len(run_detection(db_session, context)) == 1
        assert run_detection(db_session, replace(context, tolerance=0.3)) == []

    def test_data_access_failure(self, db_session, context):
        with patch.object(db_session, "query", side_effect=OperationalError("SELECT", {}, Exception("no such table"))):
            with pytest.raises(DataAccessError):
                run_detection(db_session, context)

    def test_context_failure(self, db_session):
        with patch.object(db_session, "query", side_effect=OperationalError("SELECT", {}, Exception("locked"))):
            with pytest.raises(DataAccessError):
                build_detection_context(db_session, today=TODAY)


class TestDetectSubscriptions:
    """Test the pure detection step over in-memory charges."""

    def test_malformed_group_excluded_not_fatal(self, make_charges):
        """A group whose charges lack an amount is dropped; other groups survive."""
        charges = (
            make_charges(START, [0, 30, 60], None, "BROKEN FEED")
            + make_charges(START, [0, 30, 60], 15.99, "NETFLIX.COM")
        )
        context = DetectionContext(today=TODAY)

        subs = detect_subscriptions(charges, context)

        assert [s.merchant_key for s in subs] == ["NETFLIX.COM"]


class TestDetectionContext:


    def test_reads_settings_and_hidden(self, db_session):
        VisibilityStore(db_session).hide("GYM")
        context = build_detection_context(db_session, today=TODAY)
        assert context.today == TODAY
        assert context.subscription_tag == "subscriptions"
        assert context.hidden_keys == frozenset({"GYM"})
        assert context.tolerance == 0.5


class TestDescribeDetection:

    def test_includes_sql_and_parameters(self, db_session, context):
        description = describe_detection(db_session, context)
        assert description["parameters"]["interval_consistency_tolerance"] == 0.5
        assert description["parameters"]["similarity_threshold"] == 0.7
        assert "FROM transactions" in description["detection_sql"]
        assert "transaction_tags" in description["manual_tag_sql"]
        assert "'subscriptions'" in description["manual_tag_sql"]

    def test_no_manual_sql_when_disabled(self, db_session):
        context = DetectionContext(today=TODAY, subscription_tag=None)
        assert describe_detection(db_session, context)["manual_tag_sql"] is None
