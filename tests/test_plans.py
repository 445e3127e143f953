"""Tests for plans and monthly quotas."""

from datetime import datetime

import pytest

from photolead.plans import (
    PLANS,
    QuotaStatus,
    get_plan_by_price_id,
    get_plan_limits,
    needs_reset,
)


class TestPlanLimits:
    """Plan lookup."""

    @pytest.mark.parametrize("plan,leads,unlimited", [
        ("free", 10, False),
        ("pro", 200, False),
        ("premium", -1, True),
        ("mystery", 10, False),
        (None, 10, False),
    ])
    def test_limits(self, plan, leads, unlimited):
        limits = get_plan_limits(plan)
        assert limits.leads_per_month == leads
        assert limits.is_unlimited is unlimited

    def test_price_id_lookup(self):
        assert get_plan_by_price_id(PLANS["pro"]["price_id"]) == "pro"
        assert get_plan_by_price_id(PLANS["premium"]["price_id"]) == "premium"
        assert get_plan_by_price_id("price_unknown") is None


class TestQuotaStatus:
    """Remaining allowance."""

    def test_free_plan_partially_used(self):
        quota = QuotaStatus.for_usage("free", 7)
        assert quota.remaining == 3
        assert quota.can_generate
        assert quota.allowance(10) == 3
        assert quota.allowance(2) == 2

    def test_free_plan_exhausted(self):
        quota = QuotaStatus.for_usage("free", 12)
        assert quota.remaining == 0
        assert not quota.can_generate
        assert quota.allowance(10) == 0

    def test_unlimited(self):
        quota = QuotaStatus.for_usage("premium", 5000)
        assert quota.remaining is None
        assert quota.can_generate
        assert quota.allowance(10) == 10

    def test_unknown_plan_treated_as_free(self):
        quota = QuotaStatus.for_usage("gold", None)
        assert quota.plan == "free"
        assert quota.leads_used == 0


class TestNeedsReset:
    """Monthly usage reset."""

    def test_recent_reset(self):
        assert not needs_reset(datetime(2024, 5, 20), now=datetime(2024, 6, 10))

    def test_over_a_month_ago(self):
        assert needs_reset(datetime(2024, 5, 9), now=datetime(2024, 6, 10))

    def test_january_wraps_to_december(self):
        assert needs_reset(datetime(2023, 12, 1), now=datetime(2024, 1, 15))
        assert not needs_reset(datetime(2023, 12, 20), now=datetime(2024, 1, 15))

    def test_short_month_clamps_day(self):
        now = datetime(2024, 3, 31)
        assert not needs_reset(datetime(2024, 2, 29, 12), now=now)
        assert needs_reset(datetime(2024, 2, 28), now=now)

    def test_missing_date(self):
        assert not needs_reset(None, now=datetime(2024, 1, 1))
