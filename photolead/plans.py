"""Subscription plans and monthly lead quotas."""

import os
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

# -1 means unlimited
UNLIMITED = -1

PLANS = {
    "free": {
        "name": "Free",
        "price_id": None,
        "price": 0,
        "leads_per_month": 10,
    },
    "pro": {
        "name": "Pro",
        "price_id": os.environ.get("STRIPE_PRO_PRICE_ID", "price_pro"),
        "price": 29,
        "leads_per_month": 200,
    },
    "premium": {
        "name": "Premium",
        "price_id": os.environ.get("STRIPE_PREMIUM_PRICE_ID", "price_premium"),
        "price": 79,
        "leads_per_month": UNLIMITED,
    },
}

DEFAULT_PLAN = "free"


@dataclass
class PlanLimits:
    leads_per_month: int
    is_unlimited: bool


def get_plan_by_price_id(price_id: str) -> Optional[str]:
    """Map a payment processor price id back to a plan key."""
    for key, plan in PLANS.items():
        if plan["price_id"] and plan["price_id"] == price_id:
            return key
    return None


def get_plan_limits(plan: Optional[str]) -> PlanLimits:
    """Lead limits for a plan; unknown plans get the free tier."""
    details = PLANS.get(plan or DEFAULT_PLAN, PLANS[DEFAULT_PLAN])
    leads = details["leads_per_month"]
    return PlanLimits(leads_per_month=leads, is_unlimited=leads == UNLIMITED)


@dataclass
class QuotaStatus:
    """How much of the monthly lead allowance a user has left."""

    plan: str
    leads_used: int
    leads_limit: int
    is_unlimited: bool

    @classmethod
    def for_usage(cls, plan: Optional[str], leads_used: Optional[int]) -> "QuotaStatus":
        plan = plan if plan in PLANS else DEFAULT_PLAN
        limits = get_plan_limits(plan)
        return cls(
            plan=plan,
            leads_used=leads_used or 0,
            leads_limit=limits.leads_per_month,
            is_unlimited=limits.is_unlimited,
        )

    @property
    def remaining(self) -> Optional[int]:
        """Leads left this month, or None when unlimited."""
        if self.is_unlimited:
            return None
        return max(0, self.leads_limit - self.leads_used)

    @property
    def can_generate(self) -> bool:
        return self.is_unlimited or self.leads_used < self.leads_limit

    def allowance(self, requested: int) -> int:
        """How many of the requested leads still fit this month."""
        if self.is_unlimited:
            return requested
        return min(requested, self.remaining)


def needs_reset(reset_date: Optional[datetime], now: Optional[datetime] = None) -> bool:
    """
    True when the usage counter was last reset over a calendar month ago.

    A missing reset date never triggers a reset.
    """
    if reset_date is None:
        return False

    now = now or datetime.utcnow()
    year, month = (now.year, now.month - 1) if now.month > 1 else (now.year - 1, 12)
    # Clamp the day for shorter months (e.g. Mar 31 -> Feb 28)
    day = now.day
    while True:
        try:
            one_month_ago = now.replace(year=year, month=month, day=day)
            break
        except ValueError:
            day -= 1

    return reset_date < one_month_ago
