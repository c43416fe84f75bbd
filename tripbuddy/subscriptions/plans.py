"""
Subscription plan tiers, their limits and feature gates.

Plan data is read-only here; the payment backend owns who is on which plan.
"""

import math
from dataclasses import dataclass
from datetime import datetime
from enum import StrEnum
from typing import Final

UNLIMITED: Final = math.inf


class SubscriptionPlan(StrEnum):
    FREE = "free"
    PRO = "pro"
    TEAMS = "teams"


class SubscriptionStatus(StrEnum):
    ACTIVE = "active"
    CANCELED = "canceled"
    EXPIRED = "expired"
    PAST_DUE = "past_due"
    TRIALING = "trialing"


class BillingCycle(StrEnum):
    MONTHLY = "monthly"
    YEARLY = "yearly"


# Lowest to highest
PLAN_ORDER: Final = (SubscriptionPlan.FREE, SubscriptionPlan.PRO, SubscriptionPlan.TEAMS)


@dataclass(frozen=True)
class PlanLimits:
    """
    Declared limits of one plan tier. Counts are ints or UNLIMITED.
    """

    max_trips: float
    max_collaborators_per_trip: float
    max_expenses_per_trip: float
    max_documents_per_trip: float
    max_team_members: float

    offline_edit_enabled: bool = False
    ai_suggestions_enabled: bool = False
    document_scanning_enabled: bool = False
    route_optimization_enabled: bool = False
    custom_themes_enabled: bool = False
    advanced_exports_enabled: bool = False
    realtime_location_enabled: bool = False
    auto_split_expenses_enabled: bool = False
    team_dashboard_enabled: bool = False
    shared_templates_enabled: bool = False
    role_based: bool = False
    priority_support: bool = False
    early_access: bool = False
    bulk_export_enabled: bool = False


_PRO_FEATURES = dict(
    offline_edit_enabled=True,
    ai_suggestions_enabled=True,
    document_scanning_enabled=True,
    route_optimization_enabled=True,
    custom_themes_enabled=True,
    advanced_exports_enabled=True,
    realtime_location_enabled=True,
    auto_split_expenses_enabled=True,
    priority_support=True,
    early_access=True,
)

PLAN_LIMITS: Final[dict[SubscriptionPlan, PlanLimits]] = {
    SubscriptionPlan.FREE: PlanLimits(
        max_trips=3,
        max_collaborators_per_trip=2,
        max_expenses_per_trip=10,
        max_documents_per_trip=5,
        max_team_members=1,
    ),
    SubscriptionPlan.PRO: PlanLimits(
        max_trips=UNLIMITED,
        max_collaborators_per_trip=UNLIMITED,
        max_expenses_per_trip=UNLIMITED,
        max_documents_per_trip=UNLIMITED,
        max_team_members=1,
        **_PRO_FEATURES,
    ),
    SubscriptionPlan.TEAMS: PlanLimits(
        max_trips=UNLIMITED,
        max_collaborators_per_trip=UNLIMITED,
        max_expenses_per_trip=UNLIMITED,
        max_documents_per_trip=UNLIMITED,
        max_team_members=10,
        team_dashboard_enabled=True,
        shared_templates_enabled=True,
        role_based=True,
        bulk_export_enabled=True,
        **_PRO_FEATURES,
    ),
}

PLAN_NAMES: Final[dict[SubscriptionPlan, str]] = {
    SubscriptionPlan.FREE: "Free",
    SubscriptionPlan.PRO: "TripBuddy Pro",
    SubscriptionPlan.TEAMS: "TripBuddy Teams",
}


def get_plan_limits(plan: SubscriptionPlan | str) -> PlanLimits:
    """Limits for a plan; unknown tiers get the free limits."""
    try:
        return PLAN_LIMITS[SubscriptionPlan(plan)]
    except ValueError:
        return PLAN_LIMITS[SubscriptionPlan.FREE]


def is_plan_higher(plan: SubscriptionPlan, other: SubscriptionPlan) -> bool:
    """True if ``plan`` ranks above ``other``."""
    return PLAN_ORDER.index(plan) > PLAN_ORDER.index(other)


def effective_plan(
    plan: SubscriptionPlan | None,
    status: SubscriptionStatus | None,
    current_period_end: datetime | None = None,
    now: datetime | None = None,
) -> SubscriptionPlan:
    """
    Plan a user is entitled to right now.

    No subscription, a lapsed period on an inactive subscription, or any
    status other than active/trialing all fall back to free.
    """
    if plan is None or status is None:
        return SubscriptionPlan.FREE

    now = now or datetime.utcnow()
    if (
        current_period_end is not None
        and current_period_end < now
        and status != SubscriptionStatus.ACTIVE
    ):
        return SubscriptionPlan.FREE

    if status in (SubscriptionStatus.ACTIVE, SubscriptionStatus.TRIALING):
        return SubscriptionPlan(plan)
    return SubscriptionPlan.FREE


# ─────────────────────────────────────────────────────────────────────────────
# Feature gates
# ─────────────────────────────────────────────────────────────────────────────

class GatedFeature(StrEnum):
    UNLIMITED_COLLABORATORS = "unlimited_collaborators"
    UNLIMITED_EXPENSES = "unlimited_expenses"
    UNLIMITED_DOCUMENTS = "unlimited_documents"
    OFFLINE_EDIT = "offline_edit"
    AI_SUGGESTIONS = "ai_suggestions"
    DOCUMENT_SCANNING = "document_scanning"
    ROUTE_OPTIMIZATION = "route_optimization"
    CUSTOM_THEMES = "custom_themes"
    ADVANCED_EXPORTS = "advanced_exports"
    REALTIME_LOCATION = "realtime_location"
    AUTO_SPLIT_EXPENSES = "auto_split_expenses"
    TEAM_DASHBOARD = "team_dashboard"
    SHARED_TEMPLATES = "shared_templates"
    ROLE_BASED_ACCESS = "role_based_access"
    BULK_EXPORT = "bulk_export"
    PRIORITY_SUPPORT = "priority_support"


_TEAMS_ONLY = {
    GatedFeature.TEAM_DASHBOARD,
    GatedFeature.SHARED_TEMPLATES,
    GatedFeature.ROLE_BASED_ACCESS,
    GatedFeature.BULK_EXPORT,
}

FEATURE_REQUIREMENTS: Final[dict[GatedFeature, SubscriptionPlan]] = {
    feature: SubscriptionPlan.TEAMS if feature in _TEAMS_ONLY else SubscriptionPlan.PRO
    for feature in GatedFeature
}


@dataclass(frozen=True)
class FeatureAccess:
    """Whether a plan may use a gated feature."""

    allowed: bool
    reason: str | None = None
    required_plan: SubscriptionPlan | None = None


def check_feature_access(plan: SubscriptionPlan, feature: GatedFeature) -> FeatureAccess:
    """Check a gated feature against the user's plan."""
    required = FEATURE_REQUIREMENTS[feature]
    if PLAN_ORDER.index(plan) >= PLAN_ORDER.index(required):
        return FeatureAccess(allowed=True)
    return FeatureAccess(
        allowed=False,
        reason=f"This feature requires {PLAN_NAMES[required]} plan",
        required_plan=required,
    )
