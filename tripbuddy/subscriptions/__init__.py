"""
Subscription plans and usage limit enforcement.

Exports:
- SubscriptionPlan, SubscriptionStatus, PlanLimits, PLAN_LIMITS: plan tiers
- effective_plan: entitlement from stored subscription state
- check_access, check_plan_limit, can_create: create-operation gating
- check_feature_access: gated features per plan
- downgrade_impact: trips that exceed a lower tier's limits
"""

from tripbuddy.subscriptions.limits import (
    AccessDecision,
    AccessDenialReason,
    AffectedTrip,
    CreateCheck,
    DowngradeImpact,
    ResourceKind,
    TripUsage,
    UsageCounters,
    can_create,
    check_access,
    check_plan_limit,
    downgrade_impact,
    limit_for,
    usage_for,
)
from tripbuddy.subscriptions.plans import (
    FEATURE_REQUIREMENTS,
    PLAN_LIMITS,
    PLAN_NAMES,
    UNLIMITED,
    BillingCycle,
    FeatureAccess,
    GatedFeature,
    PlanLimits,
    SubscriptionPlan,
    SubscriptionStatus,
    check_feature_access,
    effective_plan,
    get_plan_limits,
    is_plan_higher,
)

__all__ = [
    "AccessDecision",
    "AccessDenialReason",
    "AffectedTrip",
    "CreateCheck",
    "DowngradeImpact",
    "ResourceKind",
    "TripUsage",
    "UsageCounters",
    "can_create",
    "check_access",
    "check_plan_limit",
    "downgrade_impact",
    "limit_for",
    "usage_for",
    "FEATURE_REQUIREMENTS",
    "PLAN_LIMITS",
    "PLAN_NAMES",
    "UNLIMITED",
    "BillingCycle",
    "FeatureAccess",
    "GatedFeature",
    "PlanLimits",
    "SubscriptionPlan",
    "SubscriptionStatus",
    "check_feature_access",
    "effective_plan",
    "get_plan_limits",
    "is_plan_higher",
]
