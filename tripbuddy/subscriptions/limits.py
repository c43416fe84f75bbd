"""
Usage/limit enforcement for create operations.

These checks give immediate feedback before a write is attempted. The
document store still re-validates server side; nothing here is a
security boundary.
"""

import math
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Iterable

from tripbuddy.subscriptions.plans import (
    PLAN_NAMES,
    PLAN_ORDER,
    PlanLimits,
    SubscriptionPlan,
    get_plan_limits,
)


class ResourceKind(StrEnum):
    TRIP = "trip"
    COLLABORATOR = "collaborator"
    EXPENSE = "expense"
    DOCUMENT = "document"
    TEAM_MEMBER = "team_member"


class AccessDenialReason(StrEnum):
    LIMIT_REACHED = "limit_reached"


@dataclass(frozen=True)
class AccessDecision:
    """
    Result of a limit check.

    ``current_usage`` and ``limit`` are only echoed back on denial, for display.
    """

    allowed: bool
    reason: AccessDenialReason | None = None
    current_usage: int | None = None
    limit: float | None = None


@dataclass
class UsageCounters:
    """Current usage as reported by the document store."""

    trip_count: int = 0
    collaborator_count: int = 0
    expense_count: int = 0
    document_count: int = 0
    team_member_count: int = 0


def check_access(kind: ResourceKind, current_usage: int, limit: float | None) -> AccessDecision:
    """
    Decide whether one more resource of ``kind`` may be created.

    A ``None`` or infinite limit is unbounded. Never raises.
    """
    if limit is None or (isinstance(limit, float) and math.isinf(limit)):
        return AccessDecision(allowed=True)
    if current_usage < limit:
        return AccessDecision(allowed=True)
    return AccessDecision(
        allowed=False,
        reason=AccessDenialReason.LIMIT_REACHED,
        current_usage=current_usage,
        limit=limit,
    )


def limit_for(limits: PlanLimits, kind: ResourceKind) -> float:
    """The plan's cap for one resource kind."""
    return {
        ResourceKind.TRIP: limits.max_trips,
        ResourceKind.COLLABORATOR: limits.max_collaborators_per_trip,
        ResourceKind.EXPENSE: limits.max_expenses_per_trip,
        ResourceKind.DOCUMENT: limits.max_documents_per_trip,
        ResourceKind.TEAM_MEMBER: limits.max_team_members,
    }[ResourceKind(kind)]


def usage_for(counters: UsageCounters, kind: ResourceKind) -> int:
    return {
        ResourceKind.TRIP: counters.trip_count,
        ResourceKind.COLLABORATOR: counters.collaborator_count,
        ResourceKind.EXPENSE: counters.expense_count,
        ResourceKind.DOCUMENT: counters.document_count,
        ResourceKind.TEAM_MEMBER: counters.team_member_count,
    }[ResourceKind(kind)]


def check_plan_limit(plan: SubscriptionPlan, kind: ResourceKind, current_usage: int) -> AccessDecision:
    """check_access against the limit ``plan`` declares for ``kind``."""
    return check_access(kind, current_usage, limit_for(get_plan_limits(plan), kind))


@dataclass(frozen=True)
class CreateCheck:
    """A limit decision with the text and upgrade target for an upgrade prompt."""

    decision: AccessDecision
    message: str
    required_plan: SubscriptionPlan | None

    @property
    def allowed(self) -> bool:
        return self.decision.allowed


def _format_limit(limit: float) -> str:
    return "unlimited" if math.isinf(limit) else str(int(limit))


def _next_plan(plan: SubscriptionPlan) -> SubscriptionPlan | None:
    index = PLAN_ORDER.index(plan)
    return PLAN_ORDER[index + 1] if index + 1 < len(PLAN_ORDER) else None


def can_create(plan: SubscriptionPlan, kind: ResourceKind, current_usage: int) -> CreateCheck:
    """
    Check whether a new resource can be created and build the message shown
    to the user.

    Args:
        plan: The user's effective plan
        kind: Resource about to be created
        current_usage: How many of ``kind`` already exist in scope

    Returns:
        CreateCheck whose ``required_plan`` is the next tier up, or None
        when the user is already on the top tier
    """
    plan = SubscriptionPlan(plan)
    kind = ResourceKind(kind)
    decision = check_plan_limit(plan, kind, current_usage)
    label = kind.value.replace("_", " ")

    if decision.allowed:
        message = f"You can create more {label}s"
    else:
        limit = decision.limit
        plural = "s" if limit > 1 else ""
        message = (
            f"You've reached the maximum of {_format_limit(limit)} {label}{plural} "
            f"on {PLAN_NAMES[plan]}."
        )

    return CreateCheck(decision=decision, message=message, required_plan=_next_plan(plan))


# ─────────────────────────────────────────────────────────────────────────────
# Downgrade impact
# ─────────────────────────────────────────────────────────────────────────────

@dataclass
class TripUsage:
    trip_id: str
    title: str
    collaborator_count: int = 0
    expense_count: int = 0
    document_count: int = 0


@dataclass
class AffectedTrip:
    trip_id: str
    trip_title: str
    issues: list[str] = field(default_factory=list)


@dataclass
class DowngradeImpact:
    affected_trips: list[AffectedTrip] = field(default_factory=list)

    @property
    def has_impact(self) -> bool:
        return bool(self.affected_trips)


_PER_TRIP_CHECKS = (
    (ResourceKind.COLLABORATOR, "collaborator_count", "collaborators"),
    (ResourceKind.EXPENSE, "expense_count", "expenses"),
    (ResourceKind.DOCUMENT, "document_count", "documents"),
)


def downgrade_impact(new_plan: SubscriptionPlan, trip_usages: Iterable[TripUsage]) -> DowngradeImpact:
    """
    List trips whose existing data exceeds the per-trip limits of ``new_plan``.

    Existing data is never deleted on downgrade; affected trips just can't
    grow until they are back under the limit.
    """
    limits = get_plan_limits(new_plan)
    impact = DowngradeImpact()

    for usage in trip_usages:
        issues = []
        for kind, attr, noun in _PER_TRIP_CHECKS:
            limit = limit_for(limits, kind)
            count = getattr(usage, attr)
            if not math.isinf(limit) and count > limit:
                issues.append(f"Has {count} {noun} (limit: {_format_limit(limit)})")
        if issues:
            impact.affected_trips.append(
                AffectedTrip(trip_id=usage.trip_id, trip_title=usage.title, issues=issues)
            )

    return impact
