"""Unit tests for plan tiers, entitlement and feature gates."""

from datetime import datetime, timedelta

import pytest

from tripbuddy.subscriptions import (
    FEATURE_REQUIREMENTS,
    GatedFeature,
    SubscriptionPlan,
    SubscriptionStatus,
    check_feature_access,
    effective_plan,
    is_plan_higher,
)

NOW = datetime(2026, 6, 1, 12, 0)


class TestEffectivePlan:
    """Tests for effective_plan."""

    def test_no_subscription_is_free(self):
        assert effective_plan(None, None) == SubscriptionPlan.FREE

    @pytest.mark.parametrize("status", [SubscriptionStatus.ACTIVE, SubscriptionStatus.TRIALING])
    def test_active_and_trialing_keep_plan(self, status):
        assert effective_plan(SubscriptionPlan.PRO, status, NOW + timedelta(days=10), now=NOW) == SubscriptionPlan.PRO

    @pytest.mark.parametrize(
        "status",
        [SubscriptionStatus.CANCELED, SubscriptionStatus.EXPIRED, SubscriptionStatus.PAST_DUE],
    )
    def test_inactive_statuses_fall_back_to_free(self, status):
        assert effective_plan(SubscriptionPlan.TEAMS, status, NOW + timedelta(days=3), now=NOW) == SubscriptionPlan.FREE

    def test_lapsed_trial_is_free(self):
        lapsed = effective_plan(SubscriptionPlan.PRO, SubscriptionStatus.TRIALING, NOW - timedelta(days=1), now=NOW)

        assert lapsed == SubscriptionPlan.FREE

    def test_active_with_past_period_end_keeps_plan(self):
        """Renewal may lag the period end; active status wins."""
        plan = effective_plan(SubscriptionPlan.PRO, SubscriptionStatus.ACTIVE, NOW - timedelta(hours=2), now=NOW)

        assert plan == SubscriptionPlan.PRO


class TestPlanOrdering:
    def test_is_plan_higher(self):
        assert is_plan_higher(SubscriptionPlan.PRO, SubscriptionPlan.FREE) is True
        assert is_plan_higher(SubscriptionPlan.TEAMS, SubscriptionPlan.PRO) is True
        assert is_plan_higher(SubscriptionPlan.FREE, SubscriptionPlan.TEAMS) is False
        assert is_plan_higher(SubscriptionPlan.PRO, SubscriptionPlan.PRO) is False


class TestFeatureAccess:
    """Tests for check_feature_access."""

    def test_free_plan_is_denied_pro_features(self):
        access = check_feature_access(SubscriptionPlan.FREE, GatedFeature.OFFLINE_EDIT)

        assert access.allowed is False
        assert access.required_plan == SubscriptionPlan.PRO
        assert access.reason == "This feature requires TripBuddy Pro plan"

    def test_pro_plan_gets_pro_features(self):
        assert check_feature_access(SubscriptionPlan.PRO, GatedFeature.AUTO_SPLIT_EXPENSES).allowed is True

    def test_pro_plan_is_denied_teams_features(self):
        access = check_feature_access(SubscriptionPlan.PRO, GatedFeature.TEAM_DASHBOARD)

        assert access.allowed is False
        assert access.required_plan == SubscriptionPlan.TEAMS

    def test_teams_plan_gets_everything(self):
        for feature in GatedFeature:
            assert check_feature_access(SubscriptionPlan.TEAMS, feature).allowed is True

    def test_every_feature_has_a_requirement(self):
        assert set(FEATURE_REQUIREMENTS) == set(GatedFeature)
        assert SubscriptionPlan.FREE not in FEATURE_REQUIREMENTS.values()
