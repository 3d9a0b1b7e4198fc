"""Tests for plan quota evaluation."""

import pytest

from src.usage_limits import (
    UNLIMITED,
    Plan,
    UsageType,
    check_limit,
    decide,
    limit_exceeded_message,
    load_plan_limits,
)


class TestCheckLimit:
    def test_under_limit(self):
        info = check_limit(Plan.FREE, UsageType.REPOSITORIES, used=0)
        assert info.limit == 1
        assert info.remaining == 1
        assert info.can_add is True

    def test_at_limit(self):
        info = check_limit(Plan.FREE, UsageType.REPOSITORIES, used=1)
        assert info.remaining == 0
        assert info.can_add is False

    def test_over_limit_never_negative(self):
        info = check_limit(Plan.FREE, UsageType.MICROSERVICES, used=5)
        assert info.remaining == 0
        assert info.can_add is False

    def test_unlimited(self):
        info = check_limit(Plan.PRO, UsageType.REPOSITORIES, used=250)
        assert info.is_unlimited
        assert info.remaining == UNLIMITED
        assert info.can_add is True

    def test_pro_team_members_are_capped(self):
        assert check_limit(Plan.PRO, UsageType.TEAM_MEMBERS, used=5).can_add is False
        assert check_limit(Plan.TEAM, UsageType.TEAM_MEMBERS, used=500).can_add is True


class TestDecide:
    def test_free_plan_denial_requires_upgrade(self):
        decision = decide(Plan.FREE, UsageType.REPOSITORIES, used=1)
        assert decision.allowed is False
        assert decision.upgrade_required is True

    def test_paid_plan_denial_does_not_flag_upgrade(self):
        decision = decide(Plan.PRO, UsageType.TEAM_MEMBERS, used=5)
        assert decision.allowed is False
        assert decision.upgrade_required is False

    def test_allowed(self):
        decision = decide(Plan.FREE, UsageType.MICROSERVICES, used=2)
        assert decision.allowed is True
        assert decision.upgrade_required is False


class TestLoadPlanLimits:
    def test_custom_file(self, tmp_path):
        path = tmp_path / "plans.yaml"
        path.write_text(
            "plans:\n"
            "  free: {repositories: 2, microservices: 10, team_members: 1}\n"
            "  pro: {repositories: -1, microservices: -1, team_members: 20}\n"
            "  team: {repositories: -1, microservices: -1, team_members: -1}\n"
        )
        limits = load_plan_limits(path)
        assert limits[Plan.FREE][UsageType.REPOSITORIES] == 2
        assert check_limit(Plan.FREE, UsageType.REPOSITORIES, 1, limits).can_add is True

    def test_missing_usage_type_is_an_error(self, tmp_path):
        path = tmp_path / "plans.yaml"
        path.write_text("plans:\n  free: {repositories: 1}\n")
        with pytest.raises(KeyError):
            load_plan_limits(path)


class TestLimitExceededMessage:
    def test_singular_repository(self):
        message = limit_exceeded_message(UsageType.REPOSITORIES, Plan.FREE)
        assert message.startswith("You've reached your limit of 1 repository on the free plan.")
        assert "Upgrade to Pro" in message

    def test_team_members_upsell(self):
        message = limit_exceeded_message(UsageType.TEAM_MEMBERS, Plan.PRO)
        assert "5 team members" in message
        assert "Upgrade to Team" in message
