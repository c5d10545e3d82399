"""Tests for TeardownPlanner class."""

from __future__ import annotations

import pytest

from cluster_teardown.models.plan import StepAction, TeardownStep
from cluster_teardown.models.resource import ResourceKind, ResourceRef
from cluster_teardown.teardown.planner import TeardownPlanner

ROUTER = ResourceRef(ResourceKind.ROUTER, "r1", "demo-router")
NETWORK = ResourceRef(ResourceKind.NETWORK, "n1", "demo-net")
INSTANCE = ResourceRef(ResourceKind.INSTANCE, "i1", "demo-master-0")
SG = ResourceRef(ResourceKind.SECURITY_GROUP, "sg1", "demo-sg")


class TestTeardownPlanner:
    """Test suite for TeardownPlanner."""

    @pytest.fixture
    def router_prefix(self) -> tuple[TeardownStep, ...]:
        return (
            TeardownStep(owner=ROUTER, action=StepAction.REMOVE_ROUTER_SUBNET, index=0, target_id="s1"),
            TeardownStep(owner=ROUTER, action=StepAction.CLEAR_EXTERNAL_GATEWAY, index=1),
        )

    def test_kinds_in_fixed_order(self) -> None:
        """Test resources are planned in kind precedence order regardless of input order."""
        matches = {
            ResourceKind.SECURITY_GROUP: [SG],
            ResourceKind.NETWORK: [NETWORK],
            ResourceKind.INSTANCE: [INSTANCE],
            ResourceKind.ROUTER: [ROUTER],
        }

        plan = TeardownPlanner().build("demo", matches)

        assert [rp.ref for rp in plan.resources] == [INSTANCE, ROUTER, NETWORK, SG]

    def test_terminal_delete_is_last_and_requires_prefix(self, router_prefix: tuple[TeardownStep, ...]) -> None:
        """Test each resource ends with a terminal delete requiring every prerequisite."""
        plan = TeardownPlanner().build("demo", {ResourceKind.ROUTER: [ROUTER]}, prerequisites={ROUTER: router_prefix})

        steps = plan.resources[0].steps
        assert steps[:2] == router_prefix
        assert steps[-1].action is StepAction.DELETE
        assert steps[-1].index == 2
        assert steps[-1].requires == (0, 1)

    def test_resource_without_prerequisites(self) -> None:
        """Test a resource without prerequisites gets only its delete step."""
        plan = TeardownPlanner().build("demo", {ResourceKind.INSTANCE: [INSTANCE]})

        assert len(plan) == 1
        assert plan.resources[0].steps[-1] == TeardownStep(owner=INSTANCE, action=StepAction.DELETE, index=0)

    def test_empty_matches_give_empty_plan(self) -> None:
        """Test no matches produce an empty plan that still carries warnings."""
        plan = TeardownPlanner().build("demo", {}, warnings=["could not list routers: boom"])

        assert plan.is_empty
        assert plan.warnings == ("could not list routers: boom",)

    def test_build_is_deterministic(self, router_prefix: tuple[TeardownStep, ...]) -> None:
        """Test building twice from the same inputs gives equal plans."""
        matches = {ResourceKind.ROUTER: [ROUTER], ResourceKind.INSTANCE: [INSTANCE]}
        prerequisites = {ROUTER: router_prefix}
        planner = TeardownPlanner()

        assert planner.build("demo", matches, prerequisites) == planner.build("demo", matches, prerequisites)

    def test_unreachable_kinds_carried(self) -> None:
        """Test unreachable kinds are recorded in the plan."""
        plan = TeardownPlanner().build("demo", {}, unreachable={ResourceKind.ROUTER: "timeout"})

        assert plan.unreachable == {ResourceKind.ROUTER: "timeout"}

    def test_prefix_with_foreign_owner_rejected(self) -> None:
        """Test prerequisite steps must belong to their resource."""
        foreign = (TeardownStep(owner=NETWORK, action=StepAction.DELETE_PORT, index=0, target_id="p1"),)

        with pytest.raises(ValueError, match="belongs to"):
            TeardownPlanner().build("demo", {ResourceKind.ROUTER: [ROUTER]}, prerequisites={ROUTER: foreign})

    def test_prefix_with_gap_rejected(self) -> None:
        """Test prerequisite steps must be indexed 0..n-1."""
        gap = (TeardownStep(owner=ROUTER, action=StepAction.CLEAR_EXTERNAL_GATEWAY, index=1),)

        with pytest.raises(ValueError, match="expected 0"):
            TeardownPlanner().build("demo", {ResourceKind.ROUTER: [ROUTER]}, prerequisites={ROUTER: gap})

    def test_prefix_with_delete_rejected(self) -> None:
        """Test prerequisite steps cannot contain the terminal delete."""
        bad = (TeardownStep(owner=ROUTER, action=StepAction.DELETE, index=0),)

        with pytest.raises(ValueError, match="must not include a delete"):
            TeardownPlanner().build("demo", {ResourceKind.ROUTER: [ROUTER]}, prerequisites={ROUTER: bad})

    def test_prefix_requiring_later_step_rejected(self) -> None:
        """Test a prerequisite cannot require itself or a later step."""
        bad = (
            TeardownStep(owner=NETWORK, action=StepAction.DELETE_SUBNET, index=0, target_id="s1", requires=(1,)),
            TeardownStep(owner=NETWORK, action=StepAction.DELETE_PORT, index=1, target_id="p1"),
        )

        with pytest.raises(ValueError, match="requires a later step"):
            TeardownPlanner().build("demo", {ResourceKind.NETWORK: [NETWORK]}, prerequisites={NETWORK: bad})
