"""
Unit tests for ApprovalPlanner and ApprovalStepManager.
"""

import uuid

import pytest

from core.domain.exceptions import DuplicateApprovalStepError
from core.domain.value_objects import ApprovalType, OwnerRef, TransferType
from tests.fakes import User
from transfers.domain.services import (
    ADMIN_APPROVAL_TIMEOUT_HOURS,
    OWNER_APPROVAL_TIMEOUT_HOURS,
    ApprovalPlanner,
    ApprovalStepManager,
)
from transfers.domain.transfer import Transfer

ALICE = OwnerRef.of("accounts.User", 1)
BOB = OwnerRef.of("accounts.User", 2)


def make_transfer(transfer_type=TransferType.USER_TO_USER, **kwargs):
    return Transfer.create(
        license_id=uuid.uuid4(),
        from_owner=ALICE,
        to_owner=BOB,
        transfer_type=transfer_type,
        initiated_by=ALICE,
        **kwargs,
    )


class TestApprovalPlanner:
    """Tests for ApprovalPlanner.plan_approvals."""

    def test_empty_plan(self):
        """Test a transfer without flags needs no approval."""
        transfer = make_transfer(requires_source_approval=False, requires_target_approval=False)

        assert ApprovalPlanner.plan_approvals(transfer) == {}

    def test_source_only(self):
        """Test a single source entry with the current owner as approver."""
        transfer = make_transfer(requires_target_approval=False)

        plan = ApprovalPlanner.plan_approvals(transfer)

        assert list(plan) == [ApprovalType.SOURCE]
        source = plan[ApprovalType.SOURCE]
        assert source.approver == ALICE
        assert source.timeout_hours == OWNER_APPROVAL_TIMEOUT_HOURS == 72
        assert source.required

    def test_full_plan(self):
        """Test all three entries with their approvers and timeouts."""
        transfer = make_transfer(requires_admin_approval=True)

        plan = ApprovalPlanner.plan_approvals(transfer)

        assert set(plan) == {ApprovalType.SOURCE, ApprovalType.TARGET, ApprovalType.ADMIN}
        assert plan[ApprovalType.TARGET].approver == BOB
        assert plan[ApprovalType.ADMIN].approver is None
        assert plan[ApprovalType.ADMIN].timeout_hours == ADMIN_APPROVAL_TIMEOUT_HOURS == 120

    def test_requirement_descriptor(self):
        """Test the descriptor handed to callers."""
        plan = ApprovalPlanner.plan_approvals(make_transfer())

        assert plan[ApprovalType.SOURCE].to_dict() == {
            "required": True,
            "approver_type": "accounts.User",
            "approver_id": "1",
            "timeout_hours": 72,
        }

    def test_recovery_plan(self):
        """Test recovery transfers only wait for an administrator."""
        plan = ApprovalPlanner.plan_approvals(make_transfer(TransferType.RECOVERY))

        assert list(plan) == [ApprovalType.ADMIN]

    @pytest.mark.asyncio
    async def test_create_planned_steps(self, fake_steps):
        """Test one pending step is stored per plan entry."""
        transfer = make_transfer(requires_admin_approval=True)

        steps = await ApprovalPlanner.create_planned_steps(transfer, fake_steps)

        assert len(steps) == 3
        assert all(step.is_pending for step in steps)
        assert len(await fake_steps.find_by_transfer(transfer.id)) == 3


@pytest.mark.asyncio
class TestApprovalStepManager:
    """Tests for ApprovalStepManager.create_approval_step."""

    async def test_defaults_from_plan(self, fake_steps):
        """Test approver and timeout default to the planned ones."""
        transfer = make_transfer()

        step = await ApprovalStepManager.create_approval_step(
            transfer, ApprovalType.TARGET, fake_steps
        )

        assert step.approver == BOB
        assert step.timeout_hours == 72
        assert step.transfer_id == transfer.id

    async def test_explicit_actor_and_timeout(self, fake_steps):
        """Test the expected approver and timeout can be overridden."""
        transfer = make_transfer()

        step = await ApprovalStepManager.create_approval_step(
            transfer, ApprovalType.ADMIN, fake_steps, actor=User(99), timeout_hours=24
        )

        assert step.approver == OwnerRef.of("accounts.User", 99)
        assert step.timeout_hours == 24

    async def test_unplanned_admin_step_uses_admin_timeout(self, fake_steps):
        """Test an admin step added outside of the plan."""
        transfer = make_transfer()

        step = await ApprovalStepManager.create_approval_step(
            transfer, ApprovalType.ADMIN, fake_steps
        )

        assert step.approver is None
        assert step.timeout_hours == 120

    async def test_duplicate_step(self, fake_steps):
        """Test a second step of the same type is refused."""
        transfer = make_transfer()
        await ApprovalStepManager.create_approval_step(transfer, ApprovalType.SOURCE, fake_steps)

        with pytest.raises(DuplicateApprovalStepError):
            await ApprovalStepManager.create_approval_step(
                transfer, ApprovalType.SOURCE, fake_steps
            )
