"""
Unit tests for ApprovalStep domain entity.
"""

import uuid
from datetime import datetime, timedelta, timezone

import pytest

from core.domain.exceptions import ApprovalStepAlreadyResolvedError
from core.domain.value_objects import ApprovalOutcome, ApprovalType, OwnerRef
from transfers.domain.approval import ApprovalStep

ALICE = OwnerRef.of("accounts.User", 1)


def make_step(**kwargs):
    defaults = dict(
        transfer_id=uuid.uuid4(),
        approval_type=ApprovalType.SOURCE,
        timeout_hours=72,
        approver=ALICE,
    )
    defaults.update(kwargs)
    return ApprovalStep.create(**defaults)


class TestApprovalStep:
    """Tests for ApprovalStep entity."""

    def test_create_pending(self):
        """Test a new step is pending with a token."""
        step = make_step()

        assert step.is_pending
        assert step.resolved_by is None
        assert len(step.approval_token) == 64

    def test_tokens_are_unique(self):
        """Test every step gets its own token."""
        assert make_step().approval_token != make_step().approval_token

    def test_timeout_must_be_positive(self):
        """Test zero timeouts are refused."""
        with pytest.raises(ValueError, match="timeout"):
            make_step(timeout_hours=0)

    def test_approve(self):
        """Test approving records who decided."""
        step = make_step()

        approved = step.approve(ALICE, "fine by me")

        assert approved.outcome == ApprovalOutcome.APPROVED
        assert approved.resolved_by == ALICE
        assert approved.reason == "fine by me"
        assert approved.resolved_at is not None
        assert step.is_pending

    def test_cannot_decide_twice(self):
        """Test a resolved step refuses a second decision."""
        rejected = make_step().reject(ALICE, "no")

        with pytest.raises(
            ApprovalStepAlreadyResolvedError,
            match="Cannot approve an approval step that is already rejected",
        ):
            rejected.approve(ALICE)

    def test_cannot_reject_approved_step(self):
        """Test the refusal names the attempted decision."""
        approved = make_step().approve(ALICE)

        with pytest.raises(
            ApprovalStepAlreadyResolvedError,
            match="Cannot reject an approval step that is already approved",
        ):
            approved.reject(ALICE, "too late")

    def test_timed_out(self):
        """Test a pending step times out after its timeout."""
        created = datetime.now(timezone.utc) - timedelta(hours=73)
        step = make_step(created_at=created)

        assert step.is_timed_out()
        assert step.expires_at == created + timedelta(hours=72)

    def test_resolved_step_never_times_out(self):
        """Test only pending steps time out."""
        step = make_step(created_at=datetime.now(timezone.utc) - timedelta(hours=73))

        assert not step.approve(ALICE).is_timed_out()

    def test_validate_token(self):
        """Test token validation."""
        step = make_step()

        assert step.validate_token(step.approval_token)
        assert not step.validate_token("x" * 64)
        assert not step.approve(ALICE).validate_token(step.approval_token)
