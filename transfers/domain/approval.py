"""
Approval step domain entity.

One ApprovalStep is one required sign-off (source, target or admin) on a
transfer. A step leaves ``pending`` exactly once and is kept afterwards as
an audit trail.
"""
import secrets
import uuid
from dataclasses import dataclass, replace
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

from core.domain.exceptions import ApprovalStepAlreadyResolvedError
from core.domain.value_objects import ApprovalOutcome, ApprovalType, OwnerRef

APPROVAL_TOKEN_BYTES = 48


def generate_approval_token() -> str:
    """Generate a 64 character url-safe token for out-of-band approvals."""
    return secrets.token_urlsafe(APPROVAL_TOKEN_BYTES)


@dataclass(frozen=True)
class ApprovalRequirement:
    """One entry of an approval plan."""

    approval_type: ApprovalType
    approver: Optional[OwnerRef]
    timeout_hours: int
    required: bool = True

    @property
    def approver_type(self) -> Optional[str]:
        return self.approver.owner_type if self.approver else None

    @property
    def approver_id(self) -> Optional[str]:
        return self.approver.owner_id if self.approver else None

    def to_dict(self) -> Dict[str, Any]:
        """Descriptor handed to the host layer."""
        return {
            "required": self.required,
            "approver_type": self.approver_type,
            "approver_id": self.approver_id,
            "timeout_hours": self.timeout_hours,
        }


@dataclass(frozen=True)
class ApprovalStep:
    """
    ApprovalStep domain entity.

    ``approver`` is the expected approver (None for role-based admin
    steps); ``resolved_by`` is whoever actually decided.
    """

    id: uuid.UUID
    transfer_id: uuid.UUID
    approval_type: ApprovalType
    approver: Optional[OwnerRef]
    timeout_hours: int
    outcome: ApprovalOutcome
    resolved_by: Optional[OwnerRef]
    resolved_at: Optional[datetime]
    reason: Optional[str]
    approval_token: str
    created_at: datetime

    def __post_init__(self):
        """Validate approval step."""
        if not self.transfer_id:
            raise ValueError("Transfer ID is required")
        if self.timeout_hours <= 0:
            raise ValueError("Approval timeout must be positive")

    @classmethod
    def create(
        cls,
        transfer_id: uuid.UUID,
        approval_type: ApprovalType,
        timeout_hours: int,
        approver: Optional[OwnerRef] = None,
        step_id: Optional[uuid.UUID] = None,
        created_at: Optional[datetime] = None,
    ) -> "ApprovalStep":
        """
        Create a new pending ApprovalStep.

        Args:
            transfer_id: Parent transfer UUID
            approval_type: Kind of sign-off
            timeout_hours: How long the step may stay pending
            approver: Expected approver, if identity based
            step_id: Optional UUID (generated if not provided)
            created_at: Optional creation time (defaults to now)

        Returns:
            ApprovalStep entity instance
        """
        return cls(
            id=step_id or uuid.uuid4(),
            transfer_id=transfer_id,
            approval_type=approval_type,
            approver=approver,
            timeout_hours=timeout_hours,
            outcome=ApprovalOutcome.PENDING,
            resolved_by=None,
            resolved_at=None,
            reason=None,
            approval_token=generate_approval_token(),
            created_at=created_at or datetime.now(timezone.utc),
        )

    @property
    def is_pending(self) -> bool:
        return self.outcome == ApprovalOutcome.PENDING

    @property
    def is_approved(self) -> bool:
        return self.outcome == ApprovalOutcome.APPROVED

    @property
    def is_rejected(self) -> bool:
        return self.outcome == ApprovalOutcome.REJECTED

    @property
    def expires_at(self) -> datetime:
        return self.created_at + timedelta(hours=self.timeout_hours)

    def is_timed_out(self, current_time: Optional[datetime] = None) -> bool:
        """
        Check whether the step stayed pending past its timeout.

        Args:
            current_time: Current time (defaults to now)

        Returns:
            True if still pending and the timeout has elapsed
        """
        if not self.is_pending:
            return False
        check_time = current_time or datetime.now(timezone.utc)
        return check_time > self.expires_at

    def _resolve(
        self, verb: str, outcome: ApprovalOutcome, actor: OwnerRef, reason: Optional[str]
    ) -> "ApprovalStep":
        if not self.is_pending:
            raise ApprovalStepAlreadyResolvedError(
                f"Cannot {verb} an approval step that is already {self.outcome.value}"
            )
        return replace(
            self,
            outcome=outcome,
            resolved_by=actor,
            resolved_at=datetime.now(timezone.utc),
            reason=reason,
        )

    def approve(self, actor: OwnerRef, reason: Optional[str] = None) -> "ApprovalStep":
        """Return the approved copy of this step."""
        return self._resolve("approve", ApprovalOutcome.APPROVED, actor, reason)

    def reject(self, actor: OwnerRef, reason: Optional[str] = None) -> "ApprovalStep":
        """Return the rejected copy of this step."""
        return self._resolve("reject", ApprovalOutcome.REJECTED, actor, reason)

    def validate_token(self, token: str, current_time: Optional[datetime] = None) -> bool:
        """
        Check an out-of-band approval token.

        Args:
            token: Token presented by the approver
            current_time: Current time (defaults to now)

        Returns:
            True if the step is still open and the token matches
        """
        if not self.is_pending or self.is_timed_out(current_time):
            return False
        return secrets.compare_digest(self.approval_token, token)
