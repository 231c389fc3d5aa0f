"""
Transfer DTOs for callers of the application layer.
"""
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Iterable, List, Optional

from core.domain.value_objects import TransferStatus
from transfers.domain.approval import ApprovalStep
from transfers.domain.services import ApprovalAggregator
from transfers.domain.transfer import Transfer


@dataclass
class ApprovalStepDTO:
    """DTO for a single approval step."""

    id: uuid.UUID
    approval_type: str
    approver: Optional[str]  # None for admin steps
    outcome: str
    timeout_hours: int
    expires_at: datetime
    timed_out: bool
    resolved_by: Optional[str] = None
    resolved_at: Optional[datetime] = None
    reason: Optional[str] = None


@dataclass
class TransferStatusDTO:
    """DTO for the derived state of a transfer."""

    transfer_id: uuid.UUID
    license_id: uuid.UUID
    transfer_type: str
    from_owner: str
    to_owner: str
    initiated_by: str
    status: str
    completion_percentage: int
    created_at: datetime
    expires_at: datetime
    preserve_usages: bool
    completed_at: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None
    rejection_reason: Optional[str] = None
    steps: List[ApprovalStepDTO] = field(default_factory=list)

    @property
    def is_final(self) -> bool:
        return TransferStatus(self.status).is_final()


@dataclass
class TransferDecisionDTO:
    """DTO for the result of an approve or reject decision."""

    transfer_id: uuid.UUID
    step: ApprovalStepDTO
    transfer_status: str
    executed: bool = False


def to_step_dto(step: ApprovalStep, current_time: datetime) -> ApprovalStepDTO:
    """Build the DTO of one approval step."""
    return ApprovalStepDTO(
        id=step.id,
        approval_type=step.approval_type.value,
        approver=str(step.approver) if step.approver else None,
        outcome=step.outcome.value,
        timeout_hours=step.timeout_hours,
        expires_at=step.expires_at,
        timed_out=step.is_timed_out(current_time),
        resolved_by=str(step.resolved_by) if step.resolved_by else None,
        resolved_at=step.resolved_at,
        reason=step.reason,
    )


def to_status_dto(
    transfer: Transfer,
    steps: Iterable[ApprovalStep],
    current_time: Optional[datetime] = None,
) -> TransferStatusDTO:
    """
    Build the status DTO of a transfer from freshly loaded steps.

    Args:
        transfer: Transfer entity
        steps: All approval steps of the transfer
        current_time: Current time (defaults to now)

    Returns:
        TransferStatusDTO
    """
    now = current_time or datetime.now(timezone.utc)
    steps = list(steps)
    rejected = next((step for step in steps if step.is_rejected), None)

    return TransferStatusDTO(
        transfer_id=transfer.id,
        license_id=transfer.license_id,
        transfer_type=transfer.transfer_type.value,
        from_owner=str(transfer.from_owner),
        to_owner=str(transfer.to_owner),
        initiated_by=str(transfer.initiated_by),
        status=ApprovalAggregator.transfer_state(transfer, steps, now).value,
        completion_percentage=ApprovalAggregator.completion_percentage(steps),
        created_at=transfer.created_at,
        expires_at=transfer.expires_at,
        preserve_usages=transfer.preserve_usages,
        completed_at=transfer.completed_at,
        cancelled_at=transfer.cancelled_at,
        rejection_reason=transfer.rejection_reason or (rejected.reason if rejected else None),
        steps=[to_step_dto(step, now) for step in steps],
    )
