"""
Transfer domain entity.

A transfer is a proposed move of a license from its current owner to
another owner. It owns the approval steps planned for it.
"""
import uuid
from dataclasses import dataclass, replace
from datetime import datetime, timedelta, timezone
from typing import Optional

from core.domain.value_objects import ApprovalType, OwnerRef, TransferStatus, TransferType

DEFAULT_EXPIRES_AFTER_DAYS = 7


@dataclass(frozen=True)
class Transfer:
    """
    Transfer domain entity.

    ``status`` only records lifecycle events that happen outside the
    approval steps (completion and cancellation). Whether the transfer is
    approved, rejected or expired is derived from its steps every time it
    is read, see ``ApprovalAggregator``.
    """

    id: uuid.UUID
    license_id: uuid.UUID
    from_owner: OwnerRef
    to_owner: OwnerRef
    transfer_type: TransferType
    initiated_by: OwnerRef
    requires_source_approval: bool
    requires_target_approval: bool
    requires_admin_approval: bool
    preserve_usages: bool
    reason: Optional[str]
    rejection_reason: Optional[str]
    status: TransferStatus
    created_at: datetime
    expires_at: datetime
    completed_at: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None

    def __post_init__(self):
        """Validate transfer entity."""
        if not self.license_id:
            raise ValueError("License ID is required")
        if self.from_owner == self.to_owner:
            raise ValueError("A license cannot be transferred to its current owner")
        if self.status not in (
            TransferStatus.PENDING,
            TransferStatus.COMPLETED,
            TransferStatus.CANCELLED,
        ):
            raise ValueError(f"Transfer status {self.status} is derived, not stored")

    @classmethod
    def create(
        cls,
        license_id: uuid.UUID,
        from_owner: OwnerRef,
        to_owner: OwnerRef,
        transfer_type: TransferType,
        initiated_by: OwnerRef,
        reason: Optional[str] = None,
        requires_source_approval: Optional[bool] = None,
        requires_target_approval: Optional[bool] = None,
        requires_admin_approval: bool = False,
        preserve_usages: Optional[bool] = None,
        expires_after_days: int = DEFAULT_EXPIRES_AFTER_DAYS,
        transfer_id: Optional[uuid.UUID] = None,
    ) -> "Transfer":
        """
        Create a new pending Transfer, applying the transfer type defaults.

        Args:
            license_id: License UUID
            from_owner: Current owner of the license
            to_owner: Proposed new owner
            transfer_type: Kind of transfer
            initiated_by: Actor starting the transfer
            reason: Optional free-text reason
            requires_source_approval: Override for the source sign-off
            requires_target_approval: Override for the target sign-off
            requires_admin_approval: Ask for an admin sign-off even when the
                type does not need one
            preserve_usages: Keep active usages (defaults from the type)
            expires_after_days: Lifetime of the whole request
            transfer_id: Optional UUID (generated if not provided)

        Returns:
            Transfer entity instance
        """
        if transfer_type.requires_approval():
            source = True if requires_source_approval is None else requires_source_approval
            target = True if requires_target_approval is None else requires_target_approval
        else:
            source = False
            target = False

        if preserve_usages is None:
            preserve_usages = transfer_type.can_preserve_usages()

        now = datetime.now(timezone.utc)
        return cls(
            id=transfer_id or uuid.uuid4(),
            license_id=license_id,
            from_owner=from_owner,
            to_owner=to_owner,
            transfer_type=transfer_type,
            initiated_by=initiated_by,
            requires_source_approval=source,
            requires_target_approval=target,
            requires_admin_approval=requires_admin_approval
            or transfer_type.requires_admin_approval(),
            preserve_usages=preserve_usages,
            reason=reason,
            rejection_reason=None,
            status=TransferStatus.PENDING,
            created_at=now,
            expires_at=now + timedelta(days=expires_after_days),
        )

    def requires(self, approval_type: ApprovalType) -> bool:
        """Check whether the given sign-off is part of this transfer."""
        return {
            ApprovalType.SOURCE: self.requires_source_approval,
            ApprovalType.TARGET: self.requires_target_approval,
            ApprovalType.ADMIN: self.requires_admin_approval,
        }.get(approval_type, False)

    def is_request_expired(self, current_time: Optional[datetime] = None) -> bool:
        """Whether the overall request outlived ``expires_at``."""
        check_time = current_time or datetime.now(timezone.utc)
        return self.status == TransferStatus.PENDING and self.expires_at < check_time

    def can_be_cancelled_by(self, actor: OwnerRef) -> bool:
        """The initiator and the current owner may withdraw a request."""
        return actor in (self.initiated_by, self.from_owner)

    def with_rejection_reason(self, reason: Optional[str]) -> "Transfer":
        return replace(self, rejection_reason=reason)

    def mark_completed(self) -> "Transfer":
        """
        Create a new Transfer instance marked as completed.

        Returns:
            Completed transfer
        """
        if self.status != TransferStatus.PENDING:
            raise ValueError(f"Cannot complete a {self.status} transfer")
        return replace(
            self,
            status=TransferStatus.COMPLETED,
            completed_at=datetime.now(timezone.utc),
        )

    def mark_cancelled(self) -> "Transfer":
        """
        Create a new Transfer instance marked as cancelled.

        Returns:
            Cancelled transfer
        """
        if self.status != TransferStatus.PENDING:
            raise ValueError(f"Cannot cancel a {self.status} transfer")
        return replace(
            self,
            status=TransferStatus.CANCELLED,
            cancelled_at=datetime.now(timezone.utc),
        )
