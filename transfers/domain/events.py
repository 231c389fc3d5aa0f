"""
Transfer domain events.

Every event names the actor that caused it; nothing here reads the
"current user" from ambient state.
"""
import uuid
from datetime import datetime
from typing import Any, Dict, Optional

from core.domain.events import DomainEvent
from core.domain.value_objects import ApprovalType, OwnerRef


class TransferEvent(DomainEvent):
    """Base class for events about a single transfer."""

    def __init__(
        self,
        transfer_id: uuid.UUID,
        license_id: uuid.UUID,
        actor: OwnerRef,
        occurred_at: Optional[datetime] = None,
        **payload: Any,
    ):
        """
        Initialize transfer event.

        Args:
            transfer_id: Transfer UUID
            license_id: License UUID
            actor: Who caused the event
            occurred_at: When the event occurred
            **payload: Event specific attributes
        """
        if occurred_at:
            super().__init__(aggregate_id=str(transfer_id), occurred_at=occurred_at)
        else:
            super().__init__(aggregate_id=str(transfer_id))
        self._attach(
            transfer_id=transfer_id,
            license_id=license_id,
            actor=actor,
            **payload,
        )

    def payload(self) -> Dict[str, Any]:
        return {
            "transfer_id": str(self.transfer_id),
            "license_id": str(self.license_id),
            "actor": str(self.actor),
        }


class LicenseTransferInitiated(TransferEvent):
    """Event raised when a transfer request is created."""

    def __init__(
        self,
        transfer_id: uuid.UUID,
        license_id: uuid.UUID,
        actor: OwnerRef,
        from_owner: OwnerRef,
        to_owner: OwnerRef,
        required_approvals: list,
        occurred_at: Optional[datetime] = None,
    ):
        super().__init__(
            transfer_id,
            license_id,
            actor,
            occurred_at,
            from_owner=from_owner,
            to_owner=to_owner,
            required_approvals=required_approvals,
        )

    def payload(self) -> Dict[str, Any]:
        data = super().payload()
        data.update(
            {
                "from": str(self.from_owner),
                "to": str(self.to_owner),
                "required_approvals": [str(t) for t in self.required_approvals],
            }
        )
        return data


class LicenseTransferApproved(TransferEvent):
    """Event raised when one approval step is approved."""

    def __init__(
        self,
        transfer_id: uuid.UUID,
        license_id: uuid.UUID,
        actor: OwnerRef,
        approval_type: ApprovalType,
        occurred_at: Optional[datetime] = None,
    ):
        super().__init__(transfer_id, license_id, actor, occurred_at, approval_type=approval_type)

    def payload(self) -> Dict[str, Any]:
        data = super().payload()
        data["approval_type"] = str(self.approval_type)
        return data


class LicenseTransferRejected(TransferEvent):
    """Event raised when an approval step vetoes the transfer."""

    def __init__(
        self,
        transfer_id: uuid.UUID,
        license_id: uuid.UUID,
        actor: OwnerRef,
        approval_type: ApprovalType,
        reason: Optional[str] = None,
        occurred_at: Optional[datetime] = None,
    ):
        super().__init__(
            transfer_id,
            license_id,
            actor,
            occurred_at,
            approval_type=approval_type,
            reason=reason,
        )

    def payload(self) -> Dict[str, Any]:
        data = super().payload()
        data.update({"approval_type": str(self.approval_type), "reason": self.reason})
        return data


class LicenseTransferCancelled(TransferEvent):
    """Event raised when a pending transfer is withdrawn."""

    pass


class LicenseTransferCompleted(TransferEvent):
    """Event raised when the license has changed owner."""

    def __init__(
        self,
        transfer_id: uuid.UUID,
        license_id: uuid.UUID,
        actor: OwnerRef,
        new_owner: OwnerRef,
        usages_revoked: int,
        occurred_at: Optional[datetime] = None,
    ):
        super().__init__(
            transfer_id,
            license_id,
            actor,
            occurred_at,
            new_owner=new_owner,
            usages_revoked=usages_revoked,
        )

    def payload(self) -> Dict[str, Any]:
        data = super().payload()
        data.update({"new_owner": str(self.new_owner), "usages_revoked": self.usages_revoked})
        return data
