"""
Django implementation of TransferRepository port.

This adapter converts between domain entities and Django ORM models.
"""
import uuid
from datetime import datetime
from typing import List, Optional

from asgiref.sync import sync_to_async

from core.domain.value_objects import OwnerRef, TransferStatus, TransferType
from transfers.domain.transfer import Transfer
from transfers.infrastructure.models import LicenseTransfer as TransferModel
from transfers.ports.transfer_repository import TransferRepository


class DjangoTransferRepository(TransferRepository):
    """
    Django ORM implementation of TransferRepository.
    """

    def _to_domain(self, model: TransferModel) -> Transfer:
        """
        Convert Django model to domain entity.

        Args:
            model: Django LicenseTransfer model

        Returns:
            Transfer domain entity
        """
        return Transfer(
            id=model.id,
            license_id=model.license_id,
            from_owner=OwnerRef(model.from_owner_type, model.from_owner_id),
            to_owner=OwnerRef(model.to_owner_type, model.to_owner_id),
            transfer_type=TransferType(model.transfer_type),
            initiated_by=OwnerRef(model.initiated_by_type, model.initiated_by_id),
            requires_source_approval=model.requires_source_approval,
            requires_target_approval=model.requires_target_approval,
            requires_admin_approval=model.requires_admin_approval,
            preserve_usages=model.preserve_usages,
            reason=model.reason,
            rejection_reason=model.rejection_reason,
            status=TransferStatus(model.status),
            created_at=model.created_at,
            expires_at=model.expires_at,
            completed_at=model.completed_at,
            cancelled_at=model.cancelled_at,
        )

    def _to_model(self, transfer: Transfer) -> TransferModel:
        """
        Convert domain entity to Django model.

        Args:
            transfer: Transfer domain entity

        Returns:
            Django LicenseTransfer model
        """
        # pylint: disable=no-member
        model, created = TransferModel.objects.get_or_create(
            id=transfer.id,
            defaults={
                "license_id": transfer.license_id,
                "from_owner_type": transfer.from_owner.owner_type,
                "from_owner_id": transfer.from_owner.owner_id,
                "to_owner_type": transfer.to_owner.owner_type,
                "to_owner_id": transfer.to_owner.owner_id,
                "initiated_by_type": transfer.initiated_by.owner_type,
                "initiated_by_id": transfer.initiated_by.owner_id,
                "transfer_type": transfer.transfer_type.value,
                "requires_source_approval": transfer.requires_source_approval,
                "requires_target_approval": transfer.requires_target_approval,
                "requires_admin_approval": transfer.requires_admin_approval,
                "preserve_usages": transfer.preserve_usages,
                "reason": transfer.reason,
                "rejection_reason": transfer.rejection_reason,
                "status": transfer.status.value,
                "created_at": transfer.created_at,
                "expires_at": transfer.expires_at,
                "completed_at": transfer.completed_at,
                "cancelled_at": transfer.cancelled_at,
            },
        )
        if not created:
            model.rejection_reason = transfer.rejection_reason
        return model

    @sync_to_async
    def save(self, transfer: Transfer) -> Transfer:
        """
        Save a transfer entity.

        Owners, flags and lifecycle columns are fixed once the row
        exists; status only changes through the claim methods.

        Args:
            transfer: Transfer entity to save

        Returns:
            Saved transfer entity, as stored
        """
        model = self._to_model(transfer)
        model.save(update_fields=["rejection_reason"])
        return self._to_domain(model)

    @sync_to_async
    def find_by_id(self, transfer_id: uuid.UUID) -> Optional[Transfer]:
        """
        Find a transfer by ID.

        Args:
            transfer_id: Transfer UUID

        Returns:
            Transfer entity or None if not found
        """
        try:
            model = TransferModel.objects.get(id=transfer_id)  # pylint: disable=no-member
            return self._to_domain(model)
        except TransferModel.DoesNotExist:  # pylint: disable=no-member
            return None

    @sync_to_async
    def find_for_update(self, transfer_id: uuid.UUID) -> Optional[Transfer]:
        """
        Find a transfer and hold its row lock.

        Must run inside a transaction; the lock is released when it ends.

        Args:
            transfer_id: Transfer UUID

        Returns:
            Transfer entity or None if not found
        """
        model = (
            TransferModel.objects.select_for_update()  # pylint: disable=no-member
            .filter(id=transfer_id)
            .first()
        )
        return self._to_domain(model) if model else None

    @sync_to_async
    def find_by_license(self, license_id: uuid.UUID) -> List[Transfer]:
        """
        Find all transfers of a license, newest first.

        Args:
            license_id: License UUID

        Returns:
            List of Transfer entities
        """
        models = TransferModel.objects.filter(  # pylint: disable=no-member
            license_id=license_id
        ).order_by("-created_at")
        return [self._to_domain(model) for model in models]

    @sync_to_async
    def find_last_completed_for_license(
        self, license_id: uuid.UUID
    ) -> Optional[Transfer]:
        """
        Find the most recently completed transfer of a license.

        Args:
            license_id: License UUID

        Returns:
            Transfer entity or None
        """
        model = (
            TransferModel.objects.filter(  # pylint: disable=no-member
                license_id=license_id, status=TransferStatus.COMPLETED.value
            )
            .order_by("-completed_at")
            .first()
        )
        return self._to_domain(model) if model else None

    @sync_to_async
    def count_created_since(self, license_id: uuid.UUID, since: datetime) -> int:
        """
        Count transfers of a license created after a point in time.

        Args:
            license_id: License UUID
            since: Lower bound (exclusive)

        Returns:
            Number of transfers
        """
        return TransferModel.objects.filter(  # pylint: disable=no-member
            license_id=license_id, created_at__gt=since
        ).count()

    @sync_to_async
    def claim_for_completion(self, transfer: Transfer) -> Optional[Transfer]:
        """
        Move a pending transfer to completed with a conditional write.

        Args:
            transfer: Transfer to complete

        Returns:
            Completed Transfer or None if it was no longer pending
        """
        completed = transfer.mark_completed()
        updated = TransferModel.objects.filter(  # pylint: disable=no-member
            id=transfer.id, status=TransferStatus.PENDING.value
        ).update(
            status=completed.status.value,
            completed_at=completed.completed_at,
        )
        return completed if updated == 1 else None

    @sync_to_async
    def claim_for_cancellation(self, transfer: Transfer) -> Optional[Transfer]:
        """
        Move a pending transfer to cancelled with a conditional write.

        Args:
            transfer: Transfer to cancel

        Returns:
            Cancelled Transfer or None if it was no longer pending
        """
        cancelled = transfer.mark_cancelled()
        updated = TransferModel.objects.filter(  # pylint: disable=no-member
            id=transfer.id, status=TransferStatus.PENDING.value
        ).update(
            status=cancelled.status.value,
            cancelled_at=cancelled.cancelled_at,
        )
        return cancelled if updated == 1 else None
