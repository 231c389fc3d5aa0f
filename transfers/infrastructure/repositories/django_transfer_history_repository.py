"""
Django implementation of TransferHistoryRepository port.
"""
import uuid
from typing import List

from asgiref.sync import sync_to_async

from core.domain.value_objects import OwnerRef, TransferType
from transfers.domain.history import TransferHistory
from transfers.infrastructure.models import TransferHistoryRecord as HistoryModel
from transfers.ports.transfer_repository import TransferHistoryRepository


class DjangoTransferHistoryRepository(TransferHistoryRepository):
    """
    Django ORM implementation of TransferHistoryRepository.
    """

    def _to_domain(self, model: HistoryModel) -> TransferHistory:
        return TransferHistory(
            id=model.id,
            transfer_id=model.transfer_id,
            license_id=model.license_id,
            previous_owner=OwnerRef(model.previous_owner_type, model.previous_owner_id),
            new_owner=OwnerRef(model.new_owner_type, model.new_owner_id),
            previous_snapshot=model.previous_snapshot,
            new_snapshot=model.new_snapshot,
            transfer_type=TransferType(model.transfer_type),
            executed_by=OwnerRef(model.executed_by_type, model.executed_by_id),
            usages_preserved=model.usages_preserved,
            usages_transferred_count=model.usages_transferred_count,
            usages_revoked_count=model.usages_revoked_count,
            created_at=model.created_at,
            integrity_hash=model.integrity_hash,
        )

    @sync_to_async
    def add(self, history: TransferHistory) -> TransferHistory:
        """
        Persist a history record.

        Args:
            history: TransferHistory entity

        Returns:
            Saved TransferHistory entity
        """
        model = HistoryModel(
            id=history.id,
            transfer_id=history.transfer_id,
            license_id=history.license_id,
            previous_owner_type=history.previous_owner.owner_type,
            previous_owner_id=history.previous_owner.owner_id,
            new_owner_type=history.new_owner.owner_type,
            new_owner_id=history.new_owner.owner_id,
            previous_snapshot=history.previous_snapshot,
            new_snapshot=history.new_snapshot,
            transfer_type=history.transfer_type.value,
            executed_by_type=history.executed_by.owner_type,
            executed_by_id=history.executed_by.owner_id,
            usages_preserved=history.usages_preserved,
            usages_transferred_count=history.usages_transferred_count,
            usages_revoked_count=history.usages_revoked_count,
            integrity_hash=history.integrity_hash,
            created_at=history.created_at,
        )
        model.save(force_insert=True)
        return self._to_domain(model)

    @sync_to_async
    def find_by_transfer(self, transfer_id: uuid.UUID) -> List[TransferHistory]:
        """
        Find history records of a transfer.

        Args:
            transfer_id: Transfer UUID

        Returns:
            List of TransferHistory entities
        """
        models = HistoryModel.objects.filter(transfer_id=transfer_id)  # pylint: disable=no-member
        return [self._to_domain(model) for model in models]
