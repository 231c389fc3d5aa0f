"""
Transfer repository ports (interfaces).

These define the contract for transfer, approval step and history
persistence. Implementations are in the infrastructure layer.
"""
from abc import ABC, abstractmethod
from datetime import datetime
from typing import List, Optional
import uuid

from transfers.domain.approval import ApprovalStep
from transfers.domain.history import TransferHistory
from transfers.domain.transfer import Transfer


class TransferRepository(ABC):
    """
    Abstract repository for Transfer entities.

    This is a port in hexagonal architecture - it defines
    what operations are available, not how they're implemented.
    """

    @abstractmethod
    async def save(self, transfer: Transfer) -> Transfer:
        """
        Save a transfer entity.

        For an existing transfer only the rejection reason is written;
        status changes go through the claim methods.

        Args:
            transfer: Transfer entity to save

        Returns:
            Saved transfer entity, as stored
        """
        pass

    @abstractmethod
    async def find_by_id(self, transfer_id: uuid.UUID) -> Optional[Transfer]:
        """
        Find a transfer by ID.

        Args:
            transfer_id: Transfer UUID

        Returns:
            Transfer entity or None if not found
        """
        pass

    @abstractmethod
    async def find_for_update(self, transfer_id: uuid.UUID) -> Optional[Transfer]:
        """
        Find a transfer and lock it until the surrounding unit of work ends.

        Decisions on the same transfer wait for each other, so the last
        one always sees the outcomes stored before it.

        Args:
            transfer_id: Transfer UUID

        Returns:
            Transfer entity or None if not found
        """
        pass

    @abstractmethod
    async def find_by_license(self, license_id: uuid.UUID) -> List[Transfer]:
        """
        Find all transfers of a license, newest first.

        Args:
            license_id: License UUID

        Returns:
            List of Transfer entities
        """
        pass

    @abstractmethod
    async def find_last_completed_for_license(
        self, license_id: uuid.UUID
    ) -> Optional[Transfer]:
        """
        Find the most recently completed transfer of a license.

        Args:
            license_id: License UUID

        Returns:
            Transfer entity or None if the license was never transferred
        """
        pass

    @abstractmethod
    async def count_created_since(self, license_id: uuid.UUID, since: datetime) -> int:
        """
        Count transfers of a license created after a point in time.

        Args:
            license_id: License UUID
            since: Lower bound (exclusive)

        Returns:
            Number of transfers
        """
        pass

    @abstractmethod
    async def claim_for_completion(self, transfer: Transfer) -> Optional[Transfer]:
        """
        Move a pending transfer to completed with a conditional write.

        Only one caller can win the claim; everybody else gets None.

        Args:
            transfer: Transfer to complete

        Returns:
            Completed Transfer or None if it was no longer pending
        """
        pass

    @abstractmethod
    async def claim_for_cancellation(self, transfer: Transfer) -> Optional[Transfer]:
        """
        Move a pending transfer to cancelled with a conditional write.

        Args:
            transfer: Transfer to cancel

        Returns:
            Cancelled Transfer or None if it was no longer pending
        """
        pass


class ApprovalStepRepository(ABC):
    """
    Abstract repository for ApprovalStep entities.

    Steps are append-only: they are added once and afterwards only
    resolved, never deleted.
    """

    @abstractmethod
    async def add(self, step: ApprovalStep) -> ApprovalStep:
        """
        Persist a new approval step.

        Args:
            step: Pending ApprovalStep

        Returns:
            Saved ApprovalStep

        Raises:
            DuplicateApprovalStepError: If the transfer already has a step
                of this type
        """
        pass

    @abstractmethod
    async def find_by_id(self, step_id: uuid.UUID) -> Optional[ApprovalStep]:
        """
        Find an approval step by ID.

        Args:
            step_id: ApprovalStep UUID

        Returns:
            ApprovalStep entity or None if not found
        """
        pass

    @abstractmethod
    async def find_by_transfer(self, transfer_id: uuid.UUID) -> List[ApprovalStep]:
        """
        Find all approval steps of a transfer.

        Args:
            transfer_id: Transfer UUID

        Returns:
            List of ApprovalStep entities
        """
        pass

    @abstractmethod
    async def resolve(self, step: ApprovalStep) -> Optional[ApprovalStep]:
        """
        Store the outcome of a step that was pending when it was loaded.

        The write only applies while the stored step is still pending, so
        of two concurrent decisions on the same step only the first wins.

        Args:
            step: Resolved (approved or rejected) ApprovalStep

        Returns:
            The stored step, or None if another decision got there first
        """
        pass


class TransferHistoryRepository(ABC):
    """
    Abstract repository for TransferHistory records.
    """

    @abstractmethod
    async def add(self, history: TransferHistory) -> TransferHistory:
        """
        Persist a history record.

        Args:
            history: TransferHistory entity

        Returns:
            Saved TransferHistory entity
        """
        pass

    @abstractmethod
    async def find_by_transfer(self, transfer_id: uuid.UUID) -> List[TransferHistory]:
        """
        Find history records of a transfer.

        Args:
            transfer_id: Transfer UUID

        Returns:
            List of TransferHistory entities
        """
        pass
