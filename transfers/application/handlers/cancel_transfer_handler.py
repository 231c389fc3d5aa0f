"""
CancelTransferHandler.

Handler for withdrawing a pending transfer.
"""
import logging

from core.domain.exceptions import TransferNotAllowedError, TransferNotFoundError
from core.domain.value_objects import TransferStatus
from core.infrastructure.events import event_bus
from core.metrics import transfers_cancelled_total
from transfers.application.commands.cancel_transfer import CancelTransferCommand
from transfers.application.dto.transfer_dto import TransferStatusDTO, to_status_dto
from transfers.domain.events import LicenseTransferCancelled
from transfers.domain.services import ApprovalAggregator
from transfers.ports.transfer_repository import ApprovalStepRepository, TransferRepository

logger = logging.getLogger(__name__)


class CancelTransferHandler:
    """Handler for CancelTransferCommand."""

    def __init__(
        self,
        transfer_repository: TransferRepository,
        approval_step_repository: ApprovalStepRepository,
    ):
        """Initialize handler with repositories."""
        self.transfer_repository = transfer_repository
        self.approval_step_repository = approval_step_repository

    async def handle(self, command: CancelTransferCommand) -> TransferStatusDTO:
        """
        Handle cancel transfer command.

        Args:
            command: CancelTransferCommand

        Returns:
            TransferStatusDTO of the cancelled transfer

        Raises:
            TransferNotFoundError: If transfer not found
            TransferNotAllowedError: If the transfer is no longer pending or
                the actor is neither the initiator nor the current owner
        """
        transfer = await self.transfer_repository.find_by_id(command.transfer_id)
        if not transfer:
            raise TransferNotFoundError(f"Transfer {command.transfer_id} not found")

        steps = await self.approval_step_repository.find_by_transfer(transfer.id)
        state = ApprovalAggregator.transfer_state(transfer, steps)
        if state != TransferStatus.PENDING:
            raise TransferNotAllowedError(f"Cannot cancel a {state.value} transfer")

        if not transfer.can_be_cancelled_by(command.actor.reference):
            raise TransferNotAllowedError("You are not authorized to cancel this transfer")

        cancelled = await self.transfer_repository.claim_for_cancellation(transfer)
        if not cancelled:
            raise TransferNotAllowedError(f"Transfer {transfer.id} is no longer pending")

        transfers_cancelled_total.labels(transfer_type=transfer.transfer_type.value).inc()
        logger.info("Transfer %s cancelled by %s", transfer.id, command.actor.reference)

        await event_bus.publish(
            LicenseTransferCancelled(
                transfer_id=transfer.id,
                license_id=transfer.license_id,
                actor=command.actor.reference,
            )
        )

        return to_status_dto(cancelled, steps)
