"""
GetTransferStatusHandler.

Handler for the transfer status query. The state is derived from the
stored steps on every call and never cached.
"""

from core.domain.exceptions import TransferNotFoundError
from transfers.application.dto.transfer_dto import TransferStatusDTO, to_status_dto
from transfers.application.queries.get_transfer_status import GetTransferStatusQuery
from transfers.ports.transfer_repository import ApprovalStepRepository, TransferRepository


class GetTransferStatusHandler:
    """Handler for GetTransferStatusQuery."""

    def __init__(
        self,
        transfer_repository: TransferRepository,
        approval_step_repository: ApprovalStepRepository,
    ):
        """Initialize handler with repositories."""
        self.transfer_repository = transfer_repository
        self.approval_step_repository = approval_step_repository

    async def handle(self, query: GetTransferStatusQuery) -> TransferStatusDTO:
        """
        Handle get transfer status query.

        Args:
            query: GetTransferStatusQuery

        Returns:
            TransferStatusDTO

        Raises:
            TransferNotFoundError: If transfer not found
        """
        transfer = await self.transfer_repository.find_by_id(query.transfer_id)
        if not transfer:
            raise TransferNotFoundError(f"Transfer {query.transfer_id} not found")

        steps = await self.approval_step_repository.find_by_transfer(transfer.id)
        return to_status_dto(transfer, steps)
