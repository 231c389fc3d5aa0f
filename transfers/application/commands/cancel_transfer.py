"""
CancelTransferCommand.

Command to withdraw a pending transfer.
"""
import uuid
from dataclasses import dataclass

from core.domain.actors import TransferActor


@dataclass
class CancelTransferCommand:
    """Command to cancel a transfer."""

    transfer_id: uuid.UUID
    actor: TransferActor
