"""
ApproveTransferCommand.

Command to approve one approval step of a transfer.
"""
import uuid
from dataclasses import dataclass
from typing import Optional

from core.domain.actors import TransferActor


@dataclass
class ApproveTransferCommand:
    """Command to approve an approval step."""

    step_id: uuid.UUID
    actor: TransferActor
    reason: Optional[str] = None
