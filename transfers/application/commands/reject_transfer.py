"""
RejectTransferCommand.

Command to reject one approval step, vetoing the whole transfer.
"""
import uuid
from dataclasses import dataclass
from typing import Optional

from core.domain.actors import TransferActor


@dataclass
class RejectTransferCommand:
    """Command to reject an approval step."""

    step_id: uuid.UUID
    actor: TransferActor
    reason: Optional[str] = None
