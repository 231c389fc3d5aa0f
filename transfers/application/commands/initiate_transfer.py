"""
InitiateTransferCommand.

Command to request a change of owner for a license.
"""
import uuid
from dataclasses import dataclass
from typing import Optional

from core.domain.actors import TransferActor
from core.domain.value_objects import TransferType


@dataclass
class InitiateTransferCommand:
    """
    Command to initiate a license transfer.

    ``transfer_type`` is inferred from the owner kinds when omitted;
    ``preserve_usages`` and the source and target sign-offs default from
    the transfer type.
    """

    license_id: uuid.UUID
    target: TransferActor
    initiator: TransferActor
    transfer_type: Optional[TransferType] = None
    reason: Optional[str] = None
    preserve_usages: Optional[bool] = None
    requires_source_approval: Optional[bool] = None
    requires_target_approval: Optional[bool] = None
    requires_admin_approval: bool = False
