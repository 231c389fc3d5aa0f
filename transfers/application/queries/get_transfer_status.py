"""
GetTransferStatusQuery.

Query for the derived state of a transfer.
"""
import uuid
from dataclasses import dataclass


@dataclass
class GetTransferStatusQuery:
    """Query to get transfer status."""

    transfer_id: uuid.UUID
