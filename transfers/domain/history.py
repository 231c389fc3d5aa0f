"""
Transfer history domain entity.

An immutable, tamper-evident record of an executed transfer.
"""
import hashlib
import json
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from core.domain.value_objects import OwnerRef, TransferType


@dataclass(frozen=True)
class TransferHistory:
    """TransferHistory domain entity."""

    id: uuid.UUID
    transfer_id: uuid.UUID
    license_id: uuid.UUID
    previous_owner: OwnerRef
    new_owner: OwnerRef
    previous_snapshot: Dict[str, Any]
    new_snapshot: Dict[str, Any]
    transfer_type: TransferType
    executed_by: OwnerRef
    usages_preserved: bool
    usages_transferred_count: int
    usages_revoked_count: int
    created_at: datetime
    integrity_hash: str

    @classmethod
    def record(
        cls,
        transfer_id: uuid.UUID,
        license_id: uuid.UUID,
        previous_owner: OwnerRef,
        new_owner: OwnerRef,
        previous_snapshot: Dict[str, Any],
        new_snapshot: Dict[str, Any],
        transfer_type: TransferType,
        executed_by: OwnerRef,
        usages_preserved: bool,
        history_id: Optional[uuid.UUID] = None,
    ) -> "TransferHistory":
        """
        Build a history record and seal it with its integrity hash.

        Usage counts are taken from the previous snapshot: preserved
        usages move to the new owner, otherwise all of them were revoked.

        Returns:
            TransferHistory entity instance
        """
        active = previous_snapshot.get("active_usages_count", 0)
        fields = dict(
            id=history_id or uuid.uuid4(),
            transfer_id=transfer_id,
            license_id=license_id,
            previous_owner=previous_owner,
            new_owner=new_owner,
            previous_snapshot=previous_snapshot,
            new_snapshot=new_snapshot,
            transfer_type=transfer_type,
            executed_by=executed_by,
            usages_preserved=usages_preserved,
            usages_transferred_count=active if usages_preserved else 0,
            usages_revoked_count=0 if usages_preserved else active,
            created_at=datetime.now(timezone.utc),
        )
        return cls(**fields, integrity_hash=cls.compute_hash(fields))

    @staticmethod
    def compute_hash(fields: Dict[str, Any]) -> str:
        """SHA-256 over the canonical JSON form of the record."""
        canonical = {
            "transfer_id": str(fields["transfer_id"]),
            "license_id": str(fields["license_id"]),
            "previous_owner": str(fields["previous_owner"]),
            "new_owner": str(fields["new_owner"]),
            "previous_snapshot": fields["previous_snapshot"],
            "new_snapshot": fields["new_snapshot"],
            "transfer_type": fields["transfer_type"].value,
            "executed_by": str(fields["executed_by"]),
            "usages_preserved": fields["usages_preserved"],
            "usages_transferred_count": fields["usages_transferred_count"],
            "usages_revoked_count": fields["usages_revoked_count"],
        }
        payload = json.dumps(canonical, sort_keys=True, separators=(",", ":"))
        return hashlib.sha256(payload.encode()).hexdigest()

    def verify_integrity(self) -> bool:
        """Recompute the hash and compare it with the stored one."""
        return self.compute_hash(self.__dict__) == self.integrity_hash
