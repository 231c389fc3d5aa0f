"""
License domain entity.

This is the core domain entity representing a license.
It contains business logic and is independent of infrastructure.
"""
import uuid
from dataclasses import dataclass, replace
from datetime import datetime, timezone
from typing import Optional

from core.domain.value_objects import LicenseStatus, OwnerRef


@dataclass(frozen=True)
class License:
    """
    License domain entity.

    A license is held by exactly one owner ("licensable") at a time and
    grants up to ``seat_limit`` concurrent usages.
    """

    id: uuid.UUID
    owner: OwnerRef
    status: LicenseStatus
    seat_limit: int
    expires_at: Optional[datetime]
    created_at: datetime
    updated_at: datetime

    def __post_init__(self):
        """Validate license entity."""
        if not self.owner:
            raise ValueError("License owner is required")
        if self.seat_limit < 1:
            raise ValueError("Seat limit must be at least 1")

    @classmethod
    def create(
        cls,
        owner: OwnerRef,
        seat_limit: int = 1,
        expires_at: Optional[datetime] = None,
        license_id: Optional[uuid.UUID] = None,
    ) -> "License":
        """
        Create a new License entity.

        Args:
            owner: Entity holding the license
            seat_limit: Maximum number of concurrent usages
            expires_at: Optional expiration datetime
            license_id: Optional UUID (generated if not provided)

        Returns:
            License entity instance
        """
        now = datetime.now(timezone.utc)
        return cls(
            id=license_id or uuid.uuid4(),
            owner=owner,
            status=LicenseStatus.VALID,
            seat_limit=seat_limit,
            expires_at=expires_at,
            created_at=now,
            updated_at=now,
        )

    def is_valid(self, current_time: Optional[datetime] = None) -> bool:
        """
        Check if license is currently valid.

        Args:
            current_time: Current time (defaults to now)

        Returns:
            True if license is valid and not expired
        """
        if self.status != LicenseStatus.VALID:
            return False
        if self.expires_at:
            check_time = current_time or datetime.now(timezone.utc)
            if self.expires_at < check_time:
                return False
        return True

    def is_transferable(self, current_time: Optional[datetime] = None) -> bool:
        """Only valid, unexpired licenses can change hands."""
        return self.is_valid(current_time)

    def is_owned_by(self, owner: OwnerRef) -> bool:
        """Check whether the given reference is the current owner."""
        return self.owner == owner

    def reassign(self, new_owner: OwnerRef) -> "License":
        """
        Create a new License instance held by another owner.

        Args:
            new_owner: Reference of the new owner

        Returns:
            New License instance with updated owner
        """
        return replace(self, owner=new_owner, updated_at=datetime.now(timezone.utc))

    def snapshot(self, active_usages: int) -> dict:
        """
        Serializable view of the license used by transfer history.

        Args:
            active_usages: Number of active usages at snapshot time

        Returns:
            Dictionary snapshot
        """
        return {
            "license_id": str(self.id),
            "owner_type": self.owner.owner_type,
            "owner_id": self.owner.owner_id,
            "status": self.status.value,
            "seat_limit": self.seat_limit,
            "expires_at": self.expires_at.isoformat() if self.expires_at else None,
            "active_usages_count": active_usages,
        }
