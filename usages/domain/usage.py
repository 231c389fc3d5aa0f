"""
LicenseUsage domain entity.

A usage is one device (identified by its fingerprint) occupying a seat
of a license.
"""

import uuid
from dataclasses import dataclass, replace
from datetime import datetime, timezone
from typing import Optional

from core.domain.value_objects import UsageStatus


@dataclass(frozen=True)
class LicenseUsage:
    """
    LicenseUsage domain entity.

    Immutable; state changes return new instances.
    """

    id: uuid.UUID
    license_id: uuid.UUID
    fingerprint: str
    status: UsageStatus
    registered_at: datetime
    revoked_at: Optional[datetime]

    def __post_init__(self):
        """Validate usage entity."""
        if not self.license_id:
            raise ValueError("License ID is required")
        if not self.fingerprint or not self.fingerprint.strip():
            raise ValueError("Usage fingerprint cannot be empty")
        if len(self.fingerprint) > 255:
            raise ValueError("Usage fingerprint too long")

    @classmethod
    def register(
        cls,
        license_id: uuid.UUID,
        fingerprint: str,
        usage_id: Optional[uuid.UUID] = None,
    ) -> "LicenseUsage":
        """
        Create a new active usage.

        Args:
            license_id: License UUID
            fingerprint: Device fingerprint
            usage_id: Optional UUID (generated if not provided)

        Returns:
            LicenseUsage entity instance
        """
        return cls(
            id=usage_id or uuid.uuid4(),
            license_id=license_id,
            fingerprint=fingerprint,
            status=UsageStatus.ACTIVE,
            registered_at=datetime.now(timezone.utc),
            revoked_at=None,
        )

    @property
    def is_active(self) -> bool:
        return self.status == UsageStatus.ACTIVE

    def revoke(self) -> "LicenseUsage":
        """
        Create a new LicenseUsage instance with revoked status.

        Returns:
            Revoked usage (self if already revoked)
        """
        if not self.is_active:
            return self
        return replace(self, status=UsageStatus.REVOKED, revoked_at=datetime.now(timezone.utc))
