"""
Usage repository port (interface).

This defines the contract for usage persistence operations.
Implementations are in the infrastructure layer.
"""
from abc import ABC, abstractmethod
from typing import List
import uuid

from usages.domain.usage import LicenseUsage


class UsageRepository(ABC):
    """
    Abstract repository for LicenseUsage entities.
    """

    @abstractmethod
    async def save(self, usage: LicenseUsage) -> LicenseUsage:
        """
        Save a usage entity.

        Args:
            usage: LicenseUsage entity to save

        Returns:
            Saved usage entity
        """
        pass

    @abstractmethod
    async def find_active_by_license(self, license_id: uuid.UUID) -> List[LicenseUsage]:
        """
        Find all active usages for a license.

        Args:
            license_id: License UUID

        Returns:
            List of active LicenseUsage entities
        """
        pass

    @abstractmethod
    async def revoke_all_active(self, license_id: uuid.UUID) -> int:
        """
        Revoke every active usage of a license.

        Args:
            license_id: License UUID

        Returns:
            Number of usages revoked
        """
        pass
