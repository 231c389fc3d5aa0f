"""
Usage domain services.

Domain services contain business logic that doesn't naturally
fit within a single entity.
"""

import logging
import uuid

from usages.ports.usage_repository import UsageRepository

logger = logging.getLogger(__name__)


class UsageLedger:
    """Domain service for the seats a license currently consumes."""

    @staticmethod
    async def count_active(license_id: uuid.UUID, repository: UsageRepository) -> int:
        """
        Count active usages for a license.

        Args:
            license_id: License UUID
            repository: Usage repository

        Returns:
            Number of active usages
        """
        usages = await repository.find_active_by_license(license_id)
        return len(usages)

    @staticmethod
    async def release_for_transfer(
        license_id: uuid.UUID,
        preserve_usages: bool,
        repository: UsageRepository,
    ) -> int:
        """
        Free the seats of a license that is changing owner.

        Args:
            license_id: License UUID
            preserve_usages: Keep usages active for the new owner
            repository: Usage repository

        Returns:
            Number of usages revoked
        """
        if preserve_usages:
            return 0
        revoked = await repository.revoke_all_active(license_id)
        logger.info("Revoked %s usage(s) of license %s", revoked, license_id)
        return revoked
