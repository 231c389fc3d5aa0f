"""
Django implementation of UsageRepository port.

This adapter converts between domain entities and Django ORM models.
"""

import uuid
from typing import List

from asgiref.sync import sync_to_async
from django.utils import timezone

from core.domain.value_objects import UsageStatus
from usages.domain.usage import LicenseUsage
from usages.infrastructure.models import LicenseUsage as UsageModel
from usages.ports.usage_repository import UsageRepository


class DjangoUsageRepository(UsageRepository):
    """
    Django ORM implementation of UsageRepository.
    """

    def _to_domain(self, model: UsageModel) -> LicenseUsage:
        """
        Convert Django model to domain entity.

        Args:
            model: Django LicenseUsage model

        Returns:
            LicenseUsage domain entity
        """
        return LicenseUsage(
            id=model.id,
            license_id=model.license_id,
            fingerprint=model.fingerprint,
            status=UsageStatus(model.status),
            registered_at=model.registered_at,
            revoked_at=model.revoked_at,
        )

    def _to_model(self, usage: LicenseUsage) -> UsageModel:
        """
        Convert domain entity to Django model.

        Args:
            usage: LicenseUsage domain entity

        Returns:
            Django LicenseUsage model
        """
        # pylint: disable=no-member
        model, created = UsageModel.objects.get_or_create(
            id=usage.id,
            defaults={
                "license_id": usage.license_id,
                "fingerprint": usage.fingerprint,
                "status": usage.status.value,
                "registered_at": usage.registered_at,
                "revoked_at": usage.revoked_at,
            },
        )
        if not created:
            model.status = usage.status.value
            model.revoked_at = usage.revoked_at
        return model

    @sync_to_async
    def save(self, usage: LicenseUsage) -> LicenseUsage:
        """
        Save a usage entity.

        Args:
            usage: LicenseUsage entity to save

        Returns:
            Saved usage entity
        """
        model = self._to_model(usage)
        model.save()
        return self._to_domain(model)

    @sync_to_async
    def find_active_by_license(self, license_id: uuid.UUID) -> List[LicenseUsage]:
        """
        Find all active usages for a license.

        Args:
            license_id: License UUID

        Returns:
            List of active LicenseUsage entities
        """
        models = UsageModel.objects.filter(  # pylint: disable=no-member
            license_id=license_id, status=UsageStatus.ACTIVE.value
        )
        return [self._to_domain(model) for model in models]

    @sync_to_async
    def revoke_all_active(self, license_id: uuid.UUID) -> int:
        """
        Revoke every active usage of a license.

        Args:
            license_id: License UUID

        Returns:
            Number of usages revoked
        """
        return UsageModel.objects.filter(  # pylint: disable=no-member
            license_id=license_id, status=UsageStatus.ACTIVE.value
        ).update(status=UsageStatus.REVOKED.value, revoked_at=timezone.now())
