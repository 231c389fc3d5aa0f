"""
Django implementation of LicenseRepository port.

This adapter converts between domain entities and Django ORM models.
"""
import uuid
from typing import Optional

from asgiref.sync import sync_to_async

from core.domain.value_objects import LicenseStatus, OwnerRef
from licenses.domain.license import License
from licenses.infrastructure.models import License as LicenseModel
from licenses.ports.license_repository import LicenseRepository


class DjangoLicenseRepository(LicenseRepository):
    """
    Django ORM implementation of LicenseRepository.

    The owner is stored as a (type, id) column pair.
    """

    def _to_domain(self, model: LicenseModel) -> License:
        """
        Convert Django model to domain entity.

        Args:
            model: Django License model

        Returns:
            License domain entity
        """
        return License(
            id=model.id,
            owner=OwnerRef(owner_type=model.owner_type, owner_id=model.owner_id),
            status=LicenseStatus(model.status),
            seat_limit=model.seat_limit,
            expires_at=model.expires_at,
            created_at=model.created_at,
            updated_at=model.updated_at,
        )

    def _to_model(self, license: License) -> LicenseModel:
        """
        Convert domain entity to Django model.

        Args:
            license: License domain entity

        Returns:
            Django License model
        """
        # pylint: disable=no-member
        model, created = LicenseModel.objects.get_or_create(
            id=license.id,
            defaults={
                "owner_type": license.owner.owner_type,
                "owner_id": license.owner.owner_id,
                "status": license.status.value,
                "seat_limit": license.seat_limit,
                "expires_at": license.expires_at,
                "created_at": license.created_at,
                "updated_at": license.updated_at,
            },
        )
        if not created:
            model.owner_type = license.owner.owner_type
            model.owner_id = license.owner.owner_id
            model.status = license.status.value
            model.seat_limit = license.seat_limit
            model.expires_at = license.expires_at
            model.updated_at = license.updated_at
        return model

    @sync_to_async
    def save(self, license: License) -> License:
        """
        Save a license entity.

        Args:
            license: License entity to save

        Returns:
            Saved license entity
        """
        model = self._to_model(license)
        model.save()
        return self._to_domain(model)

    @sync_to_async
    def find_by_id(self, license_id: uuid.UUID) -> Optional[License]:
        """
        Find a license by ID.

        Args:
            license_id: License UUID

        Returns:
            License entity or None if not found
        """
        try:
            model = LicenseModel.objects.get(id=license_id)  # pylint: disable=no-member
            return self._to_domain(model)
        except LicenseModel.DoesNotExist:  # pylint: disable=no-member
            return None

    @sync_to_async
    def exists(self, license_id: uuid.UUID) -> bool:
        """
        Check if a license exists.

        Args:
            license_id: License UUID

        Returns:
            True if license exists, False otherwise
        """
        return LicenseModel.objects.filter(id=license_id).exists()  # pylint: disable=no-member
