"""
Actor contracts.

Actors are whatever the host application authenticates (users,
organizations, service accounts). The transfer workflow only knows them
through a reference and a handful of optional capabilities that an actor
class declares by subclassing the matching contract.
"""
import uuid
from abc import ABC, abstractmethod

from core.domain.value_objects import OwnerRef

APPROVE_LICENSE_TRANSFERS = "approve-license-transfers"


class TransferActor(ABC):
    """Any entity that can take part in a license transfer."""

    @property
    @abstractmethod
    def reference(self) -> OwnerRef:
        """Polymorphic (type, id) reference of this actor."""
        pass


class CanInitiateLicenseTransfers(ABC):
    """Capability of actors that start transfers of licenses they hold."""

    @abstractmethod
    def owns_license(self, license_id: uuid.UUID) -> bool:
        """
        Determine if the actor owns the given license.

        Args:
            license_id: License UUID

        Returns:
            True if the actor currently owns the license
        """
        pass


class ChecksPermissions(ABC):
    """Capability of actors backed by the host permission system."""

    @abstractmethod
    def has_permission(self, permission: str) -> bool:
        """
        Check a named permission.

        Args:
            permission: Permission name, e.g. 'approve-license-transfers'

        Returns:
            True if the actor holds the permission
        """
        pass


class CanReceiveLicenseTransfers(ABC):
    """Capability of actors that limit which transfers they accept."""

    @abstractmethod
    def can_receive_license_transfers(self) -> bool:
        """Whether the actor accepts incoming transfers right now."""
        pass

    @abstractmethod
    def has_reached_license_limit(self) -> bool:
        """Whether the actor already holds as many licenses as allowed."""
        pass
