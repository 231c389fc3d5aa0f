"""
Value objects for the domain.

Value objects are immutable objects that are defined by their attributes
rather than their identity. They have no identity and are compared by value.
"""
from abc import ABC
from dataclasses import dataclass
from enum import Enum
from typing import Any


@dataclass(frozen=True)
class ValueObject(ABC):
    """
    Base class for value objects.

    Value objects are immutable and compared by value.
    """

    def __eq__(self, other):
        """Compare value objects by their attributes."""
        if not isinstance(other, self.__class__):
            return False
        return self.__dict__ == other.__dict__

    def __hash__(self):
        """Make value objects hashable."""
        return hash(tuple(sorted(self.__dict__.items())))


@dataclass(frozen=True)
class OwnerRef(ValueObject):
    """
    Polymorphic reference to any entity that can own or act on a license.

    The pair (owner_type, owner_id) stands in for "any entity", e.g.
    ("accounts.User", "42") or ("orgs.Organization", "7").
    """

    owner_type: str
    owner_id: str

    def __post_init__(self):
        """Validate owner reference."""
        if not self.owner_type:
            raise ValueError("Owner type cannot be empty")
        if self.owner_id is None or str(self.owner_id).strip() == "":
            raise ValueError("Owner id cannot be empty")
        if not isinstance(self.owner_id, str):
            raise ValueError(f"Owner id must be a string, got {type(self.owner_id).__name__}")

    @classmethod
    def of(cls, owner_type: str, owner_id: Any) -> "OwnerRef":
        """Build a reference, normalising the id to its string form."""
        return cls(owner_type=owner_type, owner_id=str(owner_id))

    @property
    def kind(self) -> str:
        """Short kind name, e.g. 'User' for 'accounts.User'."""
        return self.owner_type.rsplit(".", 1)[-1]

    def __str__(self) -> str:
        """Return reference as 'type:id'."""
        return f"{self.owner_type}:{self.owner_id}"


class LicenseStatus(Enum):
    """License status value object."""

    VALID = "valid"
    SUSPENDED = "suspended"
    CANCELLED = "cancelled"
    EXPIRED = "expired"

    def __str__(self) -> str:
        """Return status as string."""
        return self.value


class UsageStatus(Enum):
    """Status of a seat consumed by a device."""

    ACTIVE = "active"
    REVOKED = "revoked"

    def __str__(self) -> str:
        return self.value


class ApprovalType(Enum):
    """Kind of sign-off a transfer may require."""

    SOURCE = "source"
    TARGET = "target"
    ADMIN = "admin"

    def __str__(self) -> str:
        return self.value


class ApprovalOutcome(Enum):
    """Outcome of a single approval step."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"

    def is_terminal(self) -> bool:
        """Approved and rejected steps never change again."""
        return self is not ApprovalOutcome.PENDING

    def __str__(self) -> str:
        return self.value


class TransferStatus(Enum):
    """Overall state of a license transfer."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    EXPIRED = "expired"
    COMPLETED = "completed"
    CANCELLED = "cancelled"

    def is_final(self) -> bool:
        """Check whether no further decision can change this state."""
        return self in (
            TransferStatus.REJECTED,
            TransferStatus.EXPIRED,
            TransferStatus.COMPLETED,
            TransferStatus.CANCELLED,
        )

    def __str__(self) -> str:
        return self.value


class TransferType(Enum):
    """Transfer type value object."""

    USER_TO_USER = "user_to_user"
    USER_TO_ORG = "user_to_org"
    ORG_TO_USER = "org_to_user"
    ORG_TO_ORG = "org_to_org"
    RECOVERY = "recovery"
    MIGRATION = "migration"

    def requires_approval(self) -> bool:
        """Whether source and target owners must sign off."""
        return self not in (TransferType.RECOVERY, TransferType.MIGRATION)

    def requires_admin_approval(self) -> bool:
        """Whether an administrator must sign off."""
        return self in (
            TransferType.ORG_TO_ORG,
            TransferType.RECOVERY,
            TransferType.MIGRATION,
        )

    def can_preserve_usages(self) -> bool:
        """Whether active usages survive the transfer by default."""
        return self in (TransferType.USER_TO_ORG, TransferType.MIGRATION)

    @classmethod
    def for_owner_kinds(cls, source_kind: str, target_kind: str):
        """
        Resolve the expected transfer type for a pair of owner kinds.

        Args:
            source_kind: Kind of the current owner ('User' or 'Organization')
            target_kind: Kind of the new owner

        Returns:
            Matching TransferType or None for unknown kinds
        """
        return {
            ("User", "User"): cls.USER_TO_USER,
            ("User", "Organization"): cls.USER_TO_ORG,
            ("Organization", "User"): cls.ORG_TO_USER,
            ("Organization", "Organization"): cls.ORG_TO_ORG,
        }.get((source_kind, target_kind))

    def __str__(self) -> str:
        """Return transfer type as string."""
        return self.value
