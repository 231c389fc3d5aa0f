"""
Domain exceptions.

Domain exceptions represent business rule violations
and domain-specific error conditions.
"""
from typing import List, Optional


class DomainException(Exception):
    """Base exception for all domain exceptions."""

    def __init__(self, message: str, code: str = None):
        """
        Initialize domain exception.

        Args:
            message: Human-readable error message
            code: Machine-readable error code
        """
        super().__init__(message)
        self.message = message
        self.code = code or self.__class__.__name__


class LicenseException(DomainException):
    """Base exception for license-related errors."""

    pass


class LicenseNotFoundError(LicenseException):
    """Raised when a license is not found."""

    def __init__(self, message: str = "License not found"):
        super().__init__(message, code="LICENSE_NOT_FOUND")


class TransferException(DomainException):
    """Base exception for transfer-related errors."""

    pass


class TransferNotFoundError(TransferException):
    """Raised when a transfer is not found."""

    def __init__(self, message: str = "Transfer not found"):
        super().__init__(message, code="TRANSFER_NOT_FOUND")


class ApprovalStepNotFoundError(TransferException):
    """Raised when an approval step is not found."""

    def __init__(self, message: str = "Approval step not found"):
        super().__init__(message, code="APPROVAL_STEP_NOT_FOUND")


class TransferNotAllowedError(TransferException):
    """Raised when an actor may not approve, reject or cancel a transfer."""

    def __init__(
        self,
        message: str = "You are not authorized to decide on this transfer",
        code: str = "TRANSFER_NOT_ALLOWED",
    ):
        super().__init__(message, code=code)


class ApprovalStepAlreadyResolvedError(TransferNotAllowedError):
    """Raised when a decision targets a step that is no longer pending."""

    def __init__(self, message: str = "Approval step has already been resolved"):
        super().__init__(message, code="APPROVAL_STEP_ALREADY_RESOLVED")


class TransferExpiredError(TransferNotAllowedError):
    """Raised when a decision targets a transfer whose approvals timed out."""

    def __init__(self, message: str = "Transfer has expired"):
        super().__init__(message, code="TRANSFER_EXPIRED")


class TransferValidationError(TransferException):
    """Raised when a transfer fails eligibility checks."""

    def __init__(self, message: str, errors: Optional[List[str]] = None):
        super().__init__(message, code="TRANSFER_VALIDATION_FAILED")
        self.errors = errors or []

    def has_errors(self) -> bool:
        """Check whether detailed errors were attached."""
        return bool(self.errors)


class DuplicateApprovalStepError(TransferException):
    """Raised when a transfer already has a step of the given type."""

    def __init__(self, message: str = "Approval step already exists for this transfer"):
        super().__init__(message, code="DUPLICATE_APPROVAL_STEP")
