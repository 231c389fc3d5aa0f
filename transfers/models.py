"""
Django models for the transfers app.
"""
from transfers.infrastructure.models import (  # noqa: F401
    LicenseTransfer,
    TransferApprovalStep,
    TransferHistoryRecord,
)
