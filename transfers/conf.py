"""
Transfer policy configuration.

Values come from ``settings.LICENSE_TRANSFERS``; anything missing falls
back to the defaults below.
"""
from dataclasses import dataclass

from django.conf import settings

DEFAULTS = {
    "COOLING_PERIOD_DAYS": 30,
    "SUSPICIOUS_PATTERN_REQUIRES_REVIEW": True,
    "TRANSFER_EXPIRES_AFTER_DAYS": 7,
    "FREQUENT_TRANSFER_WINDOW_DAYS": 90,
    "FREQUENT_TRANSFER_THRESHOLD": 3,
}


@dataclass(frozen=True)
class TransferSettings:
    """Tunable transfer policy."""

    cooling_period_days: int = DEFAULTS["COOLING_PERIOD_DAYS"]
    suspicious_pattern_requires_review: bool = DEFAULTS["SUSPICIOUS_PATTERN_REQUIRES_REVIEW"]
    transfer_expires_after_days: int = DEFAULTS["TRANSFER_EXPIRES_AFTER_DAYS"]
    frequent_transfer_window_days: int = DEFAULTS["FREQUENT_TRANSFER_WINDOW_DAYS"]
    frequent_transfer_threshold: int = DEFAULTS["FREQUENT_TRANSFER_THRESHOLD"]


def get_transfer_settings() -> TransferSettings:
    """
    Read the transfer policy from Django settings.

    Returns:
        TransferSettings instance
    """
    configured = {**DEFAULTS, **getattr(settings, "LICENSE_TRANSFERS", {})}
    return TransferSettings(
        cooling_period_days=int(configured["COOLING_PERIOD_DAYS"]),
        suspicious_pattern_requires_review=bool(configured["SUSPICIOUS_PATTERN_REQUIRES_REVIEW"]),
        transfer_expires_after_days=int(configured["TRANSFER_EXPIRES_AFTER_DAYS"]),
        frequent_transfer_window_days=int(configured["FREQUENT_TRANSFER_WINDOW_DAYS"]),
        frequent_transfer_threshold=int(configured["FREQUENT_TRANSFER_THRESHOLD"]),
    )
