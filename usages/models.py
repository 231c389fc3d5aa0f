"""
Django models for the usages app.
"""
from usages.infrastructure.models import LicenseUsage  # noqa: F401
