"""
Base Django settings for LicenseTransferService.

These settings are shared across all environments.
Environment-specific overrides are in dev.py, test.py, and prod.py
"""
import os
from pathlib import Path

from .logging import get_logging_config

# Build paths inside the project
BASE_DIR = Path(__file__).resolve().parent.parent.parent

# SECURITY WARNING: keep the secret key used in production secret!
SECRET_KEY = os.environ.get(
    "SECRET_KEY", "django-insecure-7q1#k0s9o@x2t5lq!c8m3r_v6w-license-transfers"
)

# Application definition
INSTALLED_APPS = [
    "django.contrib.contenttypes",
    # Local apps
    "LicenseTransferService.apps.LicenseTransferServiceConfig",
    "core",
    "licenses",
    "usages",
    "transfers",
]

# Database
# https://docs.djangoproject.com/en/4.2/ref/settings/#databases
DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.postgresql",
        "NAME": os.environ.get("DB_NAME", "license_transfers"),
        "USER": os.environ.get("DB_USER", "postgres"),
        "PASSWORD": os.environ.get("DB_PASSWORD", "postgres"),
        "HOST": os.environ.get("DB_HOST", "localhost"),
        "PORT": os.environ.get("DB_PORT", "5432"),
        "OPTIONS": {
            "connect_timeout": 10,
        },
    }
}

# Internationalization
LANGUAGE_CODE = "en-us"
TIME_ZONE = "UTC"
USE_I18N = True
USE_TZ = True

# Default primary key field type
DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"

# License transfer policy
LICENSE_TRANSFERS = {
    "COOLING_PERIOD_DAYS": int(os.environ.get("TRANSFER_COOLING_PERIOD_DAYS", "30")),
    "SUSPICIOUS_PATTERN_REQUIRES_REVIEW": os.environ.get(
        "TRANSFER_SUSPICIOUS_PATTERN_REQUIRES_REVIEW", "true"
    ).lower()
    == "true",
    "TRANSFER_EXPIRES_AFTER_DAYS": 7,
    "FREQUENT_TRANSFER_WINDOW_DAYS": 90,
    "FREQUENT_TRANSFER_THRESHOLD": 3,
}

# Observability
LOGGING = get_logging_config(os.environ.get("ENVIRONMENT", "development"))
