"""
Development settings for LicenseTransferService.
"""

import os

from .base import *  # noqa: F403, F401

DEBUG = True

ALLOWED_HOSTS = ["localhost", "127.0.0.1", "0.0.0.0"]

# Override with environment variable DB_ENGINE=sqlite for SQLite
if os.environ.get("DB_ENGINE") == "sqlite":
    DATABASES = {
        "default": {
            "ENGINE": "django.db.backends.sqlite3",
            "NAME": BASE_DIR / "db.sqlite3",  # noqa: F405
        }
    }

# Shorter cooling period to try transfers out locally
LICENSE_TRANSFERS["COOLING_PERIOD_DAYS"] = int(  # noqa: F405
    os.environ.get("TRANSFER_COOLING_PERIOD_DAYS", "0")
)
