"""
Test settings for LicenseTransferService.
"""

import os
import urllib.parse

from .base import *  # noqa: F403, F401

DEBUG = False

# Spans stay in-process during tests.
os.environ.setdefault("OTEL_SDK_DISABLED", "true")

# Use PostgreSQL in CI (from DATABASE_URL), SQLite in-memory for local tests
DATABASE_URL = os.environ.get("DATABASE_URL")
if DATABASE_URL and DATABASE_URL.startswith("postgresql"):
    parsed = urllib.parse.urlparse(DATABASE_URL)
    db_name = parsed.path[1:] if parsed.path.startswith("/") else parsed.path
    DATABASES = {
        "default": {
            "ENGINE": "django.db.backends.postgresql",
            "NAME": db_name,
            "USER": parsed.username or "postgres",
            "PASSWORD": parsed.password or "",
            "HOST": parsed.hostname or "localhost",
            "PORT": parsed.port or 5432,
            "TEST": {
                "NAME": db_name + "_test",
            },
        }
    }
else:
    DATABASES = {
        "default": {
            "ENGINE": "django.db.backends.sqlite3",
            "NAME": ":memory:",
        }
    }

# No migration modules: tables are created straight from the models
MIGRATION_MODULES = {}

# Deterministic transfer policy for tests
LICENSE_TRANSFERS = {
    "COOLING_PERIOD_DAYS": 30,
    "SUSPICIOUS_PATTERN_REQUIRES_REVIEW": True,
    "TRANSFER_EXPIRES_AFTER_DAYS": 7,
    "FREQUENT_TRANSFER_WINDOW_DAYS": 90,
    "FREQUENT_TRANSFER_THRESHOLD": 3,
}

# Disable logging during tests
LOGGING_CONFIG = None
