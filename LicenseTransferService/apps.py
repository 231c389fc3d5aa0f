"""
App configuration for License Transfer Service.
"""
import logging
import sys

from django.apps import AppConfig

logger = logging.getLogger(__name__)

SKIP_SETUP_COMMANDS = ("migrate", "makemigrations", "collectstatic", "check")


class LicenseTransferServiceConfig(AppConfig):
    """App configuration for LicenseTransferService."""

    name = "LicenseTransferService"
    verbose_name = "License Transfer Service"

    def ready(self):
        """Called when Django starts."""
        if len(sys.argv) > 1 and sys.argv[1] in SKIP_SETUP_COMMANDS:
            return

        if getattr(self, "_initialized", False):
            return

        from core.infrastructure.event_handlers import register_event_handlers
        from core.instrumentation import setup_opentelemetry

        logger.info("Setting up observability...")
        setup_opentelemetry()
        register_event_handlers()
        self._initialized = True
        logger.info("Observability setup complete")
