"""
Event handlers for domain events.

These handlers process transfer events for side effects such as the
audit trail.
"""

import logging

from core.domain.events import DomainEvent, EventHandler
from transfers.domain.events import (
    LicenseTransferApproved,
    LicenseTransferCancelled,
    LicenseTransferCompleted,
    LicenseTransferInitiated,
    LicenseTransferRejected,
)

logger = logging.getLogger(__name__)
audit_logger = logging.getLogger("audit")

TRANSFER_EVENTS = (
    LicenseTransferInitiated,
    LicenseTransferApproved,
    LicenseTransferRejected,
    LicenseTransferCancelled,
    LicenseTransferCompleted,
)


class AuditLogEventHandler(EventHandler):
    """
    Event handler for audit logging.

    Writes one structured line per event, naming the actor that caused it.
    """

    async def handle(self, event: DomainEvent) -> None:
        """
        Handle domain event for audit logging.

        Args:
            event: Domain event to log
        """
        data = event.payload()
        audit_logger.info(
            "Audit log: %s - %s by %s",
            event.event_type,
            event.aggregate_id,
            data.get("actor", "unknown"),
            extra={
                "event_id": str(event.event_id),
                "event_type": event.event_type,
                "aggregate_id": event.aggregate_id,
                "occurred_at": event.occurred_at.isoformat(),
                "actor": data.get("actor"),
                "data": data,
            },
        )


audit_handler = AuditLogEventHandler()


def register_event_handlers():
    """Register all event handlers with the event bus."""
    from core.infrastructure.events import event_bus

    for event_type in TRANSFER_EVENTS:
        event_bus.subscribe(event_type, audit_handler)

    logger.info("Event handlers registered")
    return audit_handler
