"""
Unit tests for the in-memory event bus and audit handler.
"""

import logging
import uuid

import pytest

from core.domain.events import EventHandler
from core.domain.value_objects import ApprovalType, OwnerRef
from core.infrastructure.event_handlers import AuditLogEventHandler
from core.infrastructure.events import InMemoryEventBus
from tests.fakes import RecordingEventHandler
from transfers.domain.events import LicenseTransferApproved, LicenseTransferCancelled

ALICE = OwnerRef.of("accounts.User", 1)


def approved_event():
    return LicenseTransferApproved(
        transfer_id=uuid.uuid4(),
        license_id=uuid.uuid4(),
        actor=ALICE,
        approval_type=ApprovalType.SOURCE,
    )


class FailingHandler(EventHandler):
    async def handle(self, event):
        raise RuntimeError("boom")


@pytest.mark.asyncio
class TestInMemoryEventBus:
    """Tests for InMemoryEventBus."""

    async def test_publish_to_subscribers(self):
        """Test events reach handlers of their type only."""
        bus = InMemoryEventBus()
        recorder = RecordingEventHandler()
        bus.subscribe(LicenseTransferApproved, recorder)

        event = approved_event()
        await bus.publish(event)
        await bus.publish(
            LicenseTransferCancelled(transfer_id=uuid.uuid4(), license_id=uuid.uuid4(), actor=ALICE)
        )

        assert recorder.events == [event]

    async def test_subscribe_twice(self):
        """Test a handler is only called once per event."""
        bus = InMemoryEventBus()
        recorder = RecordingEventHandler()
        bus.subscribe(LicenseTransferApproved, recorder)
        bus.subscribe(LicenseTransferApproved, recorder)

        await bus.publish(approved_event())

        assert len(recorder.events) == 1

    async def test_failing_handler_does_not_block_others(self):
        """Test one failing handler does not stop the publisher."""
        bus = InMemoryEventBus()
        recorder = RecordingEventHandler()
        bus.subscribe(LicenseTransferApproved, FailingHandler())
        bus.subscribe(LicenseTransferApproved, recorder)

        await bus.publish(approved_event())

        assert len(recorder.events) == 1

    async def test_audit_log_names_actor(self, caplog):
        """Test the audit line carries the actor."""
        event = approved_event()

        with caplog.at_level(logging.INFO, logger="audit"):
            await AuditLogEventHandler().handle(event)

        record = caplog.records[-1]
        assert "accounts.User:1" in record.getMessage()
        assert record.actor == "accounts.User:1"
        assert record.data["approval_type"] == "source"


class TestTransferEvents:
    """Tests for transfer event payloads."""

    def test_to_dict(self):
        """Test serialization of an event."""
        event = approved_event()

        data = event.to_dict()

        assert data["event_type"] == "LicenseTransferApproved"
        assert data["aggregate_id"] == str(event.transfer_id)
        assert data["data"]["actor"] == "accounts.User:1"
        assert data["data"]["approval_type"] == "source"
