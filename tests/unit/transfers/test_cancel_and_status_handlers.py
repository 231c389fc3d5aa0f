"""
Unit tests for CancelTransferHandler and GetTransferStatusHandler.
"""

import uuid

import pytest

from core.domain.exceptions import TransferNotAllowedError, TransferNotFoundError
from tests.fakes import User
from transfers.application.commands.approve_transfer import ApproveTransferCommand
from transfers.application.commands.cancel_transfer import CancelTransferCommand
from transfers.application.commands.initiate_transfer import InitiateTransferCommand
from transfers.application.queries.get_transfer_status import GetTransferStatusQuery
from transfers.domain.events import LicenseTransferCancelled


@pytest.fixture
def transfer_command(stored_license, alice, bob):
    """Fixture for a transfer request from alice to bob."""
    return InitiateTransferCommand(license_id=stored_license.id, target=bob, initiator=alice)


@pytest.mark.asyncio
class TestCancelTransferHandler:
    """Tests for CancelTransferHandler."""

    async def test_owner_cancels(
        self, initiate_handler, cancel_handler, transfer_command, alice, recorded_events
    ):
        """Test the current owner withdraws a pending transfer."""
        initiated = await initiate_handler.handle(transfer_command)

        result = await cancel_handler.handle(CancelTransferCommand(initiated.transfer_id, alice))

        assert result.status == "cancelled"
        assert result.cancelled_at is not None
        cancelled = recorded_events.of_type(LicenseTransferCancelled)
        assert cancelled[0].actor == alice.reference

    async def test_target_cannot_cancel(
        self, initiate_handler, cancel_handler, transfer_command, bob
    ):
        """Test only the initiator or the owner may cancel."""
        initiated = await initiate_handler.handle(transfer_command)

        with pytest.raises(TransferNotAllowedError, match="not authorized"):
            await cancel_handler.handle(CancelTransferCommand(initiated.transfer_id, bob))

    async def test_initiator_may_cancel(
        self, initiate_handler, cancel_handler, stored_license, admin
    ):
        """Test a transfer started by someone else can be cancelled by its initiator."""
        command = InitiateTransferCommand(
            license_id=stored_license.id,
            target=User(5),
            initiator=admin,
        )
        initiated = await initiate_handler.handle(command)

        result = await cancel_handler.handle(CancelTransferCommand(initiated.transfer_id, admin))

        assert result.status == "cancelled"

    async def test_cancel_twice(self, initiate_handler, cancel_handler, transfer_command, alice):
        """Test a cancelled transfer stays cancelled."""
        initiated = await initiate_handler.handle(transfer_command)
        await cancel_handler.handle(CancelTransferCommand(initiated.transfer_id, alice))

        with pytest.raises(TransferNotAllowedError, match="cancelled"):
            await cancel_handler.handle(CancelTransferCommand(initiated.transfer_id, alice))

    async def test_no_approvals_after_cancel(
        self, initiate_handler, cancel_handler, approve_handler, transfer_command, alice
    ):
        """Test steps of a cancelled transfer cannot be approved."""
        initiated = await initiate_handler.handle(transfer_command)
        source = next(step for step in initiated.steps if step.approval_type == "source")
        await cancel_handler.handle(CancelTransferCommand(initiated.transfer_id, alice))

        with pytest.raises(TransferNotAllowedError, match="cancelled"):
            await approve_handler.handle(ApproveTransferCommand(source.id, alice))

    async def test_transfer_not_found(self, cancel_handler, alice):
        """Test error when transfer does not exist."""
        with pytest.raises(TransferNotFoundError):
            await cancel_handler.handle(CancelTransferCommand(uuid.uuid4(), alice))


@pytest.mark.asyncio
class TestGetTransferStatusHandler:
    """Tests for GetTransferStatusHandler."""

    async def test_progress(
        self, initiate_handler, approve_handler, status_handler, transfer_command, alice
    ):
        """Test the status reflects approved steps."""
        initiated = await initiate_handler.handle(transfer_command)
        source = next(step for step in initiated.steps if step.approval_type == "source")
        await approve_handler.handle(ApproveTransferCommand(source.id, alice))

        status = await status_handler.handle(GetTransferStatusQuery(initiated.transfer_id))

        assert status.status == "pending"
        assert status.completion_percentage == 50
        assert not status.is_final
        outcomes = {step.approval_type: step.outcome for step in status.steps}
        assert outcomes == {"source": "approved", "target": "pending"}

    async def test_not_found(self, status_handler):
        """Test error when transfer does not exist."""
        with pytest.raises(TransferNotFoundError):
            await status_handler.handle(GetTransferStatusQuery(uuid.uuid4()))

