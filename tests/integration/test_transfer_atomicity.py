"""
Integration tests for transfer writes that must be applied together.
"""

import pytest

from core.domain.value_objects import TransferStatus, TransferType
from tests.fakes import User
from transfers.application.commands.approve_transfer import ApproveTransferCommand
from transfers.application.commands.initiate_transfer import InitiateTransferCommand
from transfers.application.handlers.approval_decision_handlers import ApproveTransferHandler
from transfers.application.handlers.initiate_transfer_handler import InitiateTransferHandler
from transfers.domain.services import ApprovalPlanner
from transfers.domain.transfer import Transfer


@pytest.fixture
def db_initiate_handler(
    license_repository,
    transfer_repository,
    approval_step_repository,
    history_repository,
    usage_repository,
    unit_of_work,
    transfer_config,
):
    return InitiateTransferHandler(
        license_repository=license_repository,
        transfer_repository=transfer_repository,
        approval_step_repository=approval_step_repository,
        history_repository=history_repository,
        usage_repository=usage_repository,
        unit_of_work=unit_of_work,
        config=transfer_config,
    )


@pytest.fixture
def db_approve_handler(
    license_repository,
    transfer_repository,
    approval_step_repository,
    history_repository,
    usage_repository,
    unit_of_work,
):
    return ApproveTransferHandler(
        transfer_repository=transfer_repository,
        approval_step_repository=approval_step_repository,
        history_repository=history_repository,
        license_repository=license_repository,
        usage_repository=usage_repository,
        unit_of_work=unit_of_work,
    )


@pytest.mark.django_db(transaction=True)
@pytest.mark.integration
@pytest.mark.asyncio
class TestDjangoUnitOfWork:
    """Tests for DjangoUnitOfWork."""

    async def test_commits_work(
        self, unit_of_work, transfer_repository, approval_step_repository, db_license, alice
    ):
        """Test every write of a successful unit is kept."""
        transfer = Transfer.create(
            license_id=db_license.id,
            from_owner=alice.reference,
            to_owner=User(2).reference,
            transfer_type=TransferType.USER_TO_USER,
            initiated_by=alice.reference,
        )

        async def work():
            stored = await transfer_repository.save(transfer)
            return await ApprovalPlanner.create_planned_steps(stored, approval_step_repository)

        steps = await unit_of_work.run(work)

        assert len(steps) == 2
        assert await transfer_repository.find_by_id(transfer.id) is not None
        assert len(await approval_step_repository.find_by_transfer(transfer.id)) == 2

    async def test_rolls_back_on_error(
        self, unit_of_work, transfer_repository, approval_step_repository, db_license, alice
    ):
        """Test an error discards the writes made before it."""
        transfer = Transfer.create(
            license_id=db_license.id,
            from_owner=alice.reference,
            to_owner=User(2).reference,
            transfer_type=TransferType.USER_TO_USER,
            initiated_by=alice.reference,
        )

        async def work():
            stored = await transfer_repository.save(transfer)
            await ApprovalPlanner.create_planned_steps(stored, approval_step_repository)
            raise RuntimeError("db down")

        with pytest.raises(RuntimeError, match="db down"):
            await unit_of_work.run(work)

        assert await transfer_repository.find_by_id(transfer.id) is None
        assert await approval_step_repository.find_by_transfer(transfer.id) == []


@pytest.mark.django_db(transaction=True)
@pytest.mark.integration
@pytest.mark.asyncio
class TestTransferHandlersAtomicity:
    """Tests for handler writes against the database."""

    async def test_initiate_without_steps_leaves_no_transfer(
        self,
        db_initiate_handler,
        transfer_repository,
        approval_step_repository,
        db_license,
        alice,
        monkeypatch,
    ):
        """Test a failed step write removes the transfer row too."""
        add = approval_step_repository.add
        added = []

        async def add_then_fail(step):
            if added:
                raise RuntimeError("db down")
            added.append(step)
            return await add(step)

        monkeypatch.setattr(approval_step_repository, "add", add_then_fail)

        with pytest.raises(RuntimeError, match="db down"):
            await db_initiate_handler.handle(
                InitiateTransferCommand(license_id=db_license.id, target=User(2), initiator=alice)
            )

        assert len(added) == 1
        assert await transfer_repository.find_by_license(db_license.id) == []
        assert await approval_step_repository.find_by_id(added[0].id) is None

    async def test_failed_execution_keeps_transfer_pending(
        self,
        db_initiate_handler,
        db_approve_handler,
        license_repository,
        transfer_repository,
        approval_step_repository,
        history_repository,
        db_license,
        alice,
        monkeypatch,
    ):
        """Test the completion claim is undone when the reassignment fails."""
        bob = User(2)
        initiated = await db_initiate_handler.handle(
            InitiateTransferCommand(license_id=db_license.id, target=bob, initiator=alice)
        )
        steps = {step.approval_type: step.id for step in initiated.steps}
        await db_approve_handler.handle(ApproveTransferCommand(steps["source"], alice))

        async def broken_save(license):
            raise RuntimeError("db down")

        monkeypatch.setattr(license_repository, "save", broken_save)

        with pytest.raises(RuntimeError, match="db down"):
            await db_approve_handler.handle(ApproveTransferCommand(steps["target"], bob))

        transfer = await transfer_repository.find_by_id(initiated.transfer_id)
        target_step = await approval_step_repository.find_by_id(steps["target"])
        license = await license_repository.find_by_id(db_license.id)
        assert transfer.status == TransferStatus.PENDING
        assert target_step.is_pending
        assert license.owner == alice.reference
        assert await history_repository.find_by_transfer(initiated.transfer_id) == []
