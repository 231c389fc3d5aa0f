"""
Pytest configuration and shared fixtures.
"""

import asyncio
from datetime import timedelta

import pytest
from django.utils import timezone

from core.infrastructure.event_handlers import TRANSFER_EVENTS
from core.infrastructure.events import event_bus
from licenses.domain.license import License
from licenses.infrastructure.repositories.django_license_repository import DjangoLicenseRepository
from tests.fakes import (
    InMemoryApprovalStepRepository,
    InMemoryLicenseRepository,
    InMemoryTransferHistoryRepository,
    InMemoryTransferRepository,
    InMemoryUnitOfWork,
    InMemoryUsageRepository,
    Organization,
    RecordingEventHandler,
    User,
)
from transfers.application.handlers.approval_decision_handlers import (
    ApproveTransferHandler,
    RejectTransferHandler,
)
from transfers.application.handlers.cancel_transfer_handler import CancelTransferHandler
from transfers.application.handlers.get_transfer_status_handler import GetTransferStatusHandler
from transfers.application.handlers.initiate_transfer_handler import InitiateTransferHandler
from transfers.conf import TransferSettings
from transfers.infrastructure.repositories.django_approval_step_repository import (
    DjangoApprovalStepRepository,
)
from transfers.infrastructure.repositories.django_transfer_history_repository import (
    DjangoTransferHistoryRepository,
)
from transfers.infrastructure.repositories.django_transfer_repository import (
    DjangoTransferRepository,
)
from transfers.infrastructure.unit_of_work import DjangoUnitOfWork
from usages.domain.usage import LicenseUsage
from usages.infrastructure.repositories.django_usage_repository import DjangoUsageRepository


# Django repositories


@pytest.fixture
def license_repository():
    """Fixture for LicenseRepository."""
    return DjangoLicenseRepository()


@pytest.fixture
def usage_repository():
    """Fixture for UsageRepository."""
    return DjangoUsageRepository()


@pytest.fixture
def transfer_repository():
    """Fixture for TransferRepository."""
    return DjangoTransferRepository()


@pytest.fixture
def approval_step_repository():
    """Fixture for ApprovalStepRepository."""
    return DjangoApprovalStepRepository()


@pytest.fixture
def history_repository():
    """Fixture for TransferHistoryRepository."""
    return DjangoTransferHistoryRepository()


@pytest.fixture
def unit_of_work():
    """Fixture for UnitOfWork backed by a database transaction."""
    return DjangoUnitOfWork()


# In-memory repositories


@pytest.fixture
def fake_licenses():
    return InMemoryLicenseRepository()


@pytest.fixture
def fake_usages():
    return InMemoryUsageRepository()


@pytest.fixture
def fake_transfers():
    return InMemoryTransferRepository()


@pytest.fixture
def fake_steps():
    return InMemoryApprovalStepRepository()


@pytest.fixture
def fake_history():
    return InMemoryTransferHistoryRepository()


@pytest.fixture
def fake_unit_of_work(fake_licenses, fake_usages, fake_transfers, fake_steps, fake_history):
    return InMemoryUnitOfWork(fake_licenses, fake_usages, fake_transfers, fake_steps, fake_history)


# Domain samples


@pytest.fixture
def transfer_config():
    """Default transfer policy."""
    return TransferSettings()


@pytest.fixture
def alice():
    """Fixture for the current license holder."""
    return User(1)


@pytest.fixture
def bob():
    """Fixture for another user."""
    return User(2)


@pytest.fixture
def admin():
    """Fixture for a user allowed to approve any transfer."""
    return User(99, permissions={"approve-license-transfers"})


@pytest.fixture
def acme():
    """Fixture for an organization accepting transfers."""
    return Organization(10)


@pytest.fixture
def sample_license(alice):
    """Fixture for a License held by alice."""
    license = License.create(
        owner=alice.reference,
        seat_limit=5,
        expires_at=timezone.now() + timedelta(days=365),
    )
    alice.licenses.add(license.id)
    return license


@pytest.fixture
def db_license(transactional_db, license_repository, alice):
    """Fixture for a License saved in database."""

    async def save_license():
        license = License.create(
            owner=alice.reference,
            seat_limit=5,
            expires_at=timezone.now() + timedelta(days=365),
        )
        return await license_repository.save(license)

    license = asyncio.run(save_license())
    alice.licenses.add(license.id)
    return license


@pytest.fixture
def recorded_events():
    """Subscribe a recording handler to all transfer events."""
    recorder = RecordingEventHandler()
    for event_type in TRANSFER_EVENTS:
        event_bus.subscribe(event_type, recorder)
    yield recorder
    for event_type in TRANSFER_EVENTS:
        event_bus.unsubscribe(event_type, recorder)


# Handlers wired to in-memory repositories


@pytest.fixture
def stored_license(sample_license, fake_licenses):
    """Fixture for the sample license, stored in memory."""
    fake_licenses.licenses[sample_license.id] = sample_license
    return sample_license


@pytest.fixture
def active_usages(stored_license, fake_usages):
    """Fixture for two devices using the stored license."""
    usages = [LicenseUsage.register(stored_license.id, f"device-{i}") for i in range(2)]
    for usage in usages:
        fake_usages.usages[usage.id] = usage
    return usages


@pytest.fixture
def initiate_handler(
    fake_licenses,
    fake_transfers,
    fake_steps,
    fake_history,
    fake_usages,
    fake_unit_of_work,
    transfer_config,
):
    return InitiateTransferHandler(
        license_repository=fake_licenses,
        transfer_repository=fake_transfers,
        approval_step_repository=fake_steps,
        history_repository=fake_history,
        usage_repository=fake_usages,
        unit_of_work=fake_unit_of_work,
        config=transfer_config,
    )


@pytest.fixture
def approve_handler(
    fake_licenses, fake_transfers, fake_steps, fake_history, fake_usages, fake_unit_of_work
):
    return ApproveTransferHandler(
        transfer_repository=fake_transfers,
        approval_step_repository=fake_steps,
        history_repository=fake_history,
        license_repository=fake_licenses,
        usage_repository=fake_usages,
        unit_of_work=fake_unit_of_work,
    )


@pytest.fixture
def reject_handler(fake_transfers, fake_steps, fake_unit_of_work):
    return RejectTransferHandler(fake_transfers, fake_steps, fake_unit_of_work)


@pytest.fixture
def cancel_handler(fake_transfers, fake_steps):
    return CancelTransferHandler(fake_transfers, fake_steps)


@pytest.fixture
def status_handler(fake_transfers, fake_steps):
    return GetTransferStatusHandler(fake_transfers, fake_steps)
