"""
Unit tests for TransferEligibilityValidator.
"""

from dataclasses import replace
from datetime import datetime, timedelta, timezone

import pytest

from core.domain.exceptions import TransferValidationError
from core.domain.value_objects import LicenseStatus, TransferType
from tests.fakes import Organization, ServiceAccount, User
from transfers.conf import TransferSettings
from transfers.domain.services import TransferEligibilityValidator
from transfers.domain.transfer import Transfer


async def seed_completed(repository, license, from_owner, to_owner, days_ago):
    """Store a transfer of the license completed some days ago."""
    transfer = Transfer.create(
        license_id=license.id,
        from_owner=from_owner,
        to_owner=to_owner,
        transfer_type=TransferType.USER_TO_USER,
        initiated_by=from_owner,
    )
    moment = datetime.now(timezone.utc) - timedelta(days=days_ago)
    completed = replace(transfer.mark_completed(), created_at=moment, completed_at=moment)
    repository.transfers[completed.id] = completed
    return completed


@pytest.mark.asyncio
class TestTransferEligibilityValidator:
    """Tests for TransferEligibilityValidator.validate."""

    async def test_valid_transfer(self, sample_license, bob, fake_transfers, transfer_config):
        """Test a plain user to user transfer passes."""
        await TransferEligibilityValidator.validate(
            sample_license, bob, TransferType.USER_TO_USER, fake_transfers, transfer_config
        )

    async def test_license_not_transferable(self, sample_license, bob, fake_transfers, transfer_config):
        """Test suspended licenses are refused."""
        suspended = replace(sample_license, status=LicenseStatus.SUSPENDED)

        with pytest.raises(TransferValidationError) as exc_info:
            await TransferEligibilityValidator.validate(
                suspended, bob, TransferType.USER_TO_USER, fake_transfers, transfer_config
            )

        assert exc_info.value.errors == ["license_not_transferable"]

    async def test_target_already_owner(self, sample_license, alice, fake_transfers, transfer_config):
        """Test transferring to the current owner is refused."""
        with pytest.raises(TransferValidationError) as exc_info:
            await TransferEligibilityValidator.validate(
                sample_license, alice, TransferType.USER_TO_USER, fake_transfers, transfer_config
            )

        assert exc_info.value.errors == ["target_is_owner"]

    async def test_cooling_period(self, sample_license, alice, bob, fake_transfers, transfer_config):
        """Test a recent completed transfer blocks a new one."""
        await seed_completed(
            fake_transfers, sample_license, User(3).reference, alice.reference, days_ago=10
        )

        with pytest.raises(TransferValidationError) as exc_info:
            await TransferEligibilityValidator.validate(
                sample_license, bob, TransferType.USER_TO_USER, fake_transfers, transfer_config
            )

        assert exc_info.value.errors == ["cooling_period"]

    async def test_cooling_period_elapsed(self, sample_license, alice, bob, fake_transfers, transfer_config):
        """Test an old completed transfer does not block."""
        await seed_completed(
            fake_transfers, sample_license, User(3).reference, alice.reference, days_ago=31
        )

        await TransferEligibilityValidator.validate(
            sample_license, bob, TransferType.USER_TO_USER, fake_transfers, transfer_config
        )

    async def test_type_mismatch(self, sample_license, acme, fake_transfers, transfer_config):
        """Test the type must match the owner kinds."""
        with pytest.raises(TransferValidationError) as exc_info:
            await TransferEligibilityValidator.validate(
                sample_license, acme, TransferType.USER_TO_USER, fake_transfers, transfer_config
            )

        assert exc_info.value.errors == ["transfer_type_mismatch"]
        assert "Expected user_to_org" in exc_info.value.message

    async def test_recovery_skips_type_check(self, sample_license, fake_transfers, transfer_config):
        """Test recovery transfers may go to any kind of owner."""
        await TransferEligibilityValidator.validate(
            sample_license,
            ServiceAccount("vault"),
            TransferType.RECOVERY,
            fake_transfers,
            transfer_config,
        )

    async def test_target_not_accepting(self, sample_license, fake_transfers, transfer_config):
        """Test targets may refuse incoming transfers."""
        with pytest.raises(TransferValidationError) as exc_info:
            await TransferEligibilityValidator.validate(
                sample_license,
                Organization(10, accepting=False),
                TransferType.USER_TO_ORG,
                fake_transfers,
                transfer_config,
            )

        assert exc_info.value.errors == ["target_not_accepting"]

    async def test_target_at_license_limit(self, sample_license, fake_transfers, transfer_config):
        """Test targets at their license limit are refused."""
        with pytest.raises(TransferValidationError) as exc_info:
            await TransferEligibilityValidator.validate(
                sample_license,
                Organization(10, at_limit=True),
                TransferType.USER_TO_ORG,
                fake_transfers,
                transfer_config,
            )

        assert exc_info.value.errors == ["target_license_limit"]

    async def test_ping_pong(self, sample_license, alice, bob, fake_transfers):
        """Test sending a license straight back to its previous owner."""
        await seed_completed(
            fake_transfers, sample_license, bob.reference, alice.reference, days_ago=40
        )

        with pytest.raises(TransferValidationError) as exc_info:
            await TransferEligibilityValidator.validate(
                sample_license, bob, TransferType.USER_TO_USER, fake_transfers, TransferSettings()
            )

        assert exc_info.value.errors == ["ping_pong_transfer"]

    async def test_frequent_transfers(self, sample_license, alice, bob, fake_transfers):
        """Test more than three transfers in the window are suspicious."""
        config = TransferSettings(cooling_period_days=0)
        for days_ago in (5, 10, 20, 30):
            await seed_completed(
                fake_transfers, sample_license, User(3).reference, alice.reference, days_ago
            )

        with pytest.raises(TransferValidationError) as exc_info:
            await TransferEligibilityValidator.validate(
                sample_license, bob, TransferType.USER_TO_USER, fake_transfers, config
            )

        assert "frequent_transfers" in exc_info.value.errors

    async def test_suspicious_pattern_without_review(self, sample_license, alice, bob, fake_transfers):
        """Test suspicious patterns only warn when review is off."""
        config = TransferSettings(suspicious_pattern_requires_review=False)
        await seed_completed(
            fake_transfers, sample_license, bob.reference, alice.reference, days_ago=40
        )

        await TransferEligibilityValidator.validate(
            sample_license, bob, TransferType.USER_TO_USER, fake_transfers, config
        )
