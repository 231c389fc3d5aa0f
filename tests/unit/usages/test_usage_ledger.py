"""
Unit tests for UsageLedger domain service.
"""

import uuid

import pytest

from usages.domain.services import UsageLedger
from usages.domain.usage import LicenseUsage


@pytest.mark.asyncio
class TestUsageLedger:
    """Tests for UsageLedger service."""

    async def test_count_active(self, fake_usages):
        """Test counting active usages."""
        license_id = uuid.uuid4()
        await fake_usages.save(LicenseUsage.register(license_id, "device-1"))
        await fake_usages.save(LicenseUsage.register(license_id, "device-2").revoke())
        await fake_usages.save(LicenseUsage.register(uuid.uuid4(), "device-3"))

        assert await UsageLedger.count_active(license_id, fake_usages) == 1

    async def test_release_revokes_usages(self, fake_usages):
        """Test usages are revoked when not preserved."""
        license_id = uuid.uuid4()
        for i in range(3):
            await fake_usages.save(LicenseUsage.register(license_id, f"device-{i}"))

        revoked = await UsageLedger.release_for_transfer(license_id, False, fake_usages)

        assert revoked == 3
        assert await UsageLedger.count_active(license_id, fake_usages) == 0

    async def test_release_preserves_usages(self, fake_usages):
        """Test nothing changes when usages are preserved."""
        license_id = uuid.uuid4()
        await fake_usages.save(LicenseUsage.register(license_id, "device-1"))

        revoked = await UsageLedger.release_for_transfer(license_id, True, fake_usages)

        assert revoked == 0
        assert await UsageLedger.count_active(license_id, fake_usages) == 1


class TestLicenseUsage:
    """Tests for LicenseUsage entity."""

    def test_empty_fingerprint(self):
        """Test fingerprints are required."""
        with pytest.raises(ValueError, match="fingerprint"):
            LicenseUsage.register(uuid.uuid4(), " ")

    def test_revoke_is_idempotent(self):
        """Test revoking twice keeps the first timestamp."""
        revoked = LicenseUsage.register(uuid.uuid4(), "device").revoke()

        assert revoked.revoke() is revoked
        assert not revoked.is_active
