"""
Transfer execution service.

Moves an approved transfer's license to its new owner.
"""
import logging
from typing import Optional

from core.domain.exceptions import LicenseNotFoundError
from core.domain.value_objects import OwnerRef
from core.infrastructure.events import event_bus
from core.instrumentation import get_tracer
from core.metrics import (
    transfer_execution_duration_seconds,
    transfers_completed_total,
    usages_revoked_total,
)
from licenses.ports.license_repository import LicenseRepository
from transfers.domain.events import LicenseTransferCompleted
from transfers.domain.history import TransferHistory
from transfers.domain.transfer import Transfer
from transfers.ports.transfer_repository import (
    TransferHistoryRepository,
    TransferRepository,
)
from usages.domain.services import UsageLedger
from usages.ports.usage_repository import UsageRepository

logger = logging.getLogger(__name__)
tracer = get_tracer(__name__)


class TransferExecutor:
    """Application service executing approved transfers."""

    def __init__(
        self,
        transfer_repository: TransferRepository,
        history_repository: TransferHistoryRepository,
        license_repository: LicenseRepository,
        usage_repository: UsageRepository,
    ):
        """Initialize service with repositories."""
        self.transfer_repository = transfer_repository
        self.history_repository = history_repository
        self.license_repository = license_repository
        self.usage_repository = usage_repository

    async def execute(self, transfer: Transfer, actor: OwnerRef) -> Optional[TransferHistory]:
        """
        Execute an approved transfer.

        The transfer is claimed first; when another caller already
        completed it nothing else happens. The claim, the usage release,
        the reassignment and the history record must share one unit of
        work so that a failure in any of them undoes the claim too.

        Args:
            transfer: Approved transfer
            actor: Actor whose decision triggered the execution

        Returns:
            The TransferHistory record, or None if the transfer was
            already claimed

        Raises:
            LicenseNotFoundError: If the license no longer exists
        """
        timer = transfer_execution_duration_seconds.time()
        with timer, tracer.start_as_current_span("execute_transfer") as span:
            span.set_attribute("transfer.id", str(transfer.id))
            span.set_attribute("license.id", str(transfer.license_id))

            license = await self.license_repository.find_by_id(transfer.license_id)
            if not license:
                raise LicenseNotFoundError(f"License {transfer.license_id} not found")

            completed = await self.transfer_repository.claim_for_completion(transfer)
            if not completed:
                logger.info("Transfer %s was already claimed, skipping execution", transfer.id)
                span.set_attribute("transfer.claimed", False)
                return None
            span.set_attribute("transfer.claimed", True)

            active = await UsageLedger.count_active(license.id, self.usage_repository)
            previous_snapshot = license.snapshot(active)

            revoked = await UsageLedger.release_for_transfer(
                license.id, transfer.preserve_usages, self.usage_repository
            )

            reassigned = await self.license_repository.save(license.reassign(transfer.to_owner))
            new_snapshot = reassigned.snapshot(active - revoked)
            span.set_attribute("usages.revoked", revoked)

            return await self.history_repository.add(
                TransferHistory.record(
                    transfer_id=transfer.id,
                    license_id=license.id,
                    previous_owner=license.owner,
                    new_owner=reassigned.owner,
                    previous_snapshot=previous_snapshot,
                    new_snapshot=new_snapshot,
                    transfer_type=transfer.transfer_type,
                    executed_by=actor,
                    usages_preserved=transfer.preserve_usages,
                )
            )

    async def announce(self, history: TransferHistory) -> None:
        """
        Record metrics and publish the completion of an executed transfer.

        Called once the unit of work that executed it has been committed.

        Args:
            history: Record returned by execute
        """
        transfers_completed_total.labels(transfer_type=history.transfer_type.value).inc()
        usages_revoked_total.inc(history.usages_revoked_count)

        logger.info(
            "Transfer %s completed: license %s moved from %s to %s",
            history.transfer_id,
            history.license_id,
            history.previous_owner,
            history.new_owner,
        )

        await event_bus.publish(
            LicenseTransferCompleted(
                transfer_id=history.transfer_id,
                license_id=history.license_id,
                actor=history.executed_by,
                new_owner=history.new_owner,
                usages_revoked=history.usages_revoked_count,
            )
        )
