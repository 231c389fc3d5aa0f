"""
InitiateTransferHandler.

Handler for initiating a license transfer.
"""
import logging
from typing import Optional

from core.domain.exceptions import LicenseNotFoundError, TransferValidationError
from core.domain.value_objects import TransferStatus, TransferType
from core.infrastructure.events import event_bus
from core.instrumentation import Status, StatusCode, get_tracer
from core.metrics import transfers_initiated_total, transfers_rejected_at_validation_total
from licenses.ports.license_repository import LicenseRepository
from transfers.application.commands.initiate_transfer import InitiateTransferCommand
from transfers.application.dto.transfer_dto import TransferStatusDTO, to_status_dto
from transfers.application.services.transfer_executor import TransferExecutor
from transfers.conf import TransferSettings, get_transfer_settings
from transfers.domain.events import LicenseTransferInitiated
from transfers.domain.services import (
    ApprovalAggregator,
    ApprovalPlanner,
    TransferEligibilityValidator,
)
from transfers.domain.transfer import Transfer
from transfers.ports.transfer_repository import (
    ApprovalStepRepository,
    TransferHistoryRepository,
    TransferRepository,
)
from transfers.ports.unit_of_work import UnitOfWork
from usages.ports.usage_repository import UsageRepository

logger = logging.getLogger(__name__)
tracer = get_tracer(__name__)


class InitiateTransferHandler:
    """Handler for InitiateTransferCommand."""

    def __init__(
        self,
        license_repository: LicenseRepository,
        transfer_repository: TransferRepository,
        approval_step_repository: ApprovalStepRepository,
        history_repository: TransferHistoryRepository,
        usage_repository: UsageRepository,
        unit_of_work: UnitOfWork,
        config: Optional[TransferSettings] = None,
    ):
        """Initialize handler with repositories."""
        self.license_repository = license_repository
        self.transfer_repository = transfer_repository
        self.approval_step_repository = approval_step_repository
        self.unit_of_work = unit_of_work
        self.config = config
        self.executor = TransferExecutor(
            transfer_repository=transfer_repository,
            history_repository=history_repository,
            license_repository=license_repository,
            usage_repository=usage_repository,
        )

    async def handle(self, command: InitiateTransferCommand) -> TransferStatusDTO:
        """
        Handle initiate transfer command.

        Validates eligibility, then stores the transfer together with its
        planned approval steps in one unit of work. When nothing needs
        approving the transfer is executed in that same unit.

        Args:
            command: InitiateTransferCommand

        Returns:
            TransferStatusDTO of the new transfer

        Raises:
            LicenseNotFoundError: If license not found
            TransferValidationError: If the transfer is not allowed
        """
        with tracer.start_as_current_span("initiate_transfer") as span:
            span.set_attribute("license.id", str(command.license_id))
            span.set_attribute("target", str(command.target.reference))

            license = await self.license_repository.find_by_id(command.license_id)
            if not license:
                span.set_status(Status(StatusCode.ERROR, "License not found"))
                raise LicenseNotFoundError(f"License {command.license_id} not found")

            transfer_type = command.transfer_type or TransferType.for_owner_kinds(
                license.owner.kind, command.target.reference.kind
            )
            if transfer_type is None:
                span.set_status(Status(StatusCode.ERROR, "Unknown transfer type"))
                raise TransferValidationError(
                    f"Cannot infer a transfer type from {license.owner.kind} "
                    f"to {command.target.reference.kind}",
                    ["transfer_type_unknown"],
                )
            span.set_attribute("transfer.type", transfer_type.value)

            config = self.config or get_transfer_settings()

            try:
                await TransferEligibilityValidator.validate(
                    license=license,
                    target=command.target,
                    transfer_type=transfer_type,
                    repository=self.transfer_repository,
                    config=config,
                )
            except TransferValidationError as e:
                for error in e.errors or ["unspecified"]:
                    transfers_rejected_at_validation_total.labels(error=error).inc()
                span.set_attribute("error.details", ",".join(e.errors))
                span.set_status(Status(StatusCode.ERROR, e.message))
                logger.warning(
                    "Transfer of license %s to %s refused: %s",
                    license.id,
                    command.target.reference,
                    e.errors,
                )
                raise

            transfer = Transfer.create(
                license_id=license.id,
                from_owner=license.owner,
                to_owner=command.target.reference,
                transfer_type=transfer_type,
                initiated_by=command.initiator.reference,
                reason=command.reason,
                requires_source_approval=command.requires_source_approval,
                requires_target_approval=command.requires_target_approval,
                requires_admin_approval=command.requires_admin_approval,
                preserve_usages=command.preserve_usages,
                expires_after_days=config.transfer_expires_after_days,
            )

            async def persist():
                stored = await self.transfer_repository.save(transfer)
                steps = await ApprovalPlanner.create_planned_steps(
                    stored, self.approval_step_repository
                )
                history = None
                if ApprovalAggregator.transfer_state(stored, steps) == TransferStatus.APPROVED:
                    history = await self.executor.execute(stored, command.initiator.reference)
                return stored, steps, history

            transfer, steps, history = await self.unit_of_work.run(persist)

            span.set_attribute("transfer.id", str(transfer.id))
            span.set_attribute("approvals.count", len(steps))
            transfers_initiated_total.labels(transfer_type=transfer_type.value).inc()
            logger.info(
                "Transfer %s of license %s initiated by %s (%d approval step(s))",
                transfer.id,
                license.id,
                command.initiator.reference,
                len(steps),
            )

            await event_bus.publish(
                LicenseTransferInitiated(
                    transfer_id=transfer.id,
                    license_id=license.id,
                    actor=command.initiator.reference,
                    from_owner=transfer.from_owner,
                    to_owner=transfer.to_owner,
                    required_approvals=[step.approval_type for step in steps],
                )
            )

            if history is not None:
                await self.executor.announce(history)
                transfer = await self.transfer_repository.find_by_id(transfer.id)

            span.set_status(Status(StatusCode.OK))
            return to_status_dto(transfer, steps)
