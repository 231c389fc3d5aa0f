"""
Approval decision handlers.

Handlers for approve and reject commands. Both follow the same gates:
the transfer must still be pending, the step must still be pending and
the actor must be allowed to decide on it. The step itself is stored
with a conditional write so that, of two concurrent decisions, exactly
one is applied. Storing the decision and anything it triggers happens
in one unit of work.
"""
import logging
from typing import List, Optional, Tuple

from core.domain.actors import TransferActor
from core.domain.exceptions import (
    ApprovalStepAlreadyResolvedError,
    ApprovalStepNotFoundError,
    TransferExpiredError,
    TransferNotAllowedError,
    TransferNotFoundError,
)
from core.domain.value_objects import TransferStatus
from core.infrastructure.events import event_bus
from core.instrumentation import Status, StatusCode, get_tracer
from core.metrics import transfer_decisions_refused_total, transfer_decisions_total
from licenses.ports.license_repository import LicenseRepository
from transfers.application.commands.approve_transfer import ApproveTransferCommand
from transfers.application.commands.reject_transfer import RejectTransferCommand
from transfers.application.dto.transfer_dto import TransferDecisionDTO, to_step_dto
from transfers.application.services.transfer_executor import TransferExecutor
from transfers.domain.approval import ApprovalStep
from transfers.domain.events import LicenseTransferApproved, LicenseTransferRejected
from transfers.domain.services import ApprovalAggregator, ApprovalPolicy
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


class _ApprovalDecisionHandler:
    """Shared loading and gating of approval decisions."""

    def __init__(
        self,
        transfer_repository: TransferRepository,
        approval_step_repository: ApprovalStepRepository,
        unit_of_work: UnitOfWork,
    ):
        """Initialize handler with repositories."""
        self.transfer_repository = transfer_repository
        self.approval_step_repository = approval_step_repository
        self.unit_of_work = unit_of_work

    async def _load_open_step(
        self, step_id, actor: TransferActor, verb: str
    ) -> Tuple[ApprovalStep, Transfer]:
        """
        Load a step and its transfer and check the decision may be taken.

        Raises:
            ApprovalStepNotFoundError: If the step does not exist
            TransferNotFoundError: If the transfer does not exist
            TransferExpiredError: If the transfer timed out
            TransferNotAllowedError: If the transfer is no longer pending or
                the actor may not decide on the step
            ApprovalStepAlreadyResolvedError: If the step was already decided
        """
        step = await self.approval_step_repository.find_by_id(step_id)
        if not step:
            raise ApprovalStepNotFoundError(f"Approval step {step_id} not found")

        transfer = await self.transfer_repository.find_by_id(step.transfer_id)
        if not transfer:
            raise TransferNotFoundError(f"Transfer {step.transfer_id} not found")

        steps = await self.approval_step_repository.find_by_transfer(transfer.id)
        state = ApprovalAggregator.transfer_state(transfer, steps)

        if state == TransferStatus.EXPIRED:
            self._refuse(step, "expired")
            raise TransferExpiredError(f"Transfer {transfer.id} has expired")

        if state.is_final():
            self._refuse(step, state.value)
            raise TransferNotAllowedError(f"Cannot {verb} a {state.value} transfer")

        if not step.is_pending:
            self._refuse(step, "already_resolved")
            raise ApprovalStepAlreadyResolvedError(
                f"Approval step {step.id} is already {step.outcome.value}"
            )

        allowed = (
            ApprovalPolicy.can_approve(step, transfer, actor)
            if verb == "approve"
            else ApprovalPolicy.can_reject(step, transfer, actor)
        )
        if not allowed:
            self._refuse(step, "not_authorized")
            logger.warning(
                "%s may not %s %s step %s", actor.reference, verb, step.approval_type, step.id
            )
            raise TransferNotAllowedError(f"You are not authorized to {verb} this transfer")

        return step, transfer

    async def _store(self, decided: ApprovalStep) -> Optional[List[ApprovalStep]]:
        """
        Store a decided step and return the fresh steps of its transfer.

        Returns None when another decision on the step got there first.
        """
        stored = await self.approval_step_repository.resolve(decided)
        if stored is None:
            return None
        return await self.approval_step_repository.find_by_transfer(decided.transfer_id)

    def _stored_or_raise(
        self, decided: ApprovalStep, steps: Optional[List[ApprovalStep]]
    ) -> List[ApprovalStep]:
        if steps is None:
            self._refuse(decided, "already_resolved")
            raise ApprovalStepAlreadyResolvedError(
                f"Approval step {decided.id} was resolved by another decision"
            )
        transfer_decisions_total.labels(
            approval_type=decided.approval_type.value, outcome=decided.outcome.value
        ).inc()
        return steps

    @staticmethod
    def _refuse(step: ApprovalStep, reason: str) -> None:
        transfer_decisions_refused_total.labels(
            approval_type=step.approval_type.value, reason=reason
        ).inc()


class ApproveTransferHandler(_ApprovalDecisionHandler):
    """Handler for ApproveTransferCommand."""

    def __init__(
        self,
        transfer_repository: TransferRepository,
        approval_step_repository: ApprovalStepRepository,
        history_repository: TransferHistoryRepository,
        license_repository: LicenseRepository,
        usage_repository: UsageRepository,
        unit_of_work: UnitOfWork,
    ):
        """Initialize handler with repositories."""
        super().__init__(transfer_repository, approval_step_repository, unit_of_work)
        self.executor = TransferExecutor(
            transfer_repository=transfer_repository,
            history_repository=history_repository,
            license_repository=license_repository,
            usage_repository=usage_repository,
        )

    async def handle(self, command: ApproveTransferCommand) -> TransferDecisionDTO:
        """
        Handle approve transfer command.

        Executes the transfer when this approval was the last one missing.

        Args:
            command: ApproveTransferCommand

        Returns:
            TransferDecisionDTO

        Raises:
            ApprovalStepNotFoundError: If step not found
            TransferNotFoundError: If transfer not found
            TransferExpiredError: If the transfer timed out
            TransferNotAllowedError: If the decision is not allowed
            ApprovalStepAlreadyResolvedError: If the step was already decided
        """
        with tracer.start_as_current_span("approve_transfer") as span:
            span.set_attribute("step.id", str(command.step_id))
            span.set_attribute("actor", str(command.actor.reference))
            try:
                step, transfer = await self._load_open_step(
                    command.step_id, command.actor, "approve"
                )
            except TransferNotAllowedError as e:
                span.set_status(Status(StatusCode.ERROR, e.message))
                raise

            approved = step.approve(command.actor.reference, command.reason)

            async def decide():
                # Serializes decisions on this transfer.
                await self.transfer_repository.find_for_update(transfer.id)
                steps = await self._store(approved)
                if steps is None:
                    return None, None
                history = None
                if ApprovalAggregator.transfer_state(transfer, steps) == TransferStatus.APPROVED:
                    history = await self.executor.execute(transfer, command.actor.reference)
                return steps, history

            steps, history = await self.unit_of_work.run(decide)
            try:
                steps = self._stored_or_raise(approved, steps)
            except ApprovalStepAlreadyResolvedError as e:
                span.set_status(Status(StatusCode.ERROR, e.message))
                raise

            state = ApprovalAggregator.transfer_state(transfer, steps)
            span.set_attribute("transfer.id", str(transfer.id))
            span.set_attribute("transfer.state", state.value)
            logger.info(
                "%s approved %s step of transfer %s (now %s)",
                command.actor.reference,
                step.approval_type,
                transfer.id,
                state,
            )

            await event_bus.publish(
                LicenseTransferApproved(
                    transfer_id=transfer.id,
                    license_id=transfer.license_id,
                    actor=command.actor.reference,
                    approval_type=step.approval_type,
                )
            )

            executed = history is not None
            if executed:
                state = TransferStatus.COMPLETED
                await self.executor.announce(history)

            span.set_status(Status(StatusCode.OK))
            return TransferDecisionDTO(
                transfer_id=transfer.id,
                step=to_step_dto(approved, approved.resolved_at),
                transfer_status=state.value,
                executed=executed,
            )


class RejectTransferHandler(_ApprovalDecisionHandler):
    """Handler for RejectTransferCommand."""

    async def handle(self, command: RejectTransferCommand) -> TransferDecisionDTO:
        """
        Handle reject transfer command.

        A single rejection vetoes the whole transfer.

        Args:
            command: RejectTransferCommand

        Returns:
            TransferDecisionDTO

        Raises:
            ApprovalStepNotFoundError: If step not found
            TransferNotFoundError: If transfer not found
            TransferExpiredError: If the transfer timed out
            TransferNotAllowedError: If the decision is not allowed
            ApprovalStepAlreadyResolvedError: If the step was already decided
        """
        with tracer.start_as_current_span("reject_transfer") as span:
            span.set_attribute("step.id", str(command.step_id))
            span.set_attribute("actor", str(command.actor.reference))
            try:
                step, transfer = await self._load_open_step(
                    command.step_id, command.actor, "reject"
                )
            except TransferNotAllowedError as e:
                span.set_status(Status(StatusCode.ERROR, e.message))
                raise

            rejected = step.reject(command.actor.reference, command.reason)

            async def decide():
                steps = await self._store(rejected)
                if steps is not None:
                    await self.transfer_repository.save(
                        transfer.with_rejection_reason(command.reason)
                    )
                return steps

            try:
                steps = self._stored_or_raise(rejected, await self.unit_of_work.run(decide))
            except ApprovalStepAlreadyResolvedError as e:
                span.set_status(Status(StatusCode.ERROR, e.message))
                raise

            state = ApprovalAggregator.transfer_state(transfer, steps)
            span.set_attribute("transfer.id", str(transfer.id))
            span.set_attribute("transfer.state", state.value)
            logger.info(
                "%s rejected %s step of transfer %s",
                command.actor.reference,
                step.approval_type,
                transfer.id,
            )

            await event_bus.publish(
                LicenseTransferRejected(
                    transfer_id=transfer.id,
                    license_id=transfer.license_id,
                    actor=command.actor.reference,
                    approval_type=step.approval_type,
                    reason=command.reason,
                )
            )

            span.set_status(Status(StatusCode.OK))
            return TransferDecisionDTO(
                transfer_id=transfer.id,
                step=to_step_dto(rejected, rejected.resolved_at),
                transfer_status=state.value,
            )
