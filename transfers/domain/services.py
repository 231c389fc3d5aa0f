"""
Transfer domain services.

Domain services contain business logic that doesn't naturally
fit within a single entity:

- ApprovalPlanner: which sign-offs a transfer needs
- ApprovalPolicy: who may decide on a pending step
- ApprovalAggregator: the transfer state derived from its steps
- ApprovalStepManager: creation of approval steps
- TransferEligibilityValidator: whether a license may change hands
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Callable, Dict, Iterable, List, Optional

from core.domain.actors import (
    APPROVE_LICENSE_TRANSFERS,
    CanInitiateLicenseTransfers,
    CanReceiveLicenseTransfers,
    ChecksPermissions,
    TransferActor,
)
from core.domain.exceptions import TransferValidationError
from core.domain.value_objects import (
    ApprovalOutcome,
    ApprovalType,
    OwnerRef,
    TransferStatus,
    TransferType,
)
from licenses.domain.license import License
from transfers.conf import TransferSettings
from transfers.domain.approval import ApprovalRequirement, ApprovalStep
from transfers.domain.transfer import Transfer
from transfers.ports.transfer_repository import ApprovalStepRepository, TransferRepository

logger = logging.getLogger(__name__)

OWNER_APPROVAL_TIMEOUT_HOURS = 72
ADMIN_APPROVAL_TIMEOUT_HOURS = 120


class ApprovalPlanner:
    """Domain service deciding which approval steps a transfer needs."""

    @staticmethod
    def plan_approvals(transfer: Transfer) -> Dict[ApprovalType, ApprovalRequirement]:
        """
        Compute the approval plan of a transfer.

        One entry per flag that is set on the transfer. Entries are
        independent and may be satisfied in any order.

        Args:
            transfer: Transfer entity

        Returns:
            Mapping of approval type to requirement
        """
        plan = {}

        if transfer.requires_source_approval:
            plan[ApprovalType.SOURCE] = ApprovalRequirement(
                approval_type=ApprovalType.SOURCE,
                approver=transfer.from_owner,
                timeout_hours=OWNER_APPROVAL_TIMEOUT_HOURS,
            )

        if transfer.requires_target_approval:
            plan[ApprovalType.TARGET] = ApprovalRequirement(
                approval_type=ApprovalType.TARGET,
                approver=transfer.to_owner,
                timeout_hours=OWNER_APPROVAL_TIMEOUT_HOURS,
            )

        if transfer.requires_admin_approval:
            # Resolved by permission at decision time, not by identity.
            plan[ApprovalType.ADMIN] = ApprovalRequirement(
                approval_type=ApprovalType.ADMIN,
                approver=None,
                timeout_hours=ADMIN_APPROVAL_TIMEOUT_HOURS,
            )

        return plan

    @staticmethod
    async def create_planned_steps(
        transfer: Transfer,
        repository: ApprovalStepRepository,
    ) -> List[ApprovalStep]:
        """
        Persist one pending step per entry of the plan.

        Args:
            transfer: Transfer entity
            repository: Approval step repository

        Returns:
            Created ApprovalStep entities

        Raises:
            DuplicateApprovalStepError: If the plan was already persisted
        """
        steps = []
        for approval_type, requirement in ApprovalPlanner.plan_approvals(transfer).items():
            if not requirement.required:
                continue
            step = ApprovalStep.create(
                transfer_id=transfer.id,
                approval_type=approval_type,
                timeout_hours=requirement.timeout_hours,
                approver=requirement.approver,
            )
            steps.append(await repository.add(step))
        return steps


class ApprovalPolicy:
    """Domain service deciding who may approve or reject a step."""

    @staticmethod
    def can_approve(step: ApprovalStep, transfer: Transfer, actor: TransferActor) -> bool:
        """
        Check whether an actor may decide on an approval step.

        Args:
            step: Approval step to decide on
            transfer: Transfer the step belongs to
            actor: Actor attempting the decision

        Returns:
            True if the actor may approve (or reject) the step
        """
        if step.outcome in (ApprovalOutcome.APPROVED, ApprovalOutcome.REJECTED):
            return False

        if step.transfer_id != transfer.id:
            logger.warning(
                "Approval step %s does not belong to transfer %s", step.id, transfer.id
            )
            return False

        check = ApprovalPolicy._checks().get(step.approval_type)
        if check is None:
            logger.error(
                "Invariant violation: unknown approval type %r on step %s",
                step.approval_type,
                step.id,
            )
            return False

        return check(transfer, actor)

    @staticmethod
    def can_reject(step: ApprovalStep, transfer: Transfer, actor: TransferActor) -> bool:
        """Rejection authority is exactly approval authority."""
        return ApprovalPolicy.can_approve(step, transfer, actor)

    @staticmethod
    def _checks() -> Dict[ApprovalType, Callable[[Transfer, TransferActor], bool]]:
        return {
            ApprovalType.SOURCE: ApprovalPolicy._can_approve_as_source,
            ApprovalType.TARGET: ApprovalPolicy._can_approve_as_target,
            ApprovalType.ADMIN: ApprovalPolicy._can_approve_as_admin,
        }

    @staticmethod
    def _can_approve_as_source(transfer: Transfer, actor: TransferActor) -> bool:
        if actor.reference != transfer.from_owner:
            return False

        # Actors that initiate transfers must also still hold the license.
        if isinstance(actor, CanInitiateLicenseTransfers):
            return actor.owns_license(transfer.license_id)

        return True

    @staticmethod
    def _can_approve_as_target(transfer: Transfer, actor: TransferActor) -> bool:
        return actor.reference == transfer.to_owner

    @staticmethod
    def _can_approve_as_admin(transfer: Transfer, actor: TransferActor) -> bool:
        if not isinstance(actor, ChecksPermissions):
            return False
        return actor.has_permission(APPROVE_LICENSE_TRANSFERS)


class ApprovalAggregator:
    """Domain service deriving the overall state of a transfer."""

    @staticmethod
    def derive_state(
        steps: Iterable[ApprovalStep],
        current_time: Optional[datetime] = None,
    ) -> TransferStatus:
        """
        Derive the approval state from a set of step outcomes.

        A single rejection vetoes the transfer. A transfer without steps
        is approved straight away.

        Args:
            steps: All required steps of one transfer
            current_time: Current time (defaults to now)

        Returns:
            PENDING, APPROVED, REJECTED or EXPIRED
        """
        steps = list(steps)
        check_time = current_time or datetime.now(timezone.utc)

        if any(step.is_rejected for step in steps):
            return TransferStatus.REJECTED

        if all(step.is_approved for step in steps):
            return TransferStatus.APPROVED

        if any(step.is_timed_out(check_time) for step in steps):
            return TransferStatus.EXPIRED

        return TransferStatus.PENDING

    @staticmethod
    def transfer_state(
        transfer: Transfer,
        steps: Iterable[ApprovalStep],
        current_time: Optional[datetime] = None,
    ) -> TransferStatus:
        """
        State of a transfer as seen by callers.

        Completed and cancelled transfers keep their lifecycle status;
        everything else is recomputed from the steps. A sign-off the
        transfer's flags require but no stored step covers counts as
        pending. A request that is still pending past ``expires_at`` is
        expired.

        Args:
            transfer: Transfer entity
            steps: Freshly loaded steps of the transfer
            current_time: Current time (defaults to now)

        Returns:
            TransferStatus
        """
        if transfer.status in (TransferStatus.COMPLETED, TransferStatus.CANCELLED):
            return transfer.status

        steps = list(steps)
        state = ApprovalAggregator.derive_state(steps, current_time)

        stored = {step.approval_type for step in steps}
        missing = [
            approval_type
            for approval_type, requirement in ApprovalPlanner.plan_approvals(transfer).items()
            if requirement.required and approval_type not in stored
        ]
        if missing and state == TransferStatus.APPROVED:
            logger.warning(
                "Transfer %s has no stored step for required approval(s) %s",
                transfer.id,
                [approval_type.value for approval_type in missing],
            )
            state = TransferStatus.PENDING

        if state == TransferStatus.PENDING and transfer.is_request_expired(current_time):
            return TransferStatus.EXPIRED
        return state

    @staticmethod
    def completion_percentage(steps: Iterable[ApprovalStep]) -> int:
        """
        Share of approved steps.

        Args:
            steps: Steps of one transfer

        Returns:
            Percentage between 0 and 100 (100 when nothing is required)
        """
        steps = list(steps)
        if not steps:
            return 100
        approved = sum(1 for step in steps if step.is_approved)
        return int(approved / len(steps) * 100)


class ApprovalStepManager:
    """Domain service for creating approval steps outside of a plan."""

    @staticmethod
    async def create_approval_step(
        transfer: Transfer,
        approval_type: ApprovalType,
        repository: ApprovalStepRepository,
        actor: Optional[TransferActor] = None,
        timeout_hours: Optional[int] = None,
    ) -> ApprovalStep:
        """
        Append one pending step to a transfer.

        Args:
            transfer: Transfer entity
            approval_type: Kind of sign-off
            repository: Approval step repository
            actor: Expected approver; defaults to the planned approver
            timeout_hours: Override of the planned timeout

        Returns:
            Created ApprovalStep

        Raises:
            DuplicateApprovalStepError: If the transfer already has a step
                of this type
        """
        planned = ApprovalPlanner.plan_approvals(transfer).get(approval_type)
        if timeout_hours is None:
            timeout_hours = (
                planned.timeout_hours
                if planned
                else (
                    ADMIN_APPROVAL_TIMEOUT_HOURS
                    if approval_type == ApprovalType.ADMIN
                    else OWNER_APPROVAL_TIMEOUT_HOURS
                )
            )

        if actor is not None:
            approver = actor.reference
        else:
            approver = planned.approver if planned else None

        step = ApprovalStep.create(
            transfer_id=transfer.id,
            approval_type=approval_type,
            timeout_hours=timeout_hours,
            approver=approver,
        )
        return await repository.add(step)


class TransferEligibilityValidator:
    """Domain service checking whether a license may be transferred."""

    @staticmethod
    async def validate(
        license: License,
        target: TransferActor,
        transfer_type: TransferType,
        repository: TransferRepository,
        config: TransferSettings,
        current_time: Optional[datetime] = None,
    ) -> None:
        """
        Validate a proposed transfer.

        Args:
            license: License to transfer
            target: Proposed new owner
            transfer_type: Requested transfer type
            repository: Transfer repository (history lookups)
            config: Transfer policy
            current_time: Current time (defaults to now)

        Raises:
            TransferValidationError: If the transfer is not allowed
        """
        now = current_time or datetime.now(timezone.utc)

        if not license.is_transferable(now):
            raise TransferValidationError(
                "License is not transferable in its current state",
                ["license_not_transferable"],
            )

        if license.is_owned_by(target.reference):
            raise TransferValidationError(
                "Target already owns this license", ["target_is_owner"]
            )

        last_completed = await repository.find_last_completed_for_license(license.id)

        TransferEligibilityValidator._check_cooling_period(last_completed, config, now)
        TransferEligibilityValidator._check_transfer_type(
            license.owner, target.reference, transfer_type
        )

        if isinstance(target, CanReceiveLicenseTransfers):
            TransferEligibilityValidator._check_target(target)

        patterns = []
        window_start = now - timedelta(days=config.frequent_transfer_window_days)
        recent = await repository.count_created_since(license.id, window_start)
        if recent > config.frequent_transfer_threshold:
            patterns.append("frequent_transfers")
        if last_completed and last_completed.from_owner == target.reference:
            patterns.append("ping_pong_transfer")

        if patterns:
            logger.warning(
                "Suspicious transfer pattern(s) %s on license %s", patterns, license.id
            )
            if config.suspicious_pattern_requires_review:
                raise TransferValidationError(
                    "Transfer blocked due to suspicious patterns", patterns
                )

    @staticmethod
    def _check_cooling_period(
        last_completed: Optional[Transfer], config: TransferSettings, now: datetime
    ) -> None:
        if config.cooling_period_days <= 0 or not last_completed:
            return
        if not last_completed.completed_at:
            return
        if now - last_completed.completed_at < timedelta(days=config.cooling_period_days):
            raise TransferValidationError(
                "Transfer cooling period not met. Please wait "
                f"{config.cooling_period_days} days between transfers.",
                ["cooling_period"],
            )

    @staticmethod
    def _check_transfer_type(
        source: OwnerRef, target: OwnerRef, transfer_type: TransferType
    ) -> None:
        if transfer_type in (TransferType.RECOVERY, TransferType.MIGRATION):
            return
        expected = TransferType.for_owner_kinds(source.kind, target.kind)
        if expected and expected != transfer_type:
            raise TransferValidationError(
                f"Invalid transfer type. Expected {expected.value}, got {transfer_type.value}",
                ["transfer_type_mismatch"],
            )

    @staticmethod
    def _check_target(target: CanReceiveLicenseTransfers) -> None:
        if not target.can_receive_license_transfers():
            raise TransferValidationError(
                "Target entity cannot receive license transfers at this time",
                ["target_not_accepting"],
            )
        if target.has_reached_license_limit():
            raise TransferValidationError(
                "Target entity has reached its license limit",
                ["target_license_limit"],
            )
