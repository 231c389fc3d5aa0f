"""
Django implementation of ApprovalStepRepository port.

Decisions are stored with a conditional UPDATE on ``outcome='pending'``;
the database row lock serializes concurrent writers, so only the first
decision on a step is applied.
"""
import logging
import uuid
from typing import List, Optional

from asgiref.sync import sync_to_async
from django.db import IntegrityError, transaction

from core.domain.exceptions import DuplicateApprovalStepError
from core.domain.value_objects import ApprovalOutcome, ApprovalType, OwnerRef
from transfers.domain.approval import ApprovalStep
from transfers.infrastructure.models import TransferApprovalStep as StepModel
from transfers.ports.transfer_repository import ApprovalStepRepository

logger = logging.getLogger(__name__)


def _ref(owner_type: Optional[str], owner_id: Optional[str]) -> Optional[OwnerRef]:
    if not owner_type or owner_id is None:
        return None
    return OwnerRef(owner_type, owner_id)


class DjangoApprovalStepRepository(ApprovalStepRepository):
    """
    Django ORM implementation of ApprovalStepRepository.
    """

    def _to_domain(self, model: StepModel) -> ApprovalStep:
        """
        Convert Django model to domain entity.

        Args:
            model: Django TransferApprovalStep model

        Returns:
            ApprovalStep domain entity
        """
        return ApprovalStep(
            id=model.id,
            transfer_id=model.transfer_id,
            approval_type=ApprovalType(model.approval_type),
            approver=_ref(model.approver_type, model.approver_id),
            timeout_hours=model.timeout_hours,
            outcome=ApprovalOutcome(model.outcome),
            resolved_by=_ref(model.resolved_by_type, model.resolved_by_id),
            resolved_at=model.resolved_at,
            reason=model.reason,
            approval_token=model.approval_token,
            created_at=model.created_at,
        )

    @sync_to_async
    def add(self, step: ApprovalStep) -> ApprovalStep:
        """
        Persist a new approval step.

        Args:
            step: Pending ApprovalStep

        Returns:
            Saved ApprovalStep

        Raises:
            DuplicateApprovalStepError: If the transfer already has a step
                of this type
        """
        try:
            with transaction.atomic():
                model = StepModel.objects.create(  # pylint: disable=no-member
                    id=step.id,
                    transfer_id=step.transfer_id,
                    approval_type=step.approval_type.value,
                    approver_type=step.approver.owner_type if step.approver else None,
                    approver_id=step.approver.owner_id if step.approver else None,
                    timeout_hours=step.timeout_hours,
                    outcome=step.outcome.value,
                    approval_token=step.approval_token,
                    created_at=step.created_at,
                )
        except IntegrityError as e:
            logger.error(
                "Duplicate %s approval step for transfer %s",
                step.approval_type,
                step.transfer_id,
            )
            raise DuplicateApprovalStepError(
                f"Transfer {step.transfer_id} already has a {step.approval_type} approval step"
            ) from e
        return self._to_domain(model)

    @sync_to_async
    def find_by_id(self, step_id: uuid.UUID) -> Optional[ApprovalStep]:
        """
        Find an approval step by ID.

        Args:
            step_id: ApprovalStep UUID

        Returns:
            ApprovalStep entity or None if not found
        """
        try:
            model = StepModel.objects.get(id=step_id)  # pylint: disable=no-member
            return self._to_domain(model)
        except StepModel.DoesNotExist:  # pylint: disable=no-member
            return None

    @sync_to_async
    def find_by_transfer(self, transfer_id: uuid.UUID) -> List[ApprovalStep]:
        """
        Find all approval steps of a transfer.

        Args:
            transfer_id: Transfer UUID

        Returns:
            List of ApprovalStep entities
        """
        models = StepModel.objects.filter(transfer_id=transfer_id)  # pylint: disable=no-member
        return [self._to_domain(model) for model in models]

    @sync_to_async
    def resolve(self, step: ApprovalStep) -> Optional[ApprovalStep]:
        """
        Store the outcome of a step that was pending when it was loaded.

        Args:
            step: Resolved (approved or rejected) ApprovalStep

        Returns:
            The stored step, or None if another decision got there first
        """
        if step.is_pending:
            raise ValueError("Only approved or rejected steps can be resolved")

        updated = StepModel.objects.filter(  # pylint: disable=no-member
            id=step.id, outcome=ApprovalOutcome.PENDING.value
        ).update(
            outcome=step.outcome.value,
            resolved_by_type=step.resolved_by.owner_type if step.resolved_by else None,
            resolved_by_id=step.resolved_by.owner_id if step.resolved_by else None,
            resolved_at=step.resolved_at,
            reason=step.reason,
        )
        if updated != 1:
            logger.info("Approval step %s was resolved concurrently", step.id)
            return None
        return step
