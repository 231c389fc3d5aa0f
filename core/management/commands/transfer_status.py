"""
Django management command to inspect a license transfer.

The state is derived from the approval steps at the time the command
runs, so an overdue transfer shows up as expired without any sweeper.
"""
import json
import uuid
from dataclasses import asdict

from asgiref.sync import async_to_sync
from django.core.management.base import BaseCommand, CommandError

from core.domain.exceptions import TransferNotFoundError
from transfers.application.handlers.get_transfer_status_handler import GetTransferStatusHandler
from transfers.application.queries.get_transfer_status import GetTransferStatusQuery
from transfers.infrastructure.repositories.django_approval_step_repository import (
    DjangoApprovalStepRepository,
)
from transfers.infrastructure.repositories.django_transfer_repository import (
    DjangoTransferRepository,
)


class Command(BaseCommand):
    """Command to print the derived state of a transfer."""

    help = "Show the state and approval steps of a license transfer"

    def add_arguments(self, parser):
        """Add command arguments."""
        parser.add_argument("transfer_id", type=uuid.UUID, help="Transfer UUID")
        parser.add_argument(
            "--json",
            action="store_true",
            help="Print the status as JSON",
        )

    def handle(self, *args, **options):
        """Execute the command."""
        handler = GetTransferStatusHandler(
            transfer_repository=DjangoTransferRepository(),
            approval_step_repository=DjangoApprovalStepRepository(),
        )
        try:
            status = async_to_sync(handler.handle)(
                GetTransferStatusQuery(transfer_id=options["transfer_id"])
            )
        except TransferNotFoundError as e:
            raise CommandError(e.message) from e

        if options["json"]:
            self.stdout.write(json.dumps(asdict(status), default=str, indent=2))
            return

        style = self.style.SUCCESS if status.status == "completed" else self.style.WARNING
        self.stdout.write(f"Transfer {status.transfer_id} ({status.transfer_type})")
        self.stdout.write(f"  {status.from_owner} -> {status.to_owner}")
        self.stdout.write(style(f"  status: {status.status}"))
        self.stdout.write(f"  approved: {status.completion_percentage}%")
        self.stdout.write(f"  expires at: {status.expires_at.isoformat()}")
        if status.rejection_reason:
            self.stdout.write(f"  rejection reason: {status.rejection_reason}")

        for step in status.steps:
            line = f"  - {step.approval_type}: {step.outcome}"
            if step.resolved_by:
                line += f" by {step.resolved_by}"
            elif step.timed_out:
                line += " (timed out)"
            self.stdout.write(line)
