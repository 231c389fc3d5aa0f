"""
Transfer, ApprovalStep and TransferHistory Django ORM models.

Domain entities are in transfers.domain.
"""
import uuid

from django.db import models
from django.utils import timezone


class LicenseTransfer(models.Model):
    """
    A proposed change of owner for a license.
    """

    STATUS_CHOICES = [
        ("pending", "Pending"),
        ("completed", "Completed"),
        ("cancelled", "Cancelled"),
    ]

    TYPE_CHOICES = [
        ("user_to_user", "User to User"),
        ("user_to_org", "User to Organization"),
        ("org_to_user", "Organization to User"),
        ("org_to_org", "Organization to Organization"),
        ("recovery", "Recovery"),
        ("migration", "Migration"),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    license = models.ForeignKey(
        "licenses.License",
        on_delete=models.CASCADE,
        related_name="transfers",
    )
    from_owner_type = models.CharField(max_length=255)
    from_owner_id = models.CharField(max_length=64)
    to_owner_type = models.CharField(max_length=255)
    to_owner_id = models.CharField(max_length=64)
    initiated_by_type = models.CharField(max_length=255)
    initiated_by_id = models.CharField(max_length=64)
    transfer_type = models.CharField(max_length=20, choices=TYPE_CHOICES)
    requires_source_approval = models.BooleanField(default=True)
    requires_target_approval = models.BooleanField(default=True)
    requires_admin_approval = models.BooleanField(default=False)
    preserve_usages = models.BooleanField(default=False)
    reason = models.TextField(null=True, blank=True)
    rejection_reason = models.TextField(null=True, blank=True)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default="pending")
    created_at = models.DateTimeField(default=timezone.now)
    expires_at = models.DateTimeField()
    completed_at = models.DateTimeField(null=True, blank=True)
    cancelled_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        app_label = "transfers"
        db_table = "license_transfers"
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["license", "status"]),
            models.Index(fields=["license", "created_at"]),
            models.Index(fields=["license", "completed_at"]),
        ]

    def __str__(self):
        return (
            f"{self.license_id}: {self.from_owner_type}:{self.from_owner_id} -> "
            f"{self.to_owner_type}:{self.to_owner_id}"
        )


class TransferApprovalStep(models.Model):
    """
    One required sign-off on a transfer. Never deleted.
    """

    TYPE_CHOICES = [
        ("source", "Source"),
        ("target", "Target"),
        ("admin", "Admin"),
    ]

    OUTCOME_CHOICES = [
        ("pending", "Pending"),
        ("approved", "Approved"),
        ("rejected", "Rejected"),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    transfer = models.ForeignKey(
        LicenseTransfer,
        on_delete=models.PROTECT,
        related_name="approval_steps",
    )
    approval_type = models.CharField(max_length=20, choices=TYPE_CHOICES)
    approver_type = models.CharField(max_length=255, null=True, blank=True)
    approver_id = models.CharField(max_length=64, null=True, blank=True)
    timeout_hours = models.PositiveIntegerField()
    outcome = models.CharField(max_length=20, choices=OUTCOME_CHOICES, default="pending")
    resolved_by_type = models.CharField(max_length=255, null=True, blank=True)
    resolved_by_id = models.CharField(max_length=64, null=True, blank=True)
    resolved_at = models.DateTimeField(null=True, blank=True)
    reason = models.TextField(null=True, blank=True)
    approval_token = models.CharField(max_length=128)
    created_at = models.DateTimeField(default=timezone.now)

    class Meta:
        app_label = "transfers"
        db_table = "license_transfer_approval_steps"
        ordering = ["created_at"]
        constraints = [
            models.UniqueConstraint(
                fields=["transfer", "approval_type"],
                name="unique_approval_step_per_type",
            ),
        ]
        indexes = [
            models.Index(fields=["transfer", "outcome"]),
        ]

    def __str__(self):
        return f"{self.transfer_id} [{self.approval_type}] {self.outcome}"


class TransferHistoryRecord(models.Model):
    """
    Immutable record of an executed transfer.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    transfer = models.ForeignKey(
        LicenseTransfer,
        on_delete=models.PROTECT,
        related_name="history",
    )
    license = models.ForeignKey(
        "licenses.License",
        on_delete=models.CASCADE,
        related_name="transfer_history",
    )
    previous_owner_type = models.CharField(max_length=255)
    previous_owner_id = models.CharField(max_length=64)
    new_owner_type = models.CharField(max_length=255)
    new_owner_id = models.CharField(max_length=64)
    previous_snapshot = models.JSONField(default=dict)
    new_snapshot = models.JSONField(default=dict)
    transfer_type = models.CharField(max_length=20)
    executed_by_type = models.CharField(max_length=255)
    executed_by_id = models.CharField(max_length=64)
    usages_preserved = models.BooleanField(default=False)
    usages_transferred_count = models.IntegerField(default=0)
    usages_revoked_count = models.IntegerField(default=0)
    integrity_hash = models.CharField(max_length=64)
    created_at = models.DateTimeField(default=timezone.now)

    class Meta:
        app_label = "transfers"
        db_table = "license_transfer_history"
        ordering = ["-created_at"]

    def save(self, *args, **kwargs):
        """History rows are write-once."""
        if not self._state.adding:
            raise RuntimeError("Transfer history records are immutable")
        super().save(*args, **kwargs)

    def __str__(self):
        return f"{self.transfer_id} ({self.integrity_hash[:12]})"
