"""
LicenseUsage Django ORM model.

This is the infrastructure layer model for usages.
Domain entities are in usages.domain.usage.
"""
import uuid

from django.db import models
from django.utils import timezone


class LicenseUsage(models.Model):
    """
    One device consuming a seat of a license.
    """

    STATUS_CHOICES = [
        ("active", "Active"),
        ("revoked", "Revoked"),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    license = models.ForeignKey(
        "licenses.License",
        on_delete=models.CASCADE,
        related_name="usages",
    )
    fingerprint = models.CharField(max_length=255, help_text="Device fingerprint")
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default="active", db_index=True)
    registered_at = models.DateTimeField(default=timezone.now)
    revoked_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        app_label = "usages"
        db_table = "license_usages"
        unique_together = [["license", "fingerprint"]]
        ordering = ["-registered_at"]
        indexes = [
            models.Index(fields=["license", "status"]),
        ]

    def __str__(self):
        return f"{self.license_id} @ {self.fingerprint}"
