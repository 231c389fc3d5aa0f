"""
License Django ORM model.

This is the infrastructure layer model for licenses.
Domain entities are in licenses.domain.license.
"""
import uuid

from django.db import models
from django.utils import timezone


class License(models.Model):
    """
    A license held by one polymorphic owner ("licensable").
    """

    STATUS_CHOICES = [
        ("valid", "Valid"),
        ("suspended", "Suspended"),
        ("cancelled", "Cancelled"),
        ("expired", "Expired"),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    owner_type = models.CharField(max_length=255, help_text="e.g. accounts.User")
    owner_id = models.CharField(max_length=64)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default="valid")
    seat_limit = models.IntegerField(default=1, help_text="Maximum number of usages")
    expires_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(default=timezone.now)
    updated_at = models.DateTimeField(default=timezone.now)

    class Meta:
        app_label = "licenses"
        db_table = "licenses"
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["owner_type", "owner_id"]),
            models.Index(fields=["status"]),
        ]

    def __str__(self):
        return f"{self.id} ({self.owner_type}:{self.owner_id})"
