# accounting/models/halt.py

"""
======================================================
PATH: accounting/models/halt.py
======================================================
POSTING HALT MODEL

Recorded when the trial balance stops balancing. While an unresolved halt
exists the posting engine refuses every new posting.

Audit guarantees:
- Immutable once created, non-deletable
- Resolution is recorded by the posting guard service (queryset update),
  never by editing the row through save()
"""

from __future__ import annotations

from decimal import Decimal

from django.core.exceptions import ValidationError
from django.db import models


class PostingHalt(models.Model):
    reason = models.TextField()

    as_of_date = models.DateField(null=True, blank=True)
    total_debit = models.DecimalField(max_digits=18, decimal_places=2, default=Decimal("0.00"))
    total_credit = models.DecimalField(max_digits=18, decimal_places=2, default=Decimal("0.00"))
    difference = models.DecimalField(max_digits=18, decimal_places=2, default=Decimal("0.00"))

    created_at = models.DateTimeField(auto_now_add=True)

    resolved_at = models.DateTimeField(null=True, blank=True)
    resolution_note = models.TextField(blank=True, default="")

    class Meta:
        ordering = ["-created_at"]
        verbose_name = "Posting Halt"
        verbose_name_plural = "Posting Halts"
        indexes = [
            models.Index(fields=["resolved_at"], name="acc_halt_resolved_idx"),
        ]

    def __str__(self):
        state = "resolved" if self.resolved_at else "ACTIVE"
        return f"PostingHalt #{self.pk} ({state}) difference={self.difference}"

    @property
    def is_active(self) -> bool:
        return self.resolved_at is None

    def clean(self):
        self.reason = (self.reason or "").strip()
        if not self.reason:
            raise ValidationError("A posting halt needs a reason")

    def save(self, *args, **kwargs):
        if self.pk:
            raise ValidationError("PostingHalt records are immutable once created")

        self.full_clean()
        return super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise ValidationError("PostingHalt records are immutable and cannot be deleted")
