# accounting/models/posting.py

"""
======================================================
PATH: accounting/models/posting.py
======================================================
POSTING MODEL

Append-only record of one ledger movement produced by posting a voucher.

Guarantees:
- Immutable once created (no updates, no deletes)
- Exactly one of debit / credit is non-zero
- `id` is the insertion sequence; statements replay postings in (date, id) order
- This table is the source of truth; Ledger.current_balance is a projection of it
"""

from __future__ import annotations

from decimal import Decimal

from django.core.exceptions import ValidationError
from django.db import models
from django.db.models import Q

from accounting.models.ledger import Ledger
from accounting.models.voucher import Voucher


class Posting(models.Model):
    ledger = models.ForeignKey(
        Ledger,
        on_delete=models.PROTECT,
        related_name="postings",
    )
    voucher = models.ForeignKey(
        Voucher,
        on_delete=models.PROTECT,
        related_name="postings",
    )

    date = models.DateField(help_text="Accounting date (the voucher date)")

    debit = models.DecimalField(max_digits=18, decimal_places=2, default=Decimal("0.00"))
    credit = models.DecimalField(max_digits=18, decimal_places=2, default=Decimal("0.00"))

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["date", "id"]
        verbose_name = "Posting"
        verbose_name_plural = "Postings"
        indexes = [
            models.Index(fields=["ledger", "date"], name="acc_posting_ledger_date_idx"),
            models.Index(fields=["voucher"], name="acc_posting_voucher_idx"),
            models.Index(fields=["date"], name="acc_posting_date_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=Q(debit__gte=0) & Q(credit__gte=0),
                name="chk_posting_amounts_non_negative",
            ),
            models.CheckConstraint(
                condition=(Q(debit=0) & Q(credit__gt=0)) | (Q(debit__gt=0) & Q(credit=0)),
                name="chk_posting_single_sided",
            ),
        ]

    def __str__(self):
        if self.debit:
            return f"Dr {self.debit} {self.ledger_id} ({self.date})"
        return f"Cr {self.credit} {self.ledger_id} ({self.date})"

    @property
    def sequence(self) -> int:
        return self.pk

    def clean(self):
        debit = self.debit or Decimal("0")
        credit = self.credit or Decimal("0")
        if debit < 0 or credit < 0:
            raise ValidationError("Posting amounts cannot be negative")
        if (debit > 0) == (credit > 0):
            raise ValidationError("A posting moves exactly one side (debit or credit)")

    def save(self, *args, **kwargs):
        if self.pk:
            raise ValidationError("Posting records are immutable and cannot be modified")

        self.full_clean()
        return super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise ValidationError("Posting records are immutable and cannot be deleted")
