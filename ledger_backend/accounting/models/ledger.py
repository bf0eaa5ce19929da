# accounting/models/ledger.py

"""
======================================================
PATH: accounting/models/ledger.py
======================================================
LEDGER MODEL

A named account that vouchers post to.

Guarantees:
- Nature (debit-normal / credit-normal) comes from the group, never stored twice
- current_balance is a cached projection of the posting history, written
  ONLY by the posting engine (queryset update, never through save())
- Balance side (Dr/Cr) is recomputed from the arithmetic on every read
- Group and opening balance are frozen once postings exist
- A ledger with postings is never deleted (deactivate instead)
"""

from __future__ import annotations

from decimal import Decimal

from django.core.exceptions import ValidationError
from django.core.validators import MinValueValidator
from django.db import models
from django.db.models import Q

from accounting.balance import Balance, from_signed
from accounting.gst import GSTError, validate_gstin
from accounting.models.group import LedgerGroup

FROZEN_AFTER_POSTING = ("group_id", "opening_balance", "opening_balance_date")


class Ledger(models.Model):
    group = models.ForeignKey(
        LedgerGroup,
        on_delete=models.PROTECT,
        related_name="ledgers",
    )

    code = models.CharField(max_length=20, unique=True)
    name = models.CharField(max_length=150)

    opening_balance = models.DecimalField(
        max_digits=18,
        decimal_places=2,
        default=Decimal("0.00"),
        validators=[MinValueValidator(Decimal("0.00"))],
        help_text="Opening magnitude, on the group's normal side",
    )
    opening_balance_date = models.DateField(null=True, blank=True)

    gstin = models.CharField(max_length=15, blank=True, default="")
    state_code = models.CharField(
        max_length=2,
        blank=True,
        default="",
        help_text="GST state code; derived from the GSTIN when left blank",
    )

    current_balance = models.DecimalField(
        max_digits=18,
        decimal_places=2,
        default=Decimal("0.00"),
        editable=False,
        help_text="Cached signed balance (positive = normal side). Maintained by the posting engine.",
    )

    is_active = models.BooleanField(default=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["code"]
        verbose_name = "Ledger"
        verbose_name_plural = "Ledgers"
        indexes = [
            models.Index(fields=["group", "code"], name="acc_ledger_group_code_idx"),
            models.Index(fields=["is_active"], name="acc_ledger_active_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=~Q(code=""),
                name="chk_ledger_code_not_blank",
            ),
            models.CheckConstraint(
                condition=Q(opening_balance__gte=0),
                name="chk_ledger_opening_non_negative",
            ),
        ]

    def __str__(self):
        return f"{self.code} – {self.name}"

    # --------------------------------------------------
    # Derived balance
    # --------------------------------------------------

    @property
    def nature(self) -> str:
        return self.group.balance_nature

    @property
    def balance(self) -> Balance:
        return from_signed(self.current_balance, self.nature)

    @property
    def balance_magnitude(self) -> Decimal:
        return self.balance.amount

    @property
    def balance_type(self) -> str:
        return self.balance.side

    def has_postings(self) -> bool:
        if not self.pk:
            return False
        return self.postings.exists()

    # --------------------------------------------------
    # Validation / persistence
    # --------------------------------------------------

    def clean(self):
        self.code = (self.code or "").strip()
        self.name = (self.name or "").strip()
        self.gstin = (self.gstin or "").strip().upper()
        self.state_code = (self.state_code or "").strip()

        if not self.code:
            raise ValidationError({"code": "Ledger code is required"})
        if not self.name:
            raise ValidationError({"name": "Ledger name is required"})

        if self.gstin:
            try:
                info = validate_gstin(self.gstin)
            except GSTError as exc:
                raise ValidationError({"gstin": str(exc)}) from exc
            if not self.state_code:
                self.state_code = info.state_code

        if self.state_code and self.state_code.isdigit():
            self.state_code = self.state_code.zfill(2)

        if self.pk:
            self._guard_posted_fields()

    def _guard_posted_fields(self) -> None:
        previous = Ledger.objects.filter(pk=self.pk).values(*FROZEN_AFTER_POSTING, "is_active").first()
        if previous is None or not self.has_postings():
            return

        changed = [f for f in FROZEN_AFTER_POSTING if previous[f] != getattr(self, f)]
        if changed:
            raise ValidationError(
                f"Cannot change {', '.join(changed)} after postings exist for ledger {self.code}."
            )

        if previous["is_active"] and not self.is_active and self.current_balance != 0:
            raise ValidationError(
                f"Ledger {self.code} still carries a balance of {self.balance}; it cannot be deactivated."
            )

    def save(self, *args, **kwargs):
        self.full_clean()

        # Without postings the projection IS the opening balance
        if not self.has_postings():
            self.current_balance = self.opening_balance or Decimal("0.00")

        return super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        if self.has_postings():
            raise ValidationError(
                "Ledgers with postings cannot be deleted; deactivate the ledger instead."
            )
        return super().delete(*args, **kwargs)
