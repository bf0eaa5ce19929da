# accounting/models/group.py

from __future__ import annotations

from django.core.exceptions import ValidationError
from django.db import models
from django.db.models import Q

from accounting.balance import CREDIT_NORMAL, DEBIT_NORMAL


class LedgerGroup(models.Model):
    """
    Account group a ledger belongs to (Sundry Debtors, Duties & Taxes, ...).

    Guarantees:
    - The group's nature decides every member ledger's normal side
    - Nature is frozen once any member ledger has postings
    """

    ASSET = "ASSET"
    LIABILITY = "LIABILITY"
    EQUITY = "EQUITY"
    INCOME = "INCOME"
    EXPENSE = "EXPENSE"

    NATURE_CHOICES = [
        (ASSET, "Asset"),
        (LIABILITY, "Liability"),
        (EQUITY, "Equity"),
        (INCOME, "Income"),
        (EXPENSE, "Expense"),
    ]

    DEBIT_NORMAL_NATURES = (ASSET, EXPENSE)

    code = models.CharField(max_length=20, unique=True)
    name = models.CharField(max_length=150)
    nature = models.CharField(max_length=20, choices=NATURE_CHOICES)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["code"]
        verbose_name = "Ledger Group"
        verbose_name_plural = "Ledger Groups"
        constraints = [
            models.CheckConstraint(
                condition=~Q(code=""),
                name="chk_ledger_group_code_not_blank",
            ),
        ]

    def __str__(self):
        return f"{self.code} – {self.name}"

    @property
    def balance_nature(self) -> str:
        if self.nature in self.DEBIT_NORMAL_NATURES:
            return DEBIT_NORMAL
        return CREDIT_NORMAL

    def clean(self):
        self.code = (self.code or "").strip()
        self.name = (self.name or "").strip()

        if not self.code:
            raise ValidationError({"code": "Group code is required"})
        if not self.name:
            raise ValidationError({"name": "Group name is required"})

        if self.pk:
            previous = (
                LedgerGroup.objects.filter(pk=self.pk)
                .values_list("nature", flat=True)
                .first()
            )
            if previous and previous != self.nature and self.ledgers.filter(postings__isnull=False).exists():
                raise ValidationError(
                    {"nature": "Cannot change group nature after its ledgers have postings."}
                )

    def save(self, *args, **kwargs):
        self.full_clean()
        return super().save(*args, **kwargs)
