# accounting/models/voucher.py

"""
======================================================
PATH: accounting/models/voucher.py
======================================================
VOUCHER MODELS

Voucher      -> document header (Sales, Purchase, Journal, Payment, ...)
LedgerEntry  -> one debit OR credit leg of the voucher
LineItem     -> GST line breakdown (Sales / Purchase / Credit Note / Debit Note)

Lifecycle:
    draft --(posting engine)--> posted --(reversing voucher)--> cancelled

Guarantees:
- Drafts are freely editable; posted and cancelled vouchers are frozen
- Status moves ONLY through the posting engine (queryset updates), never save()
- Entries and line items of a non-draft voucher cannot be added, changed or removed
"""

from __future__ import annotations

from decimal import Decimal

from django.core.exceptions import ValidationError
from django.core.validators import MinValueValidator
from django.db import models
from django.db.models import Q

from accounting.models.ledger import Ledger

NON_NEGATIVE = [MinValueValidator(Decimal("0.00"))]


class Voucher(models.Model):
    JOURNAL = "journal"
    PAYMENT = "payment"
    RECEIPT = "receipt"
    CONTRA = "contra"
    SALES = "sales"
    PURCHASE = "purchase"
    GST_PAYMENT = "gst_payment"
    GST_UTILIZATION = "gst_utilization"
    DEBIT_NOTE = "debit_note"
    CREDIT_NOTE = "credit_note"
    TDS_PAYMENT = "tds_payment"
    TDS_SETTLEMENT = "tds_settlement"

    VOUCHER_TYPES = [
        (JOURNAL, "Journal"),
        (PAYMENT, "Payment"),
        (RECEIPT, "Receipt"),
        (CONTRA, "Contra"),
        (SALES, "Sales"),
        (PURCHASE, "Purchase"),
        (GST_PAYMENT, "GST Payment"),
        (GST_UTILIZATION, "GST Utilization"),
        (DEBIT_NOTE, "Debit Note"),
        (CREDIT_NOTE, "Credit Note"),
        (TDS_PAYMENT, "TDS Payment"),
        (TDS_SETTLEMENT, "TDS Settlement"),
    ]

    # Types that carry GST line items
    INVOICE_TYPES = (SALES, PURCHASE, CREDIT_NOTE, DEBIT_NOTE)

    DRAFT = "draft"
    POSTED = "posted"
    CANCELLED = "cancelled"

    STATUS_CHOICES = [
        (DRAFT, "Draft"),
        (POSTED, "Posted"),
        (CANCELLED, "Cancelled"),
    ]

    voucher_type = models.CharField(max_length=20, choices=VOUCHER_TYPES)
    voucher_number = models.CharField(max_length=40, unique=True)
    date = models.DateField()
    status = models.CharField(max_length=10, choices=STATUS_CHOICES, default=DRAFT)

    narration = models.TextField(blank=True, default="")
    reference_number = models.CharField(max_length=100, blank=True, default="")

    party_ledger = models.ForeignKey(
        Ledger,
        on_delete=models.PROTECT,
        related_name="party_vouchers",
        null=True,
        blank=True,
    )
    supplier_state = models.CharField(max_length=60, blank=True, default="")
    place_of_supply = models.CharField(max_length=60, blank=True, default="")

    total_amount = models.DecimalField(
        max_digits=18,
        decimal_places=2,
        default=Decimal("0.00"),
        validators=NON_NEGATIVE,
    )
    round_off = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        default=Decimal("0.00"),
        help_text="Document-level rounding adjustment (may be negative)",
    )

    reversal_of = models.OneToOneField(
        "self",
        on_delete=models.PROTECT,
        related_name="reversed_by",
        null=True,
        blank=True,
        help_text="The voucher this voucher reverses",
    )

    posted_at = models.DateTimeField(null=True, blank=True)
    cancelled_at = models.DateTimeField(null=True, blank=True)
    cancellation_reason = models.TextField(blank=True, default="")

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-date", "-id"]
        verbose_name = "Voucher"
        verbose_name_plural = "Vouchers"
        indexes = [
            models.Index(fields=["voucher_type", "date"], name="acc_voucher_type_date_idx"),
            models.Index(fields=["status"], name="acc_voucher_status_idx"),
            models.Index(fields=["date"], name="acc_voucher_date_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=Q(total_amount__gte=0),
                name="chk_voucher_total_non_negative",
            ),
        ]

    def __str__(self):
        return f"{self.voucher_number} ({self.get_voucher_type_display()}) – {self.status}"

    @property
    def is_draft(self) -> bool:
        return self.status == self.DRAFT

    @property
    def is_reversal(self) -> bool:
        return self.reversal_of_id is not None

    def stored_status(self):
        if not self.pk:
            return None
        return Voucher.objects.filter(pk=self.pk).values_list("status", flat=True).first()

    def clean(self):
        self.voucher_number = (self.voucher_number or "").strip()
        self.narration = (self.narration or "").strip()
        self.reference_number = (self.reference_number or "").strip()

        if not self.voucher_number:
            raise ValidationError({"voucher_number": "Voucher number is required"})

        if self.reversal_of_id and self.reversal_of_id == self.pk:
            raise ValidationError({"reversal_of": "A voucher cannot reverse itself"})

    def save(self, *args, **kwargs):
        stored = self.stored_status()
        if stored is not None and stored != self.DRAFT:
            raise ValidationError(
                f"Voucher {self.voucher_number} is {stored}; posted vouchers are immutable"
            )

        if not self.pk and self.status != self.DRAFT:
            raise ValidationError("Vouchers are created as drafts and posted through the posting engine")

        self.full_clean()
        return super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        stored = self.stored_status()
        if stored is not None and stored != self.DRAFT:
            raise ValidationError(
                f"Voucher {self.voucher_number} is {stored} and cannot be deleted; cancel it instead"
            )
        return super().delete(*args, **kwargs)


class _DraftChild(models.Model):
    """Rows owned by a voucher are editable only while the voucher is a draft."""

    class Meta:
        abstract = True

    def _assert_draft(self, action: str) -> None:
        status = (
            Voucher.objects.filter(pk=self.voucher_id).values_list("status", flat=True).first()
        )
        if status is not None and status != Voucher.DRAFT:
            raise ValidationError(
                f"Cannot {action} {self._meta.verbose_name} on a {status} voucher"
            )

    def save(self, *args, **kwargs):
        self._assert_draft("modify")
        self.full_clean()
        return super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        self._assert_draft("delete")
        return super().delete(*args, **kwargs)


class LedgerEntry(_DraftChild):
    voucher = models.ForeignKey(
        Voucher,
        on_delete=models.CASCADE,
        related_name="entries",
    )
    ledger = models.ForeignKey(
        Ledger,
        on_delete=models.PROTECT,
        related_name="voucher_entries",
    )

    # Sign is NOT validated here; the voucher validator owns that decision
    debit_amount = models.DecimalField(max_digits=18, decimal_places=2, default=Decimal("0.00"))
    credit_amount = models.DecimalField(max_digits=18, decimal_places=2, default=Decimal("0.00"))

    line_order = models.PositiveIntegerField(default=0)

    class Meta:
        ordering = ["line_order", "id"]
        verbose_name = "Ledger Entry"
        verbose_name_plural = "Ledger Entries"
        indexes = [
            models.Index(fields=["voucher", "line_order"], name="acc_entry_voucher_order_idx"),
            models.Index(fields=["ledger"], name="acc_entry_ledger_idx"),
        ]

    def __str__(self):
        if self.debit_amount:
            return f"Dr {self.debit_amount} → {self.ledger_id}"
        return f"Cr {self.credit_amount} → {self.ledger_id}"


class LineItem(_DraftChild):
    voucher = models.ForeignKey(
        Voucher,
        on_delete=models.CASCADE,
        related_name="line_items",
    )

    description = models.CharField(max_length=255, blank=True, default="")
    hsn_code = models.CharField(max_length=8, blank=True, default="")

    quantity = models.DecimalField(max_digits=14, decimal_places=3, validators=NON_NEGATIVE)
    rate = models.DecimalField(max_digits=14, decimal_places=2, validators=NON_NEGATIVE)
    discount_percent = models.DecimalField(
        max_digits=5, decimal_places=2, default=Decimal("0.00"), validators=NON_NEGATIVE
    )
    taxable_amount = models.DecimalField(max_digits=18, decimal_places=2, validators=NON_NEGATIVE)

    gst_rate = models.DecimalField(max_digits=5, decimal_places=2, validators=NON_NEGATIVE)
    cess_rate = models.DecimalField(
        max_digits=5, decimal_places=2, default=Decimal("0.00"), validators=NON_NEGATIVE
    )

    cgst_amount = models.DecimalField(max_digits=18, decimal_places=2, default=Decimal("0.00"), validators=NON_NEGATIVE)
    sgst_amount = models.DecimalField(max_digits=18, decimal_places=2, default=Decimal("0.00"), validators=NON_NEGATIVE)
    igst_amount = models.DecimalField(max_digits=18, decimal_places=2, default=Decimal("0.00"), validators=NON_NEGATIVE)
    cess_amount = models.DecimalField(max_digits=18, decimal_places=2, default=Decimal("0.00"), validators=NON_NEGATIVE)

    total_amount = models.DecimalField(max_digits=18, decimal_places=2, validators=NON_NEGATIVE)

    line_order = models.PositiveIntegerField(default=0)

    class Meta:
        ordering = ["line_order", "id"]
        verbose_name = "Line Item"
        verbose_name_plural = "Line Items"

    def __str__(self):
        return f"{self.description or self.hsn_code or 'Line'} x {self.quantity} @ {self.rate}"

    @property
    def tax_amount(self) -> Decimal:
        return self.cgst_amount + self.sgst_amount + self.igst_amount + self.cess_amount
