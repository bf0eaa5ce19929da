"""
======================================================
PATH: accounting/migrations/0001_initial.py
======================================================
MIGRATION: INITIAL LEDGER SCHEMA

Creates:
- LedgerGroup, Ledger
- Voucher, LedgerEntry, LineItem
- Posting (append-only), PostingHalt
"""

from __future__ import annotations

from decimal import Decimal

import django.core.validators
import django.db.models.deletion
from django.db import migrations, models


def _money(**kwargs):
    return models.DecimalField(max_digits=18, decimal_places=2, **kwargs)


NON_NEGATIVE = [django.core.validators.MinValueValidator(Decimal("0.00"))]


class Migration(migrations.Migration):
    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="LedgerGroup",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("code", models.CharField(max_length=20, unique=True)),
                ("name", models.CharField(max_length=150)),
                (
                    "nature",
                    models.CharField(
                        choices=[
                            ("ASSET", "Asset"),
                            ("LIABILITY", "Liability"),
                            ("EQUITY", "Equity"),
                            ("INCOME", "Income"),
                            ("EXPENSE", "Expense"),
                        ],
                        max_length=20,
                    ),
                ),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={
                "verbose_name": "Ledger Group",
                "verbose_name_plural": "Ledger Groups",
                "ordering": ["code"],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(("code", ""), _negated=True),
                        name="chk_ledger_group_code_not_blank",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="Ledger",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("code", models.CharField(max_length=20, unique=True)),
                ("name", models.CharField(max_length=150)),
                (
                    "opening_balance",
                    _money(
                        default=Decimal("0.00"),
                        help_text="Opening magnitude, on the group's normal side",
                        validators=NON_NEGATIVE,
                    ),
                ),
                ("opening_balance_date", models.DateField(blank=True, null=True)),
                ("gstin", models.CharField(blank=True, default="", max_length=15)),
                (
                    "state_code",
                    models.CharField(
                        blank=True,
                        default="",
                        help_text="GST state code; derived from the GSTIN when left blank",
                        max_length=2,
                    ),
                ),
                (
                    "current_balance",
                    _money(
                        default=Decimal("0.00"),
                        editable=False,
                        help_text="Cached signed balance (positive = normal side). Maintained by the posting engine.",
                    ),
                ),
                ("is_active", models.BooleanField(default=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "group",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="ledgers",
                        to="accounting.ledgergroup",
                    ),
                ),
            ],
            options={
                "verbose_name": "Ledger",
                "verbose_name_plural": "Ledgers",
                "ordering": ["code"],
                "indexes": [
                    models.Index(fields=["group", "code"], name="acc_ledger_group_code_idx"),
                    models.Index(fields=["is_active"], name="acc_ledger_active_idx"),
                ],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(("code", ""), _negated=True),
                        name="chk_ledger_code_not_blank",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(("opening_balance__gte", 0)),
                        name="chk_ledger_opening_non_negative",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="Voucher",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                (
                    "voucher_type",
                    models.CharField(
                        choices=[
                            ("journal", "Journal"),
                            ("payment", "Payment"),
                            ("receipt", "Receipt"),
                            ("contra", "Contra"),
                            ("sales", "Sales"),
                            ("purchase", "Purchase"),
                            ("gst_payment", "GST Payment"),
                            ("gst_utilization", "GST Utilization"),
                            ("debit_note", "Debit Note"),
                            ("credit_note", "Credit Note"),
                            ("tds_payment", "TDS Payment"),
                            ("tds_settlement", "TDS Settlement"),
                        ],
                        max_length=20,
                    ),
                ),
                ("voucher_number", models.CharField(max_length=40, unique=True)),
                ("date", models.DateField()),
                (
                    "status",
                    models.CharField(
                        choices=[("draft", "Draft"), ("posted", "Posted"), ("cancelled", "Cancelled")],
                        default="draft",
                        max_length=10,
                    ),
                ),
                ("narration", models.TextField(blank=True, default="")),
                ("reference_number", models.CharField(blank=True, default="", max_length=100)),
                ("supplier_state", models.CharField(blank=True, default="", max_length=60)),
                ("place_of_supply", models.CharField(blank=True, default="", max_length=60)),
                ("total_amount", _money(default=Decimal("0.00"), validators=NON_NEGATIVE)),
                (
                    "round_off",
                    models.DecimalField(
                        decimal_places=2,
                        default=Decimal("0.00"),
                        help_text="Document-level rounding adjustment (may be negative)",
                        max_digits=10,
                    ),
                ),
                ("posted_at", models.DateTimeField(blank=True, null=True)),
                ("cancelled_at", models.DateTimeField(blank=True, null=True)),
                ("cancellation_reason", models.TextField(blank=True, default="")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "party_ledger",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="party_vouchers",
                        to="accounting.ledger",
                    ),
                ),
                (
                    "reversal_of",
                    models.OneToOneField(
                        blank=True,
                        help_text="The voucher this voucher reverses",
                        null=True,
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="reversed_by",
                        to="accounting.voucher",
                    ),
                ),
            ],
            options={
                "verbose_name": "Voucher",
                "verbose_name_plural": "Vouchers",
                "ordering": ["-date", "-id"],
                "indexes": [
                    models.Index(fields=["voucher_type", "date"], name="acc_voucher_type_date_idx"),
                    models.Index(fields=["status"], name="acc_voucher_status_idx"),
                    models.Index(fields=["date"], name="acc_voucher_date_idx"),
                ],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(("total_amount__gte", 0)),
                        name="chk_voucher_total_non_negative",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="LedgerEntry",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("debit_amount", _money(default=Decimal("0.00"))),
                ("credit_amount", _money(default=Decimal("0.00"))),
                ("line_order", models.PositiveIntegerField(default=0)),
                (
                    "ledger",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="voucher_entries",
                        to="accounting.ledger",
                    ),
                ),
                (
                    "voucher",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="entries",
                        to="accounting.voucher",
                    ),
                ),
            ],
            options={
                "verbose_name": "Ledger Entry",
                "verbose_name_plural": "Ledger Entries",
                "ordering": ["line_order", "id"],
                "indexes": [
                    models.Index(fields=["voucher", "line_order"], name="acc_entry_voucher_order_idx"),
                    models.Index(fields=["ledger"], name="acc_entry_ledger_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="LineItem",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("description", models.CharField(blank=True, default="", max_length=255)),
                ("hsn_code", models.CharField(blank=True, default="", max_length=8)),
                ("quantity", models.DecimalField(decimal_places=3, max_digits=14, validators=NON_NEGATIVE)),
                ("rate", models.DecimalField(decimal_places=2, max_digits=14, validators=NON_NEGATIVE)),
                (
                    "discount_percent",
                    models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=5, validators=NON_NEGATIVE),
                ),
                ("taxable_amount", _money(validators=NON_NEGATIVE)),
                ("gst_rate", models.DecimalField(decimal_places=2, max_digits=5, validators=NON_NEGATIVE)),
                (
                    "cess_rate",
                    models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=5, validators=NON_NEGATIVE),
                ),
                ("cgst_amount", _money(default=Decimal("0.00"), validators=NON_NEGATIVE)),
                ("sgst_amount", _money(default=Decimal("0.00"), validators=NON_NEGATIVE)),
                ("igst_amount", _money(default=Decimal("0.00"), validators=NON_NEGATIVE)),
                ("cess_amount", _money(default=Decimal("0.00"), validators=NON_NEGATIVE)),
                ("total_amount", _money(validators=NON_NEGATIVE)),
                ("line_order", models.PositiveIntegerField(default=0)),
                (
                    "voucher",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="line_items",
                        to="accounting.voucher",
                    ),
                ),
            ],
            options={
                "verbose_name": "Line Item",
                "verbose_name_plural": "Line Items",
                "ordering": ["line_order", "id"],
            },
        ),
        migrations.CreateModel(
            name="Posting",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("date", models.DateField(help_text="Accounting date (the voucher date)")),
                ("debit", _money(default=Decimal("0.00"))),
                ("credit", _money(default=Decimal("0.00"))),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                (
                    "ledger",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="postings",
                        to="accounting.ledger",
                    ),
                ),
                (
                    "voucher",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="postings",
                        to="accounting.voucher",
                    ),
                ),
            ],
            options={
                "verbose_name": "Posting",
                "verbose_name_plural": "Postings",
                "ordering": ["date", "id"],
                "indexes": [
                    models.Index(fields=["ledger", "date"], name="acc_posting_ledger_date_idx"),
                    models.Index(fields=["voucher"], name="acc_posting_voucher_idx"),
                    models.Index(fields=["date"], name="acc_posting_date_idx"),
                ],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(("debit__gte", 0), ("credit__gte", 0)),
                        name="chk_posting_amounts_non_negative",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(
                            models.Q(("debit", 0), ("credit__gt", 0)),
                            models.Q(("debit__gt", 0), ("credit", 0)),
                            _connector="OR",
                        ),
                        name="chk_posting_single_sided",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="PostingHalt",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("reason", models.TextField()),
                ("as_of_date", models.DateField(blank=True, null=True)),
                ("total_debit", _money(default=Decimal("0.00"))),
                ("total_credit", _money(default=Decimal("0.00"))),
                ("difference", _money(default=Decimal("0.00"))),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("resolved_at", models.DateTimeField(blank=True, null=True)),
                ("resolution_note", models.TextField(blank=True, default="")),
            ],
            options={
                "verbose_name": "Posting Halt",
                "verbose_name_plural": "Posting Halts",
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(fields=["resolved_at"], name="acc_halt_resolved_idx"),
                ],
            },
        ),
    ]
