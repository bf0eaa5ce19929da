# accounting/services/voucher_service.py

"""
======================================================
PATH: accounting/services/voucher_service.py
======================================================
VOUCHER DRAFT SERVICE

Creates and replaces DRAFT vouchers (header + entries + line items).

Rules:
- Only drafts are written here; posting belongs to the posting engine
- Voucher numbers follow "<PREFIX>/<FY>/<SEQ>", e.g. "SI/2025-26/00001",
  where FY is the Indian financial year (April -> March)
- Amount and sign checks are NOT done here; the validator owns them at post time
"""

from __future__ import annotations

import logging
from datetime import date
from typing import Iterable, Mapping

from django.conf import settings
from django.db import IntegrityError, transaction

from accounting.models import Ledger, LedgerEntry, LineItem, Voucher
from accounting.money import ZERO, MoneyError, q2
from accounting.services.exceptions import ErrorKind, VoucherStateError, VoucherValidationError

logger = logging.getLogger(__name__)

DEFAULT_PREFIXES = {
    Voucher.SALES: "SI",
    Voucher.PURCHASE: "PI",
    Voucher.JOURNAL: "JV",
    Voucher.PAYMENT: "PV",
    Voucher.RECEIPT: "RV",
    Voucher.CONTRA: "CV",
    Voucher.CREDIT_NOTE: "CN",
    Voucher.DEBIT_NOTE: "DN",
    Voucher.GST_PAYMENT: "GP",
    Voucher.GST_UTILIZATION: "GU",
    Voucher.TDS_PAYMENT: "TP",
    Voucher.TDS_SETTLEMENT: "TS",
}

SEQUENCE_WIDTH = 5
NUMBERING_ATTEMPTS = 3

LINE_FIELDS = (
    "description",
    "hsn_code",
    "quantity",
    "rate",
    "discount_percent",
    "taxable_amount",
    "gst_rate",
    "cess_rate",
    "cgst_amount",
    "sgst_amount",
    "igst_amount",
    "cess_amount",
    "total_amount",
)


# --------------------------------------------------
# Numbering
# --------------------------------------------------


def financial_year_label(on_date: date) -> str:
    start = on_date.year if on_date.month >= 4 else on_date.year - 1
    return f"{start}-{str(start + 1)[-2:]}"


def voucher_prefix(voucher_type: str) -> str:
    configured = getattr(settings, "VOUCHER_NUMBER_PREFIXES", None) or {}
    prefix = configured.get(voucher_type) or DEFAULT_PREFIXES.get(voucher_type)
    if not prefix:
        raise VoucherStateError(f"Unknown voucher type: {voucher_type!r}")
    return prefix


def next_voucher_number(voucher_type: str, on_date: date) -> str:
    stem = f"{voucher_prefix(voucher_type)}/{financial_year_label(on_date)}/"

    highest = 0
    for number in Voucher.objects.filter(voucher_number__startswith=stem).values_list(
        "voucher_number", flat=True
    ):
        suffix = number[len(stem):]
        if suffix.isdigit():
            highest = max(highest, int(suffix))

    return f"{stem}{highest + 1:0{SEQUENCE_WIDTH}d}"


# --------------------------------------------------
# Drafts
# --------------------------------------------------


def _resolve_ledger(value) -> Ledger:
    if isinstance(value, Ledger):
        return value
    ledger = Ledger.objects.filter(pk=value).first()
    if ledger is None:
        raise VoucherValidationError(ErrorKind.MISSING_LEDGER, f"Ledger {value!r} does not exist")
    return ledger


def _money_or_zero(value, label: str):
    try:
        return q2(value)
    except MoneyError as exc:
        raise VoucherValidationError(ErrorKind.AMBIGUOUS_ENTRY, f"Invalid {label}: {value!r}") from exc


def _write_children(voucher: Voucher, entries: Iterable[Mapping], line_items: Iterable[Mapping]) -> None:
    LedgerEntry.objects.bulk_create(
        [
            LedgerEntry(
                voucher=voucher,
                ledger=_resolve_ledger(entry.get("ledger")),
                debit_amount=_money_or_zero(entry.get("debit_amount"), "debit_amount"),
                credit_amount=_money_or_zero(entry.get("credit_amount"), "credit_amount"),
                line_order=index,
            )
            for index, entry in enumerate(entries or [])
        ]
    )

    lines = []
    for index, item in enumerate(line_items or []):
        values = {field: item[field] for field in LINE_FIELDS if item.get(field) is not None}
        lines.append(LineItem(voucher=voucher, line_order=index, **values))
    LineItem.objects.bulk_create(lines)


@transaction.atomic
def create_draft_voucher(
    *,
    voucher_type: str,
    date: date,
    entries: Iterable[Mapping],
    line_items: Iterable[Mapping] = (),
    voucher_number: str | None = None,
    narration: str = "",
    reference_number: str = "",
    party_ledger: Ledger | None = None,
    supplier_state: str = "",
    place_of_supply: str = "",
    total_amount=None,
    round_off=ZERO,
    reversal_of: Voucher | None = None,
) -> Voucher:
    """
    Create a draft voucher with its entries and line items.

    entries: [{"ledger": Ledger | id, "debit_amount": ..., "credit_amount": ...}]
    line_items: [{"quantity": ..., "rate": ..., "taxable_amount": ..., ...}]

    total_amount defaults to Σdebit of the entries.
    """
    entries = list(entries or [])
    line_items = list(line_items or [])

    if total_amount is None:
        total_amount = sum(
            (_money_or_zero(e.get("debit_amount"), "debit_amount") for e in entries), ZERO
        )
        total_amount = max(total_amount, ZERO)

    attempts = 1 if voucher_number else NUMBERING_ATTEMPTS
    for attempt in range(1, attempts + 1):
        number = voucher_number or next_voucher_number(voucher_type, date)
        try:
            with transaction.atomic():
                voucher = Voucher.objects.create(
                    voucher_type=voucher_type,
                    voucher_number=number,
                    date=date,
                    narration=narration,
                    reference_number=reference_number,
                    party_ledger=party_ledger,
                    supplier_state=supplier_state or "",
                    place_of_supply=place_of_supply or "",
                    total_amount=q2(total_amount),
                    round_off=q2(round_off),
                    reversal_of=reversal_of,
                )
            break
        except IntegrityError:
            # Another writer took the same sequence number
            if attempt == attempts:
                raise
            logger.info("Voucher number collision; retrying", extra={"voucher_number": number})

    _write_children(voucher, entries, line_items)

    logger.info(
        "Draft voucher created",
        extra={"voucher_id": voucher.pk, "voucher_number": voucher.voucher_number, "voucher_type": voucher_type},
    )
    return voucher


@transaction.atomic
def replace_draft_children(
    voucher: Voucher,
    *,
    entries: Iterable[Mapping] | None = None,
    line_items: Iterable[Mapping] | None = None,
) -> Voucher:
    locked = Voucher.objects.select_for_update().get(pk=voucher.pk)
    if locked.status != Voucher.DRAFT:
        raise VoucherStateError(f"Voucher {locked.voucher_number} is {locked.status}; only drafts can be edited")

    if entries is not None:
        locked.entries.all().delete()
        _write_children(locked, entries, [])
    if line_items is not None:
        locked.line_items.all().delete()
        _write_children(locked, [], line_items)

    return locked
