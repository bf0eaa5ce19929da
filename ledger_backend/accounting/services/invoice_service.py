# accounting/services/invoice_service.py

"""
INVOICE POSTING RULES - SALES / PURCHASE / CREDIT NOTE / DEBIT NOTE (AUTHORITATIVE)

Defines HOW a GST invoice maps to voucher entries.

Accounting effect (Sales):
- Debit  Party ledger        (grand total)
- Credit Sales               (taxable subtotal)
- Credit Output CGST / SGST  (intra-state)  or  Output IGST (inter-state)
- Credit Output Cess         (when any)
- Round off: credit when positive, debit when negative

Purchase mirrors Sales with Purchase / Input GST ledgers on the debit side
and the party on the credit side. A Credit Note (sales return) is the Sales
effect flipped; a Debit Note (purchase return) is the Purchase effect flipped.

RESPONSIBILITIES:
- Run the tax splitter over the lines (one intra/inter decision per document)
- Resolve semantic ledgers
- Create the DRAFT voucher (optionally post it)

THIS MODULE DOES NOT:
- Write postings or balances directly
- Enforce debit == credit (the validator does, at post time)
"""

from __future__ import annotations

import logging
from datetime import date
from decimal import Decimal
from typing import Iterable, List, Mapping

from django.conf import settings
from django.db import transaction

from accounting.gst import GSTError, InvoiceTotals, compute_invoice
from accounting.models import Ledger, Voucher
from accounting.money import ZERO, TWOPLACES, to_decimal
from accounting.services.exceptions import ErrorKind, LedgerSetupError, VoucherValidationError
from accounting.services.ledger_resolver import get_ledger
from accounting.services.posting_engine import post_voucher
from accounting.services.voucher_service import create_draft_voucher

logger = logging.getLogger(__name__)

SALES_SIDE = (Voucher.SALES, Voucher.CREDIT_NOTE)
FLIPPED = (Voucher.CREDIT_NOTE, Voucher.DEBIT_NOTE)

TAX_LEDGERS = {
    "sales": ("OUTPUT_CGST", "OUTPUT_SGST", "OUTPUT_IGST", "OUTPUT_CESS"),
    "purchase": ("INPUT_CGST", "INPUT_SGST", "INPUT_IGST", "INPUT_CESS"),
}


def round_off_unit() -> Decimal:
    return to_decimal(getattr(settings, "GST_ROUND_OFF_UNIT", TWOPLACES))


def home_state() -> str:
    return (getattr(settings, "GST_HOME_STATE", "") or "").strip()


def _leg(ledger: Ledger, *, debit=ZERO, credit=ZERO) -> dict:
    return {"ledger": ledger, "debit_amount": debit, "credit_amount": credit}


def _flip(legs: List[dict]) -> List[dict]:
    return [
        _leg(leg["ledger"], debit=leg["credit_amount"], credit=leg["debit_amount"])
        for leg in legs
    ]


def build_invoice_entries(voucher_type: str, party: Ledger, totals: InvoiceTotals) -> List[dict]:
    """
    Entries for an invoice-type voucher, before any persistence.
    """
    if voucher_type not in Voucher.INVOICE_TYPES:
        raise VoucherValidationError(
            ErrorKind.INVALID_LINE_TAX, f"{voucher_type!r} is not an invoice voucher type"
        )

    sales_side = voucher_type in SALES_SIDE
    cgst_key, sgst_key, igst_key, cess_key = TAX_LEDGERS["sales" if sales_side else "purchase"]

    # Taxes and subtotal on the "goods" side; party on the opposite side
    goods = [
        (get_ledger("SALES" if sales_side else "PURCHASE"), totals.subtotal),
        (get_ledger(cgst_key) if totals.total_cgst else None, totals.total_cgst),
        (get_ledger(sgst_key) if totals.total_sgst else None, totals.total_sgst),
        (get_ledger(igst_key) if totals.total_igst else None, totals.total_igst),
        (get_ledger(cess_key) if totals.total_cess else None, totals.total_cess),
    ]

    legs: List[dict] = []
    if sales_side:
        legs.append(_leg(party, debit=totals.grand_total))
        legs.extend(_leg(ledger, credit=amount) for ledger, amount in goods if amount)
    else:
        legs.extend(_leg(ledger, debit=amount) for ledger, amount in goods if amount)
        legs.append(_leg(party, credit=totals.grand_total))

    if totals.round_off:
        ledger = get_ledger("ROUND_OFF")
        amount = abs(totals.round_off)
        # Positive round off sits on the goods side, negative on the party side
        on_credit = (totals.round_off > 0) == sales_side
        legs.append(_leg(ledger, credit=amount) if on_credit else _leg(ledger, debit=amount))

    if voucher_type in FLIPPED:
        legs = _flip(legs)

    return legs


def _line_rows(totals: InvoiceTotals, raw_lines: List[Mapping]) -> List[dict]:
    rows = []
    for raw, line in zip(raw_lines, totals.lines):
        rows.append(
            {
                "description": (raw.get("description") or "").strip(),
                "hsn_code": (raw.get("hsn_code") or "").strip(),
                "quantity": line.quantity,
                "rate": line.rate,
                "discount_percent": line.discount_percent,
                "taxable_amount": line.taxable_amount,
                "gst_rate": line.gst_rate,
                "cess_rate": line.cess_rate,
                "cgst_amount": line.cgst_amount,
                "sgst_amount": line.sgst_amount,
                "igst_amount": line.igst_amount,
                "cess_amount": line.cess_amount,
                "total_amount": line.total_amount,
            }
        )
    return rows


@transaction.atomic
def create_invoice_voucher(
    *,
    voucher_type: str,
    date: date,
    party_ledger: Ledger,
    lines: Iterable[Mapping],
    supplier_state: str | None = None,
    place_of_supply: str | None = None,
    narration: str = "",
    reference_number: str = "",
    voucher_number: str | None = None,
    post: bool = False,
) -> Voucher:
    """
    Build (and optionally post) a Sales / Purchase / Credit Note / Debit Note.

    State defaults: the business's own state is GST_HOME_STATE; the party's
    state is its ledger state code. For sales-side documents the business is
    the supplier; for purchase-side documents the party is.
    """
    if party_ledger is None:
        raise LedgerSetupError("An invoice needs a party ledger")

    raw_lines = list(lines or [])
    own_state = home_state()
    party_state = party_ledger.state_code or ""

    if voucher_type in SALES_SIDE:
        supplier_state = supplier_state if supplier_state is not None else own_state
        place_of_supply = place_of_supply if place_of_supply is not None else party_state
    else:
        supplier_state = supplier_state if supplier_state is not None else party_state
        place_of_supply = place_of_supply if place_of_supply is not None else own_state

    try:
        totals = compute_invoice(
            raw_lines,
            supplier_state=supplier_state,
            place_of_supply=place_of_supply,
            round_off_unit=round_off_unit(),
        )
    except GSTError as exc:
        raise VoucherValidationError(ErrorKind.INVALID_LINE_TAX, str(exc)) from exc

    entries = build_invoice_entries(voucher_type, party_ledger, totals)

    voucher = create_draft_voucher(
        voucher_type=voucher_type,
        date=date,
        entries=entries,
        line_items=_line_rows(totals, raw_lines),
        voucher_number=voucher_number,
        narration=narration,
        reference_number=reference_number,
        party_ledger=party_ledger,
        supplier_state=supplier_state,
        place_of_supply=place_of_supply,
        total_amount=totals.grand_total,
        round_off=totals.round_off,
    )

    logger.info(
        "Invoice voucher drafted",
        extra={
            "voucher_id": voucher.pk,
            "voucher_type": voucher_type,
            "grand_total": str(totals.grand_total),
            "intrastate": totals.is_intrastate,
        },
    )

    if post:
        voucher = post_voucher(voucher)

    return voucher
