# accounting/services/voucher_validator.py

"""
======================================================
PATH: accounting/services/voucher_validator.py
======================================================
VOUCHER VALIDATOR

Pure, read-only checks a voucher must pass before the posting engine may
touch any ledger.

Rules (checked in this order):
- MISSING_LEDGER    every entry references an existing, active ledger
- AMBIGUOUS_ENTRY   every entry is debit-only or credit-only, never negative
- UNBALANCED        |Σdebit - Σcredit| <= ACCOUNTING_BALANCE_TOLERANCE
- INVALID_LINE_TAX  no line mixes CGST/SGST with IGST, all taxed lines share one
                    supply type (matching supplier_state / place_of_supply when
                    both are set), and every line total equals taxable + taxes
                    within tolerance

Returns the normalized entry list (zero-amount entries stripped).
Never writes.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import List

from django.conf import settings

from accounting.gst import is_intrastate
from accounting.models import Ledger, Voucher
from accounting.money import ZERO, MoneyError, q2, to_decimal
from accounting.services.exceptions import ErrorKind, VoucherValidationError

DEFAULT_TOLERANCE = Decimal("0.01")

INTRA = "intra-state"
INTER = "inter-state"


@dataclass(frozen=True)
class NormalizedEntry:
    ledger: Ledger
    debit: Decimal
    credit: Decimal
    line_order: int = 0


def balance_tolerance() -> Decimal:
    return to_decimal(getattr(settings, "ACCOUNTING_BALANCE_TOLERANCE", DEFAULT_TOLERANCE))


def _amount(value, *, voucher: Voucher, label: str) -> Decimal:
    try:
        return q2(value)
    except MoneyError as exc:
        raise VoucherValidationError(
            ErrorKind.AMBIGUOUS_ENTRY,
            f"{voucher.voucher_number}: invalid {label} {value!r}",
        ) from exc


def _check_ledgers(voucher: Voucher, entries) -> None:
    for entry in entries:
        ledger = entry.ledger if entry.ledger_id else None
        if ledger is None:
            raise VoucherValidationError(
                ErrorKind.MISSING_LEDGER,
                f"{voucher.voucher_number}: entry #{entry.line_order} has no ledger",
            )
        if not ledger.is_active:
            raise VoucherValidationError(
                ErrorKind.MISSING_LEDGER,
                f"{voucher.voucher_number}: ledger {ledger.code} is inactive",
            )


def _check_entries(voucher: Voucher, entries) -> List[NormalizedEntry]:
    normalized: List[NormalizedEntry] = []

    for entry in entries:
        debit = _amount(entry.debit_amount, voucher=voucher, label="debit")
        credit = _amount(entry.credit_amount, voucher=voucher, label="credit")

        if debit < 0 or credit < 0:
            raise VoucherValidationError(
                ErrorKind.AMBIGUOUS_ENTRY,
                f"{voucher.voucher_number}: ledger {entry.ledger.code} has a negative amount",
            )
        if debit > 0 and credit > 0:
            raise VoucherValidationError(
                ErrorKind.AMBIGUOUS_ENTRY,
                f"{voucher.voucher_number}: ledger {entry.ledger.code} has both debit and credit",
            )
        if debit == 0 and credit == 0:
            raise VoucherValidationError(
                ErrorKind.AMBIGUOUS_ENTRY,
                f"{voucher.voucher_number}: ledger {entry.ledger.code} has neither debit nor credit",
            )

        normalized.append(
            NormalizedEntry(ledger=entry.ledger, debit=debit, credit=credit, line_order=entry.line_order)
        )

    return normalized


def _check_balance(voucher: Voucher, normalized: List[NormalizedEntry], tolerance: Decimal) -> None:
    if not normalized:
        raise VoucherValidationError(
            ErrorKind.UNBALANCED,
            f"{voucher.voucher_number}: voucher has no ledger entries",
        )

    total_debit = sum((e.debit for e in normalized), ZERO)
    total_credit = sum((e.credit for e in normalized), ZERO)

    if abs(total_debit - total_credit) > tolerance:
        raise VoucherValidationError(
            ErrorKind.UNBALANCED,
            f"{voucher.voucher_number}: not balanced (debit={total_debit} credit={total_credit})",
        )


def _expected_supply(voucher: Voucher) -> str | None:
    if not (voucher.supplier_state or "").strip() or not (voucher.place_of_supply or "").strip():
        return None
    return INTRA if is_intrastate(voucher.supplier_state, voucher.place_of_supply) else INTER


def _check_line_taxes(voucher: Voucher, tolerance: Decimal) -> None:
    # One supply type per voucher: every taxed line agrees, and agrees with the
    # header states when both are set
    voucher_supply = _expected_supply(voucher)
    expected_from_headers = voucher_supply is not None

    for index, line in enumerate(voucher.line_items.all(), start=1):
        intra = (line.cgst_amount or ZERO) > 0 or (line.sgst_amount or ZERO) > 0
        inter = (line.igst_amount or ZERO) > 0

        if intra and inter:
            raise VoucherValidationError(
                ErrorKind.INVALID_LINE_TAX,
                f"{voucher.voucher_number}: line {index} carries both CGST/SGST and IGST",
            )

        supply = INTRA if intra else INTER if inter else None
        if supply is not None:
            if voucher_supply is None:
                voucher_supply = supply
            elif supply != voucher_supply:
                where = "the voucher states" if expected_from_headers else "earlier lines"
                raise VoucherValidationError(
                    ErrorKind.INVALID_LINE_TAX,
                    f"{voucher.voucher_number}: line {index} is taxed as {supply} supply but {where} say {voucher_supply}",
                )

        expected = (
            q2(line.taxable_amount)
            + q2(line.cgst_amount)
            + q2(line.sgst_amount)
            + q2(line.igst_amount)
            + q2(line.cess_amount)
        )
        if abs(q2(line.total_amount) - expected) > tolerance:
            raise VoucherValidationError(
                ErrorKind.INVALID_LINE_TAX,
                f"{voucher.voucher_number}: line {index} total {line.total_amount} != {expected}",
            )


def validate_voucher(voucher: Voucher) -> List[NormalizedEntry]:
    tolerance = balance_tolerance()
    entries = list(voucher.entries.select_related("ledger", "ledger__group").order_by("line_order", "id"))

    _check_ledgers(voucher, entries)
    normalized = _check_entries(voucher, entries)
    _check_balance(voucher, normalized, tolerance)
    _check_line_taxes(voucher, tolerance)

    return [e for e in normalized if e.debit or e.credit]
