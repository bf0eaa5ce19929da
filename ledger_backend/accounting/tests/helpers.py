# accounting/tests/helpers.py

from __future__ import annotations

from datetime import date
from decimal import Decimal

from accounting.models import Ledger, LedgerGroup, Voucher
from accounting.services.voucher_service import create_draft_voucher

# Valid GSTINs (check character verified): Maharashtra and Karnataka
GSTIN_MH = "27AAPFU0939F1ZV"
GSTIN_KA = "29AAPFU0939F1ZR"

D = Decimal


def make_group(code: str, nature: str, name: str | None = None) -> LedgerGroup:
    group, _ = LedgerGroup.objects.get_or_create(
        code=code,
        defaults={"name": name or code.title(), "nature": nature},
    )
    return group


def make_ledger(code: str, name: str, nature: str, *, opening="0.00", **extra) -> Ledger:
    group = make_group(f"G-{nature}", nature)
    return Ledger.objects.create(
        group=group,
        code=code,
        name=name,
        opening_balance=D(opening),
        **extra,
    )


def entry(ledger: Ledger, *, debit="0.00", credit="0.00") -> dict:
    return {"ledger": ledger, "debit_amount": D(debit), "credit_amount": D(credit)}


def draft_journal(entries, *, on: date | None = None, **kwargs) -> Voucher:
    return create_draft_voucher(
        voucher_type=kwargs.pop("voucher_type", Voucher.JOURNAL),
        date=on or date(2025, 5, 10),
        entries=entries,
        **kwargs,
    )


def balance_of(ledger: Ledger) -> Decimal:
    ledger.refresh_from_db()
    return ledger.current_balance
