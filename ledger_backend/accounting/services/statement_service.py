# accounting/services/statement_service.py

"""
LEDGER STATEMENT SERVICE (AUTHORITATIVE)

Read-only replay of a ledger's posting history.

RULES:
- READ-ONLY: no writes, ever
- Posting is the single source of truth (never Ledger.current_balance)
- Timeline is Posting.date, ties broken by insertion order (id)
- The opening balance applies from the beginning of history; postings dated
  before opening_balance_date are NOT excluded
- Period opening = opening balance + every posting before from_date
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal

from django.db.models import Sum
from django.utils import timezone

from accounting.balance import Balance, apply_movement, from_totals
from accounting.models import Ledger, Posting
from accounting.money import ZERO, q2, to_minor_int
from accounting.services.exceptions import StatementError


def _totals(qs) -> tuple[Decimal, Decimal]:
    agg = qs.aggregate(debit=Sum("debit"), credit=Sum("credit"))
    return q2(agg["debit"] or ZERO), q2(agg["credit"] or ZERO)


def balance_as_of(ledger: Ledger, as_of: date | None = None) -> Balance:
    """
    Closing balance of a ledger after every posting dated on or before as_of
    (all postings when as_of is None).
    """
    qs = Posting.objects.filter(ledger_id=ledger.pk)
    if as_of is not None:
        qs = qs.filter(date__lte=as_of)

    debit, credit = _totals(qs)
    return from_totals(ledger.nature, ledger.opening_balance, debit, credit)


def build_statement(ledger_id, from_date: date | None = None, to_date: date | None = None) -> dict:
    """
    Build a period statement for one ledger.

    Returns:
    {
      "ledger": {...},
      "from_date": date | None,
      "to_date": date,
      "rows": [{date, voucher_id, voucher_number, voucher_type, narration,
                debit, credit, running_balance, running_side}],
      "summary": {opening_balance, opening_side, total_debit, total_credit,
                  closing_balance, closing_side, transaction_count}
    }

    running_balance is signed per the ledger's nature (positive = normal side);
    summary amounts are magnitudes with explicit sides.
    """
    ledger = Ledger.objects.select_related("group").filter(pk=ledger_id).first()
    if ledger is None:
        raise StatementError(f"Ledger {ledger_id} does not exist")

    to_date = to_date or timezone.localdate()
    if from_date is not None and from_date > to_date:
        raise StatementError("from_date cannot be after to_date")

    nature = ledger.nature
    history = Posting.objects.filter(ledger_id=ledger.pk)

    if from_date is not None:
        before_debit, before_credit = _totals(history.filter(date__lt=from_date))
    else:
        before_debit, before_credit = ZERO, ZERO
    opening = from_totals(nature, ledger.opening_balance, before_debit, before_credit)

    period = history.filter(date__lte=to_date)
    if from_date is not None:
        period = period.filter(date__gte=from_date)
    period = period.select_related("voucher").order_by("date", "id")

    running = opening
    total_debit = ZERO
    total_credit = ZERO
    rows = []

    for posting in period:
        running = apply_movement(running, nature, posting.debit, posting.credit)
        total_debit += posting.debit
        total_credit += posting.credit

        rows.append(
            {
                "date": posting.date,
                "voucher_id": posting.voucher_id,
                "voucher_number": posting.voucher.voucher_number,
                "voucher_type": posting.voucher.voucher_type,
                "narration": posting.voucher.narration,
                "debit": q2(posting.debit),
                "credit": q2(posting.credit),
                "running_balance": running.signed(nature),
                "running_side": running.side,
            }
        )

    return {
        "ledger": {
            "id": ledger.pk,
            "code": ledger.code,
            "name": ledger.name,
            "nature": nature,
        },
        "from_date": from_date,
        "to_date": to_date,
        "rows": rows,
        "summary": {
            "opening_balance": opening.amount,
            "opening_side": opening.side,
            "total_debit": q2(total_debit),
            "total_credit": q2(total_credit),
            "closing_balance": running.amount,
            "closing_side": running.side,
            "closing_balance_minor": to_minor_int(running.amount),
            "transaction_count": len(rows),
        },
    }
