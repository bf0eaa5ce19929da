# accounting/services/profit_and_loss_service.py

"""
PROFIT & LOSS SERVICE (INCOME STATEMENT)

Read-only aggregation over immutable postings.

Contract:
{
  "from_date": date | None,
  "to_date": date,
  "income": [{ledger_id, code, name, amount}],
  "expenses": [{ledger_id, code, name, amount}],
  "total_income": Decimal,
  "total_expenses": Decimal,
  "net_profit": Decimal,
  "net_profit_minor": int
}

Key rules:
- Uses Posting.date as the accounting effective date
- Income = credits - debits on INCOME ledgers; expenses = debits - credits
  on EXPENSE ledgers (opening balances are not period movements)
"""

from __future__ import annotations

from datetime import date

from django.db.models import Sum
from django.utils import timezone

from accounting.models import LedgerGroup, Posting
from accounting.money import ZERO, q2, to_minor_int
from accounting.services.exceptions import StatementError


def profit_and_loss(from_date: date | None = None, to_date: date | None = None) -> dict:
    to_date = to_date or timezone.localdate()
    if from_date is not None and from_date > to_date:
        raise StatementError("from_date cannot be after to_date")

    qs = Posting.objects.filter(
        date__lte=to_date,
        ledger__group__nature__in=(LedgerGroup.INCOME, LedgerGroup.EXPENSE),
    )
    if from_date is not None:
        qs = qs.filter(date__gte=from_date)

    rows = (
        qs.values("ledger_id", "ledger__code", "ledger__name", "ledger__group__nature")
        .annotate(debit=Sum("debit"), credit=Sum("credit"))
        .order_by("ledger__code")
    )

    income = []
    expenses = []
    for r in rows:
        debit = q2(r["debit"] or ZERO)
        credit = q2(r["credit"] or ZERO)
        line = {"ledger_id": r["ledger_id"], "code": r["ledger__code"], "name": r["ledger__name"]}

        if r["ledger__group__nature"] == LedgerGroup.INCOME:
            income.append({**line, "amount": credit - debit})
        else:
            expenses.append({**line, "amount": debit - credit})

    total_income = sum((i["amount"] for i in income), ZERO)
    total_expenses = sum((e["amount"] for e in expenses), ZERO)
    net_profit = total_income - total_expenses

    return {
        "from_date": from_date,
        "to_date": to_date,
        "income": income,
        "expenses": expenses,
        "total_income": total_income,
        "total_expenses": total_expenses,
        "net_profit": net_profit,
        "net_profit_minor": to_minor_int(net_profit),
    }
