# accounting/services/trial_balance_service.py

from __future__ import annotations

import logging
from datetime import date
from decimal import Decimal

from django.db.models import Q, Sum
from django.utils import timezone

from accounting.balance import DEBIT, from_totals, opening_balance_of
from accounting.models import Ledger, Posting
from accounting.money import ZERO, q2, to_minor_int
from accounting.services.exceptions import InvariantViolationError
from accounting.services.posting_guard import halt_postings

logger = logging.getLogger(__name__)


class TrialBalanceService:
    """
    Trial balance as of a date.

    Guarantees:
    - One row per ACTIVE ledger (zero balances included, side=None), plus
      inactive ledgers that still carry a balance
    - Each row is the same fold the statement uses (opening + postings <= as_of)
    - The column difference is reported exactly, never rounded away
    - Opening balances are allowed not to balance; that part of the difference
      is reported as opening_difference. Any difference the postings cannot
      explain halts further postings.
    - Avoids N+1 queries by aggregating in bulk
    """

    def __init__(self, ledger_model=Ledger, posting_model=Posting):
        self.Ledger = ledger_model
        self.Posting = posting_model

    def _movement_totals(self, as_of: date) -> dict:
        rows = (
            self.Posting.objects.filter(date__lte=as_of)
            .values("ledger_id")
            .annotate(debit=Sum("debit"), credit=Sum("credit"))
        )
        return {r["ledger_id"]: (q2(r["debit"] or ZERO), q2(r["credit"] or ZERO)) for r in rows}

    def generate(self, as_of_date: date | None = None, *, record_halt: bool = True) -> dict:
        as_of = as_of_date or timezone.localdate()
        movements = self._movement_totals(as_of)

        ledgers = list(
            self.Ledger.objects.select_related("group")
            .filter(Q(is_active=True) | Q(pk__in=list(movements.keys())) | ~Q(opening_balance=0))
            .order_by("code")
        )

        rows = []
        total_debit = ZERO
        total_credit = ZERO
        opening_difference = ZERO

        for ledger in ledgers:
            nature = ledger.nature
            debit_total, credit_total = movements.get(ledger.pk, (ZERO, ZERO))
            balance = from_totals(nature, ledger.opening_balance, debit_total, credit_total)
            opening_difference += opening_balance_of(nature, ledger.opening_balance).net_debit

            if not ledger.is_active and balance.is_zero:
                continue

            debit = balance.amount if balance.side == DEBIT else ZERO
            credit = balance.amount if balance.side != DEBIT else ZERO
            total_debit += debit
            total_credit += credit

            rows.append(
                {
                    "ledger_id": ledger.pk,
                    "code": ledger.code,
                    "name": ledger.name,
                    "group": ledger.group.name,
                    "nature": nature,
                    "debit": debit,
                    "credit": credit,
                    "side": None if balance.is_zero else balance.side,
                    "debit_minor": to_minor_int(debit),
                    "credit_minor": to_minor_int(credit),
                }
            )

        difference = total_debit - total_credit
        posting_difference = difference - opening_difference

        report = {
            "as_of_date": as_of,
            "rows": rows,
            "totals": {
                "debit": total_debit,
                "credit": total_credit,
                "difference": difference,
                "opening_difference": opening_difference,
                "posting_difference": posting_difference,
                "debit_minor": to_minor_int(total_debit),
                "credit_minor": to_minor_int(total_credit),
                "balanced": difference == ZERO,
            },
        }

        if posting_difference != ZERO:
            logger.error(
                "Trial balance mismatch",
                extra={
                    "as_of_date": as_of.isoformat(),
                    "total_debit": str(total_debit),
                    "total_credit": str(total_credit),
                    "posting_difference": str(posting_difference),
                },
            )
            if record_halt:
                halt_postings(
                    reason=f"Trial balance as of {as_of} is off by {posting_difference}",
                    as_of_date=as_of,
                    total_debit=total_debit,
                    total_credit=total_credit,
                    difference=posting_difference,
                )
        elif difference != ZERO:
            logger.warning(
                "Opening balances do not balance",
                extra={"as_of_date": as_of.isoformat(), "opening_difference": str(opening_difference)},
            )

        return report


def verify_trial_balance(as_of_date: date | None = None) -> dict:
    """
    Raises:
        InvariantViolationError when postings no longer balance (a halt is recorded).
    """
    report = TrialBalanceService().generate(as_of_date)
    posting_difference: Decimal = report["totals"]["posting_difference"]

    if posting_difference != ZERO:
        raise InvariantViolationError(
            f"Trial balance as of {report['as_of_date']} is off by {posting_difference}; postings halted"
        )
    return report
