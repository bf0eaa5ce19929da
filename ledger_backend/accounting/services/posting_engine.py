# accounting/services/posting_engine.py

"""
======================================================
PATH: accounting/services/posting_engine.py
======================================================
POSTING ENGINE (ACCOUNTING ENGINE)

This module is the ONLY place allowed to:
- Move a voucher out of draft (posted / cancelled)
- Create Posting rows
- Write Ledger.current_balance
- Guarantee atomicity of a posting

Guarantees:
- Validation runs first; its failure propagates untouched and nothing is written
- A difference inside the balance tolerance is booked to the Round Off ledger as
  its own entry, so stored postings always balance exactly
- Every affected ledger row is locked (select_for_update, ascending id) before
  any balance is touched, so concurrent postings to overlapping ledgers serialize
- Either every entry is applied and the voucher is marked posted, or nothing is
- Cancellation never edits a posted voucher: it posts an equal-and-opposite
  reversing voucher and only then flags the original as cancelled
- Lock / serialization failures are retried, then surfaced as ConcurrencyConflictError
"""

from __future__ import annotations

import logging
import time
from collections import defaultdict
from datetime import date
from decimal import Decimal
from typing import Callable, Dict, List, TypeVar

from django.conf import settings
from django.db import OperationalError, transaction
from django.db.models import Sum
from django.utils import timezone

from accounting.balance import Balance, apply_movement, from_signed, from_totals
from accounting.models import Ledger, LedgerEntry, LineItem, Posting, Voucher
from accounting.money import ZERO, q2
from accounting.services.exceptions import ConcurrencyConflictError, VoucherStateError
from accounting.services.ledger_resolver import get_ledger
from accounting.services.posting_guard import assert_postings_open
from accounting.services.voucher_service import LINE_FIELDS, next_voucher_number
from accounting.services.voucher_validator import NormalizedEntry, validate_voucher

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_MAX_RETRIES = 3
RETRY_BACKOFF_SECONDS = 0.05


def _max_attempts() -> int:
    return max(1, int(getattr(settings, "ACCOUNTING_POSTING_MAX_RETRIES", DEFAULT_MAX_RETRIES)))


def _with_retries(operation: Callable[[], T], *, label: str) -> T:
    attempts = _max_attempts()
    last_error: OperationalError | None = None

    for attempt in range(1, attempts + 1):
        try:
            return operation()
        except OperationalError as exc:
            last_error = exc
            logger.warning(
                "Ledger lock conflict",
                extra={"operation": label, "attempt": attempt, "max_attempts": attempts, "error": str(exc)},
            )
            if attempt < attempts:
                time.sleep(RETRY_BACKOFF_SECONDS * attempt)

    raise ConcurrencyConflictError(
        f"{label}: ledgers stayed locked after {attempts} attempt(s)"
    ) from last_error


# --------------------------------------------------
# Core apply step (must run inside transaction.atomic)
# --------------------------------------------------


def _lock_ledgers(ledger_ids) -> Dict[int, Ledger]:
    # Ascending id order is the global lock order
    locked = Ledger.objects.select_for_update().filter(pk__in=sorted(ledger_ids)).order_by("pk")
    return {ledger.pk: ledger for ledger in locked}


def _apply_entries(voucher: Voucher, normalized: List[NormalizedEntry]) -> None:
    natures = {e.ledger.pk: e.ledger.nature for e in normalized}
    locked = _lock_ledgers(natures.keys())

    movements: Dict[int, List[Decimal]] = defaultdict(lambda: [ZERO, ZERO])
    for entry in normalized:
        movements[entry.ledger.pk][0] += entry.debit
        movements[entry.ledger.pk][1] += entry.credit

    now = timezone.now()
    for ledger_id in sorted(movements):
        nature = natures[ledger_id]
        debit, credit = movements[ledger_id]

        current = from_signed(locked[ledger_id].current_balance, nature)
        updated = apply_movement(current, nature, debit, credit)

        Ledger.objects.filter(pk=ledger_id).update(
            current_balance=updated.signed(nature),
            updated_at=now,
        )

    Posting.objects.bulk_create(
        [
            Posting(
                ledger_id=entry.ledger.pk,
                voucher=voucher,
                date=voucher.date,
                debit=entry.debit,
                credit=entry.credit,
            )
            for entry in normalized
        ]
    )


def _balance_with_round_off(voucher: Voucher, normalized: List[NormalizedEntry]) -> List[NormalizedEntry]:
    """
    A difference the validator tolerated is posted to the Round Off ledger as
    its own leg, so stored postings always balance to the paisa.
    """
    difference = sum((e.debit for e in normalized), ZERO) - sum((e.credit for e in normalized), ZERO)
    if difference == ZERO:
        return normalized

    ledger = get_ledger("ROUND_OFF")
    debit = -difference if difference < ZERO else ZERO
    credit = difference if difference > ZERO else ZERO
    line_order = max(e.line_order for e in normalized) + 1

    LedgerEntry.objects.create(
        voucher=voucher,
        ledger=ledger,
        debit_amount=debit,
        credit_amount=credit,
        line_order=line_order,
    )
    logger.info(
        "Voucher difference posted to round off",
        extra={"voucher_number": voucher.voucher_number, "difference": str(difference), "ledger": ledger.code},
    )
    return [*normalized, NormalizedEntry(ledger=ledger, debit=debit, credit=credit, line_order=line_order)]


def _post_locked(voucher_id: int) -> Voucher:
    with transaction.atomic():
        voucher = Voucher.objects.select_for_update().get(pk=voucher_id)

        if voucher.status != Voucher.DRAFT:
            raise VoucherStateError(
                f"Voucher {voucher.voucher_number} is {voucher.status}; only drafts can be posted"
            )

        normalized = validate_voucher(voucher)
        normalized = _balance_with_round_off(voucher, normalized)
        _apply_entries(voucher, normalized)

        total_debit = sum((e.debit for e in normalized), ZERO)
        Voucher.objects.filter(pk=voucher.pk).update(
            status=Voucher.POSTED,
            posted_at=timezone.now(),
            total_amount=voucher.total_amount if voucher.total_amount > 0 else total_debit,
        )

    voucher.refresh_from_db()
    return voucher


# --------------------------------------------------
# Public API
# --------------------------------------------------


def post_voucher(voucher: Voucher) -> Voucher:
    """
    Validate and post a draft voucher.

    Raises:
        PostingHaltedError, VoucherStateError, VoucherValidationError,
        ConcurrencyConflictError
    """
    assert_postings_open()

    posted = _with_retries(lambda: _post_locked(voucher.pk), label=f"post {voucher.voucher_number}")

    logger.info(
        "Voucher posted",
        extra={
            "voucher_id": posted.pk,
            "voucher_number": posted.voucher_number,
            "voucher_type": posted.voucher_type,
            "total_amount": str(posted.total_amount),
        },
    )
    return posted


def _create_reversal(original: Voucher, *, reason: str, reversal_date: date) -> Voucher:
    reversal = Voucher.objects.create(
        voucher_type=original.voucher_type,
        voucher_number=next_voucher_number(original.voucher_type, reversal_date),
        date=reversal_date,
        narration=f"Reversal of {original.voucher_number}: {reason}",
        reference_number=original.voucher_number,
        party_ledger_id=original.party_ledger_id,
        supplier_state=original.supplier_state,
        place_of_supply=original.place_of_supply,
        total_amount=original.total_amount,
        round_off=original.round_off,
        reversal_of=original,
    )

    LedgerEntry.objects.bulk_create(
        [
            LedgerEntry(
                voucher=reversal,
                ledger_id=entry.ledger_id,
                debit_amount=entry.credit_amount,
                credit_amount=entry.debit_amount,
                line_order=entry.line_order,
            )
            for entry in original.entries.all()
        ]
    )

    LineItem.objects.bulk_create(
        [
            LineItem(
                voucher=reversal,
                line_order=line.line_order,
                **{field: getattr(line, field) for field in LINE_FIELDS},
            )
            for line in original.line_items.all()
        ]
    )

    return reversal


def _cancel_locked(voucher_id: int, *, reason: str, reversal_date: date | None) -> Voucher:
    with transaction.atomic():
        original = Voucher.objects.select_for_update().get(pk=voucher_id)

        if original.status != Voucher.POSTED:
            raise VoucherStateError(
                f"Voucher {original.voucher_number} is {original.status}; only posted vouchers can be cancelled"
            )
        if original.reversal_of_id:
            raise VoucherStateError(
                f"Voucher {original.voucher_number} is itself a reversal and cannot be cancelled"
            )
        if Voucher.objects.filter(reversal_of_id=original.pk).exists():
            raise VoucherStateError(f"Voucher {original.voucher_number} has already been reversed")

        reversal = _create_reversal(original, reason=reason, reversal_date=reversal_date or original.date)
        reversal = _post_locked(reversal.pk)

        Voucher.objects.filter(pk=original.pk).update(
            status=Voucher.CANCELLED,
            cancelled_at=timezone.now(),
            cancellation_reason=reason,
        )

    return reversal


def cancel_voucher(
    voucher: Voucher,
    *,
    reason: str,
    acknowledge_reversal: bool = False,
    reversal_date: date | None = None,
) -> Voucher:
    """
    Cancel a posted voucher by posting its reversing voucher.

    The caller must pass acknowledge_reversal=True: a cancellation changes
    ledger balances and is never performed implicitly.

    Returns the posted reversing voucher.
    """
    if not acknowledge_reversal:
        raise VoucherStateError(
            "Cancelling a posted voucher posts a reversing voucher; pass acknowledge_reversal=True to confirm"
        )

    reason = (reason or "").strip()
    if not reason:
        raise VoucherStateError("A cancellation reason is required")

    assert_postings_open()

    reversal = _with_retries(
        lambda: _cancel_locked(voucher.pk, reason=reason, reversal_date=reversal_date),
        label=f"cancel {voucher.voucher_number}",
    )

    logger.info(
        "Voucher cancelled by reversal",
        extra={
            "voucher_id": voucher.pk,
            "voucher_number": voucher.voucher_number,
            "reversal_id": reversal.pk,
            "reversal_number": reversal.voucher_number,
            "reason": reason,
        },
    )
    return reversal


@transaction.atomic
def rebuild_ledger_balance(ledger: Ledger) -> Balance:
    """
    Recompute a ledger's cached balance from its posting history.

    Returns the rebuilt balance; logs when the cache had drifted.
    """
    locked = Ledger.objects.select_for_update().get(pk=ledger.pk)
    nature = ledger.group.balance_nature

    totals = Posting.objects.filter(ledger_id=locked.pk).aggregate(debit=Sum("debit"), credit=Sum("credit"))
    rebuilt = from_totals(nature, locked.opening_balance, totals["debit"] or ZERO, totals["credit"] or ZERO)

    signed = rebuilt.signed(nature)
    if q2(locked.current_balance) != signed:
        logger.warning(
            "Ledger balance drift repaired",
            extra={"ledger": locked.code, "cached": str(locked.current_balance), "rebuilt": str(signed)},
        )
        Ledger.objects.filter(pk=locked.pk).update(current_balance=signed, updated_at=timezone.now())

    return rebuilt
