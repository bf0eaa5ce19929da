# accounting/services/posting_guard.py

"""
======================================================
PATH: accounting/services/posting_guard.py
======================================================
POSTING HALT GUARD

Purpose:
- Block ALL postings once the ledger set is known to be inconsistent
  (trial balance does not balance).
- Keep the halt until an operator resolves it explicitly.

Design:
- Thin, reusable guard
- Called by the posting engine (choke-point) before any lock is taken
"""

from __future__ import annotations

import logging
from datetime import date
from decimal import Decimal

from django.db import transaction
from django.utils import timezone

from accounting.models import PostingHalt
from accounting.services.exceptions import PostingHaltedError

logger = logging.getLogger(__name__)


def active_halt() -> PostingHalt | None:
    return PostingHalt.objects.filter(resolved_at__isnull=True).order_by("created_at", "id").first()


def assert_postings_open() -> None:
    """
    Raises:
        PostingHaltedError if an unresolved posting halt exists.
    """
    halt = active_halt()
    if halt is not None:
        raise PostingHaltedError(
            f"Postings are halted since {halt.created_at:%Y-%m-%d %H:%M}: {halt.reason}"
        )


@transaction.atomic
def halt_postings(
    *,
    reason: str,
    as_of_date: date | None = None,
    total_debit: Decimal = Decimal("0.00"),
    total_credit: Decimal = Decimal("0.00"),
    difference: Decimal = Decimal("0.00"),
) -> PostingHalt:
    """
    Record a posting halt. Idempotent: an existing unresolved halt is returned
    as-is instead of stacking a second one.
    """
    existing = active_halt()
    if existing is not None:
        return existing

    halt = PostingHalt.objects.create(
        reason=reason,
        as_of_date=as_of_date,
        total_debit=total_debit,
        total_credit=total_credit,
        difference=difference,
    )
    logger.error(
        "Postings halted",
        extra={"halt_id": halt.pk, "reason": reason, "difference": str(difference)},
    )
    return halt


@transaction.atomic
def resolve_halts(*, note: str) -> int:
    note = (note or "").strip()
    if not note:
        raise ValueError("A resolution note is required to lift a posting halt")

    count = PostingHalt.objects.filter(resolved_at__isnull=True).update(
        resolved_at=timezone.now(),
        resolution_note=note,
    )
    if count:
        logger.warning("Posting halts resolved", extra={"count": count, "note": note})
    return count
