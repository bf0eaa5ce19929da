# accounting/tests/test_posting_engine.py

from __future__ import annotations

from datetime import date
from unittest import mock

from django.core.exceptions import ValidationError
from django.db import IntegrityError, OperationalError
from django.db.models import Sum
from django.test import TestCase, override_settings

from accounting.models import LedgerEntry, LedgerGroup, Posting, PostingHalt, Voucher
from accounting.services import posting_engine
from accounting.services.exceptions import (
    ConcurrencyConflictError,
    LedgerSetupError,
    PostingHaltedError,
    VoucherStateError,
)
from accounting.services.posting_engine import cancel_voucher, post_voucher, rebuild_ledger_balance
from accounting.services.posting_guard import halt_postings, resolve_halts
from accounting.services.trial_balance_service import TrialBalanceService
from accounting.services.voucher_service import financial_year_label, next_voucher_number, replace_draft_children
from accounting.tests.helpers import D, balance_of, draft_journal, entry, make_ledger


class PostingEngineTests(TestCase):
    def setUp(self):
        self.cash = make_ledger("1000", "Cash", LedgerGroup.ASSET, opening="500.00")
        self.bank = make_ledger("1010", "Bank", LedgerGroup.ASSET)
        self.sales = make_ledger("4000", "Sales", LedgerGroup.INCOME)
        self.rent = make_ledger("6100", "Rent", LedgerGroup.EXPENSE)

    def _sale(self, amount="100.00", **kwargs):
        return draft_journal([entry(self.cash, debit=amount), entry(self.sales, credit=amount)], **kwargs)

    # --------------------------------------------------
    # Posting
    # --------------------------------------------------

    def test_post_updates_balances_and_writes_postings(self):
        voucher = post_voucher(self._sale("100.00"))

        self.assertEqual(voucher.status, Voucher.POSTED)
        self.assertIsNotNone(voucher.posted_at)
        self.assertEqual(voucher.total_amount, D("100.00"))

        self.assertEqual(balance_of(self.cash), D("600.00"))
        self.assertEqual(balance_of(self.sales), D("100.00"))
        self.assertEqual(self.sales.balance_type, "Cr")

        postings = Posting.objects.filter(voucher=voucher)
        totals = postings.aggregate(d=Sum("debit"), c=Sum("credit"))
        self.assertEqual(postings.count(), 2)
        self.assertEqual(totals["d"], totals["c"])
        self.assertTrue(all(p.date == voucher.date for p in postings))

    def test_balance_can_cross_to_the_other_side(self):
        post_voucher(draft_journal([entry(self.rent, debit="800"), entry(self.cash, credit="800")]))

        self.assertEqual(balance_of(self.cash), D("-300.00"))
        self.assertEqual(self.cash.balance_type, "Cr")
        self.assertEqual(self.cash.balance_magnitude, D("300.00"))

    def test_same_ledger_twice_in_one_voucher(self):
        voucher = draft_journal(
            [
                entry(self.cash, debit="60"),
                entry(self.cash, debit="40"),
                entry(self.sales, credit="100"),
            ]
        )
        post_voucher(voucher)

        self.assertEqual(balance_of(self.cash), D("600.00"))
        self.assertEqual(Posting.objects.filter(ledger=self.cash).count(), 2)

    def test_posting_twice_is_rejected(self):
        voucher = post_voucher(self._sale())

        with self.assertRaises(VoucherStateError):
            post_voucher(voucher)
        self.assertEqual(balance_of(self.cash), D("600.00"))

    def test_failure_mid_apply_rolls_everything_back(self):
        voucher = self._sale("100.00")

        with mock.patch.object(Posting.objects, "bulk_create", side_effect=IntegrityError("boom")):
            with self.assertRaises(IntegrityError):
                post_voucher(voucher)

        voucher.refresh_from_db()
        self.assertEqual(voucher.status, Voucher.DRAFT)
        self.assertEqual(balance_of(self.cash), D("500.00"))
        self.assertEqual(balance_of(self.sales), D("0.00"))
        self.assertFalse(Posting.objects.exists())

    # --------------------------------------------------
    # Immutability
    # --------------------------------------------------

    def test_posted_voucher_is_frozen(self):
        voucher = post_voucher(self._sale())

        voucher.narration = "edited"
        with self.assertRaises(ValidationError):
            voucher.save()
        with self.assertRaises(ValidationError):
            voucher.delete()

        line = LedgerEntry.objects.filter(voucher=voucher).first()
        line.debit_amount = D("1.00")
        with self.assertRaises(ValidationError):
            line.save()

    def test_postings_are_append_only(self):
        post_voucher(self._sale())
        posting = Posting.objects.first()

        posting.debit = D("1.00")
        with self.assertRaises(ValidationError):
            posting.save()
        with self.assertRaises(ValidationError):
            posting.delete()

    def test_ledger_history_fields_frozen_after_posting(self):
        post_voucher(self._sale())
        self.cash.refresh_from_db()

        self.cash.opening_balance = D("1.00")
        with self.assertRaises(ValidationError):
            self.cash.save()

        self.cash.refresh_from_db()
        with self.assertRaises(ValidationError):
            self.cash.delete()

    def test_ledger_with_balance_cannot_be_deactivated(self):
        post_voucher(self._sale())
        self.sales.refresh_from_db()

        self.sales.is_active = False
        with self.assertRaises(ValidationError):
            self.sales.save()

    # --------------------------------------------------
    # Cancellation by reversal
    # --------------------------------------------------

    def test_cancel_restores_every_balance_exactly(self):
        before = {l.pk: balance_of(l) for l in (self.cash, self.bank, self.sales, self.rent)}

        voucher = post_voucher(
            draft_journal(
                [
                    entry(self.cash, debit="70.25"),
                    entry(self.bank, debit="29.75"),
                    entry(self.sales, credit="100.00"),
                ]
            )
        )
        reversal = cancel_voucher(voucher, reason="Duplicate entry", acknowledge_reversal=True)

        after = {l.pk: balance_of(l) for l in (self.cash, self.bank, self.sales, self.rent)}
        self.assertEqual(before, after)

        voucher.refresh_from_db()
        self.assertEqual(voucher.status, Voucher.CANCELLED)
        self.assertEqual(voucher.cancellation_reason, "Duplicate entry")
        self.assertIsNotNone(voucher.cancelled_at)

        self.assertEqual(reversal.status, Voucher.POSTED)
        self.assertEqual(reversal.reversal_of_id, voucher.pk)
        self.assertEqual(reversal.reference_number, voucher.voucher_number)
        self.assertEqual(reversal.date, voucher.date)

        # The original postings stay; the reversal adds the mirror image
        self.assertEqual(Posting.objects.filter(voucher=voucher).count(), 3)
        self.assertEqual(Posting.objects.filter(voucher=reversal).count(), 3)

    def test_cancel_requires_acknowledgement(self):
        voucher = post_voucher(self._sale())

        with self.assertRaises(VoucherStateError):
            cancel_voucher(voucher, reason="oops")

        voucher.refresh_from_db()
        self.assertEqual(voucher.status, Voucher.POSTED)
        self.assertEqual(balance_of(self.cash), D("600.00"))

    def test_cancel_requires_reason(self):
        voucher = post_voucher(self._sale())
        with self.assertRaises(VoucherStateError):
            cancel_voucher(voucher, reason="  ", acknowledge_reversal=True)

    def test_cannot_cancel_draft_twice_or_a_reversal(self):
        draft = self._sale()
        with self.assertRaises(VoucherStateError):
            cancel_voucher(draft, reason="x", acknowledge_reversal=True)

        voucher = post_voucher(self._sale())
        reversal = cancel_voucher(voucher, reason="x", acknowledge_reversal=True)

        with self.assertRaises(VoucherStateError):
            cancel_voucher(voucher, reason="again", acknowledge_reversal=True)
        with self.assertRaises(VoucherStateError):
            cancel_voucher(reversal, reason="undo", acknowledge_reversal=True)

    def test_reversal_can_be_dated_later(self):
        voucher = post_voucher(self._sale(on=date(2025, 5, 10)))
        reversal = cancel_voucher(
            voucher, reason="late", acknowledge_reversal=True, reversal_date=date(2025, 6, 1)
        )

        self.assertEqual(reversal.date, date(2025, 6, 1))
        self.assertTrue(Posting.objects.filter(voucher=reversal, date=date(2025, 6, 1)).exists())

    # --------------------------------------------------
    # Halts / concurrency
    # --------------------------------------------------

    def test_halt_blocks_posting_until_resolved(self):
        halt_postings(reason="manual investigation")
        voucher = self._sale()

        with self.assertRaises(PostingHaltedError):
            post_voucher(voucher)
        self.assertEqual(balance_of(self.cash), D("500.00"))

        self.assertEqual(resolve_halts(note="checked"), 1)
        self.assertEqual(post_voucher(voucher).status, Voucher.POSTED)

    def test_halt_is_idempotent(self):
        first = halt_postings(reason="a")
        second = halt_postings(reason="b")

        self.assertEqual(first.pk, second.pk)
        self.assertEqual(PostingHalt.objects.count(), 1)

    def test_resolve_requires_a_note(self):
        halt_postings(reason="a")
        with self.assertRaises(ValueError):
            resolve_halts(note="")

    @override_settings(ACCOUNTING_POSTING_MAX_RETRIES=3)
    def test_lock_conflict_is_retried_then_surfaced(self):
        voucher = self._sale()

        with mock.patch.object(posting_engine.time, "sleep"), mock.patch.object(
            posting_engine, "_post_locked", side_effect=OperationalError("database is locked")
        ) as post_locked:
            with self.assertRaises(ConcurrencyConflictError):
                post_voucher(voucher)

        self.assertEqual(post_locked.call_count, 3)
        voucher.refresh_from_db()
        self.assertEqual(voucher.status, Voucher.DRAFT)

    def test_lock_conflict_then_success(self):
        voucher = self._sale()
        real = posting_engine._post_locked
        calls = []

        def flaky(voucher_id):
            calls.append(voucher_id)
            if len(calls) == 1:
                raise OperationalError("could not obtain lock")
            return real(voucher_id)

        with mock.patch.object(posting_engine.time, "sleep"), mock.patch.object(
            posting_engine, "_post_locked", side_effect=flaky
        ):
            posted = post_voucher(voucher)

        self.assertEqual(len(calls), 2)
        self.assertEqual(posted.status, Voucher.POSTED)
        self.assertEqual(balance_of(self.cash), D("600.00"))

    # --------------------------------------------------
    # Cache rebuild
    # --------------------------------------------------

    def test_rebuild_repairs_drifted_cache(self):
        post_voucher(self._sale("100.00"))
        type(self.cash).objects.filter(pk=self.cash.pk).update(current_balance=D("1.00"))

        rebuilt = rebuild_ledger_balance(self.cash)

        self.assertEqual(rebuilt.amount, D("600.00"))
        self.assertEqual(balance_of(self.cash), D("600.00"))

    # --------------------------------------------------
    # Draft editing
    # --------------------------------------------------

    def test_draft_entries_can_be_replaced_before_posting(self):
        voucher = self._sale("100.00")

        replace_draft_children(
            voucher,
            entries=[entry(self.bank, debit="120.00"), entry(self.sales, credit="120.00")],
        )
        post_voucher(voucher)

        self.assertEqual(list(voucher.entries.values_list("ledger__code", flat=True)), ["1010", "4000"])
        self.assertEqual(balance_of(self.bank), D("120.00"))
        self.assertEqual(balance_of(self.cash), D("500.00"))

    def test_posted_voucher_children_cannot_be_replaced(self):
        voucher = post_voucher(self._sale("100.00"))

        with self.assertRaises(VoucherStateError):
            replace_draft_children(voucher, entries=[])

        self.assertEqual(voucher.entries.count(), 2)


class VoucherNumberingTests(TestCase):
    def setUp(self):
        self.cash = make_ledger("1000", "Cash", LedgerGroup.ASSET)
        self.sales = make_ledger("4000", "Sales", LedgerGroup.INCOME)

    def test_financial_year_starts_in_april(self):
        self.assertEqual(financial_year_label(date(2025, 4, 1)), "2025-26")
        self.assertEqual(financial_year_label(date(2026, 3, 31)), "2025-26")
        self.assertEqual(financial_year_label(date(2025, 3, 31)), "2024-25")

    def test_sequence_per_prefix_and_year(self):
        first = draft_journal([entry(self.cash, debit="1"), entry(self.sales, credit="1")])
        second = draft_journal([entry(self.cash, debit="1"), entry(self.sales, credit="1")])
        older = draft_journal(
            [entry(self.cash, debit="1"), entry(self.sales, credit="1")], on=date(2025, 2, 1)
        )

        self.assertEqual(first.voucher_number, "JV/2025-26/00001")
        self.assertEqual(second.voucher_number, "JV/2025-26/00002")
        self.assertEqual(older.voucher_number, "JV/2024-25/00001")
        self.assertEqual(next_voucher_number(Voucher.SALES, date(2025, 5, 1)), "SI/2025-26/00001")

    @override_settings(VOUCHER_NUMBER_PREFIXES={Voucher.JOURNAL: "JRN"})
    def test_prefix_override(self):
        self.assertEqual(next_voucher_number(Voucher.JOURNAL, date(2025, 5, 1)), "JRN/2025-26/00001")

    def test_explicit_number_is_kept(self):
        voucher = draft_journal(
            [entry(self.cash, debit="1"), entry(self.sales, credit="1")], voucher_number="MANUAL-1"
        )
        self.assertEqual(voucher.voucher_number, "MANUAL-1")


class RoundOffLegTests(TestCase):
    """
    GUARANTEES:
    - A difference inside the balance tolerance lands on the Round Off ledger
    - Stored postings balance exactly, so the trial balance never halts on it
    """

    def setUp(self):
        self.cash = make_ledger("1000", "Cash", LedgerGroup.ASSET)
        self.sales = make_ledger("4000", "Sales", LedgerGroup.INCOME)

    def _round_off(self):
        return make_ledger("6900", "Round Off", LedgerGroup.EXPENSE)

    def test_excess_debit_is_credited_to_round_off(self):
        round_off = self._round_off()

        voucher = post_voucher(draft_journal([entry(self.cash, debit="100.00"), entry(self.sales, credit="99.99")]))

        leg = voucher.entries.get(ledger=round_off)
        self.assertEqual((leg.debit_amount, leg.credit_amount), (D("0.00"), D("0.01")))
        self.assertEqual(balance_of(round_off), D("-0.01"))

        totals = Posting.objects.filter(voucher=voucher).aggregate(d=Sum("debit"), c=Sum("credit"))
        self.assertEqual(totals["d"], totals["c"])

        report = TrialBalanceService().generate(date(2025, 12, 31))
        self.assertEqual(report["totals"]["difference"], D("0.00"))
        self.assertTrue(report["totals"]["balanced"])
        self.assertFalse(PostingHalt.objects.exists())

        # Postings stay open for the next voucher
        post_voucher(draft_journal([entry(self.cash, debit="10.00"), entry(self.sales, credit="10.00")]))

    def test_excess_credit_is_debited_to_round_off(self):
        round_off = self._round_off()

        post_voucher(draft_journal([entry(self.cash, debit="99.99"), entry(self.sales, credit="100.00")]))

        self.assertEqual(balance_of(round_off), D("0.01"))
        self.assertEqual(balance_of(self.sales), D("100.00"))

    def test_reversal_also_reverses_round_off_leg(self):
        round_off = self._round_off()
        voucher = post_voucher(draft_journal([entry(self.cash, debit="100.00"), entry(self.sales, credit="99.99")]))

        cancel_voucher(voucher, reason="typo", acknowledge_reversal=True)

        self.assertEqual(balance_of(round_off), D("0.00"))
        self.assertEqual(balance_of(self.cash), D("0.00"))

    def test_missing_round_off_ledger_blocks_posting(self):
        voucher = draft_journal([entry(self.cash, debit="100.00"), entry(self.sales, credit="99.99")])

        with self.assertRaises(LedgerSetupError):
            post_voucher(voucher)

        voucher.refresh_from_db()
        self.assertEqual(voucher.status, Voucher.DRAFT)
        self.assertEqual(voucher.entries.count(), 2)
        self.assertFalse(Posting.objects.exists())
