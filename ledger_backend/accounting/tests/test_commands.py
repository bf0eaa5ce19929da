# accounting/tests/test_commands.py

from io import StringIO

from django.core.management import call_command
from django.core.management.base import CommandError
from django.test import TestCase

from accounting.models import Ledger, LedgerGroup, PostingHalt
from accounting.services.posting_engine import post_voucher
from accounting.services.posting_guard import active_halt, halt_postings
from accounting.tests.helpers import D, balance_of, draft_journal, entry, make_ledger


def _run(name, *args, **kwargs):
    out, err = StringIO(), StringIO()
    call_command(name, *args, stdout=out, stderr=err, **kwargs)
    return out.getvalue(), err.getvalue()


class SeedGstLedgersCommandTests(TestCase):
    def test_seed_reports_counts_and_is_idempotent(self):
        out, _ = _run("seed_gst_ledgers")
        self.assertIn("Groups created: 10, ledgers created: 17", out)

        out, _ = _run("seed_gst_ledgers")
        self.assertIn("Groups created: 0, ledgers created: 0", out)
        self.assertEqual(Ledger.objects.count(), 17)


class VerifyLedgerIntegrityCommandTests(TestCase):
    def setUp(self):
        self.cash = make_ledger("1000", "Cash", LedgerGroup.ASSET)
        self.sales = make_ledger("4000", "Sales", LedgerGroup.INCOME)
        post_voucher(draft_journal([entry(self.cash, debit="100.00"), entry(self.sales, credit="100.00")]))

    def _corrupt_cash(self):
        Ledger.objects.filter(pk=self.cash.pk).update(current_balance=D("5.00"))

    def test_clean_books_pass(self):
        out, err = _run("verify_ledger_integrity", "--strict")

        self.assertIn("[OK] Cached ledger balances match posting history", out)
        self.assertIn("VALIDATION PASSED", out)
        self.assertEqual(err, "")

    def test_drift_fails_strict_run(self):
        self._corrupt_cash()

        with self.assertRaises(SystemExit):
            _run("verify_ledger_integrity", "--strict")

        self.assertEqual(balance_of(self.cash), D("5.00"))

    def test_drift_reported_without_strict(self):
        self._corrupt_cash()

        _, err = _run("verify_ledger_integrity")

        self.assertIn("[FAIL] 1000", err)

    def test_rebuild_repairs_drift(self):
        self._corrupt_cash()

        out, _ = _run("verify_ledger_integrity", "--rebuild", "--strict")

        self.assertIn("[FIXED] 1000", out)
        self.assertEqual(balance_of(self.cash), D("100.00"))

    def test_invalid_date_is_rejected(self):
        _, err = _run("verify_ledger_integrity", "--as-of", "31-05-2025")
        self.assertIn("Invalid --as-of date", err)


class ResolvePostingHaltCommandTests(TestCase):
    def test_no_active_halt(self):
        out, _ = _run("resolve_posting_halt", "--note", "nothing to do")
        self.assertIn("No active posting halt", out)

    def test_resolves_active_halt(self):
        halt_postings(reason="trial balance mismatch")

        out, _ = _run("resolve_posting_halt", "--note", "Corrected the manual SQL edit")

        self.assertIn("Resolved 1 halt(s)", out)
        self.assertIsNone(active_halt())
        self.assertEqual(
            PostingHalt.objects.get().resolution_note,
            "Corrected the manual SQL edit",
        )

    def test_blank_note_is_rejected(self):
        halt_postings(reason="trial balance mismatch")

        with self.assertRaises(CommandError):
            _run("resolve_posting_halt", "--note", "   ")

        self.assertIsNotNone(active_halt())
