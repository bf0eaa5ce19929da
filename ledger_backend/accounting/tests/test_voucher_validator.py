# accounting/tests/test_voucher_validator.py

from __future__ import annotations

from django.test import TestCase

from accounting.models import LedgerGroup, Posting, Voucher
from accounting.services.exceptions import ErrorKind, VoucherValidationError
from accounting.services.posting_engine import post_voucher
from accounting.services.voucher_validator import validate_voucher
from accounting.tests.helpers import D, draft_journal, entry, make_ledger


class VoucherValidatorTests(TestCase):
    """
    GUARANTEES:
    - Each failure surfaces with its own ErrorKind
    - Validation never writes (no postings, voucher stays draft)
    """

    def setUp(self):
        self.cash = make_ledger("1000", "Cash", LedgerGroup.ASSET)
        self.sales = make_ledger("4000", "Sales", LedgerGroup.INCOME)

    def _assert_kind(self, voucher, kind):
        with self.assertRaises(VoucherValidationError) as ctx:
            validate_voucher(voucher)
        self.assertEqual(ctx.exception.kind, kind)
        return ctx.exception

    def test_balanced_voucher_passes(self):
        voucher = draft_journal([entry(self.cash, debit="100"), entry(self.sales, credit="100")])

        normalized = validate_voucher(voucher)

        self.assertEqual(len(normalized), 2)
        self.assertEqual(normalized[0].debit, D("100.00"))
        self.assertEqual(normalized[1].credit, D("100.00"))

    def test_debit_and_credit_on_one_entry_is_ambiguous(self):
        voucher = draft_journal(
            [entry(self.cash, debit="50", credit="50"), entry(self.sales, credit="50")]
        )
        exc = self._assert_kind(voucher, ErrorKind.AMBIGUOUS_ENTRY)
        self.assertEqual(exc.code, "ambiguous_entry")

    def test_entry_without_amount_is_ambiguous(self):
        voucher = draft_journal([entry(self.cash), entry(self.sales, credit="10"), entry(self.cash, debit="10")])
        self._assert_kind(voucher, ErrorKind.AMBIGUOUS_ENTRY)

    def test_negative_amount_is_ambiguous(self):
        voucher = draft_journal([entry(self.cash, debit="-10"), entry(self.sales, debit="10")])
        self._assert_kind(voucher, ErrorKind.AMBIGUOUS_ENTRY)

    def test_unbalanced_voucher_rejected(self):
        voucher = draft_journal([entry(self.cash, debit="100"), entry(self.sales, credit="99")])
        self._assert_kind(voucher, ErrorKind.UNBALANCED)

    def test_difference_within_tolerance_accepted(self):
        voucher = draft_journal([entry(self.cash, debit="100.00"), entry(self.sales, credit="99.99")])
        self.assertEqual(len(validate_voucher(voucher)), 2)

    def test_empty_voucher_is_unbalanced(self):
        voucher = draft_journal([])
        self._assert_kind(voucher, ErrorKind.UNBALANCED)

    def test_inactive_ledger_is_missing(self):
        self.sales.is_active = False
        self.sales.save()

        voucher = draft_journal([entry(self.cash, debit="10"), entry(self.sales, credit="10")])
        self._assert_kind(voucher, ErrorKind.MISSING_LEDGER)

    def test_missing_ledger_is_checked_before_amounts(self):
        self.sales.is_active = False
        self.sales.save()

        voucher = draft_journal([entry(self.cash, debit="10", credit="5"), entry(self.sales, credit="10")])
        self._assert_kind(voucher, ErrorKind.MISSING_LEDGER)

    def test_line_mixing_cgst_and_igst_rejected(self):
        voucher = draft_journal(
            [entry(self.cash, debit="1180"), entry(self.sales, credit="1180")],
            voucher_type=Voucher.SALES,
            line_items=[
                {
                    "quantity": D("1"),
                    "rate": D("1000"),
                    "taxable_amount": D("1000"),
                    "gst_rate": D("18"),
                    "cgst_amount": D("90"),
                    "igst_amount": D("90"),
                    "total_amount": D("1180"),
                }
            ],
        )
        self._assert_kind(voucher, ErrorKind.INVALID_LINE_TAX)

    def _line(self, *, cgst="0", sgst="0", igst="0"):
        taxes = D(cgst) + D(sgst) + D(igst)
        return {
            "quantity": D("1"),
            "rate": D("100"),
            "taxable_amount": D("100"),
            "gst_rate": D("18"),
            "cgst_amount": D(cgst),
            "sgst_amount": D(sgst),
            "igst_amount": D(igst),
            "total_amount": D("100") + taxes,
        }

    def test_lines_disagreeing_on_supply_type_rejected(self):
        voucher = draft_journal(
            [entry(self.cash, debit="236"), entry(self.sales, credit="236")],
            voucher_type=Voucher.SALES,
            supplier_state="27",
            place_of_supply="27",
            line_items=[self._line(cgst="9", sgst="9"), self._line(igst="18")],
        )
        exc = self._assert_kind(voucher, ErrorKind.INVALID_LINE_TAX)
        self.assertIn("line 2", str(exc))

    def test_mixed_lines_rejected_without_voucher_states(self):
        voucher = draft_journal(
            [entry(self.cash, debit="236"), entry(self.sales, credit="236")],
            voucher_type=Voucher.SALES,
            line_items=[self._line(igst="18"), self._line(cgst="9", sgst="9")],
        )
        self._assert_kind(voucher, ErrorKind.INVALID_LINE_TAX)

    def test_lines_must_match_voucher_states(self):
        voucher = draft_journal(
            [entry(self.cash, debit="118"), entry(self.sales, credit="118")],
            voucher_type=Voucher.SALES,
            supplier_state="Maharashtra",
            place_of_supply="27",
            line_items=[self._line(igst="18")],
        )
        self._assert_kind(voucher, ErrorKind.INVALID_LINE_TAX)

    def test_matching_inter_state_lines_pass(self):
        voucher = draft_journal(
            [entry(self.cash, debit="236"), entry(self.sales, credit="236")],
            voucher_type=Voucher.SALES,
            supplier_state="27",
            place_of_supply="29",
            line_items=[self._line(igst="18"), self._line(igst="18")],
        )
        self.assertEqual(len(validate_voucher(voucher)), 2)

    def test_line_total_must_match_taxable_plus_tax(self):
        voucher = draft_journal(
            [entry(self.cash, debit="1000"), entry(self.sales, credit="1000")],
            voucher_type=Voucher.SALES,
            line_items=[
                {
                    "quantity": D("1"),
                    "rate": D("1000"),
                    "taxable_amount": D("1000"),
                    "gst_rate": D("18"),
                    "cgst_amount": D("90"),
                    "sgst_amount": D("90"),
                    "total_amount": D("1000"),
                }
            ],
        )
        self._assert_kind(voucher, ErrorKind.INVALID_LINE_TAX)

    def test_failed_post_writes_nothing(self):
        voucher = draft_journal([entry(self.cash, debit="100"), entry(self.sales, credit="99")])

        with self.assertRaises(VoucherValidationError):
            post_voucher(voucher)

        voucher.refresh_from_db()
        self.cash.refresh_from_db()
        self.assertEqual(voucher.status, Voucher.DRAFT)
        self.assertEqual(self.cash.current_balance, D("0.00"))
        self.assertFalse(Posting.objects.exists())
