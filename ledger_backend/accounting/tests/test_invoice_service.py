# accounting/tests/test_invoice_service.py

from __future__ import annotations

from datetime import date

from django.test import TestCase, override_settings

from accounting.models import Ledger, LedgerGroup, Voucher
from accounting.services.exceptions import ErrorKind, LedgerSetupError, VoucherValidationError
from accounting.services.invoice_service import create_invoice_voucher
from accounting.services.ledger_resolver import get_ledger
from accounting.services.ledger_setup import seed_standard_ledgers
from accounting.tests.helpers import D, GSTIN_KA, GSTIN_MH, balance_of

WIDGETS = [{"description": "Widget", "hsn_code": "8471", "quantity": 2, "rate": "500", "gst_rate": 18}]


def _amounts(voucher):
    """{ledger code: (debit, credit)} for a voucher's entries."""
    return {
        e.ledger.code: (e.debit_amount, e.credit_amount)
        for e in voucher.entries.select_related("ledger")
    }


@override_settings(GST_HOME_STATE="27", GST_ROUND_OFF_UNIT=D("0.01"))
class InvoiceServiceTests(TestCase):
    def setUp(self):
        seed_standard_ledgers()
        debtors = LedgerGroup.objects.get(code="DEBTORS")
        creditors = LedgerGroup.objects.get(code="CREDITORS")

        self.local_customer = Ledger.objects.create(group=debtors, code="C-MH", name="Pune Traders", gstin=GSTIN_MH)
        self.outstation_customer = Ledger.objects.create(
            group=debtors, code="C-KA", name="Bengaluru Stores", gstin=GSTIN_KA
        )
        self.outstation_supplier = Ledger.objects.create(
            group=creditors, code="S-KA", name="Mysore Supplies", gstin=GSTIN_KA
        )

    def test_intrastate_sale_splits_cgst_sgst(self):
        voucher = create_invoice_voucher(
            voucher_type=Voucher.SALES,
            date=date(2025, 5, 10),
            party_ledger=self.local_customer,
            lines=WIDGETS,
        )

        amounts = _amounts(voucher)
        self.assertEqual(voucher.status, Voucher.DRAFT)
        self.assertEqual(voucher.voucher_number, "SI/2025-26/00001")
        self.assertEqual(voucher.total_amount, D("1180.00"))
        self.assertEqual(voucher.supplier_state, "27")
        self.assertEqual(voucher.place_of_supply, "27")
        self.assertEqual(amounts["C-MH"], (D("1180.00"), D("0.00")))
        self.assertEqual(amounts["4000"], (D("0.00"), D("1000.00")))
        self.assertEqual(amounts["2110"], (D("0.00"), D("90.00")))
        self.assertEqual(amounts["2120"], (D("0.00"), D("90.00")))
        self.assertNotIn("2130", amounts)

        line = voucher.line_items.get()
        self.assertEqual(line.hsn_code, "8471")
        self.assertEqual(line.cgst_amount, D("90.00"))
        self.assertEqual(line.total_amount, D("1180.00"))

    def test_interstate_sale_posts_igst(self):
        voucher = create_invoice_voucher(
            voucher_type=Voucher.SALES,
            date=date(2025, 5, 10),
            party_ledger=self.outstation_customer,
            lines=WIDGETS,
            post=True,
        )

        self.assertEqual(voucher.status, Voucher.POSTED)
        self.assertEqual(balance_of(self.outstation_customer), D("1180.00"))
        self.assertEqual(balance_of(get_ledger("SALES")), D("1000.00"))
        self.assertEqual(balance_of(get_ledger("OUTPUT_IGST")), D("180.00"))
        self.assertEqual(balance_of(get_ledger("OUTPUT_CGST")), D("0.00"))

    def test_interstate_purchase_claims_input_igst(self):
        voucher = create_invoice_voucher(
            voucher_type=Voucher.PURCHASE,
            date=date(2025, 5, 10),
            party_ledger=self.outstation_supplier,
            lines=WIDGETS,
            post=True,
        )

        amounts = _amounts(voucher)
        self.assertEqual(voucher.voucher_number, "PI/2025-26/00001")
        self.assertEqual(voucher.supplier_state, "29")
        self.assertEqual(voucher.place_of_supply, "27")
        self.assertEqual(amounts["5000"], (D("1000.00"), D("0.00")))
        self.assertEqual(amounts["1430"], (D("180.00"), D("0.00")))
        self.assertEqual(amounts["S-KA"], (D("0.00"), D("1180.00")))
        self.assertEqual(balance_of(self.outstation_supplier), D("1180.00"))

    def test_credit_note_flips_the_sale(self):
        voucher = create_invoice_voucher(
            voucher_type=Voucher.CREDIT_NOTE,
            date=date(2025, 5, 20),
            party_ledger=self.outstation_customer,
            lines=WIDGETS,
        )

        amounts = _amounts(voucher)
        self.assertEqual(amounts["C-KA"], (D("0.00"), D("1180.00")))
        self.assertEqual(amounts["4000"], (D("1000.00"), D("0.00")))
        self.assertEqual(amounts["2130"], (D("180.00"), D("0.00")))

    @override_settings(GST_ROUND_OFF_UNIT=D("1"))
    def test_round_off_keeps_the_voucher_balanced(self):
        voucher = create_invoice_voucher(
            voucher_type=Voucher.SALES,
            date=date(2025, 5, 10),
            party_ledger=self.local_customer,
            lines=[{"quantity": 1, "rate": "99.99", "gst_rate": 18}],
            post=True,
        )

        amounts = _amounts(voucher)
        self.assertEqual(voucher.total_amount, D("118.00"))
        self.assertEqual(voucher.round_off, D("0.01"))
        self.assertEqual(amounts["6900"], (D("0.00"), D("0.01")))

        debit = sum(d for d, _ in amounts.values())
        credit = sum(c for _, c in amounts.values())
        self.assertEqual(debit, credit)

    @override_settings(GST_ROUND_OFF_UNIT=D("1"))
    def test_negative_round_off_on_purchase(self):
        # 100.40 + 18.07 = 118.47 -> 118.00
        voucher = create_invoice_voucher(
            voucher_type=Voucher.PURCHASE,
            date=date(2025, 5, 10),
            party_ledger=self.outstation_supplier,
            lines=[{"quantity": 1, "rate": "100.40", "gst_rate": 18}],
            post=True,
        )

        amounts = _amounts(voucher)
        self.assertEqual(voucher.round_off, D("-0.47"))
        self.assertEqual(amounts["6900"], (D("0.00"), D("0.47")))
        self.assertEqual(amounts["S-KA"], (D("0.00"), D("118.00")))

    def test_explicit_states_override_defaults(self):
        voucher = create_invoice_voucher(
            voucher_type=Voucher.SALES,
            date=date(2025, 5, 10),
            party_ledger=self.outstation_customer,
            lines=WIDGETS,
            supplier_state="Karnataka",
            place_of_supply="29",
        )

        self.assertIn("2110", _amounts(voucher))

    def test_invalid_line_rejected_without_writes(self):
        with self.assertRaises(VoucherValidationError) as ctx:
            create_invoice_voucher(
                voucher_type=Voucher.SALES,
                date=date(2025, 5, 10),
                party_ledger=self.local_customer,
                lines=[{"quantity": 1, "rate": 100, "gst_rate": 180}],
            )

        self.assertEqual(ctx.exception.kind, ErrorKind.INVALID_LINE_TAX)
        self.assertFalse(Voucher.objects.exists())

    def test_missing_standard_ledger(self):
        get_ledger("OUTPUT_IGST").delete()

        with self.assertRaises(LedgerSetupError):
            create_invoice_voucher(
                voucher_type=Voucher.SALES,
                date=date(2025, 5, 10),
                party_ledger=self.outstation_customer,
                lines=WIDGETS,
            )


class LedgerSetupTests(TestCase):
    def test_seeding_is_idempotent(self):
        first = seed_standard_ledgers()
        second = seed_standard_ledgers()

        self.assertEqual(first["groups_created"], 10)
        self.assertEqual(first["ledgers_created"], 17)
        self.assertEqual(second["groups_created"], 0)
        self.assertEqual(second["ledgers_created"], 0)
        self.assertEqual(Ledger.objects.count(), 17)

    @override_settings(ACCOUNTING_LEDGER_CODES={"SALES": "4100"})
    def test_ledger_code_override(self):
        seed_standard_ledgers()
        self.assertEqual(get_ledger("SALES").code, "4100")
