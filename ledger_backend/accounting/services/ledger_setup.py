# accounting/services/ledger_setup.py

"""
STANDARD GST LEDGER SET

Groups and ledgers every GST invoicing book needs. Seeding is idempotent:
existing rows are matched by code and only renamed / re-activated.
Nature and group of a ledger that already has postings are never touched.
"""

from __future__ import annotations

import logging

from django.db import transaction

from accounting.models import Ledger, LedgerGroup
from accounting.services.ledger_resolver import ledger_codes

logger = logging.getLogger(__name__)

STANDARD_GROUPS = [
    ("CASH", "Cash-in-Hand", LedgerGroup.ASSET),
    ("BANK", "Bank Accounts", LedgerGroup.ASSET),
    ("DEBTORS", "Sundry Debtors", LedgerGroup.ASSET),
    ("GST_INPUT", "GST Input Credit", LedgerGroup.ASSET),
    ("CREDITORS", "Sundry Creditors", LedgerGroup.LIABILITY),
    ("DUTIES", "Duties & Taxes", LedgerGroup.LIABILITY),
    ("CAPITAL", "Capital Account", LedgerGroup.EQUITY),
    ("SALES", "Sales Accounts", LedgerGroup.INCOME),
    ("PURCHASE", "Purchase Accounts", LedgerGroup.EXPENSE),
    ("INDIRECT_EXP", "Indirect Expenses", LedgerGroup.EXPENSE),
]

# (semantic key, name, group code)
STANDARD_LEDGERS = [
    ("CASH", "Cash", "CASH"),
    ("BANK", "Bank", "BANK"),
    ("SUNDRY_DEBTORS", "Sundry Debtors", "DEBTORS"),
    ("INPUT_CGST", "Input CGST", "GST_INPUT"),
    ("INPUT_SGST", "Input SGST", "GST_INPUT"),
    ("INPUT_IGST", "Input IGST", "GST_INPUT"),
    ("INPUT_CESS", "Input Cess", "GST_INPUT"),
    ("SUNDRY_CREDITORS", "Sundry Creditors", "CREDITORS"),
    ("OUTPUT_CGST", "Output CGST", "DUTIES"),
    ("OUTPUT_SGST", "Output SGST", "DUTIES"),
    ("OUTPUT_IGST", "Output IGST", "DUTIES"),
    ("OUTPUT_CESS", "Output Cess", "DUTIES"),
    ("TDS_PAYABLE", "TDS Payable", "DUTIES"),
    ("CAPITAL", "Capital", "CAPITAL"),
    ("SALES", "Sales", "SALES"),
    ("PURCHASE", "Purchase", "PURCHASE"),
    ("ROUND_OFF", "Round Off", "INDIRECT_EXP"),
]


@transaction.atomic
def seed_standard_ledgers() -> dict:
    """
    Returns {"groups_created": int, "ledgers_created": int, "ledgers_updated": int}.
    """
    groups = {}
    groups_created = 0
    for code, name, nature in STANDARD_GROUPS:
        group, created = LedgerGroup.objects.get_or_create(code=code, defaults={"name": name, "nature": nature})
        groups_created += int(created)
        groups[code] = group

    codes = ledger_codes()
    ledgers_created = 0
    ledgers_updated = 0

    for key, name, group_code in STANDARD_LEDGERS:
        ledger, created = Ledger.objects.get_or_create(
            code=codes[key],
            defaults={"name": name, "group": groups[group_code]},
        )
        if created:
            ledgers_created += 1
            continue

        if ledger.name != name or not ledger.is_active:
            ledger.name = name
            ledger.is_active = True
            ledger.save()
            ledgers_updated += 1

    logger.info(
        "Standard GST ledgers seeded",
        extra={"groups_created": groups_created, "ledgers_created": ledgers_created, "ledgers_updated": ledgers_updated},
    )
    return {
        "groups_created": groups_created,
        "ledgers_created": ledgers_created,
        "ledgers_updated": ledgers_updated,
    }
