# accounting/services/ledger_resolver.py

"""
LEDGER RESOLVER (AUTHORITATIVE)

This module answers ONE question:
"Which ledger should be used for this purpose?"

Semantic keys ("SALES", "OUTPUT_CGST", ...) map to ledger codes. The map can
be overridden per deployment with the ACCOUNTING_LEDGER_CODES setting.

Design goals:
- deterministic
- hard-fail on missing setup (so we don't post to wrong ledgers)
"""

from __future__ import annotations

from django.conf import settings

from accounting.models import Ledger
from accounting.services.exceptions import LedgerSetupError

DEFAULT_CODES = {
    "CASH": "1000",
    "BANK": "1010",
    "SUNDRY_DEBTORS": "1200",
    "INPUT_CGST": "1410",
    "INPUT_SGST": "1420",
    "INPUT_IGST": "1430",
    "INPUT_CESS": "1440",
    "SUNDRY_CREDITORS": "2000",
    "OUTPUT_CGST": "2110",
    "OUTPUT_SGST": "2120",
    "OUTPUT_IGST": "2130",
    "OUTPUT_CESS": "2140",
    "TDS_PAYABLE": "2200",
    "CAPITAL": "3000",
    "SALES": "4000",
    "PURCHASE": "5000",
    "ROUND_OFF": "6900",
}


def ledger_codes() -> dict:
    overrides = getattr(settings, "ACCOUNTING_LEDGER_CODES", None) or {}
    return {**DEFAULT_CODES, **overrides}


def resolve_code(semantic_key: str) -> str:
    key = (semantic_key or "").strip().upper()
    if not key:
        raise LedgerSetupError("semantic_key is required")

    code = ledger_codes().get(key)
    if not code:
        raise LedgerSetupError(f"No ledger code configured for '{key}'")
    return code


def get_ledger(semantic_key: str) -> Ledger:
    code = resolve_code(semantic_key)

    ledger = Ledger.objects.select_related("group").filter(code=code).first()
    if ledger is None:
        raise LedgerSetupError(
            f"Ledger '{code}' ({semantic_key}) does not exist. Run `manage.py seed_gst_ledgers`."
        )
    if not ledger.is_active:
        raise LedgerSetupError(f"Ledger '{code}' ({semantic_key}) is inactive")
    return ledger
