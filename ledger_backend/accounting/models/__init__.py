# accounting/models/__init__.py

"""
ACCOUNTING MODELS PACKAGE EXPORTS

Note:
- Keep this file *imports-only* (no business logic).
- Do NOT import services from models anywhere (models must stay pure).
"""

from accounting.models.group import LedgerGroup
from accounting.models.halt import PostingHalt
from accounting.models.ledger import Ledger
from accounting.models.posting import Posting
from accounting.models.voucher import LedgerEntry, LineItem, Voucher

__all__ = [
    "LedgerGroup",
    "Ledger",
    "Voucher",
    "LedgerEntry",
    "LineItem",
    "Posting",
    "PostingHalt",
]
