# accounting/api/views/__init__.py

"""
accounting.api.views package

Expose public API views cleanly without making routing/imports fragile.

Important:
- Do NOT import accounting.api.urls from here to avoid circular imports.
"""

from accounting.api.views.invoices import InvoiceCreateView
from accounting.api.views.ledgers import LedgerGroupViewSet, LedgerViewSet
from accounting.api.views.reports import AmountInWordsView, ProfitAndLossView, TrialBalanceView
from accounting.api.views.vouchers import VoucherViewSet

__all__ = [
    "LedgerGroupViewSet",
    "LedgerViewSet",
    "VoucherViewSet",
    "InvoiceCreateView",
    "TrialBalanceView",
    "ProfitAndLossView",
    "AmountInWordsView",
]
