# accounting/api/serializers/__init__.py

from accounting.api.serializers.invoices import InvoiceCreateSerializer, InvoiceLineSerializer
from accounting.api.serializers.ledgers import LedgerGroupSerializer, LedgerSerializer
from accounting.api.serializers.reports import (
    AmountInWordsQuerySerializer,
    DateRangeQuerySerializer,
    TrialBalanceQuerySerializer,
)
from accounting.api.serializers.vouchers import (
    LedgerEntrySerializer,
    LineItemSerializer,
    VoucherCancelSerializer,
    VoucherCreateSerializer,
    VoucherSerializer,
)

__all__ = [
    "LedgerGroupSerializer",
    "LedgerSerializer",
    "LedgerEntrySerializer",
    "LineItemSerializer",
    "VoucherSerializer",
    "VoucherCreateSerializer",
    "VoucherCancelSerializer",
    "InvoiceCreateSerializer",
    "InvoiceLineSerializer",
    "DateRangeQuerySerializer",
    "TrialBalanceQuerySerializer",
    "AmountInWordsQuerySerializer",
]
