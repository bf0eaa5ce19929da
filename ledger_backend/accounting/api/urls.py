# accounting/api/urls.py

from django.urls import include, path
from rest_framework.routers import DefaultRouter

from accounting.api.views.invoices import InvoiceCreateView
from accounting.api.views.ledgers import LedgerGroupViewSet, LedgerViewSet
from accounting.api.views.reports import AmountInWordsView, ProfitAndLossView, TrialBalanceView
from accounting.api.views.vouchers import VoucherViewSet

router = DefaultRouter()
router.register("ledger-groups", LedgerGroupViewSet, basename="ledger-group")
router.register("ledgers", LedgerViewSet, basename="ledger")
router.register("vouchers", VoucherViewSet, basename="voucher")

urlpatterns = [
    # Router endpoints
    path("", include(router.urls)),
    # Documents
    path("invoices/", InvoiceCreateView.as_view(), name="invoices"),
    # Reports
    path("trial-balance/", TrialBalanceView.as_view(), name="trial-balance"),
    path("profit-and-loss/", ProfitAndLossView.as_view(), name="profit-and-loss"),
    path("amount-in-words/", AmountInWordsView.as_view(), name="amount-in-words"),
]
