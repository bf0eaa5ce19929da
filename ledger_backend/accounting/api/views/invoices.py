# accounting/api/views/invoices.py

"""
PATH: accounting/api/views/invoices.py

GST INVOICE API

POST /api/accounting/invoices/
- Validates request shape via serializer
- Splits tax per line and builds the Sales / Purchase / Credit Note /
  Debit Note draft through the invoice posting rules
- Posts immediately when "post": true

Security:
- accounting.add_voucher to draft; accounting.add_posting to post
"""

from django.core.exceptions import ValidationError as DjangoValidationError
from drf_spectacular.utils import extend_schema
from rest_framework import status
from rest_framework.generics import GenericAPIView
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from accounting.amount_words import amount_in_words
from accounting.api.serializers import InvoiceCreateSerializer, VoucherSerializer
from accounting.api.views.errors import as_drf_validation_error, forbidden, service_error_response
from accounting.models import Voucher
from accounting.services.exceptions import AccountingServiceError
from accounting.services.invoice_service import create_invoice_voucher


class InvoiceCreateView(GenericAPIView):
    permission_classes = [IsAuthenticated]
    serializer_class = InvoiceCreateSerializer

    @extend_schema(
        tags=["accounting"],
        request=InvoiceCreateSerializer,
        responses={201: VoucherSerializer, 400: dict, 403: dict},
    )
    def post(self, request, *args, **kwargs):
        if not request.user.has_perm("accounting.add_voucher"):
            return forbidden("You do not have permission to create invoices.")

        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = dict(serializer.validated_data)

        if data.get("post") and not request.user.has_perm("accounting.add_posting"):
            return forbidden("You do not have permission to post vouchers.")

        try:
            voucher = create_invoice_voucher(**data)
        except AccountingServiceError as exc:
            return service_error_response(exc)
        except DjangoValidationError as exc:
            raise as_drf_validation_error(exc) from exc

        voucher = (
            Voucher.objects.prefetch_related("entries__ledger", "line_items").get(pk=voucher.pk)
        )
        payload = VoucherSerializer(voucher).data
        payload["amount_in_words"] = amount_in_words(voucher.total_amount)

        return Response(payload, status=status.HTTP_201_CREATED)
