# accounting/api/views/vouchers.py

"""
PATH: accounting/api/views/vouchers.py

VOUCHER API

GET/POST  /api/accounting/vouchers/                 list / create draft (optionally post)
GET       /api/accounting/vouchers/<id>/
DELETE    /api/accounting/vouchers/<id>/            drafts only
POST      /api/accounting/vouchers/<id>/post/
POST      /api/accounting/vouchers/<id>/cancel/     {reason, acknowledge_reversal}

Security:
- Read requires accounting.view_voucher
- Draft create / delete requires accounting.add_voucher / delete_voucher
- Post / cancel requires accounting.add_posting

Drafts are never edited in place through this API; delete and recreate instead.
"""

from __future__ import annotations

from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import transaction
from drf_spectacular.utils import extend_schema
from rest_framework import mixins, status, viewsets
from rest_framework.decorators import action
from rest_framework.exceptions import PermissionDenied
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from accounting.api.serializers import VoucherCancelSerializer, VoucherCreateSerializer, VoucherSerializer
from accounting.api.views.errors import as_drf_validation_error, forbidden, service_error_response
from accounting.models import Voucher
from accounting.services.exceptions import AccountingServiceError
from accounting.services.posting_engine import cancel_voucher, post_voucher
from accounting.services.voucher_service import create_draft_voucher

POSTING_PERMISSION = "accounting.add_posting"

ACTION_PERMISSIONS = {
    "list": "accounting.view_voucher",
    "retrieve": "accounting.view_voucher",
    "create": "accounting.add_voucher",
    "destroy": "accounting.delete_voucher",
}


@extend_schema(tags=["accounting"])
class VoucherViewSet(
    mixins.ListModelMixin,
    mixins.RetrieveModelMixin,
    mixins.DestroyModelMixin,
    viewsets.GenericViewSet,
):
    permission_classes = [IsAuthenticated]
    serializer_class = VoucherSerializer
    queryset = (
        Voucher.objects.select_related("party_ledger", "reversal_of")
        .prefetch_related("entries__ledger", "line_items")
        .order_by("-date", "-id")
    )
    filterset_fields = ["voucher_type", "status", "date", "party_ledger"]

    def check_permissions(self, request):
        super().check_permissions(request)
        perm = ACTION_PERMISSIONS.get(self.action)
        if perm and not request.user.has_perm(perm):
            raise PermissionDenied("You do not have permission to access vouchers.")

    @extend_schema(tags=["accounting"], request=VoucherCreateSerializer, responses={201: VoucherSerializer})
    def create(self, request, *args, **kwargs):
        serializer = VoucherCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = dict(serializer.validated_data)
        post = data.pop("post", False)

        if post and not request.user.has_perm(POSTING_PERMISSION):
            return forbidden("You do not have permission to post vouchers.")

        try:
            with transaction.atomic():
                voucher = create_draft_voucher(**data)
                if post:
                    voucher = post_voucher(voucher)
        except AccountingServiceError as exc:
            return service_error_response(exc)
        except DjangoValidationError as exc:
            raise as_drf_validation_error(exc) from exc

        return Response(VoucherSerializer(self._reload(voucher)).data, status=status.HTTP_201_CREATED)

    def perform_destroy(self, instance):
        try:
            instance.delete()
        except DjangoValidationError as exc:
            raise as_drf_validation_error(exc) from exc

    def _reload(self, voucher: Voucher) -> Voucher:
        return self.get_queryset().get(pk=voucher.pk)

    @extend_schema(tags=["accounting"], request=None, responses={200: VoucherSerializer})
    @action(detail=True, methods=["post"], url_path="post")
    def post_draft(self, request, pk=None):
        if not request.user.has_perm(POSTING_PERMISSION):
            return forbidden("You do not have permission to post vouchers.")

        voucher = self.get_object()
        try:
            voucher = post_voucher(voucher)
        except AccountingServiceError as exc:
            return service_error_response(exc)

        return Response(VoucherSerializer(self._reload(voucher)).data, status=status.HTTP_200_OK)

    @extend_schema(tags=["accounting"], request=VoucherCancelSerializer, responses={200: VoucherSerializer})
    @action(detail=True, methods=["post"])
    def cancel(self, request, pk=None):
        if not request.user.has_perm(POSTING_PERMISSION):
            return forbidden("You do not have permission to cancel vouchers.")

        voucher = self.get_object()
        serializer = VoucherCancelSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            reversal = cancel_voucher(
                voucher,
                reason=serializer.validated_data["reason"],
                acknowledge_reversal=serializer.validated_data["acknowledge_reversal"],
                reversal_date=serializer.validated_data["reversal_date"],
            )
        except AccountingServiceError as exc:
            return service_error_response(exc)

        return Response(
            {
                "cancelled": VoucherSerializer(self._reload(voucher)).data,
                "reversal": VoucherSerializer(self._reload(reversal)).data,
            },
            status=status.HTTP_200_OK,
        )
