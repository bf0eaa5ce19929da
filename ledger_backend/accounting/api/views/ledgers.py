# accounting/api/views/ledgers.py

"""
PATH: accounting/api/views/ledgers.py

LEDGER MASTER DATA API

GET/POST        /api/accounting/ledger-groups/
GET/POST        /api/accounting/ledgers/
GET/PATCH       /api/accounting/ledgers/<id>/
DELETE          /api/accounting/ledgers/<id>/            (only without postings)
GET             /api/accounting/ledgers/<id>/statement/?from_date=&to_date=

Security:
- Read requires accounting.view_ledger
- Writes require accounting.add_ledger / change_ledger / delete_ledger
- Statements require accounting.view_posting
"""

from __future__ import annotations

from django.core.exceptions import ValidationError as DjangoValidationError
from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.exceptions import PermissionDenied
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from accounting.api.serializers import DateRangeQuerySerializer, LedgerGroupSerializer, LedgerSerializer
from accounting.api.views.errors import as_drf_validation_error, forbidden, service_error_response
from accounting.models import Ledger, LedgerGroup
from accounting.services.exceptions import AccountingServiceError
from accounting.services.statement_service import build_statement

ACTION_PERMISSIONS = {
    "list": "view",
    "retrieve": "view",
    "create": "add",
    "update": "change",
    "partial_update": "change",
    "destroy": "delete",
}


class _PermissionGatedViewSet(viewsets.ModelViewSet):
    permission_classes = [IsAuthenticated]
    http_method_names = ["get", "post", "patch", "delete", "head", "options"]
    model_name = ""

    def check_permissions(self, request):
        super().check_permissions(request)
        verb = ACTION_PERMISSIONS.get(self.action)
        if verb and not request.user.has_perm(f"accounting.{verb}_{self.model_name}"):
            raise PermissionDenied(f"You do not have permission to {verb} {self.model_name}s.")

    def perform_create(self, serializer):
        try:
            serializer.save()
        except DjangoValidationError as exc:
            raise as_drf_validation_error(exc) from exc

    def perform_update(self, serializer):
        try:
            serializer.save()
        except DjangoValidationError as exc:
            raise as_drf_validation_error(exc) from exc

    def perform_destroy(self, instance):
        try:
            instance.delete()
        except DjangoValidationError as exc:
            raise as_drf_validation_error(exc) from exc


@extend_schema(tags=["accounting"])
class LedgerGroupViewSet(_PermissionGatedViewSet):
    serializer_class = LedgerGroupSerializer
    queryset = LedgerGroup.objects.all().order_by("code")
    filterset_fields = ["nature"]
    http_method_names = ["get", "post", "patch", "head", "options"]
    model_name = "ledgergroup"


@extend_schema(tags=["accounting"])
class LedgerViewSet(_PermissionGatedViewSet):
    serializer_class = LedgerSerializer
    queryset = Ledger.objects.select_related("group").order_by("code")
    filterset_fields = ["group", "is_active", "state_code"]
    model_name = "ledger"

    @extend_schema(
        tags=["accounting"],
        parameters=[
            OpenApiParameter(name="from_date", type=str, location=OpenApiParameter.QUERY, required=False),
            OpenApiParameter(name="to_date", type=str, location=OpenApiParameter.QUERY, required=False),
        ],
        responses={200: dict},
    )
    @action(detail=True, methods=["get"])
    def statement(self, request, pk=None):
        if not request.user.has_perm("accounting.view_posting"):
            return forbidden("You do not have permission to view ledger statements.")

        ledger = self.get_object()

        query = DateRangeQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)

        try:
            data = build_statement(
                ledger.pk,
                from_date=query.validated_data["from_date"],
                to_date=query.validated_data["to_date"],
            )
        except AccountingServiceError as exc:
            return service_error_response(exc)

        return Response(data, status=status.HTTP_200_OK)
