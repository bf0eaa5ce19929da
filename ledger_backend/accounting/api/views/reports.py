# accounting/api/views/reports.py

"""
PATH: accounting/api/views/reports.py

READ-ONLY REPORT VIEWS

GET /api/accounting/trial-balance/?as_of_date=YYYY-MM-DD
GET /api/accounting/profit-and-loss/?from_date=&to_date=
GET /api/accounting/amount-in-words/?amount=

Security:
- Trial balance / P&L require accounting.view_posting
- Amount in words is a pure formatter (authenticated only)
"""

from __future__ import annotations

from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework import status
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from accounting.amount_words import amount_in_words
from accounting.api.serializers import (
    AmountInWordsQuerySerializer,
    DateRangeQuerySerializer,
    TrialBalanceQuerySerializer,
)
from accounting.api.views.errors import forbidden, service_error_response
from accounting.services.exceptions import AccountingServiceError
from accounting.services.profit_and_loss_service import profit_and_loss
from accounting.services.trial_balance_service import TrialBalanceService

REPORT_PERMISSION = "accounting.view_posting"


@extend_schema(
    tags=["accounting"],
    parameters=[
        OpenApiParameter(
            name="as_of_date",
            type=str,
            location=OpenApiParameter.QUERY,
            required=False,
            description="Snapshot date (YYYY-MM-DD). Defaults to today.",
        ),
    ],
    responses={200: dict},
)
class TrialBalanceView(APIView):
    permission_classes = [IsAuthenticated]

    def get(self, request):
        if not request.user.has_perm(REPORT_PERMISSION):
            return forbidden("You do not have permission to view trial balance.")

        query = TrialBalanceQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)

        data = TrialBalanceService().generate(query.validated_data["as_of_date"])
        return Response(data, status=status.HTTP_200_OK)


@extend_schema(
    tags=["accounting"],
    parameters=[
        OpenApiParameter(name="from_date", type=str, location=OpenApiParameter.QUERY, required=False),
        OpenApiParameter(name="to_date", type=str, location=OpenApiParameter.QUERY, required=False),
    ],
    responses={200: dict},
)
class ProfitAndLossView(APIView):
    permission_classes = [IsAuthenticated]

    def get(self, request):
        if not request.user.has_perm(REPORT_PERMISSION):
            return forbidden("You do not have permission to view profit and loss.")

        query = DateRangeQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)

        try:
            data = profit_and_loss(query.validated_data["from_date"], query.validated_data["to_date"])
        except AccountingServiceError as exc:
            return service_error_response(exc)

        return Response(data, status=status.HTTP_200_OK)


@extend_schema(
    tags=["accounting"],
    parameters=[
        OpenApiParameter(name="amount", type=str, location=OpenApiParameter.QUERY, required=True),
    ],
    responses={200: dict},
)
class AmountInWordsView(APIView):
    permission_classes = [IsAuthenticated]

    def get(self, request):
        query = AmountInWordsQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)

        amount = query.validated_data["amount"]
        return Response(
            {"amount": amount, "words": amount_in_words(amount)},
            status=status.HTTP_200_OK,
        )
