# accounting/api/views/errors.py

"""
SERVICE ERROR -> HTTP MAPPING

- VoucherValidationError          -> 400 (with the ErrorKind code)
- LedgerSetupError / StatementError -> 400
- VoucherStateError / ConcurrencyConflictError -> 409
- PostingHaltedError / InvariantViolationError -> 423
- django ValidationError (model guards) -> 400
"""

from __future__ import annotations

from django.core.exceptions import ValidationError as DjangoValidationError
from rest_framework import serializers, status
from rest_framework.response import Response

from accounting.services.exceptions import (
    AccountingServiceError,
    ConcurrencyConflictError,
    InvariantViolationError,
    VoucherStateError,
    VoucherValidationError,
)


def service_error_response(exc: AccountingServiceError) -> Response:
    if isinstance(exc, VoucherValidationError):
        return Response({"detail": str(exc), "code": exc.code}, status=status.HTTP_400_BAD_REQUEST)

    if isinstance(exc, InvariantViolationError):
        return Response({"detail": str(exc), "code": "postings_halted"}, status=status.HTTP_423_LOCKED)

    if isinstance(exc, ConcurrencyConflictError):
        return Response({"detail": str(exc), "code": "concurrency_conflict"}, status=status.HTTP_409_CONFLICT)

    if isinstance(exc, VoucherStateError):
        return Response({"detail": str(exc), "code": "invalid_state"}, status=status.HTTP_409_CONFLICT)

    return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)


def as_drf_validation_error(exc: DjangoValidationError) -> serializers.ValidationError:
    if hasattr(exc, "message_dict"):
        return serializers.ValidationError(exc.message_dict)
    return serializers.ValidationError({"detail": exc.messages})


def forbidden(message: str) -> Response:
    return Response({"detail": message}, status=status.HTTP_403_FORBIDDEN)
