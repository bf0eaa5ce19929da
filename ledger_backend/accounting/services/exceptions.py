"""
ACCOUNTING SERVICE ERRORS

Centralized domain errors for accounting services.
"""

from __future__ import annotations

from enum import Enum


class ErrorKind(str, Enum):
    MISSING_LEDGER = "missing_ledger"
    AMBIGUOUS_ENTRY = "ambiguous_entry"
    UNBALANCED = "unbalanced"
    INVALID_LINE_TAX = "invalid_line_tax"


class AccountingServiceError(Exception):
    """Base exception for all accounting service failures."""


class VoucherValidationError(AccountingServiceError):
    """Raised when a voucher fails validation. Nothing has been written."""

    def __init__(self, kind: ErrorKind, message: str):
        super().__init__(message)
        self.kind = kind

    @property
    def code(self) -> str:
        return self.kind.value


class ConcurrencyConflictError(AccountingServiceError):
    """Raised when ledger rows stay locked after every retry."""


class InvariantViolationError(AccountingServiceError):
    """Raised when the trial balance (or another ledger invariant) is broken."""


class PostingHaltedError(InvariantViolationError):
    """Raised when postings are blocked by an unresolved posting halt."""


class VoucherStateError(AccountingServiceError):
    """Raised on an illegal voucher lifecycle transition."""


class LedgerSetupError(AccountingServiceError):
    """Raised when an expected ledger cannot be resolved or edited."""


class StatementError(AccountingServiceError):
    """Raised on invalid statement / report parameters."""
