"""Billing ledger schemas: bills, line items, payments and audit results."""

from .bill import ALLOWED_TRANSITIONS, Bill, BillItem, derive_bill_status
from .common import (
    BillStatus,
    Patient,
    PaymentStatus,
    ValidationResult,
    ValidationSeverity,
    ValidationStatus,
    to_money,
)
from .payment import Payment
from .summary import LedgerSummary

__all__ = [
    # Common
    "BillStatus",
    "PaymentStatus",
    "Patient",
    "ValidationSeverity",
    "ValidationStatus",
    "ValidationResult",
    "to_money",
    # Bill
    "ALLOWED_TRANSITIONS",
    "Bill",
    "BillItem",
    "derive_bill_status",
    # Payment
    "Payment",
    # Output
    "LedgerSummary",
]
