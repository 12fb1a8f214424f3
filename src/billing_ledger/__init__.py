"""Billing ledger: bills, payments and their flat-file persistence."""

from .config import LedgerConfig
from .engine import LedgerEngine, open_ledger
from .errors import (
    InvalidTransitionError,
    LedgerError,
    NotFoundError,
    ParseError,
    StorageError,
    ValidationError,
)
from .patients import PatientDirectory, PatientLookup
from .schemas import Bill, BillItem, BillStatus, Patient, Payment, PaymentStatus

__all__ = [
    "LedgerConfig",
    "LedgerEngine",
    "open_ledger",
    "PatientDirectory",
    "PatientLookup",
    # Schemas
    "Bill",
    "BillItem",
    "BillStatus",
    "Patient",
    "Payment",
    "PaymentStatus",
    # Errors
    "LedgerError",
    "ValidationError",
    "InvalidTransitionError",
    "NotFoundError",
    "ParseError",
    "StorageError",
]
