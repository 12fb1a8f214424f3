"""Flat-file persistence for bills and payments."""

from .bills import BILL_HEADER, BillFileStore, parse_bill_status
from .files import DelimitedFileStore, write_atomic
from .payments import PAYMENT_HEADER, PaymentFileStore

__all__ = [
    "BILL_HEADER",
    "PAYMENT_HEADER",
    "BillFileStore",
    "PaymentFileStore",
    "DelimitedFileStore",
    "parse_bill_status",
    "write_atomic",
]
