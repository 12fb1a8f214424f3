"""Shared types for billing ledger schemas."""

from datetime import date
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from enum import Enum

from pydantic import BaseModel, field_validator

CENT = Decimal("0.01")


def to_money(value) -> Decimal:
    """Convert a number or numeric string to a two-decimal Decimal."""
    if isinstance(value, bool) or not isinstance(value, (Decimal, int, float, str)):
        raise ValueError(f"Invalid monetary amount: {value!r}")
    try:
        amount = value if isinstance(value, Decimal) else Decimal(str(value).strip())
        if not amount.is_finite():
            raise ValueError(f"Invalid monetary amount: {value!r}")
        return amount.quantize(CENT, rounding=ROUND_HALF_UP)
    except InvalidOperation as e:
        raise ValueError(f"Invalid monetary amount: {value!r}") from e


class BillStatus(str, Enum):
    """Settlement state of a bill."""

    UNPAID = "UNPAID"
    PARTIAL = "PARTIAL"
    PAID = "PAID"
    REFUNDED = "REFUNDED"


class PaymentStatus(str, Enum):
    """Processing state of a payment. Only COMPLETED payments settle bills."""

    COMPLETED = "COMPLETED"
    PENDING = "PENDING"
    FAILED = "FAILED"
    REFUNDED = "REFUNDED"


class Patient(BaseModel):
    """Patient reference as seen by the ledger."""

    id: str
    first_name: str | None = None
    last_name: str | None = None
    date_of_birth: date | None = None

    @field_validator("id")
    @classmethod
    def _id_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Patient ID cannot be empty")
        return v

    @property
    def name(self) -> str:
        return " ".join(p for p in (self.first_name, self.last_name) if p)


class ValidationSeverity(str, Enum):
    """Severity level for audit findings."""

    HIGH = "HIGH"
    MEDIUM = "MEDIUM"
    LOW = "LOW"
    INFO = "INFO"


class ValidationStatus(str, Enum):
    """Status outcome of an audit check."""

    PASS = "PASS"
    MISMATCH = "MISMATCH"
    WARNING = "WARNING"
    ERROR = "ERROR"
    INFO = "INFO"


class ValidationResult(BaseModel):
    """Result of a single ledger audit check."""

    check_name: str
    status: ValidationStatus
    severity: ValidationSeverity
    detail: str
    bill_id: str | None = None
    discrepancy: Decimal | None = None
    recommendation: str | None = None
