"""Payment schema."""

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, field_validator

from .common import PaymentStatus, to_money


class Payment(BaseModel):
    """A monetary transaction applied against one bill.

    ``bill_id`` is a plain reference; resolving it is the engine's job.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    bill_id: str
    amount: Decimal
    payment_datetime: datetime
    payment_method: str
    status: PaymentStatus = PaymentStatus.COMPLETED

    @field_validator("id", "bill_id", "payment_method")
    @classmethod
    def _not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Value cannot be empty")
        return v

    @field_validator("amount", mode="before")
    @classmethod
    def _amount_positive(cls, v) -> Decimal:
        amount = to_money(v)
        if amount <= 0:
            raise ValueError("Payment amount must be greater than zero")
        return amount

    @field_validator("payment_datetime")
    @classmethod
    def _whole_seconds(cls, v: datetime) -> datetime:
        # Persisted as yyyy-MM-dd HH:mm:ss
        return v.replace(microsecond=0)

    @property
    def counts_toward_balance(self) -> bool:
        return self.status == PaymentStatus.COMPLETED
