"""Bill and bill line item schemas with the status transition rules."""

from datetime import date
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, computed_field, field_validator

from ..errors import InvalidTransitionError, ValidationError
from .common import BillStatus, Patient, to_money

ZERO = Decimal("0.00")

# Allowed status changes. A same-state change is always a no-op.
ALLOWED_TRANSITIONS: dict[BillStatus, frozenset[BillStatus]] = {
    BillStatus.UNPAID: frozenset({BillStatus.PARTIAL, BillStatus.PAID}),
    BillStatus.PARTIAL: frozenset({BillStatus.PAID, BillStatus.REFUNDED}),
    # PAID moves back only when a new charge reopens a settled bill
    BillStatus.PAID: frozenset({BillStatus.UNPAID, BillStatus.PARTIAL, BillStatus.REFUNDED}),
    BillStatus.REFUNDED: frozenset(),
}

# Payments only ever move a bill forward along this order
_PAYMENT_ORDER = (BillStatus.UNPAID, BillStatus.PARTIAL, BillStatus.PAID)


def derive_bill_status(total: Decimal, paid: Decimal) -> BillStatus:
    """Status implied by a bill total and the cumulative completed payments.

    A zero-total bill is PAID as soon as any positive payment exists, so a
    placeholder zero-amount item never reads as settled on its own.
    """
    if paid <= ZERO:
        return BillStatus.UNPAID
    if total <= ZERO or paid >= total:
        return BillStatus.PAID
    return BillStatus.PARTIAL


class BillItem(BaseModel):
    """Individual charge line on a bill."""

    model_config = ConfigDict(frozen=True)

    description: str
    amount: Decimal

    @field_validator("description")
    @classmethod
    def _description_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Description cannot be empty")
        return v

    @field_validator("amount", mode="before")
    @classmethod
    def _amount_non_negative(cls, v) -> Decimal:
        amount = to_money(v)
        if amount < ZERO:
            raise ValueError("Amount cannot be negative")
        return amount


class Bill(BaseModel):
    """Charges owed by a patient.

    Bills are immutable snapshots. Every change returns a new bill, so a bill
    handed to a caller can never be altered behind their back and the total
    always matches the items.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    patient: Patient
    issue_date: date
    date_paid: date | None = None
    status: BillStatus = BillStatus.UNPAID
    items: tuple[BillItem, ...] = ()
    amount_paid: Decimal = ZERO

    @field_validator("id")
    @classmethod
    def _id_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Bill ID cannot be empty")
        return v

    @field_validator("amount_paid", mode="before")
    @classmethod
    def _paid_non_negative(cls, v) -> Decimal:
        amount = to_money(v)
        if amount < ZERO:
            raise ValueError("Amount paid cannot be negative")
        return amount

    @computed_field
    @property
    def total_amount(self) -> Decimal:
        return sum((item.amount for item in self.items), ZERO)

    @property
    def remaining_balance(self) -> Decimal:
        return max(self.total_amount - self.amount_paid, ZERO)

    def is_paid(self) -> bool:
        return self.status == BillStatus.PAID

    def transition_to(self, status: BillStatus, on: date | None = None) -> "Bill":
        """Return a copy in ``status``, checked against the transition table."""
        if status == self.status:
            return self
        if status not in ALLOWED_TRANSITIONS[self.status]:
            raise InvalidTransitionError(
                f"Bill {self.id}: cannot move from {self.status.value} to {status.value}"
            )
        date_paid = self.date_paid
        if status == BillStatus.PAID:
            date_paid = on or date_paid
        elif status in (BillStatus.UNPAID, BillStatus.PARTIAL):
            date_paid = None
        return self.model_copy(update={"status": status, "date_paid": date_paid})

    def with_item(self, item: BillItem) -> "Bill":
        """Append a charge and re-derive the status from the new total."""
        if self.status == BillStatus.REFUNDED:
            raise InvalidTransitionError(f"Bill {self.id}: cannot add charges to a refunded bill")
        updated = self.model_copy(update={"items": self.items + (item,)})
        return updated.transition_to(
            derive_bill_status(updated.total_amount, updated.amount_paid),
            on=self.date_paid,
        )

    def with_amount_paid(self, amount_paid: Decimal, on: date) -> "Bill":
        """Record a new cumulative paid amount and apply the status rule."""
        if self.status == BillStatus.REFUNDED:
            raise InvalidTransitionError(f"Bill {self.id}: cannot take payments on a refunded bill")
        amount_paid = to_money(amount_paid)
        if amount_paid < self.amount_paid:
            raise ValidationError(f"Bill {self.id}: amount paid cannot decrease")
        status = derive_bill_status(self.total_amount, amount_paid)
        if _PAYMENT_ORDER.index(status) < _PAYMENT_ORDER.index(self.status):
            raise InvalidTransitionError(
                f"Bill {self.id}: a payment cannot move it from {self.status.value} to {status.value}"
            )
        updated = self.model_copy(update={"amount_paid": amount_paid})
        return updated.transition_to(status, on=on)

    def reconciled(self) -> "Bill":
        """Make a stored status and paid amount agree before the bill is used.

        Older files mark bills PAID without recording the amount, and mark
        them PARTIAL with nothing paid. A PAID bill is taken as fully paid;
        UNPAID and PARTIAL are re-derived from the amounts. Refunds are kept
        as stored.
        """
        if self.status == BillStatus.REFUNDED:
            return self
        if self.status == BillStatus.PAID:
            if self.amount_paid >= self.total_amount:
                return self
            return self.model_copy(update={"amount_paid": self.total_amount})
        status = derive_bill_status(self.total_amount, self.amount_paid)
        if status == self.status:
            return self
        date_paid = self.date_paid if status == BillStatus.PAID else None
        return self.model_copy(update={"status": status, "date_paid": date_paid})

    def renamed(self, new_id: str) -> "Bill":
        if not new_id or not new_id.strip():
            raise ValidationError("Bill ID cannot be empty")
        return self.model_copy(update={"id": new_id})
