"""Ledger engine: bill creation, charges, payments and queries.

The engine owns the in-memory ledger. Every mutating call updates memory and
then rewrites the backing files before returning. There is no locking; one
engine instance is meant to be driven by one thread of control.
"""

import logging
from collections import Counter
from collections.abc import Callable
from datetime import date, datetime, timedelta
from decimal import Decimal

from pydantic import ValidationError as PydanticValidationError

from .config import LedgerConfig
from .errors import NotFoundError, ValidationError
from .ids import MonotonicIdGenerator
from .patients import PatientLookup
from .schemas import (
    Bill,
    BillItem,
    BillStatus,
    LedgerSummary,
    Payment,
    ValidationResult,
    to_money,
)
from .storage import BillFileStore, PaymentFileStore
from .validators import run_all_checks

logger = logging.getLogger(__name__)

ZERO = Decimal("0.00")

# Bills in these states are never overdue and owe nothing
SETTLED_STATUSES = frozenset({BillStatus.PAID, BillStatus.REFUNDED})


def _require_text(value: str | None, label: str) -> str:
    if value is None or not str(value).strip():
        raise ValidationError(f"{label} cannot be null or empty")
    return value


def _require_positive(amount, label: str) -> Decimal:
    if amount is None:
        raise ValidationError(f"{label} is required")
    try:
        value = to_money(amount)
    except ValueError as e:
        raise ValidationError(f"{label} is not a valid amount: {amount!r}") from e
    if value <= ZERO:
        raise ValidationError(f"{label} must be greater than zero")
    return value


class LedgerEngine:
    """Bills and payments for a set of patients.

    Args:
        patients: Patient lookup used to validate new bills.
        bill_store: Optional persistence for bills. Without it the ledger is
            memory-only.
        payment_store: Optional persistence for payments.
        config: Billing defaults (id prefixes, payment terms).
        clock: Returns the current datetime; "today" is derived from it.
    """

    def __init__(
        self,
        patients: PatientLookup,
        bill_store: BillFileStore | None = None,
        payment_store: PaymentFileStore | None = None,
        config: LedgerConfig | None = None,
        clock: Callable[[], datetime] | None = None,
    ):
        self.patients = patients
        self.bill_store = bill_store
        self.payment_store = payment_store
        self.config = config or LedgerConfig()
        self._clock = clock or datetime.now

        self._bills: dict[str, Bill] = {}
        self._due_dates: dict[str, date] = {}
        self._payments: list[Payment] = []
        self._payments_by_bill: dict[str, list[Payment]] = {}
        # Paid amounts recorded on bills with no matching payment rows
        self._unrecorded_paid: dict[str, Decimal] = {}

        self._bill_ids = MonotonicIdGenerator(self.config.bill_id_prefix)
        self._payment_ids = MonotonicIdGenerator(self.config.payment_id_prefix)

        self._load()

    # --- Loading and saving ---

    def _load(self) -> None:
        if self.bill_store is not None:
            for bill in self.bill_store.load_all():
                if bill.id in self._bills:
                    logger.warning("Duplicate bill id %s in storage; keeping the later row", bill.id)
                self._bills[bill.id] = bill
                self._due_dates[bill.id] = bill.issue_date + timedelta(
                    days=self.config.payment_terms_days
                )
                self._bill_ids.observe(bill.id)

        if self.payment_store is not None:
            for payment in self.payment_store.load_all():
                if payment.bill_id not in self._bills:
                    logger.warning(
                        "Payment %s references unknown bill %s", payment.id, payment.bill_id
                    )
                self._record_payment(payment)
                self._payment_ids.observe(payment.id)

        for bill in self._bills.values():
            recorded = self._completed_total(bill.id)
            if bill.amount_paid > recorded:
                logger.warning(
                    "Bill %s: amount paid %s exceeds recorded payments %s; carrying the difference",
                    bill.id, bill.amount_paid, recorded,
                )
                self._unrecorded_paid[bill.id] = bill.amount_paid - recorded

        if self._bills or self._payments:
            logger.info("Ledger loaded: %d bills, %d payments", len(self._bills), len(self._payments))

    def _save_bills(self) -> None:
        if self.bill_store is not None:
            self.bill_store.save_all(self._bills.values())

    def _save_payments(self) -> None:
        if self.payment_store is not None:
            self.payment_store.save_all(self._payments)

    def _record_payment(self, payment: Payment) -> None:
        self._payments.append(payment)
        self._payments_by_bill.setdefault(payment.bill_id, []).append(payment)

    def _completed_total(self, bill_id: str) -> Decimal:
        return sum(
            (p.amount for p in self._payments_by_bill.get(bill_id, ()) if p.counts_toward_balance),
            ZERO,
        )

    def _get_bill(self, bill_id: str) -> Bill:
        bill = self._bills.get(bill_id)
        if bill is None:
            raise NotFoundError(f"Bill not found: {bill_id}")
        return bill

    def today(self) -> date:
        return self._clock().date()

    # --- Mutations ---

    def create_bill(self, patient_id: str, description: str, due_date: date) -> Bill:
        """Open an empty bill for a patient.

        The description becomes a zero-amount first item; the bill stays
        UNPAID until a payment is made.

        Raises:
            ValidationError: empty patient id or description, missing or past
                due date.
            NotFoundError: the patient does not exist.
        """
        _require_text(patient_id, "Patient ID")
        _require_text(description, "Description")
        if due_date is None:
            raise ValidationError("Due date cannot be null")
        if isinstance(due_date, datetime):
            due_date = due_date.date()
        today = self.today()
        if due_date < today:
            raise ValidationError("Due date cannot be in the past")

        patient = self.patients.find_patient_by_id(patient_id)
        if patient is None:
            raise NotFoundError(f"Patient not found: {patient_id}")

        bill = Bill(id=self._bill_ids.next_id(), patient=patient, issue_date=today)
        bill = bill.with_item(self._make_item(description, ZERO))

        self._bills[bill.id] = bill
        self._due_dates[bill.id] = due_date
        logger.info("Created bill %s for patient %s, due %s", bill.id, patient_id, due_date)

        self._save_bills()
        return bill

    def add_item_to_bill(self, bill_id: str, description: str, amount) -> Bill:
        """Append a charge to a bill and return the updated bill.

        Raises:
            ValidationError: empty bill id or description, amount not positive.
            NotFoundError: the bill does not exist.
        """
        _require_text(bill_id, "Bill ID")
        _require_text(description, "Description")
        value = _require_positive(amount, "Amount")
        bill = self._get_bill(bill_id)

        updated = bill.with_item(self._make_item(description, value))
        self._bills[bill_id] = updated
        logger.info("Added %s to bill %s (total %s)", value, bill_id, updated.total_amount)

        self._save_bills()
        return updated

    def process_payment(self, bill_id: str, amount, payment_method: str | None = None) -> Payment:
        """Apply a payment to a bill and move the bill along its state machine.

        A bill with a zero total becomes PAID on any positive payment.

        Raises:
            ValidationError: empty bill id or method, amount not positive.
            InvalidTransitionError: the bill was refunded.
            NotFoundError: the bill does not exist.
        """
        _require_text(bill_id, "Bill ID")
        value = _require_positive(amount, "Payment amount")
        if payment_method is None:
            payment_method = self.config.default_payment_method
        _require_text(payment_method, "Payment method")
        bill = self._get_bill(bill_id)

        now = self._clock()
        payment = Payment(
            id=self._payment_ids.next_id(),
            bill_id=bill_id,
            amount=value,
            payment_datetime=now,
            payment_method=payment_method,
        )

        paid = (
            self._completed_total(bill_id)
            + self._unrecorded_paid.get(bill_id, ZERO)
            + payment.amount
        )
        updated = bill.with_amount_paid(paid, on=now.date())

        self._record_payment(payment)
        self._bills[bill_id] = updated
        logger.info(
            "Payment %s of %s on bill %s: %s -> %s",
            payment.id, value, bill_id, bill.status.value, updated.status.value,
        )

        self._save_bills()
        self._save_payments()
        return payment

    def _make_item(self, description: str, amount: Decimal) -> BillItem:
        try:
            return BillItem(description=description, amount=amount)
        except PydanticValidationError as e:
            raise ValidationError(e.errors()[0]["msg"]) from e

    # --- Queries ---

    def find_bill_by_id(self, bill_id: str) -> Bill | None:
        _require_text(bill_id, "Bill ID")
        return self._bills.get(bill_id)

    def find_bills_by_patient_id(self, patient_id: str) -> list[Bill]:
        _require_text(patient_id, "Patient ID")
        return [b for b in self._bills.values() if b.patient.id == patient_id]

    def get_all_bills(self) -> list[Bill]:
        return list(self._bills.values())

    def get_bills_by_status(self, is_paid: bool) -> list[Bill]:
        """Bills that are exactly PAID or exactly UNPAID.

        PARTIAL bills fall in neither bucket.
        """
        wanted = BillStatus.PAID if is_paid else BillStatus.UNPAID
        return [b for b in self._bills.values() if b.status == wanted]

    def get_overdue_bills(self) -> list[Bill]:
        """Unsettled bills whose due date is strictly before today."""
        today = self.today()
        return [
            b
            for b in self._bills.values()
            if b.status not in SETTLED_STATUSES
            and (due := self._due_dates.get(b.id)) is not None
            and due < today
        ]

    def get_due_date(self, bill_id: str) -> date | None:
        return self._due_dates.get(bill_id)

    def get_payments_for_bill(self, bill_id: str) -> list[Payment]:
        return list(self._payments_by_bill.get(bill_id, ()))

    def get_all_payments(self) -> list[Payment]:
        return list(self._payments)

    def summarize(self) -> LedgerSummary:
        bills = self.get_all_bills()
        open_bills = [b for b in bills if b.status != BillStatus.REFUNDED]
        return LedgerSummary(
            bill_count=len(bills),
            payment_count=len(self._payments),
            bills_by_status=dict(Counter(b.status for b in bills)),
            total_billed=sum((b.total_amount for b in bills), ZERO),
            total_paid=sum((b.amount_paid for b in bills), ZERO),
            total_outstanding=sum((b.remaining_balance for b in open_bills), ZERO),
            overdue_count=len(self.get_overdue_bills()),
        )

    def audit(self) -> list[ValidationResult]:
        return run_all_checks(self.get_all_bills(), self.get_all_payments())


def open_ledger(
    patients: PatientLookup,
    config: LedgerConfig | None = None,
    clock: Callable[[], datetime] | None = None,
) -> LedgerEngine:
    """Build a file-backed engine from ``config`` (defaults from the environment)."""
    config = config or LedgerConfig.from_env()
    return LedgerEngine(
        patients,
        bill_store=BillFileStore(config.bills_path, patients, config.items_format),
        payment_store=PaymentFileStore(config.payments_path),
        config=config,
        clock=clock,
    )
