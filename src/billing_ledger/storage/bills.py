"""Bill rows: ``id,patientId,issueDate,datePaid,status,totalAmount,amountPaid,items``."""

import logging
import os

from pydantic import ValidationError as PydanticValidationError

from ..codec import (
    ItemsFormat,
    decode_items,
    encode_items,
    format_amount,
    format_date,
    parse_amount,
    parse_date,
)
from ..errors import ParseError
from ..patients import PatientLookup
from ..schemas import Bill, BillStatus, Patient
from .files import DelimitedFileStore

logger = logging.getLogger(__name__)

BILL_HEADER = (
    "id",
    "patientId",
    "issueDate",
    "datePaid",
    "status",
    "totalAmount",
    "amountPaid",
    "items",
)

# Status strings written by older versions; overdue is now computed from the due date
LEGACY_STATUS_ALIASES = {
    "PENDING": BillStatus.UNPAID,
    "OVERDUE": BillStatus.UNPAID,
}


def parse_bill_status(text: str) -> BillStatus:
    key = text.strip().upper()
    if key in LEGACY_STATUS_ALIASES:
        return LEGACY_STATUS_ALIASES[key]
    try:
        return BillStatus(key)
    except ValueError as e:
        raise ParseError(f"Unknown bill status: {text!r}") from e


class BillFileStore(DelimitedFileStore[Bill]):
    """Persists every bill to one file, one line per bill.

    The items column is optional on read so rows written before items were
    stored still load.
    """

    header = BILL_HEADER
    entity_name = "bill"

    def __init__(
        self,
        path: str | os.PathLike,
        patients: PatientLookup | None = None,
        items_format: ItemsFormat = ItemsFormat.ESCAPED,
    ):
        super().__init__(path)
        self.patients = patients
        self.items_format = items_format

    @property
    def min_fields(self) -> int:
        return len(BILL_HEADER) - 1

    def encode(self, bill: Bill) -> list[str]:
        return [
            bill.id,
            bill.patient.id,
            format_date(bill.issue_date),
            format_date(bill.date_paid),
            bill.status.value,
            format_amount(bill.total_amount),
            format_amount(bill.amount_paid),
            encode_items(bill.items, self.items_format),
        ]

    def decode(self, fields: list[str]) -> Bill:
        bill_id, patient_id = fields[0].strip(), fields[1].strip()
        if not bill_id:
            raise ParseError("Bill row without an id")
        issue_date = parse_date(fields[2], field="issue date")
        if issue_date is None:
            raise ParseError(f"Bill {bill_id} has no issue date")
        date_paid = parse_date(fields[3], field="date paid")
        status = parse_bill_status(fields[4])
        stored_total = parse_amount(fields[5], field="total amount")
        amount_paid = parse_amount(fields[6], field="amount paid")
        items = decode_items(fields[7], self.items_format) if len(fields) > 7 else []

        try:
            bill = Bill(
                id=bill_id,
                patient=self._resolve_patient(patient_id, bill_id),
                issue_date=issue_date,
                date_paid=date_paid,
                status=status,
                items=tuple(items),
                amount_paid=amount_paid,
            )
        except PydanticValidationError as e:
            raise ParseError(f"Invalid bill {bill_id}: {e.errors()[0]['msg']}") from e

        if bill.total_amount != stored_total:
            logger.warning(
                "Bill %s: stored total %s disagrees with item sum %s; using item sum",
                bill_id, stored_total, bill.total_amount,
            )

        reconciled = bill.reconciled()
        if reconciled is not bill:
            logger.warning(
                "Bill %s: stored %s with %s paid; loading as %s with %s paid",
                bill_id, bill.status.value, bill.amount_paid,
                reconciled.status.value, reconciled.amount_paid,
            )
        return reconciled

    def _resolve_patient(self, patient_id: str, bill_id: str) -> Patient:
        if not patient_id:
            raise ParseError(f"Bill {bill_id} has no patient id")
        if self.patients is not None:
            patient = self.patients.find_patient_by_id(patient_id)
            if patient is not None:
                return patient
            logger.warning("Bill %s references unknown patient %s", bill_id, patient_id)
        return Patient(id=patient_id)
