"""Checks that stored bill statuses agree with their amounts."""

from ..schemas.bill import Bill, derive_bill_status
from ..schemas.common import BillStatus, ValidationResult, ValidationSeverity, ValidationStatus


def run_status_checks(bills: list[Bill]) -> list[ValidationResult]:
    """Flag bills whose status does not follow from total and amount paid.

    Checks:
    - status_consistency: stored status vs the status derived from amounts
    - paid_without_date: PAID bill with no date_paid
    """
    results: list[ValidationResult] = []

    for bill in bills:
        # Refunds are terminal and not derived from amounts
        if bill.status == BillStatus.REFUNDED:
            continue

        expected = derive_bill_status(bill.total_amount, bill.amount_paid)
        # A zero-total bill may be settled with nothing paid
        settled = bill.status == BillStatus.PAID and bill.amount_paid >= bill.total_amount
        if bill.status != expected and not settled:
            results.append(
                ValidationResult(
                    check_name="status_consistency",
                    status=ValidationStatus.MISMATCH,
                    severity=ValidationSeverity.HIGH,
                    detail=f"Bill {bill.id} is {bill.status.value} but total ${bill.total_amount:.2f} and paid ${bill.amount_paid:.2f} imply {expected.value}",
                    bill_id=bill.id,
                    recommendation=f"Review payments on bill {bill.id} before sending statements",
                )
            )

        if bill.status == BillStatus.PAID and bill.date_paid is None:
            results.append(
                ValidationResult(
                    check_name="paid_without_date",
                    status=ValidationStatus.WARNING,
                    severity=ValidationSeverity.LOW,
                    detail=f"Bill {bill.id} is PAID but has no payment date",
                    bill_id=bill.id,
                )
            )

    return results
