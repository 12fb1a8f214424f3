"""Reconciliation of bill paid amounts against recorded payments."""

from collections import defaultdict
from decimal import Decimal

from ..schemas.bill import Bill
from ..schemas.common import ValidationResult, ValidationSeverity, ValidationStatus
from ..schemas.payment import Payment

TOLERANCE = Decimal("0.01")


def run_payment_reconciliation_checks(
    bills: list[Bill],
    payments: list[Payment],
) -> list[ValidationResult]:
    """Compare each bill's amount_paid with its completed payments.

    Checks:
    - amount_paid_vs_payments: amount_paid differs from the sum of COMPLETED payments
    - orphan_payment: payment whose bill id matches no bill
    - overpayment: more paid than charged on a bill with a non-zero total
    """
    results: list[ValidationResult] = []
    bill_ids = {b.id for b in bills}

    completed: dict[str, Decimal] = defaultdict(Decimal)
    for payment in payments:
        if payment.bill_id not in bill_ids:
            results.append(
                ValidationResult(
                    check_name="orphan_payment",
                    status=ValidationStatus.ERROR,
                    severity=ValidationSeverity.HIGH,
                    detail=f"Payment {payment.id} of ${payment.amount:.2f} references unknown bill {payment.bill_id}",
                    bill_id=payment.bill_id,
                    discrepancy=payment.amount,
                    recommendation="Restore the missing bill or reassign the payment",
                )
            )
            continue
        if payment.counts_toward_balance:
            completed[payment.bill_id] += payment.amount

    for bill in bills:
        recorded = completed.get(bill.id, Decimal("0.00"))
        if abs(bill.amount_paid - recorded) >= TOLERANCE:
            results.append(
                ValidationResult(
                    check_name="amount_paid_vs_payments",
                    status=ValidationStatus.MISMATCH,
                    severity=ValidationSeverity.MEDIUM,
                    detail=f"Bill {bill.id}: amount paid ${bill.amount_paid:.2f} but completed payments sum to ${recorded:.2f}",
                    bill_id=bill.id,
                    discrepancy=bill.amount_paid - recorded,
                    recommendation="Locate the missing payment records or correct the bill",
                )
            )

        total = bill.total_amount
        if total > 0 and bill.amount_paid - total >= TOLERANCE:
            results.append(
                ValidationResult(
                    check_name="overpayment",
                    status=ValidationStatus.INFO,
                    severity=ValidationSeverity.INFO,
                    detail=f"Bill {bill.id}: paid ${bill.amount_paid:.2f} against charges of ${total:.2f}",
                    bill_id=bill.id,
                    discrepancy=bill.amount_paid - total,
                    recommendation="Consider refunding or crediting the difference",
                )
            )

    return results
