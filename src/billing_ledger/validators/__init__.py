"""Audit checks over the ledger's bills and payments."""

from ..schemas.bill import Bill
from ..schemas.common import ValidationResult, ValidationSeverity
from ..schemas.payment import Payment
from .payment_reconciliation import run_payment_reconciliation_checks
from .status_checks import run_status_checks

__all__ = [
    "run_all_checks",
    "run_payment_reconciliation_checks",
    "run_status_checks",
]


def run_all_checks(bills: list[Bill], payments: list[Payment]) -> list[ValidationResult]:
    """Run every ledger check and return results sorted by severity.

    - Payment reconciliation: amount_paid vs payments, orphans, overpayment
    - Status checks: stored status vs amounts, PAID without a date

    Results are sorted by severity (HIGH first, then MEDIUM, LOW, INFO).
    """
    results: list[ValidationResult] = []

    results.extend(run_payment_reconciliation_checks(bills, payments))
    results.extend(run_status_checks(bills))

    severity_order = {
        ValidationSeverity.HIGH: 0,
        ValidationSeverity.MEDIUM: 1,
        ValidationSeverity.LOW: 2,
        ValidationSeverity.INFO: 3,
    }
    results.sort(key=lambda r: severity_order.get(r.severity, 4))

    return results
