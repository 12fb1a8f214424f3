"""Aggregate figures across the whole ledger."""

from decimal import Decimal

from pydantic import BaseModel

from .common import BillStatus


class LedgerSummary(BaseModel):
    """Aggregated financial information across all bills."""

    bill_count: int = 0
    payment_count: int = 0
    bills_by_status: dict[BillStatus, int] = {}
    total_billed: Decimal = Decimal("0.00")
    total_paid: Decimal = Decimal("0.00")
    total_outstanding: Decimal = Decimal("0.00")
    overdue_count: int = 0
