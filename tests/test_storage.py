"""Tests for loading and saving bills and payments to flat files."""

import logging
import os
from datetime import date, datetime
from decimal import Decimal

import pytest

from billing_ledger.codec import ItemsFormat
from billing_ledger.errors import StorageError
from billing_ledger.schemas import Bill, BillItem, BillStatus, Patient, Payment, PaymentStatus
from billing_ledger.storage import BillFileStore, PaymentFileStore

BILL_HEADER_LINE = "id,patientId,issueDate,datePaid,status,totalAmount,amountPaid,items"
PAYMENT_HEADER_LINE = "id,billId,amount,paymentDateTime,paymentMethod,status"


def _make_bill(bill_id: str = "B1", patient_id: str = "P100", items=(), paid: str = "0") -> Bill:
    bill = Bill(id=bill_id, patient=Patient(id=patient_id), issue_date=date(2025, 3, 1))
    for description, amount in items:
        bill = bill.with_item(BillItem(description=description, amount=Decimal(amount)))
    if Decimal(paid) > 0:
        bill = bill.with_amount_paid(Decimal(paid), on=date(2025, 3, 5))
    return bill


def _write(path, *lines: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text("\n".join(lines) + "\n", encoding="utf-8")


# ============================================================================
# BILLS
# ============================================================================


class TestBillFileStore:
    """Tests for the bill file store."""

    def test_missing_file_loads_empty(self, tmp_path):
        assert BillFileStore(tmp_path / "absent.csv").load_all() == []

    def test_round_trip_with_delimiters_in_descriptions(self, tmp_path):
        """Commas, colons and pipes in descriptions survive save and load."""
        store = BillFileStore(tmp_path / "bills.csv")
        bill = _make_bill(
            items=[
                ("Consultation, initial", "0"),
                ("Lab: CBC | lipid panel", "75.50"),
                ("X-Ray", "120.00"),
            ],
            paid="100",
        )
        store.save_all([bill])

        (loaded,) = store.load_all()
        assert loaded.total_amount == Decimal("195.50")
        assert loaded.status == BillStatus.PARTIAL
        assert loaded.amount_paid == Decimal("100.00")
        assert [i.description for i in loaded.items] == [
            "Consultation, initial",
            "Lab: CBC | lipid panel",
            "X-Ray",
        ]
        assert loaded == bill

    def test_legacy_dialect_round_trip(self, tmp_path):
        """Substitutions apply both ways; an original dash reads back as a colon."""
        store = BillFileStore(tmp_path / "bills.csv", items_format=ItemsFormat.LEGACY)
        bill = _make_bill(items=[("Lab: CBC | lipid", "75.50"), ("X-Ray", "120.00")])
        store.save_all([bill])

        (loaded,) = store.load_all()
        assert [i.description for i in loaded.items] == ["Lab: CBC | lipid", "X:Ray"]
        assert loaded.total_amount == Decimal("195.50")
        assert loaded.status == BillStatus.UNPAID

    def test_written_layout(self, tmp_path):
        path = tmp_path / "bills.csv"
        BillFileStore(path).save_all([_make_bill(items=[("Visit, follow-up", "40")])])
        lines = path.read_text(encoding="utf-8").splitlines()
        assert lines == [
            BILL_HEADER_LINE,
            'B1,P100,2025-03-01,NULL,UNPAID,40.00,0.00,"Visit, follow-up:40.00"',
        ]

    def test_multiline_description_survives(self, tmp_path):
        store = BillFileStore(tmp_path / "bills.csv")
        bill = _make_bill(items=[("Line one\nLine two", "5")])
        store.save_all([bill])
        assert store.load_all()[0].items[0].description == "Line one\nLine two"

    def test_unparsable_amount_skips_only_that_row(self, tmp_path):
        path = tmp_path / "bills.csv"
        _write(
            path,
            BILL_HEADER_LINE,
            "B1,P100,2025-03-01,NULL,UNPAID,10.00,0.00,Visit:10.00",
            "B2,P100,2025-03-02,NULL,UNPAID,abc,0.00,Visit:10.00",
            "B3,P200,2025-03-03,NULL,UNPAID,20.00,0.00,Visit:20.00",
        )
        bills = BillFileStore(path).load_all()
        assert [b.id for b in bills] == ["B1", "B3"]

    def test_short_and_malformed_rows_skipped(self, tmp_path, caplog):
        path = tmp_path / "bills.csv"
        _write(
            path,
            BILL_HEADER_LINE,
            "B1,P100,2025-03-01",
            "B2,P100,2025-03-01,NULL,BOGUS,0.00,0.00,",
            "B3,P100,not-a-date,NULL,UNPAID,0.00,0.00,",
            "B4,P100,2025-03-01,NULL,UNPAID,5.00,0.00,Visit:5.00",
        )
        with caplog.at_level(logging.WARNING):
            bills = BillFileStore(path).load_all()
        assert [b.id for b in bills] == ["B4"]
        assert "expected 7 fields" in caplog.text
        assert "Unknown bill status" in caplog.text

    def test_stray_quote_skips_only_that_row(self, tmp_path, caplog):
        path = tmp_path / "bills.csv"
        _write(
            path,
            BILL_HEADER_LINE,
            'B1,P100,2025-03-01,NULL,UNPAID,5.00,0.00,5in" bandage:5.00',
            "B2,P100,2025-03-02,NULL,UNPAID,10.00,0.00,Visit:10.00",
            "B3,P200,2025-03-03,NULL,UNPAID,20.00,0.00,Visit:20.00",
        )
        with caplog.at_level(logging.WARNING):
            bills = BillFileStore(path).load_all()
        assert [b.id for b in bills] == ["B2", "B3"]
        assert "Unterminated quoted field" in caplog.text

    def test_file_without_header(self, tmp_path):
        path = tmp_path / "bills.csv"
        _write(path, "B1,P100,2025-03-01,NULL,UNPAID,5.00,0.00,Visit:5.00")
        assert [b.id for b in BillFileStore(path).load_all()] == ["B1"]

    def test_legacy_status_aliases(self, tmp_path):
        path = tmp_path / "bills.csv"
        _write(
            path,
            BILL_HEADER_LINE,
            "B1,P100,2025-01-01,NULL,OVERDUE,5.00,0.00,Visit:5.00",
            "B2,P100,2025-01-01,NULL,PENDING,5.00,0.00,Visit:5.00",
        )
        assert [b.status for b in BillFileStore(path).load_all()] == [
            BillStatus.UNPAID,
            BillStatus.UNPAID,
        ]

    def test_row_without_items_column(self, tmp_path, caplog):
        """Stored total is informational; the item sum wins."""
        path = tmp_path / "bills.csv"
        _write(path, BILL_HEADER_LINE, "B1,P100,2025-03-01,NULL,UNPAID,50.00,0.00")
        with caplog.at_level(logging.WARNING):
            (bill,) = BillFileStore(path).load_all()
        assert bill.items == ()
        assert bill.total_amount == Decimal("0.00")
        assert "disagrees with item sum" in caplog.text

    def test_patients_resolved_through_lookup(self, tmp_path, patients):
        path = tmp_path / "bills.csv"
        _write(
            path,
            BILL_HEADER_LINE,
            "B1,P100,2025-03-01,NULL,UNPAID,0.00,0.00,",
            "B2,P999,2025-03-01,NULL,UNPAID,0.00,0.00,",
        )
        known, unknown = BillFileStore(path, patients).load_all()
        assert known.patient.name == "Jane Doe"
        assert unknown.patient == Patient(id="P999")

    def test_save_rewrites_whole_file(self, tmp_path):
        store = BillFileStore(tmp_path / "bills.csv")
        store.save_all([_make_bill("B1"), _make_bill("B2")])
        store.save_all([_make_bill("B3")])
        assert [b.id for b in store.load_all()] == ["B3"]

    def test_creates_missing_directory(self, tmp_path):
        path = tmp_path / "nested" / "data" / "bills.csv"
        BillFileStore(path).save_all([_make_bill()])
        assert path.exists()

    def test_failed_write_keeps_previous_file(self, tmp_path, monkeypatch):
        path = tmp_path / "bills.csv"
        store = BillFileStore(path)
        store.save_all([_make_bill("B1")])
        before = path.read_text(encoding="utf-8")

        def _fail(src, dst):
            raise OSError("disk full")

        monkeypatch.setattr(os, "replace", _fail)
        with pytest.raises(StorageError):
            store.save_all([_make_bill("B2")])

        assert path.read_text(encoding="utf-8") == before
        assert list(tmp_path.glob(".bills.csv.*")) == []


# ============================================================================
# PAYMENTS
# ============================================================================


class TestPaymentFileStore:
    """Tests for the payment file store."""

    def _payment(self, payment_id: str = "PMT1", method: str = "CASH") -> Payment:
        return Payment(
            id=payment_id,
            bill_id="B1",
            amount=Decimal("50"),
            payment_datetime=datetime(2025, 3, 10, 9, 30, 0),
            payment_method=method,
        )

    def test_missing_file_loads_empty(self, tmp_path):
        assert PaymentFileStore(tmp_path / "payments.csv").load_all() == []

    def test_written_layout(self, tmp_path):
        path = tmp_path / "payments.csv"
        PaymentFileStore(path).save_all([self._payment(method="Card, Visa")])
        assert path.read_text(encoding="utf-8").splitlines() == [
            PAYMENT_HEADER_LINE,
            'PMT1,B1,50.00,2025-03-10 09:30:00,"Card, Visa",COMPLETED',
        ]

    def test_round_trip(self, tmp_path):
        store = PaymentFileStore(tmp_path / "payments.csv")
        payments = [self._payment("PMT1"), self._payment("PMT2", method="INSURANCE")]
        store.save_all(payments)
        assert store.load_all() == payments

    def test_bad_rows_skipped(self, tmp_path):
        path = tmp_path / "payments.csv"
        _write(
            path,
            PAYMENT_HEADER_LINE,
            "PMT1,B1,50.00,2025-03-10 09:30:00,CASH,COMPLETED",
            "PMT2,B1,50.00,yesterday,CASH,COMPLETED",
            "PMT3,B1,0.00,2025-03-10 09:30:00,CASH,COMPLETED",
            "PMT4,B1,50.00,2025-03-10 09:30:00,CASH,LOST",
            "PMT5,B1,25.00,2025-03-11 10:00:00,CHEQUE,PENDING",
        )
        payments = PaymentFileStore(path).load_all()
        assert [p.id for p in payments] == ["PMT1", "PMT5"]
        assert payments[1].status == PaymentStatus.PENDING
