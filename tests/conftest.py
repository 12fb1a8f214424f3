"""Shared fixtures for billing ledger tests."""

from datetime import date, datetime, timedelta

import pytest

from billing_ledger import LedgerConfig, LedgerEngine, Patient, PatientDirectory
from billing_ledger.storage import BillFileStore, PaymentFileStore

FIXED_NOW = datetime(2025, 3, 10, 9, 30, 0)


class FakeClock:
    """Callable clock that only moves when told to."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(FIXED_NOW)


@pytest.fixture
def today(clock: FakeClock) -> date:
    return clock.now.date()


@pytest.fixture
def patients() -> PatientDirectory:
    return PatientDirectory(
        [
            Patient(id="P100", first_name="Jane", last_name="Doe", date_of_birth=date(1980, 5, 1)),
            Patient(id="P200", first_name="John", last_name="Smith"),
        ]
    )


@pytest.fixture
def engine(patients: PatientDirectory, clock: FakeClock) -> LedgerEngine:
    """Memory-only engine."""
    return LedgerEngine(patients, clock=clock)


@pytest.fixture
def config(tmp_path) -> LedgerConfig:
    return LedgerConfig(data_dir=tmp_path / "hospital_data")


@pytest.fixture
def make_file_engine(patients: PatientDirectory, clock: FakeClock, config: LedgerConfig):
    """Factory for engines backed by the same pair of files."""

    def _make() -> LedgerEngine:
        return LedgerEngine(
            patients,
            bill_store=BillFileStore(config.bills_path, patients, config.items_format),
            payment_store=PaymentFileStore(config.payments_path),
            config=config,
            clock=clock,
        )

    return _make
