"""Configuration for ledger storage and billing defaults."""

import os
from pathlib import Path

from dotenv import load_dotenv
from pydantic import BaseModel, Field

from .codec import ItemsFormat

DEFAULT_DATA_DIR = "hospital_data"
BILLS_FILE = "bills.csv"
PAYMENTS_FILE = "payments.csv"


class LedgerConfig(BaseModel):
    """Where the ledger lives on disk and how new records are shaped."""

    data_dir: Path = Path(DEFAULT_DATA_DIR)
    bills_file: str = BILLS_FILE
    payments_file: str = PAYMENTS_FILE
    items_format: ItemsFormat = ItemsFormat.ESCAPED
    payment_terms_days: int = Field(default=30, ge=0)
    bill_id_prefix: str = "B"
    payment_id_prefix: str = "PMT"
    default_payment_method: str = "CASH"

    @property
    def bills_path(self) -> Path:
        return self.data_dir / self.bills_file

    @property
    def payments_path(self) -> Path:
        return self.data_dir / self.payments_file

    @classmethod
    def from_env(cls, env_file: str | os.PathLike | None = None) -> "LedgerConfig":
        """Build a config from ``LEDGER_*`` environment variables.

        A ``.env`` file is loaded first; variables already set in the
        environment take precedence over it.
        """
        load_dotenv(dotenv_path=env_file)
        overrides = {
            "data_dir": os.getenv("LEDGER_DATA_DIR"),
            "bills_file": os.getenv("LEDGER_BILLS_FILE"),
            "payments_file": os.getenv("LEDGER_PAYMENTS_FILE"),
            "items_format": os.getenv("LEDGER_ITEMS_FORMAT"),
            "payment_terms_days": os.getenv("LEDGER_PAYMENT_TERMS_DAYS"),
        }
        return cls(**{k: v for k, v in overrides.items() if v})
