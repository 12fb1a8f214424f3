"""Scalar field formatting and parsing for the flat-file formats."""

from datetime import date, datetime
from decimal import Decimal

from ..errors import ParseError
from ..schemas.common import to_money

DATE_FORMAT = "%Y-%m-%d"
DATETIME_FORMAT = "%Y-%m-%d %H:%M:%S"
NULL_TOKEN = "NULL"


def format_amount(amount: Decimal) -> str:
    return f"{to_money(amount):.2f}"


def parse_amount(text: str, field: str = "amount") -> Decimal:
    try:
        return to_money(text)
    except ValueError as e:
        raise ParseError(f"Malformed {field}: {text!r}") from e


def format_date(value: date | None) -> str:
    return value.strftime(DATE_FORMAT) if value is not None else NULL_TOKEN


def parse_date(text: str, field: str = "date") -> date | None:
    """Parse ``yyyy-MM-dd``; ``NULL`` and the empty string mean no date."""
    text = text.strip()
    if not text or text == NULL_TOKEN:
        return None
    try:
        return datetime.strptime(text, DATE_FORMAT).date()
    except ValueError as e:
        raise ParseError(f"Malformed {field}: {text!r}") from e


def format_datetime(value: datetime) -> str:
    return value.strftime(DATETIME_FORMAT)


def parse_datetime(text: str, field: str = "datetime") -> datetime:
    try:
        return datetime.strptime(text.strip(), DATETIME_FORMAT)
    except ValueError as e:
        raise ParseError(f"Malformed {field}: {text!r}") from e
