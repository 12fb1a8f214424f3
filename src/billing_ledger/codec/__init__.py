"""Text codec for the ledger's flat-file formats."""

from .delimited import iter_records, join_fields, quote_field, split_line
from .items import ItemsFormat, decode_items, encode_items
from .values import (
    format_amount,
    format_date,
    format_datetime,
    parse_amount,
    parse_date,
    parse_datetime,
)

__all__ = [
    # Delimited records
    "quote_field",
    "join_fields",
    "split_line",
    "iter_records",
    # Items sub-format
    "ItemsFormat",
    "encode_items",
    "decode_items",
    # Scalars
    "format_amount",
    "parse_amount",
    "format_date",
    "parse_date",
    "format_datetime",
    "parse_datetime",
]
