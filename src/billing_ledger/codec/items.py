"""Encoding of a bill's line items inside a single delimited field.

Items are joined with ``|`` and each item is ``description:amount``. Two
dialects exist for the description text:

- ``LEGACY``: ``:`` becomes ``-`` and ``|`` becomes ``/`` before writing, and
  the substitution is reversed on read. This is lossy: a description that
  really contained ``-`` or ``/`` reads back as ``:`` or ``|``.
- ``ESCAPED``: ``\\``, ``|`` and ``:`` are backslash-escaped, so every
  description reads back exactly as written.
"""

from collections.abc import Iterable
from enum import Enum

from pydantic import ValidationError as PydanticValidationError

from ..errors import ParseError
from ..schemas.bill import BillItem
from .values import format_amount, parse_amount

ITEM_SEPARATOR = "|"
AMOUNT_SEPARATOR = ":"
ESCAPE = "\\"

_LEGACY_SUBSTITUTIONS = ((AMOUNT_SEPARATOR, "-"), (ITEM_SEPARATOR, "/"))


class ItemsFormat(str, Enum):
    """Dialect used for descriptions in the items field."""

    LEGACY = "legacy"
    ESCAPED = "escaped"


def encode_items(items: Iterable[BillItem], fmt: ItemsFormat = ItemsFormat.ESCAPED) -> str:
    encoded = []
    for item in items:
        if fmt == ItemsFormat.LEGACY:
            description = _legacy_encode(item.description)
        else:
            description = _escape(item.description)
        encoded.append(f"{description}{AMOUNT_SEPARATOR}{format_amount(item.amount)}")
    return ITEM_SEPARATOR.join(encoded)


def decode_items(text: str, fmt: ItemsFormat = ItemsFormat.ESCAPED) -> list[BillItem]:
    """Decode the items field of a bill row.

    Raises:
        ParseError: if an item has no amount separator, a malformed amount,
            or an empty description.
    """
    if not text:
        return []

    if fmt == ItemsFormat.LEGACY:
        pairs = [_legacy_split(chunk) for chunk in text.split(ITEM_SEPARATOR) if chunk]
    else:
        pairs = [_escaped_split(chunk) for chunk in _split_unescaped(text, ITEM_SEPARATOR) if chunk]

    items = []
    for description, amount_text in pairs:
        amount = parse_amount(amount_text, field="item amount")
        try:
            items.append(BillItem(description=description, amount=amount))
        except PydanticValidationError as e:
            raise ParseError(f"Invalid bill item {description!r}: {e.errors()[0]['msg']}") from e
    return items


def _legacy_encode(description: str) -> str:
    for original, substitute in _LEGACY_SUBSTITUTIONS:
        description = description.replace(original, substitute)
    return description


def _legacy_split(chunk: str) -> tuple[str, str]:
    description, sep, amount = chunk.partition(AMOUNT_SEPARATOR)
    if not sep:
        raise ParseError(f"Bill item without amount: {chunk!r}")
    for original, substitute in _LEGACY_SUBSTITUTIONS:
        description = description.replace(substitute, original)
    return description, amount


def _escape(description: str) -> str:
    return (
        description.replace(ESCAPE, ESCAPE * 2)
        .replace(ITEM_SEPARATOR, ESCAPE + ITEM_SEPARATOR)
        .replace(AMOUNT_SEPARATOR, ESCAPE + AMOUNT_SEPARATOR)
    )


def _unescape(text: str) -> str:
    out = []
    chars = iter(text)
    for ch in chars:
        if ch == ESCAPE:
            ch = next(chars, "")
        out.append(ch)
    return "".join(out)


def _split_unescaped(text: str, separator: str) -> list[str]:
    """Split on ``separator`` wherever it is not escaped; escapes are kept."""
    parts: list[str] = []
    current: list[str] = []
    chars = iter(text)
    for ch in chars:
        if ch == ESCAPE:
            following = next(chars, None)
            if following is None:
                raise ParseError(f"Dangling escape in items field: {text!r}")
            current.append(ch + following)
        elif ch == separator:
            parts.append("".join(current))
            current = []
        else:
            current.append(ch)
    parts.append("".join(current))
    return parts


def _escaped_split(chunk: str) -> tuple[str, str]:
    parts = _split_unescaped(chunk, AMOUNT_SEPARATOR)
    if len(parts) != 2:
        raise ParseError(f"Bill item without a single amount separator: {chunk!r}")
    return _unescape(parts[0]), parts[1]
