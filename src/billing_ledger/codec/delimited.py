"""Quote-aware comma-delimited records.

Fields containing a comma, a double quote or a line break are wrapped in
double quotes, with inner quotes doubled. Decoding walks the text one
character at a time, so quoted commas never split a field.
"""

from collections import deque
from collections.abc import Iterable, Iterator

from ..errors import ParseError

DELIMITER = ","
QUOTE = '"'
_NEEDS_QUOTING = (DELIMITER, QUOTE, "\n", "\r")


def quote_field(value: object) -> str:
    """Encode one field, quoting it only when required."""
    if value is None:
        return ""
    text = str(value)
    if any(ch in text for ch in _NEEDS_QUOTING):
        return QUOTE + text.replace(QUOTE, QUOTE * 2) + QUOTE
    return text


def join_fields(values: Iterable[object]) -> str:
    return DELIMITER.join(quote_field(v) for v in values)


def split_line(line: str, line_number: int | None = None) -> list[str]:
    """Split one logical record into its decoded fields.

    Raises:
        ParseError: if a quoted field is never closed.
    """
    fields: list[str] = []
    current: list[str] = []
    in_quotes = False
    i = 0
    length = len(line)

    while i < length:
        ch = line[i]
        if ch == QUOTE:
            # Doubled quote inside a quoted field is one literal quote
            if in_quotes and i + 1 < length and line[i + 1] == QUOTE:
                current.append(QUOTE)
                i += 2
                continue
            in_quotes = not in_quotes
        elif ch == DELIMITER and not in_quotes:
            fields.append("".join(current))
            current = []
        else:
            current.append(ch)
        i += 1

    if in_quotes:
        raise ParseError("Unterminated quoted field", line_number)

    fields.append("".join(current))
    return fields


def _strip_terminator(text: str) -> str:
    if text.endswith("\r\n"):
        return text[:-2]
    if text.endswith(("\n", "\r")):
        return text[:-1]
    return text


def iter_records(lines: Iterable[str], start: int = 1) -> Iterator[tuple[int, str]]:
    """Group physical lines into logical records.

    A quoted field may contain line breaks, in which case the record spans
    several physical lines. Lines should keep their terminators (read with
    ``newline=""``) so embedded breaks survive unchanged. Yields
    ``(line_number, record)`` where the number is the record's first line.

    A record still open at end of input was started by a stray quote. Its
    first line is yielded alone so the caller's parser reports just that
    line, and the lines after it are grouped again.
    """
    source = enumerate(lines, start=start)
    replay: deque[tuple[int, str]] = deque()
    pending: list[tuple[int, str]] = []
    quote_count = 0

    while True:
        if replay:
            number, raw = replay.popleft()
        else:
            entry = next(source, None)
            if entry is None:
                if not pending:
                    return
                first_line, first_raw = pending[0]
                yield first_line, _strip_terminator(first_raw)
                replay.extend(pending[1:])
                pending = []
                quote_count = 0
                continue
            number, raw = entry

        pending.append((number, raw))
        # Balanced quoting always has an even number of quote characters
        quote_count += raw.count(QUOTE)
        if quote_count % 2 == 0:
            yield pending[0][0], _strip_terminator("".join(r for _, r in pending))
            pending = []
            quote_count = 0
