"""Whole-file load and save for one-record-per-line delimited files."""

import logging
import os
import tempfile
from collections.abc import Iterable, Sequence
from pathlib import Path
from typing import Generic, TypeVar

from ..codec import iter_records, join_fields, split_line
from ..errors import ParseError, StorageError

logger = logging.getLogger(__name__)

T = TypeVar("T")


def write_atomic(path: Path, lines: Iterable[str]) -> None:
    """Replace ``path`` with ``lines`` via a temp file in the same directory.

    The destination is either the old file or the complete new one; a crash
    mid-write never leaves it truncated.

    Raises:
        StorageError: if the directory, temp file or rename fails.
    """
    tmp_name = None
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
        with os.fdopen(fd, "w", encoding="utf-8", newline="") as fh:
            for line in lines:
                fh.write(line)
                fh.write("\n")
            fh.flush()
            os.fsync(fh.fileno())
        os.replace(tmp_name, path)
    except OSError as e:
        if tmp_name is not None and os.path.exists(tmp_name):
            os.unlink(tmp_name)
        raise StorageError(f"Failed to write {path}: {e}") from e


class DelimitedFileStore(Generic[T]):
    """Loads and saves a list of entities, one delimited record each.

    Subclasses define the header and the row mapping. Loading is tolerant:
    short rows and rows that fail to parse are logged and skipped.
    """

    header: Sequence[str] = ()
    entity_name = "record"

    def __init__(self, path: str | os.PathLike):
        self.path = Path(path)

    @property
    def min_fields(self) -> int:
        return len(self.header)

    def encode(self, entity: T) -> list[str]:
        raise NotImplementedError

    def decode(self, fields: list[str]) -> T:
        raise NotImplementedError

    def save_all(self, entities: Iterable[T]) -> None:
        """Rewrite the whole file with ``entities``."""
        rows = [join_fields(self.encode(e)) for e in entities]
        write_atomic(self.path, [join_fields(self.header), *rows])
        logger.info("Saved %d %ss to %s", len(rows), self.entity_name, self.path)

    def load_all(self) -> list[T]:
        """Read every decodable entity; a missing file yields an empty list."""
        try:
            with open(self.path, encoding="utf-8", newline="") as fh:
                records = list(iter_records(fh))
        except FileNotFoundError:
            logger.debug("No %s file at %s", self.entity_name, self.path)
            return []
        except OSError as e:
            raise StorageError(f"Failed to read {self.path}: {e}") from e

        entities: list[T] = []
        skipped = 0
        for line_number, record in records:
            if not record.strip():
                continue
            try:
                fields = split_line(record, line_number)
                if line_number == 1 and self._is_header(fields):
                    continue
                if len(fields) < self.min_fields:
                    logger.warning(
                        "Skipping %s at %s:%d: expected %d fields, found %d",
                        self.entity_name, self.path, line_number, self.min_fields, len(fields),
                    )
                    skipped += 1
                    continue
                entities.append(self.decode(fields))
            except ParseError as e:
                logger.warning(
                    "Skipping %s at %s:%d: %s", self.entity_name, self.path, line_number, e
                )
                skipped += 1

        logger.info(
            "Loaded %d %ss from %s (%d skipped)", len(entities), self.entity_name, self.path, skipped
        )
        return entities

    def _is_header(self, fields: list[str]) -> bool:
        return bool(self.header) and fields[0].strip() == self.header[0]
