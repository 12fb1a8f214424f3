"""Identifier generation for bills and payments."""

import logging
import time
from collections.abc import Callable

logger = logging.getLogger(__name__)


def _wall_clock_ms() -> int:
    return time.time_ns() // 1_000_000


class MonotonicIdGenerator:
    """Produces ``<prefix><n>`` ids with ``n`` strictly increasing.

    ``n`` tracks the wall clock in milliseconds but never repeats or goes
    backwards: two calls within one tick get consecutive numbers, and ids
    seen in loaded data push the counter past them.
    """

    def __init__(self, prefix: str, clock_ms: Callable[[], int] | None = None):
        self.prefix = prefix
        self._clock_ms = clock_ms or _wall_clock_ms
        self._last = 0

    @property
    def last(self) -> int:
        return self._last

    def observe(self, identifier: str) -> None:
        """Advance past an existing id. Ids without a numeric suffix are ignored."""
        if not identifier.startswith(self.prefix):
            return
        suffix = identifier[len(self.prefix):]
        if suffix.isdigit():
            self._last = max(self._last, int(suffix))

    def next_id(self) -> str:
        self._last = max(self._last + 1, self._clock_ms())
        identifier = f"{self.prefix}{self._last}"
        logger.debug("Generated id %s", identifier)
        return identifier
