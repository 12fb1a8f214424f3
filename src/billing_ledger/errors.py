"""Exception hierarchy for ledger operations."""


class LedgerError(Exception):
    """Base class for all billing ledger errors."""


class ValidationError(LedgerError, ValueError):
    """Bad or missing input supplied by a caller."""


class InvalidTransitionError(ValidationError):
    """A bill status change that the transition table does not allow."""


class NotFoundError(LedgerError, LookupError):
    """A referenced bill, payment or patient does not exist."""


class ParseError(LedgerError, ValueError):
    """A persisted row could not be decoded."""

    def __init__(self, message: str, line_number: int | None = None):
        self.line_number = line_number
        if line_number is not None:
            message = f"line {line_number}: {message}"
        super().__init__(message)


class StorageError(LedgerError):
    """Reading or writing a backing file failed."""
