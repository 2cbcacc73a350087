"""Error types raised by the page index.

I/O failures are not wrapped: they surface as the built-in ``OSError``.
"""

from __future__ import annotations


class PageCountsError(Exception):
    """Base class for all page index errors."""


class ParseError(PageCountsError, ValueError):
    """A timestamp or counter field does not match its expected format."""

    def __init__(self, message: str, line_number: int | None = None) -> None:
        if line_number is not None:
            message = f"line {line_number}: {message}"
        super().__init__(message)
        self.line_number = line_number


class InvalidArgumentError(PageCountsError, ValueError):
    """A query argument is out of its domain, e.g. a reversed time interval."""


class CorruptStateError(PageCountsError):
    """Persisted index bytes are truncated, malformed, or not sorted."""
