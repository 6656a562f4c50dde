# errors.py
# Typed failures for bad input data. None of these escape a navigation tick:
# callers catch them and fall back to cached or empty data.

from typing import Optional


class NavigationDataError(Exception):
    """Malformed or missing input data (documents, catalogs, lookups)."""


class RouteDocumentError(NavigationDataError):
    """
    A route-description document could not be parsed.

    Args:
        message: Human-readable reason.
        line:    1-based line of the failure, when known.
        column:  0-based column of the failure, when known.
    """

    def __init__(self, message: str, line: Optional[int] = None, column: Optional[int] = None) -> None:
        super().__init__(message)
        self.line = line
        self.column = column

    def __str__(self) -> str:
        base = super().__str__()
        if self.line is None:
            return base
        return f"{base} (line {self.line}, column {self.column})"
