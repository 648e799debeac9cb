from __future__ import annotations


class PaginationError(ValueError):
    """Rejected pagination request. Raised before the database is touched."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InvalidPage(PaginationError):
    pass


class InvalidLimit(PaginationError):
    pass


class InvalidOption(PaginationError):
    """Malformed sort, projection or labels."""
