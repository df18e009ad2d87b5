"""
SUIDRA — Custom Exceptions.

Typed error hierarchy for the form/registry layer. Services catch these at
their boundary and hand callers structured results instead.
"""

from __future__ import annotations


class SuidraError(Exception):
    """Base exception for all SUIDRA errors."""


class ValidationError(SuidraError):
    """Input rejected locally, before anything reaches the ledger."""

    def __init__(self, errors: list[str]):
        self.errors = list(errors)
        super().__init__("; ".join(self.errors) or "Validation failed")


class InvalidArgument(ValidationError):
    """Raised by the contract binding when a call cannot be encoded."""


class NotFound(SuidraError):
    """Object absent on the ledger, or not of the expected type."""

    def __init__(self, object_id: str, detail: str = ""):
        self.object_id = object_id
        self.detail = detail
        message = f"Object {object_id} not found"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)


class TransactionFailed(SuidraError):
    """The ledger executed and rejected a transaction."""

    def __init__(self, reason: str, code: int | None = None):
        self.reason = reason
        self.code = code
        super().__init__(reason)


class NetworkError(SuidraError):
    """Gateway unreachable, timed out or answered garbage."""


class DecodeError(SuidraError):
    """Event or object payload does not have the expected shape."""
