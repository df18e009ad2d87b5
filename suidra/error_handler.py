"""
SUIDRA — Error Classification.

Maps contract abort codes and raw ledger error messages to something a user
can act on: a message, a severity, whether retrying makes sense, and a
suggested next step. Lookup is total: unknown codes get a generic entry and
unknown strings come back unchanged.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum, IntEnum
from typing import Optional, Union

__all__ = [
    "ContractErrorCode",
    "ErrorInfo",
    "Severity",
    "describe_error",
    "extract_abort_code",
    "get_error_message",
    "get_error_severity",
    "get_suggested_action",
    "is_retryable_error",
]


class ContractErrorCode(IntEnum):
    """Abort codes raised by the forms Move module."""

    EMPTY_TITLE = 1
    NOT_AUTHOR = 2
    FORM_NOT_ACTIVE = 3
    FORM_ALREADY_ACTIVE = 4
    INVALID_OPTION = 5
    ALREADY_VOTED = 6


class Severity(str, Enum):
    ERROR = "error"
    WARNING = "warning"
    INFO = "info"


@dataclass(frozen=True)
class ErrorInfo:
    message: str
    severity: Severity = Severity.ERROR
    retryable: bool = True
    suggested_action: Optional[str] = None


CONTRACT_ERRORS: dict[int, ErrorInfo] = {
    ContractErrorCode.EMPTY_TITLE: ErrorInfo(
        "Title cannot be empty", Severity.WARNING, True, "Please enter a valid title"
    ),
    ContractErrorCode.NOT_AUTHOR: ErrorInfo(
        "You are not the author of this form", Severity.ERROR, False, "Switch to the author account"
    ),
    ContractErrorCode.FORM_NOT_ACTIVE: ErrorInfo(
        "This form is not currently active", Severity.INFO, True, "Activate the form first"
    ),
    ContractErrorCode.FORM_ALREADY_ACTIVE: ErrorInfo(
        "This form is already active", Severity.INFO, True, "Form is already active"
    ),
    ContractErrorCode.INVALID_OPTION: ErrorInfo(
        "Invalid option selected", Severity.WARNING, True, "Select a valid option"
    ),
    ContractErrorCode.ALREADY_VOTED: ErrorInfo(
        "You have already voted on this question", Severity.ERROR, False, "You can only vote once"
    ),
}

UNKNOWN_CONTRACT_ERROR = ErrorInfo("Unknown contract error occurred", Severity.ERROR, True, None)

# Substring -> entry, checked in order
MESSAGE_PATTERNS: list[tuple[str, ErrorInfo]] = [
    (
        "Insufficient gas",
        ErrorInfo(
            "Insufficient gas to complete transaction. Please try again with more gas.",
            Severity.WARNING,
            True,
            "Increase gas budget and try again",
        ),
    ),
    (
        "Object does not exist",
        ErrorInfo("The requested form or object no longer exists.", Severity.ERROR, False, None),
    ),
    (
        "Invalid signature",
        ErrorInfo(
            "Transaction signature is invalid. Please check your wallet connection.",
            Severity.ERROR,
            False,
            "Reconnect your wallet",
        ),
    ),
    (
        "Network error",
        ErrorInfo(
            "Network connection error. Please check your internet connection and try again.",
            Severity.WARNING,
            True,
            "Check your connection and retry",
        ),
    ),
]

# "Move abort in 0x2::form::vote: Abort(6)" and the effects form
# "MoveAbort(MoveLocation { ... }, 6) in command 0"
_ABORT_PATTERNS = (
    re.compile(r"Move abort in .* Abort\((\d+)\)"),
    re.compile(r"MoveAbort\(.*,\s*(\d+)\)"),
)


def extract_abort_code(message: str) -> Optional[int]:
    """Pull a Move abort code out of a raw ledger error message."""
    for pattern in _ABORT_PATTERNS:
        match = pattern.search(message)
        if match:
            return int(match.group(1))
    return None


def describe_error(error: Union[int, str]) -> ErrorInfo:
    """Classify a contract error code or raw error message."""
    if isinstance(error, int) and not isinstance(error, bool):
        return CONTRACT_ERRORS.get(error, UNKNOWN_CONTRACT_ERROR)

    if isinstance(error, str):
        code = extract_abort_code(error)
        if code is not None:
            return describe_error(code)
        for needle, info in MESSAGE_PATTERNS:
            if needle in error:
                return info
        return ErrorInfo(error)

    return ErrorInfo("An unexpected error occurred")


def get_error_message(error: Union[int, str]) -> str:
    return describe_error(error).message


def get_error_severity(error: Union[int, str]) -> Severity:
    return describe_error(error).severity


def is_retryable_error(error: Union[int, str]) -> bool:
    return describe_error(error).retryable


def get_suggested_action(error: Union[int, str]) -> Optional[str]:
    return describe_error(error).suggested_action
