"""
SUIDRA — Analytics & Validation.

Pure functions over materialized Form / Question records: input validation,
vote tallies, sorting, filtering and a few display helpers. Nothing here
touches the ledger.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from datetime import datetime
from typing import Iterable, Optional

from suidra.models import Form, Question

logger = logging.getLogger("suidra.analytics")

__all__ = [
    "FORM_TITLE_MAX",
    "FORM_DESCRIPTION_MAX",
    "QUESTION_TITLE_MAX",
    "OPTION_MAX",
    "MIN_OPTIONS",
    "MAX_OPTIONS",
    "SORT_KEYS",
    "ValidationResult",
    "VotingStats",
    "WinningOption",
    "calculate_voting_stats",
    "filter_forms",
    "format_timestamp",
    "relative_time",
    "shorten_id",
    "sort_forms",
    "truncate_text",
    "validate_add_question",
    "validate_create_form",
]

FORM_TITLE_MAX = 100
FORM_DESCRIPTION_MAX = 500
QUESTION_TITLE_MAX = 200
OPTION_MAX = 100
MIN_OPTIONS = 2
MAX_OPTIONS = 10


# ─── Validation ──────────────────────────────────────────────────────


@dataclass
class ValidationResult:
    errors: list[str] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.errors


def validate_create_form(title: Optional[str], description: Optional[str]) -> ValidationResult:
    """Check form creation input, collecting every problem."""
    errors: list[str] = []

    if not title or not title.strip():
        errors.append("Form title is required")
    if title and len(title) > FORM_TITLE_MAX:
        errors.append(f"Form title must be less than {FORM_TITLE_MAX} characters")

    if not description or not description.strip():
        errors.append("Form description is required")
    if description and len(description) > FORM_DESCRIPTION_MAX:
        errors.append(f"Form description must be less than {FORM_DESCRIPTION_MAX} characters")

    return ValidationResult(errors)


def validate_add_question(
    title: Optional[str],
    description: Optional[str],
    options: Optional[list[str]],
) -> ValidationResult:
    """Check question input, collecting every problem."""
    errors: list[str] = []

    if not title or not title.strip():
        errors.append("Question title is required")
    if title and len(title) > QUESTION_TITLE_MAX:
        errors.append(f"Question title must be less than {QUESTION_TITLE_MAX} characters")

    if not description or not description.strip():
        errors.append("Question description is required")

    options = options or []
    if len(options) < MIN_OPTIONS:
        errors.append(f"At least {MIN_OPTIONS} options are required")
    if len(options) > MAX_OPTIONS:
        errors.append(f"Maximum {MAX_OPTIONS} options allowed")

    for index, option in enumerate(options, start=1):
        if not option or not option.strip():
            errors.append(f"Option {index} cannot be empty")
        if option and len(option) > OPTION_MAX:
            errors.append(f"Option {index} must be less than {OPTION_MAX} characters")

    normalized = {(option or "").strip().lower() for option in options}
    if len(normalized) != len(options):
        errors.append("Options must be unique")

    return ValidationResult(errors)


# ─── Vote Tallies ────────────────────────────────────────────────────


@dataclass(frozen=True)
class WinningOption:
    index: int
    option: str
    percentage: float


@dataclass(frozen=True)
class VotingStats:
    total_votes: int
    percentages: list[float]
    winning_option: Optional[WinningOption]


def calculate_voting_stats(question: Question) -> VotingStats:
    """Totals, per-option percentages and the leading option.

    Ties go to the lowest index.
    """
    votes = list(question.votes)
    total = sum(votes)

    if total == 0:
        return VotingStats(0, [0.0] * len(question.options), None)

    percentages = [count / total * 100 for count in votes]
    best = max(votes)
    index = votes.index(best)

    winner = None
    if index < len(question.options):
        winner = WinningOption(index, question.options[index], percentages[index])

    return VotingStats(total, percentages, winner)


# ─── Listing ─────────────────────────────────────────────────────────

SORT_KEYS = ("newest", "oldest", "title", "most_questions")
_SORT_ALIASES = {"mostQuestions": "most_questions"}


def sort_forms(forms: Iterable[Form], key: str) -> list[Form]:
    """Stable sort by one of SORT_KEYS.

    newest/oldest compare object ids lexicographically, which only tracks
    creation order if the ledger hands out ids monotonically. Unknown keys
    keep the input order.
    """
    key = _SORT_ALIASES.get(key, key)
    forms = list(forms)

    if key == "newest":
        return sorted(forms, key=lambda f: f.id, reverse=True)
    if key == "oldest":
        return sorted(forms, key=lambda f: f.id)
    if key == "title":
        return sorted(forms, key=lambda f: f.title)
    if key == "most_questions":
        return sorted(forms, key=lambda f: f.question_count, reverse=True)

    logger.debug("Unknown sort key %r, keeping input order", key)
    return forms


def filter_forms(forms: list[Form], term: str) -> list[Form]:
    """Case-insensitive match on form and question titles/descriptions."""
    needle = (term or "").strip().lower()
    if not needle:
        return forms

    def matches(form: Form) -> bool:
        if needle in form.title.lower() or needle in form.description.lower():
            return True
        return any(
            needle in q.title.lower() or needle in q.description.lower() for q in form.questions
        )

    return [form for form in forms if matches(form)]


# ─── Display Helpers ─────────────────────────────────────────────────


def truncate_text(text: str, max_length: int) -> str:
    if len(text) <= max_length:
        return text
    return text[:max_length].strip() + "..."


def shorten_id(object_id: str, length: int = 8) -> str:
    """``0x12...cdef`` style short id for display."""
    if len(object_id) <= length:
        return object_id
    half = length // 2
    return f"{object_id[:half]}...{object_id[-half:]}"


def format_timestamp(timestamp_ms: int) -> str:
    return datetime.fromtimestamp(timestamp_ms / 1000).strftime("%Y-%m-%d %H:%M:%S")


def relative_time(timestamp_ms: int, now_ms: Optional[int] = None) -> str:
    """Human readable age, e.g. ``2 hours ago``."""
    if now_ms is None:
        now_ms = int(time.time() * 1000)

    seconds = (now_ms - timestamp_ms) // 1000
    minutes = seconds // 60
    hours = minutes // 60
    days = hours // 24

    if seconds < 60:
        return "Just now"
    if minutes < 60:
        return f"{minutes} minute{'s' if minutes > 1 else ''} ago"
    if hours < 24:
        return f"{hours} hour{'s' if hours > 1 else ''} ago"
    if days < 30:
        return f"{days} day{'s' if days > 1 else ''} ago"
    return format_timestamp(timestamp_ms)
