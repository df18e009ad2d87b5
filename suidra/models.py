"""
SUIDRA — Data Model.

Materialized Form / Question / Registry records plus the result envelopes
returned by the service layer. Everything here is a snapshot of ledger state
at the time it was fetched; nothing is persisted locally.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Generic, Optional, TypeVar

T = TypeVar("T")


@dataclass
class Question:
    id: str
    title: str
    description: str
    options: list[str]
    votes: list[int]
    voters: set[str] = field(default_factory=set)

    @property
    def total_votes(self) -> int:
        return sum(self.votes)

    def has_voted(self, address: str) -> bool:
        """Advisory only: as fresh as the last fetch, the ledger decides."""
        return address in self.voters

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "options": list(self.options),
            "votes": list(self.votes),
            "voters": sorted(self.voters),
        }


@dataclass
class Form:
    id: str
    title: str
    description: str
    author: str
    questions: list[Question] = field(default_factory=list)
    is_active: bool = False

    @property
    def question_count(self) -> int:
        return len(self.questions)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "author": self.author,
            "questions": [q.to_dict() for q in self.questions],
            "is_active": self.is_active,
        }


@dataclass
class FormRegistry:
    id: str
    form_ids: list[str] = field(default_factory=list)
    counter: int = 0


@dataclass
class RegistryStats:
    total_forms: int = 0
    active_forms: int = 0
    inactive_forms: int = 0
    total_questions: int = 0


@dataclass
class LedgerObject:
    """Raw object as read from the ledger, before decoding."""

    object_id: str
    exists: bool
    type_tag: str = ""
    fields: dict[str, Any] = field(default_factory=dict)
    version: str = ""
    digest: str = ""


@dataclass
class TransactionResult:
    """Normalized success/failure envelope for any ledger write."""

    success: bool
    transaction_id: Optional[str] = None
    error: Optional[str] = None
    error_code: Optional[int] = None
    errors: list[str] = field(default_factory=list)
    raw: Optional[dict[str, Any]] = None
    created_form_id: Optional[str] = None

    @classmethod
    def ok(cls, transaction_id: str, raw: dict[str, Any]) -> TransactionResult:
        return cls(success=True, transaction_id=transaction_id, raw=raw)

    @classmethod
    def failed(
        cls,
        error: str,
        *,
        error_code: int | None = None,
        errors: list[str] | None = None,
        raw: dict[str, Any] | None = None,
    ) -> TransactionResult:
        return cls(
            success=False,
            error=error,
            error_code=error_code,
            errors=list(errors or []),
            raw=raw,
        )

    @property
    def object_changes(self) -> list[dict[str, Any]]:
        if not self.raw:
            return []
        return list(self.raw.get("objectChanges") or [])

    def created_object_ids(self, type_suffix: str = "") -> list[str]:
        """Ids of objects created by this transaction, optionally filtered by type."""
        ids = []
        for change in self.object_changes:
            if change.get("type") != "created":
                continue
            object_type = change.get("objectType", "")
            if type_suffix and not object_type.endswith(type_suffix):
                continue
            object_id = change.get("objectId")
            if object_id:
                ids.append(object_id)
        return ids


@dataclass
class ReadResult(Generic[T]):
    """Outcome of a read: a value, nothing found, or a failure.

    ``value is None and error is None`` means the object does not exist.
    """

    value: Optional[T] = None
    error: Optional[Exception] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def found(self) -> bool:
        return self.value is not None
