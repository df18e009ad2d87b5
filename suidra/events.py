"""
SUIDRA — Form Event Stream.

Typed view over the ledger's event feed. Historical queries (newest first)
and the live subscription both go through one decoder; events of unknown
type or with malformed payloads are skipped, never raised.
"""

from __future__ import annotations

import inspect
import logging
from enum import Enum
from typing import Any, Awaitable, Callable, ClassVar, Optional, Union

from pydantic import BaseModel, ConfigDict
from pydantic import ValidationError as PydanticValidationError

from suidra import config
from suidra.exceptions import DecodeError, NetworkError
from suidra.gateway.base import LedgerGateway, Subscription
from suidra.models import ReadResult

logger = logging.getLogger("suidra.events")


class FormEventType(str, Enum):
    FORM_LISTED = "FormListed"
    FORM_DELISTED = "FormDelisted"
    USER_VOTED = "UserVoted"
    FORM_DELETED = "FormDeleted"


# ─── Event Variants ──────────────────────────────────────────────────


class _FormEventBase(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")

    kind: ClassVar[FormEventType]

    author: str
    timestamp: int
    # Envelope metadata from the ledger, when available
    tx_digest: Optional[str] = None
    event_seq: Optional[str] = None
    timestamp_ms: Optional[int] = None

    @property
    def target_form_id(self) -> str:
        """The form this event is about, whichever field carries it."""
        return getattr(self, "id", None) or getattr(self, "form_id")


class FormListed(_FormEventBase):
    kind: ClassVar[FormEventType] = FormEventType.FORM_LISTED
    id: str


class FormDelisted(_FormEventBase):
    kind: ClassVar[FormEventType] = FormEventType.FORM_DELISTED
    form_id: str


class UserVoted(_FormEventBase):
    kind: ClassVar[FormEventType] = FormEventType.USER_VOTED
    id: str
    user: str


class FormDeleted(_FormEventBase):
    kind: ClassVar[FormEventType] = FormEventType.FORM_DELETED
    form_id: str


FormEvent = Union[FormListed, FormDelisted, UserVoted, FormDeleted]
FormEventCallback = Callable[[FormEvent], Union[None, Awaitable[None]]]

_VARIANTS: dict[FormEventType, type[_FormEventBase]] = {
    FormEventType.FORM_LISTED: FormListed,
    FormEventType.FORM_DELISTED: FormDelisted,
    FormEventType.USER_VOTED: UserVoted,
    FormEventType.FORM_DELETED: FormDeleted,
}


def is_event_related_to_form(event: FormEvent, form_id: str) -> bool:
    """True iff the event's ``id`` or ``form_id`` is ``form_id``."""
    return getattr(event, "id", None) == form_id or getattr(event, "form_id", None) == form_id


# ─── Stream ──────────────────────────────────────────────────────────


class FormEventStream:
    """Decoding adapter over the gateway's event query and feed.

    Usage:
        stream = FormEventStream(gateway, package_id)
        history = await stream.get_form_events(form_id)
        sub = stream.subscribe(on_event)
        ...
        sub.unsubscribe()
    """

    def __init__(self, gateway: LedgerGateway, package_id: str, *, module: str = "form") -> None:
        if not package_id:
            raise ValueError("package_id is required")
        self.gateway = gateway
        self.package_id = package_id
        self.module = module
        self._kinds_by_tag = {self.event_type_tag(kind): kind for kind in FormEventType}

    def event_type_tag(self, kind: FormEventType) -> str:
        return f"{self.package_id}::{self.module}::{kind.value}"

    def _tags(self, event_types: Optional[list[FormEventType]]) -> list[str]:
        kinds = event_types or list(FormEventType)
        return [self.event_type_tag(FormEventType(kind)) for kind in kinds]

    # ─── Decoding ────────────────────────────────────────────────────

    def parse_event(self, raw: Any) -> FormEvent:
        """Decode a raw ledger event.

        Raises:
            DecodeError: Unknown event type or payload of the wrong shape.
        """
        if not isinstance(raw, dict):
            raise DecodeError(f"Event is not an object: {raw!r}")

        kind = self._kinds_by_tag.get(raw.get("type", ""))
        if kind is None:
            raise DecodeError(f"Unknown event type: {raw.get('type')!r}")

        payload = raw.get("parsedJson")
        if not isinstance(payload, dict):
            raise DecodeError(f"{kind.value} event has no parsed payload")

        envelope = raw.get("id") if isinstance(raw.get("id"), dict) else {}
        data = {
            **payload,
            "tx_digest": envelope.get("txDigest"),
            "event_seq": envelope.get("eventSeq"),
            "timestamp_ms": raw.get("timestampMs"),
        }
        try:
            return _VARIANTS[kind].model_validate(data)
        except PydanticValidationError as e:
            raise DecodeError(f"Malformed {kind.value} payload: {e.error_count()} error(s)") from e

    def decode_event(self, raw: Any) -> Optional[FormEvent]:
        """Like ``parse_event`` but returns None for anything undecodable."""
        try:
            return self.parse_event(raw)
        except DecodeError as e:
            logger.debug("Skipping event: %s", e)
            return None

    def decode_events(self, raws: list[Any]) -> list[FormEvent]:
        events = []
        for raw in raws:
            event = self.decode_event(raw)
            if event is not None:
                events.append(event)
        return events

    # ─── Historical Queries ──────────────────────────────────────────

    async def read_events(
        self,
        event_types: Optional[list[FormEventType]] = None,
        *,
        limit: int = config.EVENT_QUERY_LIMIT,
        descending: bool = True,
    ) -> ReadResult[list[FormEvent]]:
        try:
            page = await self.gateway.query_events(
                self._tags(event_types), limit=limit, descending=descending
            )
        except NetworkError as e:
            logger.warning("Event query failed: %s", e)
            return ReadResult(error=e)
        except Exception as e:
            logger.exception("Unexpected error querying events")
            return ReadResult(error=e)
        return ReadResult(value=self.decode_events(page.data))

    async def query_events(
        self,
        event_types: Optional[list[FormEventType]] = None,
        *,
        limit: int = config.EVENT_QUERY_LIMIT,
        descending: bool = True,
    ) -> list[FormEvent]:
        result = await self.read_events(event_types, limit=limit, descending=descending)
        return result.value or []

    async def get_form_events(
        self,
        form_id: str,
        event_types: Optional[list[FormEventType]] = None,
        *,
        limit: int = config.EVENT_QUERY_LIMIT,
    ) -> list[FormEvent]:
        """Recent events touching one form, newest first."""
        events = await self.query_events(event_types, limit=limit)
        return [event for event in events if is_event_related_to_form(event, form_id)]

    async def get_recent_events(self, limit: int = 50) -> list[FormEvent]:
        return await self.query_events(limit=limit)

    # ─── Live Feed ───────────────────────────────────────────────────

    def subscribe(
        self,
        callback: FormEventCallback,
        event_types: Optional[list[FormEventType]] = None,
        *,
        poll_interval: float = config.EVENT_POLL_INTERVAL,
    ) -> Subscription:
        """Deliver decoded events to ``callback`` until unsubscribed."""

        async def on_raw(raw: dict[str, Any]) -> None:
            event = self.decode_event(raw)
            if event is None:
                return
            outcome = callback(event)
            if inspect.isawaitable(outcome):
                await outcome

        return self.gateway.subscribe_events(
            self._tags(event_types), on_raw, poll_interval=poll_interval
        )
