"""SUIDRA Ledger Gateway - Base Class.

The gateway is the only component that talks to the ledger. Everything above
it works against this interface, which keeps services testable with
in-memory doubles.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Optional, Protocol, Union

from suidra.exceptions import NetworkError
from suidra.models import LedgerObject
from suidra.transactions import Transaction

logger = logging.getLogger("suidra.gateway")

RawEvent = dict[str, Any]
EventCallback = Callable[[RawEvent], Union[None, Awaitable[None]]]


@dataclass
class SignedTransaction:
    tx_bytes: str
    signatures: list[str] = field(default_factory=list)


class Signer(Protocol):
    """Signing capability supplied by the application (wallet, keystore)."""

    address: str

    async def sign_transaction(
        self, transaction: Transaction, gas_budget: int
    ) -> SignedTransaction: ...


@dataclass
class EventPage:
    data: list[RawEvent] = field(default_factory=list)
    next_cursor: Optional[dict[str, Any]] = None
    has_next_page: bool = False


class Subscription:
    """Handle for a live event feed running as a background task."""

    def __init__(self, task: Optional[asyncio.Task] = None):
        self._task = task
        self._closed = False

    @property
    def active(self) -> bool:
        return not self._closed and self._task is not None and not self._task.done()

    def unsubscribe(self) -> None:
        """Stop the feed. Safe to call any number of times."""
        if self._closed:
            return
        self._closed = True
        if self._task is not None and not self._task.done():
            self._task.cancel()
        logger.info("Event subscription closed")

    async def wait_closed(self) -> None:
        if self._task is None:
            return
        try:
            await self._task
        except asyncio.CancelledError:
            pass


class LedgerGateway(ABC):
    @property
    @abstractmethod
    def sender_address(self) -> Optional[str]:
        """Address of the signing capability, if one is configured."""

    @abstractmethod
    async def get_object(self, object_id: str) -> LedgerObject:
        pass

    @abstractmethod
    async def submit_transaction(
        self, transaction: Transaction, *, gas_budget: int
    ) -> dict[str, Any]:
        """Sign and execute a transaction, returning the raw ledger response.

        Raises:
            NetworkError: If the ledger cannot be reached.
            TransactionFailed: If the ledger refuses the request outright.
        """

    @abstractmethod
    async def query_events(
        self,
        event_types: list[str],
        *,
        limit: int = 100,
        descending: bool = True,
        cursor: Optional[dict[str, Any]] = None,
    ) -> EventPage:
        pass

    async def close(self) -> None:
        """Release transport resources."""

    def subscribe_events(
        self,
        event_types: list[str],
        callback: EventCallback,
        *,
        poll_interval: float = 2.0,
        limit: int = 100,
    ) -> Subscription:
        """Start a live feed of raw events, oldest first.

        Must be called from a running event loop.
        """
        task = asyncio.get_running_loop().create_task(
            self._poll_events(list(event_types), callback, poll_interval, limit)
        )
        logger.info("Event subscription started for %d event type(s)", len(event_types))
        return Subscription(task)

    # ─── Internal ────────────────────────────────────────────────────

    async def _poll_events(
        self,
        event_types: list[str],
        callback: EventCallback,
        poll_interval: float,
        limit: int,
    ) -> None:
        cursor = await self._latest_cursor(event_types, poll_interval)
        while True:
            try:
                page = await self.query_events(
                    event_types, limit=limit, descending=False, cursor=cursor
                )
            except NetworkError as e:
                logger.warning("Event poll failed: %s", e)
                await asyncio.sleep(poll_interval)
                continue
            except Exception:
                logger.exception("Unexpected error polling events")
                await asyncio.sleep(poll_interval)
                continue

            for raw in page.data:
                await _dispatch(callback, raw)
                cursor = raw.get("id") or cursor
            if page.next_cursor:
                cursor = page.next_cursor

            if not page.has_next_page:
                await asyncio.sleep(poll_interval)

    async def _latest_cursor(
        self, event_types: list[str], poll_interval: float
    ) -> Optional[dict[str, Any]]:
        """Cursor of the newest existing event, so the feed only sees new ones."""
        while True:
            try:
                page = await self.query_events(event_types, limit=1, descending=True)
            except NetworkError as e:
                logger.warning("Event feed bootstrap failed: %s", e)
                await asyncio.sleep(poll_interval)
                continue
            except Exception:
                logger.exception("Unexpected error starting event feed")
                await asyncio.sleep(poll_interval)
                continue
            if page.data:
                return page.data[0].get("id")
            return None


async def _dispatch(callback: EventCallback, raw: RawEvent) -> None:
    try:
        outcome = callback(raw)
        if inspect.isawaitable(outcome):
            await outcome
    except Exception as e:
        logger.error("Event callback failed: %s", e)
