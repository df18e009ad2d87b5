"""SUIDRA — Sui JSON-RPC Gateway.

Async HTTP gateway for a Sui fullnode. Reads objects, queries events and
executes transactions signed by the application's ``Signer``.
"""

from __future__ import annotations

import itertools
import logging
from typing import Any, Optional

import httpx

from suidra import config
from suidra.exceptions import NetworkError, TransactionFailed
from suidra.gateway.base import EventPage, LedgerGateway, Signer
from suidra.models import LedgerObject
from suidra.transactions import Transaction

logger = logging.getLogger("suidra.gateway.rpc")

EXECUTE_OPTIONS = {
    "showEffects": True,
    "showEvents": True,
    "showObjectChanges": True,
    "showBalanceChanges": True,
}
OBJECT_OPTIONS = {"showContent": True, "showType": True}

# Errors sui_getObject reports for objects that are not (or no longer) there
_MISSING_OBJECT_CODES = frozenset({"notExists", "deleted", "dynamicFieldNotFound"})


class SuiRpcGateway(LedgerGateway):
    """Ledger gateway over the Sui JSON-RPC API.

    Usage::

        async with SuiRpcGateway(config.RPC_URL, signer=wallet) as gateway:
            obj = await gateway.get_object(registry_id)
    """

    def __init__(
        self,
        url: str,
        *,
        signer: Optional[Signer] = None,
        timeout: float = 30.0,
        client: Optional[httpx.AsyncClient] = None,
    ):
        if not url:
            raise ValueError("Sui RPC URL is required")

        self._url = url
        self._signer = signer
        self._ids = itertools.count(1)
        self._client = client or httpx.AsyncClient(
            timeout=timeout,
            headers={"Content-Type": "application/json"},
        )

    @classmethod
    def from_config(cls, signer: Optional[Signer] = None) -> SuiRpcGateway:
        return cls(config.RPC_URL, signer=signer, timeout=config.RPC_TIMEOUT)

    async def __aenter__(self) -> SuiRpcGateway:
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.close()

    async def close(self) -> None:
        """Shut down the HTTP client."""
        await self._client.aclose()

    @property
    def sender_address(self) -> Optional[str]:
        return self._signer.address if self._signer else None

    # ─── Reads ───────────────────────────────────────────────────────

    async def get_object(self, object_id: str) -> LedgerObject:
        result = await self._call("sui_getObject", [object_id, OBJECT_OPTIONS])

        error = result.get("error")
        if error:
            if isinstance(error, dict) and error.get("code") in _MISSING_OBJECT_CODES:
                return LedgerObject(object_id=object_id, exists=False)
            raise NetworkError(f"sui_getObject failed for {object_id}: {error}")

        data = result.get("data") or {}
        content = data.get("content") or {}
        if content.get("dataType") != "moveObject":
            # Packages and objects without content are not form data
            return LedgerObject(
                object_id=data.get("objectId", object_id),
                exists=bool(data),
                type_tag=data.get("type", ""),
                version=str(data.get("version", "")),
                digest=data.get("digest", ""),
            )

        return LedgerObject(
            object_id=data.get("objectId", object_id),
            exists=True,
            type_tag=content.get("type") or data.get("type", ""),
            fields=content.get("fields") or {},
            version=str(data.get("version", "")),
            digest=data.get("digest", ""),
        )

    async def query_events(
        self,
        event_types: list[str],
        *,
        limit: int = 100,
        descending: bool = True,
        cursor: Optional[dict[str, Any]] = None,
    ) -> EventPage:
        query = {"Any": [{"MoveEventType": event_type} for event_type in event_types]}
        result = await self._call("suix_queryEvents", [query, cursor, limit, descending])
        return EventPage(
            data=list(result.get("data") or []),
            next_cursor=result.get("nextCursor"),
            has_next_page=bool(result.get("hasNextPage")),
        )

    # ─── Writes ──────────────────────────────────────────────────────

    async def submit_transaction(
        self, transaction: Transaction, *, gas_budget: int
    ) -> dict[str, Any]:
        if self._signer is None:
            raise TransactionFailed("No signer configured for this gateway")

        signed = await self._signer.sign_transaction(transaction, gas_budget)
        logger.info(
            "Submitting transaction %s from %s",
            "+".join(transaction.functions),
            self._signer.address,
        )
        return await self._call(
            "sui_executeTransactionBlock",
            [signed.tx_bytes, signed.signatures, EXECUTE_OPTIONS, "WaitForLocalExecution"],
        )

    # ─── Internal ────────────────────────────────────────────────────

    async def _call(self, method: str, params: list[Any]) -> dict[str, Any]:
        """Make a JSON-RPC call and return its ``result`` member."""
        body = {"jsonrpc": "2.0", "id": next(self._ids), "method": method, "params": params}
        try:
            resp = await self._client.post(self._url, json=body)
        except httpx.TimeoutException as e:
            raise NetworkError(f"Network error: {method} timed out: {e}") from e
        except httpx.HTTPError as e:
            raise NetworkError(f"Network error: {e}") from e

        if resp.status_code >= 400:
            raise NetworkError(f"Network error: HTTP {resp.status_code}: {resp.text[:200]}")

        try:
            payload = resp.json()
        except ValueError as e:
            raise NetworkError(f"Invalid JSON from {method}: {e}") from e

        if not isinstance(payload, dict):
            raise NetworkError(f"Invalid JSON-RPC response from {method}")

        if payload.get("error"):
            error = payload["error"]
            message = error.get("message", str(error)) if isinstance(error, dict) else str(error)
            if method == "sui_executeTransactionBlock":
                # Rejected before execution (dry run abort, bad signature, ...)
                raise TransactionFailed(message)
            raise NetworkError(f"RPC error from {method}: {message}")

        result = payload.get("result") or {}
        if not isinstance(result, dict):
            raise NetworkError(f"Invalid JSON-RPC result from {method}: {type(result).__name__}")
        return result

