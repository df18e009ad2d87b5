"""SUIDRA Ledger Gateways."""

from suidra.gateway.base import (
    EventPage,
    LedgerGateway,
    SignedTransaction,
    Signer,
    Subscription,
)
from suidra.gateway.rpc import SuiRpcGateway

__all__ = [
    "EventPage",
    "LedgerGateway",
    "SignedTransaction",
    "Signer",
    "Subscription",
    "SuiRpcGateway",
]
