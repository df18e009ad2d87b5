"""
SUIDRA — Configuration.
Shared settings for the ledger gateway and contract binding.

Values come from the environment. Services never read this module on their
own: the application passes the values it wants to the constructors, or
uses the ``from_config()`` factories.
"""

import os

# ─── Network ─────────────────────────────────────────────────────────
# SUIDRA_NETWORK: "testnet" (default) | "devnet" | "mainnet" | "localnet"
FULLNODE_URLS = {
    "mainnet": "https://fullnode.mainnet.sui.io:443",
    "testnet": "https://fullnode.testnet.sui.io:443",
    "devnet": "https://fullnode.devnet.sui.io:443",
    "localnet": "http://127.0.0.1:9000",
}

NETWORK = "testnet"
RPC_URL = ""
RPC_TIMEOUT = 30.0

# ─── Contract ────────────────────────────────────────────────────────
PACKAGE_ID = ""
REGISTRY_ID = ""
MODULE_NAME = "form"

# ─── Gas (MIST) ──────────────────────────────────────────────────────
DEFAULT_GAS_BUDGET = 10_000_000  # 0.01 SUI
MAX_GAS_BUDGET = 100_000_000  # 0.1 SUI
GAS_BUDGET = DEFAULT_GAS_BUDGET

# ─── Events ──────────────────────────────────────────────────────────
EVENT_POLL_INTERVAL = 2.0
EVENT_QUERY_LIMIT = 100


def fullnode_url(network: str) -> str:
    """Return the public fullnode URL for a named network."""
    try:
        return FULLNODE_URLS[network]
    except KeyError:
        raise ValueError(
            f"Unknown network '{network}'. Expected one of: {', '.join(sorted(FULLNODE_URLS))}"
        ) from None


def reload() -> None:
    """Re-read every setting from the environment."""
    global NETWORK, RPC_URL, RPC_TIMEOUT, PACKAGE_ID, REGISTRY_ID, MODULE_NAME
    global GAS_BUDGET, MAX_GAS_BUDGET, EVENT_POLL_INTERVAL, EVENT_QUERY_LIMIT

    NETWORK = os.environ.get("SUIDRA_NETWORK", "testnet")
    RPC_URL = os.environ.get("SUIDRA_RPC_URL", "") or FULLNODE_URLS.get(NETWORK, "")
    RPC_TIMEOUT = float(os.environ.get("SUIDRA_RPC_TIMEOUT", "30"))

    PACKAGE_ID = os.environ.get("SUIDRA_PACKAGE_ID", "")
    REGISTRY_ID = os.environ.get("SUIDRA_REGISTRY_ID", "")
    MODULE_NAME = os.environ.get("SUIDRA_MODULE_NAME", "form")

    GAS_BUDGET = int(os.environ.get("SUIDRA_GAS_BUDGET", str(DEFAULT_GAS_BUDGET)))
    MAX_GAS_BUDGET = int(os.environ.get("SUIDRA_MAX_GAS_BUDGET", "100000000"))

    EVENT_POLL_INTERVAL = float(os.environ.get("SUIDRA_EVENT_POLL_INTERVAL", "2"))
    EVENT_QUERY_LIMIT = int(os.environ.get("SUIDRA_EVENT_QUERY_LIMIT", "100"))


reload()
