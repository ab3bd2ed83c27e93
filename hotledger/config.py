"""
Configuration module for HotLedger.

Centralizes all configuration with environment variable support.
"""

import os
from typing import Any, Dict

# ============================================================
# Environment Configuration
# ============================================================

ENV = os.getenv("HOTLEDGER_ENV", "dev")  # dev|stage|prod

# Token metadata and signing domain
TOKEN_NAME = os.getenv("HOTLEDGER_NAME", "HotERC20")
TOKEN_SYMBOL = os.getenv("HOTLEDGER_SYMBOL", "HOT")
TOKEN_VERSION = os.getenv("HOTLEDGER_VERSION", "1")
TOKEN_DECIMALS = int(os.getenv("HOTLEDGER_DECIMALS", "18"))
CHAIN_ID = int(os.getenv("HOTLEDGER_CHAIN_ID", "31337"))
LEDGER_IDENTITY = os.getenv(
    "HOTLEDGER_LEDGER_IDENTITY", "0x5FbDB2315678afecb367f032d93F642f64180aa3"
)

# Bootstrap: 1,000,000 tokens at 18 decimals
INITIAL_SUPPLY = int(os.getenv("HOTLEDGER_INITIAL_SUPPLY", str(1_000_000 * 10 ** 18)))
INITIAL_HOLDER = os.getenv(
    "HOTLEDGER_INITIAL_HOLDER", "0xf39Fd6e51aad88F6F4ce6aB8827279cffFb92266"
)

# Persistence (empty -> in-memory state)
DB_PATH = os.getenv("HOTLEDGER_DB_PATH", "")

# Extra cap on resolution hops (0 -> bounded only by registry size)
MAX_ROUTE_HOPS = int(os.getenv("HOTLEDGER_MAX_ROUTE_HOPS", "0"))

# Rate limits (requests per minute)
TRANSFER_RPM = int(os.getenv("TRANSFER_RPM", "600"))
WITHDRAW_RPM = int(os.getenv("WITHDRAW_RPM", "120"))

# Operator endpoints (/transfer, /emergency_recipient) take no signature.
# Empty -> enabled everywhere except prod.
ACCOUNT_ENDPOINTS = os.getenv("HOTLEDGER_ACCOUNT_ENDPOINTS", "")

# Logging
LOG_LEVEL = os.getenv("HOTLEDGER_LOG_LEVEL", "INFO")
LOG_JSON = os.getenv("HOTLEDGER_LOG_JSON", "1").lower() in ("1", "true", "yes")


def ledger_settings() -> Dict[str, Any]:
    """Arguments for Ledger.create drawn from the environment."""
    return {
        "total_supply": INITIAL_SUPPLY,
        "initial_holder": INITIAL_HOLDER,
        "name": TOKEN_NAME,
        "version": TOKEN_VERSION,
        "chain_id": CHAIN_ID,
        "ledger_identity": LEDGER_IDENTITY,
        "symbol": TOKEN_SYMBOL,
        "decimals": TOKEN_DECIMALS,
        "max_route_hops": MAX_ROUTE_HOPS or None,
    }


# ============================================================
# Feature Flags
# ============================================================

def is_production() -> bool:
    """Check if running in production mode."""
    return ENV == "prod"


def is_debug() -> bool:
    """Check if debug mode is enabled."""
    return os.getenv("HOTLEDGER_DEBUG", "").lower() in ("1", "true", "yes")


def account_endpoints_enabled() -> bool:
    """Check if the unsigned account-operator endpoints are served."""
    if ACCOUNT_ENDPOINTS:
        return ACCOUNT_ENDPOINTS.lower() in ("1", "true", "yes")
    return not is_production()
