"""
HotLedger Failure Taxonomy

Every failure a ledger operation can report. All of them are recoverable:
the operation that raised leaves balances, blacklist and recipient
mappings exactly as they were.
"""

from enum import Enum
from typing import Any, Dict, Optional


class FailureCode(str, Enum):
    """Standard failure codes."""
    EXPIRED = "EXPIRED"
    INVALID_SIGNATURE = "INVALID_SIGNATURE"
    BLACKLISTED = "BLACKLISTED"
    INSUFFICIENT_BALANCE = "INSUFFICIENT_BALANCE"
    NO_ROUTE = "NO_ROUTE"
    CYCLIC_ROUTE = "CYCLIC_ROUTE"


class LedgerError(Exception):
    """Base class for rejected ledger operations."""

    code: FailureCode

    def __init__(self, message: str, address: Optional[str] = None):
        self.address = address
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        d = {"error": self.code.value, "detail": str(self)}
        if self.address:
            d["address"] = self.address
        return d


class Expired(LedgerError):
    """Authorization deadline is before the current time."""
    code = FailureCode.EXPIRED


class InvalidSignature(LedgerError):
    """Recovered signer does not match the claimed owner."""
    code = FailureCode.INVALID_SIGNATURE


class Blacklisted(LedgerError):
    """Actor has already been cut off by an emergency withdraw."""
    code = FailureCode.BLACKLISTED


class InsufficientBalance(LedgerError):
    code = FailureCode.INSUFFICIENT_BALANCE


class NoRoute(LedgerError):
    """Resolution reached a blacklisted address with no emergency recipient."""
    code = FailureCode.NO_ROUTE


class CyclicRoute(LedgerError):
    """Resolution exceeded its hop bound."""
    code = FailureCode.CYCLIC_ROUTE
