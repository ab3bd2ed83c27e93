"""
HotLedger

A token ledger where any holder can be cut off exactly once by a signed,
relayable emergency withdraw, and where every credit to a cut-off address
is rerouted along owner-declared emergency recipients.

Usage:
    from hotledger import Ledger, sign_emergency_withdraw

    ledger = Ledger.create(
        total_supply=1_000_000,
        initial_holder=holder,
        name="HotERC20",
        version="1",
        chain_id=1,
        ledger_identity=ledger_address,
    )

    ledger.set_recipient(owner, safe_address)
    signature = sign_emergency_withdraw(owner_key, ledger.domain, owner, deadline)

    # Anyone can relay the signed authorization
    receipt = ledger.emergency_withdraw(owner, deadline, signature, now=now)
"""

__version__ = "1.0.0"

from .errors import (
    FailureCode,
    LedgerError,
    Expired,
    InvalidSignature,
    Blacklisted,
    InsufficientBalance,
    NoRoute,
    CyclicRoute,
)

from .typed_data import (
    TypedDataDomain,
    domain_separator,
    emergency_withdraw_struct_hash,
    typed_data_digest,
    normalize_address,
    ZERO_ADDRESS,
    DOMAIN_TYPEHASH,
    EMERGENCY_WITHDRAW_TYPEHASH,
)

from .signing import (
    Signature,
    SignatureAuthority,
    Recoverer,
    recover_address,
    generate_private_key,
    address_of,
    sign_digest,
    sign_emergency_withdraw,
)

from .state import LedgerState, InMemoryLedgerState, SQLiteLedgerState
from .registry import BlacklistRegistry, EmergencyRecipientRegistry
from .resolver import RecipientResolver, Route
from .events import EventType, LedgerEvent, EventLog, InMemoryEventLog
from .ledger import Ledger, TransferReceipt, EmergencyWithdrawReceipt


__all__ = [
    "__version__",

    # Errors
    "FailureCode",
    "LedgerError",
    "Expired",
    "InvalidSignature",
    "Blacklisted",
    "InsufficientBalance",
    "NoRoute",
    "CyclicRoute",

    # Typed data
    "TypedDataDomain",
    "domain_separator",
    "emergency_withdraw_struct_hash",
    "typed_data_digest",
    "normalize_address",
    "ZERO_ADDRESS",
    "DOMAIN_TYPEHASH",
    "EMERGENCY_WITHDRAW_TYPEHASH",

    # Signing
    "Signature",
    "SignatureAuthority",
    "Recoverer",
    "recover_address",
    "generate_private_key",
    "address_of",
    "sign_digest",
    "sign_emergency_withdraw",

    # State and registries
    "LedgerState",
    "InMemoryLedgerState",
    "SQLiteLedgerState",
    "BlacklistRegistry",
    "EmergencyRecipientRegistry",
    "RecipientResolver",
    "Route",

    # Events
    "EventType",
    "LedgerEvent",
    "EventLog",
    "InMemoryEventLog",

    # Ledger
    "Ledger",
    "TransferReceipt",
    "EmergencyWithdrawReceipt",
]
