"""
Utility functions for HotLedger.

Hex encoding and time helpers shared by the service and the CLI.
"""

import time
from typing import Union


def now_epoch() -> int:
    """Get current Unix timestamp as integer."""
    return int(time.time())


def to_hex(data: bytes) -> str:
    """0x-prefixed lowercase hex."""
    return "0x" + data.hex()


def from_hex(value: Union[str, bytes]) -> bytes:
    """Decode hex with or without 0x prefix. Bytes pass through."""
    if isinstance(value, bytes):
        return value
    if value.startswith(("0x", "0X")):
        value = value[2:]
    return bytes.fromhex(value)
