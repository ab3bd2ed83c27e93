"""
HotLedger Registries

BlacklistRegistry: addresses permanently cut off by an emergency withdraw.
EmergencyRecipientRegistry: each address's declared fallback recipient.

Both live in the ledger's state and share its transactions.
"""

import logging
from typing import List, Optional

from .errors import Blacklisted
from .state import LedgerState
from .typed_data import AddressLike, normalize_address

logger = logging.getLogger(__name__)


class BlacklistRegistry:
    """
    Monotonic set of blacklisted addresses.

    There is no removal operation. Marking an address twice is a no-op.
    """

    def __init__(self, state: LedgerState):
        self._state = state

    def is_blacklisted(self, address: AddressLike) -> bool:
        return self._state.is_blacklisted(normalize_address(address))

    def mark_blacklisted(self, address: AddressLike) -> bool:
        """Mark an address. Returns True only the first time."""
        address = normalize_address(address)
        added = self._state.add_blacklisted(address)
        if added:
            logger.debug("blacklisted %s", address)
        return added

    def blacklisted(self) -> List[str]:
        return self._state.list_blacklisted()


class EmergencyRecipientRegistry:
    """
    Mapping address -> emergency recipient.

    The recipient may be the caller itself, a blacklisted address or an
    address with no balance. The resolver copes with each case.
    """

    def __init__(self, state: LedgerState, blacklist: BlacklistRegistry):
        self._state = state
        self._blacklist = blacklist

    def set_recipient(self, caller: AddressLike, recipient: AddressLike) -> None:
        """
        Register or overwrite the caller's emergency recipient.

        Raises:
            Blacklisted: caller has already been cut off
        """
        caller = normalize_address(caller)
        recipient = normalize_address(recipient)
        if self._blacklist.is_blacklisted(caller):
            raise Blacklisted(f"{caller} is blacklisted", caller)
        self._state.set_recipient(caller, recipient)

    def get_recipient(self, address: AddressLike) -> Optional[str]:
        return self._state.get_recipient(normalize_address(address))

    def count(self) -> int:
        return self._state.recipient_count()
