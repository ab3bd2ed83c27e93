"""
HotLedger Recipient Resolver

Follows emergency-recipient mappings away from blacklisted destinations.

    while destination is blacklisted:
        destination = recipient_of(destination)   # NoRoute if none

Only a blacklisted destination triggers a hop. A blacklisted declared
recipient of a non-blacklisted destination is never consulted.

Iteration is bounded by the number of distinct addresses with a
registered recipient: a chain that never repeats follows each entry at
most once, so exceeding that count means the chain loops (CyclicRoute).
"""

from dataclasses import dataclass, field
from typing import List, Optional

from .errors import CyclicRoute, NoRoute
from .registry import BlacklistRegistry, EmergencyRecipientRegistry
from .typed_data import AddressLike, normalize_address


@dataclass
class Route:
    """Outcome of a resolution: the nominal destination, the final holder and every address visited."""
    nominal: str
    resolved: str
    chain: List[str] = field(default_factory=list)

    @property
    def redirected(self) -> bool:
        return self.nominal != self.resolved

    @property
    def hops(self) -> int:
        return len(self.chain) - 1

    def to_dict(self):
        return {"nominal": self.nominal, "resolved": self.resolved, "chain": list(self.chain)}


class RecipientResolver:
    """
    Resolves a destination to its first non-blacklisted holder.

    Consults the registries, never mutates them.
    """

    def __init__(
        self,
        blacklist: BlacklistRegistry,
        recipients: EmergencyRecipientRegistry,
        max_hops: Optional[int] = None
    ):
        self.blacklist = blacklist
        self.recipients = recipients
        self.max_hops = max_hops

    def hop_bound(self) -> int:
        bound = self.recipients.count()
        if self.max_hops:
            bound = min(bound, self.max_hops)
        return bound

    def resolve(self, destination: AddressLike) -> str:
        """
        Return the address that actually receives a credit to `destination`.

        Raises:
            NoRoute: a blacklisted address on the chain has no recipient
            CyclicRoute: the chain exceeded its hop bound
        """
        return self.resolve_route(destination).resolved

    def resolve_route(self, destination: AddressLike) -> Route:
        nominal = normalize_address(destination)
        bound = self.hop_bound()
        chain = [nominal]
        current = nominal

        while self.blacklist.is_blacklisted(current):
            following = self.recipients.get_recipient(current)
            if following is None:
                raise NoRoute(f"{current} is blacklisted and has no emergency recipient", current)
            if len(chain) > bound:
                raise CyclicRoute(
                    f"Route from {nominal} exceeded {bound} hops: {' -> '.join(chain)}", nominal
                )
            current = following
            chain.append(current)

        return Route(nominal=nominal, resolved=current, chain=chain)
