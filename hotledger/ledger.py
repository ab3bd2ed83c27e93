"""
HotLedger Ledger

Balances and total supply, with every credit routed through the
RecipientResolver, plus the signed emergency-withdraw state transition.

Architecture:
    transfer / emergency_withdraw
        ↓
    Ledger (lock + state transaction)
        ↓ destination
    RecipientResolver (BlacklistRegistry, EmergencyRecipientRegistry)
        ↓ resolved holder
    credit

Emergency withdraw consults the SignatureAuthority before it blacklists
the owner and moves the owner's whole balance.

Every command is all-or-nothing: a LedgerError raised anywhere inside it
rolls back balances, blacklist and recipient mappings.
"""

import logging
import threading
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .errors import Blacklisted, InsufficientBalance, InvalidSignature, LedgerError, NoRoute
from .events import EventLog, EventType, InMemoryEventLog, LedgerEvent
from .logging_config import audit_log
from .registry import BlacklistRegistry, EmergencyRecipientRegistry
from .resolver import RecipientResolver, Route
from .signing import Recoverer, Signature, SignatureAuthority
from .state import InMemoryLedgerState, LedgerState
from .typed_data import (
    ZERO_ADDRESS,
    AddressLike,
    TypedDataDomain,
    normalize_address,
    validate_uint256,
)

logger = logging.getLogger(__name__)


@dataclass
class TransferReceipt:
    """Result of a committed transfer."""
    sender: str
    destination: str
    recipient: str
    amount: int
    route: Route

    @property
    def redirected(self) -> bool:
        return self.route.redirected

    def to_dict(self) -> Dict[str, Any]:
        return {
            "sender": self.sender,
            "destination": self.destination,
            "recipient": self.recipient,
            "amount": str(self.amount),
            "redirected": self.redirected,
            "route": self.route.chain,
        }


@dataclass
class EmergencyWithdrawReceipt:
    """Result of a committed emergency withdraw."""
    owner: str
    recipient: str
    amount: int
    deadline: int
    route: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "owner": self.owner,
            "recipient": self.recipient,
            "amount": str(self.amount),
            "deadline": self.deadline,
            "route": self.route,
        }


class Ledger:
    """
    A token ledger with blacklisting and emergency-recipient routing.

    Usage:
        ledger = Ledger.create(
            total_supply=1_000_000,
            initial_holder=holder,
            name="HotERC20",
            version="1",
            chain_id=31337,
            ledger_identity=ledger_address,
        )
        ledger.transfer(holder, alice, 1000)
        ledger.set_recipient(alice, bob)
        ledger.emergency_withdraw(alice, deadline, signature, now=now)
    """

    def __init__(
        self,
        domain: TypedDataDomain,
        state: Optional[LedgerState] = None,
        recoverer: Optional[Recoverer] = None,
        event_log: Optional[EventLog] = None,
        symbol: str = "HOT",
        decimals: int = 18,
        max_route_hops: Optional[int] = None
    ):
        self.domain = domain
        self.symbol = symbol
        self.decimals = decimals
        self.state = state or InMemoryLedgerState()
        self.event_log = event_log or InMemoryEventLog()
        self.authority = SignatureAuthority(domain, recoverer)
        self.blacklist = BlacklistRegistry(self.state)
        self.recipients = EmergencyRecipientRegistry(self.state, self.blacklist)
        self.resolver = RecipientResolver(self.blacklist, self.recipients, max_route_hops)
        self._lock = threading.RLock()

    @classmethod
    def create(
        cls,
        total_supply: int,
        initial_holder: AddressLike,
        name: str,
        version: str,
        chain_id: int,
        ledger_identity: AddressLike,
        **kwargs
    ) -> "Ledger":
        """Create a ledger and mint `total_supply` to `initial_holder`."""
        domain = TypedDataDomain(
            name=name,
            version=version,
            chain_id=chain_id,
            ledger_identity=ledger_identity,
        )
        ledger = cls(domain, **kwargs)
        ledger._mint(initial_holder, total_supply)
        return ledger

    def _mint(self, holder: AddressLike, amount: int) -> None:
        holder = normalize_address(holder)
        validate_uint256(amount, "total_supply")
        with self._lock:
            with self.state.transaction():
                if self.state.is_initialized():
                    raise ValueError("Ledger state is already initialized")
                self.state.set_balance(holder, amount)
                self.state.set_total_supply(amount)
                self.state.mark_initialized()
        self.event_log.append([
            LedgerEvent(EventType.TRANSFER, {"from": ZERO_ADDRESS, "to": holder, "value": amount})
        ])
        logger.info("minted %s to %s", amount, holder)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    @property
    def name(self) -> str:
        return self.domain.name

    @property
    def version(self) -> str:
        return self.domain.version

    @property
    def chain_id(self) -> int:
        return self.domain.chain_id

    @property
    def ledger_identity(self) -> str:
        return self.domain.ledger_identity

    def domain_separator(self) -> bytes:
        return self.domain.separator

    # Queries take the command lock, so they never observe a command
    # that is still running or about to roll back.

    def total_supply(self) -> int:
        with self._lock:
            return self.state.get_total_supply()

    def balance_of(self, address: AddressLike) -> int:
        address = normalize_address(address)
        with self._lock:
            return self.state.get_balance(address)

    def balances(self) -> Dict[str, int]:
        with self._lock:
            return self.state.balances()

    def is_blacklisted(self, address: AddressLike) -> bool:
        with self._lock:
            return self.blacklist.is_blacklisted(address)

    def get_recipient(self, address: AddressLike) -> Optional[str]:
        with self._lock:
            return self.recipients.get_recipient(address)

    def resolve(self, destination: AddressLike) -> str:
        with self._lock:
            return self.resolver.resolve(destination)

    def events(self, event_type: Optional[EventType] = None) -> List[LedgerEvent]:
        with self._lock:
            return self.event_log.query(event_type)

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def transfer(self, sender: AddressLike, destination: AddressLike, amount: int) -> TransferReceipt:
        """
        Move `amount` from `sender` to the resolved holder of `destination`.

        Raises:
            Blacklisted: sender is blacklisted
            InsufficientBalance: sender holds less than amount
            NoRoute, CyclicRoute: destination cannot be resolved
        """
        sender = normalize_address(sender)
        destination = normalize_address(destination)
        validate_uint256(amount, "amount")

        with self._lock:
            try:
                with self.state.transaction():
                    if self.blacklist.is_blacklisted(sender):
                        raise Blacklisted(f"{sender} is blacklisted", sender)
                    self._debit(sender, amount)
                    route = self._credit(destination, amount)
            except LedgerError as e:
                self._reject("transfer", e)
                raise

            events = []
            if route.redirected:
                events.append(self._redirect_event(route))
            events.append(LedgerEvent(
                EventType.TRANSFER, {"from": sender, "to": route.resolved, "value": amount}
            ))
            self.event_log.append(events)

        audit_log.transfer(sender, route.resolved, amount)
        if route.redirected:
            audit_log.transfer_redirected(route.nominal, route.resolved, route.chain, amount)

        return TransferReceipt(
            sender=sender,
            destination=destination,
            recipient=route.resolved,
            amount=amount,
            route=route,
        )

    def set_recipient(self, caller: AddressLike, recipient: AddressLike) -> None:
        """
        Declare the caller's emergency recipient.

        Raises:
            Blacklisted: caller is blacklisted
        """
        caller = normalize_address(caller)
        recipient = normalize_address(recipient)

        with self._lock:
            try:
                with self.state.transaction():
                    self.recipients.set_recipient(caller, recipient)
            except LedgerError as e:
                self._reject("set_recipient", e)
                raise
            self.event_log.append([LedgerEvent(
                EventType.EMERGENCY_RECIPIENT_SET, {"account": caller, "recipient": recipient}
            )])

        audit_log.recipient_set(caller, recipient)

    def emergency_withdraw(
        self,
        owner: AddressLike,
        deadline: int,
        signature: Signature,
        now: int
    ) -> EmergencyWithdrawReceipt:
        """
        Blacklist `owner` and move its whole balance to its emergency route.

        Anyone may submit this; the owner's signature over (owner, deadline)
        is the only authorization. Checks run in a fixed order.

        Raises:
            Blacklisted: owner already blacklisted
            Expired: deadline < now
            InvalidSignature: signature does not recover to owner
            NoRoute: owner (or a blacklisted hop) has no emergency recipient
            CyclicRoute: the route exceeded its hop bound
        """
        owner = normalize_address(owner)
        validate_uint256(deadline, "deadline")

        with self._lock:
            try:
                with self.state.transaction():
                    if self.blacklist.is_blacklisted(owner):
                        raise Blacklisted(f"{owner} is blacklisted", owner)
                    self.authority.authorize(owner, deadline, signature, now)

                    # Mark first so the resolver sees the owner as cut off.
                    self.blacklist.mark_blacklisted(owner)

                    start = self.recipients.get_recipient(owner)
                    if start is None:
                        raise NoRoute(f"{owner} has no emergency recipient", owner)
                    amount = self.state.get_balance(owner)
                    self._debit(owner, amount)
                    route = self._credit(start, amount)
            except LedgerError as e:
                self._reject("emergency_withdraw", e)
                raise

            chain = [owner] + route.chain
            events = [LedgerEvent(EventType.BLACKLISTED, {"account": owner})]
            if route.redirected:
                events.append(self._redirect_event(route))
            events.append(LedgerEvent(
                EventType.TRANSFER, {"from": owner, "to": route.resolved, "value": amount}
            ))
            events.append(LedgerEvent(
                EventType.EMERGENCY_WITHDRAW,
                {"owner": owner, "recipient": route.resolved, "value": amount}
            ))
            self.event_log.append(events)

        audit_log.emergency_withdraw(owner, route.resolved, amount, deadline)
        return EmergencyWithdrawReceipt(
            owner=owner,
            recipient=route.resolved,
            amount=amount,
            deadline=deadline,
            route=chain,
        )

    # ------------------------------------------------------------------
    # Internals (caller holds the lock and a state transaction)
    # ------------------------------------------------------------------

    def _debit(self, address: str, amount: int) -> None:
        balance = self.state.get_balance(address)
        if balance < amount:
            raise InsufficientBalance(
                f"{address} holds {balance}, needs {amount}", address
            )
        self.state.set_balance(address, balance - amount)

    def _credit(self, destination: str, amount: int) -> Route:
        route = self.resolver.resolve_route(destination)
        balance = self.state.get_balance(route.resolved)
        self.state.set_balance(route.resolved, balance + amount)
        return route

    @staticmethod
    def _redirect_event(route: Route) -> LedgerEvent:
        return LedgerEvent(
            EventType.REDIRECT,
            {"nominal": route.nominal, "resolved": route.resolved, "chain": list(route.chain)}
        )

    @staticmethod
    def _reject(operation: str, error: LedgerError) -> None:
        audit_log.operation_rejected(operation, error.code.value, error.address, str(error))
        if isinstance(error, InvalidSignature):
            audit_log.security_event(
                "invalid_emergency_withdraw_signature", severity="high", owner=error.address
            )
