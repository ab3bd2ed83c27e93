"""
HotLedger Signature Authority

Verifies emergency-withdraw authorizations signed with secp256k1
recoverable ECDSA over the typed-data digest.

Signature recovery is an injected capability (Recoverer) so that the
ledger can be exercised without real key material. The default
implementation uses eth-keys.
"""

import logging
import secrets
from dataclasses import dataclass
from typing import Optional, Protocol, Union

from eth_keys import keys
from eth_keys.exceptions import BadSignature, ValidationError

from .errors import Expired, InvalidSignature
from .util import from_hex, to_hex
from .typed_data import AddressLike, TypedDataDomain, ZERO_ADDRESS, normalize_address

logger = logging.getLogger(__name__)

SIGNATURE_LENGTH = 65


@dataclass(frozen=True)
class Signature:
    """
    Recoverable ECDSA signature components.

    v: recovery id, 27 or 28
    r, s: 32-byte integers
    """
    v: int
    r: int
    s: int

    @classmethod
    def from_bytes(cls, raw: bytes) -> "Signature":
        """Decode the 65-byte r || s || v layout."""
        if len(raw) != SIGNATURE_LENGTH:
            raise ValueError(f"Signature must be {SIGNATURE_LENGTH} bytes, got {len(raw)}")
        return cls(
            v=raw[64],
            r=int.from_bytes(raw[0:32], "big"),
            s=int.from_bytes(raw[32:64], "big"),
        )

    @classmethod
    def from_hex(cls, value: str) -> "Signature":
        return cls.from_bytes(from_hex(value))

    @classmethod
    def from_components(cls, v: int, r: Union[int, str, bytes], s: Union[int, str, bytes]) -> "Signature":
        """Build from v plus r/s given as ints, hex strings or 32 bytes."""
        return cls(v=v, r=_component(r, "r"), s=_component(s, "s"))

    def to_bytes(self) -> bytes:
        return self.r.to_bytes(32, "big") + self.s.to_bytes(32, "big") + bytes([self.v])

    def to_hex(self) -> str:
        return to_hex(self.to_bytes())

    def to_dict(self) -> dict:
        return {
            "v": self.v,
            "r": to_hex(self.r.to_bytes(32, "big")),
            "s": to_hex(self.s.to_bytes(32, "big")),
        }


# Stand-in for components that cannot be decoded; recovers to no address.
UNRECOVERABLE_SIGNATURE = Signature(v=0, r=0, s=0)


def _component(value: Union[int, str, bytes], name: str) -> int:
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        value = from_hex(value)
    if len(value) != 32:
        raise ValueError(f"Signature component {name} must be 32 bytes, got {len(value)}")
    return int.from_bytes(value, "big")


class Recoverer(Protocol):
    """Recovers the signing address for a digest, or None if it cannot."""

    def __call__(self, digest: bytes, signature: Signature) -> Optional[str]:
        ...


def recover_address(digest: bytes, signature: Signature) -> Optional[str]:
    """
    Recover the checksum address that signed a 32-byte digest.

    Only v = 27/28 is recoverable, as with on-chain ecrecover. Any other v,
    r/s out of range or no curve point yields None rather than raising.
    The zero address is never returned.
    """
    if signature.v not in (27, 28):
        return None
    try:
        sig = keys.Signature(vrs=(signature.v - 27, signature.r, signature.s))
        public_key = sig.recover_public_key_from_msg_hash(digest)
    except (BadSignature, ValidationError, ValueError) as e:
        logger.debug("signature recovery failed: %s", e)
        return None
    address = public_key.to_checksum_address()
    if address == ZERO_ADDRESS:
        return None
    return address


class SignatureAuthority:
    """
    Validates emergency-withdraw authorizations for one ledger domain.

    Usage:
        authority = SignatureAuthority(domain)
        authority.authorize(owner, deadline, signature, now)   # raises
        authority.verify_emergency_withdraw(owner, deadline, signature)  # bool
    """

    def __init__(self, domain: TypedDataDomain, recoverer: Optional[Recoverer] = None):
        self.domain = domain
        self.recoverer = recoverer or recover_address

    def domain_separator(self) -> bytes:
        return self.domain.separator

    def digest(self, owner: AddressLike, deadline: int) -> bytes:
        return self.domain.emergency_withdraw_digest(owner, deadline)

    def verify_emergency_withdraw(self, owner: AddressLike, deadline: int, signature: Signature) -> bool:
        """True iff the signature recovers to exactly `owner`."""
        owner = normalize_address(owner)
        recovered = self.recoverer(self.digest(owner, deadline), signature)
        if recovered is None:
            return False
        return normalize_address(recovered) == owner

    def authorize(self, owner: AddressLike, deadline: int, signature: Signature, now: int) -> None:
        """
        Check deadline then signature.

        Raises:
            Expired: deadline < now (checked before the signature)
            InvalidSignature: recovered signer is not owner
        """
        owner = normalize_address(owner)
        if deadline < now:
            raise Expired(f"Authorization expired at {deadline} (now {now})", owner)
        if not self.verify_emergency_withdraw(owner, deadline, signature):
            raise InvalidSignature("Signature does not recover to owner", owner)


# Convenience functions for holders of a private key

def generate_private_key() -> bytes:
    """Generate a random secp256k1 private key."""
    return keys.PrivateKey(secrets.token_bytes(32)).to_bytes()


def address_of(private_key: Union[bytes, str]) -> str:
    return _private_key(private_key).public_key.to_checksum_address()


def sign_digest(digest: bytes, private_key: Union[bytes, str]) -> Signature:
    sig = _private_key(private_key).sign_msg_hash(digest)
    return Signature(v=sig.v + 27, r=sig.r, s=sig.s)


def sign_emergency_withdraw(
    private_key: Union[bytes, str],
    domain: TypedDataDomain,
    owner: AddressLike,
    deadline: int
) -> Signature:
    """Sign an emergency-withdraw authorization for `owner`."""
    return sign_digest(domain.emergency_withdraw_digest(owner, deadline), private_key)


def _private_key(value: Union[bytes, str]) -> keys.PrivateKey:
    return keys.PrivateKey(from_hex(value))
