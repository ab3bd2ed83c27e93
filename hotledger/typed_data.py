"""
HotLedger Typed-Data Hashing

EIP-712 style hashing for emergency-withdraw authorizations.

    domain_separator = keccak256(abi.encode(
        DOMAIN_TYPEHASH, keccak256(name), keccak256(version),
        chainId, verifyingContract))

    struct_hash = keccak256(abi.encode(
        EMERGENCY_WITHDRAW_TYPEHASH, owner, deadline))

    digest = keccak256(0x19 || 0x01 || domain_separator || struct_hash)

All hashes are 32 bytes, addresses 20 bytes.
"""

from dataclasses import dataclass, field
from typing import Union

from eth_utils import keccak, to_checksum_address

AddressLike = Union[str, bytes]

UINT256_MAX = 2 ** 256 - 1
ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"

DOMAIN_TYPEHASH = keccak(
    text="EIP712Domain(string name,string version,uint256 chainId,address verifyingContract)"
)
EMERGENCY_WITHDRAW_TYPEHASH = keccak(
    text="EmergencyWithdraw(address owner,uint256 deadline)"
)
EIP712_PREFIX = b"\x19\x01"


def normalize_address(value: AddressLike) -> str:
    """
    Normalise an address to its EIP-55 checksum form.

    Accepts a hex string (any case, with or without 0x) or 20 raw bytes.
    Raises ValueError for anything else.
    """
    if isinstance(value, str) and not value.startswith(("0x", "0X")):
        value = "0x" + value
    try:
        return to_checksum_address(value)
    except TypeError as e:
        raise ValueError(f"Invalid address: {value!r}") from e


def address_bytes(value: AddressLike) -> bytes:
    """Return the canonical 20-byte form of an address."""
    return bytes.fromhex(normalize_address(value)[2:])


def validate_uint256(value: int, field_name: str = "value") -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"{field_name} must be an integer")
    if value < 0 or value > UINT256_MAX:
        raise ValueError(f"{field_name} out of uint256 range: {value}")
    return value


def encode_uint256(value: int) -> bytes:
    return validate_uint256(value).to_bytes(32, "big")


def encode_address(value: AddressLike) -> bytes:
    return address_bytes(value).rjust(32, b"\x00")


def encode_bytes32(value: bytes) -> bytes:
    if len(value) != 32:
        raise ValueError(f"bytes32 requires 32 bytes, got {len(value)}")
    return value


def domain_separator(name: str, version: str, chain_id: int, ledger_identity: AddressLike) -> bytes:
    """Compute the domain separator binding a ledger deployment."""
    return keccak(
        encode_bytes32(DOMAIN_TYPEHASH)
        + encode_bytes32(keccak(text=name))
        + encode_bytes32(keccak(text=version))
        + encode_uint256(chain_id)
        + encode_address(ledger_identity)
    )


def emergency_withdraw_struct_hash(owner: AddressLike, deadline: int) -> bytes:
    return keccak(
        encode_bytes32(EMERGENCY_WITHDRAW_TYPEHASH)
        + encode_address(owner)
        + encode_uint256(deadline)
    )


def typed_data_digest(separator: bytes, struct_hash: bytes) -> bytes:
    """Final digest: prefix, domain separator, struct hash, in that order."""
    return keccak(EIP712_PREFIX + encode_bytes32(separator) + encode_bytes32(struct_hash))


@dataclass(frozen=True)
class TypedDataDomain:
    """
    The four inputs that identify one ledger deployment.

    The separator is derived once, when the domain is constructed.
    """
    name: str
    version: str
    chain_id: int
    ledger_identity: str
    separator: bytes = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        validate_uint256(self.chain_id, "chain_id")
        object.__setattr__(self, "ledger_identity", normalize_address(self.ledger_identity))
        object.__setattr__(self, "separator", domain_separator(
            self.name, self.version, self.chain_id, self.ledger_identity
        ))

    def emergency_withdraw_digest(self, owner: AddressLike, deadline: int) -> bytes:
        return typed_data_digest(self.separator, emergency_withdraw_struct_hash(owner, deadline))

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "version": self.version,
            "chain_id": self.chain_id,
            "ledger_identity": self.ledger_identity,
            "domain_separator": "0x" + self.separator.hex(),
        }
