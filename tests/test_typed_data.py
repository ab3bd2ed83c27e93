"""
HotLedger Typed-Data Test Suite

The domain separator and digest are recomputed here from raw keccak and
hand-built ABI words, independently of the library's encoders.
"""

import unittest
from unittest import mock

from eth_utils import keccak

from hotledger import (
    DOMAIN_TYPEHASH,
    EMERGENCY_WITHDRAW_TYPEHASH,
    Ledger,
    TypedDataDomain,
    domain_separator,
    emergency_withdraw_struct_hash,
    normalize_address,
    typed_data_digest,
)

LEDGER_ID = "0x5FbDB2315678afecb367f032d93F642f64180aa3"
OWNER = "0x70997970C51812dc3A010C7d01b50e0d17dc79C8"


def _word(value) -> bytes:
    if isinstance(value, int):
        return value.to_bytes(32, "big")
    if isinstance(value, str):
        return bytes.fromhex(value[2:]).rjust(32, b"\x00")
    return value


def recompute_domain_separator(name, version, chain_id, ledger_id) -> bytes:
    typehash = keccak(text="EIP712Domain(string name,string version,uint256 chainId,address verifyingContract)")
    return keccak(b"".join([
        _word(typehash),
        _word(keccak(text=name)),
        _word(keccak(text=version)),
        _word(chain_id),
        _word(ledger_id),
    ]))


def recompute_digest(separator, owner, deadline) -> bytes:
    typehash = keccak(text="EmergencyWithdraw(address owner,uint256 deadline)")
    struct_hash = keccak(_word(typehash) + _word(owner) + _word(deadline))
    return keccak(b"\x19\x01" + separator + struct_hash)


class TestTypeHashes(unittest.TestCase):

    def test_domain_typehash_is_standard_eip712(self):
        self.assertEqual(
            DOMAIN_TYPEHASH.hex(),
            "8b73c3c69bb8fe3d512ecc4cf759cc79239f7b179b0ffacaa9a75d522b39400f"
        )

    def test_emergency_withdraw_typehash(self):
        self.assertEqual(
            EMERGENCY_WITHDRAW_TYPEHASH,
            keccak(text="EmergencyWithdraw(address owner,uint256 deadline)")
        )
        self.assertEqual(len(EMERGENCY_WITHDRAW_TYPEHASH), 32)


class TestDomainSeparator(unittest.TestCase):

    def test_matches_independent_recompute(self):
        self.assertEqual(
            domain_separator("HotERC20", "1", 31337, LEDGER_ID),
            recompute_domain_separator("HotERC20", "1", 31337, LEDGER_ID)
        )

    def test_ledger_caches_recomputable_separator(self):
        ledger = Ledger.create(
            total_supply=1_000_000,
            initial_holder=OWNER,
            name="HotERC20",
            version="1",
            chain_id=1,
            ledger_identity=LEDGER_ID,
        )
        self.assertEqual(
            ledger.domain_separator(),
            recompute_domain_separator("HotERC20", "1", 1, LEDGER_ID)
        )
        self.assertIs(ledger.domain_separator(), ledger.domain_separator())

    def test_each_input_changes_separator(self):
        base = domain_separator("HotERC20", "1", 1, LEDGER_ID)
        self.assertNotEqual(base, domain_separator("Other", "1", 1, LEDGER_ID))
        self.assertNotEqual(base, domain_separator("HotERC20", "2", 1, LEDGER_ID))
        self.assertNotEqual(base, domain_separator("HotERC20", "1", 5, LEDGER_ID))
        self.assertNotEqual(base, domain_separator("HotERC20", "1", 1, OWNER))

    def test_address_case_does_not_matter(self):
        self.assertEqual(
            domain_separator("HotERC20", "1", 1, LEDGER_ID.lower()),
            domain_separator("HotERC20", "1", 1, LEDGER_ID)
        )

    def test_domain_object_normalizes_identity(self):
        domain = TypedDataDomain("HotERC20", "1", 1, LEDGER_ID.lower())
        self.assertEqual(domain.ledger_identity, LEDGER_ID)
        self.assertEqual(domain.to_dict()["domain_separator"], "0x" + domain.separator.hex())

    def test_separator_computed_at_construction(self):
        with mock.patch(
            "hotledger.typed_data.domain_separator", wraps=domain_separator
        ) as computed:
            domain = TypedDataDomain("HotERC20", "1", 1, LEDGER_ID)
            self.assertEqual(computed.call_count, 1)
            self.assertIn("separator", vars(domain))
            domain.separator
            domain.emergency_withdraw_digest(OWNER, 1)
            self.assertEqual(computed.call_count, 1)

    def test_negative_chain_id_rejected(self):
        with self.assertRaises(ValueError):
            TypedDataDomain("HotERC20", "1", -1, LEDGER_ID)


class TestDigest(unittest.TestCase):

    def setUp(self):
        self.domain = TypedDataDomain("HotERC20", "1", 31337, LEDGER_ID)

    def test_digest_matches_independent_recompute(self):
        self.assertEqual(
            self.domain.emergency_withdraw_digest(OWNER, 1_700_000_000),
            recompute_digest(self.domain.separator, OWNER, 1_700_000_000)
        )

    def test_digest_composition(self):
        struct_hash = emergency_withdraw_struct_hash(OWNER, 42)
        self.assertEqual(
            typed_data_digest(self.domain.separator, struct_hash),
            self.domain.emergency_withdraw_digest(OWNER, 42)
        )

    def test_deadline_is_bound(self):
        self.assertNotEqual(
            self.domain.emergency_withdraw_digest(OWNER, 100),
            self.domain.emergency_withdraw_digest(OWNER, 101)
        )

    def test_deadline_out_of_range(self):
        with self.assertRaises(ValueError):
            emergency_withdraw_struct_hash(OWNER, -1)
        with self.assertRaises(ValueError):
            emergency_withdraw_struct_hash(OWNER, 2 ** 256)


class TestAddresses(unittest.TestCase):

    def test_normalize_accepts_forms(self):
        raw = bytes.fromhex(OWNER[2:])
        self.assertEqual(normalize_address(OWNER.lower()), OWNER)
        self.assertEqual(normalize_address(OWNER[2:].lower()), OWNER)
        self.assertEqual(normalize_address(raw), OWNER)

    def test_normalize_rejects_garbage(self):
        for bad in ["", "0x1234", "not-an-address", b"\x00" * 19, 12345]:
            with self.assertRaises(ValueError):
                normalize_address(bad)


if __name__ == "__main__":
    unittest.main()
