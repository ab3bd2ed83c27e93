import json

from hotledger import Signature, TypedDataDomain, address_of, recover_address
from hotledger.cli import main

LEDGER_ID = "0x5FbDB2315678afecb367f032d93F642f64180aa3"
KEY_HEX = "0x" + "02" * 32


def test_domain(capsys):
    assert main(["domain", "--chain-id", "1", "--ledger", LEDGER_ID]) == 0
    out = json.loads(capsys.readouterr().out)
    expected = TypedDataDomain("HotERC20", "1", 1, LEDGER_ID)
    assert out["domain_separator"] == "0x" + expected.separator.hex()


def test_sign_recovers_to_key_owner(capsys):
    assert main(["sign", "--key", KEY_HEX, "--deadline", "1700000000", "--chain-id", "1"]) == 0
    out = json.loads(capsys.readouterr().out)
    owner = address_of(KEY_HEX)
    assert out["owner"] == owner

    domain = TypedDataDomain("HotERC20", "1", 1, LEDGER_ID)
    digest = domain.emergency_withdraw_digest(owner, 1700000000)
    assert recover_address(digest, Signature.from_hex(out["signature"])) == owner


def test_digest_matches_domain(capsys):
    owner = address_of(KEY_HEX)
    assert main(["digest", "--owner", owner, "--deadline", "5"]) == 0
    out = json.loads(capsys.readouterr().out)
    assert out["digest"].startswith("0x")
    assert len(out["digest"]) == 66


def test_bad_address_fails(capsys):
    assert main(["digest", "--owner", "0x1234", "--deadline", "5"]) == 1
    assert "0x1234" in capsys.readouterr().err


def test_keygen(capsys):
    assert main(["keygen"]) == 0
    out = json.loads(capsys.readouterr().out)
    assert address_of(out["private_key"]) == out["address"]


def test_demo(capsys):
    assert main(["demo"]) == 0
    out = capsys.readouterr().out
    assert "Rejected: BLACKLISTED" in out


def test_no_command():
    assert main([]) == 1
