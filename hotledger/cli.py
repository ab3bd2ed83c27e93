#!/usr/bin/env python3
"""
HotLedger Command Line Interface

Usage:
    hotledger domain --name <name> --token-version <v> --chain-id <id> --ledger <address>
    hotledger digest --owner <address> --deadline <ts> [domain options]
    hotledger sign --key <hex> --deadline <ts> [--owner <address>] [domain options]
    hotledger keygen
    hotledger demo
"""

import argparse
import json
import sys

from . import config
from .errors import LedgerError


def _domain_from_args(args):
    from .typed_data import TypedDataDomain

    return TypedDataDomain(
        name=args.name,
        version=args.token_version,
        chain_id=args.chain_id,
        ledger_identity=args.ledger,
    )


def cmd_domain(args):
    """Print the domain separator for a deployment."""
    domain = _domain_from_args(args)
    print(json.dumps(domain.to_dict(), indent=2))
    return 0


def cmd_digest(args):
    """Print the typed-data digest an owner must sign."""
    from .typed_data import emergency_withdraw_struct_hash
    from .util import to_hex

    domain = _domain_from_args(args)
    print(json.dumps({
        "owner": args.owner,
        "deadline": args.deadline,
        "domain_separator": to_hex(domain.separator),
        "struct_hash": to_hex(emergency_withdraw_struct_hash(args.owner, args.deadline)),
        "digest": to_hex(domain.emergency_withdraw_digest(args.owner, args.deadline)),
    }, indent=2))
    return 0


def cmd_sign(args):
    """Sign an emergency-withdraw authorization with a private key."""
    from .signing import address_of, sign_emergency_withdraw

    domain = _domain_from_args(args)
    owner = args.owner or address_of(args.key)
    signature = sign_emergency_withdraw(args.key, domain, owner, args.deadline)
    out = {"owner": owner, "deadline": args.deadline, "signature": signature.to_hex()}
    out.update(signature.to_dict())
    print(json.dumps(out, indent=2))
    return 0


def cmd_keygen(args):
    """Generate a throwaway secp256k1 key for demos."""
    from .signing import address_of, generate_private_key
    from .util import to_hex

    key = generate_private_key()
    print(json.dumps({"private_key": to_hex(key), "address": address_of(key)}, indent=2))
    print("\nDemo key only. Do not fund it.", file=sys.stderr)
    return 0


def cmd_demo(args):
    """Run a demonstration of HotLedger."""
    from .ledger import Ledger
    from .signing import address_of, generate_private_key, sign_emergency_withdraw

    print("=" * 60)
    print("HotLedger Demonstration")
    print("=" * 60)

    holder_key, owner_key, alice_key, bob_key = (generate_private_key() for _ in range(4))
    holder, owner, alice, bob = (address_of(k) for k in (holder_key, owner_key, alice_key, bob_key))
    now = 1_700_000_000

    ledger = Ledger.create(
        total_supply=1_000_000,
        initial_holder=holder,
        name=args.name,
        version=args.token_version,
        chain_id=args.chain_id,
        ledger_identity=args.ledger,
    )
    print(f"\nDomain separator: 0x{ledger.domain_separator().hex()}")

    print("\n" + "-" * 60)
    print("Scenario 1: owner declares alice, bob declares owner")
    print("-" * 60)
    ledger.transfer(holder, owner, 1000)
    ledger.set_recipient(bob, owner)
    ledger.set_recipient(owner, alice)
    print(f"owner balance: {ledger.balance_of(owner)}")

    print("\n" + "-" * 60)
    print("Scenario 2: bob relays owner's signed emergency withdraw")
    print("-" * 60)
    deadline = now + 60
    signature = sign_emergency_withdraw(owner_key, ledger.domain, owner, deadline)
    receipt = ledger.emergency_withdraw(owner, deadline, signature, now=now)
    print(f"Route: {' -> '.join(receipt.route)}")
    print(f"alice balance: {ledger.balance_of(alice)}")
    print(f"owner blacklisted: {ledger.is_blacklisted(owner)}")

    print("\n" + "-" * 60)
    print("Scenario 3: transfer to blacklisted owner lands on alice")
    print("-" * 60)
    receipt = ledger.transfer(holder, owner, 500)
    print(f"Nominal: {receipt.destination}")
    print(f"Credited: {receipt.recipient}")

    print("\n" + "-" * 60)
    print("Scenario 4: replay after blacklisting is rejected")
    print("-" * 60)
    try:
        ledger.emergency_withdraw(owner, deadline, signature, now=now)
    except LedgerError as e:
        print(f"Rejected: {e.code.value} ({e})")

    print("\n" + "=" * 60)
    print("Demonstration complete.")
    print("=" * 60)
    return 0


def _add_domain_args(p):
    p.add_argument("--name", default=config.TOKEN_NAME, help="Token name")
    p.add_argument("--token-version", default=config.TOKEN_VERSION, help="Domain version string")
    p.add_argument("--chain-id", type=int, default=config.CHAIN_ID, help="Chain identifier")
    p.add_argument("--ledger", default=config.LEDGER_IDENTITY, help="Ledger identity address")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="hotledger",
        description="HotLedger CLI",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  hotledger demo
  hotledger domain --chain-id 1 --ledger 0x5FbDB2315678afecb367f032d93F642f64180aa3
  hotledger digest --owner 0xabc... --deadline 1700000000
  hotledger sign --key 0x... --deadline 1700000000
        """
    )

    subparsers = parser.add_subparsers(dest="command", help="Commands")

    domain_parser = subparsers.add_parser("domain", help="Print domain separator")
    _add_domain_args(domain_parser)

    digest_parser = subparsers.add_parser("digest", help="Compute emergency-withdraw digest")
    _add_domain_args(digest_parser)
    digest_parser.add_argument("-o", "--owner", required=True, help="Owner address")
    digest_parser.add_argument("-d", "--deadline", type=int, required=True, help="Unix deadline")

    sign_parser = subparsers.add_parser("sign", help="Sign emergency-withdraw authorization")
    _add_domain_args(sign_parser)
    sign_parser.add_argument("-k", "--key", required=True, help="Hex private key")
    sign_parser.add_argument("-o", "--owner", help="Owner address (default: key's address)")
    sign_parser.add_argument("-d", "--deadline", type=int, required=True, help="Unix deadline")

    subparsers.add_parser("keygen", help="Generate demo key")

    demo_parser = subparsers.add_parser("demo", help="Run demonstration")
    _add_domain_args(demo_parser)

    return parser


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)

    commands = {
        "domain": cmd_domain,
        "digest": cmd_digest,
        "sign": cmd_sign,
        "keygen": cmd_keygen,
        "demo": cmd_demo,
    }
    if args.command not in commands:
        parser.print_help()
        return 1

    try:
        return commands[args.command](args)
    except (LedgerError, ValueError) as e:
        print(f"✗ {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
