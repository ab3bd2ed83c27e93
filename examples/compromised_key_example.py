#!/usr/bin/env python3
"""
HotLedger Example - Rescuing Funds From a Compromised Key

An owner suspects their key has leaked. Ahead of time they declared a
cold-storage emergency recipient. They sign an emergency-withdraw
authorization offline and hand it to a relayer, which submits it on
their behalf. The owner is cut off and every later payment to the old
address lands in cold storage.

Run with: python examples/compromised_key_example.py
"""

import json
import time

from hotledger import (
    Blacklisted,
    InvalidSignature,
    Ledger,
    address_of,
    generate_private_key,
    sign_emergency_withdraw,
)


def print_balances(ledger: Ledger, names: dict) -> None:
    for name, address in names.items():
        flag = " (blacklisted)" if ledger.is_blacklisted(address) else ""
        print(f"  {name:<8} {ledger.balance_of(address):>10}{flag}")


def main():
    print("=" * 70)
    print("HotLedger - Compromised Key Rescue")
    print("=" * 70)

    treasury_key, hot_key, cold_key, attacker_key = (generate_private_key() for _ in range(4))
    treasury = address_of(treasury_key)
    hot = address_of(hot_key)
    cold = address_of(cold_key)
    attacker = address_of(attacker_key)
    names = {"treasury": treasury, "hot": hot, "cold": cold, "attacker": attacker}

    ledger = Ledger.create(
        total_supply=1_000_000,
        initial_holder=treasury,
        name="HotERC20",
        version="1",
        chain_id=1,
        ledger_identity="0x5FbDB2315678afecb367f032d93F642f64180aa3",
    )

    print("\n[1] Setup: hot wallet funded, cold storage declared as fallback")
    ledger.transfer(treasury, hot, 25_000)
    ledger.set_recipient(hot, cold)
    print_balances(ledger, names)

    print("\n[2] Owner signs an emergency withdraw offline")
    now = int(time.time())
    deadline = now + 15 * 60
    signature = sign_emergency_withdraw(hot_key, ledger.domain, hot, deadline)
    print(f"  digest:    0x{ledger.authority.digest(hot, deadline).hex()}")
    print(f"  signature: {signature.to_hex()}")

    print("\n[3] A forged authorization from the attacker is rejected")
    forged = sign_emergency_withdraw(attacker_key, ledger.domain, hot, deadline)
    try:
        ledger.emergency_withdraw(hot, deadline, forged, now=now)
    except InvalidSignature as e:
        print(f"  ✗ {e.code.value}: {e}")

    print("\n[4] Relayer submits the genuine authorization")
    receipt = ledger.emergency_withdraw(hot, deadline, signature, now=now)
    print(json.dumps(receipt.to_dict(), indent=2))
    print_balances(ledger, names)

    print("\n[5] The attacker can no longer move funds out of the hot wallet")
    try:
        ledger.transfer(hot, attacker, 1)
    except Blacklisted as e:
        print(f"  ✗ {e.code.value}: {e}")

    print("\n[6] Late payments to the hot wallet are rerouted to cold storage")
    receipt = ledger.transfer(treasury, hot, 5_000)
    print(f"  nominal {receipt.destination} -> credited {receipt.recipient}")
    print_balances(ledger, names)

    print("\n" + "=" * 70)
    print("Event log")
    print("=" * 70)
    for event in ledger.events():
        print(json.dumps(event.to_dict()))


if __name__ == "__main__":
    main()
