"""
HotLedger Concurrency Test Suite

Commands race each other and readers race commands on both state
backends. Readers must never see a write that is later rolled back, and
balances must add up to the supply at every observation.
"""

import threading
import time
import unittest
from unittest import mock

from hotledger import (
    Blacklisted,
    EventType,
    InMemoryLedgerState,
    InsufficientBalance,
    Ledger,
    NoRoute,
    SQLiteLedgerState,
    address_of,
    sign_emergency_withdraw,
)

NOW = 1_700_000_000
LEDGER_ID = "0x5FbDB2315678afecb367f032d93F642f64180aa3"
SUPPLY = 1_000_000
THREADS = 8

HOLDER = address_of(bytes([1]) * 32)
OWNER_KEY = bytes([2]) * 32
OWNER = address_of(OWNER_KEY)
ALICE = address_of(bytes([3]) * 32)
BOB = address_of(bytes([4]) * 32)
RING = [address_of(bytes([10 + i]) * 32) for i in range(THREADS)]


def run_threads(targets):
    threads = [threading.Thread(target=t) for t in targets]
    for t in threads:
        t.start()
    for t in threads:
        t.join(timeout=30)
    return threads


class ConcurrencyContract:
    """Thread-safety shared by every LedgerState backend."""

    def make_state(self):
        raise NotImplementedError

    def setUp(self):
        self.state = self.make_state()
        self.ledger = Ledger.create(
            total_supply=SUPPLY,
            initial_holder=HOLDER,
            name="HotERC20",
            version="1",
            chain_id=31337,
            ledger_identity=LEDGER_ID,
            state=self.state,
        )

    def sign(self, owner_key, owner, deadline=NOW + 3600):
        return sign_emergency_withdraw(owner_key, self.ledger.domain, owner, deadline)

    def test_reader_never_sees_rolled_back_blacklisting(self):
        # No recipient: the withdraw marks OWNER, then fails with NoRoute.
        recipients = self.ledger.recipients
        original = recipients.get_recipient
        marked = threading.Event()

        def slow_lookup(address):
            marked.set()
            time.sleep(0.05)
            return original(address)

        signature = self.sign(OWNER_KEY, OWNER)
        outcome = []

        def withdraw():
            try:
                self.ledger.emergency_withdraw(OWNER, NOW + 3600, signature, now=NOW)
            except NoRoute as e:
                outcome.append(e)

        seen_by_ledger = []
        seen_by_state = []
        with mock.patch.object(recipients, "get_recipient", side_effect=slow_lookup):
            writer = threading.Thread(target=withdraw)
            writer.start()
            self.assertTrue(marked.wait(timeout=5))
            while writer.is_alive():
                seen_by_ledger.append(self.ledger.is_blacklisted(OWNER))
                seen_by_state.append(self.state.is_blacklisted(OWNER))
            writer.join()

        self.assertEqual(len(outcome), 1)
        self.assertTrue(seen_by_ledger)
        self.assertNotIn(True, seen_by_ledger)
        self.assertNotIn(True, seen_by_state)
        self.assertFalse(self.ledger.is_blacklisted(OWNER))

    def test_concurrent_transfers_conserve_supply(self):
        for account in RING:
            self.ledger.transfer(HOLDER, account, 100)

        rounds = 50
        done = threading.Event()
        totals = []
        errors = []

        def pass_along(i):
            def run():
                try:
                    for _ in range(rounds):
                        self.ledger.transfer(RING[i], RING[(i + 1) % THREADS], 1)
                except Exception as e:
                    errors.append(e)
            return run

        def audit():
            while not done.is_set():
                totals.append(sum(self.ledger.balances().values()))

        auditor = threading.Thread(target=audit)
        auditor.start()
        run_threads([pass_along(i) for i in range(THREADS)])
        done.set()
        auditor.join()

        self.assertEqual(errors, [])
        self.assertTrue(totals)
        self.assertTrue(all(total == SUPPLY for total in totals))
        for account in RING:
            self.assertEqual(self.ledger.balance_of(account), 100)
        transfers = self.ledger.events(EventType.TRANSFER)
        self.assertEqual(len(transfers), 1 + THREADS + THREADS * rounds)

    def test_concurrent_double_spend(self):
        self.ledger.transfer(HOLDER, ALICE, 100)
        barrier = threading.Barrier(THREADS)
        results = []

        def spend():
            barrier.wait()
            try:
                self.ledger.transfer(ALICE, BOB, 100)
                results.append("ok")
            except InsufficientBalance:
                results.append("insufficient")

        run_threads([spend] * THREADS)

        self.assertEqual(results.count("ok"), 1)
        self.assertEqual(results.count("insufficient"), THREADS - 1)
        self.assertEqual(self.ledger.balance_of(ALICE), 0)
        self.assertEqual(self.ledger.balance_of(BOB), 100)

    def test_concurrent_emergency_withdraws_apply_once(self):
        self.ledger.transfer(HOLDER, OWNER, 500)
        self.ledger.set_recipient(OWNER, ALICE)
        signature = self.sign(OWNER_KEY, OWNER)
        barrier = threading.Barrier(THREADS)
        results = []

        def relay():
            barrier.wait()
            try:
                self.ledger.emergency_withdraw(OWNER, NOW + 3600, signature, now=NOW)
                results.append("ok")
            except Blacklisted:
                results.append("blacklisted")

        run_threads([relay] * THREADS)

        self.assertEqual(results.count("ok"), 1)
        self.assertEqual(results.count("blacklisted"), THREADS - 1)
        self.assertEqual(self.ledger.balance_of(ALICE), 500)
        self.assertEqual(self.ledger.balance_of(OWNER), 0)
        self.assertEqual(self.ledger.total_supply(), SUPPLY)


class TestInMemoryConcurrency(ConcurrencyContract, unittest.TestCase):

    def make_state(self):
        return InMemoryLedgerState()


class TestSQLiteConcurrency(ConcurrencyContract, unittest.TestCase):

    def make_state(self):
        return SQLiteLedgerState(":memory:")

    def tearDown(self):
        self.state.close()


if __name__ == "__main__":
    unittest.main()
