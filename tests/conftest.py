import os
import sys

import pytest

# Ensure the package is importable without installation
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from hotledger import Ledger, address_of
from hotledger.service import main as service

NOW = 1_700_000_000
LEDGER_ID = "0x5FbDB2315678afecb367f032d93F642f64180aa3"
SUPPLY = 1_000_000

HOLDER_KEY = bytes([1]) * 32
OWNER_KEY = bytes([2]) * 32
ALICE_KEY = bytes([3]) * 32
BOB_KEY = bytes([4]) * 32

HOLDER = address_of(HOLDER_KEY)
OWNER = address_of(OWNER_KEY)
ALICE = address_of(ALICE_KEY)
BOB = address_of(BOB_KEY)


# Fresh service ledger and rate limits before each test for isolation
@pytest.fixture(autouse=True)
def _reset_service():
    ledger = Ledger.create(
        total_supply=SUPPLY,
        initial_holder=HOLDER,
        name="HotERC20",
        version="1",
        chain_id=31337,
        ledger_identity=LEDGER_ID,
    )
    service.set_ledger(ledger)
    service.transfer_limiter.reset()
    service.withdraw_limiter.reset()
    yield ledger
