"""
conftest.py - Shared pytest fixtures for utxo_ledger tests

Provides common fixtures used across unit, conformance and functional tests:
- Funded pools (genesis outputs owned by alice, bob and carol)
- Handlers over those pools
"""

import pytest
from decimal import Decimal

from utxo_ledger import TxHandler

from tests.fake_pool import (
    ALICE, BOB, CAROL,
    coinbase_pool,
)


# =============================================================================
# FIXTURES
# =============================================================================

@pytest.fixture
def genesis():
    """
    Pool with four genesis outputs:
      [0] alice 10, [1] alice 5, [2] bob 7, [3] carol 3
    """
    return coinbase_pool(
        (Decimal("10"), ALICE),
        (Decimal("5"), ALICE),
        (Decimal("7"), BOB),
        (Decimal("3"), CAROL),
    )


@pytest.fixture
def pool(genesis):
    return genesis[0]


@pytest.fixture
def utxos(genesis):
    return genesis[1]


@pytest.fixture
def handler(pool):
    """Quiet handler over the genesis pool."""
    return TxHandler(pool, name="test", verbose=False)
