"""
Conservation Conformance Tests

INVARIANT: A committed transaction never creates value.

    ∀ t ∈ committed:
        Σ output values(t) ≤ Σ values of outputs it spends

And the pool loses exactly the value of the outputs it spent:

    total(pool) - total(pool') = Σ values of spent outputs
"""

from decimal import Decimal

import pytest
from hypothesis import given, settings

from utxo_ledger import TxHandler

from tests.fake_pool import (
    GENESIS_POOL, candidate_specs, build_batch,
    spend, coinbase_pool, ALICE_KEY, ALICE, BOB,
)


class TestConservationProperties:
    """Property-based conservation tests."""

    @given(candidate_specs)
    @settings(max_examples=25, deadline=None)
    def test_committed_never_create_value(self, specs):
        """
        PROPERTY: Outputs of a committed transaction never exceed its inputs.
        """
        handler = TxHandler(GENESIS_POOL, verbose=False)
        committed = handler.handle_txs(build_batch(specs))

        for tx in committed:
            input_value = sum(
                (GENESIS_POOL.get_output(u).value for u in tx.footprint), Decimal("0")
            )
            output_value = sum((o.value for o in tx.outputs), Decimal("0"))
            assert output_value <= input_value
            assert all(o.value >= 0 for o in tx.outputs)

    @given(candidate_specs)
    @settings(max_examples=25, deadline=None)
    def test_pool_value_drops_by_spent_value(self, specs):
        """
        PROPERTY: Pool value decreases by exactly the value spent.
        """
        handler = TxHandler(GENESIS_POOL, verbose=False)
        handler.handle_txs(build_batch(specs))

        spent = handler.epoch_log[-1].spent
        spent_value = sum((GENESIS_POOL.get_output(u).value for u in spent), Decimal("0"))
        assert GENESIS_POOL.total_value() - handler.pool.total_value() == spent_value


class TestConservationExamples:
    """Explicit conservation examples."""

    @pytest.mark.parametrize("value,committed", [
        ("9.99", True),
        ("10", True),
        ("10.00000001", False),
    ])
    def test_boundary(self, value, committed):
        pool, utxos = coinbase_pool((Decimal("10"), ALICE))
        handler = TxHandler(pool, verbose=False)
        tx = spend([(utxos[0], ALICE_KEY)], [(value, BOB)])
        assert (handler.handle_txs([tx]) == [tx]) is committed

    def test_negative_output_cannot_fund_larger_output(self):
        pool, utxos = coinbase_pool((Decimal("10"), ALICE))
        handler = TxHandler(pool, verbose=False)
        tx = spend([(utxos[0], ALICE_KEY)], [(20, BOB), (-10, ALICE)])
        assert handler.handle_txs([tx]) == []
