"""
test_resolver.py - Unit tests for conflict resolution

The resolver only looks at footprints and hashes, so transactions here are
finalized but unsigned.
"""

import pytest
from decimal import Decimal

from utxo_ledger import (
    UTXO, Transaction, TransactionNotFinalized,
    footprint, order_candidates, exclude_chain_dependent,
    build_candidate_group, select_group, resolve_conflicts, ConflictResolution,
)

from tests.fake_pool import BOB


G = b"\x07" * 32


def u(i: int) -> UTXO:
    return UTXO(G, i)


def tx_spending(*utxos: UTXO, tag: int = 0) -> Transaction:
    """Finalized transaction spending `utxos`; `tag` makes the hash unique."""
    tx = Transaction()
    for utxo in utxos:
        tx.add_input(utxo.tx_hash, utxo.index)
    tx.add_output(Decimal(tag), BOB)
    tx.finalize()
    return tx


def hashes(txs):
    return {tx.hash for tx in txs}


class TestFootprintAndOrder:

    def test_footprint(self):
        tx = tx_spending(u(0), u(1))
        assert footprint(tx) == frozenset({u(0), u(1)})

    def test_order_by_hash(self):
        txs = [tx_spending(u(i), tag=i) for i in range(6)]
        ordered = order_candidates(txs)
        assert [t.hash for t in ordered] == sorted(t.hash for t in txs)

    def test_order_is_stable_for_equal_hashes(self):
        a = tx_spending(u(0))
        b = tx_spending(u(0))
        assert a.hash == b.hash
        assert order_candidates([a, b]) == [a, b]
        assert order_candidates([b, a]) == [b, a]

    def test_unfinalized_candidate_raises(self):
        tx = Transaction()
        tx.add_input(G, 0)
        with pytest.raises(TransactionNotFinalized):
            order_candidates([tx_spending(u(1)), tx])


class TestChainDependency:

    def test_spending_other_candidate_output_is_excluded(self):
        parent = tx_spending(u(0))
        child = tx_spending(UTXO(parent.hash, 0))
        survivors, dependent = exclude_chain_dependent([parent, child])
        assert survivors == [parent]
        assert dependent == [child]

    def test_independent_transactions_survive(self):
        a = tx_spending(u(0))
        b = tx_spending(u(1))
        survivors, dependent = exclude_chain_dependent([a, b])
        assert survivors == [a, b]
        assert dependent == []

    def test_one_dependent_input_is_enough(self):
        parent = tx_spending(u(0))
        child = tx_spending(u(5), UTXO(parent.hash, 0))
        _, dependent = exclude_chain_dependent([parent, child])
        assert dependent == [child]

    def test_dependency_on_any_output_index(self):
        parent = tx_spending(u(0))
        child = tx_spending(UTXO(parent.hash, 7))
        _, dependent = exclude_chain_dependent([child, parent])
        assert dependent == [child]

    def test_chain_of_three(self):
        a = tx_spending(u(0))
        b = tx_spending(UTXO(a.hash, 0))
        c = tx_spending(UTXO(b.hash, 0))
        survivors, dependent = exclude_chain_dependent([a, b, c])
        assert survivors == [a]
        assert dependent == [b, c]

    def test_parent_outside_batch_not_dependent(self):
        parent = tx_spending(u(0))
        child = tx_spending(UTXO(parent.hash, 0))
        survivors, _ = exclude_chain_dependent([child])
        assert survivors == [child]


class TestBuildCandidateGroup:

    def test_absorbs_disjoint_transactions(self):
        a = tx_spending(u(0))
        b = tx_spending(u(1))
        c = tx_spending(u(2))
        assert build_candidate_group(a, [a, b, c]) == [a, b, c]

    def test_skips_conflicting_transactions(self):
        a = tx_spending(u(0), u(1))
        b = tx_spending(u(1), u(2))
        c = tx_spending(u(3))
        assert build_candidate_group(a, [a, b, c]) == [a, c]

    def test_conflict_with_absorbed_member_is_skipped(self):
        seed = tx_spending(u(0))
        b = tx_spending(u(1))
        c = tx_spending(u(1), u(2))
        assert build_candidate_group(seed, [seed, b, c]) == [seed, b]

    def test_greedy_order_can_miss_larger_group(self):
        # Absorbing x first blocks b and c; {a, b, c} would be larger.
        a = tx_spending(u(0), tag=1)
        b = tx_spending(u(1), tag=2)
        c = tx_spending(u(2), tag=3)
        x = tx_spending(u(1), u(2), tag=4)
        y = tx_spending(u(0), u(2), tag=5)
        z = tx_spending(u(0), u(1), tag=6)
        group = build_candidate_group(a, [x, y, z, a, b, c])
        assert group == [a, x]

    def test_no_recursion_limit_for_large_batches(self):
        txs = [tx_spending(u(i), tag=i) for i in range(3000)]
        group = build_candidate_group(txs[0], txs)
        assert len(group) == 3000


class TestSelectGroup:

    def test_empty(self):
        assert select_group([]) == []

    def test_largest_wins(self):
        a, b, c = (tx_spending(u(i), tag=i) for i in range(3))
        assert select_group([[a], [b, c], [c]]) == [b, c]

    def test_tie_broken_by_smallest_hash_tuple(self):
        txs = order_candidates([tx_spending(u(i), tag=i) for i in range(4)])
        low = [txs[3], txs[0]]
        high = [txs[1], txs[2]]
        assert select_group([high, low]) == low
        assert select_group([low, high]) == low


class TestResolveConflicts:

    def test_empty_batch(self):
        result = resolve_conflicts([])
        assert result == ConflictResolution(committed=())

    def test_single_transaction(self):
        tx = tx_spending(u(0))
        assert resolve_conflicts([tx]).committed == (tx,)

    def test_double_spend_commits_exactly_one(self):
        t1 = tx_spending(u(0), tag=1)
        t2 = tx_spending(u(0), tag=2)
        result = resolve_conflicts([t1, t2])
        assert len(result.committed) == 1
        assert result.committed[0] in (t1, t2)
        assert len(result.conflicting) == 1

    def test_double_spend_winner_is_smaller_hash(self):
        t1 = tx_spending(u(0), tag=1)
        t2 = tx_spending(u(0), tag=2)
        winner = min((t1, t2), key=lambda t: t.hash)
        assert resolve_conflicts([t1, t2]).committed == (winner,)
        assert resolve_conflicts([t2, t1]).committed == (winner,)

    def test_chained_spend_commits_parent_only(self):
        t1 = tx_spending(u(0))
        t2 = tx_spending(UTXO(t1.hash, 0))
        result = resolve_conflicts([t2, t1])
        assert result.committed == (t1,)
        assert result.dependent == (t2,)

    def test_prefers_larger_conflict_free_group(self):
        big = tx_spending(u(0), u(1), tag=1)
        left = tx_spending(u(0), tag=2)
        right = tx_spending(u(1), tag=3)
        result = resolve_conflicts([big, left, right])
        assert hashes(result.committed) == hashes([left, right])
        assert result.conflicting == (big,)

    def test_committed_ordered_by_hash(self):
        txs = [tx_spending(u(i), tag=i) for i in range(5)]
        result = resolve_conflicts(txs)
        assert [t.hash for t in result.committed] == sorted(t.hash for t in txs)

    def test_committed_footprints_disjoint(self):
        txs = [tx_spending(u(i % 4), u((i + 1) % 4), tag=i) for i in range(8)]
        committed = resolve_conflicts(txs).committed
        seen = set()
        for tx in committed:
            assert seen.isdisjoint(tx.footprint)
            seen |= tx.footprint

    def test_every_candidate_accounted_for(self):
        t1 = tx_spending(u(0), tag=1)
        t2 = tx_spending(u(0), tag=2)
        t3 = tx_spending(UTXO(t1.hash, 0), tag=3)
        t4 = tx_spending(u(1), tag=4)
        result = resolve_conflicts([t1, t2, t3, t4])
        total = len(result.committed) + len(result.dependent) + len(result.conflicting)
        assert total == 4
        assert t3 in result.dependent
