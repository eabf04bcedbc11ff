"""
resolver.py - Choosing a double-spend-free subset of an epoch's transactions.

Input is a list of individually valid, finalized transactions. Output is one
group in which no UTXO is referenced by more than one transaction.

Policy:
1. Footprint: each transaction's set of referenced UTXOs.
2. Chain-dependency exclusion: a transaction spending an output of another
   candidate in the same epoch is dropped outright (not deferred).
3. For every surviving seed, build a group greedily: walk the survivors in
   hash order and absorb each one whose footprint is disjoint from the
   footprints already in the group.
4. Keep the largest group. Ties go to the group whose sorted member hashes
   are lexicographically smallest.

This is a greedy approximation. It does not search for a maximum independent
set, and a batch can exist for which a larger conflict-free subset is
possible than the one returned.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Dict, FrozenSet, List, Sequence, Set, Tuple

from .core import Transaction, UTXO


@dataclass(frozen=True, slots=True)
class ConflictResolution:
    """
    Outcome of resolving one epoch.

    Attributes:
        committed: Chosen group, ordered by transaction hash
        dependent: Candidates dropped by chain-dependency exclusion
        conflicting: Surviving candidates left out of the chosen group
    """
    committed: Tuple[Transaction, ...]
    dependent: Tuple[Transaction, ...] = ()
    conflicting: Tuple[Transaction, ...] = ()


def footprint(tx: Transaction) -> FrozenSet[UTXO]:
    """Set of UTXOs referenced by the inputs of `tx`."""
    return tx.footprint


def order_candidates(txs: Sequence[Transaction]) -> List[Transaction]:
    """
    Fix the iteration order of candidates: ascending transaction hash.

    The sort is stable, so transactions with identical hashes keep their
    submission order.

    Raises:
        TransactionNotFinalized: If a candidate has no fixed hash
    """
    return sorted(txs, key=lambda t: t.require_hash())


def exclude_chain_dependent(
    txs: Sequence[Transaction],
) -> Tuple[List[Transaction], List[Transaction]]:
    """
    Drop every transaction that spends an output of another candidate.

    A transaction t is dependent if the source hash of any UTXO in its
    footprint equals the hash of a candidate other than t itself.

    Returns:
        Tuple of (survivors, dependent), both in the order of `txs`
    """
    owners: Dict[bytes, List[int]] = {}
    for position, tx in enumerate(txs):
        owners.setdefault(tx.require_hash(), []).append(position)

    survivors: List[Transaction] = []
    dependent: List[Transaction] = []
    for position, tx in enumerate(txs):
        sources = {u.tx_hash for u in tx.footprint}
        if any(p != position for h in sources for p in owners.get(h, ())):
            dependent.append(tx)
        else:
            survivors.append(tx)
    return survivors, dependent


def build_candidate_group(
    seed: Transaction,
    candidates: Sequence[Transaction],
) -> List[Transaction]:
    """
    Grow a conflict-free group from `seed`.

    The worklist is `candidates` in the given order, minus the seed. Each
    transaction is considered once and absorbed when its footprint is
    disjoint from every footprint already in the group.
    """
    group = [seed]
    consumed: Set[UTXO] = set(seed.footprint)
    worklist = [tx for tx in candidates if tx is not seed]
    worklist.reverse()
    while worklist:
        tx = worklist.pop()
        tx_footprint = tx.footprint
        if consumed.isdisjoint(tx_footprint):
            group.append(tx)
            consumed.update(tx_footprint)
    return group


def _group_key(group: Sequence[Transaction]) -> Tuple[int, Tuple[bytes, ...]]:
    return -len(group), tuple(sorted(tx.require_hash() for tx in group))


def select_group(groups: Sequence[Sequence[Transaction]]) -> List[Transaction]:
    """
    Pick the largest group; ties go to the smallest sorted hash tuple.

    Returns an empty list when there are no groups.
    """
    if not groups:
        return []
    return list(min(groups, key=_group_key))


def resolve_conflicts(txs: Sequence[Transaction]) -> ConflictResolution:
    """
    Choose the committed group for an epoch.

    Args:
        txs: Individually valid, finalized transactions (distinct objects)

    Returns:
        ConflictResolution with the committed group ordered by hash
    """
    ordered = order_candidates(txs)
    survivors, dependent = exclude_chain_dependent(ordered)

    groups = [build_candidate_group(seed, survivors) for seed in survivors]
    chosen = select_group(groups)

    chosen_ids = {id(tx) for tx in chosen}
    committed = order_candidates(chosen)
    conflicting = tuple(tx for tx in survivors if id(tx) not in chosen_ids)
    return ConflictResolution(
        committed=tuple(committed),
        dependent=tuple(dependent),
        conflicting=conflicting,
    )
