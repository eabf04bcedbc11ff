"""
handler.py - Epoch processing over an owned UTXO pool.

TxHandler is the only component that mutates the pool. It is the module
through which transactions are admitted, ensuring controlled and auditable
changes.

Key responsibilities:
    - Holds a private copy of the pool handed to the constructor
    - Validates candidates individually (validator.py)
    - Resolves double-spends across the epoch (resolver.py)
    - Removes the outputs spent by the committed set, all at once, only after
      the committed set is chosen
    - Records one EpochRecord per processed epoch
"""

from __future__ import annotations
from typing import Iterable, List, Optional

from .core import Transaction, Output, EpochRecord, EpochInProgress, UTXO
from .pool import UTXOPool
from .resolver import resolve_conflicts
from .validator import check_transaction


class TxHandler:
    """
    Admission of transaction batches against a pool of unspent outputs.

    Implements the PoolView protocol by delegation, so the handler itself can
    be passed to pure functions that only read the pool.

    Thread Safety:
        Not thread-safe. Serialize calls to handle_txs() on one instance
        (a lock around the call or a single consumer loop). Re-entering
        handle_txs() while an epoch is in progress raises EpochInProgress.

    Example:
        handler = TxHandler(pool, verbose=False)
        if handler.is_valid_tx(tx):
            ...
        committed = handler.handle_txs([tx1, tx2, tx3])
    """

    def __init__(self, pool: UTXOPool, name: str = "main", verbose: bool = True):
        """
        Create a handler.

        Args:
            pool: Initial set of spendable outputs; copied, never aliased
            name: Handler identifier used in output
            verbose: Print a line per rejected candidate and an epoch summary

        Raises:
            ValueError: If pool is None
        """
        if pool is None:
            raise ValueError("TxHandler requires an initial UTXOPool")
        self.name = name
        self.verbose = verbose
        self._pool = UTXOPool(pool)
        self._epoch_log: List[EpochRecord] = []
        self._in_epoch = False

    # ========================================================================
    # PoolView PROTOCOL IMPLEMENTATION (read-only methods)
    # ========================================================================

    def contains(self, utxo: UTXO) -> bool:
        return self._pool.contains(utxo)

    def get_output(self, utxo: UTXO) -> Output:
        return self._pool.get_output(utxo)

    def all_utxos(self) -> List[UTXO]:
        return self._pool.all_utxos()

    @property
    def pool(self) -> UTXOPool:
        """Copy of the current pool. Changes to it do not affect the handler."""
        return UTXOPool(self._pool)

    @property
    def epoch_log(self) -> List[EpochRecord]:
        return list(self._epoch_log)

    @property
    def epoch(self) -> int:
        """Number of epochs processed so far."""
        return len(self._epoch_log)

    # ========================================================================
    # VALIDATION
    # ========================================================================

    def is_valid_tx(self, tx: Transaction) -> bool:
        """
        Return True if `tx` is valid against the current pool.

        Checks existence of every spent output, input signatures, that no
        output is claimed twice, that output values are non-negative, and
        that input value covers output value. Does not modify `tx` or the pool.
        """
        valid, _ = check_transaction(tx, self._pool)
        return valid

    # ========================================================================
    # EPOCH PROCESSING (Mutating)
    # ========================================================================

    def handle_txs(self, possible_txs: Iterable[Transaction]) -> List[Transaction]:
        """
        Process one epoch of candidate transactions.

        Steps:
        1. Collapse repeated occurrences of the same transaction object
        2. Drop individually invalid transactions
        3. Finalize the survivors so hash comparisons see a fixed hash
        4. Resolve conflicts (see resolver.py for the selection policy)
        5. Remove every output spent by the committed set from the pool

        Args:
            possible_txs: Unordered batch of candidates

        Returns:
            The committed transactions. Callers must not rely on their order.

        Raises:
            EpochInProgress: If called while another epoch is being processed
        """
        if self._in_epoch:
            raise EpochInProgress(f"{self.name}: handle_txs() is not reentrant")
        self._in_epoch = True
        try:
            return self._process_epoch(possible_txs)
        finally:
            self._in_epoch = False

    def _process_epoch(self, possible_txs: Iterable[Transaction]) -> List[Transaction]:
        epoch = len(self._epoch_log)

        # dict keys keep first-seen order; Transaction hashes by identity
        candidates = list(dict.fromkeys(possible_txs))

        valid: List[Transaction] = []
        rejected_invalid = 0
        for tx in candidates:
            ok, reason = check_transaction(tx, self._pool)
            if ok:
                valid.append(tx)
            else:
                rejected_invalid += 1
                if self.verbose:
                    print(f"✗ REJECTED: {tx!r}: {reason}")

        for tx in valid:
            tx.finalize()

        resolution = resolve_conflicts(valid)
        if self.verbose:
            for tx in resolution.dependent:
                print(f"✗ DEPENDENT: {tx!r} spends an output of another candidate in epoch {epoch}")
            for tx in resolution.conflicting:
                print(f"✗ CONFLICT: {tx!r} double-spends a committed input")

        spent = frozenset(u for tx in resolution.committed for u in tx.footprint)
        for utxo in sorted(spent):
            self._pool.remove_utxo(utxo)

        record = EpochRecord(
            epoch=epoch,
            committed=tuple(tx.require_hash() for tx in resolution.committed),
            rejected_invalid=rejected_invalid,
            rejected_dependent=len(resolution.dependent),
            rejected_conflict=len(resolution.conflicting),
            spent=spent,
        )
        self._epoch_log.append(record)

        if self.verbose:
            print(f"✓ EPOCH {epoch} [{self.name}]: {len(resolution.committed)}/"
                  f"{len(candidates)} committed, {len(spent)} outputs spent")
        return list(resolution.committed)

    # ========================================================================
    # HANDLER OPERATIONS
    # ========================================================================

    def clone(self, name: Optional[str] = None) -> TxHandler:
        """
        Create an independent copy of this handler.

        The pool and epoch log are copied; processing epochs on the clone does
        not affect the original, and vice versa.
        """
        cloned = TxHandler(self._pool, name=name or self.name, verbose=self.verbose)
        cloned._epoch_log = list(self._epoch_log)
        return cloned

    def __repr__(self) -> str:
        return f"TxHandler({self.name!r}, {len(self._pool)} outputs, epoch={self.epoch})"
