"""
pool.py - The set of currently spendable outputs.

UTXOPool is a keyed store from UTXO identifier to Output. It implements the
PoolView protocol for read access and adds the mutators used by TxHandler at
the end of an epoch.
"""

from __future__ import annotations
from decimal import Decimal
from typing import Dict, Iterator, List, Optional, Tuple

from .core import UTXO, Output, Transaction, UTXONotFound, LedgerError


class UTXOPool:
    """
    In-memory map of spendable outputs.

    Passing an existing pool to the constructor makes an independent copy:
    later changes to either pool are not visible in the other.

    Example:
        genesis = Transaction.coinbase(Decimal("25"), alice_address)
        pool = UTXOPool.from_transactions([genesis])
        pool.contains(UTXO(genesis.hash, 0))  # True
    """

    def __init__(self, other: Optional[UTXOPool] = None):
        self._outputs: Dict[UTXO, Output] = {}
        if other is not None:
            # Output and UTXO are frozen, a shallow copy of the map is independent
            self._outputs = dict(other._outputs)

    @classmethod
    def from_transactions(cls, transactions: List[Transaction]) -> UTXOPool:
        """
        Build a pool holding every output of the given finalized transactions.

        Raises:
            TransactionNotFinalized: If a transaction has no fixed hash
        """
        pool = cls()
        for tx in transactions:
            tx_hash = tx.require_hash()
            for index, output in enumerate(tx.outputs):
                pool.add_utxo(UTXO(tx_hash, index), output)
        return pool

    # ========================================================================
    # PoolView PROTOCOL IMPLEMENTATION (read-only methods)
    # ========================================================================

    def contains(self, utxo: UTXO) -> bool:
        return utxo in self._outputs

    def get_output(self, utxo: UTXO) -> Output:
        """
        Return the output identified by `utxo`.

        Raises:
            UTXONotFound: If `utxo` is not in the pool
        """
        try:
            return self._outputs[utxo]
        except KeyError:
            raise UTXONotFound(f"UTXO {utxo!r} not in pool") from None

    def all_utxos(self) -> List[UTXO]:
        """All spendable identifiers, sorted for deterministic iteration."""
        return sorted(self._outputs)

    # ========================================================================
    # MUTATORS
    # ========================================================================

    def add_utxo(self, utxo: UTXO, output: Output) -> None:
        """
        Make `output` spendable under `utxo`.

        Raises:
            LedgerError: If `utxo` is already in the pool
        """
        if utxo in self._outputs:
            raise LedgerError(f"UTXO {utxo!r} already in pool")
        self._outputs[utxo] = output

    def remove_utxo(self, utxo: UTXO) -> None:
        """
        Mark `utxo` as spent.

        Raises:
            UTXONotFound: If `utxo` is not in the pool
        """
        if utxo not in self._outputs:
            raise UTXONotFound(f"UTXO {utxo!r} not in pool")
        del self._outputs[utxo]

    # ========================================================================
    # QUERIES
    # ========================================================================

    def items(self) -> List[Tuple[UTXO, Output]]:
        """All (identifier, output) pairs, sorted by identifier."""
        return sorted(self._outputs.items())

    def total_value(self) -> Decimal:
        """Sum of all spendable values, accumulated in identifier order."""
        return sum((self._outputs[u].value for u in sorted(self._outputs)), Decimal("0"))

    def balance_of(self, address: bytes) -> Decimal:
        """Sum of the spendable values owned by `address`."""
        return sum(
            (out.value for u, out in sorted(self._outputs.items()) if out.address == address),
            Decimal("0"),
        )

    def __contains__(self, utxo: object) -> bool:
        return utxo in self._outputs

    def __len__(self) -> int:
        return len(self._outputs)

    def __iter__(self) -> Iterator[UTXO]:
        return iter(self.all_utxos())

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, UTXOPool):
            return NotImplemented
        return self._outputs == other._outputs

    __hash__ = None

    def __repr__(self) -> str:
        return f"UTXOPool({len(self._outputs)} outputs, total={self.total_value()})"
