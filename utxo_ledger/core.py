"""
Core types and pure functions for the UTXO ledger.

This module provides the foundational data structures and protocols:
1. Protocols: PoolView for read-only access to the unspent output pool
2. Data structures: UTXO, Output, Input, Transaction, EpochRecord
3. Exceptions: LedgerError and domain-specific error types
4. Canonical encoding: deterministic byte payloads for signing and hashing

Nothing in this module mutates a pool. Transactions are mutable while they
are being built and become content-addressed once finalize() is called.
"""

from __future__ import annotations
from dataclasses import dataclass, field, replace
from decimal import Decimal
import hashlib
from typing import (
    List, Optional, Protocol, Tuple, FrozenSet, Union, runtime_checkable
)


# ============================================================================
# CONSTANTS
# ============================================================================

# Size in bytes of a finalized transaction hash (SHA-256 digest).
HASH_SIZE = 32

# Separator between tagged parts of a canonical payload.
PAYLOAD_SEPARATOR = "|"


# ============================================================================
# EXCEPTIONS
# ============================================================================

class LedgerError(Exception):
    """Base exception for all ledger-related errors."""
    pass


class UTXONotFound(LedgerError, KeyError):
    """Raised when looking up or removing an output that is not in the pool."""
    pass


class TransactionNotFinalized(LedgerError):
    """Raised when a hash-dependent operation runs on a transaction with no fixed hash."""
    pass


class EpochInProgress(LedgerError):
    """Raised when handle_txs() is entered while another epoch is being processed."""
    pass


# ============================================================================
# IDENTIFIERS AND OUTPUTS
# ============================================================================

@dataclass(frozen=True, slots=True, order=True)
class UTXO:
    """
    Identifier of a spendable output: the hash of the transaction that created
    it and the position of the output within that transaction.

    Equality, hashing and ordering are structural over (tx_hash, index).
    """
    tx_hash: bytes
    index: int

    def __post_init__(self):
        if not isinstance(self.tx_hash, (bytes, bytearray)):
            raise ValueError(f"UTXO tx_hash must be bytes, got {type(self.tx_hash)}")
        if isinstance(self.tx_hash, bytearray):
            object.__setattr__(self, 'tx_hash', bytes(self.tx_hash))
        if isinstance(self.index, bool) or not isinstance(self.index, int):
            raise ValueError(f"UTXO index must be int, got {type(self.index)}")
        if self.index < 0:
            raise ValueError(f"UTXO index must be non-negative, got {self.index}")

    def __repr__(self) -> str:
        return f"UTXO({self.tx_hash.hex()[:12]}:{self.index})"


@dataclass(frozen=True, slots=True)
class Output:
    """
    A value assigned to an owner.

    Attributes:
        value: Amount carried by the output. Must be a finite Decimal (ints are
               converted). Negative values are representable so that a
               transaction declaring one can be rejected by validation.
        address: Raw public key bytes of the owner, used to verify spends.
    """
    value: Decimal
    address: bytes

    def __post_init__(self):
        value = self.value
        if isinstance(value, int) and not isinstance(value, bool):
            value = Decimal(value)
            object.__setattr__(self, 'value', value)
        if not isinstance(value, Decimal):
            raise ValueError(f"Output value must be Decimal, got {type(value)}")
        if value.is_infinite() or value.is_nan():
            raise ValueError(f"Output value must be finite, got {value}")
        if not isinstance(self.address, (bytes, bytearray)):
            raise ValueError(f"Output address must be bytes, got {type(self.address)}")
        if isinstance(self.address, bytearray):
            object.__setattr__(self, 'address', bytes(self.address))

    def __repr__(self) -> str:
        return f"Output({self.value} → {self.address.hex()[:12]})"


@dataclass(frozen=True, slots=True)
class Input:
    """
    Reference to an output being spent, plus the spender's signature.

    The signature covers Transaction.get_raw_data_to_sign() for this input's
    position. It is None until the input is signed. Inputs are immutable;
    Transaction.add_signature() replaces the input at that position.
    """
    prev_tx_hash: bytes
    output_index: int
    signature: Optional[bytes] = None

    def __post_init__(self):
        if not isinstance(self.prev_tx_hash, (bytes, bytearray)):
            raise ValueError(f"prev_tx_hash must be bytes, got {type(self.prev_tx_hash)}")
        if isinstance(self.prev_tx_hash, bytearray):
            object.__setattr__(self, 'prev_tx_hash', bytes(self.prev_tx_hash))
        if isinstance(self.output_index, bool) or not isinstance(self.output_index, int):
            raise ValueError(f"output_index must be int, got {type(self.output_index)}")
        if self.output_index < 0:
            raise ValueError(f"output_index must be non-negative, got {self.output_index}")
        if self.signature is not None:
            if not isinstance(self.signature, (bytes, bytearray)):
                raise ValueError(f"signature must be bytes, got {type(self.signature)}")
            object.__setattr__(self, 'signature', bytes(self.signature))

    @property
    def utxo(self) -> UTXO:
        """The identifier of the output this input spends."""
        return UTXO(self.prev_tx_hash, self.output_index)


# ============================================================================
# CANONICAL ENCODING
# ============================================================================

def _normalize_decimal(d: Decimal) -> str:
    """
    Normalize a Decimal to a canonical string representation.

    Semantically equal values produce identical strings:
    Decimal("10") and Decimal("10.00") both become "10".
    """
    normalized = d.normalize()
    if normalized == normalized.to_integral_value():
        return str(int(normalized))
    return format(normalized, 'f')


def _encode_input(inp: Input, with_signature: bool) -> str:
    part = f"in:{inp.prev_tx_hash.hex()}:{inp.output_index}"
    if with_signature:
        sig = inp.signature.hex() if inp.signature else ""
        part += f":{sig}"
    return part


def _encode_output(out: Output) -> str:
    return f"out:{_normalize_decimal(out.value)}:{out.address.hex()}"


# ============================================================================
# TRANSACTION
# ============================================================================

class Transaction:
    """
    An ordered list of inputs and outputs with a content hash.

    A Transaction is built incrementally (add_input, add_output, add_signature)
    and then finalized. finalize() fixes `hash` as the SHA-256 digest of the
    canonical encoding of every field. Any later mutation clears the hash, so
    `hash` is either None or consistent with the current content.

    Equality is identity: two separately built transactions with identical
    content are distinct objects, even though their hashes are equal.

    Example:
        tx = Transaction()
        tx.add_input(genesis.hash, 0)
        tx.add_output(Decimal("10"), bob_address)
        tx.add_signature(sign(alice_key, tx.get_raw_data_to_sign(0)), 0)
        tx.finalize()
    """

    def __init__(
        self,
        inputs: Optional[List[Input]] = None,
        outputs: Optional[List[Output]] = None,
    ):
        self._inputs: List[Input] = list(inputs or [])
        self._outputs: List[Output] = list(outputs or [])
        self._hash: Optional[bytes] = None

    @classmethod
    def coinbase(cls, value: Union[Decimal, int], address: bytes) -> Transaction:
        """
        Create a finalized transaction with no inputs and a single output.

        Used to mint the outputs of an initial pool.
        """
        tx = cls()
        tx.add_output(value, address)
        tx.finalize()
        return tx

    # ------------------------------------------------------------------
    # Read access
    # ------------------------------------------------------------------

    @property
    def inputs(self) -> Tuple[Input, ...]:
        return tuple(self._inputs)

    @property
    def outputs(self) -> Tuple[Output, ...]:
        return tuple(self._outputs)

    @property
    def hash(self) -> Optional[bytes]:
        """Content hash fixed by finalize(), or None if not finalized since the last change."""
        return self._hash

    @property
    def is_finalized(self) -> bool:
        return self._hash is not None

    @property
    def footprint(self) -> FrozenSet[UTXO]:
        """Set of identifiers referenced by this transaction's inputs."""
        return frozenset(inp.utxo for inp in self._inputs)

    def get_input(self, index: int) -> Input:
        return self._inputs[index]

    def get_output(self, index: int) -> Output:
        return self._outputs[index]

    def require_hash(self) -> bytes:
        """
        Return the finalized hash.

        Raises:
            TransactionNotFinalized: If finalize() has not been called since
                                     the last mutation.
        """
        if self._hash is None:
            raise TransactionNotFinalized("Transaction must be finalized before its hash is read")
        return self._hash

    # ------------------------------------------------------------------
    # Building (each mutation clears the hash)
    # ------------------------------------------------------------------

    def add_input(self, prev_tx_hash: bytes, output_index: int) -> None:
        """
        Append an input spending output `output_index` of `prev_tx_hash`.

        Raises:
            ValueError: If the hash is not bytes or the index is not a
                        non-negative int
        """
        self._inputs.append(Input(prev_tx_hash, output_index))
        self._hash = None

    def add_output(self, value: Union[Decimal, int], address: bytes) -> None:
        self._outputs.append(Output(value, address))
        self._hash = None

    def remove_input(self, which: Union[int, UTXO]) -> None:
        """Remove an input by position, or the first input spending the given UTXO."""
        if isinstance(which, UTXO):
            for i, inp in enumerate(self._inputs):
                if inp.utxo == which:
                    del self._inputs[i]
                    break
            else:
                return
        else:
            del self._inputs[which]
        self._hash = None

    def add_signature(self, signature: Optional[bytes], index: int) -> None:
        """
        Attach `signature` to the input at `index`.

        Raises:
            ValueError: If the signature is neither bytes nor None
        """
        self._inputs[index] = replace(self._inputs[index], signature=signature)
        self._hash = None

    # ------------------------------------------------------------------
    # Canonical payloads
    # ------------------------------------------------------------------

    def get_raw_data_to_sign(self, index: int) -> bytes:
        """
        Signable payload for the input at `index`.

        Covers the input's reference and every output, excludes all
        signatures, and is bound to the input position.

        Raises:
            IndexError: If there is no input at `index`.
        """
        if index < 0 or index >= len(self._inputs):
            raise IndexError(f"No input at index {index}")
        parts = [f"sign:{index}", _encode_input(self._inputs[index], with_signature=False)]
        parts.extend(_encode_output(out) for out in self._outputs)
        return PAYLOAD_SEPARATOR.join(parts).encode("utf-8")

    def get_raw_tx(self) -> bytes:
        """Canonical encoding of every field, signatures included."""
        parts = [_encode_input(inp, with_signature=True) for inp in self._inputs]
        parts.extend(_encode_output(out) for out in self._outputs)
        return PAYLOAD_SEPARATOR.join(parts).encode("utf-8")

    def finalize(self) -> bytes:
        """Fix and return the content hash of the current fields."""
        self._hash = hashlib.sha256(self.get_raw_tx()).digest()
        return self._hash

    def __repr__(self) -> str:
        tag = self._hash.hex()[:12] if self._hash else "unfinalized"
        return f"Transaction({tag}: {len(self._inputs)} in, {len(self._outputs)} out)"


# ============================================================================
# PROTOCOLS
# ============================================================================

@runtime_checkable
class PoolView(Protocol):
    """
    Read-only interface to the unspent output pool.

    Validation and conflict resolution receive a PoolView and only query it.
    UTXOPool implements this protocol; tests use FakePool.
    """

    def contains(self, utxo: UTXO) -> bool:
        """Return True if `utxo` is currently spendable."""
        ...

    def get_output(self, utxo: UTXO) -> Output:
        """Return the output identified by `utxo`."""
        ...

    def all_utxos(self) -> List[UTXO]:
        """Return every spendable identifier."""
        ...


# ============================================================================
# EPOCH RECORD
# ============================================================================

@dataclass(frozen=True, slots=True)
class EpochRecord:
    """
    Immutable summary of one processed epoch.

    Attributes:
        epoch: Sequence number of the epoch within its handler (starting at 0)
        committed: Hashes of the committed transactions, in commit order
        rejected_invalid: Candidates that failed individual validation
        rejected_dependent: Candidates dropped for spending a same-epoch output
        rejected_conflict: Candidates left out of the chosen conflict-free group
        spent: Identifiers removed from the pool
    """
    epoch: int
    committed: Tuple[bytes, ...]
    rejected_invalid: int = 0
    rejected_dependent: int = 0
    rejected_conflict: int = 0
    spent: FrozenSet[UTXO] = field(default_factory=frozenset)

    @property
    def submitted(self) -> int:
        return (len(self.committed) + self.rejected_invalid
                + self.rejected_dependent + self.rejected_conflict)

    def __repr__(self) -> str:
        return (f"EpochRecord(#{self.epoch}: {len(self.committed)} committed, "
                f"{self.rejected_invalid} invalid, {self.rejected_dependent} dependent, "
                f"{self.rejected_conflict} conflicting)")
