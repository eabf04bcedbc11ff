"""
utxo_ledger - Transaction admission over a pool of unspent outputs

Validates epochs of candidate transactions, resolves double-spends between
them, and applies the chosen set to the pool.

Usage:
    from decimal import Decimal
    from utxo_ledger import TxHandler, Transaction, UTXOPool, generate_keypair, sign

    alice_key, alice = generate_keypair()
    _, bob = generate_keypair()

    genesis = Transaction.coinbase(Decimal("25"), alice)
    handler = TxHandler(UTXOPool.from_transactions([genesis]), verbose=False)

    tx = Transaction()
    tx.add_input(genesis.hash, 0)
    tx.add_output(Decimal("25"), bob)
    tx.add_signature(sign(alice_key, tx.get_raw_data_to_sign(0)), 0)
    tx.finalize()

    committed = handler.handle_txs([tx])
"""

# Core types
from .core import (
    UTXO,
    Output,
    Input,
    Transaction,
    PoolView,
    EpochRecord,
    LedgerError,
    UTXONotFound,
    TransactionNotFinalized,
    EpochInProgress,
    HASH_SIZE,
)

# Signatures
from .crypto import (
    DEFAULT_CURVE,
    generate_keypair,
    address_of,
    sign,
    verify_signature,
)

# Pool
from .pool import UTXOPool

# Validation
from .validator import check_transaction, is_valid_tx

# Conflict resolution
from .resolver import (
    ConflictResolution,
    footprint,
    order_candidates,
    exclude_chain_dependent,
    build_candidate_group,
    select_group,
    resolve_conflicts,
)

# Handler
from .handler import TxHandler

__all__ = [
    # Core
    'UTXO', 'Output', 'Input', 'Transaction', 'PoolView', 'EpochRecord',
    'LedgerError', 'UTXONotFound', 'TransactionNotFinalized', 'EpochInProgress',
    'HASH_SIZE',
    # Signatures
    'DEFAULT_CURVE', 'generate_keypair', 'address_of', 'sign', 'verify_signature',
    # Pool
    'UTXOPool',
    # Validation
    'check_transaction', 'is_valid_tx',
    # Conflict resolution
    'ConflictResolution', 'footprint', 'order_candidates', 'exclude_chain_dependent',
    'build_candidate_group', 'select_group', 'resolve_conflicts',
    # Handler
    'TxHandler',
]

__version__ = '0.1.0'
