#!/usr/bin/env python3
"""
demo.py - Interactive Tutorial: Epoch Processing Step by Step

A walkthrough of how candidate transactions are validated, how double-spends
inside one epoch are resolved, and how the pool of unspent outputs changes.
Press Enter to advance.

WHAT YOU'LL LEARN:
  1-3:  Foundation     - Keys, a genesis pool, building and signing a spend
  4-5:  Validation     - The five validity rules, committing an epoch
  6-8:  Conflicts      - Double-spends, chained spends, larger groups win
  9:    History        - Cloning a handler, reading the epoch log

Run:
    python demo.py           # Interactive mode (press Enter for each step)
    python demo.py --quick   # Run all steps without pausing
"""

from dataclasses import dataclass
from decimal import Decimal
import sys

from utxo_ledger import (
    UTXO, Transaction, UTXOPool, TxHandler,
    generate_keypair, sign, check_transaction,
)


# ============================================================================
# CONFIGURATION
# ============================================================================

@dataclass
class DemoConfig:
    """Configuration for the tutorial. Modify these to experiment."""
    alice_grant: Decimal = Decimal("10")
    alice_second_grant: Decimal = Decimal("5")
    bob_grant: Decimal = Decimal("7")


CONFIG = DemoConfig()

QUICK_MODE = "--quick" in sys.argv


def wait_for_enter():
    """Pause for user input unless in quick mode."""
    if not QUICK_MODE:
        input("\n[Press Enter to continue...]")


def step_header(number: int, title: str, objective: str):
    """Print a step header with learning objective."""
    print(f"\n{'='*70}")
    print(f"STEP {number}: {title}")
    print(f"{'='*70}")
    print(f"\nObjective: {objective}\n")


def section_header(text: str):
    """Print a section header within a step."""
    print(f"\n--- {text} ---\n")


def pay(key, utxo: UTXO, value, address) -> Transaction:
    """Single-input, single-output spend signed by `key`."""
    tx = Transaction()
    tx.add_input(utxo.tx_hash, utxo.index)
    tx.add_output(Decimal(value), address)
    tx.add_signature(sign(key, tx.get_raw_data_to_sign(0)), 0)
    tx.finalize()
    return tx


def show_pool(handler: TxHandler):
    for utxo in handler.all_utxos():
        out = handler.get_output(utxo)
        print(f"  {utxo!r}  value={out.value}  owner={out.address.hex()[:12]}...")
    if not handler.all_utxos():
        print("  (empty)")


# ============================================================================
# PHASE 1: FOUNDATION (Steps 1-3)
# ============================================================================

def step_01_keys_and_genesis():
    """Create keys and mint a genesis pool."""
    step_header(1, "Keys and a Genesis Pool",
        "Addresses are public keys; the pool starts with minted outputs.")

    print("""
    Every output belongs to an address: the raw bytes of an ECDSA public key.
    Only the holder of the matching private key can spend it.

    The pool starts from a genesis transaction with no inputs.
    """)

    keys = {name: generate_keypair() for name in ("alice", "bob", "carol")}

    print(">>> genesis = Transaction()")
    print(">>> genesis.add_output(10, alice); genesis.add_output(5, alice)")
    print(">>> genesis.add_output(7, bob); genesis.finalize()")
    genesis = Transaction()
    genesis.add_output(CONFIG.alice_grant, keys["alice"][1])
    genesis.add_output(CONFIG.alice_second_grant, keys["alice"][1])
    genesis.add_output(CONFIG.bob_grant, keys["bob"][1])
    genesis.finalize()

    print(">>> handler = TxHandler(UTXOPool.from_transactions([genesis]))")
    handler = TxHandler(UTXOPool.from_transactions([genesis]), name="tutorial")

    section_header("Initial Pool")
    show_pool(handler)
    return handler, keys, genesis


def step_02_build_and_sign(keys, genesis):
    """Build a transaction and sign each input."""
    step_header(2, "Building and Signing",
        "Each input signs the whole transaction, bound to its own position.")

    alice_key, _ = keys["alice"]
    _, bob = keys["bob"]

    print(">>> tx = Transaction()")
    print(">>> tx.add_input(genesis.hash, 0)")
    print(">>> tx.add_output(Decimal('10'), bob)")
    print(">>> tx.add_signature(sign(alice_key, tx.get_raw_data_to_sign(0)), 0)")
    print(">>> tx.finalize()")
    tx = pay(alice_key, UTXO(genesis.hash, 0), "10", bob)

    section_header("Result")
    print(f"Transaction: {tx!r}")
    print(f"Signable payload for input 0: {tx.get_raw_data_to_sign(0)[:40]!r}...")

    section_header("Key Insight")
    print("""
    The signable payload excludes signatures, so signing one input does not
    invalidate another. Changing an output after signing does.
    """)
    return tx


def step_03_validate(handler: TxHandler, tx: Transaction):
    """Check a transaction without touching the pool."""
    step_header(3, "Validation",
        "is_valid_tx() is read-only; the pool is unchanged afterwards.")

    print(f">>> handler.is_valid_tx(tx)  ->  {handler.is_valid_tx(tx)}")
    print(f">>> len(handler.pool)        ->  {len(handler.pool)}")


# ============================================================================
# PHASE 2: VALIDATION (Steps 4-5)
# ============================================================================

def step_04_rejections(handler: TxHandler, keys, genesis):
    """Show each validity rule rejecting something."""
    step_header(4, "Rejected Transactions",
        "Five rules: existence, signatures, no double claim, non-negative, conservation.")

    alice_key, _ = keys["alice"]
    bob_key, bob = keys["bob"]
    u0, u1 = UTXO(genesis.hash, 0), UTXO(genesis.hash, 1)

    forged = pay(bob_key, u0, "10", bob)
    inflated = pay(alice_key, u1, "6", bob)
    missing = pay(alice_key, UTXO(b"\x00" * 32, 0), "1", bob)
    negative = pay(alice_key, u1, "-1", bob)

    twice = Transaction()
    twice.add_input(u1.tx_hash, u1.index)
    twice.add_input(u1.tx_hash, u1.index)
    twice.add_output(Decimal("5"), bob)
    for i in range(2):
        twice.add_signature(sign(alice_key, twice.get_raw_data_to_sign(i)), i)

    for label, tx in [("missing input", missing), ("wrong signer", forged),
                      ("claimed twice", twice), ("negative output", negative),
                      ("outputs exceed inputs", inflated)]:
        valid, reason = check_transaction(tx, handler)
        print(f"  {label:<24} valid={valid}  reason: {reason}")


def step_05_commit(handler: TxHandler, tx: Transaction):
    """Commit a single-transaction epoch."""
    step_header(5, "Committing an Epoch",
        "Committed inputs leave the pool; the new outputs are not added.")

    print(">>> handler.handle_txs([tx])")
    committed = handler.handle_txs([tx])
    print(f"\nCommitted: {committed}")

    section_header("Pool After Epoch 0")
    show_pool(handler)


# ============================================================================
# PHASE 3: CONFLICTS (Steps 6-8)
# ============================================================================

def step_06_double_spend(handler: TxHandler, keys, genesis):
    """Two spends of one output in the same epoch."""
    step_header(6, "Double-Spend",
        "Exactly one of two conflicting spends is committed.")

    alice_key, _ = keys["alice"]
    u1 = UTXO(genesis.hash, 1)
    to_bob = pay(alice_key, u1, "5", keys["bob"][1])
    to_carol = pay(alice_key, u1, "5", keys["carol"][1])

    print(">>> handler.handle_txs([to_bob, to_carol])")
    committed = handler.handle_txs([to_bob, to_carol])
    winner = "to_bob" if committed == [to_bob] else "to_carol"
    print(f"\nWinner: {winner}")


def step_07_chained_spend(handler: TxHandler, keys, genesis):
    """A child spending its parent's output in the same epoch."""
    step_header(7, "Chained Spend",
        "A transaction spending another candidate's output is dropped, not deferred.")

    bob_key, bob = keys["bob"]
    parent = pay(bob_key, UTXO(genesis.hash, 2), "7", keys["carol"][1])
    child = pay(keys["carol"][0], UTXO(parent.hash, 0), "7", bob)

    committed = handler.handle_txs([child, parent])
    print(f"\nCommitted parent only: {committed == [parent]}")


def step_08_larger_group(keys):
    """The largest conflict-free group wins."""
    step_header(8, "Largest Group Wins",
        "Two small spends beat one sweep of both outputs.")

    alice_key, alice = keys["alice"]
    genesis = Transaction()
    genesis.add_output(Decimal("4"), alice)
    genesis.add_output(Decimal("4"), alice)
    genesis.finalize()
    handler = TxHandler(UTXOPool.from_transactions([genesis]), name="groups")

    u0, u1 = UTXO(genesis.hash, 0), UTXO(genesis.hash, 1)
    sweep = Transaction()
    sweep.add_input(u0.tx_hash, u0.index)
    sweep.add_input(u1.tx_hash, u1.index)
    sweep.add_output(Decimal("8"), keys["bob"][1])
    for i in range(2):
        sweep.add_signature(sign(alice_key, sweep.get_raw_data_to_sign(i)), i)
    sweep.finalize()

    first = pay(alice_key, u0, "4", keys["bob"][1])
    second = pay(alice_key, u1, "4", keys["carol"][1])
    committed = handler.handle_txs([sweep, first, second])
    print(f"\nCommitted {len(committed)} transactions; sweep committed: "
          f"{any(tx is sweep for tx in committed)}")


# ============================================================================
# PHASE 4: HISTORY (Step 9)
# ============================================================================

def step_09_replicas(handler: TxHandler):
    """Clone a handler and read its epoch log."""
    step_header(9, "Clones and the Epoch Log",
        "A clone starts from identical state; every epoch leaves a record.")

    replica = handler.clone(name="replica")
    replica.verbose = False
    handler.verbose = False

    print(f"Original pool == replica pool: {handler.pool == replica.pool}")

    section_header("Epoch Log")
    for record in handler.epoch_log:
        print(f"  epoch {record.epoch}: {record!r}, "
              f"invalid={record.rejected_invalid} "
              f"dependent={record.rejected_dependent} "
              f"conflict={record.rejected_conflict}")


def main():
    """Run the complete tutorial."""
    print("=" * 70)
    print("       UTXO LEDGER - INTERACTIVE TUTORIAL")
    print("=" * 70)

    if QUICK_MODE:
        print("Running in QUICK mode (no pauses)")
    else:
        print("Running in INTERACTIVE mode (press Enter to advance)")

    wait_for_enter()

    handler, keys, genesis = step_01_keys_and_genesis()
    wait_for_enter()

    tx = step_02_build_and_sign(keys, genesis)
    wait_for_enter()

    step_03_validate(handler, tx)
    wait_for_enter()

    step_04_rejections(handler, keys, genesis)
    wait_for_enter()

    step_05_commit(handler, tx)
    wait_for_enter()

    step_06_double_spend(handler, keys, genesis)
    wait_for_enter()

    step_07_chained_spend(handler, keys, genesis)
    wait_for_enter()

    step_08_larger_group(keys)
    wait_for_enter()

    step_09_replicas(handler)

    print(f"\n{'='*70}")
    print("Next steps:")
    print("  - See utxo_ledger/resolver.py for the selection policy")
    print("  - Run tests: pytest tests/")


if __name__ == "__main__":
    main()
