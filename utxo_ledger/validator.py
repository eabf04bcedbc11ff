"""
validator.py - Single-transaction validity rules.

All functions are pure and operate on a read-only PoolView. A transaction that
breaks a rule is reported as invalid; it never raises and never touches the
pool.

Rules, checked in order (the first failure decides the reason):
1. Existence: every input spends an output present in the pool
2. Signatures: every input is signed by the owner of the output it spends,
   over the signable payload for that input's position
3. No internal double-spend: no output is spent twice by the same transaction
4. Non-negative outputs: every declared output value is >= 0
5. Conservation: input value sum >= output value sum (the rest is a fee)
"""

from __future__ import annotations
from decimal import Decimal
from typing import Set, Tuple

from .core import Transaction, PoolView, UTXO
from .crypto import verify_signature


def check_transaction(tx: Transaction, pool: PoolView) -> Tuple[bool, str]:
    """
    Validate `tx` against `pool`.

    Args:
        tx: Transaction to validate (need not be finalized)
        pool: Read-only view of the spendable outputs

    Returns:
        Tuple of (valid: bool, reason: str)
        If valid is True, reason is an empty string.
        If valid is False, reason names the first rule that failed.
    """
    inputs = tx.inputs

    # Rule 1: existence
    for inp in inputs:
        if not pool.contains(inp.utxo):
            return False, f"input {inp.utxo!r} not in pool"

    # Rule 2: signatures
    for index, inp in enumerate(inputs):
        if not inp.signature:
            return False, f"input {index} is not signed"
        owner = pool.get_output(inp.utxo).address
        if not verify_signature(owner, tx.get_raw_data_to_sign(index), inp.signature):
            return False, f"input {index} has an invalid signature"

    # Rule 3: no output claimed twice
    claimed: Set[UTXO] = set()
    for inp in inputs:
        if inp.utxo in claimed:
            return False, f"input {inp.utxo!r} claimed more than once"
        claimed.add(inp.utxo)

    # Rule 4: non-negative outputs
    for index, out in enumerate(tx.outputs):
        if out.value < 0:
            return False, f"output {index} has negative value {out.value}"

    # Rule 5: conservation
    input_sum = sum((pool.get_output(u).value for u in sorted(claimed)), Decimal("0"))
    output_sum = sum((out.value for out in tx.outputs), Decimal("0"))
    if input_sum < output_sum:
        return False, f"outputs {output_sum} exceed inputs {input_sum}"

    return True, ""


def is_valid_tx(tx: Transaction, pool: PoolView) -> bool:
    """Return True if `tx` satisfies every validity rule against `pool`."""
    valid, _ = check_transaction(tx, pool)
    return valid

