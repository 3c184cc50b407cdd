"""
Weighted holder selection.

Picks one account with probability proportional to its total holdings
(liquid balance plus everything locked in its vault). Used to choose the
recipient of action fees from the fee-collecting contract's holders.

Iteration order is the balances' insertion order, with vault-only accounts
appended in vault order; the first account whose running weight sum reaches
the draw wins. Inputs are never mutated.
"""

from __future__ import annotations

import random
from typing import Callable, Dict, Mapping, Optional, Sequence

from .types.state import VaultEntry

RandomFn = Callable[[], float]


def _entry_balance(entry: VaultEntry | Mapping[str, int]) -> int:
    if isinstance(entry, Mapping):
        return int(entry.get("balance", 0) or 0)
    return int(entry.balance)


def merge_vault(
    balances: Mapping[str, int],
    vault: Mapping[str, Sequence[VaultEntry | Mapping[str, int]]],
) -> Dict[str, int]:
    """Return a new mapping of liquid + locked holdings per account."""
    merged: Dict[str, int] = dict(balances)
    for addr, entries in vault.items():
        if not entries:
            continue
        locked = sum(_entry_balance(e) for e in entries)
        merged[addr] = merged.get(addr, 0) + locked
    return merged


def holder_weights(merged: Mapping[str, int]) -> Dict[str, float]:
    """Each account's share of the total; all zeros when nothing is held."""
    total = sum(merged.values())
    if total <= 0:
        return {addr: 0.0 for addr in merged}
    return {addr: bal / total for addr, bal in merged.items()}


def select_weighted_holder(
    balances: Mapping[str, int],
    vault: Optional[Mapping[str, Sequence[VaultEntry | Mapping[str, int]]]] = None,
    *,
    rng: RandomFn = random.random,
) -> Optional[str]:
    """
    Select one holder proportionally to its merged balance.

    `rng` returns a draw in [0, 1); pass a fixed function for deterministic
    results. Returns None when no account has a positive weight.
    """
    weights = holder_weights(merge_vault(balances, vault or {}))
    r = rng()
    acc = 0.0
    for addr, weight in weights.items():
        acc += weight
        if r <= acc and weight > 0:
            return addr
    return None


__all__ = ["merge_vault", "holder_weights", "select_weighted_holder"]
