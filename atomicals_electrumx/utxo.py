"""Ordering and selection helpers for address UTXO sets."""

from __future__ import annotations

from typing import Iterable, List, Optional

from .model import Unspent, Utxo


def normalize_unspent(unspents: Iterable[Unspent]) -> List[Utxo]:
    return [Utxo.from_unspent(unspent) for unspent in unspents]


def sort_by_value(utxos: Iterable[Utxo]) -> List[Utxo]:
    """Ascending by value; equal values keep upstream order."""

    return sorted(utxos, key=lambda u: u.value)


def is_spendable(utxo: Utxo, min_satoshis: int) -> bool:
    """Clean (no Atomicals attached) and worth at least ``min_satoshis``."""

    return utxo.is_clean and utxo.value >= min_satoshis


def select_spendable(utxos: Iterable[Utxo], min_satoshis: int) -> Optional[Utxo]:
    """Return the first spendable output in iteration order.

    Applied to a list from :func:`sort_by_value` this is the smallest output
    that covers ``min_satoshis``, which keeps change small without running a
    full coin-selection pass.
    """

    for utxo in utxos:
        if is_spendable(utxo, min_satoshis):
            return utxo
    return None


def total_value(utxos: Iterable[Utxo], *, clean_only: bool = False) -> int:
    return sum(u.value for u in utxos if u.is_clean or not clean_only)
