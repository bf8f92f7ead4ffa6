"""
ordering.py - Chronological ordering of transactions

Every component that walks transactions in time order goes through
compare_transactions(). Using any other ordering makes replay, snapshots and
the audit disagree about what happened first.

Comparison tiers, in priority order:
    1. date: ISO string comparison
    2. created_at: string comparison, only when BOTH records carry one
    3. id: string comparison, final tie-break

The timestamp tier is not transitive when a single day mixes stamped and
unstamped records: a (10:00), b (none) and c (09:00) give a < b < c < a.
The sorted order of such a day then depends on input order, and for
InventoryLedger on the order transactions were added. Days that are fully
stamped or fully unstamped always sort the same way.
"""

from __future__ import annotations
from functools import cmp_to_key
from typing import Iterable, List

from .core import Transaction


def _cmp(a: str, b: str) -> int:
    return (a > b) - (a < b)


def compare_transactions(a: Transaction, b: Transaction) -> int:
    """
    Three-way comparison of two transactions.

    The timestamp tier is skipped entirely when either record lacks a
    created_at; it is not treated as equal-then-fallback, so a pair with one
    timestamp goes straight to the identifier.

    Returns:
        Negative if a happened before b, positive if after, 0 only when the
        identifiers are equal.
    """
    result = _cmp(a.date, b.date)
    if result:
        return result
    if a.created_at and b.created_at:
        result = _cmp(a.created_at, b.created_at)
        if result:
            return result
    return _cmp(a.id, b.id)


chronological_key = cmp_to_key(compare_transactions)


def sort_transactions(transactions: Iterable[Transaction]) -> List[Transaction]:
    """Return a new list of transactions in chronological order."""
    return sorted(transactions, key=chronological_key)
