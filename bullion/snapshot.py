"""
snapshot.py - Point-in-time inventory reconstruction

Answers "what was the stock and its FIFO value at the end of date D" by
replaying the history up to D from scratch. The walk is self-contained: it
works on lightweight [quantity, cost] pairs rather than Batch values, builds
no traces and shares no state with the live replay.

Grams come from a running total that is decremented on every sale, even past
zero, and only clamped at the end. Value is the cost of whatever quantity is
left in the pairs. Without a mid-history stockout, a snapshot at the latest
transaction date equals the live replay's stock and value exactly.

Each call re-walks the full history, so a trend over N days costs N passes.
"""

from __future__ import annotations
from datetime import date, timedelta
from decimal import Decimal
from typing import Iterable, List

from .core import (
    Transaction, Snapshot,
    QUANTITY_EPSILON, ZERO,
    to_iso_date, parse_iso_date,
)
from .ordering import sort_transactions


def inventory_snapshot(
    transactions: Iterable[Transaction],
    cutoff,
    epsilon: Decimal = QUANTITY_EPSILON,
) -> Snapshot:
    """
    Reconstruct stock and value as of the end of the cutoff date.

    Args:
        transactions: Full transaction collection in any order
        cutoff: ISO date string or date; transactions dated on or before it count
        epsilon: Grams below which a pair is empty and a sale is satisfied

    Returns:
        Snapshot with grams clamped at zero and FIFO value of remaining pairs
    """
    cutoff = to_iso_date(cutoff)
    relevant = sort_transactions(tx for tx in transactions if tx.date <= cutoff)

    pairs: List[List[Decimal]] = []
    total_quantity = ZERO

    for tx in relevant:
        if tx.is_acquire:
            quantity = tx.quantity if tx.quantity > epsilon else ZERO
            pairs.append([quantity, tx.unit_price])
            total_quantity += tx.quantity
            continue

        total_quantity -= tx.quantity
        remaining_to_sell = tx.quantity
        for pair in pairs:
            if remaining_to_sell <= epsilon:
                break
            if pair[0] <= epsilon:
                continue
            take = min(pair[0], remaining_to_sell)
            pair[0] -= take
            remaining_to_sell -= take
            if pair[0] < epsilon:
                pair[0] = ZERO

    value = sum((quantity * cost for quantity, cost in pairs), ZERO)
    return Snapshot(date=cutoff, grams=max(ZERO, total_quantity), value=value)


def inventory_value_on(
    transactions: Iterable[Transaction],
    cutoff,
    epsilon: Decimal = QUANTITY_EPSILON,
) -> Decimal:
    """FIFO inventory value as of the end of the cutoff date."""
    return inventory_snapshot(transactions, cutoff, epsilon=epsilon).value


def snapshot_series(
    transactions: Iterable[Transaction],
    end,
    days: int = 30,
    epsilon: Decimal = QUANTITY_EPSILON,
) -> List[Snapshot]:
    """
    Daily snapshots for the `days` days leading up to `end`, inclusive.

    Returns days + 1 snapshots, oldest first.

    Raises:
        ValueError: If end is not a valid ISO date or days is negative.
    """
    if days < 0:
        raise ValueError(f"days must be non-negative, got {days}")
    end_date = end if isinstance(end, date) else parse_iso_date(to_iso_date(end))
    if end_date is None:
        raise ValueError(f"Invalid end date: {end!r}")

    history = list(transactions)
    return [
        inventory_snapshot(history, end_date - timedelta(days=offset), epsilon=epsilon)
        for offset in range(days, -1, -1)
    ]
