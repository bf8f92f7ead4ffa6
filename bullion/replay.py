"""
replay.py - FIFO Replay Engine

Turns an unordered collection of transactions into the live inventory state:
    - every DISPOSE annotated with cogs, profit and a consumption trace
    - one Batch per ACQUIRE with its final remaining quantity

ALGORITHM:
==========

1. Sort with the ordering module (date, created_at when both present, id).
2. ACQUIRE appends a fresh lot to the tail of the queue.
3. DISPOSE walks the queue from the head, taking min(remaining, need) from
   each non-empty lot and costing it at the lot's unit cost. A lot that
   drops below epsilon is snapped to exactly zero and closed on the
   disposal's date.
4. Stockout: if need is still above epsilon once the queue is exhausted the
   sale completes anyway. The uncovered grams carry zero cost (inflating
   profit) and the trace records a STOCKOUT line. The audit's naive stock
   reconciliation is what flags these.

OWNERSHIP:
==========

Each call builds its own lots from the ACQUIRE records and never reuses lots
from a previous call; the lots are converted to frozen Batch values before
returning. Replaying the same input twice therefore yields identical output.

The engine never raises on well-typed input and never filters malformed
records; the audit reports those.
"""

from __future__ import annotations
from dataclasses import dataclass, replace
from decimal import Decimal
from typing import Iterable, List, Optional, Tuple

from .core import (
    Transaction, Batch,
    QUANTITY_EPSILON, ZERO,
    TRACE_WARNING_NO_TIMESTAMP, TRACE_STOCKOUT_PREFIX,
)
from .formatting import format_grams, format_currency
from .ordering import sort_transactions


@dataclass(slots=True)
class _Lot:
    """Working state of a batch, private to a single replay call."""
    id: str
    date: str
    original_quantity: Decimal
    remaining_quantity: Decimal
    unit_cost: Decimal
    closed_date: Optional[str] = None

    def freeze(self) -> Batch:
        return Batch(
            id=self.id,
            date=self.date,
            original_quantity=self.original_quantity,
            remaining_quantity=self.remaining_quantity,
            unit_cost=self.unit_cost,
            closed_date=self.closed_date,
        )


@dataclass(frozen=True, slots=True)
class ReplayResult:
    """
    Output of a replay.

    Attributes:
        transactions: All input transactions in chronological order, DISPOSE
                      rows annotated with cogs, profit and fifo_trace.
        batches: One Batch per ACQUIRE in acquisition order, closed batches
                 included.
    """
    transactions: Tuple[Transaction, ...]
    batches: Tuple[Batch, ...]

    @property
    def stock(self) -> Decimal:
        """Live grams on hand: sum of remaining quantities."""
        return sum((b.remaining_quantity for b in self.batches), ZERO)

    @property
    def value(self) -> Decimal:
        """FIFO value of the grams on hand."""
        return sum((b.remaining_quantity * b.unit_cost for b in self.batches), ZERO)

    @property
    def active_batches(self) -> Tuple[Batch, ...]:
        return tuple(b for b in self.batches if b.is_active)

    @property
    def disposals(self) -> Tuple[Transaction, ...]:
        return tuple(tx for tx in self.transactions if tx.is_dispose)

    @property
    def stockouts(self) -> Tuple[Transaction, ...]:
        """Disposals that sold more than the available stock."""
        return tuple(
            tx for tx in self.disposals
            if any(line.startswith(TRACE_STOCKOUT_PREFIX) for line in tx.fifo_trace)
        )

    @property
    def warning_count(self) -> int:
        """Number of warning or stockout lines across all traces."""
        return sum(
            1
            for tx in self.disposals
            for line in tx.fifo_trace
            if line.startswith(TRACE_STOCKOUT_PREFIX) or line == TRACE_WARNING_NO_TIMESTAMP
        )

    def get_batch(self, batch_id: str) -> Optional[Batch]:
        for batch in self.batches:
            if batch.id == batch_id:
                return batch
        return None

    def get_transaction(self, transaction_id: str) -> Optional[Transaction]:
        for tx in self.transactions:
            if tx.id == transaction_id:
                return tx
        return None


def _open_lot(tx: Transaction, epsilon: Decimal) -> _Lot:
    """
    Create the lot for an ACQUIRE.

    A non-positive acquisition still produces its batch record, but with
    nothing to consume: it starts empty and closed on its own date.
    """
    if tx.quantity > epsilon:
        return _Lot(tx.id, tx.date, tx.quantity, tx.quantity, tx.unit_price)
    return _Lot(tx.id, tx.date, tx.quantity, ZERO, tx.unit_price, closed_date=tx.date)


def _consume(tx: Transaction, lots: List[_Lot], epsilon: Decimal) -> Transaction:
    """Draw a DISPOSE from the lots oldest-first and annotate it."""
    need = tx.quantity
    cogs = ZERO
    trace: List[str] = []

    if tx.created_at is None:
        trace.append(TRACE_WARNING_NO_TIMESTAMP)

    for lot in lots:
        if need <= epsilon:
            break
        if lot.remaining_quantity <= epsilon:
            continue
        take = min(lot.remaining_quantity, need)
        lot.remaining_quantity -= take
        need -= take
        cogs += take * lot.unit_cost
        trace.append(
            f"{format_grams(take)} from batch dated {lot.date} @ {format_currency(lot.unit_cost)}"
        )
        if lot.remaining_quantity < epsilon:
            lot.remaining_quantity = ZERO
            lot.closed_date = tx.date

    if need > epsilon:
        trace.append(f"{TRACE_STOCKOUT_PREFIX} {format_grams(need)} sold without inventory")

    return replace(
        tx,
        cogs=cogs,
        profit=tx.revenue - cogs,
        fifo_trace=tuple(trace),
    )


def replay(
    transactions: Iterable[Transaction],
    epsilon: Decimal = QUANTITY_EPSILON,
) -> ReplayResult:
    """
    Replay a transaction collection through FIFO valuation.

    Args:
        transactions: Transactions in any order; identifiers must be unique.
        epsilon: Grams below which a lot is empty and a sale is satisfied.

    Returns:
        ReplayResult with annotated transactions and final batches.

    Example:
        result = replay(transactions)
        print(result.stock, result.value)
        for sale in result.disposals:
            print(sale.id, sale.cogs, sale.profit, sale.fifo_trace)
    """
    lots: List[_Lot] = []
    processed: List[Transaction] = []

    for tx in sort_transactions(transactions):
        if tx.is_acquire:
            lots.append(_open_lot(tx, epsilon))
            # Drop annotations left over from an earlier run
            processed.append(replace(tx, cogs=None, profit=None, fifo_trace=()))
        else:
            processed.append(_consume(tx, lots, epsilon))

    return ReplayResult(
        transactions=tuple(processed),
        batches=tuple(lot.freeze() for lot in lots),
    )
