"""
audit.py - Independent ledger health check

Recomputes stock from the raw transactions and compares it with what the
live replay reports. Shares no code with the replay engine beyond the
ordering module.

Checks (each deducts from a score starting at MAX_HEALTH_SCORE):
    1. Stock reconciliation: naive sum(ACQUIRE) - sum(DISPOSE) against the
       reported stock. Differs whenever a stockout was absorbed. (-20)
    2. Negative stock: chronological running total dipping below -epsilon. (-15)
    3. Data integrity: blank counterparty or date, non-positive quantity or
       unit price. (-10)

The audit never mutates anything; it is read-only diagnostics.
"""

from __future__ import annotations
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Iterable, List, Optional, Tuple

from .core import (
    Transaction,
    QUANTITY_EPSILON, RECONCILIATION_TOLERANCE, ZERO,
    MAX_HEALTH_SCORE, STOCK_MISMATCH_PENALTY, NEGATIVE_STOCK_PENALTY,
    DATA_INTEGRITY_PENALTY,
    to_decimal,
)
from .formatting import format_grams
from .ordering import sort_transactions


@dataclass(frozen=True, slots=True)
class AuditReport:
    """
    Result of a full system audit.

    Attributes:
        generated_at: ISO timestamp of when the audit ran
        total_transactions: Number of transactions examined
        issues: Human-readable description of each failed check
        health_score: 0-100, higher is healthier
        recalculated_stock: Naive stock total for operator inspection
        reported_stock: Stock the live ledger reported
        reported_value: Value the live ledger reported, passed through
        negative_stock_events: Times the running total went below zero
        invalid_records: Ids of records failing the integrity check
    """
    generated_at: str
    total_transactions: int
    issues: Tuple[str, ...]
    health_score: int
    recalculated_stock: Decimal
    reported_stock: Decimal
    reported_value: Decimal
    negative_stock_events: int = 0
    invalid_records: Tuple[str, ...] = ()

    @property
    def is_healthy(self) -> bool:
        return not self.issues

    @property
    def stock_difference(self) -> Decimal:
        """Naive stock minus reported stock."""
        return self.recalculated_stock - self.reported_stock


def recalculate_stock(transactions: Iterable[Transaction]) -> Decimal:
    """Naive stock: every purchase adds, every sale subtracts, no clamping."""
    total = ZERO
    for tx in transactions:
        if tx.is_acquire:
            total += tx.quantity
        else:
            total -= tx.quantity
    return total


def count_negative_stock_events(
    transactions: Iterable[Transaction],
    epsilon: Decimal = QUANTITY_EPSILON,
) -> int:
    """Count the points in chronological order where running stock is below -epsilon."""
    running = ZERO
    events = 0
    for tx in sort_transactions(transactions):
        running += tx.quantity if tx.is_acquire else -tx.quantity
        if running < -epsilon:
            events += 1
    return events


def find_invalid_records(transactions: Iterable[Transaction]) -> List[str]:
    """Ids of records with missing or invalid critical fields."""
    return [
        tx.id for tx in transactions
        if not tx.counterparty
        or not tx.date
        or tx.quantity <= ZERO
        or tx.unit_price <= ZERO
    ]


def perform_audit(
    transactions: Iterable[Transaction],
    reported_stock,
    reported_value,
    now: Optional[datetime] = None,
    epsilon: Decimal = QUANTITY_EPSILON,
    tolerance: Decimal = RECONCILIATION_TOLERANCE,
) -> AuditReport:
    """
    Audit the raw transactions against the live ledger's reported totals.

    Args:
        transactions: Full transaction collection in any order
        reported_stock: Grams on hand according to the live replay
        reported_value: FIFO value according to the live replay
        now: Timestamp to stamp on the report (default: datetime.now())
        epsilon: Threshold for the negative-stock check
        tolerance: Threshold for the stock reconciliation check

    Returns:
        AuditReport; a clean ledger scores 100 with no issues.

    Example:
        result = replay(transactions)
        report = perform_audit(transactions, result.stock, result.value)
        if not report.is_healthy:
            for issue in report.issues:
                print(issue)
    """
    history = list(transactions)
    reported_stock = to_decimal(reported_stock, "reported_stock")
    reported_value = to_decimal(reported_value, "reported_value")
    issues: List[str] = []
    score = MAX_HEALTH_SCORE

    recalculated = recalculate_stock(history)
    if abs(recalculated - reported_stock) > tolerance:
        issues.append(
            f"Stock mismatch: recalculated {format_grams(recalculated)} "
            f"vs reported {format_grams(reported_stock)}"
        )
        score -= STOCK_MISMATCH_PENALTY

    negative_events = count_negative_stock_events(history, epsilon=epsilon)
    if negative_events > 0:
        issues.append(
            f"Negative stock detected: {negative_events} instances where stock dipped below zero"
        )
        score -= NEGATIVE_STOCK_PENALTY

    invalid = find_invalid_records(history)
    if invalid:
        issues.append(
            f"Data integrity: {len(invalid)} records have missing or invalid critical fields"
        )
        score -= DATA_INTEGRITY_PENALTY

    return AuditReport(
        generated_at=(now or datetime.now()).isoformat(),
        total_transactions=len(history),
        issues=tuple(issues),
        health_score=max(0, score),
        recalculated_stock=recalculated,
        reported_stock=reported_stock,
        reported_value=reported_value,
        negative_stock_events=negative_events,
        invalid_records=tuple(invalid),
    )
