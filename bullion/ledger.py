"""
ledger.py - Inventory ledger facade

InventoryLedger holds the current transaction collection and answers every
question about it by re-running the pure engines. It is the only stateful
object in the package, and the only state it keeps is the transactions.

Key responsibilities:
    - Holds transactions keyed by id (adding an existing id replaces it)
    - Replays from scratch on every query; never keeps batches between calls
    - Exposes snapshots, analytics, audit and mark-to-market views
    - Prints a summary of each replay and audit when verbose
"""

from __future__ import annotations
from datetime import date, datetime
from decimal import Decimal
from typing import Dict, Iterable, List, Optional, Tuple, Union

from .analytics import (
    AgingStats, HistoryStats, SupplierStat, TurnoverStats,
    calculate_history_stats, calculate_stock_aging,
    calculate_supplier_stats, calculate_turnover,
)
from .audit import AuditReport, perform_audit
from .core import Batch, Snapshot, Transaction, QUANTITY_EPSILON, RECONCILIATION_TOLERANCE
from .formatting import format_currency, format_grams
from .ordering import sort_transactions
from .performance import (
    CustomerStat, MarkToMarket, MonthlyPerformance, RiskAlert,
    calculate_customer_stats, calculate_mark_to_market,
    calculate_monthly_performance, calculate_risk_alerts,
)
from .pricing_source import RateSource
from .replay import ReplayResult, replay
from .snapshot import inventory_snapshot, snapshot_series


Moment = Union[date, datetime, None]


class InventoryLedger:
    """
    Transaction store with FIFO valuation views.

    Thread Safety:
        Not thread-safe. Each thread should maintain its own InventoryLedger.

    Example:
        ledger = InventoryLedger("vault", verbose=False)
        ledger.add(Transaction("p1", "2025-01-01", TransactionKind.ACQUIRE,
                               "Supplier A", "100", "6000"))
        ledger.add(Transaction("s1", "2025-01-05", TransactionKind.DISPOSE,
                               "Customer B", "40", "6500", taxable_amount="260000"))
        ledger.stock          # Decimal("60")
        ledger.audit().health_score
    """

    BOX_WIDTH = 80

    def __init__(
        self,
        name: str,
        transactions: Iterable[Transaction] = (),
        verbose: bool = True,
        epsilon: Decimal = QUANTITY_EPSILON,
        tolerance: Decimal = RECONCILIATION_TOLERANCE,
    ):
        """
        Create a ledger.

        Args:
            name: Ledger identifier
            transactions: Initial transactions (later duplicates of an id win)
            verbose: Print replay and audit summaries (default: True)
            epsilon: Grams below which quantities count as zero
            tolerance: Audit stock reconciliation threshold
        """
        self.name = name
        self.verbose = verbose
        self.epsilon = epsilon
        self.tolerance = tolerance
        self._transactions: Dict[str, Transaction] = {}
        for tx in transactions:
            self._transactions[tx.id] = tx

    # ========================================================================
    # TRANSACTION COLLECTION
    # ========================================================================

    @property
    def transactions(self) -> List[Transaction]:
        """Raw transactions in chronological order."""
        return sort_transactions(self._transactions.values())

    def __len__(self) -> int:
        return len(self._transactions)

    def __contains__(self, transaction_id: str) -> bool:
        return transaction_id in self._transactions

    def add(self, tx: Transaction) -> None:
        """Add a transaction, replacing any existing one with the same id."""
        self._transactions[tx.id] = tx

    def extend(self, transactions: Iterable[Transaction]) -> None:
        for tx in transactions:
            self.add(tx)

    def remove(self, transaction_id: str) -> Transaction:
        """
        Remove and return a transaction.

        Raises:
            KeyError: If no transaction has this id
        """
        return self._transactions.pop(transaction_id)

    def refresh(self, transactions: Iterable[Transaction]) -> None:
        """Replace the whole collection with a freshly fetched one."""
        self._transactions = {}
        self.extend(transactions)

    # ========================================================================
    # LIVE STATE
    # ========================================================================

    def replay(self) -> ReplayResult:
        """Run a fresh FIFO replay over the current collection."""
        result = replay(self._transactions.values(), epsilon=self.epsilon)
        if self.verbose:
            self._print_box(f"Replay: {self.name}", [
                f"transactions : {len(result.transactions)}",
                f"batches      : {len(result.batches)} ({len(result.active_batches)} active)",
                f"stock        : {format_grams(result.stock)}",
                f"value        : {format_currency(result.value)}",
                f"warnings     : {result.warning_count}",
            ])
        return result

    @property
    def stock(self) -> Decimal:
        return replay(self._transactions.values(), epsilon=self.epsilon).stock

    @property
    def value(self) -> Decimal:
        return replay(self._transactions.values(), epsilon=self.epsilon).value

    @property
    def batches(self) -> Tuple[Batch, ...]:
        return replay(self._transactions.values(), epsilon=self.epsilon).batches

    # ========================================================================
    # HISTORY
    # ========================================================================

    def snapshot(self, cutoff) -> Snapshot:
        """Stock and FIFO value as of the end of a date."""
        return inventory_snapshot(self._transactions.values(), cutoff, epsilon=self.epsilon)

    def snapshot_series(self, end, days: int = 30) -> List[Snapshot]:
        """Daily snapshots for the days leading up to end, oldest first."""
        return snapshot_series(self._transactions.values(), end, days=days, epsilon=self.epsilon)

    def history_stats(self) -> HistoryStats:
        return calculate_history_stats(self.batches)

    # ========================================================================
    # ANALYTICS
    # ========================================================================

    def aging(self, now: Moment = None) -> AgingStats:
        return calculate_stock_aging(self.batches, now=now)

    def supplier_stats(self) -> List[SupplierStat]:
        return calculate_supplier_stats(self._transactions.values())

    def customer_stats(self) -> List[CustomerStat]:
        return calculate_customer_stats(self._transactions.values(), epsilon=self.epsilon)

    def monthly_performance(self) -> List[MonthlyPerformance]:
        return calculate_monthly_performance(self._transactions.values(), epsilon=self.epsilon)

    def turnover(self, start, end) -> TurnoverStats:
        return calculate_turnover(self._transactions.values(), start, end, epsilon=self.epsilon)

    def risk_alerts(self, now: Moment = None) -> List[RiskAlert]:
        return calculate_risk_alerts(self.aging(now), self._transactions.values(), epsilon=self.epsilon)

    def mark_to_market(self, source: RateSource, on_date=None) -> MarkToMarket:
        """Unrealised profit of the stock on hand at the source's rate."""
        result = replay(self._transactions.values(), epsilon=self.epsilon)
        return calculate_mark_to_market(result.stock, result.value, source.get_rate(on_date))

    # ========================================================================
    # AUDIT
    # ========================================================================

    def audit(self, now: Optional[datetime] = None) -> AuditReport:
        """Audit the raw transactions against a fresh replay's totals."""
        result = replay(self._transactions.values(), epsilon=self.epsilon)
        report = perform_audit(
            self._transactions.values(),
            result.stock,
            result.value,
            now=now,
            epsilon=self.epsilon,
            tolerance=self.tolerance,
        )
        if self.verbose:
            lines = [f"health score : {report.health_score}"]
            lines.extend(f"  - {issue}" for issue in report.issues)
            if report.is_healthy:
                lines.append("  no issues")
            self._print_box(f"Audit: {self.name}", lines)
        return report

    def _print_box(self, title: str, lines: List[str]) -> None:
        w = self.BOX_WIDTH
        bar = "─" * w

        def pad(text: str) -> str:
            """Pad or truncate text to exactly w characters."""
            if len(text) > w:
                return text[:w-3] + "..."
            return text + " " * (w - len(text))

        out = [f"┌{bar}┐", f"│{pad(' ' + title)}│", f"├{bar}┤"]
        out.extend(f"│{pad('   ' + line)}│" for line in lines)
        out.append(f"└{bar}┘")
        print("\n".join(out))

    def __repr__(self) -> str:
        return f"InventoryLedger({self.name!r}, {len(self._transactions)} transactions)"
