"""
bullion - FIFO Inventory Ledger for Precious Metals

Values a commodity inventory on a First-In-First-Out cost basis by replaying
purchase and sale transactions, and derives historical, analytical and audit
views from that replay.

Usage:
    from bullion import InventoryLedger, Transaction, TransactionKind

    ledger = InventoryLedger("vault", verbose=False)
    ledger.add(Transaction("p1", "2025-01-01", TransactionKind.ACQUIRE,
                           "Supplier A", "100", "6000"))
    ledger.add(Transaction("s1", "2025-01-05", TransactionKind.DISPOSE,
                           "Customer B", "40", "6500", taxable_amount="260000"))

    result = ledger.replay()
    result.stock                        # Decimal("60")
    result.get_transaction("s1").profit # Decimal("20000")
    ledger.snapshot("2025-01-03")       # stock and value before the sale
    ledger.audit().health_score         # 100
"""

# Core types
from .core import (
    Transaction,
    TransactionKind,
    Batch,
    Snapshot,
    LedgerError,
    InvalidTransaction,
    QUANTITY_EPSILON,
    RECONCILIATION_TOLERANCE,
    AGING_BUCKETS,
    MAX_HEALTH_SCORE,
    STOCK_MISMATCH_PENALTY,
    NEGATIVE_STOCK_PENALTY,
    DATA_INTEGRITY_PENALTY,
    TRACE_WARNING_NO_TIMESTAMP,
    TRACE_STOCKOUT_PREFIX,
)

# Ordering
from .ordering import compare_transactions, sort_transactions, chronological_key

# FIFO replay
from .replay import ReplayResult, replay

# Snapshots
from .snapshot import inventory_snapshot, inventory_value_on, snapshot_series

# Analytics
from .analytics import (
    AgingStats,
    SupplierStat,
    TurnoverStats,
    HistoryStats,
    age_in_days,
    bucket_for_age,
    calculate_stock_aging,
    calculate_supplier_stats,
    calculate_turnover,
    calculate_history_stats,
)

# Sales performance
from .performance import (
    CustomerStat,
    ProfitPoint,
    MonthlyPerformance,
    PerformanceSummary,
    RiskAlert,
    MarkToMarket,
    classify_customer,
    calculate_customer_stats,
    calculate_profit_trend,
    calculate_monthly_performance,
    summarize_performance,
    calculate_risk_alerts,
    calculate_mark_to_market,
)

# Audit
from .audit import (
    AuditReport,
    perform_audit,
    recalculate_stock,
    count_negative_stock_events,
    find_invalid_records,
)

# Market rates
from .pricing_source import RateSource, StaticRateSource, TimeSeriesRateSource

# Formatting
from .formatting import format_grams, format_currency

# Ledger
from .ledger import InventoryLedger

__all__ = [
    # Core
    'Transaction', 'TransactionKind', 'Batch', 'Snapshot',
    'LedgerError', 'InvalidTransaction',
    'QUANTITY_EPSILON', 'RECONCILIATION_TOLERANCE', 'AGING_BUCKETS',
    'MAX_HEALTH_SCORE', 'STOCK_MISMATCH_PENALTY', 'NEGATIVE_STOCK_PENALTY',
    'DATA_INTEGRITY_PENALTY', 'TRACE_WARNING_NO_TIMESTAMP', 'TRACE_STOCKOUT_PREFIX',
    # Ordering
    'compare_transactions', 'sort_transactions', 'chronological_key',
    # Replay
    'ReplayResult', 'replay',
    # Snapshots
    'inventory_snapshot', 'inventory_value_on', 'snapshot_series',
    # Analytics
    'AgingStats', 'SupplierStat', 'TurnoverStats', 'HistoryStats',
    'age_in_days', 'bucket_for_age', 'calculate_stock_aging',
    'calculate_supplier_stats', 'calculate_turnover', 'calculate_history_stats',
    # Performance
    'CustomerStat', 'ProfitPoint', 'MonthlyPerformance', 'PerformanceSummary',
    'RiskAlert', 'MarkToMarket', 'classify_customer', 'calculate_customer_stats',
    'calculate_profit_trend', 'calculate_monthly_performance', 'summarize_performance',
    'calculate_risk_alerts', 'calculate_mark_to_market',
    # Audit
    'AuditReport', 'perform_audit', 'recalculate_stock',
    'count_negative_stock_events', 'find_invalid_records',
    # Rates
    'RateSource', 'StaticRateSource', 'TimeSeriesRateSource',
    # Formatting
    'format_grams', 'format_currency',
    # Ledger
    'InventoryLedger',
]

__version__ = '1.0.0'
