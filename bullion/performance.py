"""
performance.py - Sales performance and risk views

Aggregations built on the realised profit that the replay attaches to each
sale:
1. calculate_customer_stats() - per-customer volume, margin and behaviour
2. calculate_profit_trend() - daily realised profit over a window
3. calculate_monthly_performance() / summarize_performance() - monthly ledger
4. calculate_risk_alerts() - old stock and thin recent margins
5. calculate_mark_to_market() - unrealised profit at a market rate

Every function that needs profit replays the collection it is given, so raw
and previously annotated inputs give the same answer.
"""

from __future__ import annotations
from dataclasses import dataclass
from datetime import timedelta
from decimal import Decimal
from typing import Dict, Iterable, List, Optional

from .analytics import AgingStats
from .core import (
    Transaction,
    AGING_BUCKETS, QUANTITY_EPSILON, ZERO,
    to_decimal, to_iso_date, parse_iso_date,
)
from .formatting import format_grams
from .replay import replay


HUNDRED = Decimal("100")

# Customer behaviour thresholds
BULK_BUYER_GRAMS_PER_TX = Decimal("100")
FREQUENT_BUYER_TX_COUNT = 5
PRICE_SENSITIVE_MARGIN_PCT = Decimal("0.5")
HIGH_MARGIN_PCT = Decimal("2.0")

# Risk alerts
SEVERITY_HIGH = "HIGH"
SEVERITY_MEDIUM = "MEDIUM"
RECENT_SALES_WINDOW = 5
LOW_MARGIN_THRESHOLD = Decimal("0.005")


@dataclass(frozen=True, slots=True)
class CustomerStat:
    """Sales statistics for one customer."""
    name: str
    total_grams: Decimal
    total_spend: Decimal
    profit_contribution: Decimal
    transaction_count: int
    margin: Decimal
    average_grams_per_transaction: Decimal
    average_selling_price: Decimal
    average_profit_per_gram: Decimal
    behavior_pattern: str


@dataclass(frozen=True, slots=True)
class ProfitPoint:
    date: str
    profit: Decimal
    profit_per_gram: Decimal


@dataclass(frozen=True, slots=True)
class MonthlyPerformance:
    """Realised sales for one calendar month (month is YYYY-MM)."""
    month: str
    turnover: Decimal
    profit: Decimal
    quantity: Decimal

    @property
    def margin(self) -> Decimal:
        return self.profit / self.turnover * HUNDRED if self.turnover > ZERO else ZERO


@dataclass(frozen=True, slots=True)
class PerformanceSummary:
    turnover: Decimal
    profit: Decimal
    quantity: Decimal
    margin: Decimal


@dataclass(frozen=True, slots=True)
class RiskAlert:
    id: str
    severity: str
    context: str
    message: str


@dataclass(frozen=True, slots=True)
class MarkToMarket:
    """
    Unrealised position of the stock on hand at a market rate.

    Attributes:
        rate: Market rate per gram used (None if unavailable)
        estimated_sale_value: stock * rate
        potential_profit: estimated_sale_value - FIFO value
        roi: potential_profit / FIFO value, in percent
    """
    rate: Optional[Decimal]
    estimated_sale_value: Decimal
    potential_profit: Decimal
    roi: Decimal


# ============================================================================
# CUSTOMERS
# ============================================================================

def classify_customer(average_grams: Decimal, transaction_count: int, margin: Decimal) -> str:
    """Behaviour label from purchase size, frequency and margin."""
    if average_grams > BULK_BUYER_GRAMS_PER_TX:
        pattern = "Bulk Buyer"
    elif transaction_count > FREQUENT_BUYER_TX_COUNT:
        pattern = "Frequent"
    else:
        pattern = "Regular"

    if margin < PRICE_SENSITIVE_MARGIN_PCT:
        pattern += " (Price Sensitive)"
    elif margin > HIGH_MARGIN_PCT:
        pattern += " (High Margin)"
    return pattern


def calculate_customer_stats(
    transactions: Iterable[Transaction],
    epsilon: Decimal = QUANTITY_EPSILON,
) -> List[CustomerStat]:
    """
    Per-customer sales statistics, largest volume first.

    Only sales count; customers whose total spend is not positive are left out.
    """
    groups: Dict[str, Dict] = {}
    for tx in replay(transactions, epsilon=epsilon).disposals:
        group = groups.setdefault(tx.counterparty, {
            'grams': ZERO, 'spend': ZERO, 'profit': ZERO, 'count': 0,
        })
        group['grams'] += tx.quantity
        group['spend'] += tx.revenue
        group['profit'] += tx.profit or ZERO
        group['count'] += 1

    stats = []
    for name, group in groups.items():
        if group['spend'] <= ZERO:
            continue
        grams = group['grams']
        margin = group['profit'] / group['spend'] * HUNDRED
        average_grams = grams / group['count']
        stats.append(CustomerStat(
            name=name,
            total_grams=grams,
            total_spend=group['spend'],
            profit_contribution=group['profit'],
            transaction_count=group['count'],
            margin=margin,
            average_grams_per_transaction=average_grams,
            average_selling_price=group['spend'] / grams if grams > ZERO else ZERO,
            average_profit_per_gram=group['profit'] / grams if grams > ZERO else ZERO,
            behavior_pattern=classify_customer(average_grams, group['count'], margin),
        ))
    return sorted(stats, key=lambda s: s.total_grams, reverse=True)


# ============================================================================
# PROFIT OVER TIME
# ============================================================================

def calculate_profit_trend(
    transactions: Iterable[Transaction],
    start,
    end,
    epsilon: Decimal = QUANTITY_EPSILON,
) -> List[ProfitPoint]:
    """
    Realised profit for each calendar day in [start, end], oldest first.

    Raises:
        ValueError: If start or end is not a valid ISO date.
    """
    start_date = parse_iso_date(to_iso_date(start))
    end_date = parse_iso_date(to_iso_date(end))
    if start_date is None or end_date is None:
        raise ValueError(f"Invalid profit trend window: {start!r} to {end!r}")

    profit_by_day: Dict[str, Decimal] = {}
    grams_by_day: Dict[str, Decimal] = {}
    for tx in replay(transactions, epsilon=epsilon).disposals:
        profit_by_day[tx.date] = profit_by_day.get(tx.date, ZERO) + (tx.profit or ZERO)
        grams_by_day[tx.date] = grams_by_day.get(tx.date, ZERO) + tx.quantity

    points = []
    day = start_date
    while day <= end_date:
        key = day.isoformat()
        profit = profit_by_day.get(key, ZERO)
        grams = grams_by_day.get(key, ZERO)
        points.append(ProfitPoint(
            date=key,
            profit=profit,
            profit_per_gram=profit / grams if grams > ZERO else ZERO,
        ))
        day += timedelta(days=1)
    return points


def calculate_monthly_performance(
    transactions: Iterable[Transaction],
    epsilon: Decimal = QUANTITY_EPSILON,
) -> List[MonthlyPerformance]:
    """Sales turnover, profit and quantity per calendar month, newest first."""
    months: Dict[str, Dict[str, Decimal]] = {}
    for tx in replay(transactions, epsilon=epsilon).disposals:
        if parse_iso_date(tx.date) is None:
            continue
        row = months.setdefault(tx.date[:7], {'turnover': ZERO, 'profit': ZERO, 'quantity': ZERO})
        row['turnover'] += tx.revenue
        row['profit'] += tx.profit or ZERO
        row['quantity'] += tx.quantity

    return [
        MonthlyPerformance(month=month, **months[month])
        for month in sorted(months, reverse=True)
    ]


def summarize_performance(rows: Iterable[MonthlyPerformance]) -> PerformanceSummary:
    """Totals across monthly rows with the overall margin in percent."""
    turnover = profit = quantity = ZERO
    for row in rows:
        turnover += row.turnover
        profit += row.profit
        quantity += row.quantity
    margin = profit / turnover * HUNDRED if turnover > ZERO else ZERO
    return PerformanceSummary(turnover=turnover, profit=profit, quantity=quantity, margin=margin)


# ============================================================================
# RISK
# ============================================================================

def calculate_risk_alerts(
    aging: AgingStats,
    transactions: Iterable[Transaction],
    epsilon: Decimal = QUANTITY_EPSILON,
) -> List[RiskAlert]:
    """
    Alerts for stock sitting in the oldest aging bucket and for thin
    margins across the most recent sales.
    """
    alerts = []

    oldest_label = AGING_BUCKETS[-1][0]
    old_grams = aging.buckets.get(oldest_label, ZERO)
    if old_grams > ZERO:
        alerts.append(RiskAlert(
            id="old-stock",
            severity=SEVERITY_HIGH,
            context="Inventory",
            message=f"{format_grams(old_grams)} of stock is older than 30 days.",
        ))

    recent = list(reversed(replay(transactions, epsilon=epsilon).disposals))[:RECENT_SALES_WINDOW]
    revenue = sum((tx.revenue for tx in recent), ZERO)
    if recent and revenue > ZERO:
        profit = sum((tx.profit or ZERO for tx in recent), ZERO)
        if profit / revenue < LOW_MARGIN_THRESHOLD:
            alerts.append(RiskAlert(
                id="low-margin",
                severity=SEVERITY_MEDIUM,
                context="Profit",
                message="Recent sales margins are critically low (< 0.5%).",
            ))
    return alerts


def calculate_mark_to_market(stock, value, rate) -> MarkToMarket:
    """
    Value the stock on hand at a market rate.

    A missing or non-positive rate yields all-zero figures.
    """
    stock = to_decimal(stock, "stock")
    value = to_decimal(value, "value")
    market_rate = to_decimal(rate, "rate") if rate is not None else None
    if market_rate is None or market_rate <= ZERO:
        return MarkToMarket(rate=market_rate, estimated_sale_value=ZERO, potential_profit=ZERO, roi=ZERO)

    sale_value = stock * market_rate
    potential = sale_value - value
    roi = potential / value * HUNDRED if value > ZERO else ZERO
    return MarkToMarket(rate=market_rate, estimated_sale_value=sale_value, potential_profit=potential, roi=roi)
