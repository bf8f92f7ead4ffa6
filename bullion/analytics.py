"""
analytics.py - Aggregate views over the ledger

Pure aggregations over replay and snapshot outputs:
1. calculate_stock_aging() - grams per age bucket and weighted average age
2. calculate_supplier_stats() - purchase volume and price spread per supplier
3. calculate_turnover() - inventory turnover over a date window
4. calculate_history_stats() - lifetime acquisition totals across all batches

Key Formulas:
    weighted_average_days = sum(age_days * grams) / sum(grams)
    average_rate = sum(quantity * unit_price) / sum(quantity)
    volatility = max_rate - min_rate
    average_inventory_value = (value_at_start + value_at_end) / 2
    turnover_ratio = total_cogs / average_inventory_value
    average_days_to_sell = days_in_period / turnover_ratio

Ratios whose denominator is zero are reported as 0, never NaN or Infinity.
"""

from __future__ import annotations
from dataclasses import dataclass
from datetime import date, datetime, time
from decimal import Decimal
from math import ceil
from typing import Dict, Iterable, List, Mapping, Optional, Tuple, Union

from .core import (
    Transaction, Batch,
    AGING_BUCKETS, QUANTITY_EPSILON, ZERO,
    to_iso_date, parse_iso_date,
)
from .ordering import sort_transactions
from .replay import replay
from .snapshot import inventory_value_on


SECONDS_PER_DAY = 86400


# ============================================================================
# RESULT TYPES
# ============================================================================

@dataclass(frozen=True, slots=True)
class AgingStats:
    """
    Distribution of grams on hand by age.

    Attributes:
        buckets: Bucket label -> grams, in AGING_BUCKETS order
        weighted_average_days: Grams-weighted average age of dated batches
        total_grams: Grams across all active batches (equals sum of buckets)
    """
    buckets: Mapping[str, Decimal]
    weighted_average_days: Decimal
    total_grams: Decimal


@dataclass(frozen=True, slots=True)
class SupplierStat:
    """Purchase statistics for one supplier."""
    name: str
    total_grams: Decimal
    average_rate: Decimal
    min_rate: Decimal
    max_rate: Decimal
    volatility: Decimal
    transaction_count: int


@dataclass(frozen=True, slots=True)
class TurnoverStats:
    """Inventory turnover over the window [start, end]."""
    start: str
    end: str
    turnover_ratio: Decimal
    average_days_to_sell: Decimal
    average_inventory_value: Decimal
    total_cogs: Decimal


@dataclass(frozen=True, slots=True)
class HistoryStats:
    """Lifetime acquisition totals, closed batches included."""
    total_grams: Decimal
    total_cost: Decimal
    average_cost: Decimal


# ============================================================================
# AGING
# ============================================================================

def _as_datetime(moment: Union[date, datetime, None]) -> datetime:
    if moment is None:
        return datetime.now()
    if isinstance(moment, datetime):
        return moment
    return datetime.combine(moment, time())


def age_in_days(acquired: str, now: Union[date, datetime, None] = None) -> Optional[int]:
    """
    Whole days between an acquisition date and now, rounded up.

    The acquisition is taken as midnight of its date, so a batch bought
    earlier today is one day old unless now is exactly midnight.

    Returns:
        Age in days, or None if the acquisition date cannot be parsed.
    """
    acquired_date = parse_iso_date(acquired)
    if acquired_date is None:
        return None
    delta = _as_datetime(now) - datetime.combine(acquired_date, time())
    return ceil(abs(delta.total_seconds()) / SECONDS_PER_DAY)


def bucket_for_age(days: Optional[int]) -> str:
    """Return the aging bucket label for an age; undated stock counts as oldest."""
    if days is not None:
        for label, max_days in AGING_BUCKETS:
            if max_days is None or days <= max_days:
                return label
    return AGING_BUCKETS[-1][0]


def calculate_stock_aging(
    batches: Iterable[Batch],
    now: Union[date, datetime, None] = None,
) -> AgingStats:
    """
    Bucket the grams of every active batch by age relative to now.

    Buckets are wall-clock relative, so calls on different days can move
    stock between buckets. Batches with an unparseable date land in the
    oldest bucket and are left out of the weighted average.

    Args:
        batches: Batches from a replay (closed batches are ignored)
        now: Reference moment (default: datetime.now())
    """
    moment = _as_datetime(now)
    buckets: Dict[str, Decimal] = {label: ZERO for label, _ in AGING_BUCKETS}
    total_grams = ZERO
    dated_grams = ZERO
    weighted_days = ZERO

    for batch in batches:
        if batch.remaining_quantity <= ZERO:
            continue
        days = age_in_days(batch.date, moment)
        buckets[bucket_for_age(days)] += batch.remaining_quantity
        total_grams += batch.remaining_quantity
        if days is not None:
            dated_grams += batch.remaining_quantity
            weighted_days += days * batch.remaining_quantity

    average = weighted_days / dated_grams if dated_grams > ZERO else ZERO
    return AgingStats(buckets=buckets, weighted_average_days=average, total_grams=total_grams)


# ============================================================================
# SUPPLIERS
# ============================================================================

def calculate_supplier_stats(transactions: Iterable[Transaction]) -> List[SupplierStat]:
    """
    Per-supplier purchase statistics, largest volume first.

    Only ACQUIRE transactions count. Suppliers with equal volume keep the
    chronological order of their first purchase.
    """
    groups: Dict[str, Dict] = {}
    for tx in sort_transactions(tx for tx in transactions if tx.is_acquire):
        group = groups.setdefault(tx.counterparty, {
            'grams': ZERO, 'cost': ZERO, 'count': 0, 'rates': [],
        })
        group['grams'] += tx.quantity
        group['cost'] += tx.quantity * tx.unit_price
        group['count'] += 1
        group['rates'].append(tx.unit_price)

    stats = []
    for name, group in groups.items():
        min_rate = min(group['rates'])
        max_rate = max(group['rates'])
        stats.append(SupplierStat(
            name=name,
            total_grams=group['grams'],
            average_rate=group['cost'] / group['grams'] if group['grams'] > ZERO else ZERO,
            min_rate=min_rate,
            max_rate=max_rate,
            volatility=max_rate - min_rate,
            transaction_count=group['count'],
        ))
    return sorted(stats, key=lambda s: s.total_grams, reverse=True)


# ============================================================================
# TURNOVER
# ============================================================================

def _window_bounds(start, end) -> Tuple[str, str, int]:
    start_iso, end_iso = to_iso_date(start), to_iso_date(end)
    start_date, end_date = parse_iso_date(start_iso), parse_iso_date(end_iso)
    if start_date is None or end_date is None:
        raise ValueError(f"Invalid turnover window: {start!r} to {end!r}")
    return start_iso, end_iso, max(1, (end_date - start_date).days)


def calculate_turnover(
    transactions: Iterable[Transaction],
    start,
    end,
    epsilon: Decimal = QUANTITY_EPSILON,
) -> TurnoverStats:
    """
    Inventory turnover for the window [start, end].

    COGS comes from a fresh replay of the whole collection, so the input may
    be raw or previously annotated. The average inventory value uses the
    snapshot engine at both window edges.

    Raises:
        ValueError: If start or end is not a valid ISO date.
    """
    start_iso, end_iso, days_in_period = _window_bounds(start, end)
    history = list(transactions)

    total_cogs = sum(
        (tx.cogs or ZERO
         for tx in replay(history, epsilon=epsilon).disposals
         if start_iso <= tx.date <= end_iso),
        ZERO,
    )
    start_value = inventory_value_on(history, start_iso, epsilon=epsilon)
    end_value = inventory_value_on(history, end_iso, epsilon=epsilon)
    average_value = (start_value + end_value) / 2

    ratio = total_cogs / average_value if average_value > ZERO else ZERO
    days_to_sell = Decimal(days_in_period) / ratio if ratio > ZERO else ZERO

    return TurnoverStats(
        start=start_iso,
        end=end_iso,
        turnover_ratio=ratio,
        average_days_to_sell=days_to_sell,
        average_inventory_value=average_value,
        total_cogs=total_cogs,
    )


# ============================================================================
# HISTORY
# ============================================================================

def calculate_history_stats(batches: Iterable[Batch]) -> HistoryStats:
    """Total grams and cost ever acquired, and the average cost per gram."""
    total_grams = ZERO
    total_cost = ZERO
    for batch in batches:
        total_grams += batch.original_quantity
        total_cost += batch.original_quantity * batch.unit_cost
    average = total_cost / total_grams if total_grams > ZERO else ZERO
    return HistoryStats(total_grams=total_grams, total_cost=total_cost, average_cost=average)
