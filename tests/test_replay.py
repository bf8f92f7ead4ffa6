"""
test_replay.py - Unit tests for the FIFO replay engine

Tests:
- Batch creation and oldest-first consumption
- COGS, profit and consumption trace on sales
- Batch closing and epsilon snapping
- Stockout absorption
- Missing-timestamp warning
- Degenerate inputs flow through without raising
"""

import pytest
from decimal import Decimal

from bullion import (
    replay, TRACE_WARNING_NO_TIMESTAMP, TRACE_STOCKOUT_PREFIX, Transaction, TransactionKind,
)

from tests.factories import purchase, sale


class TestAcquisitions:

    def test_each_purchase_creates_one_batch(self):
        result = replay([
            purchase("p1", "2025-01-01", "100", "6000"),
            purchase("p2", "2025-01-02", "50", "6100"),
        ])
        assert [b.id for b in result.batches] == ["p1", "p2"]
        first = result.batches[0]
        assert first.date == "2025-01-01"
        assert first.original_quantity == Decimal("100")
        assert first.remaining_quantity == Decimal("100")
        assert first.unit_cost == Decimal("6000")
        assert first.closed_date is None

    def test_purchases_carry_no_derived_fields(self):
        result = replay([purchase("p1", "2025-01-01", "100", "6000")])
        tx = result.transactions[0]
        assert tx.cogs is None
        assert tx.profit is None
        assert tx.fifo_trace == ()

    def test_batches_follow_chronological_not_input_order(self):
        result = replay([
            purchase("p2", "2025-01-05", "10", "6100"),
            purchase("p1", "2025-01-01", "10", "6000"),
        ])
        assert [b.id for b in result.batches] == ["p1", "p2"]

    def test_empty_collection(self):
        result = replay([])
        assert result.transactions == ()
        assert result.batches == ()
        assert result.stock == Decimal("0")
        assert result.value == Decimal("0")


class TestDisposals:

    def test_single_batch_sale(self, single_sale_history):
        result = replay(single_sale_history)
        sold = result.get_transaction("s1")
        assert result.get_batch("p1").remaining_quantity == Decimal("60")
        assert sold.cogs == Decimal("240000")
        assert sold.profit == Decimal("20000")
        assert sold.fifo_trace == ("40.000 g from batch dated 2025-01-01 @ ₹6,000.00",)

    def test_sale_spans_batches_oldest_first(self):
        result = replay([
            purchase("p1", "2025-01-01", "50", "6000"),
            purchase("p2", "2025-01-02", "30", "6100"),
            sale("s1", "2025-01-03", "60", "6300"),
        ])
        sold = result.get_transaction("s1")
        assert sold.cogs == Decimal("50") * Decimal("6000") + Decimal("10") * Decimal("6100")
        assert sold.fifo_trace == (
            "50.000 g from batch dated 2025-01-01 @ ₹6,000.00",
            "10.000 g from batch dated 2025-01-02 @ ₹6,100.00",
        )
        assert result.get_batch("p1").remaining_quantity == Decimal("0")
        assert result.get_batch("p1").closed_date == "2025-01-03"
        assert result.get_batch("p2").remaining_quantity == Decimal("20")
        assert result.get_batch("p2").closed_date is None

    def test_profit_excludes_tax(self):
        result = replay([
            purchase("p1", "2025-01-01", "10", "6000"),
            Transaction("s1", "2025-01-02", TransactionKind.DISPOSE, "B", "10", "6500",
                        taxable_amount="65000", tax_amount="1950", total_amount="66950",
                        created_at="2025-01-02T10:00:00"),
        ])
        assert result.get_transaction("s1").profit == Decimal("5000")

    def test_profit_falls_back_to_quantity_times_price(self):
        result = replay([
            purchase("p1", "2025-01-01", "10", "6000"),
            Transaction("s1", "2025-01-02", TransactionKind.DISPOSE, "B", "10", "6400",
                        created_at="2025-01-02T10:00:00"),
        ])
        assert result.get_transaction("s1").profit == Decimal("4000")

    def test_closed_batches_are_skipped(self):
        result = replay([
            purchase("p1", "2025-01-01", "10", "6000"),
            purchase("p2", "2025-01-01", "10", "6200"),
            sale("s1", "2025-01-02", "10", "6500"),
            sale("s2", "2025-01-03", "5", "6500"),
        ])
        assert result.get_transaction("s2").fifo_trace == (
            "5.000 g from batch dated 2025-01-01 @ ₹6,200.00",
        )
        assert result.get_transaction("s2").cogs == Decimal("31000")

    def test_residue_below_epsilon_snaps_batch_closed(self):
        result = replay([
            purchase("p1", "2025-01-01", "10.00005", "6000"),
            sale("s1", "2025-01-02", "10", "6500"),
        ])
        batch = result.get_batch("p1")
        assert batch.remaining_quantity == Decimal("0")
        assert batch.closed_date == "2025-01-02"

    def test_disposal_satisfied_within_epsilon_is_not_a_stockout(self):
        result = replay([
            purchase("p1", "2025-01-01", "10", "6000"),
            sale("s1", "2025-01-02", "10.00005", "6500"),
        ])
        sold = result.get_transaction("s1")
        assert not any(line.startswith(TRACE_STOCKOUT_PREFIX) for line in sold.fifo_trace)
        assert result.stockouts == ()


class TestStockout:

    def test_oversell_completes_and_flags(self, stockout_history):
        result = replay(stockout_history)
        sold = result.get_transaction("s1")
        batch = result.get_batch("p1")
        assert batch.remaining_quantity == Decimal("0")
        assert batch.closed_date == "2025-01-02"
        assert sold.cogs == Decimal("60000")
        assert sold.fifo_trace[-1] == "STOCKOUT: 5.000 g sold without inventory"
        assert result.stockouts == (sold,)

    def test_uncovered_grams_carry_zero_cost(self, stockout_history):
        result = replay(stockout_history)
        sold = result.get_transaction("s1")
        assert sold.profit == Decimal("15") * Decimal("6500") - Decimal("60000")

    def test_no_negative_batch_is_created(self, stockout_history):
        result = replay(stockout_history)
        assert len(result.batches) == 1
        assert result.stock == Decimal("0")

    def test_sale_with_no_stock_at_all(self):
        result = replay([sale("s1", "2025-01-01", "3", "6500")])
        sold = result.get_transaction("s1")
        assert sold.cogs == Decimal("0")
        assert sold.fifo_trace == ("STOCKOUT: 3.000 g sold without inventory",)
        assert result.batches == ()


class TestTimestampWarning:

    def test_sale_without_timestamp_warns(self):
        result = replay([
            purchase("p1", "2025-01-01", "10", "6000"),
            sale("s1", "2025-01-02", "4", "6500", created_at=None),
        ])
        trace = result.get_transaction("s1").fifo_trace
        assert trace[0] == TRACE_WARNING_NO_TIMESTAMP
        assert result.warning_count == 1

    def test_purchase_without_timestamp_does_not_warn(self):
        result = replay([
            purchase("p1", "2025-01-01", "10", "6000", created_at=None),
            sale("s1", "2025-01-02", "4", "6500"),
        ])
        assert TRACE_WARNING_NO_TIMESTAMP not in result.get_transaction("s1").fifo_trace
        assert result.warning_count == 0


class TestDegenerateInput:
    """Malformed business data flows through without raising."""

    def test_zero_quantity_sale(self):
        result = replay([
            purchase("p1", "2025-01-01", "10", "6000"),
            sale("s1", "2025-01-02", "0", "6500"),
        ])
        sold = result.get_transaction("s1")
        assert sold.cogs == Decimal("0")
        assert result.get_batch("p1").remaining_quantity == Decimal("10")

    def test_non_positive_purchase_yields_empty_closed_batch(self):
        result = replay([
            purchase("p1", "2025-01-01", "-5", "6000"),
            sale("s1", "2025-01-02", "1", "6500"),
        ])
        batch = result.get_batch("p1")
        assert batch.original_quantity == Decimal("-5")
        assert batch.remaining_quantity == Decimal("0")
        # Only the lower bound holds when the purchase itself is negative
        assert batch.remaining_quantity >= 0
        assert batch.remaining_quantity > batch.original_quantity
        assert batch.closed_date == "2025-01-01"
        assert result.get_transaction("s1").cogs == Decimal("0")

    def test_blank_counterparty_and_date(self):
        result = replay([
            purchase("p1", "", "10", "6000", counterparty=""),
            sale("s1", "2025-01-02", "4", "6500", counterparty=""),
        ])
        assert result.stock == Decimal("6")

    def test_quantities_beyond_context_precision(self):
        result = replay([
            purchase("p1", "2025-01-01", "1e48", "6000"),
            sale("s1", "2025-01-02", "1e47", "6500"),
        ])
        sold = result.get_transaction("s1")
        assert sold.cogs == Decimal("6e50")
        assert len(sold.fifo_trace) == 1
        assert sold.fifo_trace[0].endswith(" from batch dated 2025-01-01 @ ₹6,000.00")
        assert result.get_batch("p1").remaining_quantity == Decimal("9e47")


class TestReplayResult:

    def test_stock_and_value(self, month_history):
        result = replay(month_history)
        assert result.stock == Decimal("25")
        assert result.value == Decimal("155000")
        assert [b.id for b in result.active_batches] == ["p4"]

    def test_transactions_in_chronological_order(self, month_history):
        result = replay(reversed(month_history))
        assert [tx.id for tx in result.transactions] == ["p1", "p2", "s1", "p3", "s2", "p4", "s3"]

    def test_lookup_misses_return_none(self, month_history):
        result = replay(month_history)
        assert result.get_batch("nope") is None
        assert result.get_transaction("nope") is None

    def test_month_profits(self, month_history):
        result = replay(month_history)
        assert result.get_transaction("s1").cogs == Decimal("361000")
        assert result.get_transaction("s1").profit == Decimal("17000")
        assert result.get_transaction("s2").cogs == Decimal("152250")
        assert result.get_transaction("s2").profit == Decimal("4000")
        assert result.get_transaction("s3").cogs == Decimal("183750")
        assert result.get_transaction("s3").profit == Decimal("8250")

    def test_custom_epsilon(self):
        result = replay([
            purchase("p1", "2025-01-01", "10.05", "6000"),
            sale("s1", "2025-01-02", "10", "6500"),
        ], epsilon=Decimal("0.1"))
        assert result.get_batch("p1").remaining_quantity == Decimal("0")
