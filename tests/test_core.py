"""
test_core.py - Unit tests for core types

Tests:
- Transaction: coercion of amounts, kinds, dates and timestamps
- Structural validation vs accepted business-data problems
- Batch: status and value
"""

import pytest
from datetime import date, datetime
from decimal import Decimal

from bullion import (
    Transaction, TransactionKind, Batch, InvalidTransaction, LedgerError,
)
from bullion.core import to_decimal, to_iso_date, parse_iso_date


class TestTransactionCoercion:
    """Inputs are normalised to Decimal amounts and ISO dates."""

    def test_float_amounts_become_exact_decimals(self):
        tx = Transaction("t1", "2025-01-01", TransactionKind.ACQUIRE, "A", 0.1, 6000.5)
        assert tx.quantity == Decimal("0.1")
        assert tx.unit_price == Decimal("6000.5")

    def test_string_and_int_amounts(self):
        tx = Transaction("t1", "2025-01-01", TransactionKind.ACQUIRE, "A", "12.345", 6000,
                         taxable_amount="74070", total_amount=76292.1)
        assert tx.quantity == Decimal("12.345")
        assert tx.unit_price == Decimal("6000")
        assert tx.taxable_amount == Decimal("74070")
        assert tx.total_amount == Decimal("76292.1")

    def test_kind_accepts_names_and_values(self):
        assert Transaction("t1", "2025-01-01", "acquire", "A", 1, 1).kind is TransactionKind.ACQUIRE
        assert Transaction("t2", "2025-01-01", "SALE", "A", 1, 1).kind is TransactionKind.DISPOSE
        assert Transaction("t3", "2025-01-01", "purchase", "A", 1, 1).kind is TransactionKind.ACQUIRE

    def test_date_objects_become_iso_strings(self):
        tx = Transaction("t1", date(2025, 3, 9), TransactionKind.ACQUIRE, "A", 1, 1)
        assert tx.date == "2025-03-09"
        tx = Transaction("t2", datetime(2025, 3, 9, 17, 45), TransactionKind.ACQUIRE, "A", 1, 1)
        assert tx.date == "2025-03-09"

    def test_datetime_created_at_becomes_isoformat(self):
        tx = Transaction("t1", "2025-03-09", TransactionKind.ACQUIRE, "A", 1, 1,
                         created_at=datetime(2025, 3, 9, 17, 45, 1))
        assert tx.created_at == "2025-03-09T17:45:01"

    def test_blank_created_at_is_missing(self):
        tx = Transaction("t1", "2025-03-09", TransactionKind.ACQUIRE, "A", 1, 1, created_at="  ")
        assert tx.created_at is None

    def test_counterparty_is_stripped(self):
        tx = Transaction("t1", "2025-03-09", TransactionKind.ACQUIRE, "  Supplier A ", 1, 1)
        assert tx.counterparty == "Supplier A"

    def test_derived_fields_default_empty(self):
        tx = Transaction("t1", "2025-03-09", TransactionKind.DISPOSE, "B", 1, 1)
        assert tx.cogs is None
        assert tx.profit is None
        assert tx.fifo_trace == ()

    def test_transaction_is_immutable(self):
        tx = Transaction("t1", "2025-03-09", TransactionKind.ACQUIRE, "A", 1, 1)
        with pytest.raises(AttributeError):
            tx.quantity = Decimal("2")


class TestTransactionValidation:
    """Only structural problems raise."""

    def test_empty_id_rejected(self):
        with pytest.raises(InvalidTransaction, match="id"):
            Transaction("  ", "2025-01-01", TransactionKind.ACQUIRE, "A", 1, 1)

    def test_unknown_kind_rejected(self):
        with pytest.raises(InvalidTransaction, match="kind"):
            Transaction("t1", "2025-01-01", "TRANSFER", "A", 1, 1)

    def test_non_numeric_quantity_rejected(self):
        with pytest.raises(InvalidTransaction, match="quantity"):
            Transaction("t1", "2025-01-01", TransactionKind.ACQUIRE, "A", "ten", 1)

    def test_nan_and_infinity_rejected(self):
        with pytest.raises(InvalidTransaction, match="finite"):
            Transaction("t1", "2025-01-01", TransactionKind.ACQUIRE, "A", float("nan"), 1)
        with pytest.raises(InvalidTransaction, match="finite"):
            Transaction("t1", "2025-01-01", TransactionKind.ACQUIRE, "A", 1, Decimal("Infinity"))

    def test_invalid_transaction_is_ledger_and_value_error(self):
        assert issubclass(InvalidTransaction, LedgerError)
        assert issubclass(InvalidTransaction, ValueError)

    def test_business_data_problems_accepted(self):
        """Zero quantity, negative price, blank party and blank date all construct."""
        tx = Transaction("t1", "", TransactionKind.DISPOSE, "", 0, -5)
        assert tx.quantity == Decimal("0")
        assert tx.unit_price == Decimal("-5")
        assert tx.counterparty == ""
        assert tx.date == ""


class TestRevenue:

    def test_revenue_is_taxable_amount(self):
        tx = Transaction("t1", "2025-01-01", TransactionKind.DISPOSE, "B", 40, 6500,
                         taxable_amount=260000, tax_amount=7800)
        assert tx.revenue == Decimal("260000")

    def test_revenue_falls_back_to_quantity_times_price(self):
        tx = Transaction("t1", "2025-01-01", TransactionKind.DISPOSE, "B", 40, 6500)
        assert tx.revenue == Decimal("260000")


class TestBatch:

    def test_active_batch(self):
        batch = Batch("p1", "2025-01-01", Decimal("100"), Decimal("60"), Decimal("6000"))
        assert batch.is_active
        assert batch.status == "Active"
        assert batch.value == Decimal("360000")

    def test_closed_batch(self):
        batch = Batch("p1", "2025-01-01", Decimal("100"), Decimal("0"), Decimal("6000"), "2025-01-09")
        assert not batch.is_active
        assert batch.status == "Closed"
        assert batch.value == Decimal("0")


class TestHelpers:

    def test_to_decimal_rejects_bool(self):
        with pytest.raises(InvalidTransaction):
            to_decimal(True)

    def test_to_iso_date_none_is_blank(self):
        assert to_iso_date(None) == ""

    def test_to_iso_date_rejects_other_types(self):
        with pytest.raises(InvalidTransaction):
            to_iso_date(20250101)

    def test_parse_iso_date(self):
        assert parse_iso_date("2025-02-28") == date(2025, 2, 28)
        assert parse_iso_date("2025-02-30") is None
        assert parse_iso_date("") is None
        assert parse_iso_date("not a date") is None
