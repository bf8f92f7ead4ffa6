"""
conftest.py - Shared pytest fixtures for bullion tests

Provides common fixtures used across unit, conformance and functional tests:
- Scenario histories (single sale, stockout, multi-supplier month)
- Quiet ledgers preloaded with those histories
"""

import pytest
from datetime import datetime

from bullion import InventoryLedger

from tests.factories import purchase, sale


# =============================================================================
# HISTORIES
# =============================================================================

@pytest.fixture
def single_sale_history():
    """100g bought at 6000/g on day 1, 40g sold for 260000 taxable on day 5."""
    return [
        purchase("p1", "2025-01-01", "100", "6000"),
        sale("s1", "2025-01-05", "40", "6500", taxable_amount="260000"),
    ]


@pytest.fixture
def stockout_history():
    """10g bought, 15g sold."""
    return [
        purchase("p1", "2025-01-01", "10", "6000"),
        sale("s1", "2025-01-02", "15", "6500"),
    ]


@pytest.fixture
def month_history():
    """
    A January of trading across two suppliers and two customers.

    Lots: 01-02 50g@6000 (A), 01-06 30g@6100 (B), 01-10 20g@6050 (A),
          01-20 40g@6200 (B)
    Sales: 01-08 60g, 01-15 25g, 01-25 30g
    """
    return [
        purchase("p1", "2025-01-02", "50", "6000", counterparty="Supplier A"),
        purchase("p2", "2025-01-06", "30", "6100", counterparty="Supplier B"),
        sale("s1", "2025-01-08", "60", "6300", counterparty="Jeweller X"),
        purchase("p3", "2025-01-10", "20", "6050", counterparty="Supplier A"),
        sale("s2", "2025-01-15", "25", "6250", counterparty="Jeweller Y"),
        purchase("p4", "2025-01-20", "40", "6200", counterparty="Supplier B"),
        sale("s3", "2025-01-25", "30", "6400", counterparty="Jeweller X"),
    ]


# =============================================================================
# LEDGERS
# =============================================================================

@pytest.fixture
def empty_ledger():
    """Fresh quiet ledger with no transactions."""
    return InventoryLedger("test", verbose=False)


@pytest.fixture
def month_ledger(month_history):
    """Quiet ledger loaded with the January history."""
    return InventoryLedger("january", month_history, verbose=False)


@pytest.fixture
def audit_time():
    return datetime(2025, 2, 1, 9, 30, 0)
