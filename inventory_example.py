"""
inventory_example.py - FIFO Inventory Walkthrough

A jewellery wholesaler's January, step by step:

1. Record purchases from two suppliers and sales to two jewellers
2. Replay the ledger and read the FIFO consumption trace of each sale
3. Look back at the stock on an earlier day
4. Age the stock and check the risk alerts
5. Oversell by mistake and watch the audit catch it
6. Value the stock at today's market rate

Run:
    python inventory_example.py
"""

from datetime import date, datetime
from decimal import Decimal

from bullion import (
    InventoryLedger, Transaction, TransactionKind,
    StaticRateSource, TimeSeriesRateSource,
    format_grams, format_currency,
)


TAX_RATE = Decimal("0.03")


def step(number: int, title: str):
    print(f"\n{'='*70}")
    print(f"STEP {number}: {title}")
    print(f"{'='*70}\n")


def record(id, day, kind, party, grams, rate, hour=11):
    quantity = Decimal(grams)
    unit_price = Decimal(rate)
    taxable = quantity * unit_price
    return Transaction(
        id=id,
        date=day,
        kind=kind,
        counterparty=party,
        quantity=quantity,
        unit_price=unit_price,
        taxable_amount=taxable,
        tax_amount=taxable * TAX_RATE,
        total_amount=taxable * (1 + TAX_RATE),
        created_at=f"{day}T{hour:02d}:00:00",
    )


def january():
    buy, sell = TransactionKind.ACQUIRE, TransactionKind.DISPOSE
    return [
        record("p1", "2025-01-02", buy, "Supplier A", "50", "6000"),
        record("p2", "2025-01-06", buy, "Supplier B", "30", "6100"),
        record("s1", "2025-01-08", sell, "Jeweller X", "60", "6300"),
        record("p3", "2025-01-10", buy, "Supplier A", "20", "6050"),
        record("s2", "2025-01-15", sell, "Jeweller Y", "25", "6250"),
        record("p4", "2025-01-20", buy, "Supplier B", "40", "6200"),
        record("s3", "2025-01-25", sell, "Jeweller X", "30", "6400"),
    ]


def main():
    step(1, "Record the month")
    ledger = InventoryLedger("wholesale", january())
    for tx in ledger.transactions:
        print(f"  {tx.date}  {tx.kind.value:<8} {tx.counterparty:<12} "
              f"{format_grams(tx.quantity):>12} @ {format_currency(tx.unit_price)}")

    step(2, "Replay and read the sales")
    result = ledger.replay()
    for sale in result.disposals:
        print(f"  {sale.id}: cogs {format_currency(sale.cogs)}, profit {format_currency(sale.profit)}")
        for line in sale.fifo_trace:
            print(f"      {line}")

    step(3, "Look back to 12 January")
    snap = ledger.snapshot("2025-01-12")
    print(f"  On {snap.date}: {format_grams(snap.grams)} worth {format_currency(snap.value)}")
    for point in ledger.snapshot_series("2025-01-25", days=3):
        print(f"    {point.date}  {format_grams(point.grams):>12}  {format_currency(point.value):>14}")

    step(4, "Aging and risk")
    for moment in (date(2025, 2, 1), date(2025, 3, 1)):
        aging = ledger.aging(now=moment)
        buckets = ", ".join(f"{label}: {format_grams(g)}" for label, g in aging.buckets.items())
        print(f"  As of {moment}: {buckets}")
        for alert in ledger.risk_alerts(now=moment):
            print(f"    [{alert.severity}] {alert.message}")

    turnover = ledger.turnover("2025-01-01", "2025-01-31")
    print(f"\n  Turnover ratio {turnover.turnover_ratio:.2f}, "
          f"{turnover.average_days_to_sell:.1f} days to sell")

    step(5, "Oversell by mistake")
    ledger.add(record("s4", "2025-01-28", TransactionKind.DISPOSE, "Jeweller Y", "30", "6450"))
    ledger.replay()
    ledger.audit(now=datetime(2025, 2, 1, 9, 30))

    print("\n  Correcting the order to 25g...")
    ledger.add(record("s4", "2025-01-28", TransactionKind.DISPOSE, "Jeweller Y", "25", "6450"))
    ledger.audit(now=datetime(2025, 2, 1, 9, 30))

    step(6, "Mark to market")
    ledger.remove("s4")
    today = ledger.mark_to_market(StaticRateSource("6500"))
    print(f"  At {format_currency(today.rate)}/g: sale value {format_currency(today.estimated_sale_value)}, "
          f"unrealised {format_currency(today.potential_profit)} ({today.roi:.2f}%)")

    history = TimeSeriesRateSource([("2025-01-01", 6000), ("2025-01-20", 6180)])
    past = ledger.mark_to_market(history, "2025-01-31")
    print(f"  At the 31 January rate: unrealised {format_currency(past.potential_profit)}")


if __name__ == "__main__":
    main()
