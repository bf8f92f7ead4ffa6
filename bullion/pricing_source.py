"""
pricing_source.py - Market rate sources for mark-to-market valuation

Provides the current or historical market rate per gram used to estimate
what the stock on hand would fetch if sold.

Classes:
- RateSource: Protocol defining the rate interface
- StaticRateSource: A single date-independent rate
- TimeSeriesRateSource: Rates observed over time, queried as of a date

Rates are Decimal amounts per gram in the ledger's currency.
"""

from bisect import bisect_right
from decimal import Decimal
from typing import List, Optional, Protocol, Tuple, runtime_checkable

from .core import to_decimal, to_iso_date, ZERO


@runtime_checkable
class RateSource(Protocol):
    """
    Protocol for market rate sources.

    Implementations return the rate per gram in effect on a date, or None
    when no rate is known.
    """

    def get_rate(self, on_date=None) -> Optional[Decimal]:
        """Get the rate per gram in effect on a date (None means latest)."""
        ...


def _validated_rate(rate) -> Decimal:
    value = to_decimal(rate, "rate")
    if value <= ZERO:
        raise ValueError(f"Rate must be positive, got {value}")
    return value


class StaticRateSource:
    """
    Rate source with a single rate (date-independent).

    Typically the rate an operator types in for today's market.
    """

    def __init__(self, rate):
        """
        Initialize with a fixed rate.

        Args:
            rate: Rate per gram; int, float, str or Decimal

        Raises:
            ValueError: If the rate is not positive
        """
        self.rate = _validated_rate(rate)

    def get_rate(self, on_date=None) -> Optional[Decimal]:
        """Get the static rate (date is ignored)."""
        return self.rate

    def update_rate(self, rate):
        """Replace the rate."""
        self.rate = _validated_rate(rate)

    def __repr__(self):
        return f"StaticRateSource({self.rate})"


class TimeSeriesRateSource:
    """
    Rate source with historical observations.

    Returns the most recent rate on or before the requested date.

    Supports two initialization patterns:
    - Empty initialization for incremental addition via add_rate()
    - Batch initialization with a list of (date, rate) observations
    """

    def __init__(self, observations: Optional[List[Tuple[object, object]]] = None):
        """
        Initialize rate history.

        Args:
            observations: Optional list of (date, rate) tuples; dates may be
                          ISO strings or date objects.

        Examples:
            # Empty initialization
            rates = TimeSeriesRateSource()
            rates.add_rate("2025-01-15", "6150.00")

            # Batch initialization
            rates = TimeSeriesRateSource([
                ("2025-01-01", 6000),
                ("2025-01-08", 6080),
            ])
        """
        self.history: List[Tuple[str, Decimal]] = []
        for on_date, rate in observations or []:
            self.add_rate(on_date, rate)

    def add_rate(self, on_date, rate):
        """
        Add a rate observation, replacing any existing one for the same date.

        Raises:
            ValueError: If the date is blank or the rate is not positive
        """
        key = to_iso_date(on_date)
        if not key:
            raise ValueError("Rate observation needs a date")
        value = _validated_rate(rate)
        self.history = [(d, r) for d, r in self.history if d != key]
        self.history.append((key, value))
        self.history.sort(key=lambda x: x[0])

    def get_rate(self, on_date=None) -> Optional[Decimal]:
        """
        Get the rate in effect on a date.

        Returns the latest observation when on_date is None, and None if no
        observation exists on or before on_date. Uses binary search.
        """
        if not self.history:
            return None
        if on_date is None:
            return self.history[-1][1]

        dates = [d for d, _ in self.history]
        idx = bisect_right(dates, to_iso_date(on_date))
        if idx == 0:
            return None
        return self.history[idx - 1][1]

    def get_all_dates(self) -> List[str]:
        """Dates of all observations, ascending."""
        return [d for d, _ in self.history]

    def __repr__(self):
        return f"TimeSeriesRateSource({len(self.history)} observations)"
