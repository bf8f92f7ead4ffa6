"""
Core types and constants for the bullion inventory ledger.

This module provides the foundational data structures shared by every engine:
1. Constants: tolerances, audit penalties, aging bucket boundaries
2. Enums: TransactionKind
3. Exceptions: LedgerError and InvalidTransaction
4. Immutable data structures: Transaction, Batch, Snapshot
5. Coercion helpers for Decimal amounts and ISO dates

Transactions are immutable input records. Batches are produced fresh by every
replay and handed out frozen; nothing in this package mutates a value after
returning it.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal, ROUND_HALF_EVEN, InvalidOperation, getcontext
from enum import Enum
from typing import Any, Optional, Tuple


# ============================================================================
# DECIMAL CONTEXT CONFIGURATION
# ============================================================================
#
# FIFO valuation must be reproducible bit-for-bit between the replay and the
# snapshot engines, so all arithmetic runs in one Decimal context configured
# at import time.
#
# PRECONDITION: No other code should modify the global Decimal context.
#
_BULLION_DECIMAL_CONTEXT = getcontext()
_BULLION_DECIMAL_CONTEXT.prec = 50
_BULLION_DECIMAL_CONTEXT.rounding = ROUND_HALF_EVEN


# ============================================================================
# CONSTANTS
# ============================================================================

# Grams below this threshold count as zero: a batch is empty, a disposal is
# satisfied, and a running stock total has not gone negative.
QUANTITY_EPSILON = Decimal("1e-4")

# Audit stock reconciliation reports a mismatch only above this many grams.
RECONCILIATION_TOLERANCE = Decimal("1e-3")

# Audit health score deductions.
MAX_HEALTH_SCORE = 100
STOCK_MISMATCH_PENALTY = 20
NEGATIVE_STOCK_PENALTY = 15
DATA_INTEGRITY_PENALTY = 10

# Aging buckets as (label, inclusive upper bound in days); None is open-ended.
AGING_BUCKETS: Tuple[Tuple[str, Optional[int]], ...] = (
    ("0-7", 7),
    ("8-15", 15),
    ("16-30", 30),
    ("30+", None),
)

# Trace prefixes attached to disposal consumption traces.
TRACE_WARNING_NO_TIMESTAMP = "WARNING: No timestamp. Sequence assumed by identifier."
TRACE_STOCKOUT_PREFIX = "STOCKOUT:"

BATCH_STATUS_ACTIVE = "Active"
BATCH_STATUS_CLOSED = "Closed"

ZERO = Decimal("0")


# ============================================================================
# ENUMS
# ============================================================================

class TransactionKind(Enum):
    """
    Direction of a transaction.

    ACQUIRE: a purchase; creates exactly one batch.
    DISPOSE: a sale; consumes open batches oldest-first.
    """
    ACQUIRE = "PURCHASE"
    DISPOSE = "SALE"


# ============================================================================
# EXCEPTIONS
# ============================================================================

class LedgerError(Exception):
    """Base exception for all bullion ledger errors."""
    pass


class InvalidTransaction(LedgerError, ValueError):
    """
    Raised when a transaction record is structurally malformed.

    Only type-level problems raise (missing identifier, unknown kind,
    non-numeric amounts). Business-data problems such as a zero quantity or
    a blank counterparty are accepted and reported by the audit instead.
    """
    pass


# ============================================================================
# COERCION HELPERS
# ============================================================================

def to_decimal(value: Any, field_name: str = "value") -> Decimal:
    """
    Convert an int, float, str or Decimal to a finite Decimal.

    Floats go through str() so that 0.1 becomes Decimal("0.1") rather than
    its binary expansion.

    Raises:
        InvalidTransaction: If the value is not numeric, NaN or infinite.
    """
    if isinstance(value, bool):
        raise InvalidTransaction(f"{field_name} must be numeric, got bool")
    if isinstance(value, Decimal):
        result = value
    else:
        try:
            result = Decimal(str(value).strip())
        except (InvalidOperation, ValueError, TypeError):
            raise InvalidTransaction(f"{field_name} must be numeric, got {value!r}") from None
    if result.is_nan() or result.is_infinite():
        raise InvalidTransaction(f"{field_name} must be finite, got {result}")
    return result


def to_iso_date(value: Any) -> str:
    """
    Normalise a date-like value to an ISO YYYY-MM-DD string.

    Strings are kept as given (stripped) so that blank or unparseable dates
    survive for the audit to report. None becomes the empty string.
    """
    if value is None:
        return ""
    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, str):
        return value.strip()
    raise InvalidTransaction(f"date must be an ISO string or date, got {type(value).__name__}")


def parse_iso_date(value: str) -> Optional[date]:
    """Parse an ISO date string, returning None when it is blank or invalid."""
    if not value:
        return None
    try:
        return date.fromisoformat(value[:10])
    except ValueError:
        return None


# ============================================================================
# CORE DATA STRUCTURES
# ============================================================================

@dataclass(frozen=True, slots=True)
class Transaction:
    """
    An immutable purchase or sale record.

    Attributes:
        id: Unique identifier, also the final ordering tie-break.
        date: Calendar day as an ISO string (may be blank on bad records).
        kind: ACQUIRE (purchase) or DISPOSE (sale).
        counterparty: Supplier or customer name.
        quantity: Grams; expected > 0, not enforced.
        unit_price: Price per gram.
        taxable_amount: Amount before tax; revenue for profit on sales.
        tax_amount: Tax on top of the taxable amount.
        total_amount: Taxable plus tax.
        created_at: Optional finer-grained creation timestamp (ISO string).
        cogs: FIFO cost of goods sold (set by replay on DISPOSE only).
        profit: Revenue minus cogs (set by replay on DISPOSE only).
        fifo_trace: Human-readable consumption trace (set by replay).

    Numeric fields accept int, float, str or Decimal and are stored as Decimal.
    """
    id: str
    date: str
    kind: TransactionKind
    counterparty: str
    quantity: Decimal
    unit_price: Decimal
    taxable_amount: Optional[Decimal] = None
    tax_amount: Decimal = ZERO
    total_amount: Optional[Decimal] = None
    created_at: Optional[str] = None
    cogs: Optional[Decimal] = None
    profit: Optional[Decimal] = None
    fifo_trace: Tuple[str, ...] = field(default_factory=tuple)

    def __post_init__(self):
        if not isinstance(self.id, str) or not self.id.strip():
            raise InvalidTransaction("Transaction id cannot be empty")
        if not isinstance(self.kind, TransactionKind):
            try:
                kind = TransactionKind[str(self.kind).upper()]
            except KeyError:
                try:
                    kind = TransactionKind(str(self.kind).upper())
                except ValueError:
                    raise InvalidTransaction(f"Unknown transaction kind: {self.kind!r}") from None
            object.__setattr__(self, 'kind', kind)

        object.__setattr__(self, 'date', to_iso_date(self.date))
        object.__setattr__(self, 'counterparty', (self.counterparty or "").strip())
        if isinstance(self.created_at, datetime):
            object.__setattr__(self, 'created_at', self.created_at.isoformat())
        elif self.created_at is not None and not str(self.created_at).strip():
            object.__setattr__(self, 'created_at', None)

        object.__setattr__(self, 'quantity', to_decimal(self.quantity, "quantity"))
        object.__setattr__(self, 'unit_price', to_decimal(self.unit_price, "unit_price"))
        object.__setattr__(self, 'tax_amount', to_decimal(self.tax_amount, "tax_amount"))
        for name in ('taxable_amount', 'total_amount', 'cogs', 'profit'):
            value = getattr(self, name)
            if value is not None:
                object.__setattr__(self, name, to_decimal(value, name))
        object.__setattr__(self, 'fifo_trace', tuple(self.fifo_trace))

    @property
    def is_acquire(self) -> bool:
        return self.kind is TransactionKind.ACQUIRE

    @property
    def is_dispose(self) -> bool:
        return self.kind is TransactionKind.DISPOSE

    @property
    def revenue(self) -> Decimal:
        """Taxable amount, falling back to quantity * unit_price when absent."""
        if self.taxable_amount is not None:
            return self.taxable_amount
        return self.quantity * self.unit_price

    def __repr__(self) -> str:
        return (f"Transaction({self.id} {self.date} {self.kind.name} "
                f"{self.quantity}g @ {self.unit_price} {self.counterparty!r})")


@dataclass(frozen=True, slots=True)
class Batch:
    """
    A purchased lot as it stands after a replay.

    One batch per ACQUIRE transaction, sharing its identifier. Closed batches
    are kept with zero remaining quantity as a historical record.

    Attributes:
        id: Identifier of the originating ACQUIRE transaction.
        date: Acquisition date (ISO string).
        original_quantity: Grams purchased.
        remaining_quantity: Grams not yet consumed, in [0, original_quantity].
                            A non-positive purchase has remaining 0, so only
                            the lower bound holds for it.
        unit_cost: Cost per gram, fixed at acquisition.
        closed_date: Date of the disposal that emptied the batch, if any.
    """
    id: str
    date: str
    original_quantity: Decimal
    remaining_quantity: Decimal
    unit_cost: Decimal
    closed_date: Optional[str] = None

    @property
    def is_active(self) -> bool:
        return self.remaining_quantity > ZERO

    @property
    def status(self) -> str:
        return BATCH_STATUS_ACTIVE if self.is_active else BATCH_STATUS_CLOSED

    @property
    def value(self) -> Decimal:
        """Cost basis of the remaining grams."""
        return self.remaining_quantity * self.unit_cost


@dataclass(frozen=True, slots=True)
class Snapshot:
    """Reconstructed stock and FIFO value as of the end of a given date."""
    date: str
    grams: Decimal
    value: Decimal
