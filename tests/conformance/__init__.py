"""
Conformance Test Suite

This suite defines the NORMATIVE behavior of the bullion ledger.
Any compliant implementation MUST pass these tests.

The tests are organized by invariant:
1. conservation.py - Batch bounds, grams and cost conservation, aging partition
2. determinism.py - Reproducible, order-independent replay
3. snapshot_parity.py - Point-in-time reconstruction agrees with live replay

These tests use hypothesis for property-based testing.
"""
