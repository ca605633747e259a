"""
Conformance Test Suite

This suite defines the NORMATIVE behavior of the replay engine.
Any compliant implementation MUST pass these tests.

The tests are organized by invariant:
1. test_balance_invariant.py - total == available + held, 4dp values
2. test_lock_monotonicity.py - a locked account never changes again
3. test_dispute_lifecycle.py - dispute/resolve/chargeback transitions and no-ops
4. test_determinism.py - identical streams give identical snapshots

These tests use hypothesis for property-based testing.
"""
