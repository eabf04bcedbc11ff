"""
Conformance Test Suite

This suite defines the NORMATIVE behavior of epoch processing.
Any compliant implementation MUST pass these tests.

The tests are organized by invariant:
1. disjointness.py - No output is spent twice within a committed set
2. store_consistency.py - The pool changes by exactly the committed inputs
3. conservation.py - Committed transactions never create value
4. determinism.py - Submission order does not change the outcome
5. idempotency.py - Validation is pure; spent outputs stay spent
6. canonicalization.py - Content-addressed transaction identity

These tests use hypothesis for property-based testing.
"""
