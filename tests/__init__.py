"""
krbwarden Test Suite

Test organization:
- unit/: Unit tests for individual modules, run against an in-memory
  Kerberos library (see conftest.py)
- property/: Property-based tests using Hypothesis
"""
