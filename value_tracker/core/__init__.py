"""
Core modules for Value Tracker.

This package contains the value computation engine: amortization,
subscription and investment metrics, lifetime progress, the calendar
grid and aggregate reporting. Everything here is pure and performs no I/O.
"""
