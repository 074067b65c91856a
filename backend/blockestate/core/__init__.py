"""Core Layer — pure domain logic, no network, no DB.

Invariants:
    - No module in core/ imports from services/, api/, infrastructure/, or db/
    - Randomness and time are passed in by callers where results must be reproducible

Design Decisions:
    - Functional core separated from imperative shell
"""
