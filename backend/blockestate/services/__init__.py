"""Services Layer — orchestrators for art generation and tokenization.

Invariants:
    - Orchestrators receive their clients through the constructor
    - No service reads Settings directly (wiring lives in api/dependencies.py)
"""
