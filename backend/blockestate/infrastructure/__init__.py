"""Infrastructure Layer — external service clients and cross-cutting concerns.

Invariants:
    - Every external call maps its failures onto the core/errors.py taxonomy
    - Clients own no retry policy; retries live in the orchestrators

Design Decisions:
    - One client per provider, injected as an object (no module-level singletons
      except the database manager)
"""
