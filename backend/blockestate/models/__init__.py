"""ORM Models — SQLAlchemy declarative models.

Invariants:
    - All models inherit from Base (db/base.py)

Design Decisions:
    - One file per entity for locality
    - All models imported here so Base.metadata is complete before create_all/migrations
"""

from blockestate.models.tokenization_record import TokenizationRecord  # noqa: F401
