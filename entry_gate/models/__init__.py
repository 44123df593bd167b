"""ORM Models - SQLAlchemy declarative models.

Invariants:
    - All models inherit from Base (db/base.py)
    - All models imported here so Base.metadata is complete before create_all/autogenerate
"""

from entry_gate.models.reconciliation_entry import ReconciliationEntry  # noqa: F401
