"""Database Infrastructure - SQLAlchemy declarative Base.

Invariants:
    - All tables register on Base.metadata (alembic autogenerate reads it)
"""
