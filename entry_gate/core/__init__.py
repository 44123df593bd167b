"""Core Layer - pure domain logic, no IO, no async, no DB.

Invariants:
    - No module in core/ imports from services/, api/, infrastructure/, or db/
    - Guards are pure functions returning an error or None
"""
