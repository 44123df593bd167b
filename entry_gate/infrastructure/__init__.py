"""Infrastructure Layer - external service clients and cross-cutting concerns.

Invariants:
    - All external calls wrapped with retry/timeout/error mapping
    - Transport errors surface as typed EntryGateError subclasses
"""
