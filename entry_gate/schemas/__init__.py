"""Pydantic Schemas - validation for every record crossing a collaborator boundary.

Invariants:
    - Schemas validate at system boundary (issuer, ledger, profile, onboarding input)
    - Domain types from core/ used for enum fields

Design Decisions:
    - Separate from models: schemas are contracts, models are persistence
"""
