"""Services Layer - payment orchestration, onboarding collection and credentials.

Invariants:
    - Services sequence IO around the pure guards in core/
    - Collaborators are injected; no service constructs its own clients
"""
