"""Root conftest - shared test configuration."""

import os

# Ensure tests never reach a real database or issuer
os.environ.setdefault(
    "DATABASE_URL",
    "sqlite+aiosqlite:///:memory:",
)
os.environ.setdefault("ISSUER_BASE_URL", "http://issuer.test")
os.environ.setdefault("DESTINATION_ADDRESS", "treasury-test")
