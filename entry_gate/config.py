"""Application Configuration - environment-driven settings via pydantic-settings.

Invariants:
    - All secrets and endpoints come from environment variables (never hardcoded)
    - get_settings() is cached (lru_cache) - single instance per process
    - entry_amount is a Decimal; it is never handled as a float

Design Decisions:
    - pydantic-settings over raw os.environ: validation, type coercion, .env file support
    - Defaults provided for all non-secret settings: works out-of-the-box with docker-compose
"""

from decimal import Decimal
from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False)

    # Game
    game_id: str = "wegen-race"
    game_title: str = "Wegen Race"
    game_category: str = "picker"
    min_players: int = Field(2, ge=1)

    # Entry fee
    entry_amount: Decimal = Field(Decimal("0.01"), gt=0)
    minor_unit_multiplier: int = Field(1_000_000_000, gt=0)
    destination_address: str = ""

    # Entry issuer
    issuer_base_url: str = "http://localhost:4000"
    issuer_timeout_seconds: float = 30.0
    issuer_max_retries: int = 3
    issuer_base_delay_ms: int = 500
    issuer_max_delay_ms: int = 10_000

    # Identity
    credential_ttl_seconds: int = 3600

    # Database
    database_url: str = (
        "postgresql+asyncpg://entrygate:entrygate@db:5432/entrygate"
    )

    @field_validator("database_url", mode="before")
    @classmethod
    def convert_postgres_url(cls, v: str) -> str:
        """Hosting platforms provide postgresql:// but asyncpg needs postgresql+asyncpg://."""
        if isinstance(v, str) and v.startswith("postgresql://"):
            return v.replace("postgresql://", "postgresql+asyncpg://", 1)
        return v

    database_pool_size: int = 10
    database_max_overflow: int = 5

    # API
    cors_origins: list[str] = ["http://localhost:5173"]

    # Observability
    log_level: str = "INFO"
    log_format: str = "json"


@lru_cache
def get_settings() -> Settings:
    return Settings()
