"""Application Configuration — environment-driven settings via pydantic-settings.

Invariants:
    - All secrets come from environment variables (never hardcoded)
    - Provider credentials are optional: absence means "use the fallback path",
      not a startup failure
    - get_settings() is cached (lru_cache) — single instance per process

Design Decisions:
    - pydantic-settings over raw os.environ: validation, type coercion, .env file support
    - Defaults provided for all non-secret settings: works out-of-the-box with docker-compose
"""

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from functools import lru_cache


class Settings(BaseSettings):
    """Application settings from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False)

    # Database
    database_url: str = (
        "postgresql+asyncpg://blockestate:blockestate@db:5432/blockestate"
    )

    @field_validator("database_url", mode="before")
    @classmethod
    def convert_postgres_url(cls, v: str) -> str:
        """Hosted Postgres provides postgresql:// but asyncpg needs postgresql+asyncpg://."""
        if isinstance(v, str) and v.startswith("postgresql://"):
            return v.replace("postgresql://", "postgresql+asyncpg://", 1)
        return v

    database_pool_size: int = 20
    database_max_overflow: int = 10

    # Image inference
    inference_api_url: str = (
        "https://api-inference.huggingface.co/models/black-forest-labs/FLUX.1-dev"
    )
    inference_api_token: str | None = None
    inference_timeout_seconds: float = 30.0
    image_max_retries: int = 3
    image_base_delay_ms: int = 1000
    image_max_delay_ms: int = 60_000
    image_min_bytes: int = 100
    # None = breaker never resets within a process
    quota_reset_after_seconds: float | None = None

    # Prompt enhancement (Anthropic)
    anthropic_api_key: str | None = None
    enhancement_enabled: bool = True
    enhancement_model: str = "claude-haiku-4-5"
    enhancement_max_tokens: int = 1024
    enhancement_timeout_seconds: float = 30.0

    # Ledger
    ledger_rpc_url: str = "http://ledger-gateway:8545"
    ledger_rpc_timeout_seconds: float = 30.0
    ledger_owner_address: str | None = None
    ledger_min_confirmations: int = 2
    ledger_confirmation_timeout_seconds: float = 300.0
    ledger_poll_interval_seconds: float = 2.0

    # Metadata pinning (optional)
    pinata_api_url: str = "https://api.pinata.cloud/pinning/pinJSONToIPFS"
    pinata_api_key: str | None = None
    pinata_secret_api_key: str | None = None

    # Share derivation (simulated)
    share_derivation_enabled: bool = True
    share_total: int = 10_000

    # API
    cors_origins: list[str] = ["http://localhost:5173"]

    # Observability
    log_level: str = "INFO"
    log_format: str = "json"


@lru_cache
def get_settings() -> Settings:
    return Settings()
