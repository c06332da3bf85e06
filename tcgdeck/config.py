from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment."""

    model_config = SettingsConfigDict(env_file=".env")

    app_name: str = "TCG Deck Builder"
    debug: bool = False

    database_url: str = "sqlite+aiosqlite:///./tcgdeck.db"

    catalog_base_url: str = "https://api.pokemontcg.io/v2"
    catalog_api_key: str = ""
    catalog_timeout: float = 15.0
    catalog_max_retries: int = 3

    # Per-user key-value capacity, mirrors the ~5MB browser storage quota
    storage_capacity_bytes: int = 5 * 1024 * 1024

    # Custom card payloads above this size are split across chunk keys
    custom_card_chunk_bytes: int = 100_000

    # Debounce window for work-in-progress deck snapshots (seconds)
    autosave_delay: float = 1.0


settings = Settings()


# =============================================================================
# RETENTION CEILINGS
# =============================================================================

# Oldest records are dropped beyond these counts
MAX_FAVORITES = 100
MAX_CUSTOM_CARDS = 50
MAX_SEARCH_HISTORY = 30
