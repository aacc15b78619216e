"""Application configuration via pydantic-settings.

Reads from environment variables and .env file at project root.
"""

from functools import lru_cache
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

# Project root is 4 levels up from this file:
# src/flipdish_mcp/flipdish_mcp/config.py -> project root
PROJECT_ROOT = Path(__file__).resolve().parents[3]


class Settings(BaseSettings):
    """Application settings loaded from environment / .env file."""

    model_config = SettingsConfigDict(
        env_file=str(PROJECT_ROOT / ".env"),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # --- FlipDish wrapper API ---
    flipdish_app_id: str
    flipdish_store_id: int
    flipdish_bearer_token: str = ""
    flipdish_server_url: str = "https://flip-dish-wrapper.vercel.app"

    # --- Server ---
    host: str = "0.0.0.0"
    port: int = 8000

    # --- Session ---
    session_cache_path: Path = PROJECT_ROOT / ".session_cache.json"
    # One in-memory session per SSE connection instead of the shared cache file
    session_per_connection: bool = False

    # --- Widgets ---
    widgets_dir: Path = PROJECT_ROOT / "assets" / "src" / "widgets"

    # --- Logging ---
    log_level: str = "DEBUG"

    # --- Langfuse ---
    langfuse_public_key: str = ""
    langfuse_secret_key: str = ""
    langfuse_base_url: str = "https://cloud.langfuse.com"


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return cached Settings instance (created once)."""
    return Settings()  # type: ignore[call-arg]  # required fields loaded from env
