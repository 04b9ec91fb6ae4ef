"""
Application configuration via pydantic-settings.

Loads values from .env file with sensible defaults for local development.
Use ``get_settings()`` to obtain the cached singleton instance.
"""

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Lectra application settings loaded from environment / .env file.

    All settings can be overridden via environment variables or a `.env` file.
    Field names map directly to env var names (case-insensitive).

    Attributes:
        recognizer_provider: Speech-to-text backend ("google" or "local").
        storage_provider: Audio blob backend ("local" filesystem or "supabase").
        database_url: Async SQLAlchemy connection string.
        long_audio_threshold_bytes: Payloads larger than this use the
            long-running recognition path. ``None`` keeps every request on
            the synchronous path.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",  # Silently ignore unrecognized env vars
    )

    # --- Speech recognition ---
    recognizer_provider: str = "google"
    google_application_credentials: str = ""  # Empty = SDK default credential lookup
    recognition_sample_rate_hertz: int = 16000
    recognition_model: str = "default"
    recognition_use_enhanced: bool = True
    recognition_timeout_seconds: float = 600.0  # Upper bound for long-running operations
    long_audio_threshold_bytes: int | None = None
    whisper_model: str = "base"  # Only used when recognizer_provider="local"

    # --- Storage ---
    # Paths are relative to the project root; absolute paths also supported
    database_url: str = "sqlite+aiosqlite:///data/lectra.db"
    storage_provider: str = "local"
    audio_storage_dir: str = "data/audio"
    public_audio_base_url: str = "http://localhost:3000/audio"

    # Supabase Storage settings (storage_provider="supabase")
    supabase_url: str = ""
    supabase_key: str = ""
    supabase_storage_bucket: str = "audio-recordings"

    # --- Rate limiting ---
    # Fixed window per client address, applied to /api/ routes
    rate_limit_requests: int = 100
    rate_limit_window_seconds: int = 15 * 60

    # --- Application ---
    app_host: str = "0.0.0.0"  # Bind address for the FastAPI server
    app_port: int = 3000
    log_level: str = "INFO"  # Python logging level
    cors_origins: list[str] = [
        "http://localhost:8081",
        "http://localhost:19000",
        "http://localhost:19006",
    ]

    # --- Client ---
    api_base_url: str = "http://localhost:3000/api"
    query_stale_seconds: float = 5 * 60
    query_retries: int = 2
    mutation_retries: int = 1


@lru_cache
def get_settings() -> Settings:
    """Return a cached Settings singleton.

    Uses ``functools.lru_cache`` so the .env file is read only once.
    Subsequent calls return the same ``Settings`` instance.

    Returns:
        Settings: The application-wide configuration object.
    """
    return Settings()
