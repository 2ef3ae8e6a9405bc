"""Application settings loaded from environment variables.

Hey future me - every section is a nested model so env vars look like
RANKIFY_DATABASE__URL or RANKIFY_SPOTIFY__CLIENT_ID. A .env file in the
working directory is read too (handy for local dev).
"""

from functools import lru_cache

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class DatabaseSettings(BaseModel):
    """Relational store connection settings."""

    url: str = "sqlite+aiosqlite:///./rankify.db"
    echo: bool = False
    pool_size: int = 5
    max_overflow: int = 10
    pool_timeout: int = 30
    pool_recycle: int = 1800
    pool_pre_ping: bool = True
    # create_all on startup (tests, local dev). Production runs alembic upgrade head.
    create_tables_on_startup: bool = False


class ApiSettings(BaseModel):
    """HTTP surface settings."""

    host: str = "0.0.0.0"  # nosec B104 - container deployment binds all interfaces
    port: int = 8000
    session_cookie_name: str = "session_id"
    cors_origins: list[str] = Field(default_factory=list)


class SpotifySettings(BaseModel):
    """Catalog provider (Spotify Web API) credentials for the client-credentials flow."""

    client_id: str = ""
    client_secret: str = ""
    token_url: str = "https://accounts.spotify.com/api/token"  # nosec B105 - public endpoint URL
    api_base_url: str = "https://api.spotify.com/v1"
    # Refresh the app token this many seconds before Spotify says it expires
    token_expiry_margin_seconds: int = 300
    timeout_seconds: float = 15.0
    market: str = "US"

    @property
    def is_configured(self) -> bool:
        """True when both client id and secret are present."""
        return bool(self.client_id.strip() and self.client_secret.strip())


class ObservabilitySettings(BaseModel):
    """Logging settings."""

    log_level: str = "INFO"
    log_json_format: bool = False


class NotificationSettings(BaseModel):
    """Notification listing and push channel settings."""

    default_limit: int = 20
    max_limit: int = 100
    subscriber_queue_size: int = 100


class Settings(BaseSettings):
    """Top-level Rankify settings."""

    model_config = SettingsConfigDict(
        env_prefix="RANKIFY_",
        env_nested_delimiter="__",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    app_name: str = "Rankify"
    debug: bool = False

    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    api: ApiSettings = Field(default_factory=ApiSettings)
    spotify: SpotifySettings = Field(default_factory=SpotifySettings)
    observability: ObservabilitySettings = Field(default_factory=ObservabilitySettings)
    notifications: NotificationSettings = Field(default_factory=NotificationSettings)


@lru_cache
def get_settings() -> Settings:
    """Return the process-wide settings instance."""
    return Settings()
