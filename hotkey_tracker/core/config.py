"""
Application configuration using Pydantic Settings.

Configuration values can be set via environment variables or .env file.
"""

from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_API_SECRET = "secret123"


class Settings(BaseSettings):
    """Application settings with environment variable support."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application settings
    app_name: str = "Hotkey Tracker"
    version: str = "1.0.0"
    debug: bool = False
    host: str = "0.0.0.0"
    port: int = 3000
    public_url: Optional[str] = None

    # Storage
    database_url: str = "sqlite:///./data/sessions.db"

    # Shared secret presented by telemetry senders and administrators
    api_secret: str = DEFAULT_API_SECRET

    # Discord announcement channel; both values must be set to enable it
    discord_token: Optional[str] = None
    discord_channel_id: Optional[str] = None
    discord_api_url: str = "https://discord.com/api/v10"
    announcement_timeout: float = 10.0

    # Quotas
    max_sessions: int = 100
    max_logs_per_session: int = 1000
    max_clicks_per_session: int = 50
    session_retention_days: int = 7

    # Display
    display_timezone: str = "Europe/Moscow"

    # Logging
    log_level: str = "INFO"
    log_json: bool = False
    log_file: Optional[str] = None

    # Rate limiting configuration
    rate_limit_enabled: bool = True
    rate_limit_ingest_endpoints: str = "100/minute"
    rate_limit_read_endpoints: str = "100/minute"
    rate_limit_admin_endpoints: str = "10/minute"

    # Optional Redis URL for distributed rate limiting
    # When set, rate limits will be shared across multiple instances
    redis_url: Optional[str] = None

    @property
    def base_url(self) -> str:
        """Public base URL used to build view links."""
        if self.public_url:
            return self.public_url.rstrip("/")
        return f"http://localhost:{self.port}"

    @property
    def discord_enabled(self) -> bool:
        return bool(self.discord_token and self.discord_channel_id)

    def view_url(self, token: str) -> str:
        """Link handed to operators; resolves to the token-gated data route."""
        return f"{self.base_url}/data/{token}"


# Global settings instance
settings = Settings()
