"""Application configuration using Pydantic Settings."""

from typing import List

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", case_sensitive=False
    )

    # Round configuration
    min_players: int = 2
    max_players: int = 3
    max_players_limit: int = 10
    round_timeout_secs: float = 30.0

    # Commit-reveal
    salt_bytes: int = 32
    commit_secret: str = ""  # optional extra HMAC key material

    # Fees
    fee_percentage: int = 10
    fee_denominator: int = 1000
    fee_tolerance: float = 0.05  # relative, 5%

    # Autoplay
    default_wager: float = 0.01
    round_delay_secs: float = 2.0
    error_backoff_secs: float = 5.0
    max_reconnect_attempts: int = 3
    reconnect_delay_secs: float = 5.0

    # Storage
    stats_dir: str = "autoplay_stats"
    audit_dir: str = "audit_reports"

    # Application
    app_env: str = "dev"
    app_version: str = "1"
    log_level: str = "INFO"

    # CORS
    cors_origins: str = "http://localhost:3000,http://127.0.0.1:3000"

    @property
    def cors_origins_list(self) -> List[str]:
        """Parse CORS origins into a list."""
        return [origin.strip() for origin in self.cors_origins.split(",")]

    @property
    def fee_rate(self) -> float:
        """Expected fee as a fraction of the wager."""
        return self.fee_percentage / self.fee_denominator


# Global settings instance
settings = Settings()
