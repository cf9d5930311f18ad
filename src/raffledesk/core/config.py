"""Application configuration loaded from environment variables."""

from __future__ import annotations

from pathlib import Path

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """RaffleDesk application settings."""

    # App
    app_env: str = "development"
    app_host: str = "0.0.0.0"
    app_port: int = 4000
    app_debug: bool = True
    log_level: str = "INFO"
    log_format: str = "text"  # "text" or "json"

    # Storage
    data_file: str = "data/db.json"
    upload_dir: str = "data/uploads"
    public_dir: str = "public"
    default_capacity: int = 1000

    # Proof-of-payment uploads
    max_proof_bytes: int = 10 * 1024 * 1024
    proof_url_prefix: str = "/uploads"

    # Admin shared secret (sent as X-Admin-Secret)
    admin_secret: str = "admin123"

    # CORS
    cors_origins: str = "*"  # Comma-separated origins; "*" for dev only

    # Rate Limiting (requests per minute)
    rate_limit_anonymous: int = 60
    rate_limit_admin: int = 500

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "extra": "ignore"}

    @property
    def is_production(self) -> bool:
        return self.app_env == "production"

    @property
    def is_development(self) -> bool:
        return self.app_env == "development"

    @property
    def is_testing(self) -> bool:
        return self.app_env == "testing"

    @property
    def cors_origin_list(self) -> list[str]:
        """Parse comma-separated CORS origins into a list."""
        if self.cors_origins == "*":
            return ["*"]
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]

    @property
    def data_path(self) -> Path:
        return Path(self.data_file)

    @property
    def upload_path(self) -> Path:
        return Path(self.upload_dir)


def get_settings() -> Settings:
    """Return a fresh settings instance."""
    return Settings()
