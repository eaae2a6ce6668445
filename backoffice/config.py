"""Backoffice — Central Configuration via Pydantic Settings."""

import os
from typing import FrozenSet

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables / .env file."""

    # ── Meta Graph API ──
    meta_api_version: str = "v21.0"
    meta_base_url: str = "https://graph.facebook.com"
    meta_request_timeout: float = 30.0  # seconds, per outbound call

    # ── Database ──
    database_url: str = ""

    # ── Access ──
    admin_emails: str = ""  # comma-separated allowlist
    backoffice_api_key: str = ""  # shared secret from the session layer; empty disables
    cors_origins: str = "http://localhost:3000"

    # ── App ──
    log_level: str = "INFO"

    @property
    def effective_database_url(self) -> str:
        """Return PostgreSQL URL if set, otherwise fall back to SQLite."""
        if self.database_url:
            return self.database_url
        # Vercel has a read-only filesystem; use /tmp for SQLite
        if os.environ.get("VERCEL"):
            return "sqlite:////tmp/backoffice.db"
        return "sqlite:///./backoffice.db"

    @property
    def admin_email_set(self) -> FrozenSet[str]:
        """Allowlisted admin emails, lower-cased."""
        return frozenset(
            e.strip().lower() for e in self.admin_emails.split(",") if e.strip()
        )

    @property
    def cors_origin_list(self) -> list[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}


settings = Settings()
