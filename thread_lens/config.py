"""Centralized configuration: all env vars in one place."""

import json
import os
from urllib.parse import urlsplit

from dotenv import load_dotenv

load_dotenv()


class Settings:
    """Application settings loaded from environment variables."""

    def __init__(self):
        self.environment: str = os.getenv("ENVIRONMENT") or os.getenv("NODE_ENV", "local")
        self.domain_whitelist: list[str] = json.loads(os.getenv("DOMAIN_WHITELIST") or "[]")
        self.host: str = os.getenv("HOST", "0.0.0.0")
        self.port: int = int(os.getenv("PORT", "19999"))

        # Upstream
        self.camofox_url: str = os.getenv("CAMOFOX_URL", "http://localhost:9377")
        self.nitter_instance: str | None = os.getenv("NITTER_INSTANCE")
        self.max_posts: int = int(os.getenv("MAX_POSTS", "200"))

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    @property
    def cors_origins(self) -> list[str]:
        return self.domain_whitelist if self.is_production else ["*"]

    @property
    def camofox_port(self) -> int:
        """Host port Camofox is expected on, taken from CAMOFOX_URL."""
        return urlsplit(self.camofox_url).port or 9377


settings = Settings()
