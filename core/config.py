"""
Core configuration for the redis brain.

Environment variables:
- REDISTOGO_URL / REDISCLOUD_URL / BOXEN_REDIS_URL / REDIS_URL (first one set wins)
- REDIS_NO_CHECK (any non-empty value turns off the redis ready check)
- REDIS_DATA_FORMAT ("text" or "json")
- REDIS_DATA_MIGRATE ("true" copies text storage into JSON storage on first run)
- LOG_LEVEL
- APP_NAME / APP_VERSION
"""
from __future__ import annotations

import os
from typing import Optional

from dotenv import load_dotenv

# Auto-load .env if present
load_dotenv(dotenv_path=".env", override=False)

# Checked in this order; hosted add-ons first, generic REDIS_URL last.
REDIS_URL_ENV_VARS = ("REDISTOGO_URL", "REDISCLOUD_URL", "BOXEN_REDIS_URL", "REDIS_URL")
DEFAULT_REDIS_URL = "redis://localhost:6379"

DATA_FORMAT_TEXT = "text"
DATA_FORMAT_JSON = "json"


class Settings:
    """Settings loader for the brain and its host app."""

    def __init__(self) -> None:
        # App
        self.APP_NAME: str = os.getenv("APP_NAME", "redis-brain")
        self.APP_VERSION: str = os.getenv("APP_VERSION", "0.1.0")
        self.LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

        # Redis
        self.REDIS_URL_ENV: Optional[str] = self._discover_redis_env()
        self.REDIS_URL: str = (
            os.getenv(self.REDIS_URL_ENV) if self.REDIS_URL_ENV else None
        ) or DEFAULT_REDIS_URL
        self.REDIS_NO_CHECK: bool = bool(os.getenv("REDIS_NO_CHECK"))

        # Persistence format
        self.REDIS_DATA_FORMAT: str = os.getenv("REDIS_DATA_FORMAT") or DATA_FORMAT_TEXT
        self.REDIS_DATA_MIGRATE: bool = os.getenv("REDIS_DATA_MIGRATE", "false") == "true"

    @staticmethod
    def _discover_redis_env() -> Optional[str]:
        for name in REDIS_URL_ENV_VARS:
            if os.getenv(name):
                return name
        return None


settings = Settings()
