from __future__ import annotations
import os
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()


def _env(name: str, default: str) -> str:
    return os.environ.get(name, default)


@dataclass(frozen=True)
class Settings:
    DB_PATH: Path = field(default_factory=lambda: Path(_env("VOCAB_DB_PATH", str(Path(__file__).resolve().parent.parent / "vocab.db"))))
    SESSION_COOKIE_NAME: str = "session_token"
    SESSION_LIFETIME_HOURS: int = 24 * 14

    LOG_LEVEL: str = field(default_factory=lambda: _env("VOCAB_LOG_LEVEL", "INFO"))
    LOG_FORMAT: str = field(default_factory=lambda: _env("VOCAB_LOG_FORMAT", "text"))

    # Lists and tests
    NAME_MAX_LEN: int = 80
    DISPLAY_MAX_LEN: int = 80
    MAX_ITEMS_PER_LIST: int = 200
    MAX_LISTS_PER_USER: int = 50
    MIN_TEST_ITEMS: int = 5

    # AI generation
    AI_DAILY_LIMIT: int = 5
    AI_MIN_COUNT: int = 10
    AI_MAX_COUNT: int = 50
    AI_MAX_RETRIES: int = 1
    AI_REQUEST_TIMEOUT: float = 30.0
    OPENROUTER_API_URL: str = "https://openrouter.ai/api/v1/chat/completions"
    OPENROUTER_API_KEY: str = field(default_factory=lambda: _env("OPENROUTER_API_KEY", ""))
    OPENROUTER_MODEL: str = field(default_factory=lambda: _env("OPENROUTER_MODEL", "openai/gpt-3.5-turbo"))
    PUBLIC_APP_URL: str = field(default_factory=lambda: _env("PUBLIC_APP_URL", "http://localhost:8000"))

settings = Settings()
