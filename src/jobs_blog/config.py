# -*- coding: utf-8 -*-
"""
Service configuration using Pydantic BaseSettings.
"""
from pathlib import Path
from typing import List, Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Central service configuration loaded from environment variables.
    Values can also come from a .env file in the working directory.
    """

    # Server
    HOST: str = "0.0.0.0"
    PORT: int = 8002

    # Logging
    LOG_LEVEL: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"

    # Database (SQLite)
    DATABASE_PATH: Path = Path("data/jobs_blog.db")

    # API Documentation (disable in production)
    DOCS_ENABLED: bool = True

    # ==========================================================================
    # Content
    # ==========================================================================

    # Publish gate: posts need at least this many words to go live
    MIN_WORD_COUNT: int = 1000
    EXCERPT_LENGTH: int = 150
    DEFAULT_FEATURED_IMAGE: str = (
        "https://images.unsplash.com/photo-1486312338219-ce68d2c6f44d?w=600&h=300&fit=crop"
    )
    DEFAULT_AUTHOR: str = "Admin"
    POST_CATEGORIES: List[str] = ["full-time", "part-time", "internship", "remote"]

    # ==========================================================================
    # Gemini API (AI rewrite)
    # ==========================================================================
    GEMINI_API_KEY: str = ""
    GEMINI_MODEL: str = "gemini-2.5-flash"
    GEMINI_TEMPERATURE: float = 0.7
    GEMINI_MAX_TOKENS: int = 8192
    GEMINI_TIMEOUT: int = 120  # seconds

    # Source URL download (rewrite from URL)
    FETCH_TIMEOUT: float = 20.0
    FETCH_MAX_CHARS: int = 20000

    # ==========================================================================
    # Authentication
    # ==========================================================================
    SESSION_EXPIRY_HOURS: int = 24

    # Authoring sessions idle for longer than this are dropped
    AUTHORING_SESSION_IDLE_MINUTES: int = 120
    SESSION_SECRET_KEY: str = "change-me-in-production"

    # When False, registration is only open until the first admin exists
    ALLOW_OPEN_REGISTRATION: bool = False

    # CORS
    CORS_ORIGINS: List[str] = ["*"]
    CORS_ALLOW_CREDENTIALS: bool = False

    # Request tracking
    REQUEST_ID_HEADER: str = "X-Request-ID"

    # Compression
    GZIP_MIN_SIZE: int = 1000

    # ==========================================================================
    # Paths (computed, not from env vars)
    # ==========================================================================
    BASE_DIR: Path = Path(__file__).resolve().parent
    TEMPLATES_DIR: Path = BASE_DIR / "templates"
    STATIC_DIR: Path = BASE_DIR / "static"
    PROMPTS_DIR: Path = TEMPLATES_DIR / "prompts"
    SITE_TEMPLATES_DIR: Path = TEMPLATES_DIR / "site"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )


# Global configuration instance
settings = Settings()

# Ensure the database directory exists as a side-effect
settings.DATABASE_PATH.parent.mkdir(parents=True, exist_ok=True)
