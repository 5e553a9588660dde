"""
Configuration management for kindlepost.
"""

from __future__ import annotations

import os
import tempfile
from pathlib import Path

from dotenv import load_dotenv


def load_env():
    """Load environment variables from .env (or .env.test under test runs)."""
    env_file = ".env"

    if os.getenv("KINDLEPOST_ENV", "").lower() == "test":
        test_env = ".env.test"
        if os.path.exists(test_env):
            env_file = test_env

    load_dotenv(env_file)


# Load environment variables
load_env()


# Base paths
HOME_DIR = Path(os.getenv("KINDLEPOST_HOME", Path.home() / ".kindlepost"))


def _parse_bounded_int(
    raw: str, param_name: str, min_val: int = 1, max_val: int = 600
) -> int:
    """Validate an integer setting against an inclusive range.

    Args:
        raw: Raw value from environment variable
        param_name: Name of the parameter for error messages
        min_val: Minimum allowed value (default 1)
        max_val: Maximum allowed value (default 600)

    Returns:
        Validated integer value

    Raises:
        ValueError: If value is not an integer or out of range
    """
    try:
        value = int(raw)
    except (TypeError, ValueError):
        raise ValueError(
            f"Invalid Config.{param_name}: must be an integer, got '{raw}'"
        )

    if value < min_val or value > max_val:
        raise ValueError(
            f"Invalid Config.{param_name}: must be between {min_val} and {max_val} inclusive, got '{value}'"
        )
    return value


class Config:
    """Application configuration."""

    # Delivery (SMTP)
    KINDLE_EMAIL = os.getenv("KINDLE_EMAIL", "")
    SMTP_SERVER = os.getenv("SMTP_SERVER", "smtp.gmail.com")
    SMTP_PORT = _parse_bounded_int(
        os.getenv("SMTP_PORT", "587"), "SMTP_PORT", min_val=1, max_val=65535
    )
    SMTP_USER = os.getenv("SMTP_USER", "")
    SMTP_PASSWORD = os.getenv("SMTP_PASSWORD", "")
    FROM_EMAIL = os.getenv("FROM_EMAIL", "") or SMTP_USER
    SMTP_USE_TLS = os.getenv("SMTP_USE_TLS", "true").lower() == "true"
    SMTP_TIMEOUT = _parse_bounded_int(
        os.getenv("SMTP_TIMEOUT", "60"), "SMTP_TIMEOUT", min_val=1, max_val=600
    )

    # Extraction
    REQUEST_TIMEOUT = _parse_bounded_int(
        os.getenv("REQUEST_TIMEOUT", "30"), "REQUEST_TIMEOUT", min_val=1, max_val=600
    )
    SOCIAL_API_URL = os.getenv("SOCIAL_API_URL", "https://api.fxtwitter.com").rstrip("/")
    QUOTE_FETCH_WORKERS = int(os.getenv("QUOTE_FETCH_WORKERS", 8))

    # Document compiler
    PANDOC_PATH = os.getenv("PANDOC_PATH", "pandoc")
    OUTPUT_DIR = Path(os.getenv("OUTPUT_DIR", tempfile.gettempdir()))

    # Logging
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
    LOG_DIR = Path(os.getenv("LOG_DIR", HOME_DIR / "logs"))
    LOG_JSON_FORMAT = os.getenv("LOG_JSON_FORMAT", "true").lower() == "true"
    LOG_FILE_MAX_BYTES = int(os.getenv("LOG_FILE_MAX_BYTES", 10 * 1024 * 1024))
    LOG_FILE_BACKUP_COUNT = int(os.getenv("LOG_FILE_BACKUP_COUNT", 5))
    LOG_TO_FILE = os.getenv("LOG_TO_FILE", "false").lower() == "true"

    @classmethod
    def ensure_directories(cls):
        """Create required directories if they don't exist."""
        for dir_path in [cls.LOG_DIR, cls.OUTPUT_DIR]:
            dir_path.mkdir(parents=True, exist_ok=True)

    @classmethod
    def validate(cls):
        """Validate config invariants and fail fast on misconfiguration."""
        _parse_bounded_int(str(cls.SMTP_PORT), "SMTP_PORT", min_val=1, max_val=65535)
        _parse_bounded_int(str(cls.SMTP_TIMEOUT), "SMTP_TIMEOUT")
        _parse_bounded_int(str(cls.REQUEST_TIMEOUT), "REQUEST_TIMEOUT")

        if cls.QUOTE_FETCH_WORKERS < 1:
            raise ValueError(
                f"Invalid Config.QUOTE_FETCH_WORKERS: must be at least 1, got '{cls.QUOTE_FETCH_WORKERS}'"
            )

        if not cls.SOCIAL_API_URL.startswith(("http://", "https://")):
            raise ValueError(
                f"Invalid Config.SOCIAL_API_URL: must be an http(s) URL, got '{cls.SOCIAL_API_URL}'"
            )

        if cls.LOG_LEVEL.upper() not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(
                f"Invalid LOG_LEVEL '{cls.LOG_LEVEL}'. "
                "Must be one of: DEBUG, INFO, WARNING, ERROR, CRITICAL"
            )


# Note: ensure_directories() and validate() are not called on import; the CLI
# entry point calls them explicitly.
