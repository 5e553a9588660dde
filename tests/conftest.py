import shutil
import tempfile
from pathlib import Path

import pytest

from kindlepost.config import Config


@pytest.fixture
def temp_data_dir():
    """Create an isolated temporary data directory for tests."""
    path = Path(tempfile.mkdtemp())
    yield path
    shutil.rmtree(path, ignore_errors=True)


@pytest.fixture(autouse=True)
def isolated_config(monkeypatch, temp_data_dir):
    """Redirect Config paths into the temp directory and pin delivery settings."""
    monkeypatch.setattr(Config, "LOG_DIR", temp_data_dir / "logs")
    monkeypatch.setattr(Config, "OUTPUT_DIR", temp_data_dir / "output")
    monkeypatch.setattr(Config, "LOG_TO_FILE", False)
    monkeypatch.setattr(Config, "SOCIAL_API_URL", "https://api.fxtwitter.com")
    monkeypatch.setattr(Config, "KINDLE_EMAIL", "reader@kindle.com")
    monkeypatch.setattr(Config, "SMTP_SERVER", "smtp.test.local")
    monkeypatch.setattr(Config, "SMTP_PORT", 587)
    monkeypatch.setattr(Config, "SMTP_USER", "sender@example.com")
    monkeypatch.setattr(Config, "SMTP_PASSWORD", "app-password")
    monkeypatch.setattr(Config, "FROM_EMAIL", "sender@example.com")
    monkeypatch.setattr(Config, "SMTP_USE_TLS", True)

    Config.ensure_directories()
    yield
