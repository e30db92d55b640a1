"""
Central configuration for docsummary.

Values are read from environment variables (or a .env file) with sensible
defaults.  The Flask app factory loads this class into ``app.config``.
"""

import os
from dotenv import load_dotenv

load_dotenv()


def _env_flag(name, default="false"):
    return os.environ.get(name, default).strip().lower() in ("1", "true", "yes", "on")


BASE_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))


def default_data_dir(is_production):
    # Serverless hosts only allow writes under /tmp
    if is_production:
        return os.path.join("/tmp", "data")
    return os.path.join(BASE_DIR, "data")


APP_ENV = os.environ.get("APP_ENV", "development")
IS_PRODUCTION = APP_ENV == "production"


class Config:
    APP_ENV = APP_ENV
    IS_PRODUCTION = IS_PRODUCTION
    PORT = int(os.environ.get("PORT", "3000"))

    DATA_DIR = os.environ.get("DATA_DIR", default_data_dir(IS_PRODUCTION))

    # ── Anthropic / Claude ────────────────────────────────────────────
    ANTHROPIC_API_KEY = os.environ.get("ANTHROPIC_API_KEY", "")
    ANTHROPIC_MODEL = os.environ.get("ANTHROPIC_MODEL", "claude-sonnet-4-5-20250929")
    ANALYSIS_MAX_CHARS = int(os.environ.get("ANALYSIS_MAX_CHARS", "20000"))
    ANALYSIS_MAX_TOKENS = int(os.environ.get("ANALYSIS_MAX_TOKENS", "4096"))

    # ── Google Drive ──────────────────────────────────────────────────
    DRIVE_FOLDER_ID = os.environ.get("DRIVE_FOLDER_ID", "")
    GOOGLE_CREDENTIALS_JSON = os.environ.get("GOOGLE_CREDENTIALS_JSON", "")
    GOOGLE_CREDENTIALS_FILE = os.environ.get(
        "GOOGLE_CREDENTIALS_FILE", "google-credentials.json"
    )
    DRIVE_POLL_INTERVAL = int(os.environ.get("DRIVE_POLL_INTERVAL", "300"))
    DRIVE_REPLACE_ARTIFACTS = _env_flag("DRIVE_REPLACE_ARTIFACTS")

    # ── URL extraction ────────────────────────────────────────────────
    URL_FETCH_TIMEOUT = float(os.environ.get("URL_FETCH_TIMEOUT", "30"))

    # ── Logging ───────────────────────────────────────────────────────
    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")
    LOG_FILE = os.environ.get("LOG_FILE", "")
    LOG_BUFFER_SIZE = 100
