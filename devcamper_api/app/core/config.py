"""
Simple configuration management.

The ``Settings`` dataclass reads configuration directly from
environment variables.  Defaults are provided for all fields so the
API can start in development without any configuration; in a
production deployment override them via environment variables.
"""

import os
from dataclasses import dataclass


def _env_bool(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).lower() in {"1", "true", "yes"}


@dataclass
class Settings:
    """Application settings loaded from environment variables."""

    project_name: str = os.getenv("PROJECT_NAME", "DevCamper API")
    api_version: str = os.getenv("API_VERSION", "1.0.0")
    debug: bool = _env_bool("DEBUG")
    log_level: str = os.getenv("LOG_LEVEL", "INFO")
    log_file: str = os.getenv("LOG_FILE", "")

    secret_key: str = os.getenv("SECRET_KEY", "change_me")
    algorithm: str = os.getenv("ALGORITHM", "HS256")
    access_token_expire_minutes: int = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", str(60 * 24 * 30)))
    # Send the auth cookie only over HTTPS.  Leave disabled for local
    # development over plain HTTP.
    cookie_secure: bool = _env_bool("COOKIE_SECURE")

    # Path to the SQLite file backing the document store.  Relative paths
    # are resolved against the project root by ``core.db``.
    database_url: str = os.getenv("DATABASE_URL", "devcamper.db")

    # Pagination defaults applied by the query compiler on list endpoints.
    default_page_size: int = int(os.getenv("DEFAULT_PAGE_SIZE", "25"))
    max_page_size: int = int(os.getenv("MAX_PAGE_SIZE", "100"))

    # MapQuest geocoding.  Without an API key bootcamps are stored without
    # a location and radius search returns nothing.
    geocoder_api_key: str = os.getenv("GEOCODER_API_KEY", "")
    geocoder_url: str = os.getenv("GEOCODER_URL", "https://www.mapquestapi.com/geocoding/v1/address")

    file_upload_path: str = os.getenv("FILE_UPLOAD_PATH", "public/uploads")
    max_file_upload: int = int(os.getenv("MAX_FILE_UPLOAD", "1000000"))

    reset_password_expire_minutes: int = int(os.getenv("RESET_PASSWORD_EXPIRE_MINUTES", "10"))

    # Comma‑separated list of allowed CORS origins ("*" allows all).
    cors_origins: str = os.getenv("CORS_ORIGINS", "*")


# Instantiate settings once so other modules can import it without
# repeatedly reading environment variables.  Environment variables
# must be set before importing this module.
settings = Settings()
