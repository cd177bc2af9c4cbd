"""
Environment-aware configuration.

The Flask config classes are read from the environment (.env via dotenv).
create_app() then freezes the values the components need into a Settings
instance, built once and handed to every component; nothing re-reads the
environment per request.
"""
import os
from dataclasses import dataclass
from datetime import timedelta
from typing import Mapping

from dotenv import load_dotenv

load_dotenv()  # Read .env if present


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


class BaseConfig:
    SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret-key")  # Set a strong key in production
    DEBUG = False
    TESTING = False
    CORS_ORIGINS = os.getenv("CORS_ORIGINS", "*")
    APP_ENV = os.getenv("APP_ENV", "dev")
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

    DATABASE_URL = os.getenv("DATABASE_URL", "sqlite+aiosqlite:///vidtube.db")

    # token configuration
    JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
    JWT_ISSUER = os.getenv("JWT_ISSUER", "vidtube-accounts")
    ACCESS_TOKEN_SECRET = os.getenv("ACCESS_TOKEN_SECRET", "dev-access-secret-change-me")
    ACCESS_TOKEN_EXPIRES = timedelta(seconds=int(os.getenv("ACCESS_TOKEN_EXPIRY_SECONDS", "86400")))
    REFRESH_TOKEN_SECRET = os.getenv("REFRESH_TOKEN_SECRET", "dev-refresh-secret-change-me")
    REFRESH_TOKEN_EXPIRES = timedelta(seconds=int(os.getenv("REFRESH_TOKEN_EXPIRY_SECONDS", "864000")))
    COOKIE_SECURE = _env_bool("COOKIE_SECURE", True)

    # media
    MEDIA_ROOT = os.getenv("MEDIA_ROOT", os.path.abspath("public/media"))
    MEDIA_BASE_URL = os.getenv("MEDIA_BASE_URL", "/media")
    UPLOAD_TEMP_DIR = os.getenv("UPLOAD_TEMP_DIR", os.path.abspath("public/temp"))
    MAX_CONTENT_LENGTH = int(os.getenv("MAX_CONTENT_LENGTH", str(16 * 1024 * 1024)))


class DevelopmentConfig(BaseConfig):
    DEBUG = True
    PROPAGATE_EXCEPTIONS = False


class ProductionConfig(BaseConfig):
    DEBUG = False


class TestingConfig(BaseConfig):
    TESTING = True
    ACCESS_TOKEN_SECRET = "test-access-secret"
    REFRESH_TOKEN_SECRET = "test-refresh-secret"


def get_config(name: str | None):
    """
    Select config class.
    - If name is provided, choose by name.
    - Else choose based on APP_ENV (dev/prod/test).
    """
    env = (name or os.getenv("APP_ENV", "dev")).lower()
    if env in ["prod", "production"]:
        return ProductionConfig
    if env in ["test", "testing"]:
        return TestingConfig
    return DevelopmentConfig


@dataclass(frozen=True)
class Settings:
    """Process-wide, immutable settings shared by all components."""

    database_url: str
    jwt_algorithm: str
    jwt_issuer: str
    access_token_secret: str
    access_token_expires: timedelta
    refresh_token_secret: str
    refresh_token_expires: timedelta
    cookie_secure: bool
    media_root: str
    media_base_url: str
    upload_temp_dir: str

    @classmethod
    def from_mapping(cls, config: Mapping) -> "Settings":
        return cls(
            database_url=config["DATABASE_URL"],
            jwt_algorithm=config["JWT_ALGORITHM"],
            jwt_issuer=config["JWT_ISSUER"],
            access_token_secret=config["ACCESS_TOKEN_SECRET"],
            access_token_expires=config["ACCESS_TOKEN_EXPIRES"],
            refresh_token_secret=config["REFRESH_TOKEN_SECRET"],
            refresh_token_expires=config["REFRESH_TOKEN_EXPIRES"],
            cookie_secure=config["COOKIE_SECURE"],
            media_root=config["MEDIA_ROOT"],
            media_base_url=config["MEDIA_BASE_URL"],
            upload_temp_dir=config["UPLOAD_TEMP_DIR"],
        )
