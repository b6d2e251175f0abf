"""
Centralized configuration for the veterinary clinic backend.

All settings are read once at process start into an ``AppConfig`` instance
that is passed explicitly to ``create_app()``. Nothing in the application
reads environment variables after that point.

Environment Variables:
    DATABASE_URL: SQLAlchemy URL (default: sqlite:///./vetclinic.db)
    FLASK_ENV: "production" enables strict checks (default: development)
    SECRET_KEY: Flask secret key
    JWT_PRIVATE_KEY_PATH / JWT_PUBLIC_KEY_PATH: PEM files for RS256 signing
    JWT_PRIVATE_KEY / JWT_PUBLIC_KEY: inline PEM content (takes precedence)
    JWT_EXPIRATION_HOURS: token validity window (default: 24)
    JWT_ISSUER: "iss" claim (default: vetclinic)
    IMAGE_STORAGE_DIR: directory for pet pictures (default: ./uploads/pets)
    MAX_UPLOAD_BYTES: max request body for uploads (default: 5 MiB)
    MAX_PAGE_SIZE: upper bound for list page sizes (default: 100)
    LOG_LEVEL, LOG_TO_FILE, LOG_JSON, LOG_DIR, SQL_ECHO: logging options
    RATE_LIMIT_ENABLED: toggle Flask-Limiter (default: true)
    LIMITER_STORAGE_URI: Flask-Limiter storage (default: memory://)
"""

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional

from dotenv import load_dotenv

logger = logging.getLogger(__name__)

_TRUTHY = ("true", "1", "yes")
_WEAK_SECRETS = ("dev-secret-change-me", "secret", "secret123")


def _as_bool(value: Optional[str], default: bool) -> bool:
    if value is None or value.strip() == "":
        return default
    return value.strip().lower() in _TRUTHY


def _as_int(value: Optional[str], default: int, name: str) -> int:
    if value is None or value.strip() == "":
        return default
    try:
        return int(value)
    except ValueError:
        logger.warning(
            f"Invalid integer for {name}; falling back to default",
            extra={"context": {"value": value, "default": default}},
        )
        return default


def _read_pem(inline: Optional[str], path: Optional[str]) -> Optional[str]:
    if inline:
        # Allow "\n"-escaped single-line values from .env files
        return inline.replace("\\n", "\n")
    if path:
        return Path(path).read_text(encoding="utf-8")
    return None


@dataclass
class AppConfig:
    """Immutable-by-convention application settings."""

    database_url: str = "sqlite:///./vetclinic.db"
    environment: str = "development"
    secret_key: str = "dev-secret-change-me"
    jwt_private_key: Optional[str] = None
    jwt_public_key: Optional[str] = None
    jwt_expiration_hours: int = 24
    jwt_issuer: str = "vetclinic"
    image_storage_dir: str = "./uploads/pets"
    max_upload_bytes: int = 5 * 1024 * 1024
    max_page_size: int = 100
    log_level: str = "INFO"
    log_to_file: bool = False
    log_json: bool = False
    log_dir: str = "./logs"
    sql_echo: bool = False
    rate_limit_enabled: bool = True
    limiter_storage_uri: str = "memory://"
    testing: bool = False

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    @classmethod
    def from_env(
        cls, environ: Optional[Mapping[str, str]] = None, load_env_file: bool = True
    ) -> "AppConfig":
        """Build the configuration from environment variables.

        A ``.env`` file is loaded first (without overriding real environment
        variables) unless ``load_env_file`` is False or a mapping is given.
        """
        if environ is None:
            if load_env_file:
                load_dotenv(override=False)
            environ = os.environ

        env = environ.get("FLASK_ENV", "development")
        config = cls(
            database_url=environ.get("DATABASE_URL", cls.database_url),
            environment=env,
            secret_key=environ.get("SECRET_KEY", cls.secret_key),
            jwt_private_key=_read_pem(
                environ.get("JWT_PRIVATE_KEY"), environ.get("JWT_PRIVATE_KEY_PATH")
            ),
            jwt_public_key=_read_pem(
                environ.get("JWT_PUBLIC_KEY"), environ.get("JWT_PUBLIC_KEY_PATH")
            ),
            jwt_expiration_hours=_as_int(
                environ.get("JWT_EXPIRATION_HOURS"), 24, "JWT_EXPIRATION_HOURS"
            ),
            jwt_issuer=environ.get("JWT_ISSUER", cls.jwt_issuer),
            image_storage_dir=environ.get("IMAGE_STORAGE_DIR", cls.image_storage_dir),
            max_upload_bytes=_as_int(
                environ.get("MAX_UPLOAD_BYTES"), cls.max_upload_bytes, "MAX_UPLOAD_BYTES"
            ),
            max_page_size=_as_int(
                environ.get("MAX_PAGE_SIZE"), cls.max_page_size, "MAX_PAGE_SIZE"
            ),
            log_level=environ.get("LOG_LEVEL", cls.log_level),
            log_to_file=_as_bool(environ.get("LOG_TO_FILE"), env == "production"),
            log_json=_as_bool(environ.get("LOG_JSON"), env == "production"),
            log_dir=environ.get("LOG_DIR", cls.log_dir),
            sql_echo=_as_bool(environ.get("SQL_ECHO"), False),
            rate_limit_enabled=_as_bool(environ.get("RATE_LIMIT_ENABLED"), True),
            limiter_storage_uri=environ.get(
                "LIMITER_STORAGE_URI", cls.limiter_storage_uri
            ),
            testing=_as_bool(environ.get("TESTING"), False),
        )
        config.validate()
        return config

    def validate(self) -> None:
        """Fail fast on settings that are unsafe in production.

        Raises:
            ValueError: If production runs with a weak secret or without keys
        """
        if not self.is_production:
            if not (self.jwt_private_key and self.jwt_public_key):
                logger.warning(
                    "JWT key pair not configured - token issuance will fail",
                    extra={"context": {"environment": self.environment}},
                )
            return

        if self.secret_key in _WEAK_SECRETS or len(self.secret_key) < 32:
            raise ValueError(
                "Production deployment requires a strong SECRET_KEY (min 32 chars)."
            )
        if not (self.jwt_private_key and self.jwt_public_key):
            raise ValueError(
                "Production deployment requires JWT_PRIVATE_KEY(_PATH) and "
                "JWT_PUBLIC_KEY(_PATH)."
            )

    def log_summary(self) -> None:
        """Log the active configuration without secrets."""
        logger.info(
            "Configuration loaded",
            extra={
                "context": {
                    "environment": self.environment,
                    "database_dialect": self.database_url.split(":", 1)[0],
                    "jwt_expiration_hours": self.jwt_expiration_hours,
                    "image_storage_dir": self.image_storage_dir,
                    "rate_limit_enabled": self.rate_limit_enabled,
                }
            },
        )
