"""Application settings with environment-based simple classes."""

from __future__ import annotations

import os
import re
from collections.abc import Mapping
from datetime import timedelta
from typing import Final

from dotenv import load_dotenv

# Public selector env var (keep neutral name to avoid collisions)
ENV_VAR: Final[str] = "APP_ENV"  # 'development' | 'testing' | 'production'

_DURATION_RE = re.compile(r"^\s*(\d+)\s*([smhd])\s*$")
_DURATION_UNITS: Final[Mapping[str, str]] = {
    "s": "seconds",
    "m": "minutes",
    "h": "hours",
    "d": "days",
}


# Load .env in development (no-op when the file is missing)
load_dotenv()


def env_bool(name: str, default: bool = False) -> bool:
    """Parse a boolean flag from an environment variable.

    Parameters
    ----------
    name: str
        Environment variable to inspect.
    default: bool, optional
        Value returned when the variable is unset. Defaults to ``False``.

    Returns
    -------
    bool
        ``True`` if the value resembles ``{"1", "true", "yes", "y", "on"}``
        ignoring case; otherwise ``False`` or ``default`` when missing.
    """
    val = os.getenv(name)
    if val is None:
        return default
    return str(val).strip().lower() in {"1", "true", "yes", "y", "on"}


def env_int(name: str, default: int | None = None) -> int | None:
    """Parse an optional integer from an environment variable."""
    val = os.getenv(name)
    if val is None or not val.strip():
        return default
    return int(val)


def parse_duration(value: str | int | float | timedelta) -> timedelta:
    """Convert ``"15m"`` / ``"7d"`` style notation (or seconds) to a timedelta.

    Parameters
    ----------
    value: str | int | float | timedelta
        Either a ``timedelta``, a number of seconds, or a string made of an
        integer amount followed by one of ``s``, ``m``, ``h`` or ``d``.

    Returns
    -------
    timedelta
        Parsed duration.

    Raises
    ------
    ValueError
        If the string does not follow the ``<n><unit>`` notation.
    """
    if isinstance(value, timedelta):
        return value
    if isinstance(value, int | float):
        return timedelta(seconds=value)
    text = str(value)
    if text.strip().isdigit():
        return timedelta(seconds=int(text))
    match = _DURATION_RE.match(text)
    if not match:
        raise ValueError(f"Unsupported duration format: {value!r}")
    amount, unit = match.groups()
    return timedelta(**{_DURATION_UNITS[unit]: int(amount)})


def env_duration(name: str, default: str) -> timedelta:
    """Read a duration from the environment, see :func:`parse_duration`."""
    return parse_duration(os.getenv(name, default))


class BaseConfig:
    """Base configuration shared across environments.

    Attributes
    ----------
    SECRET_KEY: str
        Flask secret. Defaults to a development placeholder.
    JWT_ACCESS_SECRET: str
        HMAC secret for access and single-use (special) tokens.
    JWT_REFRESH_SECRET: str
        HMAC secret for refresh tokens. Kept distinct from the access secret
        so a leaked access secret cannot mint refresh tokens.
    JWT_ALGORITHM: str
        The only signing algorithm accepted when parsing tokens.
    JWT_ISSUER / JWT_AUDIENCE: str
        ``iss`` / ``aud`` claims embedded and enforced on every token.
    JWT_ACCESS_EXPIRES / JWT_REFRESH_EXPIRES: timedelta
        Token lifetimes.
    JWT_LEEWAY_SECONDS: int
        Clock skew tolerated when checking ``exp``.
    REVOCATION_BUFFER_SECONDS: int
        Extra lifetime of a revocation entry beyond the token's own expiry.
    EMAIL_VERIFICATION_EXPIRES / PASSWORD_RESET_EXPIRES: timedelta
        Default lifetimes of single-use tokens.
    MAX_SESSIONS_PER_USER: int | None
        Oldest sessions beyond this count are revoked on login. ``None``
        disables the limit.
    REVOKE_FAMILY_ON_REUSE: bool
        Revoke every session of a user when a rotated refresh token is
        replayed.
    SWEEPER_ENABLED: bool
        Start the background maintenance thread with the app.
    SWEEP_INTERVAL_SECONDS: int
        Interval between two maintenance passes.
    REDIS_URL: str | None
        Shared store for revocation entries and single-use markers. When
        unset the in-memory stores are used (single-instance only).
    STORE_TIMEOUT_SECONDS: float
        Socket / pool timeout applied to external stores.
    SQLALCHEMY_DATABASE_URI: str
        Database connection string consumed by SQLAlchemy.
    LOG_LEVEL: str
        Root logging verbosity (``INFO`` by default).

    Notes
    -----
    Values are primarily sourced from environment variables, enabling
    configuration without code changes.
    """

    SECRET_KEY = os.getenv("SECRET_KEY", "CHANGE_ME")

    # Tokens
    JWT_ACCESS_SECRET = os.getenv("JWT_ACCESS_SECRET", "CHANGE_ME_ACCESS")
    JWT_REFRESH_SECRET = os.getenv("JWT_REFRESH_SECRET", "CHANGE_ME_REFRESH")
    JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
    JWT_ISSUER = os.getenv("JWT_ISSUER", "authcore")
    JWT_AUDIENCE = os.getenv("JWT_AUDIENCE", "authcore-client")
    JWT_ACCESS_EXPIRES = env_duration("JWT_ACCESS_EXPIRES", "1h")
    JWT_REFRESH_EXPIRES = env_duration("JWT_REFRESH_EXPIRES", "7d")
    JWT_LEEWAY_SECONDS = env_int("JWT_LEEWAY_SECONDS", 0)

    # Revocation & single-use tokens
    REVOCATION_BUFFER_SECONDS = env_int("REVOCATION_BUFFER_SECONDS", 60)
    EMAIL_VERIFICATION_EXPIRES = env_duration("EMAIL_VERIFICATION_EXPIRES", "24h")
    PASSWORD_RESET_EXPIRES = env_duration("PASSWORD_RESET_EXPIRES", "1h")

    # Sessions
    MAX_SESSIONS_PER_USER = env_int("MAX_SESSIONS_PER_USER", None)
    REVOKE_FAMILY_ON_REUSE = env_bool("REVOKE_FAMILY_ON_REUSE", False)

    # Maintenance
    SWEEPER_ENABLED = env_bool("SWEEPER_ENABLED", False)
    SWEEP_INTERVAL_SECONDS = env_int("SWEEP_INTERVAL_SECONDS", 3600)

    # Stores
    REDIS_URL = os.getenv("REDIS_URL") or None
    STORE_TIMEOUT_SECONDS = float(os.getenv("STORE_TIMEOUT_SECONDS", "5"))
    SQLALCHEMY_DATABASE_URI = os.getenv("DATABASE_URL", "sqlite:///./dev.db")
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SQLALCHEMY_ECHO = env_bool("SQLALCHEMY_ECHO", False)

    # Flask & logging
    PROPAGATE_EXCEPTIONS = False
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
    DEBUG = False
    TESTING = False


class DevelopmentConfig(BaseConfig):
    """Configuration tailored for local development.

    Notes
    -----
    Enables debug mode by default and honors ``SQLALCHEMY_ECHO`` for verbose
    SQL logging when requested.
    """

    DEBUG = env_bool("FLASK_DEBUG", True)
    SQLALCHEMY_ECHO = env_bool("SQLALCHEMY_ECHO", False)


class TestingConfig(BaseConfig):
    """Configuration for automated test runs.

    Notes
    -----
    - Forces ``TESTING`` mode and disables debug logs.
    - Uses an in-memory SQLite database unless ``TEST_DATABASE_URL`` is set.
    - Never talks to Redis nor starts the sweeper thread.
    """

    TESTING = True
    DEBUG = False
    SQLALCHEMY_DATABASE_URI = os.getenv("TEST_DATABASE_URL", "sqlite:///:memory:")
    SQLALCHEMY_ECHO = False
    PROPAGATE_EXCEPTIONS = True
    REDIS_URL = None
    SWEEPER_ENABLED = False
    JWT_ACCESS_SECRET = "test-access-secret-with-enough-entropy-0001"
    JWT_REFRESH_SECRET = "test-refresh-secret-with-enough-entropy-0002"


class ProductionConfig(BaseConfig):
    """Configuration defaults for production deployments.

    Notes
    -----
    Keeps debug and SQL echoing disabled and runs the maintenance sweeper
    unless explicitly turned off.
    """

    DEBUG = False
    SQLALCHEMY_ECHO = False
    PROPAGATE_EXCEPTIONS = False
    SWEEPER_ENABLED = env_bool("SWEEPER_ENABLED", True)


# Map names -> classes (simple, explicit)
CONFIG_MAP: Mapping[str, type[BaseConfig]] = {
    "development": DevelopmentConfig,
    "testing": TestingConfig,
    "production": ProductionConfig,
}


def get_config() -> type[BaseConfig]:
    """Return the configuration class inferred from ``APP_ENV``.

    Returns
    -------
    type[BaseConfig]
        Class to pass to :meth:`flask.Config.from_object`.

    Notes
    -----
    Falls back to :class:`DevelopmentConfig` when ``APP_ENV`` is unset or
    unknown.
    """
    name = os.getenv(ENV_VAR, "development").strip().lower()
    return CONFIG_MAP.get(name, DevelopmentConfig)
