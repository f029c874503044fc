import os
from dataclasses import dataclass


@dataclass(frozen=True)
class Settings:
    secret_key: str
    env: str
    database_url: str

    crm_api_url: str
    crm_api_timeout: float

    config_save_attempts: int
    config_save_backoff: float


def _getenv(name: str, default: str = "") -> str:
    return (os.environ.get(name) or default).strip()


def _getenv_number(name: str, default: str, cast):
    raw = _getenv(name, default)
    try:
        return cast(raw)
    except ValueError:
        raise RuntimeError(f"{name} must be a number (got {raw!r}).")


def load_settings() -> Settings:
    return Settings(
        secret_key=_getenv("SECRET_KEY", "change-me"),
        env=_getenv("ENV", "development"),
        database_url=_getenv("DATABASE_URL", "sqlite:///crm.db"),
        crm_api_url=_getenv("CRM_API_URL", "http://localhost:5000/api"),
        crm_api_timeout=_getenv_number("CRM_API_TIMEOUT", "30", float),
        config_save_attempts=_getenv_number("CONFIG_SAVE_ATTEMPTS", "3", int),
        config_save_backoff=_getenv_number("CONFIG_SAVE_BACKOFF", "0.5", float),
    )


def load_config() -> dict:
    s = load_settings()
    is_production = s.env in ("prod", "production")
    return {
        "SECRET_KEY": s.secret_key,
        "ENV": s.env,
        "DATABASE_URL": s.database_url,
        "CRM_API_URL": s.crm_api_url,
        "CRM_API_TIMEOUT": s.crm_api_timeout,
        # Configuration store persistence retry policy
        "CONFIG_SAVE_ATTEMPTS": max(1, s.config_save_attempts),
        "CONFIG_SAVE_BACKOFF": max(0.0, s.config_save_backoff),
        "SESSION_COOKIE_HTTPONLY": True,
        "SESSION_COOKIE_SAMESITE": "Lax",
        "SESSION_COOKIE_SECURE": is_production,
    }
