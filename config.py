import os
from dataclasses import dataclass
from typing import Optional, Tuple

from dotenv import load_dotenv


class ConfigError(RuntimeError):
    """Raised when a required environment variable is missing or invalid."""


@dataclass(frozen=True)
class Settings:
    database_url: str
    jwt_secret: str
    cors_origins: Tuple[str, ...] = ()
    port: int = 3000
    environment: str = "development"
    bcrypt_rounds: int = 12
    log_level: str = "INFO"

    @property
    def is_development(self) -> bool:
        return self.environment == "development"


@dataclass(frozen=True)
class GatewaySettings:
    backend_url: str
    port: int = 3001
    environment: str = "development"
    timeout: float = 15.0

    @property
    def cookie_secure(self) -> bool:
        return self.environment == "production"


def _require(env, name: str) -> str:
    value = (env.get(name) or "").strip()
    if not value:
        raise ConfigError(f"{name} environment variable is required")
    return value


def _int(env, name: str, default: int) -> int:
    raw = env.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ConfigError(f"{name} must be an integer, got {raw!r}")


def _environ(env: Optional[dict]):
    if env is None:
        load_dotenv()  # real env vars win over .env
        return os.environ
    return env


def load_database_url(env: Optional[dict] = None) -> str:
    """Just the store URL, for tools (migrations) that need nothing else."""
    return _require(_environ(env), "DATABASE_URL")


def load_settings(env: Optional[dict] = None) -> Settings:
    """Build backend settings from the environment (and .env when reading os.environ)."""
    env = _environ(env)

    origins = tuple(
        o.strip()
        for o in (env.get("CORS_ORIGIN_WEB"), env.get("CORS_ORIGIN_MOBILE"))
        if o and o.strip()
    )

    return Settings(
        database_url=load_database_url(env),
        jwt_secret=_require(env, "JWT_SECRET"),
        cors_origins=origins,
        port=_int(env, "PORT", 3000),
        environment=(env.get("APP_ENV") or "development").strip(),
        bcrypt_rounds=_int(env, "BCRYPT_ROUNDS", 12),
        log_level=(env.get("LOG_LEVEL") or "INFO").strip().upper(),
    )


def load_gateway_settings(env: Optional[dict] = None) -> GatewaySettings:
    env = _environ(env)

    return GatewaySettings(
        backend_url=_require(env, "BACKEND_URL").rstrip("/"),
        port=_int(env, "GATEWAY_PORT", 3001),
        environment=(env.get("APP_ENV") or "development").strip(),
    )
