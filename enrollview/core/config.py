"""Environment-driven settings, loaded once at import.

  APP_ENV            dev | test | prod                (default dev)
  LOG_LEVEL          debug | info | warning | error   (default info)
  LOG_JSON           1/true/yes/on for JSON Lines     (default off)
  PORT               listen port                      (default 8000)
  DATABASE_URL       postgresql+asyncpg://...; unset means in-memory store
  DEFAULT_PAGE_SIZE  list page size when `size` is absent or invalid (10)
  JWT_PUBLIC_KEY     PEM key for verifying access tokens; unset in dev/test

Invalid values fail at startup with a ValueError naming the variable.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Literal

AppEnv = Literal["dev", "test", "prod"]
LogLevel = Literal["debug", "info", "warning", "error"]

_APP_ENVS = ("dev", "test", "prod")
_LOG_LEVELS = ("debug", "info", "warning", "error")
_TRUTHY = ("1", "true", "yes", "on")


def _getenv(name: str, default: str = "") -> str:
    return os.environ.get(name, default).strip()


def _choice(name: str, default: str, allowed: tuple[str, ...]) -> str:
    value = _getenv(name, default).lower()
    if value not in allowed:
        raise ValueError(f"{name} must be {'|'.join(allowed)} (got {value!r})")
    return value


def _integer(name: str, default: int, *, minimum: int | None = None) -> int:
    raw = _getenv(name, str(default))
    try:
        value = int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer (got {raw!r})") from None
    if minimum is not None and value < minimum:
        raise ValueError(f"{name} must be positive (got {value})")
    return value


@dataclass(frozen=True)
class Settings:
    app_env: AppEnv
    log_level: LogLevel
    log_json: bool
    port: int
    database_url: str | None
    default_page_size: int = 10
    jwt_public_key: str | None = None

    @property
    def is_dev(self) -> bool:
        return self.app_env == "dev"

    @property
    def is_test(self) -> bool:
        return self.app_env == "test"

    @property
    def is_prod(self) -> bool:
        return self.app_env == "prod"


def load_settings() -> Settings:
    # PEM blocks arrive through env files with literal "\n" sequences.
    public_key = _getenv("JWT_PUBLIC_KEY").replace("\\n", "\n")

    return Settings(  # type: ignore[arg-type]
        app_env=_choice("APP_ENV", "dev", _APP_ENVS),
        log_level=_choice("LOG_LEVEL", "info", _LOG_LEVELS),
        log_json=_getenv("LOG_JSON", "false").lower() in _TRUTHY,
        port=_integer("PORT", 8000),
        database_url=_getenv("DATABASE_URL") or None,
        default_page_size=_integer("DEFAULT_PAGE_SIZE", 10, minimum=1),
        jwt_public_key=public_key or None,
    )


SETTINGS = load_settings()
