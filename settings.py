from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional

from dotenv import find_dotenv, load_dotenv


_CONN_ENV = "HOME_CONN"
_USER_ENV = "HOME_USER"
_ADDRESS_ENV = "HOME_ADDRESS"
_QUERY_TIMEOUT_ENV = "HOME_QUERY_TIMEOUT"
_LOG_LEVEL_ENV = "LOG_LEVEL"

DEFAULT_USER = "<<HOME_USER>>"
DEFAULT_ADDRESS = "127.0.0.1:8080"


@dataclass(frozen=True)
class Settings:
    database_url: Optional[str] = None
    database_user: str = DEFAULT_USER
    server_address: str = DEFAULT_ADDRESS
    query_timeout: Optional[float] = None
    log_level: str = "INFO"


def _read_str_env(name: str, default: str) -> str:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip()
    return candidate or default


def _read_optional_env(name: str, default: Optional[str]) -> Optional[str]:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip()
    return candidate or None


def _read_query_timeout(default: Optional[float]) -> Optional[float]:
    value = os.getenv(_QUERY_TIMEOUT_ENV)
    if value is None:
        return default
    candidate = value.strip()
    if not candidate:
        return default
    try:
        parsed = float(candidate)
    except ValueError:
        return default
    return parsed if parsed > 0 else default


def _read_log_level(default: str) -> str:
    value = os.getenv(_LOG_LEVEL_ENV)
    if value is None:
        return default
    candidate = value.strip()
    if not candidate:
        return default
    return candidate.upper()


@lru_cache
def get_settings() -> Settings:
    load_dotenv(find_dotenv(usecwd=True))
    return Settings(
        database_url=_read_optional_env(_CONN_ENV, None),
        database_user=_read_str_env(_USER_ENV, DEFAULT_USER),
        server_address=_read_str_env(_ADDRESS_ENV, DEFAULT_ADDRESS),
        query_timeout=_read_query_timeout(None),
        log_level=_read_log_level("INFO"),
    )
