from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from enum import Enum
from typing import Mapping, Optional

from ltclient.errors import ConfigError


class ReadPolicy(str, Enum):
    # Keep reading after any read error or end of stream
    LENIENT = "lenient"
    # Stop on end of stream or a read error
    STRICT = "strict"


# Defaults
_DEFAULT_HOST = "127.0.0.1"
_DEFAULT_NAME = "LightTable-Python"
_DEFAULT_LANG = "python"
_DEFAULT_EVALUATOR = "echo"
_DEFAULT_LOG_FILE = "ltclient.log"
_DEFAULT_READ_RETRY_DELAY = 0.1
_DEFAULT_CONNECT_TIMEOUT = 10.0

_FALSE = {"0", "false", "no", "off"}
_TRUE = {"1", "true", "yes", "on"}


def str_from_env(env: Mapping[str, str], var: str, default: str) -> str:
    raw = env.get(var)
    if raw is None or not raw.strip():
        return default
    return raw.strip()


def bool_from_env(env: Mapping[str, str], var: str, default: bool) -> bool:
    raw = env.get(var)
    if raw is None or not raw.strip():
        return default
    value = raw.strip().lower()
    if value in _TRUE:
        return True
    if value in _FALSE:
        return False
    raise ConfigError(f"{var}: expected a boolean, got {raw!r}")


def seconds_from_env(env: Mapping[str, str], var: str,
                     default: Optional[float]) -> Optional[float]:
    raw = env.get(var)
    if raw is None or not raw.strip():
        return default
    try:
        value = float(raw)
    except ValueError:
        raise ConfigError(f"{var}: expected seconds, got {raw!r}") from None
    if value < 0:
        raise ConfigError(f"{var}: must not be negative, got {raw!r}")
    return value


@dataclass(frozen=True)
class Settings:
    host: str = _DEFAULT_HOST
    client_name: str = _DEFAULT_NAME
    lang: str = _DEFAULT_LANG
    evaluator: str = _DEFAULT_EVALUATOR
    log_file: str = _DEFAULT_LOG_FILE
    log_enabled: bool = True
    log_level: int = logging.INFO
    read_policy: ReadPolicy = ReadPolicy.LENIENT
    read_retry_delay: float = _DEFAULT_READ_RETRY_DELAY
    drain_timeout: Optional[float] = None
    connect_timeout: Optional[float] = _DEFAULT_CONNECT_TIMEOUT

    @property
    def eval_command(self) -> str:
        return f"editor.eval.{self.lang}"


def load_settings(env: Optional[Mapping[str, str]] = None) -> Settings:
    """Read Settings from LTCLIENT_* environment variables."""
    if env is None:
        env = os.environ

    level_name = str_from_env(env, "LTCLIENT_LOG_LEVEL", "INFO").upper()
    level = logging.getLevelName(level_name)
    if not isinstance(level, int):
        raise ConfigError(f"LTCLIENT_LOG_LEVEL: unknown level {level_name!r}")

    policy = str_from_env(env, "LTCLIENT_READ_POLICY", ReadPolicy.LENIENT.value).lower()
    try:
        read_policy = ReadPolicy(policy)
    except ValueError:
        raise ConfigError(
            f"LTCLIENT_READ_POLICY: expected 'lenient' or 'strict', got {policy!r}") from None

    return Settings(
        host=str_from_env(env, "LTCLIENT_HOST", _DEFAULT_HOST),
        client_name=str_from_env(env, "LTCLIENT_NAME", _DEFAULT_NAME),
        lang=str_from_env(env, "LTCLIENT_LANG", _DEFAULT_LANG),
        evaluator=str_from_env(env, "LTCLIENT_EVALUATOR", _DEFAULT_EVALUATOR),
        log_file=str_from_env(env, "LTCLIENT_LOG_FILE", _DEFAULT_LOG_FILE),
        log_enabled=bool_from_env(env, "LTCLIENT_LOG_ENABLED", True),
        log_level=level,
        read_policy=read_policy,
        read_retry_delay=seconds_from_env(
            env, "LTCLIENT_READ_RETRY_DELAY", _DEFAULT_READ_RETRY_DELAY),
        drain_timeout=seconds_from_env(env, "LTCLIENT_DRAIN_TIMEOUT", None),
        connect_timeout=seconds_from_env(
            env, "LTCLIENT_CONNECT_TIMEOUT", _DEFAULT_CONNECT_TIMEOUT),
    )
