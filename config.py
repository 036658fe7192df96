import os
from dataclasses import dataclass
from typing import Callable, Optional, TypeVar

from dotenv import load_dotenv

from coordinator import DEFAULT_SHUTDOWN_TIMEOUT, default_workers


T = TypeVar("T", int, float)

DEFAULT_TOP_K = 10
DEFAULT_LOG_LEVEL = "WARNING"
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")


@dataclass(frozen=True)
class Settings:
    workers: int
    top_k: int
    shutdown_timeout: float
    log_level: str


def _positive(name: str, cast: Callable[[str], T], default: T) -> T:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default

    try:
        value = cast(raw)
    except ValueError as e:
        raise ValueError(f"{name} must be a number, got {raw!r}") from e

    if value <= 0:
        raise ValueError(f"{name} must be positive, got {raw!r}")
    return value


def _log_level() -> str:
    level = os.getenv("LOGTALLY_LOG_LEVEL", DEFAULT_LOG_LEVEL).strip().upper()
    if level not in LOG_LEVELS:
        raise ValueError(
            f"LOGTALLY_LOG_LEVEL must be one of {', '.join(LOG_LEVELS)}, got {level!r}"
        )
    return level


def load_settings(env_file: Optional[str] = None) -> Settings:
    """
    Load settings from the environment, after reading a .env file.

    Variables already set in the environment win over the .env file.
    """
    load_dotenv(env_file)

    return Settings(
        workers=_positive("LOGTALLY_WORKERS", int, default_workers()),
        top_k=_positive("LOGTALLY_TOP_K", int, DEFAULT_TOP_K),
        shutdown_timeout=_positive(
            "LOGTALLY_SHUTDOWN_TIMEOUT", float, DEFAULT_SHUTDOWN_TIMEOUT
        ),
        log_level=_log_level(),
    )
