"""Runtime settings read from the environment and an optional .env file."""

import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

DEFAULT_MODEL = "gpt-4.1-mini"
DEFAULT_ROUND_COUNT = 4


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError as error:
        raise ValueError(f"{name} must be a number, got {raw!r}") from error


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError as error:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from error


@dataclass
class Settings:
    openai_api_key: Optional[str] = None
    openai_base_url: Optional[str] = None
    model_name: str = DEFAULT_MODEL
    temperature: float = 0.7
    max_tokens: int = 4000
    relay_url: Optional[str] = None
    relay_timeout: float = 120.0
    round_count: int = DEFAULT_ROUND_COUNT
    round_delay: float = 1.0
    log_level: str = "INFO"

    def __post_init__(self) -> None:
        if self.round_count < 0:
            raise ValueError("RHIZOME_ROUND_COUNT must not be negative")
        if self.round_delay < 0:
            raise ValueError("RHIZOME_ROUND_DELAY must not be negative")

    @classmethod
    def from_env(cls, dotenv: bool = True) -> "Settings":
        if dotenv:
            load_dotenv()
        return cls(
            openai_api_key=os.getenv("OPENAI_API_KEY") or None,
            openai_base_url=os.getenv("OPENAI_BASE_URL") or None,
            model_name=os.getenv("OPENAI_MODEL", DEFAULT_MODEL),
            temperature=_env_float("RHIZOME_TEMPERATURE", 0.7),
            max_tokens=_env_int("RHIZOME_MAX_TOKENS", 4000),
            relay_url=os.getenv("RHIZOME_RELAY_URL") or None,
            relay_timeout=_env_float("RHIZOME_RELAY_TIMEOUT", 120.0),
            round_count=_env_int("RHIZOME_ROUND_COUNT", DEFAULT_ROUND_COUNT),
            round_delay=_env_float("RHIZOME_ROUND_DELAY", 1.0),
            log_level=os.getenv("RHIZOME_LOG_LEVEL", "INFO").upper(),
        )
