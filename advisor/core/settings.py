from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import load_dotenv

DEFAULT_CORS_ORIGINS = ("http://localhost:3000", "http://127.0.0.1:3000")


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw)
    except ValueError as exc:
        raise ValueError(f"{name} must be a number, got {raw!r}") from exc


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from exc


def _env_flag(name: str, default: bool = False) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class Settings:
    """Process-wide configuration, read once at start-up."""

    generative_api_key: str | None = None
    generative_base_url: str = "https://api.openai.com/v1"
    generative_model: str = "gpt-3.5-turbo"
    generative_timeout: float = 30.0
    generative_temperature: float = 0.7
    generative_max_tokens: int = 1000
    records_fixture: Path | None = None
    tasks_file: Path | None = None
    cors_origins: tuple[str, ...] = field(default=DEFAULT_CORS_ORIGINS)
    log_level: str = "INFO"
    log_json: bool = False

    @classmethod
    def from_env(cls) -> "Settings":
        load_dotenv()

        origins_env = os.getenv("API_CORS_ORIGINS", "")
        origins = tuple(origin.strip() for origin in origins_env.split(",") if origin.strip())
        fixture = os.getenv("RECORDS_FIXTURE")
        tasks_file = os.getenv("TASKS_FILE")

        return cls(
            generative_api_key=os.getenv("GENERATIVE_API_KEY") or os.getenv("OPENAI_API_KEY") or None,
            generative_base_url=os.getenv("GENERATIVE_BASE_URL") or cls.generative_base_url,
            generative_model=os.getenv("GENERATIVE_MODEL") or cls.generative_model,
            generative_timeout=_env_float("GENERATIVE_TIMEOUT", cls.generative_timeout),
            generative_temperature=_env_float("GENERATIVE_TEMPERATURE", cls.generative_temperature),
            generative_max_tokens=_env_int("GENERATIVE_MAX_TOKENS", cls.generative_max_tokens),
            records_fixture=Path(fixture).expanduser() if fixture else None,
            tasks_file=Path(tasks_file).expanduser() if tasks_file else None,
            cors_origins=origins or DEFAULT_CORS_ORIGINS,
            log_level=os.getenv("LOG_LEVEL", cls.log_level),
            log_json=_env_flag("LOG_JSON"),
        )
