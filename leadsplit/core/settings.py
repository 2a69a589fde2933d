from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

import yaml

CONFIG_DIR = Path(__file__).resolve().parent.parent / "config"


@dataclass(frozen=True)
class Settings:
    default_agent_count: int = 5
    max_upload_bytes: int = 5 * 1024 * 1024
    log_level: str = "INFO"
    upload_dir: Path = field(default_factory=lambda: Path.cwd() / "uploads")
    cors_origins: list[str] = field(default_factory=list)


def _load_defaults() -> dict:
    path = CONFIG_DIR / "distribution.yaml"
    if not path.exists():
        return {}
    with path.open("r", encoding="utf-8") as fp:
        return yaml.safe_load(fp) or {}


def _int_env(name: str, fallback: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return fallback
    try:
        return int(raw)
    except ValueError as exc:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from exc


def load_settings() -> Settings:
    defaults = _load_defaults()
    base = Settings()

    origins_env = os.getenv("API_CORS_ORIGINS", "")
    origins = [origin.strip() for origin in origins_env.split(",") if origin.strip()]
    if not origins:
        origins = [str(origin) for origin in defaults.get("cors_origins") or []]

    upload_dir = os.getenv("LEADSPLIT_UPLOAD_DIR")

    return Settings(
        default_agent_count=_int_env(
            "LEADSPLIT_DEFAULT_AGENT_COUNT", int(defaults.get("default_agent_count", base.default_agent_count))
        ),
        max_upload_bytes=_int_env(
            "LEADSPLIT_MAX_UPLOAD_BYTES", int(defaults.get("max_upload_bytes", base.max_upload_bytes))
        ),
        log_level=os.getenv("LEADSPLIT_LOG_LEVEL") or str(defaults.get("log_level", base.log_level)),
        upload_dir=Path(upload_dir).expanduser().resolve() if upload_dir else base.upload_dir,
        cors_origins=origins,
    )
