from __future__ import annotations

import os
from dataclasses import dataclass


def _env_str(name: str, default: str) -> str:
    v = os.getenv(name)
    return default if v is None or v.strip() == "" else v.strip()


def _env_int(name: str, default: int) -> int:
    v = os.getenv(name)
    if v is None or v.strip() == "":
        return default
    try:
        return int(v)
    except ValueError:
        return default


def _env_float(name: str, default: float) -> float:
    v = os.getenv(name)
    if v is None or v.strip() == "":
        return default
    try:
        f = float(v)
    except ValueError:
        return default
    return f if f > 0 else default


@dataclass(frozen=True)
class Config:
    host: str
    port: int

    api_key: str
    model: str

    log_level: str = "info"  # "debug" | "info" | "warning" | "error"

    # Loading messages advance on this interval while a generation is in flight.
    status_interval_s: float = 2.5

    download_filename: str = "ai_portrait.png"


def load_config() -> Config:
    host = _env_str("PORTRAIT_HOST", "127.0.0.1")
    port = _env_int("PORTRAIT_PORT", 7861)

    # GEMINI_API_KEY wins; API_KEY is accepted for older .env files.
    api_key = _env_str("GEMINI_API_KEY", _env_str("API_KEY", ""))
    model = _env_str("PORTRAIT_MODEL", "gemini-2.5-flash-image-preview")

    status_interval_s = _env_float("PORTRAIT_STATUS_INTERVAL", 2.5)

    log_level = _env_str("PORTRAIT_LOG_LEVEL", "info").lower()
    if log_level not in ("debug", "info", "warning", "error"):
        log_level = "info"

    return Config(
        host=host,
        port=port,
        api_key=api_key,
        model=model,
        log_level=log_level,
        status_interval_s=status_interval_s,
    )
