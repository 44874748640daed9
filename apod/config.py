"""Configuration helpers for the APOD viewer."""

from __future__ import annotations

import json
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping

from .api_client import APOD_URL, DEFAULT_TIMEOUT, DEMO_KEY
from .cache import DEFAULT_CAPACITY

CONFIG_PATH = Path(__file__).resolve().parent.parent / "data" / "config.json"
API_KEY_ENV = "NASA_API_KEY"


@dataclass
class ApodSettings:
    api_key: str = DEMO_KEY
    api_url: str = APOD_URL
    timeout: float = DEFAULT_TIMEOUT
    cache_capacity: int = DEFAULT_CAPACITY


def _clean_optional_str(value: Any) -> str | None:
    if isinstance(value, str):
        stripped = value.strip()
        if stripped:
            return stripped
    return None


class ConfigManager:
    """Persist and restore viewer settings."""

    def __init__(
        self, path: Path = CONFIG_PATH, environ: Mapping[str, str] | None = None
    ) -> None:
        self.path = path
        self.environ = os.environ if environ is None else environ
        self.settings = ApodSettings()

    def load(self) -> ApodSettings:
        settings = ApodSettings()
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            data = {}
        except ValueError:
            data = {}
        if not isinstance(data, dict):
            data = {}

        settings.api_key = _clean_optional_str(data.get("api_key")) or settings.api_key
        settings.api_url = _clean_optional_str(data.get("api_url")) or settings.api_url
        try:
            settings.timeout = float(data.get("timeout", settings.timeout))
        except (TypeError, ValueError):
            settings.timeout = DEFAULT_TIMEOUT
        try:
            settings.cache_capacity = int(
                data.get("cache_capacity", settings.cache_capacity)
            )
        except (TypeError, ValueError):
            settings.cache_capacity = DEFAULT_CAPACITY
        if settings.timeout <= 0:
            settings.timeout = DEFAULT_TIMEOUT
        if settings.cache_capacity < 1:
            settings.cache_capacity = DEFAULT_CAPACITY

        env_key = _clean_optional_str(self.environ.get(API_KEY_ENV))
        if env_key:
            settings.api_key = env_key

        self.settings = settings
        return settings

    def save(self, settings: ApodSettings | None = None) -> None:
        settings = settings or self.settings
        self.settings = settings
        payload = {
            "api_key": settings.api_key,
            "api_url": settings.api_url,
            "timeout": settings.timeout,
            "cache_capacity": settings.cache_capacity,
        }
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(
            json.dumps(payload, indent=2, ensure_ascii=False), encoding="utf-8"
        )


__all__ = ["API_KEY_ENV", "ApodSettings", "CONFIG_PATH", "ConfigManager"]
