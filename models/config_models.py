"""Configuration data models for the askgpt plugin.

Each dataclass mirrors one section of ``askgpt.ini``. Field names are the INI keys; the
default values double as the built-in configuration when no file is present.
"""

from __future__ import annotations

from dataclasses import dataclass, field

__all__: list[str] = [
    "API",
    "Cache",
    "Config",
    "General",
    "Settings",
]


@dataclass
class General:
    DEBUG: bool = False
    DATA_DIR: str = ""
    LOG_FILE: str = ""
    LOG_LEVEL: str = "INFO"


@dataclass
class API:
    COMPLETIONS_URL: str = "https://openrouter.ai/api/v1/chat/completions"
    MODELS_URL: str = "https://openrouter.ai/api/v1/models"
    # Seconds. 0 disables the timeout.
    TIMEOUT: float = 0.0


@dataclass
class Cache:
    FILE: str = "gpt_cache.json"
    SIZE_LIMIT: int = 100


@dataclass
class Settings:
    FILE: str = "settings.json"
    NAMESPACE: str = "askgpt"


@dataclass
class Config:
    GENERAL: General = field(default_factory=General)
    API: API = field(default_factory=API)
    CACHE: Cache = field(default_factory=Cache)
    SETTINGS: Settings = field(default_factory=Settings)
