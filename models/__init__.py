"""Data models for askgpt.

This package contains dataclass definitions for configuration, the response cache,
conversation messages and the persisted settings record.
"""

from __future__ import annotations

from models.cache_models import CacheEntry
from models.config_models import Config
from models.message_models import Message, Role
from models.settings_models import ModelInfo, ModelPricing, SettingsData, TaskPrompt

__all__: list[str] = [
    "CacheEntry",
    "Config",
    "Message",
    "ModelInfo",
    "ModelPricing",
    "Role",
    "SettingsData",
    "TaskPrompt",
]
