"""Settings persistence for askgpt.

Provides the settings store, the backend protocol it persists through, and a JSON-file
backend.
"""

from __future__ import annotations

from core.settings.backend import JsonSettingsBackend, SettingsBackend, SettingsBackendError
from core.settings.store import DEFAULT_SYSTEM_PROMPT, DEFAULT_TASK_PROMPTS, TRANSLATE_TASK, SettingsStore

__all__: list[str] = [
    "DEFAULT_SYSTEM_PROMPT",
    "DEFAULT_TASK_PROMPTS",
    "TRANSLATE_TASK",
    "JsonSettingsBackend",
    "SettingsBackend",
    "SettingsBackendError",
    "SettingsStore",
]
