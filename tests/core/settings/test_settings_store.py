"""Tests for SettingsStore merge policy, mutators and model fetching."""

from __future__ import annotations

import json
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest

from core.settings.store import DEFAULT_SYSTEM_PROMPT, SettingsStore
from handlers.async_comm import AsyncCommError, HttpResponse
from models.config_models import Config
from models.settings_models import ModelInfo


class _MemoryBackend:
    def __init__(self, record: Any = None, *, fail_read: bool = False) -> None:
        self.store: dict[str, Any] = {} if record is None else {"askgpt": record}
        self.fail_read: bool = fail_read
        self.saves: int = 0

    def read_setting(self, key: str) -> Any | None:
        if self.fail_read:
            msg = "storage unavailable"
            raise OSError(msg)
        return self.store.get(key)

    def save_setting(self, key: str, value: Any) -> None:
        self.saves += 1
        self.store[key] = value


def _prompts(store: SettingsStore) -> dict[str, str]:
    return {task.name: task.prompt for task in store.get_task_prompts()}


def test_load_without_saved_record_writes_defaults() -> None:
    backend = _MemoryBackend()
    store = SettingsStore(backend, Config())

    store.load()

    assert store.is_loaded is True
    assert store.get_api_key() == ""
    assert store.get_selected_model() == ""
    assert store.get_system_prompt() == DEFAULT_SYSTEM_PROMPT
    assert _prompts(store) == {
        "Explain": "Explain this text in simple terms",
        "Summarize": "Provide a concise summary of this text",
        "Translate": "Translate this text to English",
    }
    assert backend.store["askgpt"]["system_prompt"] == DEFAULT_SYSTEM_PROMPT
    assert backend.saves == 1


def test_load_with_read_failure_writes_defaults(caplog: pytest.LogCaptureFixture) -> None:
    backend = _MemoryBackend({"api_key": "sk-saved"}, fail_read=True)
    store = SettingsStore(backend, Config())

    store.load()

    assert store.get_api_key() == ""
    assert backend.saves == 1
    assert any("Failed to load saved settings" in rec.message for rec in caplog.records)


def test_load_merges_task_prompts_by_name() -> None:
    backend = _MemoryBackend(
        {
            "api_key": "sk-saved",
            "selected_model": "anthropic/claude-3.5-sonnet",
            "task_prompts": [
                {"name": "Translate", "prompt": "Translate this text to French"},
                {"name": "Custom", "prompt": "Do something else"},
                {"name": "Explain"},
                "not a record",
            ],
        }
    )
    store = SettingsStore(backend, Config())

    store.load()

    assert store.get_api_key() == "sk-saved"
    assert store.get_selected_model() == "anthropic/claude-3.5-sonnet"
    assert _prompts(store) == {
        "Explain": "Explain this text in simple terms",
        "Summarize": "Provide a concise summary of this text",
        "Translate": "Translate this text to French",
    }
    assert store.get_task_prompt("Custom") is None
    saved_names: list[str] = [task["name"] for task in backend.store["askgpt"]["task_prompts"]]
    assert saved_names == ["Explain", "Summarize", "Translate"]


def test_load_keeps_defaults_for_empty_saved_values() -> None:
    backend = _MemoryBackend({"api_key": "", "selected_model": ""})
    store = SettingsStore(backend, Config())

    store.load()

    assert store.get_api_key() == ""
    assert store.get_selected_model() == ""


def test_load_always_restores_default_system_prompt() -> None:
    backend = _MemoryBackend({"system_prompt": "Be terse."})
    store = SettingsStore(backend, Config())

    store.load()

    assert store.get_system_prompt() == DEFAULT_SYSTEM_PROMPT
    assert backend.store["askgpt"]["system_prompt"] == DEFAULT_SYSTEM_PROMPT


def test_load_decodes_saved_models_and_skips_invalid() -> None:
    backend = _MemoryBackend(
        {
            "models": [
                {"id": "openai/gpt-4o", "name": "GPT-4o", "pricing": {"prompt": "0.0000025", "completion": "0.00001"}},
                {"name": "no id"},
                {"id": "free/model", "pricing": "broken", "unknown_field": 1},
            ]
        }
    )
    store = SettingsStore(backend, Config())

    store.load()

    models: list[ModelInfo] = store.get_models()
    assert [model.id for model in models] == ["openai/gpt-4o", "free/model"]
    assert models[0].pricing.label == " ($2.500 / $10.000)"
    assert models[1].pricing.label == ""
    assert models[1].display_name == "free/model"


def test_update_persists_all_values() -> None:
    backend = _MemoryBackend()
    store = SettingsStore(backend, Config())
    store.load()

    store.update(api_key="  sk-new  ", system_prompt="Custom system", translate_prompt="Translate this text to German")

    record: dict[str, Any] = backend.store["askgpt"]
    assert record["api_key"] == "sk-new"
    assert record["system_prompt"] == "Custom system"
    assert store.get_task_prompt("Translate") == "Translate this text to German"
    assert {"name": "Translate", "prompt": "Translate this text to German"} in record["task_prompts"]


def test_set_task_prompt_adds_new_task() -> None:
    store = SettingsStore(_MemoryBackend(), Config())
    store.load()

    store.set_task_prompt("Define", "Define the key terms in this text")

    assert store.get_task_prompt("Define") == "Define the key terms in this text"
    assert store.get_task_prompts()[-1].name == "Define"


def test_select_model_persists_choice() -> None:
    backend = _MemoryBackend()
    store = SettingsStore(backend, Config())
    store.load()

    store.select_model("mistralai/mistral-7b-instruct")

    assert store.get_selected_model() == "mistralai/mistral-7b-instruct"
    assert backend.store["askgpt"]["selected_model"] == "mistralai/mistral-7b-instruct"


def test_save_failure_is_logged(caplog: pytest.LogCaptureFixture) -> None:
    backend = MagicMock()
    backend.read_setting.return_value = None
    backend.save_setting.side_effect = OSError("read-only")
    store = SettingsStore(backend, Config())

    store.load()

    assert store.save() is False
    assert any("Failed to save settings" in rec.message for rec in caplog.records)


@pytest.mark.asyncio
async def test_fetch_models_replaces_catalogue() -> None:
    backend = _MemoryBackend({"api_key": "sk-saved", "models": [{"id": "old/model"}]})
    store = SettingsStore(backend, Config())
    store.load()
    http = MagicMock()
    http.get = AsyncMock(
        return_value=HttpResponse(
            status=200,
            text=json.dumps(
                {
                    "data": [
                        {"id": "a/one", "name": "One", "context_length": 8192, "pricing": {"prompt": "0", "completion": "0"}},
                        {"id": "b/two", "description": "Second"},
                    ]
                }
            ),
        )
    )

    assert await store.fetch_models(http) is True

    assert [model.id for model in store.get_models()] == ["a/one", "b/two"]
    assert store.get_models()[0].context_length == 8192
    assert [model["id"] for model in backend.store["askgpt"]["models"]] == ["a/one", "b/two"]
    kwargs: dict[str, Any] = http.get.await_args.kwargs
    assert kwargs["url"] == "https://openrouter.ai/api/v1/models"
    assert kwargs["headers"] == {"Authorization": "Bearer sk-saved"}


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "response",
    [
        HttpResponse(status=200, text="not json"),
        HttpResponse(status=200, text=json.dumps({"models": []})),
        HttpResponse(status=500, text=json.dumps({"error": "down"})),
    ],
)
async def test_fetch_models_failure_keeps_catalogue(response: HttpResponse) -> None:
    store = SettingsStore(_MemoryBackend({"models": [{"id": "old/model"}]}), Config())
    store.load()
    http = MagicMock()
    http.get = AsyncMock(return_value=response)

    assert await store.fetch_models(http) is False

    assert [model.id for model in store.get_models()] == ["old/model"]


@pytest.mark.asyncio
async def test_fetch_models_transport_failure_returns_false() -> None:
    store = SettingsStore(_MemoryBackend(), Config())
    store.load()
    http = MagicMock()
    http.get = AsyncMock(side_effect=AsyncCommError("refused"))

    assert await store.fetch_models(http) is False


def test_task_prompts_are_returned_as_copies() -> None:
    backend = _MemoryBackend()
    store = SettingsStore(backend, Config())
    store.load()

    store.get_task_prompts()[0].prompt = "changed behind the store's back"

    assert store.get_task_prompt("Explain") == "Explain this text in simple terms"
    assert backend.store["askgpt"]["task_prompts"][0]["prompt"] == "Explain this text in simple terms"
