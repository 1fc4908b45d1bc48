from __future__ import annotations

from typing import Any

import pytest

from models.settings_models import ModelInfo, ModelPricing, SettingsData, TaskPrompt


@pytest.mark.parametrize(
    ("price", "expected"),
    [
        (None, "Free"),
        ("0", "Free"),
        (0, "Free"),
        ("0.0", "Free"),
        ("0.000003", "$3.000"),
        (0.000015, "$15.000"),
        ("n/a", "Unknown"),
        ([], "Unknown"),
    ],
)
def test_format_price(price: Any, expected: str) -> None:
    assert ModelPricing.format_price(price) == expected


def test_pricing_label() -> None:
    assert ModelPricing(prompt="0.000003", completion="0.000015").label == " ($3.000 / $15.000)"
    assert ModelPricing(prompt="0", completion="0").label == ""
    assert ModelPricing(prompt="0", completion="abc").label == " (Free / Unknown)"


def test_model_info_from_dict_ignores_unknown_keys() -> None:
    model: ModelInfo = ModelInfo.from_dict(
        {
            "id": "openai/gpt-4o",
            "name": "OpenAI: GPT-4o",
            "context_length": 128000,
            "architecture": {"modality": "text->text"},
            "pricing": {"prompt": "0.0000025", "completion": "0.00001", "image": "0.003613"},
        }
    )

    assert model.display_name == "OpenAI: GPT-4o"
    assert model.context_length == 128000
    assert model.pricing.prompt == "0.0000025"


def test_settings_record_shape() -> None:
    data = SettingsData(
        api_key="k",
        selected_model="m",
        system_prompt="s",
        models=[ModelInfo(id="a/b")],
        task_prompts=[TaskPrompt(name="Explain", prompt="p")],
    )

    record: dict[str, Any] = data.to_record()

    assert record["task_prompts"] == [{"name": "Explain", "prompt": "p"}]
    assert record["models"][0]["id"] == "a/b"
    assert record["models"][0]["pricing"] == {"prompt": None, "completion": None}
