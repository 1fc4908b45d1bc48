"""Data models for the plugin settings record and the model catalogue.

``ModelInfo`` mirrors one entry of the aggregator's model-listing response. Unknown keys in
that response are ignored so new API fields do not break decoding.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Final

from dataclasses_json import DataClassJsonMixin, Undefined, dataclass_json

__all__: list[str] = ["ModelInfo", "ModelPricing", "SettingsData", "TaskPrompt"]

TOKENS_PER_MILLION: Final[int] = 1_000_000


@dataclass_json(undefined=Undefined.EXCLUDE)
@dataclass
class ModelPricing(DataClassJsonMixin):
    """Per-token prices in USD, as decimal strings."""

    prompt: str | None = None
    completion: str | None = None

    @staticmethod
    def format_price(price: Any) -> str:
        """Format a per-token price as a per-million-tokens label.

        Args:
            price (Any): Decimal string or number from the API.

        Returns:
            str: "Free" for zero or missing, "Unknown" if not numeric, otherwise "$x.xxx".
        """
        if price is None or price in ("0", 0):
            return "Free"
        try:
            num_price = float(price)
        except (TypeError, ValueError):
            return "Unknown"
        if num_price == 0:
            return "Free"
        return f"${num_price * TOKENS_PER_MILLION:.3f}"

    @property
    def label(self) -> str:
        """Menu suffix such as " ($3.000 / $15.000)", empty when both prices are free."""
        prompt_price: str = self.format_price(self.prompt)
        completion_price: str = self.format_price(self.completion)
        if prompt_price == "Free" and completion_price == "Free":
            return ""
        return f" ({prompt_price} / {completion_price})"


@dataclass_json(undefined=Undefined.EXCLUDE)
@dataclass
class ModelInfo(DataClassJsonMixin):
    """One model offered by the aggregator."""

    id: str
    name: str = ""
    description: str = ""
    context_length: int | None = None
    pricing: ModelPricing = field(default_factory=ModelPricing)

    @property
    def display_name(self) -> str:
        return self.name or self.id


@dataclass_json
@dataclass
class TaskPrompt(DataClassJsonMixin):
    """A named task selectable by the reader, such as "Explain"."""

    name: str
    prompt: str


@dataclass
class SettingsData:
    """The persisted settings record.

    Attributes:
        api_key (str): Aggregator API key.
        selected_model (str): Identifier of the model used for completions.
        system_prompt (str): System turn placed first in every conversation.
        models (list[ModelInfo]): Last fetched model catalogue.
        task_prompts (list[TaskPrompt]): Named task prompts, in menu order.
    """

    api_key: str = ""
    selected_model: str = ""
    system_prompt: str = ""
    models: list[ModelInfo] = field(default_factory=list)
    task_prompts: list[TaskPrompt] = field(default_factory=list)

    def to_record(self) -> dict[str, Any]:
        """Return the JSON-serialisable record written to the settings backend."""
        return {
            "api_key": self.api_key,
            "selected_model": self.selected_model,
            "system_prompt": self.system_prompt,
            "models": [model.to_dict() for model in self.models],
            "task_prompts": [task.to_dict() for task in self.task_prompts],
        }
