"""Settings store for the API key, model selection, prompts and model catalogue.

The store reads and writes one record through an injected ``SettingsBackend``. On load,
saved values are merged into the built-in defaults and the merged record is written back,
so the stored record always matches the current defaults' shape.
"""

from __future__ import annotations

from dataclasses import replace
from typing import TYPE_CHECKING, Any, Final

from handlers.async_comm import AsyncCommError
from models.settings_models import ModelInfo, SettingsData, TaskPrompt
from utils.logger_utils import LoggerUtils

if TYPE_CHECKING:
    import logging

    from core.settings.backend import SettingsBackend
    from handlers.async_comm import AsyncHttp, HttpResponse
    from models.config_models import Config

__all__: list[str] = [
    "DEFAULT_SYSTEM_PROMPT",
    "DEFAULT_TASK_PROMPTS",
    "TRANSLATE_TASK",
    "SettingsStore",
]

logger: logging.Logger = LoggerUtils.get_logger(__name__)

DEFAULT_SYSTEM_PROMPT: Final[str] = "You are an AI assistant helping users better understand any text they select. "
TRANSLATE_TASK: Final[str] = "Translate"
DEFAULT_TASK_PROMPTS: Final[tuple[tuple[str, str], ...]] = (
    ("Explain", "Explain this text in simple terms"),
    ("Summarize", "Provide a concise summary of this text"),
    (TRANSLATE_TASK, "Translate this text to English"),
)


def _default_settings() -> SettingsData:
    return SettingsData(
        system_prompt=DEFAULT_SYSTEM_PROMPT,
        task_prompts=[TaskPrompt(name=name, prompt=prompt) for name, prompt in DEFAULT_TASK_PROMPTS],
    )


class SettingsStore:
    """Holds the plugin settings and persists every change.

    Args:
        backend (SettingsBackend): Host storage the record is read from and written to.
        config (Config): Application configuration; supplies the namespace key and the
            model-listing URL.
    """

    def __init__(self, backend: SettingsBackend, config: Config) -> None:
        self.backend: SettingsBackend = backend
        self.config: Config = config
        self.namespace: str = config.SETTINGS.NAMESPACE
        self._data: SettingsData = _default_settings()
        self._is_loaded: bool = False

    @property
    def is_loaded(self) -> bool:
        return self._is_loaded

    @property
    def data(self) -> SettingsData:
        return self._data

    def load(self) -> SettingsData:
        """Load the saved record and merge it into the defaults.

        - A non-empty saved ``api_key`` or ``selected_model`` replaces the default.
        - Saved task prompts update the default with the same name; others are dropped.
        - The system prompt is always reset to ``DEFAULT_SYSTEM_PROMPT``.

        The merged record is saved immediately. If nothing was saved or reading failed,
        the defaults are saved instead.

        Returns:
            SettingsData: The loaded settings.
        """
        self._data = _default_settings()
        saved: Any = None
        try:
            saved = self.backend.read_setting(self.namespace)
        except Exception as err:  # noqa: BLE001
            logger.warning("Failed to load saved settings, using defaults: %s", err)
            saved = None

        if isinstance(saved, dict):
            self._merge(saved)
            logger.debug("Merged saved settings with the current default system prompt")
        else:
            if saved is not None:
                logger.warning("Saved settings are not a record (%s); using defaults", type(saved).__name__)
            logger.debug("Saving default settings")

        self._is_loaded = True
        self.save()
        return self._data

    def _merge(self, saved: dict[str, Any]) -> None:
        api_key: Any = saved.get("api_key")
        if isinstance(api_key, str) and api_key:
            self._data.api_key = api_key

        selected_model: Any = saved.get("selected_model")
        if isinstance(selected_model, str) and selected_model:
            self._data.selected_model = selected_model

        models: Any = saved.get("models")
        if isinstance(models, list):
            self._data.models = self.decode_models(models)

        task_prompts: Any = saved.get("task_prompts")
        if isinstance(task_prompts, list):
            by_name: dict[str, TaskPrompt] = {task.name: task for task in self._data.task_prompts}
            for raw in task_prompts:
                if not isinstance(raw, dict):
                    continue
                name: Any = raw.get("name")
                prompt: Any = raw.get("prompt")
                if not (isinstance(name, str) and name and isinstance(prompt, str) and prompt):
                    continue
                if name in by_name:
                    by_name[name].prompt = prompt
                else:
                    logger.debug("Dropping saved task prompt without a default: '%s'", name)

        self._data.system_prompt = DEFAULT_SYSTEM_PROMPT

    def save(self) -> bool:
        """Write the current record to the backend.

        Returns:
            bool: True if the backend accepted the record.
        """
        try:
            self.backend.save_setting(self.namespace, self._data.to_record())
        except Exception as err:  # noqa: BLE001
            logger.error("Failed to save settings: %s", err)
            return False
        return True

    def get_api_key(self) -> str:
        return self._data.api_key

    def get_selected_model(self) -> str:
        return self._data.selected_model

    def get_system_prompt(self) -> str:
        return self._data.system_prompt

    def get_models(self) -> list[ModelInfo]:
        return list(self._data.models)

    def get_task_prompts(self) -> list[TaskPrompt]:
        """Return copies of the task prompts; change them with ``set_task_prompt``."""
        return [replace(task) for task in self._data.task_prompts]

    def get_task_prompt(self, name: str) -> str | None:
        """Return the prompt of the named task, or None if there is no such task."""
        for task in self._data.task_prompts:
            if task.name == name:
                return task.prompt
        return None

    def get_model(self, model_id: str) -> ModelInfo | None:
        return next((model for model in self._data.models if model.id == model_id), None)

    def update(
        self,
        *,
        api_key: str | None = None,
        system_prompt: str | None = None,
        translate_prompt: str | None = None,
    ) -> None:
        """Apply the values entered in the settings dialog and persist them.

        Arguments left as None are not changed. The system prompt is kept for the current
        session only, because ``load`` restores the default.
        """
        if api_key is not None:
            self._data.api_key = api_key.strip()
        if system_prompt is not None:
            self._data.system_prompt = system_prompt
        if translate_prompt is not None:
            self._set_prompt(TRANSLATE_TASK, translate_prompt)
        self.save()
        logger.info("Settings updated")

    def set_task_prompt(self, name: str, prompt: str) -> None:
        """Change the prompt of a task, adding the task if it does not exist yet."""
        self._set_prompt(name, prompt)
        self.save()

    def _set_prompt(self, name: str, prompt: str) -> None:
        for task in self._data.task_prompts:
            if task.name == name:
                task.prompt = prompt
                return
        self._data.task_prompts.append(TaskPrompt(name=name, prompt=prompt))

    def select_model(self, model_id: str) -> None:
        """Select the model used for completions and persist the choice."""
        if self._data.models and self.get_model(model_id) is None:
            logger.warning("Selected model '%s' is not in the fetched catalogue", model_id)
        self._data.selected_model = model_id
        self.save()
        logger.info("Selected model: %s", model_id)

    async def fetch_models(self, http: AsyncHttp) -> bool:
        """Replace the model catalogue with the aggregator's current model list.

        Args:
            http (AsyncHttp): Transport used for the request.

        Returns:
            bool: True if the catalogue was replaced and saved.
        """
        headers: dict[str, str] = {}
        if self._data.api_key:
            headers["Authorization"] = f"Bearer {self._data.api_key}"
        try:
            response: HttpResponse = await http.get(
                url=self.config.API.MODELS_URL,
                headers=headers,
                total_timeout=self.config.API.TIMEOUT,
            )
        except AsyncCommError as err:
            logger.warning("Failed to fetch models: %s", err)
            return False

        if response.status != 200:
            logger.warning("Failed to fetch models: status %d", response.status)
            return False

        try:
            body: Any = response.json()
        except ValueError as err:
            logger.warning("Failed to parse models response: %s", err)
            return False

        data: Any = body.get("data") if isinstance(body, dict) else None
        if not isinstance(data, list):
            logger.warning("Models response has no 'data' list")
            return False

        self._data.models = self.decode_models(data)
        logger.info("Successfully fetched %d models", len(self._data.models))
        self.save()
        return True

    @staticmethod
    def decode_models(raw_models: list[Any]) -> list[ModelInfo]:
        """Decode model records, skipping entries that have no usable ``id``."""
        models: list[ModelInfo] = []
        for raw in raw_models:
            if not isinstance(raw, dict) or not isinstance(raw.get("id"), str) or not raw["id"]:
                logger.warning("Skipping invalid model entry")
                continue
            record: dict[str, Any] = dict(raw)
            if not isinstance(record.get("pricing"), dict):
                record.pop("pricing", None)
            try:
                models.append(ModelInfo.from_dict(record))
            except (KeyError, TypeError, ValueError) as err:
                logger.warning("Skipping undecodable model '%s': %s", raw["id"], err)
        return models
