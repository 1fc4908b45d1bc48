"""Reader assistant facade.

``ReaderAssistant`` is what the host UI talks to: it cleans the selection, resolves the task
prompt, keeps the conversation session and routes every question through the query engine.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Self

from config.loader import ConfigLoader
from core.conversation.session import ConversationSession
from core.query.errors import (
    EmptyConversationError,
    EmptySelectionError,
    InvalidPromptError,
    QueryInProgressError,
)
from core.query.result import QueryResult
from core.settings.backend import JsonSettingsBackend
from core.shared_data import SharedData
from utils.file_utils import FileUtils
from utils.logger_utils import LoggerUtils
from utils.string_utils import StringUtils

if TYPE_CHECKING:
    import logging
    from pathlib import Path

    from core.query.engine import CompletionCallback, QueryEngine
    from core.settings.backend import SettingsBackend
    from core.settings.store import SettingsStore
    from models.config_models import Config

__all__: list[str] = ["ReaderAssistant"]

logger: logging.Logger = LoggerUtils.get_logger(__name__)


class ReaderAssistant:
    """Entry point for the reading application's "Ask" actions.

    Call ``component_load`` once before use and ``component_teardown`` on shutdown. Query
    methods never raise for expected failures; they return a ``QueryResult`` carrying the
    error and pass the same result to ``on_complete``.

    Args:
        config (Config): Application configuration.
        settings_backend (SettingsBackend): Host storage for the settings record.
    """

    def __init__(self, config: Config, settings_backend: SettingsBackend) -> None:
        self.shared_data: SharedData = SharedData(config, settings_backend)
        self.session: ConversationSession = ConversationSession()
        self._is_loaded: bool = False
        self._conversation_busy: bool = False

    @classmethod
    def from_config_file(
        cls,
        config_filename: str | Path,
        settings_backend: SettingsBackend | None = None,
    ) -> Self:
        """Load ``askgpt.ini``, configure logging from it and build the assistant.

        Without a host backend, settings are kept in ``SETTINGS.FILE`` under ``DATA_DIR``.

        Raises:
            ConfigLoaderError: If the configuration file is missing or invalid.
        """
        config: Config = ConfigLoader(config_filename=config_filename).config
        data_dir: str | None = config.GENERAL.DATA_DIR or None
        log_file: str = ""
        if config.GENERAL.LOG_FILE:
            log_file = str(FileUtils.resolve_path(config.GENERAL.LOG_FILE, base_dir=data_dir))
        LoggerUtils(log_file, level=config.GENERAL.LOG_LEVEL, use_null_console=not config.GENERAL.DEBUG)
        if config.GENERAL.DEBUG:
            LoggerUtils().set_level("DEBUG")
        if settings_backend is None:
            settings_backend = JsonSettingsBackend(FileUtils.resolve_path(config.SETTINGS.FILE, base_dir=data_dir))
        return cls(config, settings_backend)

    @property
    def is_loaded(self) -> bool:
        return self._is_loaded

    @property
    def engine(self) -> QueryEngine:
        return self.shared_data.query_engine

    @property
    def settings(self) -> SettingsStore:
        return self.shared_data.settings_store

    async def component_load(self) -> None:
        """Create the shared services, load the cache and the settings."""
        logger.info("ReaderAssistant initialization started")
        await self.shared_data.async_init()
        await self.shared_data.cache_manager.component_load()
        await self.shared_data.inflight_manager.component_load()
        self.shared_data.settings_store.load()
        self._is_loaded = True
        logger.info("ReaderAssistant initialized successfully")

    async def component_teardown(self) -> None:
        """Release pending requests and close the HTTP session."""
        if not self._is_loaded:
            return
        await self.shared_data.inflight_manager.component_teardown()
        await self.shared_data.cache_manager.component_teardown()
        await self.shared_data.http.close()
        self.session = ConversationSession()
        self._is_loaded = False
        logger.info("ReaderAssistant shutdown completed")

    @staticmethod
    def clean_selection(raw: Any) -> str:
        """Normalize a host selection (string or selection record) into plain text."""
        return StringUtils.clean_selection(raw)

    def resolve_prompt(self, task_name: str | None = None, custom_prompt: str | None = None) -> str:
        """Return the prompt to apply: the custom prompt if given, else the named task's prompt.

        Raises:
            InvalidPromptError: If neither yields a non-empty prompt.
        """
        if custom_prompt and custom_prompt.strip():
            return custom_prompt.strip()
        if task_name:
            prompt: str | None = self.settings.get_task_prompt(task_name)
            if prompt:
                return prompt
            logger.warning("Unknown task: '%s'", task_name)
        raise InvalidPromptError

    async def run_task(
        self,
        selected_text: Any,
        task_name: str | None = None,
        custom_prompt: str | None = None,
        *,
        on_complete: CompletionCallback | None = None,
    ) -> QueryResult:
        """Start a new conversation by applying a task to the selected text.

        Args:
            selected_text (Any): The host selection, as a string or selection record.
            task_name (str | None): Name of a configured task prompt, such as "Explain".
            custom_prompt (str | None): Free-form prompt; takes precedence over ``task_name``.
            on_complete (CompletionCallback | None): Called with the result in every case.

        Returns:
            QueryResult: The completion text or the error that ended the query.
        """
        text: str = self.clean_selection(selected_text)
        try:
            prompt: str = self.resolve_prompt(task_name, custom_prompt)
            if not text:
                raise EmptySelectionError
            self._check_idle()
        except (InvalidPromptError, EmptySelectionError, QueryInProgressError) as err:
            return await self.engine.finish(QueryResult.failure(err), on_complete)

        logger.info("Running task '%s' on %d characters", task_name or "custom", len(text))
        session: ConversationSession = ConversationSession()
        session.reset(text, prompt, self.settings.get_system_prompt())
        self.session = session
        result: QueryResult = await self._converse(session)
        return await self.engine.notify(result, on_complete)

    async def ask_follow_up(self, prompt: str, *, on_complete: CompletionCallback | None = None) -> QueryResult:
        """Continue the current conversation with another question.

        The question stays in the transcript even if the query fails. While another query is
        in flight the call is rejected and the transcript is left as it is.

        Args:
            prompt (str): The reader's question.
            on_complete (CompletionCallback | None): Called with the result in every case.

        Returns:
            QueryResult: The completion text or the error that ended the query.
        """
        question: str = StringUtils.ensure_str(prompt).strip()
        try:
            if not question:
                raise InvalidPromptError
            if not self.session.is_active:
                raise EmptyConversationError
            self._check_idle()
        except (InvalidPromptError, EmptyConversationError, QueryInProgressError) as err:
            return await self.engine.finish(QueryResult.failure(err), on_complete)

        session: ConversationSession = self.session
        session.append_user(question)
        result: QueryResult = await self._converse(session)
        return await self.engine.notify(result, on_complete)

    def _check_idle(self) -> None:
        """Refuse to touch the conversation while any completion request is pending.

        Raises:
            QueryInProgressError: If a conversation turn or another query is in flight.
        """
        if self._conversation_busy or self.shared_data.inflight_manager.pending_keys:
            logger.warning("Conversation left unchanged: another query is in flight")
            raise QueryInProgressError

    async def _converse(self, session: ConversationSession) -> QueryResult:
        """Query with the session's transcript and record the answer in that session.

        The answer is dropped if the conversation was reset or replaced meanwhile.
        """
        self._conversation_busy = True
        try:
            result: QueryResult = await self.engine.query_with_history(session.messages)
        finally:
            self._conversation_busy = False
        if result.ok and result.text is not None:
            if session is self.session:
                session.append_assistant(result.text)
            else:
                logger.info("Conversation changed while waiting; answer not recorded")
        return result

    async def quick_query(
        self,
        selected_text: Any,
        task_name: str,
        *,
        on_complete: CompletionCallback | None = None,
    ) -> QueryResult:
        """Apply a task to the selected text without touching the conversation."""
        text: str = self.clean_selection(selected_text)
        try:
            prompt: str = self.resolve_prompt(task_name)
            if not text:
                raise EmptySelectionError
        except (InvalidPromptError, EmptySelectionError) as err:
            return await self.engine.finish(QueryResult.failure(err), on_complete)
        return await self.engine.query(text, prompt, on_complete=on_complete)

    def reset_conversation(self) -> None:
        self.session = ConversationSession()
        logger.debug("Conversation history cleared")

    async def fetch_models(self) -> bool:
        return await self.settings.fetch_models(self.shared_data.http)
