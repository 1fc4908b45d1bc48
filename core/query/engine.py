"""Query engine for the chat-completions API.

Turns a selected text and task prompt, or a whole conversation, into a completion. Cached
responses are returned without touching the network; everything else goes through the
in-flight guard, the HTTP transport and response validation before being cached.
"""

from __future__ import annotations

import inspect
from typing import TYPE_CHECKING, Any, TypeAlias

from core.cache.inflight_manager import InFlightConflictError
from core.cache.manager import ResponseCacheManager
from core.query.errors import (
    ApiError,
    EmptyConversationError,
    MalformedResponseError,
    MissingApiKeyError,
    MissingModelError,
    NetworkError,
    QueryError,
    QueryInProgressError,
    SettingsNotInitializedError,
    UnexpectedResponseShapeError,
)
from core.query.result import QueryResult
from handlers.async_comm import AsyncCommError, AsyncCommTimeoutError
from models.message_models import Message, Role
from utils.logger_utils import LoggerUtils
from utils.string_utils import StringUtils

if TYPE_CHECKING:
    import logging
    from collections.abc import Awaitable, Callable, Sequence

    from core.cache.inflight_manager import InFlightManager
    from core.settings.store import SettingsStore
    from handlers.async_comm import AsyncHttp, HttpResponse
    from models.config_models import Config

    CompletionCallback: TypeAlias = Callable[[QueryResult], Awaitable[None] | None]

__all__: list[str] = ["QueryEngine", "build_user_content"]

logger: logging.Logger = LoggerUtils.get_logger(__name__)

HTTP_OK: int = 200


def build_user_content(prompt: str, text: str) -> str:
    """Join a task prompt and the selected text into the first user turn."""
    return f"{prompt}\n\nText: {text}"


class QueryEngine:
    """Resolves queries from the cache or the chat-completions API.

    Public methods never raise ``QueryError``; failures come back as the ``error`` of the
    returned ``QueryResult`` and are also passed to the completion callback.
    """

    def __init__(
        self,
        config: Config,
        *,
        settings: SettingsStore | None,
        cache: ResponseCacheManager,
        http: AsyncHttp,
        inflight: InFlightManager,
    ) -> None:
        self.config: Config = config
        self.settings: SettingsStore | None = settings
        self.cache: ResponseCacheManager = cache
        self.http: AsyncHttp = http
        self.inflight: InFlightManager = inflight
        self._timeout: float = config.API.TIMEOUT
        if self._timeout <= 0:
            logger.warning("API request timeout is disabled; a stalled request will wait indefinitely")

    async def query(
        self,
        text: str,
        prompt: str,
        *,
        on_complete: CompletionCallback | None = None,
    ) -> QueryResult:
        """Run a single-shot query for ``text`` with the task ``prompt``.

        The cache is consulted before the settings, so cached answers remain available
        even without an API key.

        Args:
            text (str): The selected text.
            prompt (str): The task prompt.
            on_complete (CompletionCallback | None): Called with the result in every case.

        Returns:
            QueryResult: The completion text or the error that ended the query.
        """
        key: str = ResponseCacheManager.fingerprint(text, prompt)
        result: QueryResult
        cached: QueryResult | None = self._lookup(key)
        if cached is not None:
            result = cached
        else:
            try:
                api_key, model = self._require_settings()
                system_prompt: str = self.settings.get_system_prompt() if self.settings else ""
                messages: list[Message] = [
                    Message(Role.SYSTEM, system_prompt),
                    Message(Role.USER, build_user_content(prompt, text)),
                ]
                result = await self._fetch_guarded(key, messages, api_key=api_key, model=model)
            except QueryError as err:
                result = QueryResult.failure(err)
        return await self.finish(result, on_complete)

    async def query_with_history(
        self,
        messages: Sequence[Message],
        *,
        on_complete: CompletionCallback | None = None,
    ) -> QueryResult:
        """Run a query carrying the whole conversation transcript.

        The cache key is built from the content of the last message only, so any two
        conversations ending in the same message share one cache slot.

        Args:
            messages (Sequence[Message]): The transcript, sent verbatim.
            on_complete (CompletionCallback | None): Called with the result in every case.

        Returns:
            QueryResult: The completion text or the error that ended the query.
        """
        result: QueryResult
        try:
            api_key, model = self._require_settings()
            if not messages:
                raise EmptyConversationError
            key: str = ResponseCacheManager.fingerprint(messages[-1].content, ResponseCacheManager.HISTORY_TASK)
            cached: QueryResult | None = self._lookup(key)
            if cached is not None:
                result = cached
            else:
                result = await self._fetch_guarded(key, list(messages), api_key=api_key, model=model)
        except QueryError as err:
            result = QueryResult.failure(err)
        return await self.finish(result, on_complete)

    def _lookup(self, key: str) -> QueryResult | None:
        entry = self.cache.get(key)
        if entry is None:
            return None
        return QueryResult.success(entry.response, cached=True)

    def _require_settings(self) -> tuple[str, str]:
        """Return the API key and model, checking each precondition in turn.

        Raises:
            SettingsNotInitializedError: If no settings have been loaded.
            MissingApiKeyError: If the API key is empty.
            MissingModelError: If no model is selected.
        """
        if self.settings is None or not self.settings.is_loaded:
            raise SettingsNotInitializedError
        api_key: str = self.settings.get_api_key()
        if not api_key:
            raise MissingApiKeyError
        model: str = self.settings.get_selected_model()
        if not model:
            raise MissingModelError
        return api_key, model

    async def _fetch_guarded(self, key: str, messages: list[Message], *, api_key: str, model: str) -> QueryResult:
        """Perform the request unless an identical one is already in flight.

        Raises:
            QueryInProgressError: If a different request is in flight.
            NetworkError: If waiting for the identical request failed.
        """
        try:
            shared: QueryResult | None = await self.inflight.mark_inflight_start(key)
        except InFlightConflictError as err:
            raise QueryInProgressError from err
        except TimeoutError as err:
            msg = f"Network request failed: {err}"
            raise NetworkError(msg) from err

        if shared is not None:
            logger.debug("Sharing result of in-flight request")
            return shared

        try:
            result: QueryResult
            try:
                text: str = await self._fetch(messages, api_key=api_key, model=model)
            except QueryError as err:
                result = QueryResult.failure(err)
            else:
                await self.cache.put(key, text)
                result = QueryResult.success(text)
        except BaseException as err:
            await self.inflight.store_inflight_exception(key, err)
            raise
        await self.inflight.store_inflight_result(key, result)
        return result

    async def _fetch(self, messages: list[Message], *, api_key: str, model: str) -> str:
        """POST the transcript and return the completion text.

        Raises:
            NetworkError: If the request did not complete.
            MalformedResponseError: If the body is not JSON.
            ApiError: If the status is not 200.
            UnexpectedResponseShapeError: If the body lacks ``choices[0].message.content``.
        """
        headers: dict[str, str] = {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {api_key}",
        }
        payload: dict[str, Any] = {
            "model": model,
            "messages": [message.to_payload() for message in messages],
        }
        logger.debug("Sending %d messages to model '%s' (api key length %d)", len(messages), model, len(api_key))

        try:
            response: HttpResponse = await self.http.post_json(
                url=self.config.API.COMPLETIONS_URL,
                payload=payload,
                headers=headers,
                total_timeout=self._timeout,
            )
        except AsyncCommTimeoutError as err:
            logger.warning("Completion request timed out: %s", err)
            msg = f"Network request failed: {err}"
            raise NetworkError(msg) from err
        except AsyncCommError as err:
            logger.warning("Completion request failed: %s", err)
            msg = f"Network request failed: {err}"
            raise NetworkError(msg) from err

        try:
            body: Any = response.json()
        except ValueError as err:
            logger.warning("Unparseable response (status %d): %s", response.status, StringUtils.preview(response.text))
            raise MalformedResponseError from err

        if response.status != HTTP_OK:
            api_message: str = self.extract_error_message(body)
            logger.warning("API error (status %d): %s", response.status, api_message)
            raise ApiError(api_message, status=response.status)

        return self.extract_content(body)

    @staticmethod
    def extract_error_message(body: Any) -> str:
        """Pick the most specific error text out of an error response body.

        Checks ``error.message``, then ``error`` as a string, then ``message``.
        """
        if not isinstance(body, dict):
            return ApiError.DEFAULT_MESSAGE
        error: Any = body.get("error")
        if isinstance(error, dict) and isinstance(error.get("message"), str) and error["message"]:
            return error["message"]
        if isinstance(error, str) and error:
            return error
        message: Any = body.get("message")
        if isinstance(message, str) and message:
            return message
        return ApiError.DEFAULT_MESSAGE

    @staticmethod
    def extract_content(body: Any) -> str:
        """Return ``choices[0].message.content`` from a successful response body.

        Raises:
            UnexpectedResponseShapeError: If any level is missing or the content is not a string.
        """
        try:
            content: Any = body["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError) as err:
            raise UnexpectedResponseShapeError from err
        if not isinstance(content, str):
            raise UnexpectedResponseShapeError
        return content

    @staticmethod
    async def finish(result: QueryResult, on_complete: CompletionCallback | None) -> QueryResult:
        """Log the outcome and hand the result to ``on_complete``, awaiting it if needed."""
        if result.error is not None:
            logger.info("Query failed: %s", result.error.msg)
        elif result.cached:
            logger.info("Query answered from cache")
        return await QueryEngine.notify(result, on_complete)

    @staticmethod
    async def notify(result: QueryResult, on_complete: CompletionCallback | None) -> QueryResult:
        """Pass the result to ``on_complete``, awaiting it if it is a coroutine function."""
        if on_complete is not None:
            outcome: Awaitable[None] | None = on_complete(result)
            if inspect.isawaitable(outcome):
                await outcome
        return result
