"""Query engine package.

Provides the chat-completions query engine, its result type and its error taxonomy.
"""

from __future__ import annotations

from core.query.engine import QueryEngine
from core.query.errors import (
    ApiError,
    EmptyConversationError,
    EmptySelectionError,
    InvalidPromptError,
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

__all__: list[str] = [
    "ApiError",
    "EmptyConversationError",
    "EmptySelectionError",
    "InvalidPromptError",
    "MalformedResponseError",
    "MissingApiKeyError",
    "MissingModelError",
    "NetworkError",
    "QueryEngine",
    "QueryError",
    "QueryInProgressError",
    "QueryResult",
    "SettingsNotInitializedError",
    "UnexpectedResponseShapeError",
]
