"""Errors returned by the query engine and the reader assistant.

Every error carries a short message suitable for showing to the reader as-is.
"""

from __future__ import annotations

from typing import ClassVar

__all__: list[str] = [
    "ApiError",
    "EmptyConversationError",
    "EmptySelectionError",
    "InvalidPromptError",
    "MalformedResponseError",
    "MissingApiKeyError",
    "MissingModelError",
    "NetworkError",
    "QueryError",
    "QueryInProgressError",
    "SettingsNotInitializedError",
    "UnexpectedResponseShapeError",
]


class QueryError(Exception):
    """Base class for failures that end a query.

    Attributes:
        DEFAULT_MESSAGE (ClassVar[str]): Message used when none is given.
    """

    DEFAULT_MESSAGE: ClassVar[str] = "Query failed"

    def __init__(self, msg: str | None = None) -> None:
        self.msg: str = msg or self.DEFAULT_MESSAGE
        super().__init__(self.msg)


class SettingsNotInitializedError(QueryError):
    DEFAULT_MESSAGE = "Settings not initialized"


class MissingApiKeyError(QueryError):
    DEFAULT_MESSAGE = "API key not set"


class MissingModelError(QueryError):
    DEFAULT_MESSAGE = "No model selected"


class NetworkError(QueryError):
    DEFAULT_MESSAGE = "Network request failed"


class MalformedResponseError(QueryError):
    DEFAULT_MESSAGE = "Failed to parse API response"


class ApiError(QueryError):
    """The API answered with a non-200 status.

    Attributes:
        status (int | None): HTTP status code of the response.
        api_message (str): Error text extracted from the response body.
    """

    DEFAULT_MESSAGE = "Unknown error"

    def __init__(self, api_message: str | None = None, *, status: int | None = None) -> None:
        self.api_message: str = api_message or self.DEFAULT_MESSAGE
        self.status: int | None = status
        super().__init__(f"API Error: {self.api_message}")


class UnexpectedResponseShapeError(QueryError):
    DEFAULT_MESSAGE = "Unexpected API response format"


class QueryInProgressError(QueryError):
    DEFAULT_MESSAGE = "Another query is still in progress"


class EmptyConversationError(QueryError):
    DEFAULT_MESSAGE = "No conversation to continue"


class InvalidPromptError(QueryError):
    DEFAULT_MESSAGE = "No prompt given"


class EmptySelectionError(QueryError):
    DEFAULT_MESSAGE = "No text selected"
