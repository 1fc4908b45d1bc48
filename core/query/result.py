from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from core.query.errors import QueryError

__all__: list[str] = ["QueryResult"]


@dataclass(frozen=True)
class QueryResult:
    """Outcome of a query: either the completion text or the error that ended it.

    Attributes:
        text (str | None): Completion text, None on failure.
        error (QueryError | None): The failure, None on success.
        cached (bool): True if ``text`` came from the response cache.
    """

    text: str | None = None
    error: QueryError | None = None
    cached: bool = False

    @property
    def ok(self) -> bool:
        return self.error is None and self.text is not None

    @property
    def message(self) -> str:
        """Text to show the reader: the completion, or the error message."""
        if self.error is not None:
            return self.error.msg
        return self.text or ""

    @classmethod
    def success(cls, text: str, *, cached: bool = False) -> QueryResult:
        return cls(text=text, cached=cached)

    @classmethod
    def failure(cls, error: QueryError) -> QueryResult:
        return cls(error=error)
