"""Transport utilities for askgpt.

This package provides the asynchronous HTTP client used to reach the chat-completions
aggregator.
"""

from handlers.async_comm import AsyncCommError, AsyncCommTimeoutError, AsyncHttp, HttpResponse

__all__: list[str] = [
    "AsyncCommError",
    "AsyncCommTimeoutError",
    "AsyncHttp",
    "HttpResponse",
]
