"""Asynchronous HTTP utilities for the chat-completions aggregator.

This module provides a thin aiohttp wrapper that returns the status code and body of every
response, including error responses, so callers can decode aggregator error payloads
themselves. Transport failures such as timeouts, refused connections and dropped
connections are raised as ``AsyncCommError``.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Final, Literal, Self

import aiohttp
from aiohttp.client import ClientSession

from utils.logger_utils import LoggerUtils

if TYPE_CHECKING:
    import logging


__all__: list[str] = ["AsyncCommError", "AsyncCommTimeoutError", "AsyncHttp", "HttpResponse"]

logger: logging.Logger = LoggerUtils.get_logger(__name__)

HTTPMethod = Literal["GET", "POST"]

CONNECT_TIMEOUT: Final[float] = 1.0


@dataclass(frozen=True)
class HttpResponse:
    """Status and decoded body of a completed HTTP exchange.

    Attributes:
        status (int): HTTP status code.
        text (str): Response body decoded as UTF-8.
    """

    status: int
    text: str

    def json(self) -> Any:
        """Parse the body as JSON.

        Raises:
            ValueError: If the body is not valid JSON.
        """
        return json.loads(self.text)


class AsyncHttp:
    """Asynchronous HTTP client that never raises for HTTP error statuses.

    The aiohttp session is created lazily on first use and can be reopened after ``close``.
    """

    def __init__(self) -> None:
        logger.info("%s initializing", self.__class__.__name__)
        self.__session: ClientSession | None = None

    async def __aenter__(self) -> Self:
        logger.debug("%s entering context", self.__class__.__name__)
        self.initialize_session(suppress_already_log=True)
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        _ = exc_type, exc_val, exc_tb
        logger.debug("%s exiting context", self.__class__.__name__)
        await self.close()

    def initialize_session(self, *, suppress_already_log: bool = False) -> None:
        """Initialize the aiohttp session.

        Args:
            suppress_already_log (bool): If True, do not log when the session is already initialized.
        """
        if self.__session is None or self.__session.closed:
            self.__session = ClientSession(raise_for_status=False)
            logger.debug("%s session initialized", self.__class__.__name__)
        elif not suppress_already_log:
            logger.debug("%s session already initialized", self.__class__.__name__)

    @property
    def session(self) -> ClientSession:
        """Get or create the current aiohttp session."""
        self.initialize_session(suppress_already_log=True)
        if self.__session is None:
            msg = "Session could not be initialized"
            raise RuntimeError(msg)
        return self.__session

    @property
    def closed(self) -> bool:
        return self.__session is None or self.__session.closed

    async def close(self) -> None:
        """Close the aiohttp session if it is open."""
        if self.__session and not self.__session.closed:
            await self.__session.close()
            logger.info("%s session closed", self.__class__.__name__)
        self.__session = None

    async def get(
        self,
        *,
        url: str,
        headers: dict[str, str] | None = None,
        total_timeout: float = 0.0,
    ) -> HttpResponse:
        """Perform an asynchronous HTTP GET request.

        Args:
            url (str): The URL to send the GET request to.
            headers (dict[str, str] | None): Optional request headers.
            total_timeout (float): Total timeout for the request in seconds. 0 disables it.

        Returns:
            HttpResponse: The status and body, whatever the status code.
        """
        return await self._request("GET", url=url, headers=headers, total_timeout=total_timeout)

    async def post_json(
        self,
        *,
        url: str,
        payload: Any,
        headers: dict[str, str] | None = None,
        total_timeout: float = 0.0,
    ) -> HttpResponse:
        """Perform an asynchronous HTTP POST request with a JSON body.

        Args:
            url (str): The URL to send the POST request to.
            payload (Any): JSON-serialisable request body.
            headers (dict[str, str] | None): Optional request headers.
            total_timeout (float): Total timeout for the request in seconds. 0 disables it.

        Returns:
            HttpResponse: The status and body, whatever the status code.
        """
        return await self._request("POST", url=url, headers=headers, total_timeout=total_timeout, json=payload)

    @staticmethod
    def build_timeout(total_timeout: float) -> aiohttp.ClientTimeout:
        """Translate a total timeout in seconds to an aiohttp timeout."""
        if total_timeout <= 0:
            return aiohttp.ClientTimeout(total=None)
        if total_timeout < CONNECT_TIMEOUT:
            # Keep the connect timeout from exceeding the total.
            return aiohttp.ClientTimeout(total=total_timeout)
        return aiohttp.ClientTimeout(connect=CONNECT_TIMEOUT, total=total_timeout)

    async def _request(
        self,
        method: HTTPMethod,
        *,
        url: str,
        headers: dict[str, str] | None,
        total_timeout: float,
        **kwargs: Any,
    ) -> HttpResponse:
        """Perform an asynchronous HTTP request.

        Raises:
            AsyncCommTimeoutError: If the server does not answer in time.
            AsyncCommError: If the connection fails or is dropped.
        """
        # Headers carry the API key; only log the URL.
        logger.debug("[%s] url=%s timeout=%s", method, url, total_timeout)

        try:
            async with self.session.request(
                method=method,
                url=url,
                headers=headers,
                timeout=self.build_timeout(total_timeout),
                **kwargs,
            ) as resp:
                raw: bytes = await resp.read()
                return HttpResponse(status=resp.status, text=raw.decode("utf-8", errors="replace"))

        except TimeoutError as err:
            logger.debug(err)
            msg = "Timeout due to a lack of response from the server."
            raise AsyncCommTimeoutError(msg) from err
        except ConnectionResetError as err:
            logger.debug(err)
            msg = "The connection to the server has been disconnected."
            raise AsyncCommError(msg) from err
        except aiohttp.ClientConnectorError as err:
            logger.debug(err)
            msg = "The server is not running, or the port is closed."
            raise AsyncCommError(msg) from err
        except aiohttp.ClientError as err:
            logger.debug(err)
            msg = f"HTTP request failed: {err}"
            raise AsyncCommError(msg) from err


class AsyncCommError(Exception):
    """Base class for asynchronous communication errors.

    Raised when a request could not be completed at the transport level, such as a
    timeout, a refused connection or a dropped connection.
    """

    def __init__(self, msg: str | BaseException) -> None:
        self.msg: str = str(msg)
        super().__init__(self.msg)


class AsyncCommTimeoutError(AsyncCommError):
    """Error raised when an asynchronous communication operation times out."""
