from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

from utils.logger_utils import LoggerUtils
from utils.string_utils import StringUtils

if TYPE_CHECKING:
    import logging

    from core.query.result import QueryResult


__all__: list[str] = ["InFlightConflictError", "InFlightManager"]

logger: logging.Logger = LoggerUtils.get_logger(__name__)


class InFlightConflictError(Exception):
    """A request for a different key is already in flight."""

    def __init__(self, pending_key: str) -> None:
        self.pending_key: str = pending_key
        super().__init__(f"Another request is in flight: '{StringUtils.preview(pending_key, 16)}'")


class InFlightManager:
    """Allows a single outbound completion request at a time.

    A caller that asks for the key already in flight waits for and shares that request's
    result. A caller with any other key is turned away while a request is pending.

    Args:
        wait_timeout (float | None): Seconds a caller waits for a shared result. None waits
            as long as the pending request takes.
    """

    def __init__(self, *, wait_timeout: float | None = None) -> None:
        self._inflight: dict[str, asyncio.Future[QueryResult]] = {}
        self._lock: asyncio.Lock = asyncio.Lock()
        self._wait_timeout: float | None = wait_timeout
        self._is_initialized: bool = False

    @property
    def pending_keys(self) -> list[str]:
        return list(self._inflight)

    async def component_load(self) -> None:
        """Initialize the in-flight manager component."""
        self._is_initialized = True
        logger.info("InFlightManager initialized successfully")

    async def component_teardown(self) -> None:
        """Teardown the in-flight manager component and clear in-flight state."""
        self._is_initialized = False
        async with self._lock:
            for fut in self._inflight.values():
                if not fut.done():
                    fut.cancel()
            self._inflight.clear()
        logger.info("InFlightManager torn down and in-flight state cleared")

    async def mark_inflight_start(self, cache_key: str) -> QueryResult | None:
        """Register a request, or join the identical one already in flight.

        Args:
            cache_key (str): Fingerprint of the request.

        Returns:
            QueryResult | None: The shared result if the same request was already in flight,
            or None if the caller was registered and must now perform the request.

        Raises:
            InFlightConflictError: If a request for a different key is in flight.
            TimeoutError: If waiting for the shared result times out or is cancelled.
        """
        async with self._lock:
            if cache_key not in self._inflight:
                if self._inflight:
                    pending: str = next(iter(self._inflight))
                    logger.warning(
                        "Rejected request '%s' while '%s' is in flight",
                        StringUtils.preview(cache_key, 16),
                        StringUtils.preview(pending, 16),
                    )
                    raise InFlightConflictError(pending)
                loop: asyncio.AbstractEventLoop = asyncio.get_running_loop()
                fut: asyncio.Future[QueryResult] = loop.create_future()
                self._inflight[cache_key] = fut
                logger.debug("Marked in-flight start for key: %s", StringUtils.preview(cache_key, 16))
                return None
            fut = self._inflight[cache_key]
            logger.debug("In-flight request detected for key: %s", StringUtils.preview(cache_key, 16))

        try:
            result: QueryResult = await asyncio.wait_for(asyncio.shield(fut), timeout=self._wait_timeout)
        except TimeoutError:
            logger.warning("In-flight request timeout for key: %s", StringUtils.preview(cache_key, 16))
            msg: str = "Timed out waiting for the pending request"
            raise TimeoutError(msg) from None
        except asyncio.CancelledError:
            logger.warning("In-flight request cancelled for key: %s", StringUtils.preview(cache_key, 16))
            msg = "The pending request was cancelled"
            raise TimeoutError(msg) from None
        else:
            logger.debug("Received in-flight result for key: %s", StringUtils.preview(cache_key, 16))
            return result

    async def store_inflight_result(self, cache_key: str, result: QueryResult) -> None:
        """Publish the result to any waiting callers and free the slot."""
        async with self._lock:
            fut: asyncio.Future[QueryResult] | None = self._inflight.pop(cache_key, None)
            if fut and not fut.done():
                fut.set_result(result)
                logger.debug("Set in-flight result for key: %s", StringUtils.preview(cache_key, 16))
            else:
                logger.warning(
                    "No in-flight future found or already done for key: %s when storing result",
                    StringUtils.preview(cache_key, 16),
                )

    async def store_inflight_exception(self, cache_key: str, exc: BaseException) -> None:
        """Propagate an unexpected failure to any waiting callers and free the slot."""
        async with self._lock:
            fut: asyncio.Future[QueryResult] | None = self._inflight.pop(cache_key, None)
            if fut and not fut.done():
                fut.set_exception(exc)
                # Mark retrieved so a request nobody waited on does not log at GC.
                fut.exception()
                logger.debug("Set in-flight exception for key: %s", StringUtils.preview(cache_key, 16))
            else:
                logger.warning(
                    "No in-flight future found or already done for key: %s when storing exception",
                    StringUtils.preview(cache_key, 16),
                )
