"""Response cache manager.

Keeps completions keyed by a ``text || task`` fingerprint in memory and persists the whole
store to one JSON file after every write. The store is bounded; once it grows past the
limit the entries with the oldest timestamps are evicted.
"""

from __future__ import annotations

import asyncio
import json
import time
from typing import TYPE_CHECKING, Any, ClassVar, Final

from models.cache_models import CacheEntry
from utils.file_utils import FileUtils, FileUtilsError
from utils.logger_utils import LoggerUtils
from utils.string_utils import StringUtils

if TYPE_CHECKING:
    import logging
    from pathlib import Path

    from models.config_models import Config

__all__: list[str] = ["ResponseCacheManager"]

logger: logging.Logger = LoggerUtils.get_logger(__name__)

FINGERPRINT_SEPARATOR: Final[str] = "||"


class ResponseCacheManager:
    """Bounded, timestamp-ordered store of model responses.

    Attributes:
        HISTORY_TASK (ClassVar[str]): Task label used to fingerprint multi-turn queries.
    """

    HISTORY_TASK: ClassVar[str] = "history"

    def __init__(self, config: Config, *, cache_path: Path | None = None) -> None:
        """Initialize the cache manager.

        Args:
            config (Config): Application configuration.
            cache_path (Path | None): Explicit cache file, overriding ``CACHE.FILE``.
        """
        self.config: Config = config
        self._path: Path = cache_path or FileUtils.resolve_path(
            config.CACHE.FILE, base_dir=config.GENERAL.DATA_DIR or None
        )
        self._limit: int = config.CACHE.SIZE_LIMIT
        self._entries: dict[str, CacheEntry] = {}
        self._lock: asyncio.Lock = asyncio.Lock()
        self._is_initialized: bool = False
        logger.debug("ResponseCacheManager instance created: path=%s limit=%d", self._path, self._limit)

    @property
    def is_initialized(self) -> bool:
        return self._is_initialized

    @property
    def path(self) -> Path:
        return self._path

    @property
    def limit(self) -> int:
        return self._limit

    @property
    def size(self) -> int:
        return len(self._entries)

    @staticmethod
    def fingerprint(text: str, task: str) -> str:
        """Build the cache key for a text and the task applied to it.

        Args:
            text (str): The selected text, or the last message of a conversation.
            task (str): The task prompt, or ``HISTORY_TASK`` for conversations.

        Returns:
            str: ``text + "||" + task``.
        """
        return f"{text}{FINGERPRINT_SEPARATOR}{task}"

    async def component_load(self) -> None:
        """Load the cache file once at start-up."""
        logger.info("ResponseCacheManager initialization started")
        self.load()
        self._is_initialized = True
        logger.info("ResponseCacheManager initialized with %d entries", len(self._entries))

    async def component_teardown(self) -> None:
        self._is_initialized = False
        logger.info("ResponseCacheManager shutdown completed")

    def load(self) -> None:
        """Read the cache file into memory, repairing legacy records.

        A missing, unreadable or malformed file leaves the cache empty. This method never
        raises.
        """
        self._entries = {}
        try:
            content: str | None = FileUtils.read_text(self._path)
        except (OSError, FileUtilsError) as err:
            logger.warning("Failed to read cache file '%s': %s", self._path, err)
            return

        if content is None:
            logger.debug("Cache file '%s' not found; starting empty", self._path)
            return

        try:
            raw: Any = json.loads(content)
        except ValueError as err:
            logger.warning("Cache file '%s' is not valid JSON; starting empty: %s", self._path, err)
            return

        if not isinstance(raw, dict):
            logger.warning("Cache file '%s' does not contain a JSON object; starting empty", self._path)
            return

        now: int = int(time.time())
        for key, value in raw.items():
            entry: CacheEntry | None = CacheEntry.from_raw(value, now=now)
            if entry is None:
                logger.warning("Dropping unusable cache record: '%s'", StringUtils.preview(key))
                continue
            self._entries[key] = entry
        logger.debug("Loaded %d cache entries from '%s'", len(self._entries), self._path)

    def get(self, key: str) -> CacheEntry | None:
        """Look up a cached response. A hit does not refresh the entry's timestamp."""
        entry: CacheEntry | None = self._entries.get(key)
        if entry is None:
            logger.debug("Cache miss: '%s'", StringUtils.preview(key))
        else:
            logger.debug("Cache hit: '%s'", StringUtils.preview(key))
        return entry

    async def put(self, key: str, response: str, timestamp: int | None = None) -> None:
        """Store a response, evict past the limit and persist the store.

        Args:
            key (str): Fingerprint from ``fingerprint``.
            response (str): The completion text.
            timestamp (int | None): Epoch seconds; defaults to the current time.
        """
        stamp: int = int(time.time()) if timestamp is None else timestamp
        async with self._lock:
            self._entries[key] = CacheEntry(response=response, timestamp=stamp)
            self._evict()
            self._save()

    async def clear(self) -> None:
        """Remove every entry and persist the empty store."""
        async with self._lock:
            self._entries.clear()
            self._save()
        logger.info("Response cache cleared")

    def _evict(self) -> None:
        if len(self._entries) <= self._limit:
            return
        # sorted() is stable, so equal timestamps keep insertion order.
        ordered: list[str] = sorted(self._entries, key=lambda k: self._entries[k].timestamp, reverse=True)
        evicted: list[str] = ordered[self._limit :]
        for key in evicted:
            del self._entries[key]
        logger.debug("Evicted %d cache entries", len(evicted))

    def _save(self) -> None:
        record: dict[str, dict[str, Any]] = {key: entry.to_dict() for key, entry in self._entries.items()}
        try:
            FileUtils.write_text_atomic(self._path, json.dumps(record, ensure_ascii=False))
        except OSError as err:
            logger.error("Failed to save cache file '%s': %s", self._path, err)
