"""Models for the response cache.

Defines the cache entry record stored in ``gpt_cache.json`` and the parsed form of a raw
JSON record found on disk.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any

__all__: list[str] = ["CacheEntry"]


@dataclass
class CacheEntry:
    """One cached completion.

    Attributes:
        response (str): The completion text returned by the model.
        timestamp (int): Epoch seconds at which the entry was stored. Eviction order key.
    """

    response: str
    timestamp: int

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_raw(cls, raw: Any, *, now: int) -> CacheEntry | None:
        """Build an entry from a value read from the cache file.

        Older cache files stored the bare response string, and some records lost their
        timestamp. Both are repaired by stamping ``now``.

        Args:
            raw (Any): The decoded JSON value stored under a fingerprint.
            now (int): Epoch seconds used for records without a usable timestamp.

        Returns:
            CacheEntry | None: The entry, or None if no response text can be recovered.
        """
        if isinstance(raw, str):
            return cls(response=raw, timestamp=now)

        if not isinstance(raw, dict):
            return None

        response: Any = raw.get("response")
        if not isinstance(response, str):
            return None

        timestamp: Any = raw.get("timestamp")
        # bool is an int subclass; reject it explicitly.
        if isinstance(timestamp, bool) or not isinstance(timestamp, int | float):
            return cls(response=response, timestamp=now)
        return cls(response=response, timestamp=int(timestamp))
