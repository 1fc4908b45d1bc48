from __future__ import annotations

from models.cache_models import CacheEntry
from models.message_models import Message, Role


def test_message_to_payload() -> None:
    assert Message(Role.ASSISTANT, "hi").to_payload() == {"role": "assistant", "content": "hi"}


def test_cache_entry_from_raw_record() -> None:
    entry: CacheEntry | None = CacheEntry.from_raw({"response": "r", "timestamp": 12.7}, now=99)

    assert entry == CacheEntry(response="r", timestamp=12)
    assert entry is not None
    assert entry.to_dict() == {"response": "r", "timestamp": 12}


def test_cache_entry_from_raw_repairs_legacy_values() -> None:
    assert CacheEntry.from_raw("bare", now=99) == CacheEntry(response="bare", timestamp=99)
    assert CacheEntry.from_raw({"response": "r", "timestamp": "soon"}, now=99) == CacheEntry(response="r", timestamp=99)
    assert CacheEntry.from_raw({"response": "r", "timestamp": True}, now=99) == CacheEntry(response="r", timestamp=99)


def test_cache_entry_from_raw_rejects_unusable_values() -> None:
    assert CacheEntry.from_raw({"timestamp": 1}, now=99) is None
    assert CacheEntry.from_raw(["r"], now=99) is None
    assert CacheEntry.from_raw(None, now=99) is None
