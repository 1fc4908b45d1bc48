"""Response cache package.

Provides the persisted response cache and the in-flight request guard.
"""

from __future__ import annotations

from core.cache.inflight_manager import InFlightConflictError, InFlightManager
from core.cache.manager import ResponseCacheManager

__all__: list[str] = ["InFlightConflictError", "InFlightManager", "ResponseCacheManager"]
