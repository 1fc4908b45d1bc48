"""Shared data management for assistant components.

This module defines the SharedData class, a centralized container for the resources and
services used across the assistant: configuration, HTTP transport, response cache, in-flight
guard, settings store and query engine.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from core.cache.inflight_manager import InFlightManager
from core.cache.manager import ResponseCacheManager
from core.query.engine import QueryEngine
from core.settings.store import SettingsStore
from handlers.async_comm import AsyncHttp

if TYPE_CHECKING:
    from core.settings.backend import SettingsBackend
    from models.config_models import Config


__all__: list[str] = ["SharedData"]


@dataclass
class SharedData:
    _config: Config = field()
    _settings_backend: SettingsBackend = field()
    _http: AsyncHttp = field(init=False)
    _cache_manager: ResponseCacheManager = field(init=False)
    _inflight_manager: InFlightManager = field(init=False)
    _settings_store: SettingsStore = field(init=False)
    _query_engine: QueryEngine = field(init=False)

    async def async_init(self) -> None:
        timeout: float = self.config.API.TIMEOUT
        self._http = AsyncHttp()
        self._cache_manager = ResponseCacheManager(self.config)
        self._inflight_manager = InFlightManager(wait_timeout=timeout if timeout > 0 else None)
        self._settings_store = SettingsStore(self._settings_backend, self.config)
        self._query_engine = QueryEngine(
            self.config,
            settings=self._settings_store,
            cache=self._cache_manager,
            http=self._http,
            inflight=self._inflight_manager,
        )

    @property
    def config(self) -> Config:
        return self._config

    @property
    def settings_backend(self) -> SettingsBackend:
        return self._settings_backend

    @property
    def http(self) -> AsyncHttp:
        return self._http

    @property
    def cache_manager(self) -> ResponseCacheManager:
        return self._cache_manager

    @property
    def inflight_manager(self) -> InFlightManager:
        return self._inflight_manager

    @property
    def settings_store(self) -> SettingsStore:
        return self._settings_store

    @property
    def query_engine(self) -> QueryEngine:
        return self._query_engine
