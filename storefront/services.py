"""Constructed-once service container shared by request handlers."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, List, Mapping, Optional

from elasticsearch import Elasticsearch

from .availability import AvailabilityState, ClientFactory, probe
from .cache import CacheBackend, NullCache
from .config import Settings
from .es_client import create_client
from .providers import DocumentStoreProvider, ElasticsearchProvider, SearchProvider
from .query import SearchDescriptor, normalize_params
from .results import SearchPage
from .store import ProductStore, connect_collection
from .sync import IndexSync

logger = logging.getLogger(__name__)

FACET_FIELDS = {"categories": "categories", "brands": "brand"}


def facet_cache_key(name: str) -> str:
    return f"products:facets:{name}"


@dataclass
class Services:
    settings: Settings
    availability: AvailabilityState
    store: ProductStore
    es: Optional[Elasticsearch] = None
    cache: CacheBackend = field(default_factory=NullCache)

    def __post_init__(self) -> None:
        limits = {
            "suggestion_min_length": self.settings.suggestion_min_length,
            "suggestion_limit": self.settings.suggestion_limit,
        }
        self._fallback = DocumentStoreProvider(self.store, **limits)
        self._engine: Optional[ElasticsearchProvider] = None
        if self.availability.search_engine_reachable and self.es is not None:
            self._engine = ElasticsearchProvider(self.es, self.settings.es_index, **limits)
        self.index_sync = IndexSync(self.es if self._engine else None, self.settings.es_index)

    def search_provider(self) -> SearchProvider:
        if self._engine is not None:
            return self._engine
        return self._fallback

    def describe(self, raw: Mapping[str, Any]) -> SearchDescriptor:
        return normalize_params(
            raw,
            default_page_size=self.settings.default_page_size,
            max_page_size=self.settings.max_page_size,
            max_result_window=self.settings.max_result_window,
        )

    async def search(self, raw: Mapping[str, Any]) -> SearchPage:
        return await self.search_provider().search(self.describe(raw))

    async def suggest(self, prefix: Optional[str]) -> List[str]:
        return await self.search_provider().suggest(prefix or "")

    async def facet(self, name: str) -> List[Any]:
        key = facet_cache_key(name)
        cached = self.cache.get(key)
        if cached is not None:
            return cached
        values = await self.store.distinct(FACET_FIELDS[name])
        self.cache.set(key, values, self.settings.cache_ttl_seconds)
        return values

    def invalidate_facets(self) -> None:
        self.cache.delete(*(facet_cache_key(name) for name in FACET_FIELDS))

    async def reindex(self) -> int:
        products = await self.store.active_products()
        return await self.index_sync.reindex(products)


def build_services(settings: Settings, client_factory: ClientFactory = create_client) -> Services:
    backends = probe(settings, client_factory)
    store = ProductStore(connect_collection(settings))
    store.ensure_indexes()
    return Services(
        settings=settings,
        availability=backends.availability,
        store=store,
        es=backends.es,
        cache=backends.cache,
    )
