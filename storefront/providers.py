"""Search providers: one interface, a document-store and a search-engine variant.

Request handlers pick a provider once (see :meth:`Services.search_provider`)
and never branch on availability themselves.
"""
from __future__ import annotations

import asyncio
import logging
from time import perf_counter
from typing import List, Protocol

from elastic_transport import TransportError
from elasticsearch import Elasticsearch
from elasticsearch.exceptions import ApiError
from pymongo.errors import PyMongoError

from .availability import AvailabilityState
from .errors import SearchUnavailableError
from .query import SearchDescriptor
from .results import DOCUMENT_STORE, ENGINE, SearchPage, from_documents, from_engine
from .store import ProductStore
from .translate import translate

logger = logging.getLogger(__name__)

SUGGESTION_MIN_LENGTH = 2
SUGGESTION_LIMIT = 10
SUGGEST_NAME = "product_suggest"


class SearchProvider(Protocol):
    name: str

    async def search(self, descriptor: SearchDescriptor) -> SearchPage: ...

    async def suggest(self, prefix: str) -> List[str]: ...


def _usable_prefix(prefix: str | None, min_length: int) -> str:
    prefix = (prefix or "").strip()
    return prefix if len(prefix) >= min_length else ""


class DocumentStoreProvider:
    """Fallback search over the product collection: regex text match, no scoring.

    Queries are built by :func:`translate` in the provider's fixed mode.
    """

    name = DOCUMENT_STORE
    mode = AvailabilityState(search_engine=False)

    def __init__(
        self,
        store: ProductStore,
        *,
        suggestion_min_length: int = SUGGESTION_MIN_LENGTH,
        suggestion_limit: int = SUGGESTION_LIMIT,
    ) -> None:
        self.store = store
        self.suggestion_min_length = suggestion_min_length
        self.suggestion_limit = suggestion_limit

    async def search(self, descriptor: SearchDescriptor) -> SearchPage:
        t0 = perf_counter()
        query = translate(descriptor, self.mode)
        try:
            docs, total = await self.store.find_page(query)
        except PyMongoError as exc:
            logger.warning("Document store search failed q=%r: %s", descriptor.text, exc)
            raise SearchUnavailableError("Search service unavailable") from exc
        page = from_documents(docs, total, descriptor.page, descriptor.page_size)
        logger.info(
            "search backend=%s q=%r sort=%s page=%s hits=%s total=%s took=%.2fms",
            self.name,
            descriptor.text,
            descriptor.sort.value,
            descriptor.page,
            len(page.hits),
            page.total,
            (perf_counter() - t0) * 1000,
        )
        return page

    async def suggest(self, prefix: str) -> List[str]:
        prefix = _usable_prefix(prefix, self.suggestion_min_length)
        if not prefix:
            return []
        try:
            return await self.store.suggest_names(prefix, self.suggestion_limit)
        except PyMongoError as exc:
            logger.warning("Suggestion lookup failed for %r: %s", prefix, exc)
            return []


class ElasticsearchProvider:
    """Fuzzy, scored search against the products index."""

    name = ENGINE
    mode = AvailabilityState(search_engine=True)

    def __init__(
        self,
        es: Elasticsearch,
        index: str,
        *,
        suggestion_min_length: int = SUGGESTION_MIN_LENGTH,
        suggestion_limit: int = SUGGESTION_LIMIT,
    ) -> None:
        self.es = es
        self.index = index
        self.suggestion_min_length = suggestion_min_length
        self.suggestion_limit = suggestion_limit

    async def search(self, descriptor: SearchDescriptor) -> SearchPage:
        t0 = perf_counter()
        query = translate(descriptor, self.mode)
        try:
            response = await asyncio.to_thread(self.es.search, index=self.index, body=query.body)
        except (ApiError, TransportError) as exc:
            logger.warning("Elasticsearch search failed q=%r: %s", descriptor.text, exc)
            raise SearchUnavailableError("Search service unavailable") from exc
        page = from_engine(response, descriptor.page, descriptor.page_size)
        logger.info(
            "search backend=%s q=%r sort=%s page=%s hits=%s total=%s took=%.2fms es_took=%sms",
            self.name,
            descriptor.text,
            descriptor.sort.value,
            descriptor.page,
            len(page.hits),
            page.total,
            (perf_counter() - t0) * 1000,
            response.get("took", 0),
        )
        return page

    async def suggest(self, prefix: str) -> List[str]:
        prefix = _usable_prefix(prefix, self.suggestion_min_length)
        if not prefix:
            return []
        body = {
            "_source": False,
            "suggest": {
                SUGGEST_NAME: {
                    "prefix": prefix,
                    "completion": {"field": "name.suggest", "size": self.suggestion_limit},
                }
            },
        }
        try:
            response = await asyncio.to_thread(self.es.search, index=self.index, body=body)
        except (ApiError, TransportError) as exc:
            logger.warning("Elasticsearch suggest failed for %r: %s", prefix, exc)
            return []
        entries = response.get("suggest", {}).get(SUGGEST_NAME) or [{}]
        options = entries[0].get("options", [])
        return [option["text"] for option in options if option.get("text")][: self.suggestion_limit]
