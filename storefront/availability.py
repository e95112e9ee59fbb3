"""Startup probes for the optional backends.

Each probe runs once per process. A backend that fails its probe stays marked
unavailable until restart; there is no runtime re-probing.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Optional, Tuple

from elastic_transport import TransportError
from elasticsearch import Elasticsearch
from elasticsearch.exceptions import ApiError

from .cache import CacheBackend, NullCache, connect_cache
from .config import Settings
from .es_client import create_client
from .indexing import ensure_index

logger = logging.getLogger(__name__)

ClientFactory = Callable[[Settings], Elasticsearch]


@dataclass(frozen=True)
class AvailabilityState:
    search_engine: bool = False
    cache: bool = False

    @property
    def search_engine_reachable(self) -> bool:
        return self.search_engine


@dataclass(frozen=True)
class Backends:
    """Availability flags plus the live handles that go with them."""

    availability: AvailabilityState
    es: Optional[Elasticsearch]
    cache: CacheBackend


def probe_search_engine(
    settings: Settings, client_factory: ClientFactory = create_client
) -> Tuple[bool, Optional[Elasticsearch]]:
    if not settings.es_enabled:
        logger.warning("Elasticsearch is disabled (ELASTICSEARCH_ENABLED=false)")
        return False, None

    try:
        es = client_factory(settings)
        health = es.options(request_timeout=settings.es_probe_timeout).cluster.health()
        logger.info("Elasticsearch cluster health: %s", health.get("status"))
        if ensure_index(es, settings.es_index):
            logger.info("Created %s index", settings.es_index)
    except (ApiError, TransportError, ValueError) as exc:
        logger.warning("Elasticsearch connection failed: %s", exc)
        logger.warning("Continuing without Elasticsearch; search falls back to the document store")
        return False, None
    return True, es


def probe(settings: Settings, client_factory: ClientFactory = create_client) -> Backends:
    engine_up, es = probe_search_engine(settings, client_factory)
    cache = connect_cache(settings)
    availability = AvailabilityState(search_engine=engine_up, cache=cache is not None)
    logger.info(
        "Backend availability: search_engine=%s cache=%s",
        availability.search_engine,
        availability.cache,
    )
    return Backends(availability=availability, es=es, cache=cache or NullCache())
