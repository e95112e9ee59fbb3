"""Translate a :class:`SearchDescriptor` into a backend-native query.

Two branches, chosen solely by search-engine availability:

* the document store gets a MongoDB filter, sort and skip/limit;
* Elasticsearch gets a ``bool`` query with fuzzy ``should`` clauses for text,
  non-scoring ``filter`` clauses for constraints, and from/size pagination.

Both branches AND all filter categories together, so filter-only queries select
the same products on either backend. Ranking is the only thing that differs:
the document store cannot score, so ``relevance`` falls back to newest-first.
"""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Any, Dict, List, Tuple, Union

from .availability import AvailabilityState
from .query import SearchDescriptor, SortKey

logger = logging.getLogger(__name__)

ASCENDING = 1
DESCENDING = -1

TEXT_FIELDS = ("name", "description", "brand")

# Wire filter name -> (document store field, index field).
EQUALITY_FIELDS: Dict[str, Tuple[str, str]] = {
    "category": ("categories", "categories"),
    "brand": ("brand", "brand"),
    "gender": ("gender", "gender"),
    "size": ("variants.size", "size"),
    "color": ("variants.color", "color"),
}

# Fuzzy text clauses: (index field, boost). Name carries the most weight.
ENGINE_TEXT_FIELDS: Tuple[Tuple[str, float], ...] = (
    ("name", 2.0),
    ("description", 1.0),
    ("brand.text", 1.0),
)

MONGO_SORTS: Dict[SortKey, List[Tuple[str, int]]] = {
    SortKey.PRICE_LOW: [("price", ASCENDING)],
    SortKey.PRICE_HIGH: [("price", DESCENDING)],
    SortKey.RATING: [("rating", DESCENDING)],
    SortKey.NEWEST: [("createdAt", DESCENDING)],
    SortKey.RELEVANCE: [("createdAt", DESCENDING)],
}

ENGINE_SORTS: Dict[SortKey, List[Dict[str, Any]]] = {
    SortKey.PRICE_LOW: [{"price": {"order": "asc"}}],
    SortKey.PRICE_HIGH: [{"price": {"order": "desc"}}],
    SortKey.RATING: [{"rating": {"order": "desc"}}],
    SortKey.NEWEST: [{"createdAt": {"order": "desc"}}],
    SortKey.RELEVANCE: [{"_score": {"order": "desc"}}],
}


@dataclass(frozen=True)
class MongoQuery:
    filter: Dict[str, Any]
    sort: List[Tuple[str, int]]
    skip: int
    limit: int


@dataclass(frozen=True)
class EngineQuery:
    body: Dict[str, Any]

    @property
    def offset(self) -> int:
        return self.body["from"]

    @property
    def size(self) -> int:
        return self.body["size"]


BackendQuery = Union[MongoQuery, EngineQuery]


def text_pattern(text: str) -> Dict[str, str]:
    """Case-insensitive literal substring match."""
    return {"$regex": re.escape(text), "$options": "i"}


def build_mongo_filter(descriptor: SearchDescriptor) -> Dict[str, Any]:
    filters = descriptor.filters
    query: Dict[str, Any] = {"isActive": True}

    if descriptor.text:
        pattern = text_pattern(descriptor.text)
        query["$or"] = [{field: dict(pattern)} for field in TEXT_FIELDS]

    for name, value in filters.equality().items():
        query[EQUALITY_FIELDS[name][0]] = value

    price: Dict[str, float] = {}
    if filters.price_min is not None:
        price["$gte"] = filters.price_min
    if filters.price_max is not None:
        price["$lte"] = filters.price_max
    if price:
        query["price"] = price

    if filters.rating_min is not None:
        query["rating"] = {"$gte": filters.rating_min}
    return query


def build_mongo_query(descriptor: SearchDescriptor) -> MongoQuery:
    # _id keeps ordering stable across pages when the primary key ties.
    sort = MONGO_SORTS[descriptor.sort] + [("_id", ASCENDING)]
    return MongoQuery(
        filter=build_mongo_filter(descriptor),
        sort=sort,
        skip=descriptor.offset,
        limit=descriptor.page_size,
    )


def build_es_filters(descriptor: SearchDescriptor) -> List[Dict[str, Any]]:
    filters = descriptor.filters
    clauses: List[Dict[str, Any]] = []

    for name, value in filters.equality().items():
        clauses.append({"term": {EQUALITY_FIELDS[name][1]: value}})

    price: Dict[str, float] = {}
    if filters.price_min is not None:
        price["gte"] = filters.price_min
    if filters.price_max is not None:
        price["lte"] = filters.price_max
    if price:
        clauses.append({"range": {"price": price}})

    if filters.rating_min is not None:
        clauses.append({"range": {"rating": {"gte": filters.rating_min}}})
    return clauses


def build_es_query(descriptor: SearchDescriptor) -> EngineQuery:
    bool_clause: Dict[str, Any] = {"filter": build_es_filters(descriptor)}

    if descriptor.text:
        bool_clause["should"] = [
            {
                "match": {
                    field: {
                        "query": descriptor.text,
                        "fuzziness": "AUTO",
                        "boost": boost,
                    }
                }
            }
            for field, boost in ENGINE_TEXT_FIELDS
        ]
        bool_clause["minimum_should_match"] = 1
    else:
        bool_clause["must"] = [{"match_all": {}}]

    body = {
        "query": {"bool": bool_clause},
        "sort": ENGINE_SORTS[descriptor.sort] + [{"slug": {"order": "asc"}}],
        "track_scores": True,
        "from": descriptor.offset,
        "size": descriptor.page_size,
    }
    logger.debug("ES query payload=%s", body)
    return EngineQuery(body=body)


def translate(descriptor: SearchDescriptor, availability: AvailabilityState) -> BackendQuery:
    if availability.search_engine_reachable:
        return build_es_query(descriptor)
    return build_mongo_query(descriptor)
