"""Index creation and maintenance helpers."""
from __future__ import annotations

import logging
from typing import Any, Dict

from elasticsearch import Elasticsearch
from elasticsearch.exceptions import BadRequestError, NotFoundError

logger = logging.getLogger(__name__)

# Keyword fields are matched exactly by filters; ``name`` carries a completion
# sub-field for autocomplete and ``brand`` a text sub-field for fuzzy matching.
PRODUCT_MAPPING: Dict[str, Any] = {
    "properties": {
        "name": {
            "type": "text",
            "analyzer": "standard",
            "fields": {
                "keyword": {"type": "keyword"},
                "suggest": {"type": "completion", "analyzer": "standard"},
            },
        },
        "description": {"type": "text"},
        "brand": {"type": "keyword", "fields": {"text": {"type": "text"}}},
        "categories": {"type": "keyword"},
        "gender": {"type": "keyword"},
        "price": {"type": "float"},
        "mrp": {"type": "float"},
        "discount": {"type": "integer"},
        "size": {"type": "keyword"},
        "color": {"type": "keyword"},
        "rating": {"type": "float"},
        "stock": {"type": "integer"},
        "slug": {"type": "keyword"},
        "images": {"type": "keyword", "index": False},
        "tags": {"type": "keyword"},
        "createdAt": {"type": "date"},
    }
}

INDEX_SETTINGS: Dict[str, Any] = {
    "analysis": {
        "analyzer": {
            "fuzzy_analyzer": {
                "type": "custom",
                "tokenizer": "standard",
                "filter": ["lowercase", "fuzzy_filter"],
            }
        },
        "filter": {"fuzzy_filter": {"type": "ngram", "min_gram": 2, "max_gram": 3}},
    }
}


def ensure_index(es: Elasticsearch, index: str) -> bool:
    """Create the products index if it is missing. Returns True when created."""

    if es.indices.exists(index=index):
        return False
    logger.info("Creating index %s", index)
    try:
        es.indices.create(index=index, mappings=PRODUCT_MAPPING, settings=INDEX_SETTINGS)
    except BadRequestError as exc:
        if getattr(exc, "error", "") == "resource_already_exists_exception":
            logger.info("Index %s already exists", index)
            return False
        logger.exception("Failed to create index: %s", exc)
        raise
    return True


def drop_index(es: Elasticsearch, index: str) -> None:
    try:
        es.indices.delete(index=index)
    except NotFoundError:
        return
