"""Best-effort mirroring of product writes into the search index.

The document store write has already happened by the time these run; a failure
here is logged and dropped, and the product stays findable through fallback
search.
"""
from __future__ import annotations

import asyncio
import logging
from enum import Enum
from typing import Any, Dict, Iterable, Mapping, Optional

from elastic_transport import TransportError
from elasticsearch import Elasticsearch, helpers
from elasticsearch.exceptions import ApiError, NotFoundError

from .errors import SearchUnavailableError
from .indexing import drop_index, ensure_index

logger = logging.getLogger(__name__)


class SyncOperation(str, Enum):
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"


def build_index_document(product: Mapping[str, Any]) -> Dict[str, Any]:
    """Denormalize a stored product into the shape the index mapping expects."""

    variants = product.get("variants") or []
    return {
        "name": product.get("name"),
        "description": product.get("description"),
        "brand": product.get("brand"),
        "categories": list(product.get("categories") or []),
        "gender": product.get("gender"),
        "price": product.get("price"),
        "mrp": product.get("mrp"),
        "discount": product.get("discount"),
        "size": [variant.get("size") for variant in variants],
        "color": [variant.get("color") for variant in variants],
        "rating": product.get("rating"),
        "stock": sum(int(variant.get("stock") or 0) for variant in variants),
        "slug": product.get("slug"),
        "images": list(product.get("images") or []),
        "tags": list(product.get("tags") or []),
        "createdAt": product.get("createdAt"),
    }


def _iter_actions(index: str, products: Iterable[Mapping[str, Any]]) -> Iterable[dict]:
    for product in products:
        yield {
            "_index": index,
            "_id": str(product["_id"]),
            "_source": build_index_document(product),
        }


class IndexSync:
    def __init__(self, es: Optional[Elasticsearch], index: str) -> None:
        self.es = es
        self.index = index

    @property
    def enabled(self) -> bool:
        return self.es is not None

    def _write(self, es: Elasticsearch, product: Mapping[str, Any], operation: SyncOperation) -> None:
        product_id = str(product["_id"])
        if operation is SyncOperation.DELETE or not product.get("isActive", True):
            try:
                es.delete(index=self.index, id=product_id)
            except NotFoundError:
                pass
            return
        es.index(index=self.index, id=product_id, document=build_index_document(product))

    async def sync(self, product: Mapping[str, Any], operation: SyncOperation | str) -> None:
        if self.es is None:
            return
        operation = SyncOperation(operation)
        try:
            await asyncio.to_thread(self._write, self.es, product, operation)
        except (ApiError, TransportError) as exc:
            logger.warning(
                "Failed to %s product %s in Elasticsearch: %s",
                operation.value,
                product.get("_id"),
                exc,
            )
            return
        logger.debug("Synced product %s (%s)", product.get("_id"), operation.value)

    async def reindex(self, products: Iterable[Mapping[str, Any]]) -> int:
        """Rebuild the index from scratch. Unlike :meth:`sync`, errors propagate."""

        es = self.es
        if es is None:
            return 0
        products = [product for product in products if product.get("isActive", True)]

        def rebuild() -> int:
            drop_index(es, self.index)
            ensure_index(es, self.index)
            indexed, _ = helpers.bulk(es, _iter_actions(self.index, products))
            return indexed

        try:
            count = await asyncio.to_thread(rebuild)
        except (ApiError, TransportError, helpers.BulkIndexError) as exc:
            logger.warning("Reindex of %s failed: %s", self.index, exc)
            raise SearchUnavailableError("Search engine unavailable") from exc
        logger.info("Reindexed %s products into %s", count, self.index)
        return count
