"""Document-store access for products.

The store is the source of truth for the catalogue. pymongo is synchronous,
so every call is pushed onto a worker thread with ``asyncio.to_thread``.
"""
from __future__ import annotations

import asyncio
import logging
import re
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

from bson import ObjectId
from bson.errors import InvalidId
from pymongo import ASCENDING, DESCENDING, MongoClient, ReturnDocument
from pymongo.collection import Collection
from unidecode import unidecode

from .config import Settings
from .translate import MongoQuery, text_pattern

logger = logging.getLogger(__name__)

_SLUG_STRIP_RE = re.compile(r"[^a-z0-9]+")


def connect_collection(settings: Settings) -> Collection:
    logger.info("Connecting to MongoDB at %s", settings.mongo_uri)
    client: MongoClient = MongoClient(
        settings.mongo_uri,
        serverSelectionTimeoutMS=settings.mongo_timeout_ms,
        tz_aware=True,
    )
    return client[settings.mongo_db][settings.mongo_collection]


def slugify(text: str) -> str:
    slug = _SLUG_STRIP_RE.sub("-", unidecode(text).lower()).strip("-")
    return slug or "product"


def _object_id(product_id: str) -> Optional[ObjectId]:
    try:
        return ObjectId(product_id)
    except (InvalidId, TypeError):
        return None


def serialize_product(doc: Dict[str, Any]) -> Dict[str, Any]:
    """Make a stored product JSON-friendly."""

    def convert(value: Any) -> Any:
        if isinstance(value, ObjectId):
            return str(value)
        if isinstance(value, datetime):
            return value.isoformat()
        if isinstance(value, dict):
            return {key: convert(item) for key, item in value.items()}
        if isinstance(value, list):
            return [convert(item) for item in value]
        return value

    return convert(doc)


class ProductStore:
    def __init__(self, collection: Collection) -> None:
        self.collection = collection

    def ensure_indexes(self) -> None:
        self.collection.create_index([("slug", ASCENDING)], unique=True)
        self.collection.create_index([("brand", ASCENDING)])
        self.collection.create_index([("categories", ASCENDING)])
        self.collection.create_index([("price", ASCENDING)])
        self.collection.create_index([("rating", DESCENDING)])
        self.collection.create_index([("createdAt", DESCENDING)])

    def _find(self, query: MongoQuery) -> List[Dict[str, Any]]:
        cursor = self.collection.find(query.filter).sort(query.sort).skip(query.skip).limit(query.limit)
        return list(cursor)

    def _count(self, query: MongoQuery) -> int:
        return self.collection.count_documents(query.filter)

    async def find_page(self, query: MongoQuery) -> Tuple[List[Dict[str, Any]], int]:
        docs, total = await asyncio.gather(
            asyncio.to_thread(self._find, query),
            asyncio.to_thread(self._count, query),
        )
        return docs, total

    def _suggest(self, prefix: str, limit: int) -> List[str]:
        cursor = self.collection.find(
            {"name": text_pattern(prefix), "isActive": True},
            {"name": 1},
        ).limit(limit)
        return [doc["name"] for doc in cursor if doc.get("name")]

    async def suggest_names(self, prefix: str, limit: int) -> List[str]:
        return await asyncio.to_thread(self._suggest, prefix, limit)

    async def get(self, product_id: str) -> Optional[Dict[str, Any]]:
        oid = _object_id(product_id)
        if oid is None:
            return None
        return await asyncio.to_thread(self.collection.find_one, {"_id": oid})

    async def get_by_slug(self, slug: str) -> Optional[Dict[str, Any]]:
        return await asyncio.to_thread(self.collection.find_one, {"slug": slug, "isActive": True})

    async def distinct(self, field: str) -> List[Any]:
        values = await asyncio.to_thread(self.collection.distinct, field, {"isActive": True})
        return sorted(value for value in values if value is not None)

    def _unique_slug(self, base: str, exclude: Optional[ObjectId] = None) -> str:
        slug = base
        counter = 1
        while True:
            query: Dict[str, Any] = {"slug": slug}
            if exclude is not None:
                query["_id"] = {"$ne": exclude}
            if self.collection.find_one(query, {"_id": 1}) is None:
                return slug
            slug = f"{base}-{counter}"
            counter += 1

    def _create(self, data: Dict[str, Any]) -> Dict[str, Any]:
        now = datetime.now(timezone.utc)
        doc = dict(data)
        doc["slug"] = self._unique_slug(slugify(doc.get("slug") or doc["name"]))
        doc.setdefault("isActive", True)
        doc["createdAt"] = now
        doc["updatedAt"] = now
        result = self.collection.insert_one(doc)
        doc["_id"] = result.inserted_id
        return doc

    async def create(self, data: Dict[str, Any]) -> Dict[str, Any]:
        return await asyncio.to_thread(self._create, data)

    def _update(self, oid: ObjectId, changes: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        changes = dict(changes)
        if changes.get("slug"):
            changes["slug"] = self._unique_slug(slugify(changes["slug"]), exclude=oid)
        changes["updatedAt"] = datetime.now(timezone.utc)
        return self.collection.find_one_and_update(
            {"_id": oid},
            {"$set": changes},
            return_document=ReturnDocument.AFTER,
        )

    async def update(self, product_id: str, changes: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        oid = _object_id(product_id)
        if oid is None:
            return None
        return await asyncio.to_thread(self._update, oid, changes)

    async def deactivate(self, product_id: str) -> Optional[Dict[str, Any]]:
        return await self.update(product_id, {"isActive": False})

    async def active_products(self) -> List[Dict[str, Any]]:
        return await asyncio.to_thread(lambda: list(self.collection.find({"isActive": True})))
