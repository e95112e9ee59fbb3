"""Shared fixtures: a mongomock catalogue and an in-process Elasticsearch stand-in."""
from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List

import mongomock
import pytest
from elastic_transport import ConnectionError as ESConnectionError

from storefront.availability import AvailabilityState
from storefront.cache import NullCache
from storefront.config import Settings
from storefront.services import Services
from storefront.store import ProductStore
from storefront.sync import build_index_document

BASE_TIME = datetime(2024, 1, 1, tzinfo=timezone.utc)

CATEGORIES = ["Men", "Women", "Kids"]
BRANDS = ["Nike", "Puma", "Levis", "Zara", "H&M"]
GENDERS = ["male", "female", "unisex"]
SIZES = ["S", "M", "L", "XL"]
COLORS = ["Red", "Blue", "Black", "White"]
NAMES = ["Cotton Shirt", "Slim Jeans", "Running Shoes", "Hoodie", "Linen SHIRT", "Chino Pants", "Sweatshirt"]


def make_product(i: int) -> Dict[str, Any]:
    return {
        "name": f"{NAMES[i % len(NAMES)]} {i}",
        "slug": f"product-{i}",
        "description": "Everyday wear" if i % 4 else "Goes well with a plain shirt",
        "brand": BRANDS[i % len(BRANDS)],
        "categories": [CATEGORIES[i % 3], "Apparel"],
        "gender": GENDERS[i % 3],
        "price": float(100 + (i * 37) % 400),
        "mrp": float(600),
        "discount": 10,
        "images": [f"https://img.example/{i}.jpg"],
        "variants": [
            {"size": SIZES[i % 4], "color": COLORS[i % 4], "sku": f"SKU-{i}-a", "stock": 3},
            {"size": SIZES[(i + 1) % 4], "color": COLORS[(i + 2) % 4], "sku": f"SKU-{i}-b", "stock": 2},
        ],
        "rating": round((i % 10) / 2, 1),
        "tags": [],
        # Every tenth product is soft-deleted.
        "isActive": i % 10 != 9,
        "createdAt": BASE_TIME + timedelta(hours=i),
        "updatedAt": BASE_TIME + timedelta(hours=i),
    }


@pytest.fixture
def settings() -> Settings:
    return Settings(es_enabled=False, redis_enabled=False, admin_token="")


@pytest.fixture
def collection():
    return mongomock.MongoClient().storefront.products


@pytest.fixture
def catalogue(collection) -> List[Dict[str, Any]]:
    docs = [make_product(i) for i in range(50)]
    collection.insert_many(docs)
    return list(collection.find())


@pytest.fixture
def store(collection) -> ProductStore:
    return ProductStore(collection)


class _Indices:
    def __init__(self, es: "FakeElasticsearch") -> None:
        self.es = es

    def exists(self, index: str) -> bool:
        return index in self.es.indices_created

    def create(self, index: str, **kwargs: Any) -> dict:
        self.es.indices_created[index] = kwargs
        return {"acknowledged": True}

    def delete(self, index: str) -> dict:
        self.es.indices_created.pop(index, None)
        self.es.docs.clear()
        return {"acknowledged": True}


class _Cluster:
    def __init__(self, es: "FakeElasticsearch") -> None:
        self.es = es

    def health(self) -> dict:
        self.es._maybe_fail()
        return {"status": "green"}


def _field_values(source: Dict[str, Any], field: str) -> List[Any]:
    value = source.get(field.split(".")[0])
    if value is None:
        return []
    return value if isinstance(value, list) else [value]


def _matches_filter(source: Dict[str, Any], clause: Dict[str, Any]) -> bool:
    if "term" in clause:
        (field, value), = clause["term"].items()
        return value in _field_values(source, field)
    if "range" in clause:
        (field, bounds), = clause["range"].items()
        values = _field_values(source, field)
        if not values:
            return False
        number = values[0]
        if "gte" in bounds and number < bounds["gte"]:
            return False
        if "lte" in bounds and number > bounds["lte"]:
            return False
        return True
    raise AssertionError(f"unsupported filter clause {clause}")


def _text_score(source: Dict[str, Any], should: List[Dict[str, Any]]) -> float:
    score = 0.0
    for clause in should:
        (field, spec), = clause["match"].items()
        term = spec["query"].lower()
        for value in _field_values(source, field):
            if term in str(value).lower():
                score += spec.get("boost", 1.0)
    return score


class FakeElasticsearch:
    """Just enough of the client surface for the providers, probe and sync."""

    def __init__(self, *, fail: bool = False) -> None:
        self.fail = fail
        self.docs: Dict[str, Dict[str, Any]] = {}
        self.indices_created: Dict[str, Any] = {}
        self.requests: List[Dict[str, Any]] = []
        self.indices = _Indices(self)
        self.cluster = _Cluster(self)

    def _maybe_fail(self) -> None:
        if self.fail:
            raise ESConnectionError("connection refused")

    def options(self, **kwargs: Any) -> "FakeElasticsearch":
        return self

    def load(self, products: List[Dict[str, Any]]) -> "FakeElasticsearch":
        for product in products:
            if product.get("isActive", True):
                self.docs[str(product["_id"])] = build_index_document(product)
        return self

    def index(self, index: str, id: str, document: Dict[str, Any]) -> dict:
        self._maybe_fail()
        self.docs[id] = document
        return {"result": "created"}

    def delete(self, index: str, id: str) -> dict:
        self._maybe_fail()
        self.docs.pop(id, None)
        return {"result": "deleted"}

    def search(self, index: str, body: Dict[str, Any]) -> Dict[str, Any]:
        self._maybe_fail()
        self.requests.append(body)
        if "suggest" in body:
            return self._suggest(body["suggest"])
        bool_query = body["query"]["bool"]
        should = bool_query.get("should", [])
        hits = []
        for doc_id, source in self.docs.items():
            if not all(_matches_filter(source, clause) for clause in bool_query.get("filter", [])):
                continue
            score = _text_score(source, should) if should else 1.0
            if should and score == 0:
                continue
            hits.append({"_id": doc_id, "_score": score, "_source": source})
        for sort in reversed(body.get("sort", [])):
            (field, spec), = sort.items()
            key = (lambda h: h["_score"]) if field == "_score" else (lambda h, f=field: h["_source"].get(f))
            hits.sort(key=key, reverse=spec["order"] == "desc")
        start = body.get("from", 0)
        page = hits[start:start + body.get("size", 10)]
        return {"took": 1, "hits": {"total": {"value": len(hits), "relation": "eq"}, "hits": page}}

    def _suggest(self, suggest: Dict[str, Any]) -> Dict[str, Any]:
        (name, spec), = suggest.items()
        prefix = spec["prefix"].lower()
        size = spec["completion"]["size"]
        options = [
            {"text": source["name"]}
            for source in self.docs.values()
            if source["name"].lower().startswith(prefix)
        ][:size]
        return {"suggest": {name: [{"text": spec["prefix"], "options": options}]}}


@pytest.fixture
def fake_es(catalogue) -> FakeElasticsearch:
    return FakeElasticsearch().load(catalogue)


@pytest.fixture
def fallback_services(settings, store, catalogue) -> Services:
    return Services(
        settings=settings,
        availability=AvailabilityState(search_engine=False, cache=False),
        store=store,
        cache=NullCache(),
    )


@pytest.fixture
def engine_services(settings, store, fake_es) -> Services:
    return Services(
        settings=settings,
        availability=AvailabilityState(search_engine=True, cache=False),
        store=store,
        es=fake_es,
        cache=NullCache(),
    )


@pytest.fixture
def fake_es_factory():
    return FakeElasticsearch
