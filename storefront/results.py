"""Map backend result shapes onto one paginated product list."""
from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Mapping

from .models import Pagination, ProductListData, ProductListResponse, ProductSearchHit

ENGINE = "elasticsearch"
DOCUMENT_STORE = "mongodb"


def total_pages(total: int, page_size: int) -> int:
    return math.ceil(total / page_size) if page_size > 0 else 0


@dataclass(frozen=True)
class SearchPage:
    hits: List[ProductSearchHit]
    total: int
    page: int
    page_size: int
    backend: str

    @property
    def total_pages(self) -> int:
        return total_pages(self.total, self.page_size)

    def to_response(self) -> ProductListResponse:
        return ProductListResponse(
            data=ProductListData(
                products=self.hits,
                pagination=Pagination(
                    page=self.page,
                    limit=self.page_size,
                    total=self.total,
                    totalPages=self.total_pages,
                ),
            )
        )


def _unique(values: Iterable[Any]) -> List[str]:
    seen: Dict[str, None] = {}
    for value in values:
        if value is not None:
            seen.setdefault(str(value), None)
    return list(seen)


def _as_list(value: Any) -> List[Any]:
    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        return list(value)
    return [value]


def hit_from_document(doc: Mapping[str, Any]) -> ProductSearchHit:
    variants = doc.get("variants") or []
    return ProductSearchHit(
        id=str(doc.get("_id")),
        name=doc.get("name", ""),
        brand=doc.get("brand"),
        description=doc.get("description"),
        categories=_as_list(doc.get("categories")),
        gender=doc.get("gender"),
        price=doc.get("price"),
        mrp=doc.get("mrp"),
        discount=doc.get("discount"),
        sizes=_unique(variant.get("size") for variant in variants),
        colors=_unique(variant.get("color") for variant in variants),
        rating=doc.get("rating"),
        stock=sum(int(variant.get("stock") or 0) for variant in variants),
        images=_as_list(doc.get("images")),
        slug=doc.get("slug"),
    )


def hit_from_engine(hit: Mapping[str, Any]) -> ProductSearchHit:
    source = hit.get("_source", {})
    return ProductSearchHit(
        id=str(hit.get("_id")),
        name=source.get("name", ""),
        brand=source.get("brand"),
        description=source.get("description"),
        categories=_as_list(source.get("categories")),
        gender=source.get("gender"),
        price=source.get("price"),
        mrp=source.get("mrp"),
        discount=source.get("discount"),
        sizes=_unique(_as_list(source.get("size"))),
        colors=_unique(_as_list(source.get("color"))),
        rating=source.get("rating"),
        stock=int(source.get("stock") or 0),
        images=_as_list(source.get("images")),
        slug=source.get("slug"),
        relevanceScore=hit.get("_score") if hit.get("_score") is not None else 0.0,
    )


def engine_total(response: Mapping[str, Any]) -> int:
    """Reported hit count; a lower bound when the engine caps total tracking."""
    total = response.get("hits", {}).get("total", 0)
    if isinstance(total, Mapping):
        return int(total.get("value", 0))
    return int(total or 0)


def from_engine(response: Mapping[str, Any], page: int, page_size: int) -> SearchPage:
    hits = response.get("hits", {}).get("hits", [])
    return SearchPage(
        hits=[hit_from_engine(hit) for hit in hits],
        total=engine_total(response),
        page=page,
        page_size=page_size,
        backend=ENGINE,
    )


def from_documents(
    docs: Iterable[Mapping[str, Any]], total: int, page: int, page_size: int
) -> SearchPage:
    return SearchPage(
        hits=[hit_from_document(doc) for doc in docs],
        total=total,
        page=page,
        page_size=page_size,
        backend=DOCUMENT_STORE,
    )
