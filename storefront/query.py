"""Turn raw ``/products`` query parameters into a backend-agnostic descriptor.

Normalization never rejects a request: anything that cannot be parsed is
treated as absent and the query degrades instead.
"""
from __future__ import annotations

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Mapping, Optional

DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 100
# Deepest offset + page size either backend is asked for; matches the engine's
# default index.max_result_window.
MAX_RESULT_WINDOW = 10000

EQUALITY_PARAMS = ("category", "brand", "gender", "size", "color")


class SortKey(str, Enum):
    RELEVANCE = "relevance"
    PRICE_LOW = "price_low"
    PRICE_HIGH = "price_high"
    RATING = "rating"
    NEWEST = "newest"


@dataclass(frozen=True)
class SearchFilters:
    category: Optional[str] = None
    brand: Optional[str] = None
    gender: Optional[str] = None
    size: Optional[str] = None
    color: Optional[str] = None
    price_min: Optional[float] = None
    price_max: Optional[float] = None
    rating_min: Optional[float] = None

    def equality(self) -> Dict[str, str]:
        """Equality constraints that are set, keyed by wire parameter name."""
        values = {name: getattr(self, name) for name in EQUALITY_PARAMS}
        return {name: value for name, value in values.items() if value is not None}


@dataclass(frozen=True)
class SearchDescriptor:
    text: Optional[str] = None
    filters: SearchFilters = field(default_factory=SearchFilters)
    sort: SortKey = SortKey.NEWEST
    page: int = 1
    page_size: int = DEFAULT_PAGE_SIZE

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.page_size


def _first(value: Any) -> Any:
    # Multi-valued query strings keep the first occurrence.
    if isinstance(value, (list, tuple)):
        return value[0] if value else None
    return value


def _parse_str(value: Any) -> Optional[str]:
    value = _first(value)
    if value is None:
        return None
    value = str(value)
    return value if value != "" else None


def _parse_float(value: Any) -> Optional[float]:
    value = _first(value)
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


def _parse_int(value: Any) -> Optional[int]:
    value = _first(value)
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    try:
        return int(str(value).strip())
    except ValueError:
        return None


def _parse_sort(value: Any, has_text: bool) -> SortKey:
    default = SortKey.RELEVANCE if has_text else SortKey.NEWEST
    raw = _parse_str(value)
    try:
        sort = SortKey(raw) if raw is not None else default
    except ValueError:
        sort = default
    if sort is SortKey.RELEVANCE and not has_text:
        # Nothing to score against without a search term.
        return SortKey.NEWEST
    return sort


def normalize_params(
    raw: Mapping[str, Any],
    *,
    default_page_size: int = DEFAULT_PAGE_SIZE,
    max_page_size: int = MAX_PAGE_SIZE,
    max_result_window: int = MAX_RESULT_WINDOW,
) -> SearchDescriptor:
    text = _parse_str(raw.get("q"))
    text = text.strip() if text else None
    text = text or None

    filters = SearchFilters(
        **{name: _parse_str(raw.get(name)) for name in EQUALITY_PARAMS},
        price_min=_parse_float(raw.get("price_min")),
        price_max=_parse_float(raw.get("price_max")),
        rating_min=_parse_float(raw.get("rating_min")),
    )

    page = _parse_int(raw.get("page"))
    page_size = _parse_int(raw.get("limit"))
    page = max(page if page is not None else 1, 1)
    page_size = max(page_size if page_size is not None else default_page_size, 1)
    page_size = min(page_size, max(max_page_size, 1))
    # Pages past the window clamp to the last reachable page.
    page = min(page, max(max_result_window // page_size, 1))

    return SearchDescriptor(
        text=text,
        filters=filters,
        sort=_parse_sort(raw.get("sort"), text is not None),
        page=page,
        page_size=page_size,
    )


def descriptor_to_params(descriptor: SearchDescriptor) -> Dict[str, str]:
    """Render a descriptor back into wire parameters (inverse of normalization)."""

    params: Dict[str, str] = {}
    if descriptor.text is not None:
        params["q"] = descriptor.text
    params.update(descriptor.filters.equality())
    for name in ("price_min", "price_max", "rating_min"):
        value = getattr(descriptor.filters, name)
        if value is not None:
            params[name] = repr(value)
    params["sort"] = descriptor.sort.value
    params["page"] = str(descriptor.page)
    params["limit"] = str(descriptor.page_size)
    return params
