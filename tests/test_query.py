"""Query parameter normalization."""
import pytest

from storefront.query import (
    SearchDescriptor,
    SearchFilters,
    SortKey,
    descriptor_to_params,
    normalize_params,
)


def test_defaults_without_parameters():
    descriptor = normalize_params({})

    assert descriptor == SearchDescriptor()
    assert descriptor.page == 1
    assert descriptor.page_size == 20
    assert descriptor.offset == 0
    assert descriptor.sort is SortKey.NEWEST


def test_text_defaults_to_relevance():
    assert normalize_params({"q": "shirt"}).sort is SortKey.RELEVANCE


def test_relevance_without_text_becomes_newest():
    assert normalize_params({"sort": "relevance"}).sort is SortKey.NEWEST
    assert normalize_params({"q": "   ", "sort": "relevance"}).sort is SortKey.NEWEST


def test_unknown_sort_falls_back_to_default():
    assert normalize_params({"sort": "cheapest"}).sort is SortKey.NEWEST
    assert normalize_params({"q": "shirt", "sort": "cheapest"}).sort is SortKey.RELEVANCE


@pytest.mark.parametrize("raw", ["abc", "", "nan", "inf", None])
def test_non_numeric_bounds_are_absent_not_zero(raw):
    descriptor = normalize_params({"price_min": raw, "price_max": raw, "rating_min": raw})

    assert descriptor.filters.price_min is None
    assert descriptor.filters.price_max is None
    assert descriptor.filters.rating_min is None


def test_numeric_bounds_are_parsed():
    descriptor = normalize_params({"price_min": "99.5", "price_max": "300", "rating_min": "4"})

    assert descriptor.filters.price_min == 99.5
    assert descriptor.filters.price_max == 300.0
    assert descriptor.filters.rating_min == 4.0


@pytest.mark.parametrize(
    "page, limit, expected",
    [
        ("3", "10", (3, 10)),
        ("0", "0", (1, 1)),
        ("-4", "-1", (1, 1)),
        ("two", "many", (1, 20)),
        ("2.5", "15", (1, 15)),
        ("1", "5000", (1, 100)),
    ],
)
def test_pagination_is_coerced(page, limit, expected):
    descriptor = normalize_params({"page": page, "limit": limit})

    assert (descriptor.page, descriptor.page_size) == expected


def test_offset_is_zero_based():
    assert normalize_params({"page": "3", "limit": "20"}).offset == 40


def test_equality_filters_keep_their_casing():
    descriptor = normalize_params({"brand": "nike", "color": "RED", "size": "m"})

    assert descriptor.filters.equality() == {"brand": "nike", "size": "m", "color": "RED"}


def test_unknown_parameters_are_ignored():
    descriptor = normalize_params({"category": "Men", "utm_source": "mail", "foo": "bar"})

    assert descriptor.filters == SearchFilters(category="Men")


def test_multi_valued_parameters_keep_first_value():
    descriptor = normalize_params({"category": ["Men", "Women"], "page": ["2"]})

    assert descriptor.filters.category == "Men"
    assert descriptor.page == 2


@pytest.mark.parametrize(
    "raw",
    [
        {},
        {"q": "  shirt ", "sort": "price_low"},
        {"category": "Men", "brand": "Nike", "size": "M", "color": "Red", "gender": "male"},
        {"price_min": "0.1", "price_max": "1e3", "rating_min": "3.3333333"},
        {"sort": "relevance", "page": "-1", "limit": "abc"},
        {"q": "jeans", "page": "4", "limit": "7", "price_max": "oops"},
    ],
)
def test_normalization_is_idempotent(raw):
    once = normalize_params(raw)

    assert normalize_params(descriptor_to_params(once)) == once


@pytest.mark.parametrize("limit", ["1", "20", "33", "100"])
def test_deep_pages_clamp_to_result_window(limit):
    descriptor = normalize_params({"page": "600", "limit": limit})

    assert descriptor.offset + descriptor.page_size <= 10000
    assert descriptor.page == min(600, 10000 // int(limit))


def test_huge_page_numbers_keep_offset_in_int64():
    descriptor = normalize_params({"page": str(10**20)})

    assert descriptor.page == 500
    assert descriptor.offset < 2**63


def test_result_window_is_configurable():
    descriptor = normalize_params({"page": "9", "limit": "10"}, max_result_window=50)

    assert descriptor.page == 5
    assert normalize_params(descriptor_to_params(descriptor), max_result_window=50) == descriptor
