"""Best-effort index sync and full reindex."""
import asyncio
import logging

import pytest

from storefront import sync as sync_module
from storefront.errors import SearchUnavailableError
from storefront.sync import IndexSync, SyncOperation, build_index_document


def test_index_document_is_denormalized(catalogue):
    product = catalogue[0]
    document = build_index_document(product)

    assert document["size"] == [v["size"] for v in product["variants"]]
    assert document["color"] == [v["color"] for v in product["variants"]]
    assert document["stock"] == 5
    assert document["createdAt"] == product["createdAt"]
    assert "variants" not in document


def test_sync_without_engine_is_a_no_op(catalogue):
    sync = IndexSync(None, "products")

    assert sync.enabled is False
    asyncio.run(sync.sync(catalogue[0], SyncOperation.CREATE))


def test_create_and_update_upsert_the_document(fake_es_factory, catalogue):
    es = fake_es_factory()
    sync = IndexSync(es, "products")
    product = dict(catalogue[0])

    asyncio.run(sync.sync(product, SyncOperation.CREATE))
    assert es.docs[str(product["_id"])]["name"] == product["name"]

    product["name"] = "Renamed"
    asyncio.run(sync.sync(product, "update"))
    assert es.docs[str(product["_id"])]["name"] == "Renamed"


def test_delete_and_inactive_remove_the_document(fake_es_factory, catalogue):
    es = fake_es_factory().load(catalogue)
    sync = IndexSync(es, "products")
    first, second = catalogue[0], catalogue[1]

    asyncio.run(sync.sync(first, SyncOperation.DELETE))
    asyncio.run(sync.sync({**second, "isActive": False}, SyncOperation.UPDATE))

    assert str(first["_id"]) not in es.docs
    assert str(second["_id"]) not in es.docs


def test_sync_failures_are_swallowed_and_logged(fake_es_factory, catalogue, caplog):
    sync = IndexSync(fake_es_factory(fail=True), "products")

    with caplog.at_level(logging.WARNING):
        asyncio.run(sync.sync(catalogue[0], SyncOperation.CREATE))

    assert "Failed to create product" in caplog.text


def test_reindex_bulk_loads_active_products(fake_es_factory, catalogue, monkeypatch):
    es = fake_es_factory()
    captured = []

    def fake_bulk(client, actions):
        captured.extend(actions)
        return len(captured), []

    monkeypatch.setattr(sync_module.helpers, "bulk", fake_bulk)

    count = asyncio.run(IndexSync(es, "products").reindex(catalogue))

    active = [doc for doc in catalogue if doc["isActive"]]
    assert count == len(active)
    assert {action["_id"] for action in captured} == {str(doc["_id"]) for doc in active}
    assert "products" in es.indices_created


def test_reindex_failure_is_service_unavailable(fake_es_factory, catalogue, monkeypatch):
    es = fake_es_factory()

    def broken_bulk(client, actions):
        es.fail = True
        es._maybe_fail()

    monkeypatch.setattr(sync_module.helpers, "bulk", broken_bulk)

    with pytest.raises(SearchUnavailableError):
        asyncio.run(IndexSync(es, "products").reindex(catalogue))
