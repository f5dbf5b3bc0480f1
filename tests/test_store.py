from decimal import Decimal
from unittest.mock import MagicMock

import pytest
from botocore.exceptions import ClientError

from app.db.base import StoreError, sort_and_page
from app.db.dynamo import DynamoDocumentStore, DynamoIdentityService, _convert_for_dynamo, _from_dynamo
from app.db.memory import InMemoryDocumentStore


def client_error(code, message="boom"):
    return ClientError({"Error": {"Code": code, "Message": message}}, "Operation")


def test_sort_and_page_puts_missing_values_last():
    docs = [{"id": "a", "n": 2}, {"id": "b"}, {"id": "c", "n": 5}]
    assert [d["id"] for d in sort_and_page(docs, "n", "desc")] == ["c", "a", "b"]
    assert [d["id"] for d in sort_and_page(docs, "n", "asc")] == ["a", "c", "b"]


def test_sort_and_page_skip_and_limit():
    docs = [{"n": i} for i in range(10)]
    assert [d["n"] for d in sort_and_page(docs, "n", "asc", skip=5, limit=5)] == [5, 6, 7, 8, 9]
    assert [d["n"] for d in sort_and_page(docs, "n", "asc", skip=-4, limit=2)] == [0, 1]
    assert len(sort_and_page(docs, "n", "asc", limit=0)) == 10


def test_memory_store_assigns_ids_and_timestamps():
    store = InMemoryDocumentStore()
    doc = store.insert_one({"user_id": "u1", "item": "tea"})
    assert doc["id"]
    assert doc["created_at"] == doc["updated_at"]

    updated = store.find_by_id_and_update(doc["id"], {"item": "coffee"})
    assert updated["item"] == "coffee"
    assert updated["created_at"] == doc["created_at"]
    assert store.find_by_id_and_update("missing", {"item": "x"}) is None


def test_memory_store_returns_copies():
    store = InMemoryDocumentStore()
    doc = store.insert_one({"user_id": "u1", "tags": ["a"]})
    found = store.find({"user_id": "u1"})[0]
    found["tags"].append("b")
    assert store.find_by_id(doc["id"])["tags"] == ["a"]


def test_memory_store_filters_and_counts():
    store = InMemoryDocumentStore()
    store.insert_many([{"user_id": "u1"}, {"user_id": "u1"}, {"user_id": "u2"}])
    assert store.count({"user_id": "u1"}) == 2
    assert store.count() == 3
    assert len(store.find({"user_id": "u2"})) == 1


def make_store():
    dynamodb = MagicMock()
    store = DynamoDocumentStore("expenses-table", dynamodb=dynamodb)
    return store, dynamodb.Table.return_value


def test_dynamo_find_follows_pagination_and_sorts():
    store, table = make_store()
    table.query.side_effect = [
        {"Items": [{"id": "a", "user_id": "u1", "price": Decimal("2.5")}], "LastEvaluatedKey": {"id": "a"}},
        {"Items": [{"id": "b", "user_id": "u1", "price": Decimal("10")}]},
    ]
    docs = store.find({"user_id": "u1"}, sort_by="price", order="desc")
    assert docs == [{"id": "b", "user_id": "u1", "price": 10}, {"id": "a", "user_id": "u1", "price": 2.5}]
    assert table.query.call_args_list[1].kwargs["ExclusiveStartKey"] == {"id": "a"}
    assert table.query.call_args_list[0].kwargs["IndexName"] == "user_id-index"


def test_dynamo_find_without_user_scans():
    store, table = make_store()
    table.scan.return_value = {"Items": [{"id": "a", "is_public": True}]}
    assert store.count({"is_public": True}) == 1
    assert "FilterExpression" in table.scan.call_args.kwargs


def test_dynamo_insert_converts_floats():
    store, table = make_store()
    doc = store.insert_one({"user_id": "u1", "price": 3.5})
    item = table.put_item.call_args.kwargs["Item"]
    assert item["price"] == Decimal("3.5")
    assert item["id"] == doc["id"]


def test_dynamo_update_missing_record_returns_none():
    store, table = make_store()
    table.update_item.side_effect = client_error("ConditionalCheckFailedException")
    assert store.find_by_id_and_update("missing", {"price": 1.0}) is None


def test_dynamo_errors_raise_store_error():
    store, table = make_store()
    table.delete_item.side_effect = client_error("ResourceNotFoundException", "table missing")
    with pytest.raises(StoreError, match="table missing"):
        store.find_by_id_and_delete("a")


def test_dynamo_delete_returns_old_item():
    store, table = make_store()
    table.delete_item.return_value = {"Attributes": {"id": "a", "price": Decimal("1")}}
    assert store.find_by_id_and_delete("a") == {"id": "a", "price": 1}


def test_dynamo_identity_reads_role():
    dynamodb = MagicMock()
    identity = DynamoIdentityService("users", dynamodb=dynamodb)
    table = dynamodb.Table.return_value
    table.get_item.return_value = {"Item": {"user_id": "u1", "role": "admin"}}
    assert identity.is_admin("u1") is True
    table.get_item.return_value = {}
    assert identity.is_admin("u2") is False


def test_decimal_round_trip_helpers():
    converted = _convert_for_dynamo({"a": [1.25, {"b": 2.0}], "c": "x"})
    assert converted == {"a": [Decimal("1.25"), {"b": Decimal("2.0")}], "c": "x"}
    assert _from_dynamo(converted) == {"a": [1.25, {"b": 2}], "c": "x"}


def test_sort_and_page_orders_structured_and_mixed_values():
    docs = [
        {"id": "list", "v": [{"a": 1}]},
        {"id": "text", "v": "abc"},
        {"id": "dict", "v": {"a": 1}},
        {"id": "num", "v": 3},
    ]
    assert [d["id"] for d in sort_and_page(docs, "v", "asc")] == ["num", "text", "dict", "list"]
    assert [d["id"] for d in sort_and_page(docs, "v", "desc")] == ["list", "dict", "text", "num"]
