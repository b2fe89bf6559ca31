"""Shared fixtures: an in-memory stand-in for the boto3 DynamoDB ``Table``.

Only the calls ``TransactionStore`` makes are supported: ``get_item``,
conditional ``put_item`` (the two condition expressions the store issues) and
``scan``. ``before_put`` lets a test run code right before a write lands,
which is how concurrent writers are simulated.
"""

from __future__ import annotations

import copy
from datetime import date
from typing import Callable, Optional

import pytest
from botocore.exceptions import ClientError
from fastapi.testclient import TestClient

from app.core.security import get_current_user_id
from app.db.store import TransactionStore, get_transaction_store
from app.main import app
from app.routers.summary import get_today


def _client_error(code: str, operation: str) -> ClientError:
    return ClientError({"Error": {"Code": code, "Message": f"{code} (simulated)"}}, operation)


class FakeTable:
    def __init__(self) -> None:
        self.items: dict = {}
        self.fail_reads = False
        self.fail_writes = False
        self.before_put: Optional[Callable[[], None]] = None
        self.put_calls = 0

    def get_item(self, Key, ConsistentRead=False):
        if self.fail_reads:
            raise _client_error("InternalServerError", "GetItem")
        item = self.items.get(Key["owner_key"])
        return {"Item": copy.deepcopy(item)} if item is not None else {}

    def put_item(self, Item, ConditionExpression=None, ExpressionAttributeNames=None, ExpressionAttributeValues=None):
        self.put_calls += 1
        if self.before_put is not None:
            hook, self.before_put = self.before_put, None
            hook()
        if self.fail_writes:
            raise _client_error("ProvisionedThroughputExceededException", "PutItem")

        key = Item["owner_key"]
        existing = self.items.get(key)
        if ConditionExpression == "attribute_not_exists(owner_key)":
            allowed = existing is None
        elif ConditionExpression == "#version = :expected":
            allowed = existing is not None and existing["version"] == ExpressionAttributeValues[":expected"]
        else:
            allowed = True
        if not allowed:
            raise _client_error("ConditionalCheckFailedException", "PutItem")

        self.items[key] = copy.deepcopy(Item)
        return {}

    def scan(self, Limit=None):
        if self.fail_reads:
            raise _client_error("ResourceNotFoundException", "Scan")
        return {"Items": list(self.items.values())[:Limit]}


@pytest.fixture
def fake_table() -> FakeTable:
    return FakeTable()


@pytest.fixture
def store(fake_table: FakeTable) -> TransactionStore:
    return TransactionStore(fake_table, max_retries=3)


@pytest.fixture
def client(store: TransactionStore):
    app.dependency_overrides[get_transaction_store] = lambda: store
    app.dependency_overrides[get_current_user_id] = lambda: "user-1"
    app.dependency_overrides[get_today] = lambda: date(2024, 5, 20)
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
