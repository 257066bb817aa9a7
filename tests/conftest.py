"""Shared fixtures: metric builders and an in-memory stand-in for the MongoDB client."""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, Iterable

import bson
import pytest
from pymongo.errors import CollectionInvalid

from metric_sink.config import ConfigLocator, ConfigRepository, MongoDBOutputConfig
from metric_sink.metric import Metric, ValueType

T0 = datetime(2024, 5, 20, 8, 30, tzinfo=timezone.utc)


class StubCollection:
    """Record inserts; ``fail_on`` maps insert_one call index to the error to raise.

    Documents go through ``bson.encode`` like the driver does, so values the
    driver rejects fail here too.
    """

    def __init__(self, name: str) -> None:
        self.name = name
        self.documents: list[dict] = []
        self.calls: list[tuple[str, Any]] = []
        self.fail_on: dict[int, Exception] = {}
        self.batch_error: Exception | None = None

    def insert_one(self, document: dict) -> None:
        index = sum(1 for call, _ in self.calls if call == "insert_one")
        self.calls.append(("insert_one", document))
        error = self.fail_on.get(index)
        if error is not None:
            raise error
        bson.encode(document)
        self.documents.append(document)

    def insert_many(self, documents: Iterable[dict], ordered: bool = True) -> None:
        batch = list(documents)
        self.calls.append(("insert_many", batch))
        if self.batch_error is not None:
            raise self.batch_error
        for document in batch:
            bson.encode(document)
        self.documents.extend(batch)


class StubDatabase:
    def __init__(self, client: "StubMongoClient", name: str) -> None:
        self.client = client
        self.name = name
        self.collections: dict[str, StubCollection] = {}

    def list_collection_names(self) -> list[str]:
        self.client.record("list_collection_names", self.name)
        return list(self.collections)

    def get_collection(self, name: str) -> StubCollection:
        return self.collections[name]

    def create_collection(self, name: str) -> StubCollection:
        self.client.record("create_collection", self.name, name)
        if name in self.collections:
            raise CollectionInvalid(f"collection {name} already exists")
        collection = StubCollection(name)
        self.collections[name] = collection
        return collection


class StubMongoClient:
    """Mimic the slice of ``pymongo.MongoClient`` the output relies on.

    Instances double as the client factory: calling one records the URL and
    options and returns the same client. A database only shows up in
    ``list_database_names`` once it holds a collection, as with MongoDB.
    """

    def __init__(self) -> None:
        self.databases: dict[str, StubDatabase] = {}
        self.calls: list[tuple] = []
        self.failures: dict[str, Exception] = {}
        self.opened: list[tuple[str, dict]] = []
        self.closed = 0

    def __call__(self, url: str, **options: Any) -> "StubMongoClient":
        self.opened.append((url, options))
        return self

    def record(self, operation: str, *args: Any) -> None:
        self.calls.append((operation, *args))
        error = self.failures.get(operation)
        if error is not None:
            raise error

    def count(self, operation: str) -> int:
        return sum(1 for call in self.calls if call[0] == operation)

    def seed(self, database: str, collection: str) -> StubCollection:
        handle = self.get_database(database)
        stored = StubCollection(collection)
        handle.collections[collection] = stored
        return stored

    def list_database_names(self) -> list[str]:
        self.record("list_database_names")
        return [name for name, handle in self.databases.items() if handle.collections]

    def get_database(self, name: str) -> StubDatabase:
        if name not in self.databases:
            self.databases[name] = StubDatabase(self, name)
        return self.databases[name]

    def close(self) -> None:
        self.closed += 1


@pytest.fixture
def stub_client() -> StubMongoClient:
    return StubMongoClient()


@pytest.fixture
def mongo_config() -> Callable[..., MongoDBOutputConfig]:
    def _builder(**overrides: Any) -> MongoDBOutputConfig:
        base: dict[str, Any] = {
            "url": "mongodb://mongo.local:27017",
            "username": "agent",
            "password": "secret",
            "database": "telemetry",
            "collection": "samples",
        }
        base.update(overrides)
        return MongoDBOutputConfig(**base)

    return _builder


@pytest.fixture
def make_metric() -> Callable[..., Metric]:
    def _builder(**overrides: Any) -> Metric:
        base: dict[str, Any] = {
            "name": "cpu",
            "tags": {"host": "a"},
            "fields": {"usage": 0.5},
            "time": T0,
            "type": ValueType.GAUGE,
        }
        base.update(overrides)
        return Metric(**base)

    return _builder


@pytest.fixture
def temp_config_repository(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Iterable[ConfigRepository]:
    monkeypatch.setenv("METRIC_SINK_HOME", str(tmp_path))
    yield ConfigRepository(ConfigLocator(project_root=tmp_path))
