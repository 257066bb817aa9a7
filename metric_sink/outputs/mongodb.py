"""MongoDB output: one document per metric, batched or one at a time."""

from __future__ import annotations

from typing import Any, Callable, Iterable

import structlog
from bson.errors import BSONError
from pymongo import MongoClient
from pymongo.collection import Collection
from pymongo.database import Database
from pymongo.errors import BulkWriteError, ConfigurationError, ConnectionFailure, PyMongoError

from ..config.models import MongoDBOutputConfig
from ..errors import BackendError, ConnectError, NotConnectedError, TransportError, WriteError
from ..logging_conf import LOGGER_NAME
from ..metric import Entry, Metric
from .base import BaseOutput

# Encoding failures (oversized ints, unencodable values) are raised by bson, not as PyMongoError.
STORE_ERRORS = (PyMongoError, BSONError, OverflowError)

SAMPLE_CONFIG = """\
outputs:
  mongodb:
    ## MongoDB connection string
    url: "mongodb://localhost:27017"

    ## Credentials; leave empty for anonymous access
    username: ""
    password: ""

    ## Database to write metrics to, created when missing
    database: "telegraf"

    ## Collection to write metrics to, created when missing
    collection: "metrics"

    ## Insert each flush with a single insert_many instead of one insert_one per metric
    use_batch_format: true
"""


class MongoDBOutput(BaseOutput):
    """Write metrics into a MongoDB collection."""

    description = "Send metrics to a MongoDB collection"
    sample_config = SAMPLE_CONFIG

    def __init__(
        self,
        config: MongoDBOutputConfig,
        logger: Any = None,
        client_factory: Callable[..., MongoClient] = MongoClient,
    ) -> None:
        self.config = config
        self.log = logger if logger is not None else structlog.get_logger(LOGGER_NAME).bind(output="mongodb")
        self._client_factory = client_factory
        self.client: MongoClient | None = None
        self.database: Database | None = None
        self.collection: Collection | None = None

    @property
    def ready(self) -> bool:
        return self.collection is not None

    def _client_options(self) -> dict[str, str]:
        options: dict[str, str] = {}
        if self.config.username:
            options["username"] = self.config.username
        if self.config.password:
            options["password"] = self.config.password
        return options

    def _failure(self, event: str, exc: PyMongoError, **context: Any) -> ConnectError:
        self.log.error(event, error=str(exc), **context)
        if isinstance(exc, ConnectionFailure):
            return TransportError(f"{event}: {exc}")
        return BackendError(f"{event}: {exc}")

    def connect(self) -> None:
        name, collection_name = self.config.database, self.config.collection
        try:
            client = self._client_factory(self.config.url, **self._client_options())
        except ConfigurationError as exc:
            self.log.error("client_create_failed", url=self.config.url, error=str(exc))
            raise TransportError(f"Invalid MongoDB endpoint {self.config.url!r}: {exc}") from exc

        try:
            try:
                exists = name in client.list_database_names()
            except PyMongoError as exc:
                raise self._failure("database_check_failed", exc, database=name) from exc

            # MongoDB materialises a database together with its first collection.
            if not exists:
                self.log.info("database_missing", database=name)
            database = client.get_database(name)

            try:
                collection_exists = collection_name in database.list_collection_names()
            except PyMongoError as exc:
                raise self._failure(
                    "collection_check_failed", exc, database=name, collection=collection_name
                ) from exc

            if collection_exists:
                collection = database.get_collection(collection_name)
            else:
                try:
                    collection = database.create_collection(collection_name)
                except PyMongoError as exc:
                    raise self._failure(
                        "collection_create_failed", exc, database=name, collection=collection_name
                    ) from exc
                self.log.info("collection_created", database=name, collection=collection_name)
        except ConnectError:
            client.close()
            raise

        previous = self.client
        self.client, self.database, self.collection = client, database, collection
        if previous is not None and previous is not client:
            previous.close()
        self.log.info("connected", database=name, collection=collection_name)

    def write(self, metrics: Iterable[Metric]) -> None:
        entries = [Entry.from_metric(metric) for metric in metrics]
        if not entries:
            return
        if self.collection is None:
            raise NotConnectedError("MongoDB output is not connected; call connect() first")
        if self.config.use_batch_format:
            self._write_batch(self.collection, entries)
        else:
            self._write_each(self.collection, entries)

    def _write_batch(self, collection: Collection, entries: list[Entry]) -> None:
        documents = [entry.to_document() for entry in entries]
        try:
            collection.insert_many(documents, ordered=True)
        except BulkWriteError as exc:
            failed = len(exc.details.get("writeErrors", []))
            self.log.error("batch_write_failed", count=len(documents), failed=failed, error=str(exc))
            raise WriteError(f"Could not write {len(documents)} entries: {exc}", failed=failed) from exc
        except STORE_ERRORS as exc:
            self.log.error("batch_write_failed", count=len(documents), error=str(exc))
            raise WriteError(f"Could not write {len(documents)} entries: {exc}") from exc
        self.log.debug("batch_written", count=len(documents))

    def _write_each(self, collection: Collection, entries: list[Entry]) -> None:
        last_error: Exception | None = None
        failed = 0
        for index, entry in enumerate(entries):
            try:
                collection.insert_one(entry.to_document())
            except STORE_ERRORS as exc:
                failed += 1
                last_error = exc
                self.log.error("entry_write_failed", index=index, metric=entry.name, error=str(exc))
        if last_error is not None:
            raise WriteError(
                f"Could not write {failed} of {len(entries)} entries: {last_error}", failed=failed
            ) from last_error
        self.log.debug("entries_written", count=len(entries))

    def close(self) -> None:
        # Handles stay valid; pymongo reopens a closed client on its next operation.
        if self.client is not None:
            self.client.close()


def create_mongodb_output(options: dict[str, Any], logger: Any = None) -> MongoDBOutput:
    return MongoDBOutput(MongoDBOutputConfig.model_validate(options), logger=logger)


__all__ = ["MongoDBOutput", "SAMPLE_CONFIG", "create_mongodb_output"]
