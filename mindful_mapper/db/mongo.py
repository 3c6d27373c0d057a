from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Any

from pymongo import MongoClient, ReturnDocument
from pymongo.errors import ConnectionFailure, PyMongoError, ServerSelectionTimeoutError

from .errors import StoreQueryError, StoreUnavailableError

"""MongoDB RecordStore (pymongo).

Records are stored as documents, nested dicts included. Counters are documents
``{_id: <key>, seq: <int>}`` in the ``counters`` collection; increment uses a
single find_one_and_update($inc, upsert) so it is atomic on the server.
"""

__all__ = [
    "MongoStore",
]

logger = logging.getLogger(__name__)


class MongoStore:
    """RecordStore backed by one lazily-created MongoClient."""

    def __init__(
        self,
        uri: str,
        database: str,
        *,
        counters_collection: str = "counters",
        server_selection_timeout_ms: int = 5000,
    ) -> None:
        self.uri = uri
        self.database_name = database
        self.counters_collection = counters_collection
        self.server_selection_timeout_ms = server_selection_timeout_ms
        self._client: Any = None

    @property
    def database(self) -> Any:
        if self._client is None:
            try:
                self._client = MongoClient(
                    self.uri, serverSelectionTimeoutMS=self.server_selection_timeout_ms
                )
            except PyMongoError as e:
                raise StoreUnavailableError(f"cannot connect to MongoDB: {e}") from e
        return self._client[self.database_name]

    def _run(self, op: str, fn: Any, *args: Any, **kwargs: Any) -> Any:
        try:
            return fn(*args, **kwargs)
        except (ConnectionFailure, ServerSelectionTimeoutError) as e:
            raise StoreUnavailableError(f"MongoDB unavailable during {op}: {e}") from e
        except PyMongoError as e:
            raise StoreQueryError(f"MongoDB {op} failed: {e}") from e

    def insert_many(self, collection: str, records: Sequence[dict[str, Any]]) -> int:
        if not records:
            return 0
        coll = self.database[collection]
        # insert_many は渡した dict に _id を追加する
        result = self._run("insert_many", coll.insert_many, list(records))
        return len(result.inserted_ids)

    def increment_counter(self, key: str) -> int:
        coll = self.database[self.counters_collection]
        doc = self._run(
            "increment_counter",
            coll.find_one_and_update,
            {"_id": key},
            {"$inc": {"seq": 1}},
            upsert=True,
            return_document=ReturnDocument.AFTER,
        )
        return int(doc["seq"])

    def set_counter(self, key: str, value: int) -> None:
        coll = self.database[self.counters_collection]
        self._run("set_counter", coll.update_one, {"_id": key}, {"$set": {"seq": value}}, upsert=True)

    def get_counter(self, key: str) -> int | None:
        coll = self.database[self.counters_collection]
        doc = self._run("get_counter", coll.find_one, {"_id": key})
        return int(doc["seq"]) if doc else None

    def delete_all(self, collection: str) -> int:
        coll = self.database[collection]
        result = self._run("delete_all", coll.delete_many, {})
        return result.deleted_count

    def find_all(self, collection: str) -> list[dict[str, Any]]:
        coll = self.database[collection]
        return self._run("find_all", lambda: list(coll.find({})))

    def close(self) -> None:
        if self._client is not None:
            self._client.close()
        self._client = None
