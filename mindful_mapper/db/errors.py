from __future__ import annotations

"""Storage error taxonomy.

StoreError
 ├─ StoreUnavailableError  接続不可 (connection refused, auth, driver missing)
 └─ StoreQueryError        クエリ失敗 / 制約違反
     └─ BatchInsertError   batch INSERT 失敗 (db.batch_insert)

Messages carry the underlying driver text verbatim. No retries are attempted.
"""

__all__ = [
    "StoreError",
    "StoreUnavailableError",
    "StoreQueryError",
    "BatchInsertError",
]


class StoreError(Exception):
    """Base class for durable store failures."""


class StoreUnavailableError(StoreError):
    """Raised when the durable store cannot be reached."""


class StoreQueryError(StoreError):
    """Raised when a store operation is rejected (query / constraint failure)."""


class BatchInsertError(StoreQueryError):
    pass
