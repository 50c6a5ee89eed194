"""Record store keeping durable records and their index in step."""

from __future__ import annotations

import logging
import math
from collections.abc import Iterable, Iterator, Sequence
from contextlib import contextmanager
from datetime import datetime
from typing import Any, Union

from vectorsearch.core.cancellation import CancellationToken, check
from vectorsearch.core.config import CollectionConfig
from vectorsearch.core.errors import (
    Cancelled,
    DimensionMismatch,
    DuplicateId,
    IndexCorruption,
    InvalidRecord,
    NotFound,
    VectorSearchError,
)
from vectorsearch.core.index import HNSWIndex
from vectorsearch.core.locks import KeyedLock, ReadWriteLock
from vectorsearch.core.models import BatchReport, VectorRecord
from vectorsearch.core.storage.base import StorageBackend
from vectorsearch.utils.serialization import is_json_serializable

logger = logging.getLogger(__name__)

RecordInput = Union[
    VectorRecord,
    tuple[Any, Sequence[float]],
    tuple[Any, Sequence[float], dict[str, Any] | None],
]


def coerce_vector(vector: Sequence[float]) -> list[float]:
    """Convert a vector to floats, rejecting empty and non-finite input.

    Raises:
        InvalidRecord: If the vector cannot be stored or searched
    """
    try:
        values = [float(x) for x in vector]
    except (TypeError, ValueError) as exc:
        raise InvalidRecord(f"vector must contain numbers: {exc}") from exc
    if not values:
        raise InvalidRecord("vector must not be empty")
    if not all(math.isfinite(x) for x in values):
        raise InvalidRecord("vector must contain only finite values")
    return values


class VectorRecordStore:
    """Collection of embedding records with a synchronously maintained index.

    The storage backend holds the records; the index is derived from them and
    can always be rebuilt. Every mutation updates both before returning.

    Concurrency:
        - Mutations of the same id are serialised by a per-id lock.
        - The backend write and index update are applied together under the
          write side of a read/write lock, and queries read under the read
          side, so a query never sees a record in one place but not the other.

    Example:
        store = VectorRecordStore(CollectionConfig(metric="cosine"))
        store.insert("a", [1.0, 0.0, 0.0], {"text": "apples"})
        store.get_many(["a"])
    """

    def __init__(
        self,
        config: CollectionConfig | None = None,
        backend: StorageBackend | None = None,
        index: HNSWIndex | None = None,
    ) -> None:
        self.config = config or CollectionConfig()

        if backend is not None:
            self._backend = backend
        else:
            from vectorsearch.core.storage.config import create_storage_backend

            # config.storage is guaranteed to exist due to CollectionConfig validation
            assert self.config.storage is not None
            self._backend = create_storage_backend(self.config.storage, self.config.name)

        self._index = (
            index
            if index is not None
            else HNSWIndex.from_config(self.config.index, self.config.metric)
        )
        self._dimension: int | None = self.config.dimension
        self._rw = ReadWriteLock()
        self._id_locks = KeyedLock()
        self._generation = 0
        self._corrupt = False
        self._load()

    def _load(self) -> None:
        """Replay records already held by the backend into the index."""
        records = self._all_unlocked()
        if not records:
            return
        if self._dimension is None:
            self._dimension = records[0].dimension
        for record in records:
            if record.dimension != self._dimension:
                raise DimensionMismatch(self._dimension, record.dimension)
        self._index.rebuild_from(records)
        logger.info(
            "Loaded %d records into collection %r", len(records), self.config.name
        )

    @property
    def dimension(self) -> int | None:
        """Vector dimension, or None until the first record fixes it."""
        return self._dimension

    @property
    def metric(self) -> str:
        return self.config.metric

    @property
    def index(self) -> HNSWIndex:
        return self._index

    @property
    def backend(self) -> StorageBackend:
        return self._backend

    @property
    def is_corrupt(self) -> bool:
        return self._corrupt

    def __len__(self) -> int:
        with self._rw.read():
            return self._backend.size()

    def __contains__(self, record_id: object) -> bool:
        with self._rw.read():
            return self._backend.exists(str(record_id))

    @contextmanager
    def snapshot(self) -> Iterator[None]:
        """Hold a consistent read view across several index and record reads."""
        with self._rw.read():
            yield

    # -- validation ------------------------------------------------------

    @staticmethod
    def _coerce_payload(payload: dict[str, Any] | None) -> dict[str, Any]:
        if payload is None:
            return {}
        if not isinstance(payload, dict) or not all(isinstance(k, str) for k in payload):
            raise InvalidRecord("payload must be a mapping with string keys")
        if not is_json_serializable(payload):
            raise InvalidRecord("payload must be JSON serializable")
        return dict(payload)

    def _check_dimension(self, vector: list[float]) -> None:
        """Validate against the collection dimension. Call under the write lock."""
        if self._dimension is not None and len(vector) != self._dimension:
            raise DimensionMismatch(self._dimension, len(vector))

    # -- mutations -------------------------------------------------------

    def _apply_put(self, record: VectorRecord, previous: VectorRecord | None) -> None:
        """Write a record to backend and index. Call under the write lock."""
        self._backend.set(record.id, record.to_dict())
        try:
            if previous is None:
                self._index.insert(record.id, record.vector)
            else:
                self._index.update(record.id, record.vector)
        except Exception:
            self._corrupt = True
            logger.exception("Index update failed for %r; rolling back", record.id)
            self._rollback(record.id, previous)
            raise
        if self._dimension is None:
            self._dimension = record.dimension
        self._generation += 1

    def _rollback(self, record_id: str, previous: VectorRecord | None) -> None:
        try:
            if previous is None:
                self._backend.delete(record_id)
            else:
                self._backend.set(record_id, previous.to_dict())
        except Exception:
            logger.exception("Rollback of %r failed; store and index diverged", record_id)

    def insert(
        self,
        record_id: Any,
        vector: Sequence[float],
        payload: dict[str, Any] | None = None,
        cancel: CancellationToken | None = None,
    ) -> VectorRecord:
        """Insert a new record.

        Raises:
            DuplicateId: If the id already exists
            DimensionMismatch: If the vector length differs from the collection's
            InvalidRecord: If the vector or payload cannot be stored
            Cancelled: If cancel was set before the record was applied
        """
        record_id = str(record_id)
        values = coerce_vector(vector)
        payload = self._coerce_payload(payload)

        with self._id_locks.hold(record_id):
            check(cancel)
            with self._rw.write():
                if self._backend.exists(record_id):
                    raise DuplicateId(record_id)
                self._check_dimension(values)
                record = VectorRecord(id=record_id, vector=values, payload=payload)
                self._apply_put(record, previous=None)
        return record.copy()

    def upsert(
        self,
        record_id: Any,
        vector: Sequence[float],
        payload: dict[str, Any] | None = None,
        cancel: CancellationToken | None = None,
    ) -> VectorRecord:
        """Insert a record, or replace the vector and payload of an existing one."""
        record_id = str(record_id)
        values = coerce_vector(vector)
        payload = self._coerce_payload(payload)

        with self._id_locks.hold(record_id):
            check(cancel)
            with self._rw.write():
                self._check_dimension(values)
                existing = self._backend.get(record_id)
                previous = VectorRecord.from_dict(existing) if existing is not None else None
                record = VectorRecord(id=record_id, vector=values, payload=payload)
                if previous is not None:
                    record.created_at = previous.created_at
                    record.updated_at = datetime.now()
                self._apply_put(record, previous=previous)
        return record.copy()

    def upsert_many(
        self,
        records: Iterable[RecordInput],
        cancel: CancellationToken | None = None,
    ) -> BatchReport:
        """Upsert each record independently.

        Each record is applied atomically; the batch as a whole is not. Records
        that are malformed, fail validation, hit a backend error or are reached
        after cancellation are reported in ``failed`` and leave their stored
        state untouched. Malformed items without a usable id are reported as
        ``"#<position>"``.
        """
        report = BatchReport()
        for position, item in enumerate(records):
            record_id = _item_id(item, position)
            try:
                record_id, vector, payload = _unpack(item)
                self.upsert(record_id, vector, payload, cancel=cancel)
            except Cancelled as exc:
                report.failed[record_id] = exc
            except VectorSearchError as exc:
                logger.warning("Upsert of %r failed: %s", record_id, exc)
                report.failed[record_id] = exc
            except Exception as exc:
                logger.warning("Upsert of %r failed", record_id, exc_info=True)
                report.failed[record_id] = exc
            else:
                report.succeeded.append(record_id)
        return report

    def delete(self, record_id: Any, cancel: CancellationToken | None = None) -> None:
        """Delete a record and its index entry.

        Raises:
            NotFound: If the id does not exist
        """
        record_id = str(record_id)
        with self._id_locks.hold(record_id):
            check(cancel)
            with self._rw.write():
                existing = self._backend.get(record_id)
                if existing is None:
                    raise NotFound([record_id])
                self._backend.delete(record_id)
                try:
                    self._index.delete(record_id)
                except Exception:
                    self._corrupt = True
                    logger.exception("Index delete failed for %r; rolling back", record_id)
                    self._rollback_delete(record_id, existing)
                    raise
                self._generation += 1

    def _rollback_delete(self, record_id: str, document: dict[str, Any]) -> None:
        try:
            self._backend.set(record_id, document)
        except Exception:
            logger.exception("Rollback of %r failed; store and index diverged", record_id)

    # -- reads -----------------------------------------------------------

    def get(self, record_id: Any) -> VectorRecord:
        return self.get_many([record_id])[0]

    def get_many(self, record_ids: Iterable[Any]) -> list[VectorRecord]:
        """Fetch records in exactly the requested order.

        Raises:
            NotFound: Listing every requested id that does not exist
        """
        ids = [str(record_id) for record_id in record_ids]
        with self._rw.read():
            rows = self._backend.get_many(ids)
        missing = [record_id for record_id, row in zip(ids, rows) if row is None]
        if missing:
            raise NotFound(missing)
        return [VectorRecord.from_dict(row) for row in rows]

    def all(self) -> list[VectorRecord]:
        """Return every record in insertion order."""
        with self._rw.read():
            return self._all_unlocked()

    def _all_unlocked(self) -> list[VectorRecord]:
        ids = list(self._backend.keys())
        rows = self._backend.get_many(ids)
        return [VectorRecord.from_dict(row) for row in rows if row is not None]

    # -- index maintenance -----------------------------------------------

    def mark_corrupt(self, reason: str) -> None:
        """Flag the index for a rebuild on next access."""
        logger.warning("Index of collection %r marked corrupt: %s", self.config.name, reason)
        self._corrupt = True

    def ensure_consistent(self) -> None:
        """Rebuild the index if it is flagged or has diverged from the backend.

        Raises:
            IndexCorruption: If the rebuild itself fails
        """
        with self._rw.read():
            healthy = not self._corrupt and len(self._index) == self._backend.size()
        if healthy:
            return
        try:
            self.rebuild_index()
        except Cancelled:
            raise
        except Exception as exc:
            raise IndexCorruption(
                f"rebuild of collection {self.config.name!r} failed: {exc}"
            ) from exc

    def rebuild_index(self, cancel: CancellationToken | None = None) -> None:
        """Reconstruct the index from all stored records and swap it in.

        The replacement is built while mutations are blocked but queries keep
        using the current index. Cancelling leaves the current index in place.
        """
        with self._rw.read():
            generation = self._generation
            fresh = self._index.spawn()
            fresh.rebuild_from(self._all_unlocked(), cancel=cancel)

        with self._rw.write():
            if generation != self._generation:
                fresh = self._index.spawn()
                fresh.rebuild_from(self._all_unlocked(), cancel=cancel)
            self._index = fresh
            self._corrupt = False
            self._generation += 1
        logger.info(
            "Rebuilt index of collection %r with %d records", self.config.name, len(fresh)
        )

    # -- schema ----------------------------------------------------------

    def create_schema(self) -> None:
        """Provision backend storage for this collection."""
        self._backend.create_schema(
            {
                "name": self.config.name,
                "dimension": self._dimension,
                "metric": self.config.metric,
            }
        )

    def destroy_schema(self) -> None:
        """Remove every record and the collection description."""
        with self._rw.write():
            self._backend.destroy_schema()
            self._index = self._index.spawn()
            self._dimension = self.config.dimension
            self._corrupt = False
            self._generation += 1

    def close(self) -> None:
        """Clean up resources."""
        self._backend.close()

    def __enter__(self) -> "VectorRecordStore":
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close()
        return None


def _item_id(item: Any, position: int) -> str:
    if isinstance(item, VectorRecord):
        return item.id
    if isinstance(item, (tuple, list)) and item:
        return str(item[0])
    return f"#{position}"


def _unpack(item: RecordInput) -> tuple[str, Sequence[float], dict[str, Any] | None]:
    if isinstance(item, VectorRecord):
        return item.id, item.vector, item.payload
    if not isinstance(item, (tuple, list)) or len(item) not in (2, 3):
        raise InvalidRecord(
            "records must be VectorRecord, (id, vector) or (id, vector, payload)"
        )
    if len(item) == 2:
        record_id, vector = item
        return str(record_id), vector, None
    record_id, vector, payload = item
    return str(record_id), vector, payload
