"""In-memory record collection backed by a JSON file.

Records are plain dicts with an integer ``id`` assigned here and one
natural-key field that is unique under case-insensitive comparison. Two
indexes (id -> position, lowered key -> position) are rebuilt
synchronously by every mutation and are never treated as the source of
truth.

Mutations only touch memory and then arm a debounce timer; when the timer
fires without being re-armed, the whole collection is written back to the
file. ``flush()`` forces the write for callers that need durability.
"""

from __future__ import annotations

import copy
import logging
import re
import threading
from typing import Any, Optional

from db.json_file import JsonFileStorage, StorageFault


logger = logging.getLogger("backend.store")

__all__ = ["DuplicateKeyError", "IndexedRecordStore", "StorageFault"]


class DuplicateKeyError(Exception):
    def __init__(self, field: str, value: Any) -> None:
        super().__init__(f"{field.capitalize()} already exists")
        self.field = field
        self.value = value


def _normalize_id(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if value.is_integer() else None
    if isinstance(value, str):
        text = value.strip()
        try:
            return int(text)
        except ValueError:
            pass
        try:
            number = float(text)
        except ValueError:
            return None
        if not number.is_integer():
            return None
        return int(number)
    return None


def _normalize_key(value: Any) -> str:
    return str(value).lower()


_DATE_PREFIX = re.compile(r"^(\d{4})-(\d{1,2})-(\d{1,2})(.*)$")


def _order_value(record: dict[str, Any], field: str) -> tuple:
    # The second slot separates value kinds so mixed types never meet in a comparison.
    value = record.get(field)
    if value is None:
        return (0, 0, "")
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return (1, 0, value)
    text = str(value).strip()
    match = _DATE_PREFIX.match(text)
    if match is None:
        return (1, 1, text)
    year, month, day, rest = match.groups()
    return (1, 2, (int(year), int(month), int(day)), rest)


class IndexedRecordStore:
    def __init__(
        self,
        storage: JsonFileStorage,
        *,
        natural_key: str,
        order_field: Optional[str] = None,
        debounce_seconds: float = 0.1,
        retry_attempts: int = 3,
        retry_backoff_seconds: float = 0.5,
        name: Optional[str] = None,
    ) -> None:
        self.name = name or storage.path.stem
        self._storage = storage
        self._natural_key = natural_key
        self._order_field = order_field or "id"
        self._debounce_seconds = max(0.0, float(debounce_seconds))
        self._retry_attempts = max(0, int(retry_attempts))
        self._retry_backoff_seconds = max(0.0, float(retry_backoff_seconds))

        self._records: list[dict[str, Any]] = []
        self._by_id: dict[int, int] = {}
        self._by_key: dict[str, int] = {}
        self._max_id = 0
        self._initialized = False
        self._closed = False
        self._dirty = False
        self._last_flush_error: Optional[StorageFault] = None
        self._timer: Optional[threading.Timer] = None

        self._lock = threading.RLock()
        # Serializes file writes; always taken before self._lock, never after.
        self._write_lock = threading.Lock()

    @property
    def natural_key(self) -> str:
        return self._natural_key

    @property
    def dirty(self) -> bool:
        """True while memory holds changes that have not reached the file."""
        with self._lock:
            return self._dirty

    @property
    def last_flush_error(self) -> Optional[StorageFault]:
        with self._lock:
            return self._last_flush_error

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def init(self) -> None:
        """Load the collection from disk. Calling it again is a no-op.

        A missing file starts an empty collection and writes ``[]`` right
        away. Any other read problem raises :class:`StorageFault` and the
        store stays uninitialized.
        """
        with self._lock:
            if self._initialized:
                return
            rows = self._storage.read()
            if rows is None:
                self._storage.write([])
                records: list[dict[str, Any]] = []
                logger.info("Store %s: %s not found, created empty collection", self.name, self._storage.path)
            else:
                records = self._validate_rows(rows)
            self._records = records
            self._max_id = max((r["id"] for r in records), default=0)
            self._rebuild_indexes()
            self._initialized = True
            logger.info("Store %s loaded %d record(s), max id %d", self.name, len(records), self._max_id)

    def flush(self) -> bool:
        """Write pending changes now. Returns True if a write happened.

        Raises :class:`StorageFault` if the write fails; the changes stay
        pending and are retried by the next flush or mutation.
        """
        with self._lock:
            self._cancel_timer()
        return self._write_if_dirty()

    def close(self) -> None:
        """Flush and stop scheduling background writes."""
        with self._lock:
            self._closed = True
            self._cancel_timer()
        self._write_if_dirty()

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    def get_all(self) -> list[dict[str, Any]]:
        with self._lock:
            return copy.deepcopy(self._records)

    def get_by_id(self, record_id: Any) -> Optional[dict[str, Any]]:
        with self._lock:
            position = self._position(record_id)
            if position is None:
                return None
            return copy.deepcopy(self._records[position])

    def get_by_key(self, value: Any) -> Optional[dict[str, Any]]:
        if value is None:
            return None
        with self._lock:
            position = self._by_key.get(_normalize_key(value))
            if position is None:
                return None
            return copy.deepcopy(self._records[position])

    def exists(self, value: Any, exclude_id: Any = None) -> bool:
        """Is ``value`` taken as a natural key, ignoring record ``exclude_id``?"""
        if value is None:
            return False
        with self._lock:
            position = self._by_key.get(_normalize_key(value))
            if position is None:
                return False
            if exclude_id is not None and self._records[position]["id"] == _normalize_id(exclude_id):
                return False
            return True

    def get_recent(self, limit: int) -> list[dict[str, Any]]:
        if limit <= 0:
            return []
        with self._lock:
            records = list(self._records)
        # list.sort is stable with reverse=True, so ties keep insertion order.
        records.sort(key=lambda r: _order_value(r, self._order_field), reverse=True)
        return copy.deepcopy(records[:limit])

    def count(self) -> int:
        with self._lock:
            return len(self._records)

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def add(self, data: dict[str, Any]) -> dict[str, Any]:
        value = data.get(self._natural_key)
        if value is None:
            raise ValueError(f"{self._natural_key} is required")
        key = _normalize_key(value)

        with self._lock:
            self._ensure_writable()
            if key in self._by_key:
                raise DuplicateKeyError(self._natural_key, value)

            self._max_id += 1
            record: dict[str, Any] = {"id": self._max_id}
            record.update(copy.deepcopy({k: v for k, v in data.items() if k != "id"}))

            position = len(self._records)
            self._records.append(record)
            self._by_id[record["id"]] = position
            self._by_key[key] = position

            self._schedule_save()
            return copy.deepcopy(record)

    def update(self, record_id: Any, changes: dict[str, Any]) -> Optional[dict[str, Any]]:
        """Apply a partial update. Returns None when the id is unknown.

        Fields missing from ``changes`` or set to None keep their value.
        """
        patch = {k: copy.deepcopy(v) for k, v in changes.items() if k != "id" and v is not None}

        with self._lock:
            self._ensure_writable()
            position = self._position(record_id)
            if position is None:
                return None
            current = self._records[position]

            old_key = _normalize_key(current[self._natural_key])
            new_key = old_key
            if self._natural_key in patch:
                new_key = _normalize_key(patch[self._natural_key])
                if new_key != old_key and new_key in self._by_key:
                    raise DuplicateKeyError(self._natural_key, patch[self._natural_key])

            updated = dict(current)
            updated.update(patch)
            self._records[position] = updated
            if new_key != old_key:
                del self._by_key[old_key]
                self._by_key[new_key] = position

            self._schedule_save()
            return copy.deepcopy(updated)

    def delete(self, record_id: Any) -> bool:
        with self._lock:
            self._ensure_writable()
            position = self._position(record_id)
            if position is None:
                return False
            del self._records[position]
            # Positions after the removed record shift; a full pass keeps it simple.
            self._rebuild_indexes()
            self._schedule_save()
            return True

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _ensure_writable(self) -> None:
        if not self._initialized:
            raise RuntimeError(f"Store {self.name} is not initialized")
        if self._closed:
            raise RuntimeError(f"Store {self.name} is closed")

    def _position(self, record_id: Any) -> Optional[int]:
        normalized = _normalize_id(record_id)
        if normalized is None:
            return None
        return self._by_id.get(normalized)

    def _rebuild_indexes(self) -> None:
        self._by_id = {}
        self._by_key = {}
        for position, record in enumerate(self._records):
            self._by_id[record["id"]] = position
            self._by_key[_normalize_key(record[self._natural_key])] = position

    def _validate_rows(self, rows: list[Any]) -> list[dict[str, Any]]:
        path = self._storage.path
        seen_ids: set[int] = set()
        seen_keys: set[str] = set()
        for row in rows:
            if not isinstance(row, dict):
                raise StorageFault(path, "Data file contains a non-object record")
            record_id = row.get("id")
            if isinstance(record_id, bool) or not isinstance(record_id, int) or record_id < 1:
                raise StorageFault(path, f"Record has an invalid id {record_id!r}")
            value = row.get(self._natural_key)
            if value is None:
                raise StorageFault(path, f"Record {record_id} has no {self._natural_key}")
            key = _normalize_key(value)
            if record_id in seen_ids:
                raise StorageFault(path, f"Duplicate id {record_id}")
            if key in seen_keys:
                raise StorageFault(path, f"Duplicate {self._natural_key} {value!r}")
            seen_ids.add(record_id)
            seen_keys.add(key)
        return rows

    def _schedule_save(self) -> None:
        self._dirty = True
        self._arm_timer(self._debounce_seconds, attempt=0)

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _arm_timer(self, delay: float, attempt: int) -> None:
        if self._closed:
            return
        self._cancel_timer()
        timer = threading.Timer(delay, self._on_timer, args=(attempt,))
        timer.daemon = True
        timer.name = f"store-save-{self.name}"
        self._timer = timer
        timer.start()

    def _on_timer(self, attempt: int) -> None:
        with self._lock:
            # A newer mutation or flush replaced this timer after it fired.
            if self._timer is not threading.current_thread():
                return
            self._timer = None
        try:
            self._write_if_dirty()
        except StorageFault as exc:
            with self._lock:
                if attempt < self._retry_attempts:
                    delay = self._retry_backoff_seconds * (2 ** attempt)
                    logger.error(
                        "Store %s: save failed (attempt %d/%d), retrying in %.2fs: %s",
                        self.name,
                        attempt + 1,
                        self._retry_attempts + 1,
                        delay,
                        exc,
                    )
                    if self._timer is None:
                        self._arm_timer(delay, attempt + 1)
                else:
                    logger.error(
                        "Store %s: save failed after %d attempt(s); changes stay pending until next write: %s",
                        self.name,
                        attempt + 1,
                        exc,
                    )

    def _write_if_dirty(self) -> bool:
        with self._write_lock:
            with self._lock:
                if not self._dirty:
                    return False
                snapshot = copy.deepcopy(self._records)
                self._dirty = False
            try:
                self._storage.write(snapshot)
            except StorageFault as exc:
                with self._lock:
                    self._dirty = True
                    self._last_flush_error = exc
                raise
            with self._lock:
                self._last_flush_error = None
            logger.debug("Store %s: wrote %d record(s) to %s", self.name, len(snapshot), self._storage.path)
            return True
