"""Append-only SQLite store for reproducibility trace records."""

from __future__ import annotations

import sqlite3
import threading
from pathlib import Path

from pydantic import ValidationError
from pydantic_core import PydanticSerializationError

from repro_trace.contracts.trace import TraceRecord, TraceSummary
from repro_trace.errors import StorageError
from repro_trace.logging_config import get_logger

logger = get_logger(__name__)

MEMORY_PATH = ":memory:"


class TraceStore:
    """One row per trace id; the full record is kept as a JSON payload.

    Records are written once and never updated or deleted. A duplicate id
    is a caller bug and raises StorageError. Reads re-validate the payload
    so a corrupt row surfaces as StorageError instead of a partial record.
    """

    def __init__(self, path: Path | str = MEMORY_PATH) -> None:
        self.path = str(path)
        self._lock = threading.Lock()
        try:
            if self.path != MEMORY_PATH:
                Path(self.path).parent.mkdir(parents=True, exist_ok=True)
            self._conn = sqlite3.connect(self.path, check_same_thread=False)
        except (OSError, sqlite3.Error) as e:
            raise StorageError(
                f"Cannot open trace database: {e}",
                code="STORAGE_UNAVAILABLE",
                context={"path": self.path},
            ) from e
        self.initialize()

    def initialize(self) -> None:
        """Create the table and index if missing. Idempotent."""
        with self._lock:
            try:
                if self.path != MEMORY_PATH:
                    self._conn.execute("PRAGMA journal_mode=WAL")
                self._conn.executescript("""
                    CREATE TABLE IF NOT EXISTS trace_records (
                        id              TEXT PRIMARY KEY,
                        created_at_ms   INTEGER NOT NULL,
                        payload_json    TEXT NOT NULL
                    );
                    CREATE INDEX IF NOT EXISTS idx_trace_records_created_at
                        ON trace_records (created_at_ms);
                """)
                self._conn.commit()
            except sqlite3.Error as e:
                raise StorageError(
                    f"Cannot initialize trace database: {e}",
                    code="STORAGE_UNAVAILABLE",
                    context={"path": self.path},
                ) from e
        logger.debug("trace_store_initialized", path=self.path)

    def put(self, record: TraceRecord) -> None:
        """Insert a new record. Never overwrites."""
        try:
            payload = record.model_dump_json()
        except (PydanticSerializationError, UnicodeEncodeError) as e:
            logger.error("trace_not_serializable", trace_id=record.id, error=str(e))
            raise StorageError(
                f"Cannot encode trace record: {e}",
                code="STORAGE_UNAVAILABLE",
                context={"trace_id": record.id},
            ) from e
        with self._lock:
            try:
                self._conn.execute(
                    "INSERT INTO trace_records (id, created_at_ms, payload_json) VALUES (?, ?, ?)",
                    (record.id, record.created_at_ms, payload),
                )
                self._conn.commit()
            except sqlite3.IntegrityError as e:
                self._conn.rollback()
                logger.error("trace_duplicate_id", trace_id=record.id)
                raise StorageError(
                    f"Trace record {record.id} already exists",
                    code="DUPLICATE_TRACE_ID",
                    context={"trace_id": record.id},
                ) from e
            except (sqlite3.Error, UnicodeEncodeError) as e:
                self._safe_rollback()
                logger.error("trace_write_failed", trace_id=record.id, error=str(e))
                raise StorageError(
                    f"Cannot write trace record: {e}",
                    code="STORAGE_UNAVAILABLE",
                    context={"trace_id": record.id, "path": self.path},
                ) from e
        logger.info("trace_written", trace_id=record.id, status=record.outcome.status)

    def get(self, trace_id: str) -> TraceRecord | None:
        """Look up a record by id. Returns None if not found."""
        with self._lock:
            try:
                row = self._conn.execute(
                    "SELECT payload_json FROM trace_records WHERE id = ?", (trace_id,)
                ).fetchone()
            except sqlite3.Error as e:
                raise StorageError(
                    f"Cannot read trace record: {e}",
                    code="STORAGE_UNAVAILABLE",
                    context={"trace_id": trace_id, "path": self.path},
                ) from e
        if row is None:
            return None
        try:
            record = TraceRecord.model_validate_json(row[0])
        except ValidationError as e:
            logger.error("trace_payload_corrupt", trace_id=trace_id, errors=e.error_count())
            raise StorageError(
                f"Stored trace record {trace_id} is corrupt",
                code="CORRUPT_TRACE",
                context={"trace_id": trace_id},
            ) from e
        if record.id != trace_id:
            raise StorageError(
                f"Stored trace record {trace_id} carries mismatched id {record.id}",
                code="CORRUPT_TRACE",
                context={"trace_id": trace_id},
            )
        return record

    def list_recent(
        self,
        limit: int = 20,
        since_ms: int | None = None,
        until_ms: int | None = None,
    ) -> list[TraceSummary]:
        """Newest-first ids within an optional [since_ms, until_ms) window."""
        if limit <= 0:
            raise ValueError("limit must be > 0")
        clauses: list[str] = []
        params: list[int] = []
        if since_ms is not None:
            clauses.append("created_at_ms >= ?")
            params.append(since_ms)
        if until_ms is not None:
            clauses.append("created_at_ms < ?")
            params.append(until_ms)
        where = f"WHERE {' AND '.join(clauses)} " if clauses else ""
        with self._lock:
            try:
                rows = self._conn.execute(
                    f"SELECT id, created_at_ms FROM trace_records {where}"
                    "ORDER BY created_at_ms DESC, id LIMIT ?",
                    (*params, limit),
                ).fetchall()
            except sqlite3.Error as e:
                raise StorageError(
                    f"Cannot list trace records: {e}",
                    code="STORAGE_UNAVAILABLE",
                    context={"path": self.path},
                ) from e
        return [TraceSummary(id=r[0], created_at_ms=r[1]) for r in rows]

    def count(self) -> int:
        with self._lock:
            try:
                row = self._conn.execute("SELECT COUNT(*) FROM trace_records").fetchone()
            except sqlite3.Error as e:
                raise StorageError(
                    f"Cannot count trace records: {e}",
                    code="STORAGE_UNAVAILABLE",
                    context={"path": self.path},
                ) from e
        return int(row[0])

    def _safe_rollback(self) -> None:
        try:
            self._conn.rollback()
        except sqlite3.Error:
            logger.warning("trace_rollback_failed", path=self.path)

    def close(self) -> None:
        with self._lock:
            self._conn.close()
