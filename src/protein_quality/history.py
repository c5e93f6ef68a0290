"""Calculation history: storage backends, merge policy and queries.

The calculation engine never imports this module; callers build a
`CalculationRecord` and hand it to a `HistoryStore`.
"""

from __future__ import annotations

import json
import logging
import sqlite3
from collections import Counter
from collections.abc import Iterable
from datetime import UTC, datetime
from pathlib import Path
from typing import Protocol

from .history_io import (
    dump_records,
    format_timestamp,
    load_records,
    parse_timestamp,
    source_from_dict,
    source_to_dict,
)
from .models import CalculationRecord, CalculationStatistics, ProteinCategory

logger = logging.getLogger(__name__)

MAX_HISTORY_ITEMS = 100
MOST_USED_LIMIT = 5


class HistoryStore(Protocol):
    """Persistence capability for calculation records."""

    def append(self, record: CalculationRecord) -> None:
        """Store a new record, dropping the oldest beyond the cap."""

    def list_records(self) -> list[CalculationRecord]:
        """Return all records, newest first."""

    def delete_by_id(self, record_id: str) -> bool:
        """Delete one record; return whether it existed."""

    def clear(self) -> None:
        """Delete every record."""

    def export_all(self) -> str:
        """Return all records as a JSON array."""

    def import_merge(self, payload: str | bytes, replace_existing: bool = False) -> int:
        """Merge or replace from a JSON payload; return how many imported records were kept."""


def _utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def newest_first(records: Iterable[CalculationRecord]) -> list[CalculationRecord]:
    return sorted(records, key=lambda r: _utc(r.timestamp), reverse=True)


def _unique_by_id(records: Iterable[CalculationRecord]) -> list[CalculationRecord]:
    seen: set[str] = set()
    unique: list[CalculationRecord] = []
    for record in records:
        if record.id in seen:
            continue
        seen.add(record.id)
        unique.append(record)
    return unique


def merge_history(
    existing: list[CalculationRecord],
    imported: list[CalculationRecord],
    *,
    replace_existing: bool,
    limit: int = MAX_HISTORY_ITEMS,
) -> list[CalculationRecord]:
    """Combine stored and imported records.

    Replacing keeps only the imported records. Merging keeps the stored
    records and adds imported ones whose id is not already present. Either
    way the result is newest first and capped at `limit`.
    """
    if limit <= 0:
        raise ValueError("limit must be > 0")
    if replace_existing:
        combined = _unique_by_id(imported)
    else:
        combined = _unique_by_id([*existing, *imported])
    return newest_first(combined)[:limit]


def _accepted_count(
    existing: list[CalculationRecord],
    imported: list[CalculationRecord],
    merged: list[CalculationRecord],
    replace_existing: bool,
) -> int:
    candidate_ids = {r.id for r in imported}
    if not replace_existing:
        candidate_ids -= {r.id for r in existing}
    return sum(1 for r in merged if r.id in candidate_ids)


def filter_history(
    records: Iterable[CalculationRecord],
    category: ProteinCategory = "all",
    query: str = "",
) -> list[CalculationRecord]:
    q = query.strip().lower()
    return [
        r for r in records
        if (category == "all" or r.protein_source.category == category)
        and (not q or q in r.protein_source.name.lower())
    ]


def history_between(
    records: Iterable[CalculationRecord],
    start: datetime,
    end: datetime,
) -> list[CalculationRecord]:
    lo, hi = _utc(start), _utc(end)
    return [r for r in records if lo <= _utc(r.timestamp) <= hi]


def history_for_source(records: Iterable[CalculationRecord], source_id: str) -> list[CalculationRecord]:
    return [r for r in records if r.protein_source.id == source_id]


def calculation_statistics(records: Iterable[CalculationRecord]) -> CalculationStatistics:
    items = list(records)
    total = len(items)
    if not total:
        return CalculationStatistics(0, 0.0, 0.0, [])
    counts = Counter(r.protein_source.name for r in items)
    return CalculationStatistics(
        total_calculations=total,
        average_stated_protein=sum(r.stated_protein for r in items) / total,
        average_quality_adjusted_protein=sum(r.digestible_protein for r in items) / total,
        most_used_sources=counts.most_common(MOST_USED_LIMIT),
    )


def connect_db(db_path: str | Path) -> sqlite3.Connection:
    conn = sqlite3.connect(str(db_path))
    conn.row_factory = sqlite3.Row
    return conn


def init_db(conn: sqlite3.Connection) -> None:
    conn.execute(
        """
        CREATE TABLE IF NOT EXISTS calculations (
            id TEXT PRIMARY KEY,
            stated_protein REAL NOT NULL,
            dv_percentage REAL,
            protein_source TEXT NOT NULL,
            digestible_protein REAL,
            digestibility_percentage REAL,
            calculation_method TEXT NOT NULL,
            timestamp TEXT NOT NULL
        )
        """
    )
    conn.execute("CREATE INDEX IF NOT EXISTS idx_calculations_timestamp ON calculations(timestamp)")
    conn.commit()


def _row_to_record(row: sqlite3.Row) -> CalculationRecord:
    return CalculationRecord(
        id=row["id"],
        stated_protein=row["stated_protein"],
        dv_percentage=row["dv_percentage"],
        protein_source=source_from_dict(json.loads(row["protein_source"])),
        digestible_protein=float("nan") if row["digestible_protein"] is None else row["digestible_protein"],
        digestibility_percentage=(
            float("nan") if row["digestibility_percentage"] is None else row["digestibility_percentage"]
        ),
        calculation_method=row["calculation_method"],
        timestamp=parse_timestamp(row["timestamp"]),
    )


class SqliteHistoryStore:
    """History kept in a SQLite table, one row per record."""

    def __init__(self, db_path: str | Path, *, limit: int = MAX_HISTORY_ITEMS) -> None:
        if limit <= 0:
            raise ValueError("limit must be > 0")
        self.db_path = Path(db_path)
        self.limit = limit
        conn = connect_db(self.db_path)
        try:
            init_db(conn)
        finally:
            conn.close()

    def _insert(self, conn: sqlite3.Connection, record: CalculationRecord) -> None:
        conn.execute(
            """
            INSERT INTO calculations(
                id, stated_protein, dv_percentage, protein_source,
                digestible_protein, digestibility_percentage, calculation_method, timestamp
            )
            VALUES (?, ?, ?, ?, ?, ?, ?, ?)
            ON CONFLICT(id) DO NOTHING
            """,
            (
                record.id,
                record.stated_protein,
                record.dv_percentage,
                json.dumps(source_to_dict(record.protein_source), ensure_ascii=False),
                record.digestible_protein,
                record.digestibility_percentage,
                record.calculation_method,
                format_timestamp(record.timestamp),
            ),
        )

    def _truncate(self, conn: sqlite3.Connection) -> None:
        cur = conn.execute(
            """
            DELETE FROM calculations
            WHERE id NOT IN (
                SELECT id FROM calculations ORDER BY timestamp DESC, rowid DESC LIMIT ?
            )
            """,
            (self.limit,),
        )
        if cur.rowcount:
            logger.debug("Dropped %d records beyond the history limit of %d", cur.rowcount, self.limit)

    def append(self, record: CalculationRecord) -> None:
        conn = connect_db(self.db_path)
        try:
            self._insert(conn, record)
            self._truncate(conn)
            conn.commit()
        finally:
            conn.close()
        logger.info("Saved calculation %s (%s)", record.id, record.protein_source.name)

    def list_records(self) -> list[CalculationRecord]:
        conn = connect_db(self.db_path)
        try:
            rows = conn.execute("SELECT * FROM calculations ORDER BY timestamp DESC, rowid DESC").fetchall()
        finally:
            conn.close()
        return [_row_to_record(row) for row in rows]

    def delete_by_id(self, record_id: str) -> bool:
        conn = connect_db(self.db_path)
        try:
            cur = conn.execute("DELETE FROM calculations WHERE id = ?", (record_id,))
            conn.commit()
        finally:
            conn.close()
        deleted = cur.rowcount > 0
        if deleted:
            logger.info("Deleted calculation %s", record_id)
        return deleted

    def clear(self) -> None:
        conn = connect_db(self.db_path)
        try:
            conn.execute("DELETE FROM calculations")
            conn.commit()
        finally:
            conn.close()
        logger.info("Cleared calculation history")

    def export_all(self) -> str:
        return dump_records(self.list_records())

    def import_merge(self, payload: str | bytes, replace_existing: bool = False) -> int:
        imported = load_records(payload)
        existing = self.list_records()
        merged = merge_history(existing, imported, replace_existing=replace_existing, limit=self.limit)
        conn = connect_db(self.db_path)
        try:
            conn.execute("DELETE FROM calculations")
            # Oldest first so rowid order matches timestamp order.
            for record in reversed(merged):
                self._insert(conn, record)
            conn.commit()
        finally:
            conn.close()
        return _accepted_count(existing, imported, merged, replace_existing)


class JsonFileHistoryStore:
    """History kept as a single JSON array in one file."""

    def __init__(self, path: str | Path, *, limit: int = MAX_HISTORY_ITEMS) -> None:
        if limit <= 0:
            raise ValueError("limit must be > 0")
        self.path = Path(path)
        self.limit = limit

    def _read(self) -> list[CalculationRecord]:
        if not self.path.exists():
            return []
        payload = self.path.read_text(encoding="utf-8")
        if not payload.strip():
            return []
        return newest_first(load_records(payload))

    def _write(self, records: list[CalculationRecord]) -> None:
        self.path.write_text(dump_records(records), encoding="utf-8")

    def append(self, record: CalculationRecord) -> None:
        records = [record, *[r for r in self._read() if r.id != record.id]]
        kept = newest_first(records)[: self.limit]
        if len(records) > len(kept):
            logger.debug("Dropped %d records beyond the history limit of %d", len(records) - len(kept), self.limit)
        self._write(kept)
        logger.info("Saved calculation %s (%s)", record.id, record.protein_source.name)

    def list_records(self) -> list[CalculationRecord]:
        return self._read()

    def delete_by_id(self, record_id: str) -> bool:
        records = self._read()
        kept = [r for r in records if r.id != record_id]
        if len(kept) == len(records):
            return False
        self._write(kept)
        logger.info("Deleted calculation %s", record_id)
        return True

    def clear(self) -> None:
        if self.path.exists():
            self.path.unlink()
        logger.info("Cleared calculation history")

    def export_all(self) -> str:
        return dump_records(self._read())

    def import_merge(self, payload: str | bytes, replace_existing: bool = False) -> int:
        imported = load_records(payload)
        existing = self._read()
        merged = merge_history(existing, imported, replace_existing=replace_existing, limit=self.limit)
        self._write(merged)
        return _accepted_count(existing, imported, merged, replace_existing)


def open_history_store(path: str | Path, *, limit: int = MAX_HISTORY_ITEMS) -> HistoryStore:
    """JSON file store for ``.json`` paths, SQLite otherwise."""
    if Path(path).suffix.lower() == ".json":
        return JsonFileHistoryStore(path, limit=limit)
    return SqliteHistoryStore(path, limit=limit)
