"""
JSON-file table store.

One file per table under a database directory (``<dir>/<table>.json``). The
file holds the full array of records and is rewritten wholesale, sorted by
ascending ``id``, on every mutation. Every record carries ``id``,
``created_at`` and ``updated_at``.

There is no locking: two writers to the same table race and the last write
wins.
"""

from __future__ import annotations

import json
import logging
import os
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Literal

logger = logging.getLogger(__name__)

Record = dict[str, Any]
RelationKind = Literal["one", "many", "reverse"]


@dataclass(frozen=True)
class Relation:
    """
    Declared association used to enrich records on read.

    - ``one``: ``record[foreign_key]`` is a single related id.
    - ``many``: ``record[foreign_key]`` is a related id or a list of ids.
    - ``reverse``: related records whose ``reference_key`` holds this record's id.
    """

    table: str
    kind: RelationKind
    foreign_key: str | None = None
    reference_key: str | None = None


def next_id(records: Iterable[Mapping[str, Any]]) -> int:
    ids = [r["id"] for r in records if isinstance(r.get("id"), int)]
    return max(ids) + 1 if ids else 1


def timestamp(previous: str | None = None) -> str:
    """
    Current UTC time as an ISO-8601 string.

    When ``previous`` is given the result is guaranteed to sort after it, so
    back-to-back mutations inside one clock tick still move ``updated_at``.
    """

    now = datetime.now(timezone.utc)
    before = _parse_timestamp(previous)
    if before is not None and now <= before:
        now = before + timedelta(microseconds=1)
    return now.isoformat(timespec="microseconds").replace("+00:00", "Z")


def _parse_timestamp(value: str | None) -> datetime | None:
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def holds_reference(value: Any, record_id: int) -> bool:
    """True if a bare id or a list of ids contains ``record_id``."""
    if isinstance(value, list):
        return record_id in value
    return value == record_id


def _matches(item: Mapping[str, Any], where: Mapping[str, Any] | None) -> bool:
    if not where:
        return True
    for key, value in where.items():
        if isinstance(value, list):
            if item.get(key) not in value:
                return False
        elif item.get(key) != value:
            return False
    return True


class TableStore:
    """Read/write/filter/relation primitives over a directory of JSON tables."""

    def __init__(self, root: Path):
        self.root = Path(root)

    def path_for(self, table: str) -> Path:
        return self.root / f"{table}.json"

    # ---- Raw file access -------------------------------------------------------------

    def ensure_table(self, table: str) -> bool:
        """Create an empty table file if missing. Returns True if it was created."""
        path = self.path_for(table)
        if path.exists():
            return False
        self.root.mkdir(parents=True, exist_ok=True)
        self.write(table, [])
        logger.info("Created empty table %s at %s", table, path)
        return True

    def read(self, table: str) -> list[Record]:
        raw_text = self.path_for(table).read_text(encoding="utf-8")
        data = json.loads(raw_text or "[]")
        if not isinstance(data, list):
            raise ValueError(f"Table {table!r} must contain a JSON array")
        return data

    def write(self, table: str, records: list[Record]) -> None:
        records.sort(key=lambda r: r.get("id") or 0)
        path = self.path_for(table)
        tmp_path = path.with_suffix(".json.tmp")
        tmp_path.write_text(json.dumps(records, indent=2, ensure_ascii=False), encoding="utf-8")
        os.replace(tmp_path, path)

    # ---- Queries ---------------------------------------------------------------------

    def get_all(
        self,
        table: str,
        where: Mapping[str, Any] | None = None,
        include: Iterable[str] = (),
        relations: Mapping[str, Relation] | None = None,
    ) -> list[Record]:
        data = [item for item in self.read(table) if _matches(item, where)]
        include = list(include)
        if include and relations:
            data = self._include_relations(table, data, include, relations)
        return data

    def get_by_id(
        self,
        table: str,
        record_id: int,
        include: Iterable[str] = (),
        relations: Mapping[str, Relation] | None = None,
    ) -> Record | None:
        record = next((item for item in self.read(table) if item.get("id") == record_id), None)
        if record is None:
            return None
        include = list(include)
        if include and relations:
            [record] = self._include_relations(table, [record], include, relations)
        return record

    def is_referenced(self, table: str, field: str, record_id: int) -> bool:
        return any(holds_reference(item.get(field), record_id) for item in self.read(table))

    def get_references(self, table: str, field: str, record_id: int) -> list[Record]:
        return [item for item in self.read(table) if holds_reference(item.get(field), record_id)]

    # ---- Mutations -------------------------------------------------------------------

    def create(self, table: str, record: Mapping[str, Any]) -> Record:
        data = self.read(table)
        now = timestamp()
        new_record = {
            **record,
            "id": next_id(data),
            "created_at": now,
            "updated_at": now,
        }
        data.append(new_record)
        self.write(table, data)
        return new_record

    def update(self, table: str, record_id: int, changes: Mapping[str, Any]) -> Record | None:
        data = self.read(table)
        idx = next((i for i, item in enumerate(data) if item.get("id") == record_id), None)
        if idx is None:
            return None

        current = data[idx]
        data[idx] = {
            **current,
            **changes,
            "id": current["id"],
            "created_at": current.get("created_at"),
            "updated_at": timestamp(current.get("updated_at")),
        }
        self.write(table, data)
        return data[idx]

    def remove(self, table: str, record_id: int) -> bool:
        data = self.read(table)
        remaining = [item for item in data if item.get("id") != record_id]
        if len(remaining) == len(data):
            return False
        self.write(table, remaining)
        return True

    # ---- Batch operations ------------------------------------------------------------

    def create_many(self, table: str, records: Iterable[Mapping[str, Any]]) -> list[Record]:
        data = self.read(table)
        new_id = next_id(data)
        now = timestamp()
        created: list[Record] = []
        for record in records:
            created.append({**record, "id": new_id, "created_at": now, "updated_at": now})
            new_id += 1
        data.extend(created)
        self.write(table, data)
        return created

    def update_many(self, table: str, where: Mapping[str, Any], changes: Mapping[str, Any]) -> list[Record]:
        data = self.read(table)
        updated: list[Record] = []
        for idx, item in enumerate(data):
            if not _matches(item, where):
                continue
            data[idx] = {
                **item,
                **changes,
                "id": item["id"],
                "created_at": item.get("created_at"),
                "updated_at": timestamp(item.get("updated_at")),
            }
            updated.append(data[idx])
        self.write(table, data)
        return updated

    def remove_many(self, table: str, where: Mapping[str, Any]) -> int:
        data = self.read(table)
        remaining = [item for item in data if not _matches(item, where)]
        self.write(table, remaining)
        return len(data) - len(remaining)

    # ---- Relations -------------------------------------------------------------------

    def _include_relations(
        self,
        table: str,
        records: list[Record],
        include: list[str],
        relations: Mapping[str, Relation],
    ) -> list[Record]:
        # Each related table is read once per query.
        cache: dict[str, list[Record]] = {}
        for field in include:
            relation = relations.get(field)
            if relation is None:
                logger.debug("Ignoring unknown relation %r on table %s", field, table)
                continue
            if relation.table not in cache:
                cache[relation.table] = self.read(relation.table)

        enriched_records: list[Record] = []
        for record in records:
            enriched = dict(record)
            for field in include:
                relation = relations.get(field)
                if relation is None:
                    continue
                related = cache[relation.table]

                if relation.kind == "one":
                    local_value = record.get(relation.foreign_key or f"{field}_id")
                    enriched[field] = next((r for r in related if r.get("id") == local_value), None)
                elif relation.kind == "many":
                    local_value = record.get(relation.foreign_key or f"{field}_id")
                    ids = local_value if isinstance(local_value, list) else [local_value]
                    enriched[field] = [r for r in related if r.get("id") in ids]
                elif relation.kind == "reverse":
                    ref_key = relation.reference_key or f"{table}_id"
                    enriched[field] = [r for r in related if holds_reference(r.get(ref_key), record["id"])]
            enriched_records.append(enriched)
        return enriched_records
