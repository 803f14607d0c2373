"""Record store contract and the in-memory implementation."""
from __future__ import annotations

import copy
import json
from pathlib import Path
from typing import Any, Iterable, Protocol

from advisor.core.errors import NotFoundError


class RecordStore(Protocol):
    """Read access to entity profiles and transactions."""

    def get_profile(self, entity_id: str) -> dict[str, Any]: ...

    def list_transactions(self, entity_id: str, start: str | None, end: str | None) -> list[dict[str, Any]]: ...

    def list_entity_ids(self) -> list[str]: ...

    def save_recommendations(self, entity_id: str, payload: dict[str, Any]) -> None: ...


def record_day(record: dict[str, Any]) -> str:
    """Return the ``YYYY-MM-DD`` part of a transaction's ``date`` field."""

    value = record.get("date")
    if value is None:
        return ""
    if hasattr(value, "isoformat"):
        value = value.isoformat()
    return str(value)[:10]


class InMemoryRecordStore:
    """Simple in-memory store for local runs and tests."""

    def __init__(self) -> None:
        self._profiles: dict[str, dict[str, Any]] = {}
        self._transactions: dict[str, list[dict[str, Any]]] = {}
        self._saved: dict[str, list[dict[str, Any]]] = {}

    @classmethod
    def from_fixture(cls, path: Path) -> "InMemoryRecordStore":
        """Load ``{"entities": {id: {"profile": {...}, "transactions": [...]}}}``."""

        data = json.loads(Path(path).read_text(encoding="utf-8"))
        store = cls()
        for entity_id, entry in (data.get("entities") or {}).items():
            store.add_entity(
                str(entity_id),
                entry.get("profile") or {},
                entry.get("transactions") or [],
            )
        return store

    # ------------------------------------------------------------------
    # seeding
    # ------------------------------------------------------------------
    def add_entity(
        self,
        entity_id: str,
        profile: dict[str, Any],
        transactions: Iterable[dict[str, Any]] = (),
    ) -> None:
        self._profiles[entity_id] = dict(profile)
        self._transactions[entity_id] = [dict(record) for record in transactions]

    def add_transaction(self, entity_id: str, record: dict[str, Any]) -> None:
        if entity_id not in self._profiles:
            raise NotFoundError(f"entity {entity_id} not found")
        self._transactions.setdefault(entity_id, []).append(dict(record))

    # ------------------------------------------------------------------
    # RecordStore
    # ------------------------------------------------------------------
    def get_profile(self, entity_id: str) -> dict[str, Any]:
        profile = self._profiles.get(entity_id)
        if profile is None:
            raise NotFoundError(f"entity {entity_id} not found")
        return copy.deepcopy(profile)

    def list_transactions(self, entity_id: str, start: str | None, end: str | None) -> list[dict[str, Any]]:
        rows: list[dict[str, Any]] = []
        for record in self._transactions.get(entity_id, []):
            day = record_day(record)
            if start and day < start:
                continue
            if end and day > end:
                continue
            rows.append(copy.deepcopy(record))
        rows.sort(key=record_day, reverse=True)
        return rows

    def list_entity_ids(self) -> list[str]:
        return list(self._profiles)

    def save_recommendations(self, entity_id: str, payload: dict[str, Any]) -> None:
        self._saved.setdefault(entity_id, []).append(copy.deepcopy(payload))

    def list_saved(self, entity_id: str) -> list[dict[str, Any]]:
        return list(self._saved.get(entity_id, []))
