# Rev 0.1.0
# src/sitedash/repositories/record_store.py
"""
RecordStore: the narrow read/write contract every spreadsheet backend meets.

Rows are plain dicts keyed by the sheet's column headers. Every method either
returns its result or raises a sitedash.errors.StoreError subclass; an empty
list always means "no rows", never "the call failed".
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Dict, Iterable, List, Mapping, Optional

Record = Dict[str, Any]


def cell_text(value: Any) -> str:
    return "" if value is None else str(value).strip()


def matches(record: Mapping[str, Any], criteria: Mapping[str, Any]) -> bool:
    """Field equality on trimmed text, the way the sheet itself stores values."""
    return all(cell_text(record.get(k)) == cell_text(v) for k, v in criteria.items())


def build_match(match_field: str, match_value: Any, extra_match: Optional[Mapping[str, Any]] = None) -> Dict[str, Any]:
    criteria = {match_field: match_value}
    if extra_match:
        criteria.update(extra_match)
    return criteria


class RecordStore(ABC):
    """Backend-agnostic access to the Projects/Tasks/Expenses/Materials sheets."""

    name = "store"

    @abstractmethod
    def list(self, collection: str) -> List[Record]:
        """All rows of a collection."""

    def query(self, collection: str, field: str, value: Any) -> List[Record]:
        """Rows where `field` equals `value`. Client-side unless a backend can filter."""
        return [r for r in self.list(collection) if matches(r, {field: value})]

    @abstractmethod
    def insert(self, collection: str, records: Iterable[Mapping[str, Any]]) -> int:
        """Append rows; returns how many the store confirmed."""

    @abstractmethod
    def update(
        self,
        collection: str,
        match_field: str,
        match_value: Any,
        patch: Mapping[str, Any],
        *,
        extra_match: Optional[Mapping[str, Any]] = None,
    ) -> int:
        """Patch every matching row; returns the number updated.

        `extra_match` narrows the match with further equalities
        (a task is identified by ProjectID and TaskName together).
        """

    @abstractmethod
    def delete(self, collection: str, match_field: str, match_value: Any) -> int:
        """Remove every matching row; returns the number deleted."""

    def close(self) -> None:
        pass

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.name}>"
