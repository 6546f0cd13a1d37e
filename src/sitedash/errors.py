# Rev 0.1.0
# src/sitedash/errors.py
"""Error taxonomy shared by the record stores and the services.

StoreError
  ├── TransportError          network / non-2xx HTTP status
  │     └── StoreUnreachableError   timeout or connection failure
  ├── FormatError             body could not be decoded into rows
  └── StoreRejectedError      the store answered, but reported a logical error

ValidationError is raised before any store call is issued.
BatchResult is the outcome of a multi-row operation (seed, cascade delete).
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


class StoreError(Exception):
    """Base for every failure reaching or reading the record store."""

    def __init__(self, message: str, *, collection: Optional[str] = None, url: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.collection = collection
        self.url = url

    def __str__(self) -> str:
        return self.message


class TransportError(StoreError):
    def __init__(self, message: str, *, status_code: Optional[int] = None, **kw):
        super().__init__(message, **kw)
        self.status_code = status_code


class StoreUnreachableError(TransportError):
    pass


class FormatError(StoreError):
    pass


class StoreRejectedError(StoreError):
    pass


class ValidationError(ValueError):
    """User input failed a precondition. `field` names the offending input."""

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.field = field


# --- partial failure ----------------------------------------------------------

@dataclass
class BatchFailure:
    """One step of a multi-row operation that did not complete.

    `op` is "insert" or "delete"; inserts carry the unconfirmed `records`,
    deletes carry the `match` they were issued with.
    """
    op: str
    collection: str
    error: str
    records: List[Dict[str, Any]] = field(default_factory=list)
    match: Dict[str, Any] = field(default_factory=dict)


@dataclass
class BatchResult:
    operation: str
    succeeded: Dict[str, int] = field(default_factory=dict)
    failures: List[BatchFailure] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failures

    @property
    def partial(self) -> bool:
        return bool(self.failures) and any(n > 0 for n in self.succeeded.values())

    def add_success(self, collection: str, count: int) -> None:
        self.succeeded[collection] = self.succeeded.get(collection, 0) + int(count)

    def add_failure(self, failure: BatchFailure) -> None:
        self.failures.append(failure)

    def failed_collections(self) -> List[str]:
        return [f.collection for f in self.failures]

    def summary(self) -> str:
        if self.ok:
            done = ", ".join(f"{k}: {v}" for k, v in self.succeeded.items()) or "nothing to do"
            return f"{self.operation} completed ({done})"
        failed = "; ".join(f"{f.collection} ({f.error})" for f in self.failures)
        return f"{self.operation} incomplete; failed: {failed}"
