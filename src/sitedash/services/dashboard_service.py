# Rev 0.1.0
# src/sitedash/services/dashboard_service.py
"""
Read side of the dashboard: project list, and the per-project snapshot
(project + tasks + expenses + materials + KPIs).

The four reads for a snapshot are independent, so they run concurrently and
the snapshot is assembled once all have finished (or the load timeout hits).
Each batch is tagged with a session token; if the user has selected another
project by the time the batch completes, the results are dropped.
"""
from __future__ import annotations

import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor, wait
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Callable, Dict, Generic, List, Optional, TypeVar

from sitedash.errors import StoreError
from sitedash.models.entities import Expense, Material, Project, Task
from sitedash.models.types import EXPENSES, MATERIALS, PROJECT_KEY, PROJECTS, TASKS
from sitedash.repositories.record_store import RecordStore, cell_text
from sitedash.services.dates import to_canonical_date
from sitedash.services.metrics import DashboardKPIs, compute_dashboard_kpis

log = logging.getLogger("sitedash.services.dashboard")

T = TypeVar("T")

DEFAULT_LOAD_TIMEOUT = 30.0
STORE_UNREACHABLE = "Store unreachable: no answer within {:g}s"


class DashboardSession:
    """Single-owner selection context: which project is shown, and which load batch is current."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self.current_project_id: Optional[str] = None
        self.last_load_token = 0

    def select(self, project_id: Optional[str]) -> int:
        with self._lock:
            self.current_project_id = project_id
            self.last_load_token += 1
            return self.last_load_token

    def is_current(self, token: int) -> bool:
        with self._lock:
            return token == self.last_load_token


@dataclass
class Panel(Generic[T]):
    """One dashboard panel's rows, or the message explaining why there are none."""
    records: List[T] = field(default_factory=list)
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def rows_or_none(self) -> Optional[List[T]]:
        return self.records if self.ok else None


@dataclass
class DashboardSnapshot:
    project_id: str
    token: int
    project: Optional[Project]
    project_error: Optional[str]
    tasks: Panel[Task]
    expenses: Panel[Expense]
    materials: Panel[Material]
    recent_expenses: List[Expense]
    kpis: DashboardKPIs
    today: date


def recent_first(expenses: List[Expense], limit: int) -> List[Expense]:
    """Newest first; undated rows sink to the bottom."""
    def key(e: Expense):
        d = to_canonical_date(e.date)
        return (d is not None, d or date.min)
    return sorted(expenses, key=key, reverse=True)[: max(0, limit)]


class DashboardService:
    def __init__(
        self,
        store: RecordStore,
        *,
        recent_expenses_limit: int = 10,
        load_timeout: float = DEFAULT_LOAD_TIMEOUT,
        clock: Callable[[], date] = date.today,
        max_workers: int = 4,
    ):
        self._store = store
        self._recent_limit = int(recent_expenses_limit)
        self._load_timeout = float(load_timeout)
        self._clock = clock
        self._pool = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="sitedash-load")

    def shutdown(self) -> None:
        self._pool.shutdown(wait=False, cancel_futures=True)

    # ---- queries -----------------------------------------------------------

    def list_projects(self) -> List[Project]:
        rows = self._store.list(PROJECTS)
        return [Project.from_record(r) for r in rows if cell_text(r.get(PROJECT_KEY))]

    def load_project(
        self,
        session: DashboardSession,
        project_id: str,
        today: Optional[date] = None,
        *,
        token: Optional[int] = None,
    ) -> Optional[DashboardSnapshot]:
        """
        Select `project_id` and load everything the dashboard shows for it.
        A caller that already selected (and holds the token) passes it in.
        Returns None if a newer selection superseded this one while loading.
        """
        pid = cell_text(project_id)
        if token is None:
            token = session.select(pid)
        today = today or self._clock()
        log.debug("Loading project %s (token %s)", pid, token)

        futures: Dict[str, Future] = {
            name: self._pool.submit(self._store.query, name, PROJECT_KEY, pid)
            for name in (PROJECTS, TASKS, EXPENSES, MATERIALS)
        }
        wait(futures.values(), timeout=self._load_timeout)

        if not session.is_current(token):
            log.info("Discarding stale load of %s (token %s, current %s)",
                     pid, token, session.current_project_id)
            return None

        project_panel = self._panel(futures[PROJECTS], Project.from_record)
        tasks = self._panel(futures[TASKS], Task.from_record)
        expenses = self._panel(futures[EXPENSES], Expense.from_record)
        materials = self._panel(futures[MATERIALS], Material.from_record)

        project = project_panel.records[0] if project_panel.records else None
        project_error = project_panel.error
        if project is None and project_error is None:
            project_error = "Project Not Found"

        kpis = compute_dashboard_kpis(
            project,
            tasks.rows_or_none(),
            expenses.rows_or_none(),
            materials.rows_or_none(),
            today,
        )
        return DashboardSnapshot(
            project_id=pid,
            token=token,
            project=project,
            project_error=project_error,
            tasks=tasks,
            expenses=expenses,
            materials=materials,
            recent_expenses=recent_first(expenses.records, self._recent_limit),
            kpis=kpis,
            today=today,
        )

    # ---- internals ---------------------------------------------------------

    def _panel(self, fut: Future, parse: Callable[[Dict[str, Any]], T]) -> Panel[T]:
        if not fut.done():
            fut.cancel()
            return Panel(error=STORE_UNREACHABLE.format(self._load_timeout))
        try:
            rows = fut.result()
        except StoreError as e:
            log.warning("Panel load failed: %s", e)
            return Panel(error=str(e))
        return Panel(records=[parse(r) for r in rows])
