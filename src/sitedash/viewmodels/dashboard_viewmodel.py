# Rev 0.1.0
# src/sitedash/viewmodels/dashboard_viewmodel.py
from __future__ import annotations

import logging
from concurrent.futures import Executor, Future, ThreadPoolExecutor
from typing import Any, Dict, List, Optional

from PySide6.QtCore import QObject, Signal

from sitedash.errors import StoreError, ValidationError
from sitedash.models.entities import Project
from sitedash.services.dashboard_service import DashboardService, DashboardSession, DashboardSnapshot
from sitedash.services.dates import format_for_display, to_iso
from sitedash.services.project_service import EDITABLE_FIELDS, ProjectService
from sitedash.utils import formatting as fmt

log = logging.getLogger("sitedash.viewmodels.dashboard")

KPI_ERROR = "Error"


def _or_na(text: str) -> str:
    return text or fmt.NA


def snapshot_to_view(snap: DashboardSnapshot, currency: str = "₹") -> Dict[str, Any]:
    """Flatten a snapshot into display strings; failed panels carry None plus an error."""
    p = snap.project
    k = snap.kpis

    details = None
    if p is not None:
        details = {
            "name": _or_na(p.name),
            "start_date": format_for_display(p.start_date),
            "deadline": format_for_display(p.deadline),
            "location": _or_na(p.location),
            "amount": fmt.format_currency(p.amount, currency),
            "contractor": _or_na(p.contractor),
            "engineers": _or_na(p.engineers),
            "contact1": _or_na(p.contact1),
            "contact2": _or_na(p.contact2),
        }

    kpis = {
        "days_spent": fmt.format_days_spent(k.time),
        "days_left": fmt.format_days_left(k.time),
        "is_overdue": bool(k.time and k.time.is_overdue),
        "progress": fmt.format_percent(k.tasks.completion_percent) if k.tasks else KPI_ERROR,
        "tasks_completed": f"{k.tasks.completed_count}/{k.tasks.total_count}" if k.tasks else KPI_ERROR,
        "material_progress": fmt.format_percent(k.materials.dispatched_percent) if k.materials else KPI_ERROR,
        "work_order": fmt.format_currency(p.amount if p else None, currency),
        "total_expenses": fmt.format_currency(k.finance.total_spent, currency) if k.finance else KPI_ERROR,
        "remaining": fmt.format_currency(k.finance.remaining, currency) if k.finance else fmt.NA,
        "spent_percent": fmt.format_spent_percent(k.finance),
        "budget_status": k.finance.status if k.finance else None,
    }

    tasks = None
    if snap.tasks.ok:
        tasks = [
            {
                "name": _or_na(t.name),
                "responsible": _or_na(t.responsible),
                "progress": int(t.effective_progress),
                "due_date": format_for_display(t.due_date),
                "status": t.status,
                "status_class": "status-" + "-".join(t.status.lower().split()),
                "complete": t.is_complete,
            }
            for t in snap.tasks.records
        ]

    expenses = None
    if snap.expenses.ok:
        expenses = [
            {
                "date": format_for_display(e.date),
                "description": _or_na(e.description),
                "category": e.category or "Other",
                "amount": fmt.format_currency(e.amount, currency),
            }
            for e in snap.recent_expenses
        ]

    materials = None
    if snap.materials.ok:
        materials = [
            {
                "item_id": m.item_id,
                "item_name": _or_na(m.item_name),
                "required": fmt.format_quantity(m.required_qty, m.unit),
                "dispatched": fmt.format_quantity(m.dispatched_qty, m.unit),
                "balance": fmt.format_quantity(m.balance, m.unit),
                "progress": m.dispatch_percent,
            }
            for m in snap.materials.records
        ]

    return {
        "project_id": snap.project_id,
        "title": p.name if p else (snap.project_error or fmt.NA),
        "details": details,
        "kpis": kpis,
        "tasks": tasks,
        "expenses": expenses,
        "materials": materials,
        "errors": {
            "project": snap.project_error,
            "tasks": snap.tasks.error,
            "expenses": snap.expenses.error,
            "materials": snap.materials.error,
        },
    }


class DashboardViewModel(QObject):
    """
    Emits:
      projectsLoaded([{"id": str, "label": "Name (ID)"}])
      snapshotReady(dict)           see snapshot_to_view
      panelError(panel, message)    panel in project/tasks/expenses/materials
      statusMessage(level, text)    level in info/warning/error
      cleared()                     nothing selected
    """
    projectsLoaded = Signal(list)
    snapshotReady = Signal(dict)
    panelError = Signal(str, str)
    statusMessage = Signal(str, str)
    cleared = Signal()

    def __init__(
        self,
        dashboard: DashboardService,
        projects: ProjectService,
        *,
        currency_symbol: str = "₹",
        executor: Optional[Executor] = None,
    ):
        super().__init__()
        self._dashboard = dashboard
        self._projects_svc = projects
        self._currency = currency_symbol
        self._executor = executor or ThreadPoolExecutor(max_workers=2, thread_name_prefix="sitedash-ui")
        self.session = DashboardSession()
        self._projects: List[Project] = []
        self._last: Optional[Dict[str, Any]] = None

    # ---- queries -----------------------------------------------------------

    def load_projects(self, select_id: Optional[str] = None) -> None:
        """Refresh the selector; selects `select_id`, else the first project."""
        try:
            self._projects = self._dashboard.list_projects()
        except StoreError as e:
            log.error("Loading projects failed: %s", e)
            self._projects = []
            self.projectsLoaded.emit([])
            self.statusMessage.emit("error", f"Error Loading Projects: {e}")
            self.select_project(None)
            return

        self.projectsLoaded.emit([{"id": p.project_id, "label": f"{p.name} ({p.project_id})"} for p in self._projects])
        if not self._projects:
            self.statusMessage.emit("info", "No Projects Found")
            self.select_project(None)
            return
        ids = [p.project_id for p in self._projects]
        self.select_project(select_id if select_id in ids else ids[0])

    def on_projects_changed(self, project_id: str) -> None:
        self.load_projects(project_id or None)

    def select_project(self, project_id: Optional[str]) -> Optional[Future]:
        if not project_id:
            self.session.select(None)
            self._last = None
            self.cleared.emit()
            return None
        token = self.session.select(project_id)
        fut = self._executor.submit(self._dashboard.load_project, self.session, project_id, token=token)
        fut.add_done_callback(self._on_loaded)
        return fut

    def reload(self) -> Optional[Future]:
        return self.select_project(self.session.current_project_id)

    def current_project(self) -> Optional[Project]:
        pid = self.session.current_project_id
        return next((p for p in self._projects if p.project_id == pid), None)

    def last(self) -> Optional[Dict[str, Any]]:
        return self._last

    def edit_form(self) -> Dict[str, Any]:
        """Current project's editable fields, dates as YYYY-MM-DD for date inputs."""
        p = self.current_project()
        if p is None:
            return {}
        rec = p.to_record()
        form = {k: rec.get(k, "") for k in EDITABLE_FIELDS}
        form["StartDate"] = to_iso(p.start_date)
        form["Deadline"] = to_iso(p.deadline)
        return form

    # ---- commands ----------------------------------------------------------

    def submit_expense(self, form: Dict[str, Any]) -> bool:
        pid = self._require_selection("recording an expense")
        if not pid:
            return False
        return self._run(
            lambda: self._projects_svc.record_expense(
                pid,
                date=form.get("date"),
                description=form.get("description"),
                amount=form.get("amount"),
                category=form.get("category", ""),
            ),
            "Expense recorded successfully!",
            "Failed to record expense",
        )

    def update_task(self, task_name: str, status: str, progress: Any = None) -> bool:
        pid = self._require_selection("updating a task")
        if not pid:
            return False
        if not task_name:
            self.statusMessage.emit("warning", "Please select a task to update.")
            return False

        def call():
            if not self._projects_svc.update_task(pid, task_name, status=status, progress=progress):
                raise ValidationError(f'Task "{task_name}" was not found in {pid}', field="TaskName")

        return self._run(call, f'Task "{task_name}" updated successfully!', "Failed to update task")

    def record_dispatch(self, form: Dict[str, Any]) -> bool:
        pid = self._require_selection("recording material dispatch")
        if not pid:
            return False
        warnings: List[str] = []

        def call():
            result = self._projects_svc.record_dispatch(
                pid,
                item_name=form.get("item_name"),
                dispatch_qty=form.get("dispatch_qty"),
                unit=form.get("unit", ""),
                required_qty=form.get("required_qty"),
            )
            warnings.extend(result.warnings)

        ok = self._run(call, "Material dispatch recorded successfully!", "Failed to record material")
        for w in warnings:
            self.statusMessage.emit("warning", w)
        return ok

    # ---- internals ---------------------------------------------------------

    def _require_selection(self, action: str) -> Optional[str]:
        pid = self.session.current_project_id
        if not pid:
            self.statusMessage.emit("warning", f"Please select a project before {action}.")
        return pid

    def _run(self, call, success: str, failure: str) -> bool:
        try:
            call()
        except ValidationError as e:
            self.statusMessage.emit("warning", str(e))
            return False
        except StoreError as e:
            log.error("%s: %s", failure, e)
            self.statusMessage.emit("error", f"{failure}. Error: {e}")
            return False
        self.statusMessage.emit("info", success)
        self.reload()
        return True

    def _on_loaded(self, fut: Future) -> None:
        if fut.cancelled():
            return
        exc = fut.exception()
        if exc is not None:
            log.error("Dashboard load crashed", exc_info=exc)
            self.statusMessage.emit("error", f"Could not load project: {exc}")
            return
        snap: Optional[DashboardSnapshot] = fut.result()
        if snap is None or not self.session.is_current(snap.token):
            return
        view = snapshot_to_view(snap, self._currency)
        self._last = view
        self.snapshotReady.emit(view)
        for panel, message in view["errors"].items():
            if message:
                self.panelError.emit(panel, message)
