# Rev 0.1.0
# src/sitedash/services/project_service.py
"""
Write-side operations: create/edit/delete projects, task status updates,
expense entry, material dispatch.

Inputs are validated before any store call (ValidationError). Store failures
propagate as sitedash.errors.StoreError. Multi-row operations (seeding the
workflow, cascade delete) return a BatchResult instead of raising, so the
caller can see which collections failed and retry just those.
"""
from __future__ import annotations

import logging
import math
import time
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Callable, Dict, List, Mapping, Optional

from sitedash.errors import BatchFailure, BatchResult, StoreError, StoreRejectedError, ValidationError
from sitedash.models.entities import Material, Project, normalize_status, parse_number, COMPLETED_STATUSES
from sitedash.models.types import (
    DEPENDENT_COLLECTIONS, EXPENSES, MATERIALS, PROJECT_KEY, PROJECTS, TASK_STATUSES, TASKS,
)
from sitedash.models.workflow import seed_task_records
from sitedash.repositories.record_store import RecordStore, cell_text
from sitedash.services.dates import to_canonical_date
from sitedash.services.ids import DEFAULT_PREFIX, next_project_id

log = logging.getLogger("sitedash.services.projects")

# Fields the edit form replaces wholesale
EDITABLE_FIELDS = (
    "Name", "StartDate", "Deadline", "Location", "Amount",
    "Contractor", "Engineers", "Contact1", "Contact2",
)


@dataclass
class CreateProjectResult:
    project_id: str
    batch: BatchResult

    @property
    def ok(self) -> bool:
        return self.batch.ok


@dataclass
class DispatchResult:
    item_id: str
    item_name: str
    created: bool
    dispatched_qty: float
    balance: float
    over_dispatched: bool = False
    warnings: List[str] = field(default_factory=list)


# --- validation helpers -------------------------------------------------------

def _required_text(value: Any, field_name: str) -> str:
    text = cell_text(value)
    if not text:
        raise ValidationError(f"{field_name} is required", field=field_name)
    return text


def _number(value: Any, field_name: str, *, allow_blank: bool = False, minimum: float = 0.0) -> float:
    if cell_text(value) == "":
        if allow_blank:
            return 0.0
        raise ValidationError(f"{field_name} is required", field=field_name)
    try:
        raw = float(value.replace(",", "").strip()) if isinstance(value, str) else float(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field_name} must be a number", field=field_name) from None
    if not math.isfinite(raw):
        raise ValidationError(f"{field_name} must be a finite number", field=field_name)
    x = parse_number(value)
    if x < minimum:
        raise ValidationError(f"{field_name} must be at least {minimum:g}", field=field_name)
    return x


def _optional_date(value: Any, field_name: str) -> str:
    if cell_text(value) == "":
        return ""
    d = to_canonical_date(value)
    if d is None:
        raise ValidationError(f"{field_name} is not a valid date", field=field_name)
    return d.isoformat()


def _already_completed(rec: Mapping[str, Any]) -> bool:
    """Completed status with a completion date on record; that date is kept."""
    return normalize_status(rec.get("Status")) in COMPLETED_STATUSES and cell_text(rec.get("CompletedDate")) != ""


def _normalize_status_choice(status: Any) -> str:
    wanted = normalize_status(status)
    if wanted in COMPLETED_STATUSES:
        return "Completed"
    for choice in TASK_STATUSES:
        if normalize_status(choice) == wanted:
            return choice
    raise ValidationError(f"Unknown task status: {status!r}", field="Status")


class ProjectService:
    def __init__(
        self,
        store: RecordStore,
        *,
        id_prefix: str = DEFAULT_PREFIX,
        recorded_by: str = "User Admin",
        clock: Callable[[], date] = date.today,
    ):
        self._store = store
        self._prefix = id_prefix
        self._recorded_by = recorded_by
        self._clock = clock

    # ---- projects ----------------------------------------------------------

    def create_project(
        self,
        name: str,
        *,
        start_date: Any = None,
        deadline: Any = None,
        amount: Any = 0,
        **details: Any,
    ) -> CreateProjectResult:
        """
        Insert a project row and seed its 23 workflow tasks.
        Raises on validation or when the project row itself cannot be written;
        a short task seed is reported in the result's batch.
        """
        today = self._clock()
        project = Project(
            project_id="",
            name=_required_text(name, "Name"),
            start_date=_optional_date(start_date, "StartDate") or today.isoformat(),
            deadline=_optional_date(deadline, "Deadline"),
            amount=_number(amount, "Amount", allow_blank=True),
            location=cell_text(details.get("location")),
            contractor=cell_text(details.get("contractor")),
            engineers=cell_text(details.get("engineers")),
            contact1=cell_text(details.get("contact1")),
            contact2=cell_text(details.get("contact2")),
            creation_date=today.isoformat(),
        )

        existing = [r.get(PROJECT_KEY) for r in self._store.list(PROJECTS)]
        project.project_id = next_project_id(existing, self._prefix)
        # Another client may have taken the id since the list above.
        if self._store.query(PROJECTS, PROJECT_KEY, project.project_id):
            raise ValidationError(f"Project id {project.project_id} already exists", field=PROJECT_KEY)

        batch = BatchResult(operation=f"create project {project.project_id}")
        created = self._store.insert(PROJECTS, [project.to_record()])
        if not created:
            raise StoreRejectedError(
                f"Store did not confirm project row {project.project_id}", collection=PROJECTS,
            )
        batch.add_success(PROJECTS, created)
        self._insert_into(batch, TASKS, seed_task_records(project.project_id))
        if batch.ok:
            log.info("Created project %s (%s) with %s tasks", project.project_id, project.name, batch.succeeded[TASKS])
        else:
            log.warning("Project %s created with failures: %s", project.project_id, batch.summary())
        return CreateProjectResult(project.project_id, batch)

    def update_project(self, project_id: str, form: Mapping[str, Any]) -> int:
        """Full-field replace of the editable project fields."""
        pid = _required_text(project_id, PROJECT_KEY)
        patch = {
            "Name": _required_text(form.get("Name"), "Name"),
            "StartDate": _optional_date(form.get("StartDate"), "StartDate"),
            "Deadline": _optional_date(form.get("Deadline"), "Deadline"),
            "Location": cell_text(form.get("Location")),
            "Amount": _number(form.get("Amount"), "Amount", allow_blank=True),
            "Contractor": cell_text(form.get("Contractor")),
            "Engineers": cell_text(form.get("Engineers")),
            "Contact1": cell_text(form.get("Contact1")),
            "Contact2": cell_text(form.get("Contact2")),
        }
        updated = self._store.update(PROJECTS, PROJECT_KEY, pid, patch)
        log.info("Updated project %s (%s row(s))", pid, updated)
        return updated

    def delete_project(self, project_id: str) -> BatchResult:
        """
        Remove the project's tasks, expenses and materials, then the project row.
        The project row goes last so a failed cascade can be retried against it.
        """
        pid = _required_text(project_id, PROJECT_KEY)
        batch = BatchResult(operation=f"delete project {pid}")
        for collection in DEPENDENT_COLLECTIONS:
            self._delete_from(batch, collection, pid)
        self._delete_from(batch, PROJECTS, pid, require_hit=True)
        if batch.ok:
            log.info("Deleted project %s: %s", pid, batch.succeeded)
        else:
            log.warning("Delete of %s incomplete: %s", pid, batch.summary())
        return batch

    def retry(self, batch: BatchResult) -> BatchResult:
        """Re-issue only the failed steps of an earlier batch."""
        again = BatchResult(operation=f"retry {batch.operation}")
        for f in batch.failures:
            if f.op == "insert":
                self._insert_into(again, f.collection, f.records)
            elif f.op == "delete":
                field_name, value = next(iter(f.match.items()))
                self._delete_from(again, f.collection, value, field_name=field_name,
                                  require_hit=(f.collection == PROJECTS))
        return again

    # ---- tasks -------------------------------------------------------------

    def update_task(self, project_id: str, task_name: str, *, status: Any, progress: Any = None) -> int:
        """Set status/progress; CompletedDate tracks the Completed status."""
        pid = _required_text(project_id, PROJECT_KEY)
        name = _required_text(task_name, "TaskName")
        status_value = _normalize_status_choice(status)
        today = self._clock().isoformat()
        pct = None
        if cell_text(progress) != "":
            pct = _number(progress, "Progress")
            if pct > 100:
                raise ValidationError("Progress must be between 0 and 100", field="Progress")

        current = [r for r in self._store.query(TASKS, PROJECT_KEY, pid) if cell_text(r.get("TaskName")) == name]
        if not current:
            log.warning("No task %r found for project %s", name, pid)
            return 0

        patch: Dict[str, Any] = {"Status": status_value, "LastUpdated": today}
        if status_value != "Completed":
            patch["CompletedDate"] = ""
        elif not _already_completed(current[0]):
            patch["CompletedDate"] = today
        if pct is not None:
            patch["Progress"] = int(pct)

        updated = self._store.update(TASKS, PROJECT_KEY, pid, patch, extra_match={"TaskName": name})
        if not updated:
            log.warning("No task %r found for project %s", name, pid)
        return updated

    # ---- expenses ----------------------------------------------------------

    def record_expense(
        self,
        project_id: str,
        *,
        date: Any,
        description: Any,
        amount: Any,
        category: Any = "",
        recorded_by: Optional[str] = None,
    ) -> int:
        pid = _required_text(project_id, PROJECT_KEY)
        when = _optional_date(date, "Date")
        if not when:
            raise ValidationError("Date is required", field="Date")
        record = {
            PROJECT_KEY: pid,
            "Date": when,
            "Description": _required_text(description, "Description"),
            "Amount": _number(amount, "Amount"),
            "Category": cell_text(category) or "Other",
            "RecordedBy": cell_text(recorded_by) or self._recorded_by,
        }
        return self._store.insert(EXPENSES, [record])

    # ---- materials ---------------------------------------------------------

    def record_dispatch(
        self,
        project_id: str,
        *,
        item_name: Any,
        dispatch_qty: Any,
        unit: Any = "",
        required_qty: Any = None,
    ) -> DispatchResult:
        """
        First dispatch of an item creates the material row (required_qty needed);
        later dispatches add to Dispatched_Qty. Over-dispatch is allowed but flagged.
        """
        pid = _required_text(project_id, PROJECT_KEY)
        name = _required_text(item_name, "Item_Name")
        qty = _number(dispatch_qty, "Dispatched_Qty")

        existing = self._find_material(pid, name)
        if existing is None:
            required = _number(required_qty, "Required_Qty")
            material = Material(
                project_id=pid,
                item_name=name,
                item_id=f"{pid}-{'-'.join(name.split())}-{time.time_ns() // 1_000_000}",
                required_qty=required,
                dispatched_qty=qty,
                unit=_required_text(unit, "Unit"),
            )
            self._store.insert(MATERIALS, [material.to_record()])
            created = True
        else:
            material = existing
            material.dispatched_qty += qty
            if cell_text(required_qty) != "":
                material.required_qty = _number(required_qty, "Required_Qty")
            if cell_text(unit):
                material.unit = cell_text(unit)
            rec = material.to_record()
            patch = {k: rec[k] for k in ("Required_Qty", "Dispatched_Qty", "Balance_Qty", "Unit")}
            if material.item_id:
                self._store.update(MATERIALS, "ItemID", material.item_id, patch)
            else:
                self._store.update(MATERIALS, PROJECT_KEY, pid, patch, extra_match={"Item_Name": material.item_name})
            created = False

        result = DispatchResult(
            item_id=material.item_id,
            item_name=material.item_name,
            created=created,
            dispatched_qty=material.dispatched_qty,
            balance=material.balance,
            over_dispatched=material.balance < 0,
        )
        if result.over_dispatched:
            msg = f"{name}: dispatched {material.dispatched_qty:g} exceeds required {material.required_qty:g}"
            result.warnings.append(msg)
            log.warning("Project %s %s", pid, msg)
        return result

    # ---- internals ---------------------------------------------------------

    def _find_material(self, project_id: str, item_name: str) -> Optional[Material]:
        wanted = item_name.casefold()
        for rec in self._store.query(MATERIALS, PROJECT_KEY, project_id):
            m = Material.from_record(rec)
            if m.item_name.casefold() == wanted:
                return m
        return None

    def _insert_into(self, batch: BatchResult, collection: str, records: List[Dict[str, Any]]) -> None:
        try:
            created = self._store.insert(collection, records)
        except StoreError as e:
            batch.add_failure(BatchFailure("insert", collection, str(e), records=list(records)))
            return
        batch.add_success(collection, created)
        if created < len(records):
            # Rows are appended in order, so the unconfirmed ones are the tail.
            batch.add_failure(BatchFailure(
                "insert", collection,
                f"store confirmed {created} of {len(records)} rows",
                records=list(records[created:]),
            ))

    def _delete_from(
        self,
        batch: BatchResult,
        collection: str,
        value: Any,
        *,
        field_name: str = PROJECT_KEY,
        require_hit: bool = False,
    ) -> None:
        try:
            deleted = self._store.delete(collection, field_name, value)
        except StoreError as e:
            batch.add_failure(BatchFailure("delete", collection, str(e), match={field_name: value}))
            return
        batch.add_success(collection, deleted)
        if require_hit and deleted == 0:
            batch.add_failure(BatchFailure("delete", collection, "no matching row", match={field_name: value}))
