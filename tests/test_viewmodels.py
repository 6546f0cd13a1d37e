# tests/test_viewmodels.py
from __future__ import annotations

import pytest

from conftest import TODAY, MemoryStore
from sitedash.errors import StoreUnreachableError, TransportError
from sitedash.services.dashboard_service import DashboardService
from sitedash.services.project_service import ProjectService
from sitedash.viewmodels.dashboard_viewmodel import DashboardViewModel
from sitedash.viewmodels.projects_viewmodel import ProjectsViewModel


def _rows():
    return {
        "Projects": [
            {"ProjectID": "HT-01", "Name": "Tower", "StartDate": "2023-03-15", "Deadline": "2023-03-25",
             "Amount": 100000, "Location": "Pune"},
            {"ProjectID": "HT-02", "Name": "Bridge", "StartDate": "2023-01-01", "Deadline": "", "Amount": 0},
        ],
        "Tasks": [
            {"ProjectID": "HT-01", "TaskName": "1. A", "Responsible": "PM", "Status": "In Progress", "Progress": 40},
        ],
        "Expenses": [
            {"ProjectID": "HT-01", "Date": "2023-03-10", "Description": "Sand", "Amount": 30000},
        ],
        "Materials": [
            {"ProjectID": "HT-01", "ItemID": "M1", "Item_Name": "Cement", "Required_Qty": 100,
             "Dispatched_Qty": 25, "Unit": "bags"},
        ],
    }


class Recorder:
    def __init__(self, vm):
        self.snapshots, self.status, self.panels, self.projects, self.cleared = [], [], [], [], 0
        vm.snapshotReady.connect(lambda view: self.snapshots.append(view))
        vm.statusMessage.connect(lambda level, text: self.status.append((level, text)))
        vm.panelError.connect(lambda panel, msg: self.panels.append((panel, msg)))
        vm.projectsLoaded.connect(lambda items: self.projects.append(items))
        vm.cleared.connect(self._on_cleared)

    def _on_cleared(self):
        self.cleared += 1

    def levels(self):
        return [level for level, _ in self.status]


@pytest.fixture()
def store() -> MemoryStore:
    return MemoryStore(_rows())


@pytest.fixture()
def wiring(qapp, store, immediate_executor):
    dashboard = DashboardService(store, clock=lambda: TODAY, load_timeout=5)
    projects = ProjectService(store, clock=lambda: TODAY)
    dash_vm = DashboardViewModel(dashboard, projects, executor=immediate_executor)
    proj_vm = ProjectsViewModel(projects)
    proj_vm.projectsChanged.connect(dash_vm.on_projects_changed)
    yield dash_vm, proj_vm, Recorder(dash_vm)
    dashboard.shutdown()


def test_load_projects_selects_first_and_renders(wiring):
    vm, _, rec = wiring
    vm.load_projects()
    assert rec.projects[-1] == [
        {"id": "HT-01", "label": "Tower (HT-01)"},
        {"id": "HT-02", "label": "Bridge (HT-02)"},
    ]
    view = rec.snapshots[-1]
    assert view["title"] == "Tower"
    assert view["details"]["start_date"] == "15-03-2023"
    k = view["kpis"]
    assert k["days_spent"] == "0 days"
    assert k["days_left"] == "10 days"
    assert k["progress"] == "40%"
    assert k["tasks_completed"] == "0/1"
    assert k["material_progress"] == "25%"
    assert k["work_order"] == "₹1,00,000"
    assert k["total_expenses"] == "₹30,000"
    assert k["remaining"] == "₹70,000"
    assert k["spent_percent"] == "30%"
    assert k["budget_status"] == "healthy"
    assert view["tasks"][0]["status_class"] == "status-in-progress"
    assert view["materials"][0]["balance"] == "75 bags"
    assert rec.panels == []


def test_project_without_deadline_or_budget(wiring):
    vm, _, rec = wiring
    vm.load_projects("HT-02")
    k = rec.snapshots[-1]["kpis"]
    assert k["days_left"] == "No Deadline"
    assert k["spent_percent"] == "0%"
    assert k["progress"] == "0%"


def test_panel_failure_is_reported_per_panel(wiring, store):
    vm, _, rec = wiring
    store.fail[("query", "Materials")] = StoreUnreachableError("Cannot reach SheetDB")
    vm.load_projects()
    view = rec.snapshots[-1]
    assert view["materials"] is None
    assert view["kpis"]["material_progress"] == "Error"
    assert view["tasks"] is not None
    assert rec.panels == [("materials", "Cannot reach SheetDB")]


def test_project_list_failure_clears(wiring, store):
    vm, _, rec = wiring
    store.fail[("list", "Projects")] = TransportError("HTTP 503", status_code=503)
    vm.load_projects()
    assert rec.projects[-1] == []
    assert rec.levels() == ["error"]
    assert rec.cleared == 1
    assert vm.session.current_project_id is None


def test_commands_need_a_selection(wiring, store):
    vm, _, rec = wiring
    assert vm.submit_expense({"date": "2023-03-15", "description": "x", "amount": 1}) is False
    assert rec.levels() == ["warning"]
    assert "Expenses" not in {c for op, c in store.calls if op == "insert"}


def test_submit_expense_reloads(wiring, store):
    vm, _, rec = wiring
    vm.load_projects()
    before = len(rec.snapshots)
    assert vm.submit_expense({"date": "2023-03-15", "description": "Steel", "amount": "5000", "category": "Material"})
    assert rec.status[-1] == ("info", "Expense recorded successfully!")
    assert len(rec.snapshots) == before + 1
    assert rec.snapshots[-1]["kpis"]["total_expenses"] == "₹35,000"


def test_invalid_expense_is_a_warning(wiring):
    vm, _, rec = wiring
    vm.load_projects()
    assert vm.submit_expense({"date": "", "description": "Steel", "amount": "5"}) is False
    assert rec.levels()[-1] == "warning"


def test_store_error_on_command_is_an_error(wiring, store):
    vm, _, rec = wiring
    vm.load_projects()
    store.fail[("insert", "Expenses")] = TransportError("HTTP 500", status_code=500)
    assert vm.submit_expense({"date": "2023-03-15", "description": "x", "amount": 1}) is False
    assert rec.status[-1] == ("error", "Failed to record expense. Error: HTTP 500")


def test_update_task_and_missing_task(wiring, store):
    vm, _, rec = wiring
    vm.load_projects()
    assert vm.update_task("1. A", "Completed", 100)
    assert store.rows["Tasks"][0]["CompletedDate"] == TODAY.isoformat()
    assert rec.snapshots[-1]["kpis"]["tasks_completed"] == "1/1"
    assert vm.update_task("9. Nope", "Completed") is False
    assert rec.levels()[-1] == "warning"


def test_record_dispatch_over_required_warns(wiring):
    vm, _, rec = wiring
    vm.load_projects()
    assert vm.record_dispatch({"item_name": "Cement", "dispatch_qty": 80})
    assert ("info", "Material dispatch recorded successfully!") in rec.status
    assert rec.levels()[-1] == "warning"
    assert rec.snapshots[-1]["kpis"]["material_progress"] == "100%"


def test_edit_form_uses_iso_dates(wiring):
    vm, _, _ = wiring
    vm.load_projects()
    form = vm.edit_form()
    assert form["StartDate"] == "2023-03-15"
    assert form["Name"] == "Tower"
    assert form["Amount"] == 100000


def test_create_project_switches_dashboard(wiring, store):
    dash_vm, proj_vm, rec = wiring
    dash_vm.load_projects()
    pid = proj_vm.create_project("Mall", amount=500000)
    assert pid == "HT-03"
    assert dash_vm.session.current_project_id == "HT-03"
    assert rec.snapshots[-1]["title"] == "Mall"
    assert rec.snapshots[-1]["kpis"]["tasks_completed"] == "0/23"


def test_create_project_validation(wiring):
    _, proj_vm, _ = wiring
    messages = []
    proj_vm.statusMessage.connect(lambda level, text: messages.append(level))
    assert proj_vm.create_project("") is None
    assert messages == ["warning"]


def test_delete_with_failure_holds_batch_for_retry(wiring, store):
    dash_vm, proj_vm, rec = wiring
    dash_vm.load_projects()
    incomplete = []
    proj_vm.batchIncomplete.connect(lambda summary: incomplete.append(summary))
    store.fail[("delete", "Expenses")] = TransportError("HTTP 500", status_code=500)

    assert proj_vm.delete_project("HT-01") is False
    assert incomplete and "Expenses" in incomplete[0]
    assert proj_vm.pending_retry() is not None
    assert not store.query("Projects", "ProjectID", "HT-01")

    del store.fail[("delete", "Expenses")]
    assert proj_vm.retry_last() is True
    assert proj_vm.pending_retry() is None
    assert store.rows["Expenses"] == []
    assert dash_vm.session.current_project_id == "HT-02"


def test_save_project_reloads_selection(wiring, store):
    dash_vm, proj_vm, rec = wiring
    dash_vm.load_projects()
    form = dash_vm.edit_form()
    form["Name"] = "Tower II"
    assert proj_vm.save_project("HT-01", form)
    assert rec.snapshots[-1]["title"] == "Tower II"
    assert store.rows["Projects"][0]["Name"] == "Tower II"
