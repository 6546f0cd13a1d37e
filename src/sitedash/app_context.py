# sitedash application context
# Rev 0.1.0

from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional

from .repositories.apps_script_store import AppsScriptStore
from .repositories.proxy_store import ProxyStore
from .repositories.record_store import RecordStore
from .repositories.sheetdb_store import SheetDBStore
from .repositories.sqlite_store import SQLiteStore
from .services.dashboard_service import DashboardService
from .services.project_service import ProjectService
from .utils.config import BACKENDS, load_settings
from .utils.logging_setup import get_logger
from .viewmodels.dashboard_viewmodel import DashboardViewModel
from .viewmodels.projects_viewmodel import ProjectsViewModel

_HTTP_STORES = {
    "sheetdb": SheetDBStore,
    "apps_script": AppsScriptStore,
    "proxy": ProxyStore,
}


def build_store(settings: Mapping[str, Any]) -> RecordStore:
    """Pick the record store named by settings['store']['backend']."""
    cfg = settings["store"]
    backend = str(cfg.get("backend", "")).strip().lower()
    if backend not in BACKENDS:
        raise ValueError(f"Unknown store backend {backend!r}; expected one of {', '.join(BACKENDS)}")
    if backend == "sqlite":
        return SQLiteStore.open(cfg["sqlite_path"])
    return _HTTP_STORES[backend](cfg.get("base_url", ""), timeout=float(cfg.get("timeout_seconds", 15)))


@dataclass
class AppContext:
    """Central container for shared app resources."""
    settings: Dict[str, Any]
    store: RecordStore
    dashboard_service: DashboardService
    project_service: ProjectService
    dashboard_vm: DashboardViewModel
    projects_vm: ProjectsViewModel

    @classmethod
    def create(
        cls,
        settings: Optional[Dict[str, Any]] = None,
        store: Optional[RecordStore] = None,
    ) -> "AppContext":
        """Build the store, services and viewmodels, and wire them together."""
        log = get_logger("AppContext")
        settings = settings or load_settings()
        store = store or build_store(settings)
        dash = settings["dashboard"]

        dashboard = DashboardService(
            store,
            recent_expenses_limit=int(dash["recent_expenses_limit"]),
            load_timeout=float(dash["load_timeout_seconds"]),
        )
        projects = ProjectService(
            store,
            id_prefix=dash["project_id_prefix"],
            recorded_by=dash["recorded_by"],
        )
        dashboard_vm = DashboardViewModel(dashboard, projects, currency_symbol=dash["currency_symbol"])
        projects_vm = ProjectsViewModel(projects)
        projects_vm.projectsChanged.connect(dashboard_vm.on_projects_changed)

        log.info("AppContext initialized with store=%r", store)
        return cls(
            settings=settings,
            store=store,
            dashboard_service=dashboard,
            project_service=projects,
            dashboard_vm=dashboard_vm,
            projects_vm=projects_vm,
        )

    def close(self) -> None:
        self.dashboard_service.shutdown()
        self.store.close()
