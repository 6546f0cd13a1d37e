# Rev 0.1.0
# src/sitedash/viewmodels/projects_viewmodel.py
from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from PySide6.QtCore import QObject, Signal

from sitedash.errors import BatchResult, StoreError, ValidationError
from sitedash.services.project_service import ProjectService

log = logging.getLogger("sitedash.viewmodels.projects")


class ProjectsViewModel(QObject):
    """
    Add / edit / delete projects without blocking dialogs: the Presenter
    collects the input and confirmation, then calls in here.

    Emits:
      projectsChanged(project_id)   id to select next ("" for none)
      statusMessage(level, text)
      batchIncomplete(summary)      a multi-row operation left work undone; see retry_last()
    """
    projectsChanged = Signal(str)
    statusMessage = Signal(str, str)
    batchIncomplete = Signal(str)

    def __init__(self, projects_service: ProjectService):
        super().__init__()
        self._svc = projects_service
        self._pending: Optional[BatchResult] = None

    def pending_retry(self) -> Optional[BatchResult]:
        return self._pending

    def create_project(self, name: str, **fields: Any) -> Optional[str]:
        try:
            result = self._svc.create_project(name, **fields)
        except ValidationError as e:
            self.statusMessage.emit("warning", str(e))
            return None
        except StoreError as e:
            log.error("Create project failed: %s", e)
            self.statusMessage.emit("error", f"Failed to add project. Error: {e}")
            return None

        if result.ok:
            self.statusMessage.emit(
                "info",
                f'Project "{name.strip()}" added with ID {result.project_id}. All workflow tasks were loaded.',
            )
        else:
            self._hold(result.batch)
        self.projectsChanged.emit(result.project_id)
        return result.project_id

    def save_project(self, project_id: str, form: Dict[str, Any]) -> bool:
        try:
            updated = self._svc.update_project(project_id, form)
        except ValidationError as e:
            self.statusMessage.emit("warning", str(e))
            return False
        except StoreError as e:
            log.error("Update project %s failed: %s", project_id, e)
            self.statusMessage.emit("error", f"Failed to update project. Error: {e}")
            return False
        if not updated:
            self.statusMessage.emit("warning", f"Project {project_id} was not found.")
            return False
        self.statusMessage.emit("info", "Project details updated successfully!")
        self.projectsChanged.emit(project_id)
        return True

    def delete_project(self, project_id: str) -> bool:
        """Caller has already confirmed with the user."""
        try:
            batch = self._svc.delete_project(project_id)
        except ValidationError as e:
            self.statusMessage.emit("warning", str(e))
            return False
        if batch.ok:
            self.statusMessage.emit("info", f"Project {project_id} deleted, including all associated data.")
            self.projectsChanged.emit("")
            return True
        self._hold(batch)
        self.projectsChanged.emit(project_id)
        return False

    def retry_last(self) -> bool:
        if self._pending is None:
            return True
        batch = self._svc.retry(self._pending)
        self._pending = None
        if batch.ok:
            self.statusMessage.emit("info", batch.summary())
            self.projectsChanged.emit("")
            return True
        self._hold(batch)
        return False

    def _hold(self, batch: BatchResult) -> None:
        self._pending = batch
        self.statusMessage.emit("error", batch.summary())
        self.batchIncomplete.emit(batch.summary())
