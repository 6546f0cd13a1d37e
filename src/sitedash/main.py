# Rev 0.1.0

# src/sitedash/main.py  (Rev 0.1.0)
"""Print one project's dashboard from the configured store, then exit."""
from __future__ import annotations

import argparse
import sys
from typing import Any, Dict, List, Optional

from PySide6.QtCore import QCoreApplication, QMetaObject, Qt, QTimer

from sitedash.app_context import AppContext
from sitedash.utils.config import BACKENDS, load_settings
from sitedash.utils.logging_setup import get_logger, setup_logging

log = get_logger("main")


def _parse_args(argv: Optional[List[str]]) -> argparse.Namespace:
    ap = argparse.ArgumentParser(prog="sitedash", description=__doc__)
    ap.add_argument("--project", help="project id to show (default: first project)")
    ap.add_argument("--backend", choices=BACKENDS, help="record store backend")
    ap.add_argument("--url", help="base URL of the HTTP record store")
    ap.add_argument("--db", help="SQLite file for the sqlite backend")
    return ap.parse_args(argv)


def render_text(view: Dict[str, Any]) -> str:
    lines = [f"{view['title']} ({view['project_id']})", ""]
    details = view.get("details")
    if details:
        for key, value in details.items():
            lines.append(f"  {key.replace('_', ' ').title():<12} {value}")
        lines.append("")

    lines.append("KPIs")
    for key, value in view["kpis"].items():
        if key == "is_overdue":
            continue
        lines.append(f"  {key.replace('_', ' ').title():<18} {value if value is not None else 'N/A'}")

    for panel in ("tasks", "expenses", "materials"):
        lines.append("")
        lines.append(panel.title())
        rows = view.get(panel)
        if rows is None:
            lines.append(f"  Error: {view['errors'][panel]}")
            continue
        if not rows:
            lines.append("  (none)")
        for row in rows:
            lines.append("  " + " | ".join(str(v) for k, v in row.items() if k not in ("status_class", "complete")))
    return "\n".join(lines)


def main(argv: Optional[List[str]] = None) -> int:
    args = _parse_args(argv)
    app = QCoreApplication(sys.argv[:1])
    QCoreApplication.setOrganizationName("sitedash")
    QCoreApplication.setApplicationName("sitedash")

    logfile = setup_logging("sitedash")
    print(f"[logging] Writing to: {logfile}")

    settings = load_settings()
    if args.backend:
        settings["store"]["backend"] = args.backend
    if args.url:
        settings["store"]["base_url"] = args.url
    if args.db:
        settings["store"]["sqlite_path"] = args.db

    try:
        ctx = AppContext.create(settings)
    except ValueError as e:
        print(f"sitedash: {e}", file=sys.stderr)
        return 2

    status = {"code": 0}

    def quit_later():
        # Signals may arrive on a loader thread; let the event loop do the quitting.
        QMetaObject.invokeMethod(app, "quit", Qt.ConnectionType.QueuedConnection)

    def on_snapshot(view: Dict[str, Any]):
        print(render_text(view))
        if any(view["errors"].values()):
            status["code"] = 1
        quit_later()

    def on_status(level: str, text: str):
        print(f"[{level}] {text}", file=sys.stderr if level != "info" else sys.stdout)
        if level == "error":
            status["code"] = 1
            quit_later()

    ctx.dashboard_vm.snapshotReady.connect(on_snapshot)
    ctx.dashboard_vm.statusMessage.connect(on_status)
    ctx.dashboard_vm.cleared.connect(quit_later)

    QTimer.singleShot(0, lambda: ctx.dashboard_vm.load_projects(args.project))
    # Hard stop in case a load never reports back.
    deadline_ms = int((float(settings["dashboard"]["load_timeout_seconds"]) + 5) * 1000)
    QTimer.singleShot(deadline_ms, app.quit)

    try:
        app.exec()
    finally:
        ctx.close()
    return status["code"]


if __name__ == "__main__":
    sys.exit(main())
