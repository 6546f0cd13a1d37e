# Rev 0.1.1

"""Where sitedash keeps its files (Rev 0.1.1)

Locations follow the XDG base directories, each falling back to the usual
home-relative default when its variable is unset or empty.
"""
from __future__ import annotations
import os
from pathlib import Path

APP_NAME = "sitedash"


def _xdg(var: str, *default: str) -> Path:
    value = os.environ.get(var, "").strip()
    base = Path(value) if value else Path.home().joinpath(*default)
    return base / APP_NAME


DATA_DIR = _xdg("XDG_DATA_HOME", ".local", "share")      # offline store
STATE_DIR = _xdg("XDG_STATE_HOME", ".local", "state")
CONFIG_DIR = _xdg("XDG_CONFIG_HOME", ".config")          # settings.json
LOGS_DIR = STATE_DIR / "logs"

DB_PATH = DATA_DIR / "sitedash.db"


def ensure_dirs() -> None:
    for p in (DATA_DIR, STATE_DIR, LOGS_DIR, CONFIG_DIR):
        p.mkdir(parents=True, exist_ok=True)
