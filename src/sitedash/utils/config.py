# src/sitedash/utils/config.py
import copy
import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, Mapping, Optional
from .paths import CONFIG_DIR, DB_PATH

SETTINGS_FILE = CONFIG_DIR / "settings.json"

BACKENDS = ("sheetdb", "apps_script", "proxy", "sqlite")

_DEFAULTS: Dict[str, Any] = {
    "store": {
        "backend": "sheetdb",          # one of BACKENDS
        "base_url": "",
        "timeout_seconds": 15,
        "sqlite_path": str(DB_PATH),
    },
    "dashboard": {
        "project_id_prefix": "HT",
        "recent_expenses_limit": 10,
        "recorded_by": "User Admin",
        "currency_symbol": "₹",
        "load_timeout_seconds": 30,
    },
}

# env var -> (section, key)
_ENV_OVERRIDES = {
    "SITEDASH_BACKEND": ("store", "backend"),
    "SITEDASH_API_URL": ("store", "base_url"),
    "SITEDASH_DB": ("store", "sqlite_path"),
    "SITEDASH_TIMEOUT": ("store", "timeout_seconds"),
}

log = logging.getLogger("sitedash.config")


def _merge(base: Dict[str, Any], extra: Mapping[str, Any]) -> Dict[str, Any]:
    out = copy.deepcopy(base)
    for k, v in extra.items():
        if isinstance(v, Mapping) and isinstance(out.get(k), dict):
            out[k] = _merge(out[k], v)
        else:
            out[k] = v
    return out


def load_settings(path: Optional[Path] = None, env: Optional[Mapping[str, str]] = None) -> Dict[str, Any]:
    path = Path(path) if path else SETTINGS_FILE
    env = os.environ if env is None else env
    data = copy.deepcopy(_DEFAULTS)
    if path.exists():
        try:
            data = _merge(data, json.loads(path.read_text(encoding="utf-8")))
        except (OSError, ValueError):
            log.warning("Ignoring unreadable settings file %s", path, exc_info=True)
    for var, (section, key) in _ENV_OVERRIDES.items():
        if env.get(var):
            data[section][key] = env[var]
    return data


def save_settings(data: Dict[str, Any], path: Optional[Path] = None) -> None:
    path = Path(path) if path else SETTINGS_FILE
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data, indent=2, ensure_ascii=False), encoding="utf-8")
