# trackhub/utils/config.py
# Rev 0.1.0
import copy
import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional

from .paths import DB_PATH, config_dir

_log = logging.getLogger("trackhub.config")

_DEFAULTS: Dict[str, Any] = {
    "storage": {
        "db_path": str(DB_PATH),
    },
    "sync": {
        "timeout_secs": 15.0,
        "refresh_timeout_secs": 20.0,
    },
    "logging": {
        "level": "INFO",
    },
}


def settings_file() -> Path:
    return config_dir() / "settings.json"


def _merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    out = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(out.get(key), dict):
            out[key] = _merge(out[key], value)
        else:
            out[key] = value
    return out


def load_settings(path: Optional[Path] = None) -> Dict[str, Any]:
    path = path or settings_file()
    data = copy.deepcopy(_DEFAULTS)
    if path.exists():
        try:
            data = _merge(data, json.loads(path.read_text(encoding="utf-8")))
        except (OSError, json.JSONDecodeError) as exc:
            _log.warning("Ignoring unreadable settings file %s: %s", path, exc)
    env_db = os.environ.get("TRACKHUB_DB")
    if env_db:
        data["storage"]["db_path"] = env_db
    return data


def save_settings(data: Dict[str, Any], path: Optional[Path] = None) -> None:
    path = path or settings_file()
    path.write_text(json.dumps(data, indent=2), encoding="utf-8")
