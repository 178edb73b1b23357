"""JSON-backed key/value configuration with dotted-path access"""

import copy
import json
import logging
import os
import tempfile
import threading
from pathlib import Path
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)

DEFAULT_STORE_PATH = Path.home() / ".viewkeeper" / "config.json"

DEFAULT_DOCUMENT: Dict[str, Any] = {
    "bot": {
        "owner": "",
        "prefix": ".",
    },
    "viewonce": {
        "autoForward": True,
        "saveToTemp": True,
        "enableInGroups": True,
        "enableInPrivate": True,
        "logActivity": True,
        "skipOwner": False,
    },
}

_MISSING = object()


class ConfigStore:
    """Process-wide settings document, loaded lazily, saved on every change

    Keys are dotted paths: store.get("viewonce.autoForward", True)
    """

    def __init__(self, path: Optional[str] = None):
        self.path = Path(path).expanduser() if path else DEFAULT_STORE_PATH
        self._data: Optional[Dict[str, Any]] = None
        self._lock = threading.RLock()

    def _load(self) -> Dict[str, Any]:
        if self._data is not None:
            return self._data
        with self._lock:
            if self._data is None:
                self._data = self._read()
            return self._data

    def _read(self) -> Dict[str, Any]:
        if self.path.exists():
            try:
                with open(self.path, "r", encoding="utf-8") as f:
                    data = json.load(f)
                if isinstance(data, dict):
                    return data
                logger.error(f"Config store {self.path} is not a JSON object, using defaults")
            except (OSError, json.JSONDecodeError) as e:
                logger.error(f"Error loading config store {self.path}: {e}")
        return copy.deepcopy(DEFAULT_DOCUMENT)

    def _save(self):
        """Write atomically: temp file in the same directory, then replace."""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp = tempfile.mkstemp(dir=str(self.path.parent), suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(self._data, f, indent=2)
            os.replace(tmp, self.path)
        except Exception:
            Path(tmp).unlink(missing_ok=True)
            raise

    def get(self, key: str, default: Any = None) -> Any:
        value: Any = self._load()
        for part in key.split("."):
            if isinstance(value, dict) and part in value:
                value = value[part]
            else:
                return default
        return value

    def has(self, key: str) -> bool:
        return self.get(key, _MISSING) is not _MISSING

    def set(self, key: str, value: Any):
        """Set a dotted key, creating (or replacing non-dict) parents."""
        with self._lock:
            current = self._load()
            parts = key.split(".")
            for part in parts[:-1]:
                if not isinstance(current.get(part), dict):
                    current[part] = {}
                current = current[part]
            current[parts[-1]] = value
            self._save()

    def delete(self, key: str) -> bool:
        """Remove a dotted key. Returns False if the path does not exist."""
        with self._lock:
            current = self._load()
            parts = key.split(".")
            for part in parts[:-1]:
                if not isinstance(current.get(part), dict):
                    return False
                current = current[part]
            if parts[-1] not in current:
                return False
            del current[parts[-1]]
            self._save()
            return True

    def to_dict(self) -> Dict[str, Any]:
        return copy.deepcopy(self._load())


_store: Optional[ConfigStore] = None


def get_config_store(path: Optional[str] = None) -> ConfigStore:
    global _store
    if _store is None:
        _store = ConfigStore(path)
    return _store


def reset_config_store() -> None:
    global _store
    _store = None
