"""User preferences: folder blacklist and new-video label settings."""

import json
import logging
import os
import tempfile
import threading
from pathlib import Path
from typing import Any, Dict, FrozenSet, Iterable, Union

from folderlist.observable import ObservableValue

logger = logging.getLogger(__name__)

DEFAULT_NEW_VIDEO_DAYS = 7

_POINT_DEFAULTS = {
    "show_new_video_label": True,
    "new_video_days": DEFAULT_NEW_VIDEO_DAYS,
    "show_hidden_files": False,
}

_POINT_TYPES = {
    "show_new_video_label": bool,
    "new_video_days": int,
    "show_hidden_files": bool,
}


class PreferenceStore:
    """Preferences stored in the settings JSON file.

    `blacklist` is published as an ObservableValue so the folder filter can
    react to it; the other values are read on demand.
    """

    def __init__(self, settings_file: Union[str, Path]):
        self.settings_file = Path(settings_file)
        self._lock = threading.RLock()
        raw = self._load_raw()
        self.blacklist: ObservableValue[FrozenSet[str]] = ObservableValue(
            self._read_blacklist(raw), name="blacklist"
        )

    def _load_raw(self) -> Dict[str, Any]:
        if not self.settings_file.exists():
            return {}
        try:
            with open(self.settings_file, 'r', encoding='utf-8') as f:
                data = json.load(f)
            return data if isinstance(data, dict) else {}
        except (json.JSONDecodeError, IOError) as e:
            logger.warning(f"Could not read preferences: {type(e).__name__}: {e}")
            return {}

    def _save_raw(self, settings: Dict[str, Any]) -> None:
        """Atomic save: write to temp file then replace."""
        self.settings_file.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(dir=str(self.settings_file.parent), suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(settings, f, indent=2)
            os.replace(tmp_path, str(self.settings_file))
        except Exception:
            try:
                os.unlink(tmp_path)
            except OSError:
                pass
            raise

    @staticmethod
    def _read_blacklist(raw: Dict[str, Any]) -> FrozenSet[str]:
        value = raw.get("blacklisted_folders", [])
        if not isinstance(value, list):
            return frozenset()
        return frozenset(str(p) for p in value if p)

    def _get_point(self, key: str):
        raw = self._load_raw()
        value = raw.get(key, _POINT_DEFAULTS[key])
        expected = _POINT_TYPES[key]
        if expected is int and isinstance(value, bool):
            return _POINT_DEFAULTS[key]
        if not isinstance(value, expected):
            logger.warning(f"Invalid preference '{key}': {value!r}, using default")
            return _POINT_DEFAULTS[key]
        return value

    @property
    def show_new_video_label(self) -> bool:
        return self._get_point("show_new_video_label")

    @property
    def new_video_days(self) -> int:
        return self._get_point("new_video_days")

    @property
    def show_hidden_files(self) -> bool:
        return self._get_point("show_hidden_files")

    def as_dict(self) -> Dict[str, Any]:
        return {
            "blacklisted_folders": sorted(self.blacklist.value),
            "show_new_video_label": self.show_new_video_label,
            "new_video_days": self.new_video_days,
            "show_hidden_files": self.show_hidden_files,
        }

    def update(self, **values) -> None:
        """Save point values (show_new_video_label, new_video_days, show_hidden_files)."""
        unknown = set(values) - set(_POINT_DEFAULTS)
        if unknown:
            raise ValueError(f"Unknown preference(s): {sorted(unknown)}")
        if "new_video_days" in values and int(values["new_video_days"]) < 0:
            raise ValueError("new_video_days must not be negative")

        with self._lock:
            raw = self._load_raw()
            for key, value in values.items():
                raw[key] = _POINT_TYPES[key](value)
            self._save_raw(raw)
        logger.debug(f"Updated preferences: {sorted(values)}")

    def set_blacklist(self, paths: Iterable[str]) -> None:
        blacklist = frozenset(str(p) for p in paths if p)
        with self._lock:
            raw = self._load_raw()
            raw["blacklisted_folders"] = sorted(blacklist)
            self._save_raw(raw)
        self.blacklist.set(blacklist)
        logger.info(f"Folder blacklist now has {len(blacklist)} entries")

    def add_to_blacklist(self, path: str) -> None:
        with self._lock:
            self.set_blacklist(self.blacklist.value | {path})

    def remove_from_blacklist(self, path: str) -> None:
        with self._lock:
            self.set_blacklist(self.blacklist.value - {path})
