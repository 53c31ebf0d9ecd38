"""Playback history tracker, keyed by video display title."""

import json
import logging
import os
import tempfile
import threading
from datetime import datetime
from pathlib import Path
from typing import Dict, Optional, Union

from folderlist.models import PlaybackRecord

logger = logging.getLogger(__name__)


class PlaybackHistory:
    """Thread-safe JSON tracker of played videos.

    Entries are keyed by display title, which is what new-video detection
    matches on. Titles are not unique: two files with the same name share
    one entry.
    """

    def __init__(self, tracker_file: Union[str, Path]):
        self.tracker_file = Path(tracker_file)
        self._lock = threading.Lock()
        self._data: Dict[str, dict] = {}
        self._load()

    def _load(self) -> None:
        try:
            if self.tracker_file.exists():
                with open(self.tracker_file, 'r', encoding='utf-8') as f:
                    data = json.load(f)
                self._data = data if isinstance(data, dict) else {}
                logger.debug(f"Loaded {len(self._data)} playback history entries from {self.tracker_file}")
        except (json.JSONDecodeError, IOError) as e:
            logger.warning(f"Could not load playback history file: {type(e).__name__}: {e}")
            self._data = {}

    def _save(self) -> None:
        try:
            self.tracker_file.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(dir=str(self.tracker_file.parent), suffix=".tmp")
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    json.dump(self._data, f, indent=2)
                os.replace(tmp_path, str(self.tracker_file))
            except Exception:
                try:
                    os.unlink(tmp_path)
                except OSError:
                    pass
                raise
        except (IOError, OSError) as e:
            logger.error(f"Could not save playback history file: {type(e).__name__}: {e}")

    def lookup_by_title(self, title: str) -> Optional[PlaybackRecord]:
        with self._lock:
            entry = self._data.get(title)
        if not isinstance(entry, dict):
            return None
        return PlaybackRecord(
            title=title,
            path=entry.get("path", ""),
            last_position=int(entry.get("last_position", 0) or 0),
            duration=int(entry.get("duration", 0) or 0),
            last_played=entry.get("last_played"),
        )

    def record_playback(self, title: str, path: str = "", position_ms: int = 0,
                        duration_ms: int = 0) -> PlaybackRecord:
        now = datetime.now().isoformat()
        with self._lock:
            self._data[title] = {
                "path": path,
                "last_position": max(0, int(position_ms)),
                "duration": max(0, int(duration_ms)),
                "last_played": now,
            }
            self._save()
        logger.debug(f"Recorded playback for: {title}")
        return PlaybackRecord(title, path, max(0, int(position_ms)), max(0, int(duration_ms)), now)

    def remove(self, title: str) -> bool:
        with self._lock:
            if title not in self._data:
                return False
            del self._data[title]
            self._save()
        logger.debug(f"Removed playback history for: {title}")
        return True

    def clear(self) -> int:
        with self._lock:
            count = len(self._data)
            self._data = {}
            self._save()
        if count:
            logger.info(f"Cleared {count} playback history entries")
        return count

    def __len__(self) -> int:
        with self._lock:
            return len(self._data)
