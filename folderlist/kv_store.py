"""JSON-backed key-value slots with atomic replace-on-write."""

import json
import logging
import os
import tempfile
import threading
from pathlib import Path
from typing import Dict, Optional, Union

logger = logging.getLogger(__name__)


class KeyValueStore:
    """A small string->string store persisted as one JSON file.

    Every put rewrites the whole file through a temp file and os.replace(),
    so a concurrent reader sees either the previous or the new contents.
    """

    def __init__(self, store_file: Union[str, Path]):
        self.store_file = Path(store_file)
        self._lock = threading.Lock()

    def _read(self) -> Dict[str, str]:
        if not self.store_file.exists():
            return {}
        try:
            with open(self.store_file, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except (json.JSONDecodeError, IOError, OSError) as e:
            logger.warning(f"Could not read key-value store {self.store_file}: {type(e).__name__}: {e}")
            return {}
        if not isinstance(data, dict):
            logger.warning(f"Ignoring key-value store {self.store_file}: expected an object")
            return {}
        return {str(k): v for k, v in data.items() if isinstance(v, str)}

    def _write(self, data: Dict[str, str]) -> None:
        """Atomic save: write to temp file then replace."""
        self.store_file.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(dir=str(self.store_file.parent), suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2)
            os.replace(tmp_path, str(self.store_file))
        except Exception:
            try:
                os.unlink(tmp_path)
            except OSError:
                pass
            raise

    def get(self, key: str) -> Optional[str]:
        with self._lock:
            return self._read().get(key)

    def put(self, key: str, value: str) -> None:
        with self._lock:
            data = self._read()
            data[key] = value
            self._write(data)
