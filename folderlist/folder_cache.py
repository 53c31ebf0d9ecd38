"""
Cold-start cache of the full (unfiltered) folder list.

The snapshot is a flat text record per folder:

    bucket_id::name::path::video_count::total_size::total_duration::last_modified

with records joined by "|". The layout is unversioned; any change to the
field list needs a migration (or tolerant parsing with defaults).
"""

import logging
from typing import List, Optional

from folderlist.kv_store import KeyValueStore
from folderlist.models import Folder

logger = logging.getLogger(__name__)

FIELD_SEPARATOR = "::"
RECORD_SEPARATOR = "|"
FIELD_COUNT = 7

CACHE_KEY = "folders"


def serialize_folders(folders: List[Folder]) -> str:
    """Encode folders into the snapshot format.

    Folders whose text fields contain a separator cannot be represented and
    are left out of the snapshot.
    """
    records = []
    for folder in folders:
        text_fields = (folder.bucket_id, folder.name, folder.path)
        if any(FIELD_SEPARATOR in f or RECORD_SEPARATOR in f for f in text_fields):
            logger.debug(f"Not caching folder with separator in its fields: {folder.path}")
            continue
        records.append(FIELD_SEPARATOR.join([
            folder.bucket_id,
            folder.name,
            folder.path,
            str(folder.video_count),
            str(folder.total_size),
            str(folder.total_duration),
            str(folder.last_modified),
        ]))
    return RECORD_SEPARATOR.join(records)


def _parse_int(text: str) -> int:
    """Plain decimal integer with an optional leading minus, nothing else."""
    digits = text[1:] if text.startswith("-") else text
    if not (digits.isascii() and digits.isdigit()):
        raise ValueError(f"not a plain integer: {text!r}")
    return int(text)


def _parse_record(record: str) -> Optional[Folder]:
    parts = record.split(FIELD_SEPARATOR)
    if len(parts) != FIELD_COUNT:
        return None
    try:
        return Folder(
            bucket_id=parts[0],
            name=parts[1],
            path=parts[2],
            video_count=_parse_int(parts[3]),
            total_size=_parse_int(parts[4]),
            total_duration=_parse_int(parts[5]),
            last_modified=_parse_int(parts[6]),
        )
    except ValueError:
        return None


def parse_folders(payload: Optional[str]) -> List[Folder]:
    """Decode a snapshot. Malformed records are dropped; never raises."""
    if not payload or not isinstance(payload, str):
        return []

    folders = []
    dropped = 0
    for record in payload.split(RECORD_SEPARATOR):
        folder = _parse_record(record)
        if folder is None:
            dropped += 1
            continue
        folders.append(folder)

    if dropped:
        logger.debug(f"Dropped {dropped} malformed folder cache record(s)")
    return folders


class FolderCache:
    """Single-slot, last-write-wins folder snapshot."""

    def __init__(self, store: KeyValueStore, key: str = CACHE_KEY):
        self._store = store
        self._key = key

    def save(self, folders: List[Folder]) -> bool:
        """Persist the snapshot. Returns False (and logs) on failure."""
        try:
            self._store.put(self._key, serialize_folders(folders))
            logger.debug(f"Saved {len(folders)} folders to cache")
            return True
        except Exception as e:
            logger.error(f"Error saving folders to cache: {type(e).__name__}: {e}")
            return False

    def load(self) -> List[Folder]:
        try:
            payload = self._store.get(self._key)
        except Exception as e:
            logger.error(f"Error loading cached folders: {type(e).__name__}: {e}")
            return []
        return parse_folders(payload)
