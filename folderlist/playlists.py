"""
User playlists: JSON-backed store, M3U import and item-count reconciliation.
"""

import json
import logging
import os
import tempfile
import threading
from datetime import datetime
from pathlib import Path
from typing import Dict, List, Optional, Tuple, Union
from urllib.parse import unquote, urlparse

from folderlist.models import Playlist, PlaylistEntry, PlaylistWithCount
from folderlist.observable import ObservableValue

logger = logging.getLogger(__name__)

M3U_EXTENSIONS = {'.m3u', '.m3u8'}


def _is_stream_url(value: str) -> bool:
    return "://" in value and not value.lower().startswith("file://")


def parse_m3u(path: Union[str, Path]) -> List[str]:
    """Read the entries of a local M3U/M3U8 file.

    Directives and comments are skipped, file:// URLs are converted to
    paths and relative entries are resolved against the playlist's folder.
    Entries are kept whether or not the file exists.
    """
    playlist_path = os.path.abspath(str(path))
    base_dir = os.path.dirname(playlist_path)
    items = []
    seen = set()

    with open(playlist_path, "r", encoding="utf-8-sig", errors="replace") as f:
        for raw_line in f:
            line = raw_line.strip()
            if not line or line.startswith("#"):
                continue
            if _is_stream_url(line):
                entry = line
            else:
                if line.lower().startswith("file://"):
                    line = unquote(urlparse(line).path)
                expanded = os.path.expanduser(line)
                if not os.path.isabs(expanded):
                    expanded = os.path.join(base_dir, expanded)
                entry = os.path.abspath(os.path.normpath(expanded))
            if entry not in seen:
                seen.add(entry)
                items.append(entry)
    return items


def _playlist_to_dict(playlist: Playlist) -> dict:
    return {
        "id": playlist.id,
        "name": playlist.name,
        "is_m3u": playlist.is_m3u,
        "created_at": playlist.created_at,
        "updated_at": playlist.updated_at,
        "entries": [entry.file_path for entry in playlist.entries],
    }


def _playlist_from_dict(data: dict) -> Playlist:
    entries = tuple(
        PlaylistEntry(file_path=str(path), position=i)
        for i, path in enumerate(data.get("entries", []))
    )
    return Playlist(
        id=int(data["id"]),
        name=str(data.get("name", "")),
        is_m3u=bool(data.get("is_m3u", False)),
        entries=entries,
        created_at=data.get("created_at"),
        updated_at=data.get("updated_at"),
    )


class PlaylistStore:
    """Playlists persisted to a JSON file, published through `playlists`.

    Every mutation saves the file and republishes the full list, so
    observers of `playlists` see each change as one replacement.
    """

    def __init__(self, store_file: Union[str, Path]):
        self.store_file = Path(store_file)
        self._lock = threading.RLock()
        self._next_id = 1
        self._by_id: Dict[int, Playlist] = {}
        self.playlists: ObservableValue[Tuple[Playlist, ...]] = ObservableValue((), name="playlists")
        self._load()

    def _load(self) -> None:
        if not self.store_file.exists():
            return
        try:
            with open(self.store_file, 'r', encoding='utf-8') as f:
                data = json.load(f)
            for item in data.get("playlists", []):
                try:
                    playlist = _playlist_from_dict(item)
                except (KeyError, TypeError, ValueError):
                    continue  # Skip malformed entries
                self._by_id[playlist.id] = playlist
            self._next_id = max([int(data.get("next_id", 1))] + [pid + 1 for pid in self._by_id])
            logger.debug(f"Loaded {len(self._by_id)} playlists from {self.store_file}")
        except (json.JSONDecodeError, IOError, AttributeError, TypeError, ValueError) as e:
            logger.warning(f"Could not load playlists file: {type(e).__name__}: {e}")
            self._by_id = {}
        self.playlists.set(self._snapshot())

    def _snapshot(self) -> Tuple[Playlist, ...]:
        return tuple(self._by_id[pid] for pid in sorted(self._by_id))

    def _save(self) -> None:
        """Atomic save: write to temp file then replace."""
        data = {
            "next_id": self._next_id,
            "playlists": [_playlist_to_dict(p) for p in self._snapshot()],
        }
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

    def _commit(self) -> None:
        self._save()
        snapshot = self._snapshot()
        self.playlists.set(snapshot)

    def get_by_id(self, playlist_id: int) -> Optional[Playlist]:
        with self._lock:
            return self._by_id.get(playlist_id)

    def get_items(self, playlist_id: int) -> List[PlaylistEntry]:
        with self._lock:
            playlist = self._by_id.get(playlist_id)
            return list(playlist.entries) if playlist else []

    def create(self, name: str, paths: Optional[List[str]] = None, is_m3u: bool = False) -> Playlist:
        now = datetime.now().isoformat()
        with self._lock:
            playlist = Playlist(
                id=self._next_id,
                name=name,
                is_m3u=is_m3u,
                entries=tuple(PlaylistEntry(p, i) for i, p in enumerate(paths or [])),
                created_at=now,
                updated_at=now,
            )
            self._by_id[playlist.id] = playlist
            self._next_id += 1
            self._commit()
        logger.info(f"Created playlist '{name}' with {len(playlist.entries)} item(s)")
        return playlist

    def add_items(self, playlist_id: int, paths: List[str]) -> Optional[Playlist]:
        with self._lock:
            playlist = self._by_id.get(playlist_id)
            if playlist is None:
                return None
            start = len(playlist.entries)
            entries = playlist.entries + tuple(
                PlaylistEntry(p, start + i) for i, p in enumerate(paths)
            )
            updated = Playlist(
                id=playlist.id,
                name=playlist.name,
                is_m3u=playlist.is_m3u,
                entries=entries,
                created_at=playlist.created_at,
                updated_at=datetime.now().isoformat(),
            )
            self._by_id[playlist_id] = updated
            self._commit()
            return updated

    def delete(self, playlist: Union[Playlist, int]) -> bool:
        playlist_id = playlist.id if isinstance(playlist, Playlist) else int(playlist)
        with self._lock:
            removed = self._by_id.pop(playlist_id, None)
            if removed is None:
                return False
            self._commit()
        logger.info(f"Deleted playlist '{removed.name}'")
        return True

    def import_m3u(self, path: Union[str, Path], name: Optional[str] = None) -> Playlist:
        """Create an import-origin playlist from an M3U file."""
        suffix = Path(path).suffix.lower()
        if suffix not in M3U_EXTENSIONS:
            raise ValueError(f"Not an M3U playlist: {path}")
        entries = parse_m3u(path)
        return self.create(name or Path(path).stem, entries, is_m3u=True)


class PlaylistReconciler:
    """Counts playlist entries that still resolve to indexed videos.

    M3U-imported playlists report their raw entry count; all others are
    checked against the videos the media index holds for the directories
    the entries point into.
    """

    def __init__(self, store: PlaylistStore, media_index):
        self._store = store
        self._media_index = media_index

    def reconcile(self, playlists) -> List[PlaylistWithCount]:
        ordered = sorted(playlists, key=lambda p: p.name.lower())
        return [PlaylistWithCount(p, self.actual_item_count(p.id)) for p in ordered]

    def actual_item_count(self, playlist_id: int) -> int:
        try:
            playlist = self._store.get_by_id(playlist_id)
            items = self._store.get_items(playlist_id)
            if not items:
                return 0
            if playlist is not None and playlist.is_m3u:
                return len(items)

            directories = {os.path.dirname(item.file_path) for item in items}
            known_paths = {
                video.path
                for video in self._media_index.enumerate_videos_for_directories(directories)
            }
            return sum(1 for item in items if item.file_path in known_paths)
        except Exception as e:
            logger.warning(f"Could not reconcile playlist {playlist_id}: {type(e).__name__}: {e}")
            return 0
