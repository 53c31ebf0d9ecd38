"""
Filesystem media index.
Groups video files under the configured library roots into folders and
broadcasts "library changed" events.
"""

import hashlib
import logging
import os
import threading
from typing import Callable, Dict, Iterable, List, Optional, Set, Tuple

from folderlist.models import Folder, VideoFact

logger = logging.getLogger(__name__)

DEFAULT_VIDEO_EXTENSIONS = {
    '.mkv', '.mp4', '.m4v', '.avi', '.mov', '.wmv', '.flv',
    '.webm', '.mpg', '.mpeg', '.ts', '.m2ts', '.3gp',
}


def bucket_id_for(path: str) -> str:
    """Stable identifier for a folder path.

    Case is folded only where the platform folds it (os.path.normcase), so
    two directories differing only by case stay separate on case-sensitive
    filesystems.
    """
    normalized = os.path.normcase(os.path.normpath(path))
    return hashlib.sha1(normalized.encode('utf-8')).hexdigest()[:16]


def _date_added(stat) -> int:
    """Earliest of creation time and mtime, in epoch seconds.

    Where the platform reports no creation time only mtime is available, so
    rewriting a file in place makes it look newly added there.
    """
    birthtime = getattr(stat, "st_birthtime", None)
    if birthtime is None:
        return int(stat.st_mtime)
    return int(min(birthtime, stat.st_mtime))


class MediaLibraryEvents:
    """Broadcast channel for "the library contents changed"."""

    def __init__(self):
        self._lock = threading.Lock()
        self._listeners: List[Callable[[], None]] = []

    def subscribe(self, listener: Callable[[], None]) -> Callable[[], None]:
        with self._lock:
            self._listeners.append(listener)

        def unsubscribe():
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return unsubscribe

    def notify_changed(self) -> None:
        with self._lock:
            listeners = list(self._listeners)
        logger.debug(f"Media library changed, notifying {len(listeners)} listener(s)")
        for listener in listeners:
            try:
                listener()
            except Exception as e:
                logger.error(f"Library change listener failed: {type(e).__name__}: {e}")


class FilesystemMediaIndex:
    """Indexes video files below a set of library roots.

    The result of a full scan is kept until invalidate_cache() is called,
    so per-folder lookups after a scan do not touch the disk again.

    Args:
        roots: library root directories.
        video_extensions: lowercase extensions (with dot) to treat as videos.
        duration_probe: optional callable returning a file's duration in ms.
    """

    def __init__(self, roots: Iterable[str], video_extensions: Optional[Iterable[str]] = None,
                 duration_probe: Optional[Callable[[str], int]] = None):
        self.roots = [os.path.abspath(r) for r in roots]
        self.video_extensions = {e.lower() for e in (video_extensions or DEFAULT_VIDEO_EXTENSIONS)}
        self._duration_probe = duration_probe
        self._lock = threading.Lock()
        self._scan_cache: Dict[bool, Dict[str, Tuple[str, List[VideoFact]]]] = {}
        self._last_show_hidden = False
        self.events = MediaLibraryEvents()

    def _is_video(self, filename: str) -> bool:
        return os.path.splitext(filename)[1].lower() in self.video_extensions

    def _probe_duration(self, path: str) -> int:
        if self._duration_probe is None:
            return 0
        try:
            return int(self._duration_probe(path) or 0)
        except Exception as e:
            logger.debug(f"Duration probe failed for {path}: {e}")
            return 0

    def _video_fact(self, path: str, bucket_id: str) -> Optional[VideoFact]:
        try:
            stat = os.stat(path)
        except OSError as e:
            logger.debug(f"Skipping unreadable file {path}: {e}")
            return None
        return VideoFact(
            path=path,
            display_name=os.path.basename(path),
            bucket_id=bucket_id,
            size=stat.st_size,
            duration=self._probe_duration(path),
            date_added=_date_added(stat),
        )

    def _scan_directory(self, directory: str, show_hidden: bool) -> List[VideoFact]:
        """Videos directly inside one directory (not recursive)."""
        bucket_id = bucket_id_for(directory)
        videos = []
        try:
            with os.scandir(directory) as it:
                for entry in it:
                    if not show_hidden and entry.name.startswith('.'):
                        continue
                    if entry.is_file() and self._is_video(entry.name):
                        video = self._video_fact(entry.path, bucket_id)
                        if video is not None:
                            videos.append(video)
        except OSError as e:
            logger.debug(f"Cannot list {directory}: {e}")
        videos.sort(key=lambda v: v.display_name.lower())
        return videos

    def _scan(self, show_hidden: bool) -> Dict[str, Tuple[str, List[VideoFact]]]:
        buckets: Dict[str, Tuple[str, List[VideoFact]]] = {}
        for root in self.roots:
            if not os.path.isdir(root):
                logger.warning(f"Library root does not exist: {root}")
                continue
            for dirpath, dirnames, filenames in os.walk(root):
                if not show_hidden:
                    dirnames[:] = [d for d in dirnames if not d.startswith('.')]
                if not any(self._is_video(f) for f in filenames):
                    continue
                bucket_id = bucket_id_for(dirpath)
                if bucket_id in buckets:
                    continue
                videos = self._scan_directory(dirpath, show_hidden)
                if videos:
                    buckets[bucket_id] = (dirpath, videos)
        return buckets

    def _get_buckets(self, show_hidden: bool) -> Dict[str, Tuple[str, List[VideoFact]]]:
        with self._lock:
            cached = self._scan_cache.get(show_hidden)
        if cached is not None:
            return cached

        buckets = self._scan(show_hidden)
        with self._lock:
            self._scan_cache[show_hidden] = buckets
        logger.debug(f"Scanned {len(buckets)} video folders (show_hidden={show_hidden})")
        return buckets

    def enumerate_folders(self, show_hidden: bool = False) -> List[Folder]:
        self._last_show_hidden = show_hidden
        folders = []
        for bucket_id, (path, videos) in self._get_buckets(show_hidden).items():
            folders.append(Folder(
                bucket_id=bucket_id,
                name=os.path.basename(path) or path,
                path=path,
                video_count=len(videos),
                total_size=sum(v.size for v in videos),
                total_duration=sum(v.duration for v in videos),
                last_modified=max(v.date_added for v in videos),
            ))
        folders.sort(key=lambda f: f.name.lower())
        return folders

    def enumerate_videos_in_folder(self, bucket_id: str) -> List[VideoFact]:
        bucket = self._get_buckets(self._last_show_hidden).get(bucket_id)
        if bucket is None:
            return []
        return list(bucket[1])

    def is_within_roots(self, directory: str) -> bool:
        directory = os.path.abspath(directory)
        for root in self.roots:
            if directory == root or directory.startswith(root.rstrip(os.sep) + os.sep):
                return True
        return False

    def enumerate_videos_for_directories(self, directories: Set[str]) -> List[VideoFact]:
        """Videos in exactly the given directories.

        Answers from the last full scan when one is cached; otherwise only the
        requested directories are read, never the whole library.
        """
        with self._lock:
            buckets = self._scan_cache.get(self._last_show_hidden)

        videos = []
        for directory in sorted(d for d in directories if d):
            if not self.is_within_roots(directory):
                continue
            directory = os.path.abspath(directory)
            if buckets is not None:
                bucket = buckets.get(bucket_id_for(directory))
                if bucket is not None:
                    videos.extend(bucket[1])
                continue
            videos.extend(self._scan_directory(directory, self._last_show_hidden))
        return videos

    def invalidate_cache(self) -> None:
        with self._lock:
            self._scan_cache.clear()
        logger.debug("Media index scan cache cleared")
