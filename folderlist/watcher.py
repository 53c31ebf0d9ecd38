"""Polls the library roots and raises "library changed" events."""

import hashlib
import logging
import os
import threading
from typing import Callable, Iterable, Optional, Union

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.interval import IntervalTrigger

from folderlist.media_index import MediaLibraryEvents

logger = logging.getLogger(__name__)

DEFAULT_SCAN_INTERVAL_SECONDS = 60


def library_signature(roots: Iterable[str], show_hidden: bool = False) -> str:
    """Digest of every directory path and mtime below the roots.

    Adding, removing or renaming a file changes its parent directory's mtime,
    so this catches content changes without stat-ing every file.
    """
    digest = hashlib.sha1()
    for root in sorted(roots):
        if not os.path.isdir(root):
            digest.update(f"missing:{root}\n".encode('utf-8'))
            continue
        for dirpath, dirnames, _ in os.walk(root):
            if not show_hidden:
                dirnames[:] = [d for d in dirnames if not d.startswith('.')]
            dirnames.sort()
            try:
                mtime = os.stat(dirpath).st_mtime_ns
            except OSError:
                continue
            digest.update(f"{dirpath}:{mtime}\n".encode('utf-8'))
    return digest.hexdigest()


class LibraryWatcher:
    """Interval job that notifies MediaLibraryEvents when the library changes.

    show_hidden is either a fixed flag or a callable returning the current
    preference.
    """

    JOB_ID = "library_watch"

    def __init__(self, roots: Iterable[str], events: MediaLibraryEvents,
                 interval_seconds: int = DEFAULT_SCAN_INTERVAL_SECONDS,
                 show_hidden: Union[bool, Callable[[], bool]] = False):
        self.roots = [os.path.abspath(r) for r in roots]
        self.events = events
        self.interval_seconds = max(1, int(interval_seconds))
        # Re-read on every check
        self._show_hidden = show_hidden if callable(show_hidden) else (lambda: show_hidden)
        self._lock = threading.Lock()
        self._last_signature: Optional[str] = None
        self._scheduler: Optional[BackgroundScheduler] = None

    def check_for_changes(self) -> bool:
        """Compare against the previous signature; notify if it differs.

        The first call only records a baseline.
        """
        signature = library_signature(self.roots, bool(self._show_hidden()))
        with self._lock:
            previous = self._last_signature
            self._last_signature = signature
        if previous is None or previous == signature:
            return False
        logger.info("Change detected in media library")
        self.events.notify_changed()
        return True

    def _run_check(self) -> None:
        try:
            self.check_for_changes()
        except Exception as e:
            logger.error(f"Library watch check failed: {type(e).__name__}: {e}")

    @property
    def is_running(self) -> bool:
        return self._scheduler is not None

    def start(self) -> None:
        if self._scheduler is not None:
            return
        self.check_for_changes()
        self._scheduler = BackgroundScheduler(
            job_defaults={
                'coalesce': True,
                'max_instances': 1,
            }
        )
        self._scheduler.add_job(
            self._run_check,
            trigger=IntervalTrigger(seconds=self.interval_seconds),
            id=self.JOB_ID,
            replace_existing=True,
        )
        self._scheduler.start()
        logger.info(f"Library watcher started (interval: {self.interval_seconds}s)")

    def stop(self) -> None:
        if self._scheduler is None:
            return
        self._scheduler.shutdown(wait=False)
        self._scheduler = None
        logger.info("Library watcher stopped")
