"""
State synchronizer - owns the published folder/playlist state.

Three independent signals drive it: media library changes, preference
changes (the folder blacklist) and playlist store changes. Scans, metric
runs, playlist reconciliation and cache writes run on a worker executor;
each result is published only if it belongs to the latest run of its
stream, so a slow early run can never overwrite a newer one.
"""

import logging
import threading
from concurrent.futures import Executor, Future, ThreadPoolExecutor
from typing import Callable, Dict, Iterable, List, Optional, Tuple

from folderlist.file_operations import delete_video_files
from folderlist.filter_stage import FilterStage
from folderlist.folder_cache import FolderCache
from folderlist.metrics import DerivedMetricsCalculator
from folderlist.models import Folder, FolderWithMetric, PlaybackRecord, PlaylistWithCount
from folderlist.observable import ObservableValue
from folderlist.playlists import PlaylistReconciler

logger = logging.getLogger(__name__)

DEFAULT_WORKER_COUNT = 4


class InlineExecutor(Executor):
    """Runs submitted work immediately on the calling thread."""

    def submit(self, fn, *args, **kwargs):
        future = Future()
        try:
            future.set_result(fn(*args, **kwargs))
        except BaseException as e:
            future.set_exception(e)
        return future


class StateSynchronizer:
    """Publishes visible folders, new-video counts and playlist counts.

    Published values (ObservableValue):
        video_folders: folders not in the blacklist, in media index order
        folders_with_metric: visible folders with their new-video count
        playlists_with_count: playlists sorted by name with resolvable item counts
        is_loading: a folder load is running and no folders are known yet
        has_completed_initial_load: a live folder load has finished (or failed)
        folders_were_deleted: the visible set just went from some folders to none
    """

    def __init__(self, media_index, preferences, history, playlist_store,
                 folder_cache: FolderCache,
                 video_deleter: Callable[[List[str]], Tuple[int, int]] = delete_video_files,
                 executor: Optional[Executor] = None,
                 metrics: Optional[DerivedMetricsCalculator] = None):
        self._media_index = media_index
        self._preferences = preferences
        self._history = history
        self._playlist_store = playlist_store
        self._folder_cache = folder_cache
        self._video_deleter = video_deleter

        self._owns_executor = executor is None
        self._executor = executor or ThreadPoolExecutor(
            max_workers=DEFAULT_WORKER_COUNT, thread_name_prefix="FolderSync"
        )

        self._filter = FilterStage()
        self._metrics = metrics or DerivedMetricsCalculator(media_index, history, preferences)
        self._reconciler = PlaylistReconciler(playlist_store, media_index)

        # Unfiltered folder list; only folder loads and the cache seed write it
        self._all_folders: ObservableValue[List[Folder]] = ObservableValue([], name="all_folders")

        self.video_folders: ObservableValue[List[Folder]] = ObservableValue([], name="video_folders")
        self.folders_with_metric: ObservableValue[List[FolderWithMetric]] = ObservableValue(
            [], name="folders_with_metric"
        )
        self.playlists_with_count: ObservableValue[List[PlaylistWithCount]] = ObservableValue(
            [], name="playlists_with_count"
        )
        self.is_loading = ObservableValue(False, name="is_loading")
        self.has_completed_initial_load = ObservableValue(False, name="has_completed_initial_load")
        self.folders_were_deleted = ObservableValue(False, name="folders_were_deleted")

        # One lock and one generation counter per output stream
        self._state_lock = threading.Lock()
        self._load_lock = threading.RLock()
        self._filter_lock = threading.RLock()
        self._metrics_lock = threading.RLock()
        self._playlist_lock = threading.RLock()
        self._cache_lock = threading.Lock()
        # Held across store I/O; never taken by publishing threads
        self._cache_write_lock = threading.Lock()
        self._load_generation = 0
        self._metrics_generation = 0
        self._playlist_generation = 0
        self._cache_generation = 0
        self._saved_cache_generation = 0

        self._unsubscribers: List[Callable[[], None]] = []
        self._started = False
        self._closed = False

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(self) -> None:
        """Seed from the cache, start the first load and begin observing."""
        with self._state_lock:
            if self._started or self._closed:
                return
            self._started = True

        # Join over (all folders, blacklist): either input re-runs the filter
        self._unsubscribers.append(self._all_folders.subscribe(self._on_folder_inputs_changed))
        self._unsubscribers.append(self._preferences.blacklist.subscribe(self._on_folder_inputs_changed))

        cached = self._folder_cache.load()
        if cached:
            logger.info(f"Loaded {len(cached)} folders from cache")
            self._all_folders.set(cached)

        self._load_folders()
        self._observe_playlists()
        self._unsubscribers.append(self._media_index.events.subscribe(self.on_media_library_change))
        logger.debug("State synchronizer started")

    def close(self, wait: bool = True) -> None:
        with self._state_lock:
            if self._closed:
                return
            self._closed = True
        for unsubscribe in self._unsubscribers:
            unsubscribe()
        self._unsubscribers.clear()
        if self._owns_executor:
            self._executor.shutdown(wait=wait)
        logger.debug("State synchronizer closed")

    def _submit(self, fn, *args) -> Optional[Future]:
        if self._closed:
            return None

        def run():
            try:
                return fn(*args)
            except Exception as e:
                logger.error(f"Background task {fn.__name__} failed: {type(e).__name__}: {e}")
                return None

        try:
            return self._executor.submit(run)
        except RuntimeError as e:
            logger.debug(f"Executor unavailable, dropping {fn.__name__}: {e}")
            return None

    # ------------------------------------------------------------------
    # External triggers
    # ------------------------------------------------------------------

    def on_media_library_change(self) -> None:
        """The media index reported new or removed files."""
        self._media_index.invalidate_cache()
        self._load_folders()

    def refresh(self) -> None:
        """Explicit refresh request (e.g. pull to refresh)."""
        logger.debug("Refresh requested")
        self._media_index.invalidate_cache()
        self._load_folders()

    def recalculate_metrics(self) -> None:
        """Recount new videos for the current visible folders without rescanning."""
        self._calculate_metrics(self.video_folders.value)

    def delete_videos(self, paths: Iterable[str]) -> Tuple[int, int]:
        """Delete videos through the delegate, then refresh.

        Returns:
            Tuple of (deleted, failed).
        """
        paths = list(paths)
        try:
            deleted, failed = self._video_deleter(paths)
        except Exception as e:
            logger.error(f"Error deleting videos: {type(e).__name__}: {e}")
            deleted, failed = 0, len(paths)
        finally:
            self.refresh()
        logger.info(f"Deleted {deleted} video(s), {failed} failed")
        return deleted, failed

    def delete_playlist(self, playlist_id: int) -> bool:
        """Remove a playlist; playlists_with_count follows through the store."""
        return self._playlist_store.delete(playlist_id)

    def record_playback(self, title: str, path: str = "", position_ms: int = 0,
                        duration_ms: int = 0) -> PlaybackRecord:
        """Record that a video was played and recount new videos."""
        record = self._history.record_playback(title, path, position_ms, duration_ms)
        self.recalculate_metrics()
        return record

    def forget_playback(self, title: str) -> bool:
        """Drop one title from history so its video counts as new again."""
        removed = self._history.remove(title)
        if removed:
            self.recalculate_metrics()
        return removed

    def clear_history(self) -> int:
        cleared = self._history.clear()
        self.recalculate_metrics()
        return cleared

    # ------------------------------------------------------------------
    # Folder loading
    # ------------------------------------------------------------------

    def _load_folders(self) -> None:
        with self._load_lock:
            self._load_generation += 1
            generation = self._load_generation
        if not self._all_folders.value:
            self.is_loading.set(True)
        self._submit(self._run_folder_load, generation)

    def _run_folder_load(self, generation: int) -> None:
        try:
            show_hidden = self._preferences.show_hidden_files
            folders = self._media_index.enumerate_folders(show_hidden)
            logger.debug(f"Folder load #{generation} found {len(folders)} folders")
        except Exception as e:
            logger.error(f"Error loading video folders: {type(e).__name__}: {e}")
            folders = []

        with self._load_lock:
            if generation != self._load_generation:
                logger.debug(f"Discarding superseded folder load #{generation}")
                return
            self._all_folders.set(folders)
            self.has_completed_initial_load.set(True)
            self.is_loading.set(False)

        # Playlist counts depend on which files the index currently holds
        self._reconcile_playlists(self._playlist_store.playlists.value)

    # ------------------------------------------------------------------
    # Filter stage
    # ------------------------------------------------------------------

    def _on_folder_inputs_changed(self, _changed=None) -> None:
        with self._filter_lock:
            # Read both inputs fresh so neither side is a stale copy
            folders = self._all_folders.value
            blacklist = self._preferences.blacklist.value
            result = self._filter.apply(folders, blacklist)

            self.folders_were_deleted.set(result.folders_were_deleted)
            self.video_folders.set(result.visible)
            self._calculate_metrics(result.visible)
            self._save_cache(folders)

    # ------------------------------------------------------------------
    # Derived metrics
    # ------------------------------------------------------------------

    def _calculate_metrics(self, folders: List[Folder]) -> None:
        with self._metrics_lock:
            self._metrics_generation += 1
            generation = self._metrics_generation
        self._submit(self._run_metrics, list(folders), generation)

    def _run_metrics(self, folders: List[Folder], generation: int) -> None:
        results = self._metrics.calculate(folders)
        with self._metrics_lock:
            if generation != self._metrics_generation:
                logger.debug(f"Discarding superseded metrics run #{generation}")
                return
            self.folders_with_metric.set(results)

    # ------------------------------------------------------------------
    # Playlists
    # ------------------------------------------------------------------

    def _observe_playlists(self) -> None:
        self._unsubscribers.append(self._playlist_store.playlists.subscribe(self._reconcile_playlists))
        self._reconcile_playlists(self._playlist_store.playlists.value)

    def _reconcile_playlists(self, playlists) -> None:
        with self._playlist_lock:
            self._playlist_generation += 1
            generation = self._playlist_generation
        self._submit(self._run_playlist_reconcile, list(playlists), generation)

    def _run_playlist_reconcile(self, playlists, generation: int) -> None:
        results = self._reconciler.reconcile(playlists)
        with self._playlist_lock:
            if generation != self._playlist_generation:
                logger.debug(f"Discarding superseded playlist run #{generation}")
                return
            self.playlists_with_count.set(results)

    # ------------------------------------------------------------------
    # Folder cache
    # ------------------------------------------------------------------

    def _save_cache(self, folders: List[Folder]) -> None:
        with self._cache_lock:
            self._cache_generation += 1
            generation = self._cache_generation
        self._submit(self._run_cache_save, list(folders), generation)

    def _run_cache_save(self, folders: List[Folder], generation: int) -> None:
        with self._cache_write_lock:
            if generation <= self._saved_cache_generation:
                return
            with self._cache_lock:
                superseded = generation < self._cache_generation
            if superseded:
                logger.debug(f"Skipping superseded cache write #{generation}")
                return
            if self._folder_cache.save(folders):
                self._saved_cache_generation = generation

    # ------------------------------------------------------------------
    # Status
    # ------------------------------------------------------------------

    def get_status(self) -> Dict[str, object]:
        return {
            "is_loading": self.is_loading.value,
            "has_completed_initial_load": self.has_completed_initial_load.value,
            "folders_were_deleted": self.folders_were_deleted.value,
            "folder_count": len(self.video_folders.value),
            "total_folder_count": len(self._all_folders.value),
            "playlist_count": len(self.playlists_with_count.value),
        }
