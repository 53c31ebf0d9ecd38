"""Wires the folder list components together from a settings file."""

import logging
import os
import sys
from concurrent.futures import Executor
from pathlib import Path
from typing import Optional

from folderlist.config import ConfigManager
from folderlist.file_operations import format_bytes, format_duration
from folderlist.folder_cache import FolderCache
from folderlist.history import PlaybackHistory
from folderlist.kv_store import KeyValueStore
from folderlist.logging_config import LoggingManager
from folderlist.media_index import FilesystemMediaIndex
from folderlist.playlists import PlaylistStore
from folderlist.preferences import PreferenceStore
from folderlist.synchronizer import InlineExecutor, StateSynchronizer
from folderlist.watcher import LibraryWatcher


class FolderListApp:
    """Owns the collaborators and the synchronizer for one settings file."""

    def __init__(self, config_file: str, executor: Optional[Executor] = None):
        self.config_file = config_file
        self.config_manager = ConfigManager(config_file)
        self.config_manager.load_config()

        paths = self.config_manager.paths
        library = self.config_manager.library

        self.media_index = FilesystemMediaIndex(library.library_roots, library.video_extensions)
        self.preferences = PreferenceStore(config_file)
        self.history = PlaybackHistory(paths.history_file)
        self.playlist_store = PlaylistStore(paths.playlists_file)
        self.folder_cache = FolderCache(KeyValueStore(paths.folder_cache_file))
        self.synchronizer = StateSynchronizer(
            media_index=self.media_index,
            preferences=self.preferences,
            history=self.history,
            playlist_store=self.playlist_store,
            folder_cache=self.folder_cache,
            executor=executor,
        )
        self.watcher: Optional[LibraryWatcher] = None
        if library.scan_interval_seconds > 0:
            self.watcher = LibraryWatcher(
                library.library_roots,
                self.media_index.events,
                interval_seconds=library.scan_interval_seconds,
                show_hidden=lambda: self.preferences.show_hidden_files,
            )

    def start(self, watch: bool = True) -> None:
        self.synchronizer.start()
        if watch and self.watcher is not None:
            self.watcher.start()

    def stop(self) -> None:
        if self.watcher is not None:
            self.watcher.stop()
        self.synchronizer.close()


def _print_report(app: FolderListApp) -> None:
    sync = app.synchronizer
    folders = sync.folders_with_metric.value
    print(f"Video folders ({len(folders)}):")
    for item in folders:
        folder = item.folder
        new_label = f"  [{item.new_video_count} new]" if item.new_video_count else ""
        print(f"  {folder.name:<30} {folder.video_count:>4} videos  "
              f"{format_bytes(folder.total_size):>10}  {format_duration(folder.total_duration):>8}"
              f"{new_label}")
        print(f"    {folder.path}")

    playlists = sync.playlists_with_count.value
    print("")
    print(f"Playlists ({len(playlists)}):")
    for item in playlists:
        origin = " (m3u)" if item.playlist.is_m3u else ""
        print(f"  {item.playlist.name}{origin}: {item.item_count} item(s)")


def main(argv=None) -> int:
    """One-shot scan: run the pipeline inline and print the result."""
    import argparse

    project_root = Path(__file__).resolve().parent.parent
    parser = argparse.ArgumentParser(description='Scan video folders and report new-video counts')
    default_settings = os.environ.get("FOLDERLIST_SETTINGS", str(project_root / "folderlist_settings.json"))
    parser.add_argument('--settings', default=default_settings,
                        help='Path to the settings file')
    parser.add_argument('--verbose', '-v', action='store_true', help='Enable debug logging')
    parser.add_argument('--import-m3u', metavar='PATH', help='Import an M3U playlist before scanning')
    parser.add_argument('--refresh', action='store_true', help='Ignore the cached folder list')
    args = parser.parse_args(argv)

    try:
        app = FolderListApp(args.settings, executor=InlineExecutor())
    except (FileNotFoundError, ValueError, TypeError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    log_level = "debug" if args.verbose else app.config_manager.logging.log_level
    logging_manager = LoggingManager(
        app.config_manager.paths.logs_folder, log_level, app.config_manager.logging.max_log_files
    )
    logging_manager.setup_logging()
    logging_manager.setup_notification_handlers(app.config_manager.notification)

    if args.import_m3u:
        try:
            playlist = app.playlist_store.import_m3u(args.import_m3u)
            logging_manager.add_summary_message(
                f"Imported playlist '{playlist.name}' ({len(playlist.entries)} entries)"
            )
        except (OSError, ValueError) as e:
            logging.error(f"Could not import playlist: {e}")

    if args.refresh:
        app.folder_cache.save([])
    app.start(watch=False)
    app.stop()

    _print_report(app)

    status = app.synchronizer.get_status()
    new_total = sum(f.new_video_count for f in app.synchronizer.folders_with_metric.value)
    logging_manager.add_summary_message(
        f"Found {status['folder_count']} visible folder(s) of {status['total_folder_count']}, "
        f"{new_total} new video(s), {status['playlist_count']} playlist(s)"
    )
    logging_manager.log_summary()
    return 0
