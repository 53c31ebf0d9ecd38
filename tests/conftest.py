"""Shared test fixtures for the folder list test suite."""

import logging
import os
import sys
import shutil
import tempfile
from typing import Dict, List, Optional

import pytest

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from folderlist.folder_cache import FolderCache
from folderlist.kv_store import KeyValueStore
from folderlist.media_index import MediaLibraryEvents
from folderlist.models import Folder, PlaybackRecord, VideoFact
from folderlist.observable import ObservableValue
from folderlist.playlists import PlaylistStore
from folderlist.synchronizer import InlineExecutor, StateSynchronizer


DAY = 24 * 60 * 60
NOW = 1_700_000_000


# ============================================================================
# Fake collaborators
# ============================================================================

class FakeMediaIndex:
    """In-memory media index with call counters."""

    def __init__(self, folders: Optional[List[Folder]] = None,
                 videos: Optional[Dict[str, List[VideoFact]]] = None):
        self.folders = list(folders or [])
        self.videos = dict(videos or {})
        self.events = MediaLibraryEvents()
        self.fail_enumerate = False
        self.failing_buckets = set()
        self.invalidate_count = 0
        self.enumerate_count = 0
        self.directory_requests = []

    def enumerate_folders(self, show_hidden=False):
        self.enumerate_count += 1
        if self.fail_enumerate:
            raise OSError("media index unavailable")
        return list(self.folders)

    def enumerate_videos_in_folder(self, bucket_id):
        if bucket_id in self.failing_buckets:
            raise OSError(f"cannot read bucket {bucket_id}")
        return list(self.videos.get(bucket_id, []))

    def enumerate_videos_for_directories(self, directories):
        self.directory_requests.append(set(directories))
        return [
            v for videos in self.videos.values() for v in videos
            if os.path.dirname(v.path) in directories
        ]

    def invalidate_cache(self):
        self.invalidate_count += 1


class FakePreferences:
    def __init__(self, blacklist=(), show_new_video_label=True, new_video_days=7,
                 show_hidden_files=False):
        self.blacklist = ObservableValue(frozenset(blacklist), name="blacklist")
        self.show_new_video_label = show_new_video_label
        self.new_video_days = new_video_days
        self.show_hidden_files = show_hidden_files


class FakeHistory:
    def __init__(self, titles=()):
        self.titles = set(titles)

    def lookup_by_title(self, title):
        if title in self.titles:
            return PlaybackRecord(title=title)
        return None

    def record_playback(self, title, path="", position_ms=0, duration_ms=0):
        self.titles.add(title)
        return PlaybackRecord(title=title, path=path, last_position=position_ms, duration=duration_ms)

    def remove(self, title):
        if title not in self.titles:
            return False
        self.titles.discard(title)
        return True

    def clear(self):
        count = len(self.titles)
        self.titles.clear()
        return count


class RecordingDeleter:
    def __init__(self, result=(0, 0), error: Optional[Exception] = None):
        self.result = result
        self.error = error
        self.calls = []

    def __call__(self, paths):
        self.calls.append(list(paths))
        if self.error is not None:
            raise self.error
        return self.result


def make_folder(name, path=None, bucket_id=None, video_count=1, total_size=100,
                total_duration=1000, last_modified=NOW):
    path = path or f"/media/{name}"
    return Folder(
        bucket_id=bucket_id or f"b-{name}",
        name=name,
        path=path,
        video_count=video_count,
        total_size=total_size,
        total_duration=total_duration,
        last_modified=last_modified,
    )


def make_video(folder: Folder, filename: str, age_days: float = 0, size: int = 100):
    return VideoFact(
        path=os.path.join(folder.path, filename),
        display_name=filename,
        bucket_id=folder.bucket_id,
        size=size,
        date_added=int(NOW - age_days * DAY),
    )


# ============================================================================
# Filesystem fixtures
# ============================================================================

@pytest.fixture
def temp_dir():
    """Provide a temporary directory, cleaned up after test."""
    d = tempfile.mkdtemp(prefix="folderlist_test_")
    yield d
    shutil.rmtree(d, ignore_errors=True)


def create_test_file(path, content="test content", mtime=None):
    """Create a test file, optionally with a fixed modification time."""
    os.makedirs(os.path.dirname(path), exist_ok=True)
    with open(path, 'w') as f:
        f.write(content)
    if mtime is not None:
        os.utime(path, (mtime, mtime))
    return path


# ============================================================================
# Pipeline fixtures
# ============================================================================

@pytest.fixture
def sample_folders():
    return [make_folder("Movies"), make_folder("Clips"), make_folder("Camera")]


@pytest.fixture
def media_index(sample_folders):
    return FakeMediaIndex(sample_folders)


@pytest.fixture
def preferences():
    return FakePreferences()


@pytest.fixture
def history():
    return FakeHistory()


@pytest.fixture
def folder_cache(temp_dir):
    return FolderCache(KeyValueStore(os.path.join(temp_dir, "folder_cache.json")))


@pytest.fixture
def playlist_store(temp_dir):
    return PlaylistStore(os.path.join(temp_dir, "playlists.json"))


@pytest.fixture
def deleter():
    return RecordingDeleter(result=(1, 0))


@pytest.fixture
def make_synchronizer(media_index, preferences, history, playlist_store, folder_cache, deleter):
    """Factory for a synchronizer that runs all background work inline."""
    created = []

    def _make(**overrides):
        kwargs = dict(
            media_index=media_index,
            preferences=preferences,
            history=history,
            playlist_store=playlist_store,
            folder_cache=folder_cache,
            video_deleter=deleter,
            executor=InlineExecutor(),
        )
        kwargs.update(overrides)
        sync = StateSynchronizer(**kwargs)
        created.append(sync)
        return sync

    yield _make
    for sync in created:
        sync.close()


@pytest.fixture
def clean_root_logger():
    """Remove any handlers a test adds to the root logger."""
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield root
    for handler in list(root.handlers):
        if handler not in handlers:
            root.removeHandler(handler)
            handler.close()
    root.setLevel(level)
