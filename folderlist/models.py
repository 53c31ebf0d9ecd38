"""
Value types shared across the folder list pipeline.
All of them are immutable; a rescan produces new instances.
"""

from dataclasses import dataclass, field
from typing import Optional, Tuple


@dataclass(frozen=True)
class Folder:
    """A directory known to contain videos, as reported by the media index."""
    bucket_id: str
    name: str
    path: str
    video_count: int = 0
    total_size: int = 0        # bytes
    total_duration: int = 0    # milliseconds
    last_modified: int = 0     # epoch seconds


@dataclass(frozen=True)
class VideoFact:
    """A single video file as seen by the media index.

    date_added is the file creation time where the platform reports one,
    otherwise its mtime.
    """
    path: str
    display_name: str
    bucket_id: str
    size: int = 0
    duration: int = 0          # milliseconds
    date_added: int = 0        # epoch seconds


@dataclass(frozen=True)
class FolderWithMetric:
    """A folder paired with its count of recent, never-played videos."""
    folder: Folder
    new_video_count: int = 0


@dataclass(frozen=True)
class PlaylistEntry:
    """One playlist item, referencing a video by path"""
    file_path: str
    position: int = 0


@dataclass(frozen=True)
class Playlist:
    id: int
    name: str
    is_m3u: bool = False
    entries: Tuple[PlaylistEntry, ...] = field(default_factory=tuple)
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


@dataclass(frozen=True)
class PlaylistWithCount:
    """A playlist paired with the number of entries that still resolve."""
    playlist: Playlist
    item_count: int = 0


@dataclass(frozen=True)
class PlaybackRecord:
    title: str
    path: str = ""
    last_position: int = 0     # milliseconds
    duration: int = 0          # milliseconds
    last_played: Optional[str] = None
