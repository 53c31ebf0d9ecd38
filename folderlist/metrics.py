"""New/unwatched video counts per folder."""

import logging
import time
from typing import Callable, Iterable, List, Optional

from folderlist.models import Folder, FolderWithMetric, PlaybackRecord, VideoFact

logger = logging.getLogger(__name__)

SECONDS_PER_DAY = 24 * 60 * 60


def is_new_video(video: VideoFact, threshold_seconds: float, now: float,
                 history_lookup: Callable[[str], Optional[PlaybackRecord]]) -> bool:
    """Recent (age <= threshold, inclusive) and never played.

    History is matched by display name, so two videos that share a file name
    share a played state.
    """
    age = now - video.date_added
    if age > threshold_seconds:
        return False
    return history_lookup(video.display_name) is None


def count_new_videos(videos: Iterable[VideoFact], threshold_days: int, now: float,
                     history_lookup: Callable[[str], Optional[PlaybackRecord]]) -> int:
    threshold_seconds = threshold_days * SECONDS_PER_DAY
    return sum(1 for video in videos if is_new_video(video, threshold_seconds, now, history_lookup))


class DerivedMetricsCalculator:
    """Recomputes every folder's new-video count from scratch.

    Args:
        media_index: provides enumerate_videos_in_folder(bucket_id).
        history: provides lookup_by_title(title).
        preferences: provides show_new_video_label and new_video_days.
        clock: returns the current time in epoch seconds.
    """

    def __init__(self, media_index, history, preferences,
                 clock: Callable[[], float] = time.time):
        self._media_index = media_index
        self._history = history
        self._preferences = preferences
        self._clock = clock

    def calculate(self, folders: List[Folder]) -> List[FolderWithMetric]:
        try:
            if not self._preferences.show_new_video_label:
                return [FolderWithMetric(folder, 0) for folder in folders]

            threshold_days = int(self._preferences.new_video_days)
            now = self._clock()
            return [self._calculate_folder(folder, threshold_days, now) for folder in folders]
        except Exception as e:
            logger.error(f"Error calculating new video counts: {type(e).__name__}: {e}")
            return [FolderWithMetric(folder, 0) for folder in folders]

    def _calculate_folder(self, folder: Folder, threshold_days: int, now: float) -> FolderWithMetric:
        try:
            videos = self._media_index.enumerate_videos_in_folder(folder.bucket_id)
            count = count_new_videos(videos, threshold_days, now, self._history.lookup_by_title)
            return FolderWithMetric(folder, count)
        except Exception as e:
            logger.warning(f"Could not count new videos in {folder.path}: {type(e).__name__}: {e}")
            return FolderWithMetric(folder, 0)
