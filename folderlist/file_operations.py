"""
File operations for the folder list.
Handles video deletion and human-readable formatting.
"""

import logging
import os
from typing import Iterable, Tuple

logger = logging.getLogger(__name__)


def format_bytes(bytes_value: int) -> str:
    """Format bytes into human-readable string (e.g., '1.5 GB').

    Args:
        bytes_value: Size in bytes to format.

    Returns:
        Human-readable string with appropriate unit.
    """
    if bytes_value < 1024:
        return f"{bytes_value} B"
    elif bytes_value < 1024 ** 2:
        return f"{bytes_value / 1024:.2f} KB"
    elif bytes_value < 1024 ** 3:
        return f"{bytes_value / (1024 ** 2):.2f} MB"
    elif bytes_value < 1024 ** 4:
        return f"{bytes_value / (1024 ** 3):.2f} GB"
    else:
        return f"{bytes_value / (1024 ** 4):.2f} TB"


def format_duration(milliseconds: int) -> str:
    """Format a duration like '1h 02m', '3m 05s' or '45s'"""
    seconds = max(0, int(milliseconds) // 1000)
    if seconds < 60:
        return f"{seconds}s"
    minutes, secs = divmod(seconds, 60)
    if minutes < 60:
        return f"{minutes}m {secs:02d}s"
    hours, mins = divmod(minutes, 60)
    return f"{hours}h {mins:02d}m"


def delete_video_files(paths: Iterable[str]) -> Tuple[int, int]:
    """Delete video files from disk.

    Returns:
        Tuple of (deleted, failed). Paths that do not exist count as failed.
    """
    deleted = 0
    failed = 0
    for path in paths:
        try:
            if not os.path.isfile(path):
                logger.warning(f"Cannot delete, not a file: {path}")
                failed += 1
                continue
            os.remove(path)
            deleted += 1
            logger.info(f"Deleted video: {path}")
        except OSError as e:
            logger.error(f"Failed to delete {path}: {type(e).__name__}: {e}")
            failed += 1
    return deleted, failed
