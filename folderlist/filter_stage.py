"""Blacklist filtering and the "all folders disappeared" transition."""

import logging
import threading
from dataclasses import dataclass
from typing import AbstractSet, Iterable, List

from folderlist.models import Folder

logger = logging.getLogger(__name__)


def filter_folders(folders: Iterable[Folder], blacklist: AbstractSet[str]) -> List[Folder]:
    """Folders whose path is not blacklisted, in input order."""
    return [folder for folder in folders if folder.path not in blacklist]


@dataclass(frozen=True)
class FilterResult:
    visible: List[Folder]
    folders_were_deleted: bool


class FilterStage:
    """Applies the blacklist and tracks the deleted-folders transition flag.

    The flag goes up only when the visible set drops from at least one folder
    to none, and comes down as soon as a folder is visible again. Starting at
    zero never raises it.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._previous_count = 0
        self._folders_were_deleted = False

    def apply(self, folders: Iterable[Folder], blacklist: AbstractSet[str]) -> FilterResult:
        visible = filter_folders(folders, blacklist)

        with self._lock:
            if self._previous_count > 0 and not visible:
                if not self._folders_were_deleted:
                    logger.info(f"All {self._previous_count} visible folders disappeared")
                self._folders_were_deleted = True
            elif visible:
                self._folders_were_deleted = False
            self._previous_count = len(visible)
            flag = self._folders_were_deleted

        return FilterResult(visible=visible, folders_were_deleted=flag)
