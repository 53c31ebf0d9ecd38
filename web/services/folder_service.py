"""Folder list service - holds the running FolderListApp for the web API"""

import logging
import threading
from typing import Optional

from folderlist.app import FolderListApp
from web.config import SETTINGS_FILE

logger = logging.getLogger(__name__)

_folder_app: Optional[FolderListApp] = None
_folder_app_lock = threading.Lock()


def get_folder_app() -> FolderListApp:
    """Get or create the FolderListApp singleton"""
    global _folder_app
    if _folder_app is None:
        with _folder_app_lock:
            if _folder_app is None:
                _folder_app = FolderListApp(str(SETTINGS_FILE))
    return _folder_app


def set_folder_app(app: Optional[FolderListApp]) -> None:
    """Replace the singleton (used at startup and by tests)"""
    global _folder_app
    with _folder_app_lock:
        _folder_app = app


def shutdown_folder_app() -> None:
    global _folder_app
    with _folder_app_lock:
        app, _folder_app = _folder_app, None
    if app is not None:
        app.stop()
        logger.info("Folder list service stopped")
