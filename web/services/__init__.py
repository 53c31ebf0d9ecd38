"""Business logic services"""

from web.services.folder_service import get_folder_app, set_folder_app, shutdown_folder_app

__all__ = [
    "get_folder_app",
    "set_folder_app",
    "shutdown_folder_app",
]
