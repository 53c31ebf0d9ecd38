"""
Configuration management for the folder list.
Handles loading, validation, and management of application settings.
"""

import json
import os
import logging
from pathlib import Path
from typing import Dict, Any, Optional, List
from dataclasses import dataclass

from folderlist.media_index import DEFAULT_VIDEO_EXTENSIONS
from folderlist.watcher import DEFAULT_SCAN_INTERVAL_SECONDS

# Get the directory where config.py is located
_SCRIPT_DIR = Path(os.path.dirname(os.path.abspath(__file__)))

# Project root: config.py lives in folderlist/
_PROJECT_ROOT = _SCRIPT_DIR.parent


@dataclass
class NotificationConfig:
    """Configuration for notification settings."""
    notification_type: str = "none"  # "webhook" or "none"
    webhook_level: str = ""
    webhook_url: str = ""


@dataclass
class PathConfig:
    """Configuration for data and log directories."""
    logs_folder: str = str(_PROJECT_ROOT / "logs")
    data_folder: str = str(_PROJECT_ROOT / "data")

    @property
    def folder_cache_file(self) -> str:
        return os.path.join(self.data_folder, "folder_cache.json")

    @property
    def playlists_file(self) -> str:
        return os.path.join(self.data_folder, "playlists.json")

    @property
    def history_file(self) -> str:
        return os.path.join(self.data_folder, "playback_history.json")


@dataclass
class LibraryConfig:
    """Configuration for the media library scan.

    Attributes:
        library_roots: Directories scanned for video folders
        video_extensions: File extensions treated as videos
        scan_interval_seconds: How often the watcher polls for changes (0 = off)
    """
    library_roots: Optional[List[str]] = None
    video_extensions: Optional[List[str]] = None
    scan_interval_seconds: int = DEFAULT_SCAN_INTERVAL_SECONDS

    def __post_init__(self):
        if self.library_roots is None:
            self.library_roots = []
        if self.video_extensions is None:
            self.video_extensions = sorted(DEFAULT_VIDEO_EXTENSIONS)


@dataclass
class LoggingConfig:
    """Configuration for log output."""
    log_level: str = "info"
    max_log_files: int = 5


class ConfigManager:
    """Manages application configuration loading and validation."""

    REQUIRED_FIELDS = ['library_roots']

    TYPE_CHECKS = {
        'library_roots': list,
        'video_extensions': list,
        'scan_interval_seconds': int,
        'data_folder': str,
        'logs_folder': str,
        'log_level': str,
        'max_log_files': int,
        'notification_type': str,
        'webhook_url': str,
        'webhook_level': str,
    }

    def __init__(self, config_file: str):
        self.config_file = Path(config_file)
        self.settings_data: Dict[str, Any] = {}
        self.notification = NotificationConfig()
        self.paths = PathConfig()
        self.library = LibraryConfig()
        self.logging = LoggingConfig()

    def load_config(self) -> None:
        """Load configuration from file and validate."""
        logging.debug(f"Loading configuration from: {self.config_file}")

        if not self.config_file.exists():
            logging.error(f"Settings file not found: {self.config_file}")
            raise FileNotFoundError(f"Settings file not found: {self.config_file}")

        try:
            with open(self.config_file, 'r', encoding='utf-8') as f:
                self.settings_data = json.load(f)
            logging.debug("Configuration file loaded successfully")
        except json.JSONDecodeError as e:
            logging.error(f"Invalid JSON in settings file: {type(e).__name__}: {e}")
            raise ValueError(f"Invalid JSON in settings file: {e}")

        if not isinstance(self.settings_data, dict):
            raise ValueError("Settings file must contain a JSON object")

        self._validate_required_fields()
        self._validate_types()
        self._load_all_configs()
        self._validate_values()
        self.ensure_data_folder()

        logging.debug("Configuration loaded and validated successfully")

    def _load_all_configs(self) -> None:
        """Load all configuration sections."""
        self._load_library_config()
        self._load_path_config()
        self._load_logging_config()
        self._load_notification_config()

    def _load_library_config(self) -> None:
        self.library.library_roots = [
            os.path.abspath(os.path.expanduser(root))
            for root in self.settings_data['library_roots'] if root
        ]
        extensions = self.settings_data.get('video_extensions')
        if extensions:
            self.library.video_extensions = [self._normalize_extension(e) for e in extensions]
        self.library.scan_interval_seconds = self.settings_data.get(
            'scan_interval_seconds', DEFAULT_SCAN_INTERVAL_SECONDS
        )

    def _load_path_config(self) -> None:
        base = self.config_file.parent
        data_folder = self.settings_data.get('data_folder')
        logs_folder = self.settings_data.get('logs_folder')
        if data_folder:
            self.paths.data_folder = str((base / data_folder).resolve())
        if logs_folder:
            self.paths.logs_folder = str((base / logs_folder).resolve())

    def _load_logging_config(self) -> None:
        self.logging.log_level = self.settings_data.get('log_level', 'info')
        self.logging.max_log_files = self.settings_data.get('max_log_files', 5)

    def _load_notification_config(self) -> None:
        """Load notification-related configuration."""
        self.notification.notification_type = self.settings_data.get('notification_type', 'none')
        self.notification.webhook_level = self.settings_data.get('webhook_level', '')
        self.notification.webhook_url = self.settings_data.get('webhook_url', '')

    @staticmethod
    def _normalize_extension(ext: str) -> str:
        ext = ext.strip().lower()
        return ext if ext.startswith('.') else f".{ext}"

    def _validate_required_fields(self) -> None:
        """Validate that all required fields exist in the configuration."""
        logging.debug("Validating required fields...")
        missing_fields = [field for field in self.REQUIRED_FIELDS if field not in self.settings_data]
        if missing_fields:
            logging.error(f"Missing required fields in settings: {missing_fields}")
            raise ValueError(f"Missing required fields in settings: {missing_fields}")

    def _validate_types(self) -> None:
        """Validate that configuration values have correct types."""
        logging.debug("Validating configuration types...")
        type_errors = []
        for field, expected_type in self.TYPE_CHECKS.items():
            if field in self.settings_data:
                value = self.settings_data[field]
                # bool is a subclass of int, reject it for int fields
                if not isinstance(value, expected_type) or (expected_type is int and isinstance(value, bool)):
                    type_errors.append(
                        f"'{field}' expected {expected_type.__name__}, got {type(value).__name__}"
                    )

        if type_errors:
            error_msg = "Type validation errors: " + "; ".join(type_errors)
            logging.error(error_msg)
            raise TypeError(error_msg)

    def _validate_values(self) -> None:
        """Validate configuration values."""
        if not self.library.library_roots:
            logging.error("No library roots configured")
            raise ValueError("At least one library root must be configured")

        if self.library.scan_interval_seconds < 0:
            logging.warning(f"Invalid scan_interval_seconds '{self.library.scan_interval_seconds}', using {DEFAULT_SCAN_INTERVAL_SECONDS}")
            self.library.scan_interval_seconds = DEFAULT_SCAN_INTERVAL_SECONDS

        if self.logging.max_log_files < 1:
            logging.warning(f"Invalid max_log_files '{self.logging.max_log_files}', using 5")
            self.logging.max_log_files = 5

        for root in self.library.library_roots:
            if not os.path.isdir(root):
                logging.warning(f"Library root does not exist: {root}")

    def ensure_data_folder(self) -> None:
        """Create the data folder if it does not exist yet."""
        try:
            os.makedirs(self.paths.data_folder, exist_ok=True)
        except PermissionError:
            raise PermissionError(f"{self.paths.data_folder} not writable, please fix the variable accordingly.")
