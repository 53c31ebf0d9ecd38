"""
Logging configuration for the folder list.
Handles log setup, rotation, and notification handlers.
"""

import json
import logging
import os
import threading
from datetime import datetime
from logging.handlers import RotatingFileHandler
from pathlib import Path

import requests

# Global lock for thread-safe console output
_console_lock = threading.RLock()

LOG_FORMAT = '%(asctime)s - %(levelname)s - %(message)s'


class ThreadSafeStreamHandler(logging.StreamHandler):
    """A StreamHandler that serializes writes across threads.

    Scans, metric runs and playlist reconciliation log from worker threads;
    the shared lock keeps their lines from interleaving.
    """

    def emit(self, record):
        """Emit a record with thread-safe locking."""
        with _console_lock:
            super().emit(record)


# Define a new level called SUMMARY, above WARNING so it survives quiet runs
SUMMARY = logging.WARNING + 1
logging.addLevelName(SUMMARY, 'SUMMARY')

LEVEL_MAPPING = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warning": logging.WARNING,
    "error": logging.ERROR,
    "critical": logging.CRITICAL,
    "summary": SUMMARY,
}


class WebhookHandler(logging.Handler):
    """Custom logging handler for webhook notifications."""

    SUMMARY = SUMMARY

    def __init__(self, webhook_url: str, timeout: float = 10):
        super().__init__()
        self.webhook_url = webhook_url
        self.timeout = timeout

    def emit(self, record):
        if record.levelno == SUMMARY:
            content = "Folder List Summary:\n" + record.getMessage()
        else:
            content = record.getMessage()
        self.send_webhook_message(content)

    def send_webhook_message(self, content: str) -> bool:
        payload = {
            "content": content
        }
        headers = {
            "Content-Type": "application/json"
        }
        try:
            response = requests.post(self.webhook_url, data=json.dumps(payload),
                                     headers=headers, timeout=self.timeout)
        except requests.RequestException as e:
            # Avoid logging.error here, it would loop back into this handler
            print(f"[Webhook] Failed to send message: {e}")
            return False
        if response.status_code not in (200, 204):
            print(f"[Webhook] Failed to send message. Error code: {response.status_code}")
            return False
        return True


class LoggingManager:
    """Manages logging configuration and setup."""

    def __init__(self, logs_folder: str, log_level: str = "", max_log_files: int = 5):
        self.logs_folder = Path(logs_folder)
        self.log_level = log_level
        self.max_log_files = max_log_files
        self.log_file_pattern = "folderlist_log_*.log"
        self.logger = logging.getLogger()
        self.summary_messages = []

    def setup_logging(self) -> None:
        """Set up logging configuration."""
        self._ensure_logs_folder()
        self._setup_log_file()
        self._set_log_level()
        self._clean_old_log_files()
        # Suppress noisy third-party logs
        logging.getLogger("urllib3").setLevel(logging.WARNING)
        logging.getLogger("requests").setLevel(logging.WARNING)
        logging.getLogger("apscheduler").setLevel(logging.WARNING)

    def _ensure_logs_folder(self) -> None:
        """Ensure the logs folder exists."""
        if not self.logs_folder.exists():
            try:
                self.logs_folder.mkdir(parents=True, exist_ok=True)
            except PermissionError:
                raise PermissionError(f"{self.logs_folder} not writable, please fix the variable accordingly.")

    def _setup_log_file(self) -> None:
        """Set up the log file with rotation plus a console handler."""
        current_time = datetime.now().strftime("%Y%m%d_%H%M")
        log_file = self.logs_folder / f"folderlist_log_{current_time}.log"

        file_handler = RotatingFileHandler(
            log_file,
            maxBytes=20*1024*1024,
            backupCount=self.max_log_files
        )
        file_handler.setFormatter(logging.Formatter(LOG_FORMAT))
        self.logger.addHandler(file_handler)

        console_handler = ThreadSafeStreamHandler()
        console_handler.setFormatter(logging.Formatter(LOG_FORMAT))
        self.logger.addHandler(console_handler)

    def _set_log_level(self) -> None:
        """Set the logging level."""
        if self.log_level:
            log_level = self.log_level.lower()
            if log_level in LEVEL_MAPPING and log_level != "summary":
                self.logger.setLevel(LEVEL_MAPPING[log_level])
            else:
                logging.warning(f"Invalid log_level: {log_level}. Using default level: INFO")
                self.logger.setLevel(logging.INFO)
        else:
            self.logger.setLevel(logging.INFO)

    def _clean_old_log_files(self) -> None:
        """Clean old log files to maintain the maximum count."""
        existing_log_files = list(self.logs_folder.glob(self.log_file_pattern))
        existing_log_files.sort(key=lambda x: x.stat().st_mtime)

        while len(existing_log_files) > self.max_log_files:
            os.remove(existing_log_files.pop(0))

    def setup_notification_handlers(self, notification_config) -> None:
        """Set up notification handlers based on configuration."""
        notification_type = notification_config.notification_type.lower()
        if notification_type == "webhook" and notification_config.webhook_url:
            webhook_handler = WebhookHandler(notification_config.webhook_url)
            self._set_handler_level(webhook_handler, notification_config.webhook_level)
            self.logger.addHandler(webhook_handler)

    def _set_handler_level(self, handler: logging.Handler, level_str: str) -> None:
        """Set the level for a logging handler."""
        if level_str:
            level_str = level_str.lower()
            if level_str in LEVEL_MAPPING:
                handler.setLevel(LEVEL_MAPPING[level_str])
            else:
                logging.warning(f"Invalid notification level: {level_str}. Using default level: ERROR")
                handler.setLevel(logging.ERROR)
        else:
            handler.setLevel(logging.ERROR)

    def add_summary_message(self, message: str) -> None:
        """Add a message to the summary."""
        self.summary_messages.append(message)

    def log_summary(self) -> None:
        """Log the summary message.

        Uses newlines for multi-line output when there are multiple messages.
        """
        if self.summary_messages:
            if len(self.summary_messages) == 1:
                summary_message = self.summary_messages[0]
            else:
                summary_message = '\n  ' + '\n  '.join(self.summary_messages)
            self.logger.log(SUMMARY, summary_message)
            self.summary_messages = []
