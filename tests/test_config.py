"""Tests for settings loading/validation and logging setup."""

import json
import logging
import os
from unittest.mock import MagicMock, patch

import pytest
import requests

from folderlist.config import ConfigManager, NotificationConfig
from folderlist.logging_config import SUMMARY, LoggingManager, WebhookHandler


def write_settings(temp_dir, **values):
    path = os.path.join(temp_dir, "settings.json")
    with open(path, "w") as f:
        json.dump(values, f)
    return path


# ============================================================================
# ConfigManager
# ============================================================================

class TestConfigManager:
    def test_minimal_settings(self, temp_dir):
        library = os.path.join(temp_dir, "library")
        os.makedirs(library)
        config = ConfigManager(write_settings(temp_dir, library_roots=[library]))
        config.load_config()
        assert config.library.library_roots == [library]
        assert ".mp4" in config.library.video_extensions
        assert config.library.scan_interval_seconds == 60
        assert config.logging.log_level == "info"
        assert config.notification.notification_type == "none"

    def test_missing_file(self, temp_dir):
        with pytest.raises(FileNotFoundError):
            ConfigManager(os.path.join(temp_dir, "absent.json")).load_config()

    def test_invalid_json(self, temp_dir):
        path = os.path.join(temp_dir, "settings.json")
        with open(path, "w") as f:
            f.write("{oops")
        with pytest.raises(ValueError):
            ConfigManager(path).load_config()

    def test_missing_required_field(self, temp_dir):
        with pytest.raises(ValueError, match="library_roots"):
            ConfigManager(write_settings(temp_dir, log_level="debug")).load_config()

    def test_empty_roots_rejected(self, temp_dir):
        with pytest.raises(ValueError):
            ConfigManager(write_settings(temp_dir, library_roots=[])).load_config()

    def test_wrong_types_rejected(self, temp_dir):
        path = write_settings(temp_dir, library_roots="/media", max_log_files="5")
        with pytest.raises(TypeError) as exc:
            ConfigManager(path).load_config()
        assert "library_roots" in str(exc.value)
        assert "max_log_files" in str(exc.value)

    def test_bool_rejected_for_int_field(self, temp_dir):
        path = write_settings(temp_dir, library_roots=["/media"], scan_interval_seconds=True)
        with pytest.raises(TypeError):
            ConfigManager(path).load_config()

    def test_extensions_normalized(self, temp_dir):
        path = write_settings(temp_dir, library_roots=["/media"], video_extensions=["MP4", ".Mkv"])
        config = ConfigManager(path)
        config.load_config()
        assert config.library.video_extensions == [".mp4", ".mkv"]

    def test_relative_folders_resolve_against_settings_file(self, temp_dir):
        path = write_settings(temp_dir, library_roots=["/media"], data_folder="state", logs_folder="out/logs")
        config = ConfigManager(path)
        config.load_config()
        assert config.paths.data_folder == os.path.realpath(os.path.join(temp_dir, "state"))
        assert config.paths.logs_folder == os.path.realpath(os.path.join(temp_dir, "out", "logs"))
        assert os.path.isdir(config.paths.data_folder)
        assert config.paths.folder_cache_file.startswith(config.paths.data_folder)

    def test_negative_interval_falls_back(self, temp_dir):
        path = write_settings(temp_dir, library_roots=["/media"], scan_interval_seconds=-5)
        config = ConfigManager(path)
        config.load_config()
        assert config.library.scan_interval_seconds == 60

    def test_zero_interval_kept(self, temp_dir):
        path = write_settings(temp_dir, library_roots=["/media"], scan_interval_seconds=0)
        config = ConfigManager(path)
        config.load_config()
        assert config.library.scan_interval_seconds == 0

    def test_notification_settings(self, temp_dir):
        path = write_settings(temp_dir, library_roots=["/media"], notification_type="webhook",
                              webhook_url="https://hooks.example/x", webhook_level="summary")
        config = ConfigManager(path)
        config.load_config()
        assert config.notification.webhook_url == "https://hooks.example/x"
        assert config.notification.webhook_level == "summary"


# ============================================================================
# Logging
# ============================================================================

class TestLoggingManager:
    def test_setup_creates_log_file(self, temp_dir, clean_root_logger):
        logs = os.path.join(temp_dir, "logs")
        manager = LoggingManager(logs, "debug", 3)
        manager.setup_logging()
        assert clean_root_logger.level == logging.DEBUG
        assert any(name.startswith("folderlist_log_") for name in os.listdir(logs))

    def test_invalid_level_defaults_to_info(self, temp_dir, clean_root_logger):
        LoggingManager(os.path.join(temp_dir, "logs"), "loud").setup_logging()
        assert clean_root_logger.level == logging.INFO

    def test_old_log_files_pruned(self, temp_dir, clean_root_logger):
        logs = os.path.join(temp_dir, "logs")
        os.makedirs(logs)
        for i in range(5):
            path = os.path.join(logs, f"folderlist_log_2020010{i}_0000.log")
            open(path, "w").close()
            os.utime(path, (1000 + i, 1000 + i))
        LoggingManager(logs, "info", 2).setup_logging()
        remaining = [n for n in os.listdir(logs) if n.startswith("folderlist_log_")]
        assert len(remaining) == 2

    def test_summary_logged_at_summary_level(self, temp_dir, clean_root_logger):
        manager = LoggingManager(os.path.join(temp_dir, "logs"))
        manager.logger = MagicMock()
        manager.add_summary_message("Found 3 folders")
        manager.add_summary_message("2 new videos")
        manager.log_summary()
        level, message = manager.logger.log.call_args.args
        assert level == SUMMARY
        assert "Found 3 folders" in message and "2 new videos" in message
        assert manager.summary_messages == []

    def test_empty_summary_not_logged(self, temp_dir):
        manager = LoggingManager(os.path.join(temp_dir, "logs"))
        manager.logger = MagicMock()
        manager.log_summary()
        manager.logger.log.assert_not_called()

    def test_webhook_handler_added(self, temp_dir, clean_root_logger):
        manager = LoggingManager(os.path.join(temp_dir, "logs"))
        manager.setup_notification_handlers(
            NotificationConfig("webhook", "summary", "https://hooks.example/x")
        )
        handlers = [h for h in clean_root_logger.handlers if isinstance(h, WebhookHandler)]
        assert len(handlers) == 1
        assert handlers[0].level == SUMMARY

    def test_no_webhook_without_url(self, temp_dir, clean_root_logger):
        manager = LoggingManager(os.path.join(temp_dir, "logs"))
        manager.setup_notification_handlers(NotificationConfig("webhook", "error", ""))
        assert not any(isinstance(h, WebhookHandler) for h in clean_root_logger.handlers)


class TestWebhookHandler:
    def test_summary_prefixed(self):
        handler = WebhookHandler("https://hooks.example/x")
        with patch('folderlist.logging_config.requests.post',
                   return_value=MagicMock(status_code=204)) as post:
            record = logging.LogRecord("x", SUMMARY, __file__, 1, "3 new videos", None, None)
            handler.emit(record)
        payload = json.loads(post.call_args.kwargs["data"])
        assert payload["content"].startswith("Folder List Summary:")

    def test_failed_post_returns_false(self):
        handler = WebhookHandler("https://hooks.example/x")
        with patch('folderlist.logging_config.requests.post',
                   side_effect=requests.ConnectionError("down")):
            assert handler.send_webhook_message("hi") is False

    def test_bad_status_returns_false(self):
        handler = WebhookHandler("https://hooks.example/x")
        with patch('folderlist.logging_config.requests.post', return_value=MagicMock(status_code=500)):
            assert handler.send_webhook_message("hi") is False
