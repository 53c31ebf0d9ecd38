"""Tests for the cold-start folder cache - snapshot format, malformed payloads, store I/O."""

import json
import os
from unittest.mock import MagicMock

import pytest

from conftest import make_folder
from folderlist.folder_cache import FolderCache, parse_folders, serialize_folders
from folderlist.kv_store import KeyValueStore
from folderlist.models import Folder


SAMPLE_PAYLOAD = "b1::Movies::/sdcard/Movies::5::1000::600::123|b2::Clips::/sdcard/Clips::2::200::60::456"


# ============================================================================
# Parsing
# ============================================================================

class TestParseFolders:
    def test_parses_two_records_in_order(self):
        folders = parse_folders(SAMPLE_PAYLOAD)
        assert folders == [
            Folder("b1", "Movies", "/sdcard/Movies", 5, 1000, 600, 123),
            Folder("b2", "Clips", "/sdcard/Clips", 2, 200, 60, 456),
        ]

    def test_none_payload(self):
        assert parse_folders(None) == []

    def test_empty_payload(self):
        assert parse_folders("") == []

    def test_non_string_payload(self):
        assert parse_folders(42) == []

    def test_record_with_too_few_fields_is_dropped(self):
        payload = "b1::Movies::/sdcard/Movies::5::1000::600|b2::Clips::/sdcard/Clips::2::200::60::456"
        folders = parse_folders(payload)
        assert [f.bucket_id for f in folders] == ["b2"]

    def test_record_with_too_many_fields_is_dropped(self):
        payload = "b1::Movies::/sdcard/Movies::5::1000::600::123::extra"
        assert parse_folders(payload) == []

    def test_non_numeric_field_drops_record(self):
        payload = "b1::Movies::/sdcard/Movies::five::1000::600::123|b2::Clips::/sdcard/Clips::2::200::60::456"
        folders = parse_folders(payload)
        assert len(folders) == 1
        assert folders[0].name == "Clips"

    @pytest.mark.parametrize("count", [" 5", "5 ", "+5", "1_000", "٥", ""])
    def test_loosely_formatted_number_drops_record(self, count):
        payload = f"b1::Movies::/sdcard/Movies::{count}::1000::600::123"
        assert parse_folders(payload) == []

    def test_negative_number_accepted(self):
        folders = parse_folders("b1::Movies::/sdcard/Movies::5::1000::600::-123")
        assert folders[0].last_modified == -123

    def test_garbage_payload_yields_nothing(self):
        assert parse_folders("not a cache at all") == []

    def test_trailing_separator_ignored(self):
        folders = parse_folders(SAMPLE_PAYLOAD + "|")
        assert len(folders) == 2


# ============================================================================
# Serialization
# ============================================================================

class TestSerializeFolders:
    def test_sample_payload_reproduced(self):
        folders = parse_folders(SAMPLE_PAYLOAD)
        assert serialize_folders(folders) == SAMPLE_PAYLOAD

    def test_empty_list(self):
        assert serialize_folders([]) == ""

    def test_field_order(self):
        folder = Folder("id", "Name", "/p", 1, 2, 3, 4)
        assert serialize_folders([folder]) == "id::Name::/p::1::2::3::4"

    def test_folder_with_separator_in_name_is_skipped(self):
        folders = [make_folder("Good"), make_folder("Bad::Name"), make_folder("Pipe|Name")]
        restored = parse_folders(serialize_folders(folders))
        assert [f.name for f in restored] == ["Good"]


# ============================================================================
# FolderCache
# ============================================================================

class TestFolderCache:
    def test_save_then_load(self, temp_dir):
        cache = FolderCache(KeyValueStore(os.path.join(temp_dir, "cache.json")))
        folders = [make_folder("Movies"), make_folder("Clips")]
        assert cache.save(folders) is True
        assert cache.load() == folders

    def test_load_without_file(self, temp_dir):
        cache = FolderCache(KeyValueStore(os.path.join(temp_dir, "missing.json")))
        assert cache.load() == []

    def test_last_write_wins(self, temp_dir):
        cache = FolderCache(KeyValueStore(os.path.join(temp_dir, "cache.json")))
        cache.save([make_folder("Old")])
        cache.save([make_folder("New")])
        assert [f.name for f in cache.load()] == ["New"]

    def test_save_empty_list_clears_snapshot(self, temp_dir):
        cache = FolderCache(KeyValueStore(os.path.join(temp_dir, "cache.json")))
        cache.save([make_folder("Movies")])
        cache.save([])
        assert cache.load() == []

    def test_stored_under_folders_key(self, temp_dir):
        store_file = os.path.join(temp_dir, "cache.json")
        FolderCache(KeyValueStore(store_file)).save([Folder("b1", "Movies", "/m", 1, 2, 3, 4)])
        with open(store_file) as f:
            data = json.load(f)
        assert data == {"folders": "b1::Movies::/m::1::2::3::4"}

    def test_save_failure_returns_false(self):
        store = MagicMock()
        store.put.side_effect = OSError("disk full")
        assert FolderCache(store).save([make_folder("Movies")]) is False

    def test_load_failure_returns_empty(self):
        store = MagicMock()
        store.get.side_effect = OSError("unreadable")
        assert FolderCache(store).load() == []

    def test_corrupt_store_file_loads_empty(self, temp_dir):
        store_file = os.path.join(temp_dir, "cache.json")
        with open(store_file, "w") as f:
            f.write("{not json")
        assert FolderCache(KeyValueStore(store_file)).load() == []
