#!/usr/bin/env python3
"""Folder List - one-shot scan of the video library.

Usage:
    python folderlist_cli.py                     # Scan and print folders/playlists
    python folderlist_cli.py --verbose           # Enable debug logging
    python folderlist_cli.py --refresh           # Ignore the cached folder list
    python folderlist_cli.py --import-m3u a.m3u  # Import a playlist first
    python folderlist_cli.py --settings path.json
"""
import sys


def main():
    from folderlist.app import main as app_main
    return app_main()


if __name__ == "__main__":
    sys.exit(main() or 0)
