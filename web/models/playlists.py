"""Pydantic models for playlists"""

from typing import List, Optional
from pydantic import BaseModel


class PlaylistModel(BaseModel):
    """A playlist with its reconciled item count"""
    id: int
    name: str
    is_m3u: bool = False
    entry_count: int = 0
    item_count: int = 0
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


class PlaylistCreateRequest(BaseModel):
    name: str
    paths: List[str] = []


class PlaylistImportRequest(BaseModel):
    """Import an M3U/M3U8 file from disk"""
    path: str
    name: Optional[str] = None


class PlaylistItemsRequest(BaseModel):
    """Video paths to append to a playlist"""
    paths: List[str] = []
