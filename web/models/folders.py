"""Pydantic models for folder data"""

from typing import List
from pydantic import BaseModel, Field


class FolderModel(BaseModel):
    """A visible video folder"""
    bucket_id: str
    name: str
    path: str
    video_count: int = 0
    total_size: int = 0
    total_size_display: str = "0 B"
    total_duration: int = 0
    total_duration_display: str = "0s"
    last_modified: int = 0


class FolderWithCountModel(FolderModel):
    """A visible folder with its new-video count"""
    new_video_count: int = 0


class StatusModel(BaseModel):
    """Loading and transition flags"""
    is_loading: bool = False
    has_completed_initial_load: bool = False
    folders_were_deleted: bool = False
    folder_count: int = 0
    total_folder_count: int = 0
    playlist_count: int = 0
    watching: bool = False


class DeleteVideosRequest(BaseModel):
    """Request to delete video files"""
    paths: List[str] = Field(default_factory=list)


class DeleteVideosResult(BaseModel):
    deleted: int = 0
    failed: int = 0


class PlaybackRequest(BaseModel):
    """Record a playback in history"""
    title: str
    path: str = ""
    position_ms: int = 0
    duration_ms: int = 0
