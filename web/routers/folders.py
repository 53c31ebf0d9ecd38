"""Folder list routes"""

from typing import List

from fastapi import APIRouter, HTTPException
from fastapi.responses import JSONResponse

from folderlist.file_operations import format_bytes, format_duration
from folderlist.models import Folder
from web.models.folders import (
    DeleteVideosRequest,
    DeleteVideosResult,
    FolderModel,
    FolderWithCountModel,
    PlaybackRequest,
    StatusModel,
)
from web.services import get_folder_app

router = APIRouter()


def _folder_fields(folder: Folder) -> dict:
    return {
        "bucket_id": folder.bucket_id,
        "name": folder.name,
        "path": folder.path,
        "video_count": folder.video_count,
        "total_size": folder.total_size,
        "total_size_display": format_bytes(folder.total_size),
        "total_duration": folder.total_duration,
        "total_duration_display": format_duration(folder.total_duration),
        "last_modified": folder.last_modified,
    }


@router.get("/status", response_model=StatusModel)
def get_status():
    """Loading flags and counts"""
    app = get_folder_app()
    watching = app.watcher is not None and app.watcher.is_running
    return StatusModel(**app.synchronizer.get_status(), watching=watching)


@router.get("/folders", response_model=List[FolderModel])
def list_folders():
    """Visible (non-blacklisted) folders"""
    folders = get_folder_app().synchronizer.video_folders.value
    return [FolderModel(**_folder_fields(f)) for f in folders]


@router.get("/folders/metrics", response_model=List[FolderWithCountModel])
def list_folders_with_counts():
    """Visible folders with their new-video counts"""
    items = get_folder_app().synchronizer.folders_with_metric.value
    return [
        FolderWithCountModel(**_folder_fields(item.folder), new_video_count=item.new_video_count)
        for item in items
    ]


@router.post("/refresh")
def refresh():
    """Rescan the media library"""
    get_folder_app().synchronizer.refresh()
    return JSONResponse({"ok": True})


@router.post("/metrics/recalculate")
def recalculate_metrics():
    """Recount new videos without rescanning"""
    get_folder_app().synchronizer.recalculate_metrics()
    return JSONResponse({"ok": True})


@router.post("/videos/delete", response_model=DeleteVideosResult)
def delete_videos(request: DeleteVideosRequest):
    """Delete video files, then rescan"""
    if not request.paths:
        raise HTTPException(status_code=400, detail="No paths given")
    deleted, failed = get_folder_app().synchronizer.delete_videos(request.paths)
    return DeleteVideosResult(deleted=deleted, failed=failed)


@router.post("/history")
def record_playback(request: PlaybackRequest):
    """Mark a video as played"""
    title = request.title.strip()
    if not title:
        raise HTTPException(status_code=400, detail="Title must not be empty")
    get_folder_app().synchronizer.record_playback(
        title, request.path, request.position_ms, request.duration_ms
    )
    return JSONResponse({"ok": True})


@router.delete("/history")
def clear_history():
    """Forget every playback"""
    cleared = get_folder_app().synchronizer.clear_history()
    return JSONResponse({"ok": True, "cleared": cleared})


@router.delete("/history/{title}")
def forget_playback(title: str):
    """Mark a video as unplayed again"""
    if not get_folder_app().synchronizer.forget_playback(title):
        raise HTTPException(status_code=404, detail=f"No playback recorded for {title}")
    return JSONResponse({"ok": True})
