"""Playlist routes"""

from typing import List

from fastapi import APIRouter, HTTPException
from fastapi.responses import JSONResponse

from folderlist.models import PlaylistWithCount
from web.models.playlists import PlaylistCreateRequest, PlaylistImportRequest, PlaylistItemsRequest, PlaylistModel
from web.services import get_folder_app

router = APIRouter()


def _to_model(item: PlaylistWithCount) -> PlaylistModel:
    playlist = item.playlist
    return PlaylistModel(
        id=playlist.id,
        name=playlist.name,
        is_m3u=playlist.is_m3u,
        entry_count=len(playlist.entries),
        item_count=item.item_count,
        created_at=playlist.created_at,
        updated_at=playlist.updated_at,
    )


@router.get("/playlists", response_model=List[PlaylistModel])
def list_playlists():
    """Playlists sorted by name, with resolvable item counts"""
    return [_to_model(item) for item in get_folder_app().synchronizer.playlists_with_count.value]


@router.post("/playlists")
def create_playlist(request: PlaylistCreateRequest):
    name = request.name.strip()
    if not name:
        raise HTTPException(status_code=400, detail="Playlist name must not be empty")
    playlist = get_folder_app().playlist_store.create(name, request.paths)
    return JSONResponse({"ok": True, "id": playlist.id})


@router.post("/playlists/import")
def import_playlist(request: PlaylistImportRequest):
    """Import an M3U file as a playlist"""
    try:
        playlist = get_folder_app().playlist_store.import_m3u(request.path, request.name)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except OSError as e:
        raise HTTPException(status_code=404, detail=f"Cannot read playlist file: {e}")
    return JSONResponse({"ok": True, "id": playlist.id, "entries": len(playlist.entries)})


@router.post("/playlists/{playlist_id}/items")
def add_playlist_items(playlist_id: int, request: PlaylistItemsRequest):
    """Append videos to an existing playlist"""
    if not request.paths:
        raise HTTPException(status_code=400, detail="No paths given")
    playlist = get_folder_app().playlist_store.add_items(playlist_id, request.paths)
    if playlist is None:
        raise HTTPException(status_code=404, detail=f"Playlist {playlist_id} not found")
    return JSONResponse({"ok": True, "entries": len(playlist.entries)})

@router.delete("/playlists/{playlist_id}")
def delete_playlist(playlist_id: int):
    if not get_folder_app().synchronizer.delete_playlist(playlist_id):
        raise HTTPException(status_code=404, detail=f"Playlist {playlist_id} not found")
    return JSONResponse({"ok": True})
