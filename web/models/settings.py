"""Pydantic models for settings"""

from typing import Optional, List
from pydantic import BaseModel, Field


class PreferencesModel(BaseModel):
    """User preferences"""
    blacklisted_folders: List[str] = Field(default_factory=list)
    show_new_video_label: bool = True
    new_video_days: int = 7
    show_hidden_files: bool = False


class PreferencesUpdateModel(BaseModel):
    """Partial preferences update; omitted fields are left unchanged"""
    blacklisted_folders: Optional[List[str]] = None
    show_new_video_label: Optional[bool] = None
    new_video_days: Optional[int] = Field(default=None, ge=0)
    show_hidden_files: Optional[bool] = None
