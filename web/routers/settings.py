"""Preference routes"""

from fastapi import APIRouter, HTTPException

from web.models.settings import PreferencesModel, PreferencesUpdateModel
from web.services import get_folder_app

router = APIRouter()

# Changing these affects new-video counts but not the folder scan
_METRIC_FIELDS = {"show_new_video_label", "new_video_days"}


@router.get("/settings", response_model=PreferencesModel)
def get_preferences():
    return PreferencesModel(**get_folder_app().preferences.as_dict())


@router.put("/settings", response_model=PreferencesModel)
def update_preferences(update: PreferencesUpdateModel):
    app = get_folder_app()
    preferences = app.preferences
    changes = update.model_dump(exclude_none=True)

    blacklist = changes.pop("blacklisted_folders", None)
    point_values = changes
    try:
        if point_values:
            preferences.update(**point_values)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    if blacklist is not None:
        preferences.set_blacklist(blacklist)

    if "show_hidden_files" in point_values:
        app.synchronizer.refresh()
    elif _METRIC_FIELDS & set(point_values):
        app.synchronizer.recalculate_metrics()

    return PreferencesModel(**preferences.as_dict())
