"""
rollcall.api.routes.settings — Meeting start time and point tiers
==================================================================
"""

from __future__ import annotations

from dataclasses import asdict

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field
from sqlalchemy import Engine

from rollcall.api.deps import get_current_admin, get_current_user, get_engine, http_error
from rollcall.engine.scoring import MeetingConfig
from rollcall.services import settings_service

router = APIRouter(tags=["settings"])


class MeetingConfigIn(BaseModel):
    start_time: str = Field(description="HH:MM, 24-hour")
    points_on_time: int
    points_late_15: int
    points_late_30: int
    points_late: int


@router.get("/settings/meeting")
def get_meeting_settings(
    user: dict = Depends(get_current_user),
    engine: Engine = Depends(get_engine),
):
    return asdict(settings_service.get_meeting_config(engine))


@router.put("/settings/meeting")
def put_meeting_settings(
    body: MeetingConfigIn,
    admin: dict = Depends(get_current_admin),
    engine: Engine = Depends(get_engine),
):
    try:
        saved = settings_service.save_meeting_config(
            engine, MeetingConfig(**body.model_dump()), actor=admin.get("username"),
        )
    except ValueError as exc:
        raise http_error(exc) from exc
    return asdict(saved)
