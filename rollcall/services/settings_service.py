"""
rollcall.services.settings_service — Meeting config read/write
===============================================================

The meeting start time and point tiers are stored as individual rows of the
``settings`` table (``meeting.*`` keys, JSON values).  Reads fall back to the
defaults for any missing or unreadable key; writes validate the whole config
first so the table never holds non-monotonic tiers.
"""

from __future__ import annotations

import json
import logging
from dataclasses import asdict, fields

from sqlalchemy import Engine
from sqlalchemy.orm import Session

from rollcall.constants import DEFAULT_MEETING_CONFIG
from rollcall.database.models import AdminActionType, Setting
from rollcall.engine.clock import parse_hhmm
from rollcall.engine.scoring import MeetingConfig, validate_meeting_config
from rollcall.services.audit import log_admin_action

logger = logging.getLogger(__name__)

_KEY_PREFIX = "meeting."
_CATEGORIES = {"start_time": "meeting"}


def _key(field_name: str) -> str:
    return f"{_KEY_PREFIX}{field_name}"


def get_setting_value(session: Session, key: str, default=None):
    """Read a single setting's parsed value from an existing session."""
    row = session.get(Setting, key)
    if row is None:
        return default
    try:
        return json.loads(row.value_json)
    except (json.JSONDecodeError, TypeError):
        return row.value_json


def _coerce(field_name: str, value, default):
    """Stored value as the field's type, or *default* if it does not convert."""
    try:
        if field_name == "start_time":
            parse_hhmm(value)
            return value
        return int(value)
    except (TypeError, ValueError):
        logger.warning(
            "Setting %s holds unreadable value %r; using default %r",
            _key(field_name), value, default,
        )
        return default


def get_meeting_config(engine: Engine) -> MeetingConfig:
    """Current :class:`MeetingConfig`, defaults filled in for missing or
    unreadable keys."""
    with Session(engine) as session:
        values = {}
        for f in fields(MeetingConfig):
            default = getattr(DEFAULT_MEETING_CONFIG, f.name)
            values[f.name] = _coerce(
                f.name, get_setting_value(session, _key(f.name), default), default,
            )
    return MeetingConfig(**values)


def save_meeting_config(
    engine: Engine,
    config: MeetingConfig,
    *,
    actor: str | None = None,
) -> MeetingConfig:
    """Validate and persist *config*.

    Raises :class:`~rollcall.engine.errors.InvalidMeetingConfig` before
    touching the table if the tiers are not monotonic.
    """
    validate_meeting_config(config)

    before = asdict(get_meeting_config(engine))
    after = asdict(config)
    with Session(engine) as session:
        for name, value in after.items():
            key = _key(name)
            row = session.get(Setting, key)
            if row is None:
                session.add(Setting(
                    key=key,
                    value_json=json.dumps(value),
                    category=_CATEGORIES.get(name, "points"),
                ))
            else:
                row.value_json = json.dumps(value)

        if before != after:
            log_admin_action(
                session,
                actor=actor,
                action_type=AdminActionType.UPDATE,
                target_table="settings",
                target_id="meeting",
                before=before,
                after=after,
            )
        session.commit()

    logger.info("Meeting config saved by %s: %s", actor or "system", after)
    return config
