"""
rollcall.api.deps — FastAPI dependency injection
=================================================

Tokens are issued by whatever login front-end the host uses; this module only
verifies them.  The ``role`` claim decides what a caller may request (admin
mutations, whose follow-up list is shown by default).
"""

from __future__ import annotations

import os
from datetime import datetime
from functools import lru_cache
from typing import Annotated
from zoneinfo import ZoneInfo

import jwt
from fastapi import Depends, Header, HTTPException, status
from jwt.exceptions import InvalidTokenError
from sqlalchemy import Engine

from rollcall.config import RollcallConfig, load_config
from rollcall.database.engine import create_db_engine
from rollcall.database.models import Role
from rollcall.engine.clock import now_utc
from rollcall.engine.errors import (
    DuplicateCheckIn,
    InsufficientBalance,
    InvalidAmount,
    InvalidMeetingConfig,
    InvalidSegmentRange,
    MemberNotFound,
    RollcallError,
)

_WEAK_SECRETS = frozenset({
    "rollcall-dev-secret-change-me",
    "change-me",
    "secret",
    "dev",
    "",
})

_MIN_SECRET_LENGTH = 32

JWT_ALGORITHM = "HS256"


def _load_jwt_secret() -> str:
    """Load and validate JWT_SECRET from the environment.

    Raises RuntimeError at import time if the secret is missing, too short
    (< 32 chars), or a known weak default.
    """
    secret = os.getenv("JWT_SECRET", "")
    if not secret:
        raise RuntimeError(
            "JWT_SECRET environment variable is not set. "
            "Generate one with: python -c \"import secrets; print(secrets.token_urlsafe(64))\""
        )
    if secret in _WEAK_SECRETS:
        raise RuntimeError(
            f"JWT_SECRET is set to a known weak default ('{secret}'). "
            "Please set a strong, unique secret."
        )
    if len(secret) < _MIN_SECRET_LENGTH:
        raise RuntimeError(
            f"JWT_SECRET is too short ({len(secret)} chars). "
            f"Minimum length is {_MIN_SECRET_LENGTH} characters."
        )
    return secret


JWT_SECRET: str = _load_jwt_secret()


@lru_cache(maxsize=1)
def get_engine() -> Engine:
    return create_db_engine()


@lru_cache(maxsize=1)
def get_config() -> RollcallConfig:
    return load_config()


def get_tz(config: Annotated[RollcallConfig, Depends(get_config)]) -> ZoneInfo:
    return config.tz


def get_now() -> datetime:
    """Current instant.  Overridden in tests to pin the wall clock."""
    return now_utc()


def get_current_user(
    authorization: Annotated[str | None, Header()] = None,
) -> dict:
    """Validate the bearer JWT and return its payload.  401 if invalid."""
    if not authorization or not authorization.startswith("Bearer "):
        raise HTTPException(status.HTTP_401_UNAUTHORIZED, "Missing token")
    token = authorization.split(" ", 1)[1]
    try:
        payload = jwt.decode(token, JWT_SECRET, algorithms=[JWT_ALGORITHM])
    except InvalidTokenError:
        raise HTTPException(status.HTTP_401_UNAUTHORIZED, "Invalid token")
    if payload.get("role") not in (Role.ADMIN, Role.SERVANT):
        raise HTTPException(status.HTTP_403_FORBIDDEN, "Unknown role")
    return payload


def get_current_admin(user: Annotated[dict, Depends(get_current_user)]) -> dict:
    """Like :func:`get_current_user` but 403 unless the role is ADMIN."""
    if user.get("role") != Role.ADMIN:
        raise HTTPException(status.HTTP_403_FORBIDDEN, "Not admin")
    return user


# ---------------------------------------------------------------------------
# Engine errors → HTTP
# ---------------------------------------------------------------------------
_ERROR_STATUS: dict[type[RollcallError], int] = {
    MemberNotFound: 404,
    DuplicateCheckIn: 409,
    InsufficientBalance: 409,
    InvalidAmount: 400,
    InvalidSegmentRange: 422,
    InvalidMeetingConfig: 422,
}


def http_error(exc: ValueError) -> HTTPException:
    """Translate a service-layer ValueError into an HTTPException.

    Plain ``ValueError`` (bad date, unknown field) maps to 422.
    """
    code = _ERROR_STATUS.get(type(exc), 422)
    return HTTPException(code, str(exc))
