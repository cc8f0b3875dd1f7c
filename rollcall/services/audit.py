"""
rollcall.services.audit — Admin audit trail helpers
====================================================

Administrative writes (deleting ledger rows, removing members, saving the
meeting config) record a before/after snapshot in ``admin_log`` inside the
same transaction as the change itself.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from sqlalchemy.orm import Session

from rollcall.database.models import AdminActionType, AdminLog

SYSTEM_ACTOR = "system"


def row_to_dict(obj: Any) -> dict | None:
    """Convert a SQLAlchemy model instance to a JSON-serializable dict."""
    if obj is None:
        return None
    result = {}
    for col in obj.__table__.columns:
        val = getattr(obj, col.key, None)
        if isinstance(val, datetime):
            val = val.isoformat()
        result[col.name] = val
    return result


def log_admin_action(
    session: Session,
    *,
    actor: str | None,
    action_type: str,
    target_table: str,
    target_id: str | None,
    before: dict | None,
    after: dict | None,
) -> None:
    """Insert a row into admin_log within the current transaction."""
    session.add(AdminLog(
        actor=actor or SYSTEM_ACTOR,
        action_type=action_type,
        target_table=target_table,
        target_id=target_id,
        before_snapshot=before,
        after_snapshot=after,
    ))


def audited_delete(
    session: Session,
    model_cls: type,
    pk: Any,
    *,
    table_name: str,
    actor: str | None,
) -> bool:
    """get → log → delete.  The caller commits.

    Returns ``True`` if the row existed and was deleted.
    """
    obj = session.get(model_cls, pk)
    if obj is None:
        return False
    log_admin_action(
        session,
        actor=actor,
        action_type=AdminActionType.DELETE,
        target_table=table_name,
        target_id=str(pk),
        before=row_to_dict(obj),
        after=None,
    )
    session.delete(obj)
    return True
