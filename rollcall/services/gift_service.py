"""
rollcall.services.gift_service — Redemption catalogue
======================================================
"""

from __future__ import annotations

import logging

from sqlalchemy import Engine, select
from sqlalchemy.orm import Session

from rollcall.database.models import GiftItem
from rollcall.engine.errors import InvalidAmount

logger = logging.getLogger(__name__)


def list_gifts(engine: Engine) -> list[GiftItem]:
    """Catalogue ordered by cost, cheapest first."""
    with Session(engine, expire_on_commit=False) as session:
        rows = list(session.scalars(select(GiftItem).order_by(GiftItem.cost, GiftItem.id)).all())
        session.expunge_all()
    return rows


def save_gift(engine: Engine, *, name: str, cost: int, gift_id: int | None = None) -> GiftItem | None:
    """Create a gift, or update *gift_id* if given.  ``None`` if that id is unknown."""
    if cost <= 0:
        raise InvalidAmount(cost)
    if not name or not name.strip():
        raise ValueError("Gift name is required.")

    with Session(engine, expire_on_commit=False) as session:
        if gift_id is None:
            gift = GiftItem(name=name.strip(), cost=cost)
            session.add(gift)
        else:
            gift = session.get(GiftItem, gift_id)
            if gift is None:
                return None
            gift.name = name.strip()
            gift.cost = cost
        session.commit()
        session.refresh(gift)
        session.expunge(gift)
    logger.info("Gift %s saved: %r costs %d", gift.id, gift.name, gift.cost)
    return gift


def delete_gift(engine: Engine, gift_id: int) -> bool:
    with Session(engine) as session:
        gift = session.get(GiftItem, gift_id)
        if gift is None:
            return False
        session.delete(gift)
        session.commit()
    return True
