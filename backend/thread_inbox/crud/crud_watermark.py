from datetime import datetime
from typing import Dict, List

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from .. import models
from ..utils.clock import utcnow


def get_watermark(db: Session, thread_id: str, actor_id: int) -> datetime | None:
    row = db.get(models.ReadWatermark, (thread_id, actor_id))
    return row.last_read_at if row else None


def get_watermarks(db: Session, actor_id: int, thread_ids: List[str]) -> Dict[str, datetime]:
    if not thread_ids:
        return {}
    rows = (
        db.query(models.ReadWatermark)
        .filter(
            models.ReadWatermark.actor_id == actor_id,
            models.ReadWatermark.thread_id.in_(thread_ids),
        )
        .all()
    )
    return {r.thread_id: r.last_read_at for r in rows}


def _advance(row: models.ReadWatermark, ts: datetime) -> None:
    # Never move a watermark backwards (two tabs opening the same thread).
    if row.last_read_at is None or ts > row.last_read_at:
        row.last_read_at = ts


def mark_read(db: Session, thread_id: str, actor_id: int, now: datetime | None = None) -> datetime:
    """Move the actor's watermark for the thread to ``now``."""
    ts = now or utcnow()
    row = db.get(models.ReadWatermark, (thread_id, actor_id))
    if row is None:
        row = models.ReadWatermark(thread_id=thread_id, actor_id=actor_id, last_read_at=ts)
        db.add(row)
        try:
            db.commit()
        except IntegrityError:
            # Another request inserted the row first; update it instead.
            db.rollback()
            row = db.get(models.ReadWatermark, (thread_id, actor_id))
            _advance(row, ts)
            db.commit()
        return row.last_read_at
    _advance(row, ts)
    db.commit()
    return row.last_read_at
