import logging
from typing import Dict, List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, aliased
from sqlalchemy import and_, func, or_

from .. import models
from ..threads.identity import ThreadRef
from ..utils.clock import utcnow

logger = logging.getLogger(__name__)

# Attempts at allocating the next per-thread id before giving up. Collisions
# only happen when two writers race on the same thread.
MAX_APPEND_ATTEMPTS = 5


def next_message_id(db: Session, thread_id: str) -> int:
    current = (
        db.query(func.max(models.Message.id))
        .filter(models.Message.thread_id == thread_id)
        .scalar()
    )
    return int(current or 0) + 1


def append_message(
    db: Session,
    ref: ThreadRef,
    sender_role: models.SenderRole,
    sender_id: int | None,
    text: str | None,
    image_url: str | None,
) -> models.Message:
    """Append a message to the thread log and return the stored row.

    The id is ``max(id) + 1`` within the thread. If a concurrent writer took
    the same id first, the primary key rejects our row; roll back and
    allocate again so both messages survive.
    """
    thread_id = ref.thread_id
    for attempt in range(1, MAX_APPEND_ATTEMPTS + 1):
        db_msg = models.Message(
            thread_id=thread_id,
            id=next_message_id(db, thread_id),
            thread_kind=ref.kind,
            reference_id=ref.reference_id,
            sender_role=sender_role,
            sender_id=sender_id,
            text=text,
            image_url=image_url,
            created_at=utcnow(),
        )
        db.add(db_msg)
        try:
            db.commit()
        except IntegrityError:
            db.rollback()
            logger.warning(
                "Message id collision on %s (attempt %s/%s)",
                thread_id,
                attempt,
                MAX_APPEND_ATTEMPTS,
            )
            if attempt == MAX_APPEND_ATTEMPTS:
                raise
            continue
        db.refresh(db_msg)
        return db_msg
    raise RuntimeError("unreachable")


def get_messages_for_thread(db: Session, thread_id: str) -> List[models.Message]:
    """Return the full log for a thread, oldest first by id."""
    return (
        db.query(models.Message)
        .filter(models.Message.thread_id == thread_id)
        .order_by(models.Message.id.asc())
        .all()
    )


def count_messages(db: Session, thread_id: str | None = None) -> int:
    query = db.query(func.count(models.Message.id))
    if thread_id is not None:
        query = query.filter(models.Message.thread_id == thread_id)
    return int(query.scalar() or 0)


def get_last_messages_for_threads(
    db: Session,
    thread_ids: List[str],
) -> Dict[str, models.Message]:
    """Return the latest message for each thread in one query."""
    if not thread_ids:
        return {}

    window = (
        db.query(
            models.Message,
            func.row_number()
            .over(
                partition_by=models.Message.thread_id,
                order_by=models.Message.id.desc(),
            )
            .label("rn"),
        )
        .filter(models.Message.thread_id.in_(thread_ids))
        .subquery()
    )
    latest = aliased(models.Message, window)
    rows = db.query(latest).filter(window.c.rn == 1).all()
    return {m.thread_id: m for m in rows}


def get_unread_counts(
    db: Session,
    actor_id: int,
    opposing_role: models.SenderRole,
    thread_ids: Optional[List[str]] = None,
) -> Dict[str, int]:
    """Count messages from ``opposing_role`` newer than the actor's watermark.

    Threads without a watermark count every message from the other side.
    """
    wm = models.ReadWatermark
    query = (
        db.query(models.Message.thread_id, func.count(models.Message.id))
        .outerjoin(
            wm,
            and_(
                wm.thread_id == models.Message.thread_id,
                wm.actor_id == actor_id,
            ),
        )
        .filter(models.Message.sender_role == opposing_role)
        .filter(or_(wm.last_read_at.is_(None), models.Message.created_at > wm.last_read_at))
    )
    if thread_ids is not None:
        if not thread_ids:
            return {}
        query = query.filter(models.Message.thread_id.in_(thread_ids))

    rows = query.group_by(models.Message.thread_id).all()
    return {str(tid): int(cnt or 0) for tid, cnt in rows}


def get_thread_change_marker(db: Session, thread_id: str) -> int:
    """Highest message id in the thread (0 when empty); cheap ETag basis."""
    return int(
        db.query(func.coalesce(func.max(models.Message.id), 0))
        .filter(models.Message.thread_id == thread_id)
        .scalar()
        or 0
    )
