"""Thread directory: the list of thread summaries visible to an actor.

Pure read-side join over transactions, the message log and read watermarks.
Nothing here is persisted; every call recomputes from the source rows.
"""

import logging
from datetime import datetime
from typing import Dict, List, Optional

from sqlalchemy.orm import Session

from .. import models
from ..crud import crud_message
from ..schemas.message import MessageResponse
from ..schemas.threads import Counterpart, CustomerSnapshot, ThreadSummary
from .access import ActorContext, directory_scope

logger = logging.getLogger(__name__)

NO_MESSAGE_LABEL = "No messages yet"
IMAGE_MESSAGE_LABEL = "Image message"


def preview_label(message: Optional[models.Message]) -> str:
    """Short label for a thread row: the text, or a stand-in for images."""
    if message is None:
        return NO_MESSAGE_LABEL
    text = (message.text or "").strip()
    if text:
        return text
    if message.image_url:
        return IMAGE_MESSAGE_LABEL
    return ""


def _customers_by_id(db: Session, user_ids: List[int]) -> Dict[int, CustomerSnapshot]:
    if not user_ids:
        return {}
    rows = db.query(models.User).filter(models.User.id.in_(user_ids)).all()
    return {
        int(u.id): CustomerSnapshot(id=int(u.id), username=u.username, first_name=u.first_name)
        for u in rows
    }


def order_summaries(summaries: List[ThreadSummary]) -> List[ThreadSummary]:
    """Latest activity first; threads with no message yet go last.

    Message-less threads sort by transaction creation time, newest first.
    """
    with_messages = [s for s in summaries if s.last_message is not None]
    without = [s for s in summaries if s.last_message is None]

    with_messages.sort(key=lambda s: s.thread_id)
    with_messages.sort(key=lambda s: (s.last_message.created_at, s.last_message.id), reverse=True)

    without.sort(key=lambda s: s.thread_id)
    without.sort(key=lambda s: s.created_at or datetime.min, reverse=True)
    return with_messages + without


def list_threads(db: Session, actor: ActorContext) -> List[ThreadSummary]:
    records = directory_scope(db, actor)
    thread_ids = [r.ref.thread_id for r in records]

    last_messages = crud_message.get_last_messages_for_threads(db, thread_ids)
    unread = crud_message.get_unread_counts(db, actor.actor_id, actor.opposing_role, thread_ids)
    customers = (
        _customers_by_id(db, sorted({r.user_id for r in records})) if actor.is_agent else {}
    )

    summaries: List[ThreadSummary] = []
    for record in records:
        thread_id = record.ref.thread_id
        last = last_messages.get(thread_id)
        summaries.append(
            ThreadSummary(
                thread_id=thread_id,
                kind=record.kind,
                reference_id=record.id,
                last_message=MessageResponse.model_validate(last) if last is not None else None,
                counterpart=Counterpart(
                    display_name=record.counterpart_display_name,
                    image_url=record.counterpart_image_url,
                ),
                unread=int(unread.get(thread_id, 0)),
                created_at=record.created_at or datetime.min,
                preview_label=preview_label(last),
                customer=customers.get(record.user_id),
            )
        )

    logger.debug(
        "Directory built for actor=%s role=%s threads=%d",
        actor.actor_id,
        actor.role.value,
        len(summaries),
    )
    return order_summaries(summaries)
