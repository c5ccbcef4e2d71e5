import logging
from datetime import datetime
from typing import List, Tuple

from sqlalchemy.orm import Session

from .. import models, schemas
from ..crud import crud_message, crud_watermark
from ..utils.errors import EmptyMessage
from .access import ActorContext, authorize_read, authorize_write

logger = logging.getLogger(__name__)


def read_thread(db: Session, actor: ActorContext, thread_id: str) -> List[models.Message]:
    ref, _ = authorize_read(db, actor, thread_id)
    return crud_message.get_messages_for_thread(db, ref.thread_id)


def post_message(
    db: Session,
    actor: ActorContext,
    thread_id: str,
    message_in: schemas.MessageCreate,
) -> models.Message:
    """Validate and append one message. Nothing is written on failure."""
    ref, _ = authorize_write(db, actor, thread_id, message_in.role)
    if message_in.is_empty:
        raise EmptyMessage()
    msg = crud_message.append_message(
        db,
        ref,
        sender_role=message_in.role,
        sender_id=actor.actor_id,
        text=message_in.text,
        image_url=message_in.image_url,
    )
    logger.info(
        "Message %s appended to %s by role=%s",
        msg.id,
        msg.thread_id,
        msg.sender_role.value,
    )
    return msg


def mark_read(db: Session, actor: ActorContext, thread_id: str) -> Tuple[str, datetime]:
    ref, _ = authorize_read(db, actor, thread_id)
    ts = crud_watermark.mark_read(db, ref.thread_id, actor.actor_id)
    return ref.thread_id, ts
