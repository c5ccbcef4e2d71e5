from fastapi import APIRouter, Depends, Header, Response, status
from sqlalchemy.orm import Session
from typing import List, Optional
import hashlib
import logging

import orjson

from .. import schemas
from ..crud import crud_message
from ..services import messaging
from ..services.access import ActorContext, authorize_read
from ..utils.errors import InboxError, http_error_for
from .api_threads import POLL_CACHE_HEADERS, _etag_matches
from .dependencies import get_db, get_current_actor

router = APIRouter(tags=["messages"])

logger = logging.getLogger(__name__)


def _change_token(*parts: object) -> str:
    basis = ":".join(str(p) for p in parts)
    return f'W/"{hashlib.sha1(basis.encode()).hexdigest()}"'


@router.get(
    "/threads/{thread_id}/messages",
    response_model=None,
    responses={
        200: {"model": List[schemas.MessageResponse]},
        304: {"description": "Not Modified"},
    },
)
def read_messages(
    thread_id: str,
    if_none_match: Optional[str] = Header(default=None, alias="If-None-Match"),
    db: Session = Depends(get_db),
    actor: ActorContext = Depends(get_current_actor),
):
    """Return the whole thread ordered by message id.

    Messages are append-only, so the highest id identifies the full state
    and is checked before any rows are loaded.
    """
    try:
        ref, _ = authorize_read(db, actor, thread_id)
    except InboxError as exc:
        raise http_error_for(exc)

    marker = crud_message.get_thread_change_marker(db, ref.thread_id)
    etag = _change_token("thread", ref.thread_id, marker)
    headers = {"ETag": etag, **POLL_CACHE_HEADERS}
    if _etag_matches(if_none_match, etag):
        return Response(status_code=status.HTTP_304_NOT_MODIFIED, headers=headers)

    rows = crud_message.get_messages_for_thread(db, ref.thread_id)
    body = orjson.dumps(
        [schemas.MessageResponse.model_validate(m).model_dump(mode="json") for m in rows]
    )
    return Response(content=body, media_type="application/json", headers=headers)


@router.post(
    "/threads/{thread_id}/messages",
    response_model=schemas.MessageResponse,
    status_code=status.HTTP_201_CREATED,
)
def create_message(
    message_in: schemas.MessageCreate,
    thread_id: str,
    db: Session = Depends(get_db),
    actor: ActorContext = Depends(get_current_actor),
):
    try:
        msg = messaging.post_message(db, actor, thread_id, message_in)
    except InboxError as exc:
        raise http_error_for(exc)
    return schemas.MessageResponse.model_validate(msg)


@router.post("/threads/{thread_id}/read", response_model=schemas.MarkReadResponse)
def mark_thread_read(
    thread_id: str,
    db: Session = Depends(get_db),
    actor: ActorContext = Depends(get_current_actor),
):
    """Move the caller's read watermark for the thread to now."""
    try:
        canonical_id, last_read_at = messaging.mark_read(db, actor, thread_id)
    except InboxError as exc:
        raise http_error_for(exc)
    return schemas.MarkReadResponse(thread_id=canonical_id, last_read_at=last_read_at)
