from fastapi import APIRouter, Depends, Header, Response, status
from sqlalchemy.orm import Session
from typing import List, Optional
import hashlib
import logging

import orjson

from ..schemas.threads import ThreadSummary
from ..services import directory
from ..services.access import ActorContext
from .dependencies import get_db, get_current_actor


router = APIRouter(tags=["threads"])

logger = logging.getLogger(__name__)

POLL_CACHE_HEADERS = {
    "Cache-Control": "no-cache, private",
    "Vary": "Authorization, If-None-Match",
}


def _etag_for_body(body: bytes) -> str:
    return f'W/"{hashlib.sha1(body).hexdigest()}"'


def _etag_matches(if_none_match: Optional[str], etag: str) -> bool:
    if not if_none_match:
        return False
    candidates = [tag.strip() for tag in if_none_match.split(",")]
    return etag in candidates or "*" in candidates


@router.get(
    "/threads",
    response_model=None,
    responses={
        200: {"model": List[ThreadSummary]},
        304: {"description": "Not Modified"},
    },
)
def get_directory(
    if_none_match: Optional[str] = Header(default=None, alias="If-None-Match"),
    db: Session = Depends(get_db),
    actor: ActorContext = Depends(get_current_actor),
):
    """Return every thread visible to the caller with its latest message.

    Polled every few seconds. The body is always the full directory; the
    weak ETag lets an unchanged poll come back as an empty 304.
    """
    summaries = directory.list_threads(db, actor)
    body = orjson.dumps([s.model_dump(mode="json") for s in summaries])
    etag = _etag_for_body(body)
    headers = {"ETag": etag, **POLL_CACHE_HEADERS}
    if _etag_matches(if_none_match, etag):
        return Response(status_code=status.HTTP_304_NOT_MODIFIED, headers=headers)
    return Response(content=body, media_type="application/json", headers=headers)
