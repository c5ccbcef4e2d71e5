from typing import Dict
from fastapi import HTTPException, status
import logging

logger = logging.getLogger(__name__)


class InboxError(Exception):
    """Base class for messaging errors."""


class MalformedThreadId(InboxError, ValueError):
    """A thread id string is not ``{kind}-{integer}`` with a known kind."""

    def __init__(self, thread_id: object):
        self.thread_id = thread_id
        super().__init__(f"Malformed thread id: {thread_id!r}")


class ThreadAccessDenied(InboxError):
    """The actor may not read or write the thread.

    Surfaced to callers as "not found" so the existence of other customers'
    threads is never leaked.
    """

    def __init__(self, thread_id: str, reason: str = "not_authorized"):
        self.thread_id = thread_id
        self.reason = reason
        super().__init__(f"Access to thread {thread_id} denied ({reason})")


class EmptyMessage(InboxError):
    """A send carried neither text nor an uploaded image."""

    def __init__(self) -> None:
        super().__init__("Message must include text or an image")


class UploadError(InboxError):
    """Attachment upload failed (I/O, size or type rejection)."""

    def __init__(self, message: str, field: str = "images"):
        self.field = field
        super().__init__(message)


class PollTransientFailure(InboxError):
    """A scheduled poll failed on the network or with a server error."""

    def __init__(self, message: str, status_code: int | None = None):
        self.status_code = status_code
        super().__init__(message)


def error_response(
    message: str,
    field_errors: Dict[str, str],
    code: int = status.HTTP_422_UNPROCESSABLE_ENTITY,
) -> HTTPException:
    """Return an HTTPException with a consistent structure and log details."""
    logger.error("%s %s", message, field_errors)
    detail = {"message": message, "field_errors": field_errors}
    return HTTPException(status_code=code, detail=detail)


def http_error_for(exc: InboxError) -> HTTPException:
    """Translate a domain error into the API's error envelope."""
    if isinstance(exc, ThreadAccessDenied):
        # Same answer whether the thread is missing or belongs to someone else.
        logger.info("Thread access denied: %s (%s)", exc.thread_id, exc.reason)
        return error_response(
            "Thread not found",
            {"thread_id": "not_found"},
            status.HTTP_404_NOT_FOUND,
        )
    if isinstance(exc, MalformedThreadId):
        return error_response(
            "Malformed thread id",
            {"thread_id": "malformed"},
            status.HTTP_400_BAD_REQUEST,
        )
    if isinstance(exc, EmptyMessage):
        return error_response(
            str(exc),
            {"text": "required"},
            status.HTTP_400_BAD_REQUEST,
        )
    if isinstance(exc, UploadError):
        return error_response(
            str(exc),
            {exc.field: "invalid"},
            status.HTTP_400_BAD_REQUEST,
        )
    return error_response(str(exc), {}, status.HTTP_500_INTERNAL_SERVER_ERROR)
