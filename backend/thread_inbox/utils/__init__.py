from .errors import (
    error_response,
    InboxError,
    MalformedThreadId,
    ThreadAccessDenied,
    EmptyMessage,
    UploadError,
    PollTransientFailure,
    http_error_for,
)
from .clock import utcnow
