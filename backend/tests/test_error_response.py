import logging
import pytest
from fastapi import HTTPException

from thread_inbox.utils.errors import (
    EmptyMessage,
    MalformedThreadId,
    ThreadAccessDenied,
    UploadError,
    error_response,
    http_error_for,
)


def test_error_response_logs(caplog):
    caplog.set_level(logging.ERROR, logger="thread_inbox.utils.errors")
    with pytest.raises(HTTPException):
        raise error_response("Invalid", {"field": "bad"})
    assert any(
        "Invalid" in r.getMessage() and "'field': 'bad'" in r.getMessage()
        for r in caplog.records
    )


@pytest.mark.parametrize(
    "exc, status, field_errors",
    [
        (ThreadAccessDenied("booking-1", "not_owner"), 404, {"thread_id": "not_found"}),
        (MalformedThreadId("booking-x"), 400, {"thread_id": "malformed"}),
        (EmptyMessage(), 400, {"text": "required"}),
        (UploadError("too big"), 400, {"images": "invalid"}),
    ],
)
def test_domain_errors_map_to_http(exc, status, field_errors):
    err = http_error_for(exc)
    assert err.status_code == status
    assert err.detail["field_errors"] == field_errors


def test_access_denied_hides_reason():
    missing = http_error_for(ThreadAccessDenied("booking-1", "missing"))
    foreign = http_error_for(ThreadAccessDenied("booking-1", "not_owner"))
    assert missing.detail == foreign.detail
