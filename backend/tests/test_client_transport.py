import asyncio
from datetime import datetime

import httpx
import pytest

from thread_inbox.client import InboxClient
from thread_inbox.models import UserRole
from thread_inbox.utils.errors import (
    EmptyMessage,
    PollTransientFailure,
    ThreadAccessDenied,
    UploadError,
)

MESSAGE = {
    "id": 1,
    "thread_id": "booking-42",
    "sender_role": "customer",
    "text": "Hi",
    "image_url": None,
    "created_at": datetime(2024, 1, 1, 10).isoformat(),
}


def _client(handler) -> InboxClient:
    return InboxClient("http://inbox.test", "tok", transport=httpx.MockTransport(handler))


def test_messages_reuse_cached_body_on_304():
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request.headers.get("if-none-match"))
        assert request.headers["authorization"] == "Bearer tok"
        assert request.url.path == "/api/v1/threads/booking-42/messages"
        if request.headers.get("if-none-match") == 'W/"v1"':
            return httpx.Response(304, headers={"ETag": 'W/"v1"'})
        return httpx.Response(200, json=[MESSAGE], headers={"ETag": 'W/"v1"'})

    async def run():
        async with _client(handler) as client:
            first = await client.messages("booking-42")
            second = await client.messages("booking-42")
            return first, second

    first, second = asyncio.run(run())
    assert seen == [None, 'W/"v1"']
    assert [m.id for m in first] == [m.id for m in second] == [1]


def test_messages_are_sorted_by_id():
    later = {**MESSAGE, "id": 2, "created_at": MESSAGE["created_at"]}

    def handler(request):
        return httpx.Response(200, json=[later, MESSAGE])

    async def run():
        async with _client(handler) as client:
            return await client.messages("booking-42")

    assert [m.id for m in asyncio.run(run())] == [1, 2]


def test_switching_threads_drops_the_previous_thread_body():
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append((request.url.path, request.headers.get("if-none-match")))
        if request.url.path == "/api/v1/threads":
            return httpx.Response(200, json=[], headers={"ETag": 'W/"dir"'})
        thread_id = request.url.path.split("/")[-2]
        return httpx.Response(200, json=[{**MESSAGE, "thread_id": thread_id}], headers={"ETag": 'W/"v1"'})

    async def run():
        async with _client(handler) as client:
            await client.directory()
            await client.messages("booking-42")
            await client.messages("campaign-7")
            cached = sorted(client._etags)
            await client.messages("booking-42")
            await client.directory()
            return cached

    cached = asyncio.run(run())
    assert cached == ["/threads", "/threads/campaign-7/messages"]
    # The reopened thread is fetched in full; the directory keeps its ETag.
    assert seen[3] == ("/api/v1/threads/booking-42/messages", None)
    assert seen[4] == ("/api/v1/threads", 'W/"dir"')


def test_server_error_is_transient():
    async def run():
        async with _client(lambda r: httpx.Response(503, json={"detail": "busy"})) as client:
            await client.directory()

    with pytest.raises(PollTransientFailure) as exc:
        asyncio.run(run())
    assert exc.value.status_code == 503


def test_network_error_is_transient():
    def handler(request):
        raise httpx.ConnectError("refused", request=request)

    async def run():
        async with _client(handler) as client:
            await client.directory()

    with pytest.raises(PollTransientFailure):
        asyncio.run(run())


def test_not_found_maps_to_access_denied():
    def handler(request):
        return httpx.Response(404, json={"detail": {"message": "Thread not found", "field_errors": {}}})

    async def run():
        async with _client(handler) as client:
            await client.messages("booking-7")

    with pytest.raises(ThreadAccessDenied) as exc:
        asyncio.run(run())
    assert exc.value.thread_id == "booking-7"


def test_empty_message_error_is_mapped():
    def handler(request):
        return httpx.Response(
            400,
            json={"detail": {"message": "Message must include text or an image", "field_errors": {"text": "required"}}},
        )

    async def run():
        async with _client(handler) as client:
            await client.send_message("booking-42", UserRole.CUSTOMER, text=None)

    with pytest.raises(EmptyMessage):
        asyncio.run(run())


def test_upload_failure_maps_to_upload_error():
    def handler(request):
        return httpx.Response(
            400, json={"detail": {"message": "Only image uploads are allowed", "field_errors": {"images": "invalid"}}}
        )

    async def run():
        async with _client(handler) as client:
            await client.upload("a.txt", b"x", "text/plain")

    with pytest.raises(UploadError, match="Only image uploads"):
        asyncio.run(run())


def test_send_message_posts_role_marker():
    bodies = []

    def handler(request):
        bodies.append(request.read())
        return httpx.Response(201, json={**MESSAGE, "sender_role": "agent"})

    async def run():
        async with _client(handler) as client:
            return await client.send_message("booking-42", UserRole.AGENT, text="Hi")

    msg = asyncio.run(run())
    assert msg.sender_role == UserRole.AGENT
    assert b'"role":"agent"' in bodies[0].replace(b" ", b"")
