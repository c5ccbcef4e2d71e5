"""HTTP transport for the inbox client.

Wraps ``httpx.AsyncClient`` and maps responses onto the domain errors in
``thread_inbox.utils.errors``. GET responses are cached per URL together with
their ETag so a ``304 Not Modified`` still yields the full last body. The
cache holds the directory and the most recently fetched thread only.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Tuple

import httpx

from ..core.config import settings
from ..models.user import UserRole
from ..schemas.message import MessageResponse
from ..schemas.storage import UploadOut
from ..schemas.threads import MarkReadResponse, ThreadSummary
from ..utils.errors import (
    EmptyMessage,
    InboxError,
    PollTransientFailure,
    ThreadAccessDenied,
    UploadError,
)

logger = logging.getLogger(__name__)


def _detail(response: httpx.Response) -> Dict[str, Any]:
    try:
        body = response.json()
    except ValueError:
        return {}
    detail = body.get("detail") if isinstance(body, dict) else None
    return detail if isinstance(detail, dict) else {}


class InboxClient:
    """Async client for the ``/api/v1`` thread endpoints."""

    def __init__(
        self,
        base_url: str,
        token: str,
        *,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self._http = httpx.AsyncClient(
            base_url=base_url.rstrip("/") + settings.API_V1_STR,
            headers={"Authorization": f"Bearer {token}"},
            timeout=timeout or settings.CLIENT_TIMEOUT_SECONDS,
            transport=transport,
        )
        self._etags: Dict[str, Tuple[str, Any]] = {}

    async def aclose(self) -> None:
        await self._http.aclose()

    async def __aenter__(self) -> "InboxClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def _request(self, method: str, url: str, **kwargs) -> httpx.Response:
        try:
            response = await self._http.request(method, url, **kwargs)
        except httpx.HTTPError as exc:
            logger.warning("Request %s %s failed: %s", method, url, exc)
            raise PollTransientFailure(str(exc)) from exc
        if response.status_code >= 500:
            raise PollTransientFailure(
                f"Server error {response.status_code} for {url}",
                status_code=response.status_code,
            )
        return response

    def _raise_for_client_error(self, response: httpx.Response, thread_id: str | None = None) -> None:
        code = response.status_code
        if code < 400:
            return
        detail = _detail(response)
        field_errors = detail.get("field_errors") or {}
        if code == 404 and thread_id is not None:
            raise ThreadAccessDenied(thread_id, "not_found")
        if code == 400 and field_errors.get("text") == "required":
            raise EmptyMessage()
        raise InboxError(detail.get("message") or f"HTTP {code}")

    async def _get_cached(self, url: str, thread_id: str | None = None) -> Any:
        headers = {}
        cached = self._etags.get(url)
        if cached:
            headers["If-None-Match"] = cached[0]
        response = await self._request("GET", url, headers=headers)
        if response.status_code == 304 and cached:
            return cached[1]
        self._raise_for_client_error(response, thread_id)
        payload = response.json()
        if thread_id is not None:
            # Only the open thread is polled; older thread bodies are dropped.
            for key in [k for k in self._etags if k != url and k.startswith("/threads/")]:
                del self._etags[key]
        etag = response.headers.get("ETag")
        if etag:
            self._etags[url] = (etag, payload)
        return payload

    async def directory(self) -> List[ThreadSummary]:
        payload = await self._get_cached("/threads")
        return [ThreadSummary.model_validate(item) for item in payload]

    async def messages(self, thread_id: str) -> List[MessageResponse]:
        payload = await self._get_cached(f"/threads/{thread_id}/messages", thread_id)
        rows = [MessageResponse.model_validate(item) for item in payload]
        return sorted(rows, key=lambda m: m.id)

    async def send_message(
        self,
        thread_id: str,
        role: UserRole,
        text: Optional[str] = None,
        image_url: Optional[str] = None,
    ) -> MessageResponse:
        body = {"role": UserRole(role).value, "text": text, "image_url": image_url}
        response = await self._request("POST", f"/threads/{thread_id}/messages", json=body)
        self._raise_for_client_error(response, thread_id)
        return MessageResponse.model_validate(response.json())

    async def upload(self, filename: str, data: bytes, content_type: str) -> str:
        try:
            response = await self._request(
                "POST",
                "/uploads",
                files={"images": (filename, data, content_type)},
            )
        except PollTransientFailure as exc:
            raise UploadError(str(exc)) from exc
        if response.status_code >= 400:
            detail = _detail(response)
            raise UploadError(detail.get("message") or f"Upload failed ({response.status_code})")
        return UploadOut.model_validate(response.json()).url

    async def mark_read(self, thread_id: str) -> MarkReadResponse:
        response = await self._request("POST", f"/threads/{thread_id}/read")
        self._raise_for_client_error(response, thread_id)
        return MarkReadResponse.model_validate(response.json())
