"""Send pipeline for one open thread.

An image send is two calls: upload the file, then create the message that
references its URL. The create call only happens after a successful upload;
an upload that succeeds before a failed create is left orphaned.
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from typing import Optional

from ..models.user import UserRole
from ..schemas.message import MessageResponse
from ..utils.errors import EmptyMessage, InboxError
from .api import InboxClient
from .sync import InboxSync

logger = logging.getLogger(__name__)


class ComposerState(str, enum.Enum):
    IDLE = "idle"
    UPLOADING = "uploading"
    CREATING = "creating"
    SETTLED_OK = "settled_ok"
    SETTLED_FAILED = "settled_failed"


class ComposerBusy(InboxError):
    """A send is already in flight for this composer."""

    def __init__(self) -> None:
        super().__init__("A message is already being sent")


@dataclass
class Attachment:
    filename: str
    data: bytes
    content_type: str


class Composer:
    def __init__(
        self,
        client: InboxClient,
        thread_id: str,
        role: UserRole,
        *,
        sync: Optional[InboxSync] = None,
    ):
        self.client = client
        self.thread_id = thread_id
        self.role = UserRole(role)
        self.sync = sync
        self.draft = ""
        self.state = ComposerState.IDLE
        self.last_error: Optional[Exception] = None
        # How the most recent send settled; ``state`` is back to IDLE by then.
        self.outcome: Optional[ComposerState] = None
        # Held from entry until the post-send refresh has finished.
        self._in_flight = False

    @property
    def busy(self) -> bool:
        return self._in_flight

    async def send(self, file: Optional[Attachment] = None) -> MessageResponse:
        """Send the current draft, with an optional image.

        On success the draft is cleared and the open thread refreshed. On
        failure the draft is kept and the error re-raised; nothing is retried.
        """
        if self.busy:
            raise ComposerBusy()
        text = self.draft.strip() or None
        if text is None and file is None:
            raise EmptyMessage()

        self._in_flight = True
        self.last_error = None
        try:
            try:
                image_url = None
                if file is not None:
                    self.state = ComposerState.UPLOADING
                    image_url = await self.client.upload(file.filename, file.data, file.content_type)
                self.state = ComposerState.CREATING
                message = await self.client.send_message(
                    self.thread_id, self.role, text=text, image_url=image_url
                )
            except Exception as exc:
                self.outcome = ComposerState.SETTLED_FAILED
                self.last_error = exc
                logger.warning("Send to %s failed: %s", self.thread_id, exc)
                raise

            self.state = self.outcome = ComposerState.SETTLED_OK
            self.draft = ""
            if self.sync is not None and self.sync.active_thread_id == self.thread_id:
                await self.sync.refresh_active()
            return message
        finally:
            self.state = ComposerState.IDLE
            self._in_flight = False
