"""Presentation rules for the two inbox audiences.

Both views read the same thread summaries and messages. They differ in how
the counterpart is named and which role the composer sends as.
"""

from __future__ import annotations

from typing import Optional

from ..core.config import settings
from ..models.user import UserRole
from ..schemas.message import MessageResponse
from ..schemas.threads import ThreadSummary


def topic_line(summary: ThreadSummary) -> str:
    return f"Topic: {summary.kind.value.capitalize()} #{summary.reference_id}"


def image_src(url: Optional[str]) -> Optional[str]:
    """Make a stored image URL usable by the UI.

    Absolute URLs pass through; bare ``uploads/...`` paths become rooted.
    """
    if not url:
        return None
    if url.startswith(("http://", "https://", "/")):
        return url
    prefix = settings.UPLOAD_URL_PREFIX.lstrip("/")
    if prefix and url.startswith(prefix + "/"):
        return "/" + url
    return url


class RoleView:
    role: UserRole

    def is_own(self, message: MessageResponse) -> bool:
        return message.sender_role == self.role

    def preview(self, summary: ThreadSummary) -> str:
        return summary.preview_label

    def thread_title(self, summary: ThreadSummary) -> str:
        raise NotImplementedError

    def thread_subtitle(self, summary: ThreadSummary) -> str:
        return topic_line(summary)

    def banner(self, summary: ThreadSummary) -> Optional[str]:
        return None


class CustomerView(RoleView):
    """The counterpart is always the celebrity; staff identity never shows."""

    role = UserRole.CUSTOMER

    def thread_title(self, summary: ThreadSummary) -> str:
        return summary.counterpart.display_name


class AgentView(RoleView):
    role = UserRole.AGENT

    def thread_title(self, summary: ThreadSummary) -> str:
        username = summary.customer.username if summary.customer else "unknown"
        return f"{summary.counterpart.display_name} (User: {username})"

    def banner(self, summary: ThreadSummary) -> Optional[str]:
        return f"Chatting as: {summary.counterpart.display_name} (Agent)"


def view_for(role: UserRole | str) -> RoleView:
    role = UserRole(role)
    return AgentView() if role == UserRole.AGENT else CustomerView()
