from datetime import datetime

from thread_inbox.client import AgentView, CustomerView, image_src, view_for
from thread_inbox.models import UserRole
from thread_inbox.schemas import MessageResponse, ThreadSummary


def _summary(**kwargs) -> ThreadSummary:
    data = dict(
        thread_id="booking-42",
        kind="booking",
        reference_id=42,
        counterpart={"display_name": "Nova", "image_url": "/img/nova.png"},
        created_at=datetime(2024, 1, 1),
        preview_label="No messages yet",
    )
    data.update(kwargs)
    return ThreadSummary(**data)


def _msg(role: UserRole) -> MessageResponse:
    return MessageResponse(id=1, thread_id="booking-42", sender_role=role, text="x", created_at=datetime(2024, 1, 1))


def test_customer_view_shows_celebrity_only():
    view = CustomerView()
    summary = _summary()
    assert view.thread_title(summary) == "Nova"
    assert view.thread_subtitle(summary) == "Topic: Booking #42"
    assert view.banner(summary) is None
    assert view.preview(summary) == "No messages yet"


def test_agent_view_names_customer_and_persona():
    view = AgentView()
    summary = _summary(
        thread_id="campaign-7",
        kind="campaign",
        reference_id=7,
        customer={"id": 3, "username": "alice"},
    )
    assert view.thread_title(summary) == "Nova (User: alice)"
    assert view.banner(summary) == "Chatting as: Nova (Agent)"
    assert view.thread_subtitle(summary) == "Topic: Campaign #7"


def test_own_bubbles_follow_viewer_role():
    assert CustomerView().is_own(_msg(UserRole.CUSTOMER))
    assert not CustomerView().is_own(_msg(UserRole.AGENT))
    assert AgentView().is_own(_msg(UserRole.AGENT))


def test_view_for_role():
    assert isinstance(view_for("agent"), AgentView)
    assert isinstance(view_for(UserRole.CUSTOMER), CustomerView)
    assert isinstance(view_for("admin"), AgentView)


def test_image_src_normalisation():
    assert image_src("uploads/a.png") == "/uploads/a.png"
    assert image_src("/uploads/a.png") == "/uploads/a.png"
    assert image_src("https://cdn.example.com/a.png") == "https://cdn.example.com/a.png"
    assert image_src(None) is None
    assert image_src("") is None
