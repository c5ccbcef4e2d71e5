import pytest
from sqlalchemy.exc import IntegrityError

from thread_inbox.crud import crud_message
from thread_inbox.models import UserRole
from thread_inbox.schemas import MessageCreate
from thread_inbox.services import messaging
from thread_inbox.services.access import ActorContext
from thread_inbox.threads import parse
from thread_inbox.utils.errors import EmptyMessage, MalformedThreadId, ThreadAccessDenied

from conftest import make_booking, make_celebrity, make_user


def _seed(db):
    customer = make_user(db, "cust")
    other = make_user(db, "other")
    agent = make_user(db, "agent", role=UserRole.AGENT)
    booking = make_booking(db, customer, make_celebrity(db))
    return customer, other, agent, booking


def test_first_reply_flow_orders_by_id(db):
    customer, _, agent, booking = _seed(db)
    thread_id = f"booking-{booking.id}"
    cust_ctx = ActorContext(customer.id, UserRole.CUSTOMER)
    agent_ctx = ActorContext(agent.id, UserRole.AGENT)

    first = messaging.post_message(db, cust_ctx, thread_id, MessageCreate(role="customer", text="Hi"))
    second = messaging.post_message(db, agent_ctx, thread_id, MessageCreate(role="agent", text="Hello!"))

    assert (first.id, second.id) == (1, 2)
    rows = messaging.read_thread(db, cust_ctx, thread_id)
    assert [(m.id, m.sender_role, m.text) for m in rows] == [
        (1, UserRole.CUSTOMER, "Hi"),
        (2, UserRole.AGENT, "Hello!"),
    ]
    assert rows[0].created_at <= rows[1].created_at


def test_ids_are_per_thread(db):
    customer, _, _, booking = _seed(db)
    other_booking = make_booking(db, customer, make_celebrity(db, "Echo"))
    ctx = ActorContext(customer.id, UserRole.CUSTOMER)
    messaging.post_message(db, ctx, f"booking-{booking.id}", MessageCreate(role="customer", text="a"))
    msg = messaging.post_message(db, ctx, f"booking-{other_booking.id}", MessageCreate(role="customer", text="b"))
    assert msg.id == 1


def test_empty_message_is_rejected_without_writing(db):
    customer, _, _, booking = _seed(db)
    ctx = ActorContext(customer.id, UserRole.CUSTOMER)
    with pytest.raises(EmptyMessage):
        messaging.post_message(db, ctx, f"booking-{booking.id}", MessageCreate(role="customer", text="   "))
    assert crud_message.count_messages(db) == 0


def test_image_only_message_is_accepted(db):
    customer, _, _, booking = _seed(db)
    ctx = ActorContext(customer.id, UserRole.CUSTOMER)
    msg = messaging.post_message(
        db, ctx, f"booking-{booking.id}", MessageCreate(role="customer", image_url="/uploads/a.png")
    )
    assert msg.text is None
    assert msg.image_url == "/uploads/a.png"


def test_customer_cannot_write_foreign_thread(db):
    _, other, _, booking = _seed(db)
    ctx = ActorContext(other.id, UserRole.CUSTOMER)
    with pytest.raises(ThreadAccessDenied):
        messaging.post_message(db, ctx, f"booking-{booking.id}", MessageCreate(role="customer", text="x"))
    assert crud_message.count_messages(db) == 0


def test_agent_must_send_with_agent_marker(db):
    _, _, agent, booking = _seed(db)
    ctx = ActorContext(agent.id, UserRole.AGENT)
    with pytest.raises(ThreadAccessDenied) as exc:
        messaging.post_message(db, ctx, f"booking-{booking.id}", MessageCreate(role="customer", text="x"))
    assert exc.value.reason == "role_mismatch"


def test_missing_transaction_is_access_denied(db):
    customer, _, _, _ = _seed(db)
    ctx = ActorContext(customer.id, UserRole.CUSTOMER)
    with pytest.raises(ThreadAccessDenied):
        messaging.read_thread(db, ctx, "campaign-999")


def test_malformed_thread_id(db):
    customer, _, _, _ = _seed(db)
    ctx = ActorContext(customer.id, UserRole.CUSTOMER)
    with pytest.raises(MalformedThreadId):
        messaging.read_thread(db, ctx, "booking-abc")


def test_append_retries_after_id_collision(db, Session, monkeypatch):
    customer, _, _, booking = _seed(db)
    ref = parse(f"booking-{booking.id}")
    crud_message.append_message(db, ref, UserRole.CUSTOMER, customer.id, "first", None)

    real_next = crud_message.next_message_id
    calls = []

    def racing_next(session, thread_id):
        calls.append(thread_id)
        # First allocation sees a stale max, as a concurrent writer would.
        if len(calls) == 1:
            return 1
        return real_next(session, thread_id)

    monkeypatch.setattr(crud_message, "next_message_id", racing_next)
    # A second session plays the concurrent writer.
    writer = Session()
    msg = crud_message.append_message(writer, ref, UserRole.AGENT, None, "second", None)
    writer.close()

    assert msg.id == 2
    assert len(calls) == 2
    assert [m.text for m in crud_message.get_messages_for_thread(db, ref.thread_id)] == ["first", "second"]


def test_append_gives_up_after_max_attempts(db, Session, monkeypatch):
    customer, _, _, booking = _seed(db)
    ref = parse(f"booking-{booking.id}")
    crud_message.append_message(db, ref, UserRole.CUSTOMER, customer.id, "first", None)
    monkeypatch.setattr(crud_message, "next_message_id", lambda session, thread_id: 1)

    with pytest.raises(IntegrityError):
        crud_message.append_message(Session(), ref, UserRole.CUSTOMER, customer.id, "again", None)
    assert crud_message.count_messages(db, ref.thread_id) == 1
