from sqlalchemy import (
    Column,
    Integer,
    Text,
    DateTime,
    ForeignKey,
    String,
    Index,
    PrimaryKeyConstraint,
    CheckConstraint,
)
from sqlalchemy.orm import relationship

from ..database import Base
from ..threads.identity import ThreadKind
from ..utils.clock import utcnow
from .types import CaseInsensitiveEnum
from .user import UserRole


# Both roles write through the same column; a message's role never changes.
SenderRole = UserRole


class Message(Base):
    """One entry of a thread's append-only log.

    Rows are keyed by ``(thread_id, id)`` where ``id`` is a per-thread
    sequence starting at 1. Rows are never updated or deleted.
    """

    __tablename__ = "messages"
    __table_args__ = (
        PrimaryKeyConstraint("thread_id", "id", name="pk_messages"),
        CheckConstraint(
            "text IS NOT NULL OR image_url IS NOT NULL",
            name="ck_messages_text_or_image",
        ),
        Index("ix_messages_thread_created", "thread_id", "created_at"),
        Index("ix_messages_reference", "thread_kind", "reference_id"),
    )

    thread_id = Column(String(64), nullable=False)
    id = Column(Integer, nullable=False, autoincrement=False)
    thread_kind = Column(CaseInsensitiveEnum(ThreadKind, name="threadkind"), nullable=False)
    reference_id = Column(Integer, nullable=False)
    sender_role = Column(CaseInsensitiveEnum(SenderRole, name="senderrole"), nullable=False)
    # Physical actor, kept for audit only; the counterpart only sees the role.
    sender_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    text = Column(Text, nullable=True)
    image_url = Column(String, nullable=True)
    created_at = Column(DateTime, nullable=False, default=utcnow)

    sender = relationship("User")
