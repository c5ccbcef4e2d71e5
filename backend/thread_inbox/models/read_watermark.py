from sqlalchemy import Column, Integer, String, DateTime, PrimaryKeyConstraint

from ..database import Base


class ReadWatermark(Base):
    """``(thread_id, actor_id) -> last_read_at``.

    Coarse by design of the protocol: opening a thread moves the watermark to
    "now"; there is no per-message acknowledgement.
    """

    __tablename__ = "read_watermarks"
    __table_args__ = (
        PrimaryKeyConstraint("thread_id", "actor_id", name="pk_read_watermarks"),
    )

    thread_id = Column(String(64), nullable=False)
    actor_id = Column(Integer, nullable=False, index=True)
    last_read_at = Column(DateTime, nullable=False)
