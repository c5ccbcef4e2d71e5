from sqlalchemy import Column, Integer, ForeignKey, String, DateTime
from sqlalchemy.orm import relationship

from .base import BaseModel


class Booking(BaseModel):
    __tablename__ = "bookings"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    celebrity_id = Column(Integer, ForeignKey("celebrities.id"), nullable=False)
    # Lifecycle is owned elsewhere; the thread never depends on it.
    status = Column(String, nullable=False, default="pending")
    event_date = Column(DateTime, nullable=True)

    user = relationship("User")
    celebrity = relationship("Celebrity")
