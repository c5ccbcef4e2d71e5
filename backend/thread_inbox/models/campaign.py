from sqlalchemy import Column, Integer, ForeignKey, String
from sqlalchemy.orm import relationship

from .base import BaseModel


class Campaign(BaseModel):
    __tablename__ = "campaigns"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    celebrity_id = Column(Integer, ForeignKey("celebrities.id"), nullable=False)
    title = Column(String, nullable=True)
    status = Column(String, nullable=False, default="pending")

    user = relationship("User")
    celebrity = relationship("Celebrity")
