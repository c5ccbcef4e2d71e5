from sqlalchemy import Column, Integer, String

from .base import BaseModel


class Celebrity(BaseModel):
    """The persona a thread's agent speaks for."""

    __tablename__ = "celebrities"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    image_url = Column(String, nullable=True)
