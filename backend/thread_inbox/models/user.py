from sqlalchemy import Boolean, Column, Integer, String
from .base import BaseModel
from .types import CaseInsensitiveEnum
import enum


class UserRole(str, enum.Enum):
    """Roles that can take part in a conversation thread."""

    CUSTOMER = "customer"
    AGENT = "agent"

    @classmethod
    def _missing_(cls, value: object):
        """Map the legacy ``admin``/``user`` role names."""
        if isinstance(value, str):
            lowered = value.lower()
            if lowered == "admin":
                return cls.AGENT
            if lowered == "user":
                return cls.CUSTOMER
        return None


class User(BaseModel):
    __tablename__ = "users"

    id           = Column(Integer, primary_key=True, index=True)
    username     = Column(String, unique=True, index=True, nullable=False)
    email        = Column(String, unique=True, index=True, nullable=True)
    first_name   = Column(String, nullable=True)
    last_name    = Column(String, nullable=True)
    role         = Column(CaseInsensitiveEnum(UserRole, name="userrole"), nullable=False, default=UserRole.CUSTOMER)
    is_active    = Column(Boolean, default=True)
    profile_picture_url = Column(String, nullable=True)
