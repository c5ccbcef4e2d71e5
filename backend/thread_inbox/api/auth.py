"""Bearer tokens carrying the authorization context.

Sign-in lives elsewhere; this module only mints and reads the
``{sub: actor_id, role}`` claims the inbox authorises against.
"""

from datetime import datetime, timedelta, timezone
from typing import Optional

from jose import JWTError, jwt

from ..core.config import settings
from ..models.user import UserRole

SECRET_KEY = settings.SECRET_KEY
ALGORITHM = settings.ALGORITHM
ACCESS_TOKEN_EXPIRE_MINUTES = settings.ACCESS_TOKEN_EXPIRE_MINUTES


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None):
    to_encode = data.copy()
    if expires_delta:
        expire = datetime.now(timezone.utc) + expires_delta
    else:
        expire = datetime.now(timezone.utc) + timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES)
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, SECRET_KEY, algorithm=ALGORITHM)


def token_for(actor_id: int, role: UserRole | str, expires_delta: Optional[timedelta] = None) -> str:
    role_value = role.value if isinstance(role, UserRole) else UserRole(role).value
    return create_access_token({"sub": str(actor_id), "role": role_value}, expires_delta)


def decode_access_token(token: str) -> dict:
    """Return the token claims; raises ``JWTError`` when invalid or expired."""
    payload = jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])
    if payload.get("sub") is None or payload.get("role") is None:
        raise JWTError("missing claims")
    return payload
