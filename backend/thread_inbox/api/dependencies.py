from typing import Optional

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError

from ..database import get_db  # noqa: F401  (re-exported for routers and tests)
from ..models.user import UserRole
from ..services.access import ActorContext
from .auth import decode_access_token

bearer_scheme = HTTPBearer(auto_error=False)


def get_current_actor(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> ActorContext:
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )
    jwt_token = credentials.credentials if credentials else request.cookies.get("access_token")
    if not jwt_token:
        raise credentials_exception
    try:
        payload = decode_access_token(jwt_token)
        actor_id = int(payload["sub"])
        role = UserRole(payload["role"])
    except (JWTError, KeyError, TypeError, ValueError):
        raise credentials_exception
    return ActorContext(actor_id=actor_id, role=role)
