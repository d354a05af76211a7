"""Bearer-token authentication and role gates for the routers.

    @router.get("/filings")
    def list_filings(user: CurrentUser): ...

    @router.get("/admin/filings/stats")
    def stats(user: StatsUser): ...
"""

from typing import Annotated, Callable, Iterable
from uuid import UUID

import jwt
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from ..database import get_db
from ..models.user import User
from ..observability.request_id import bind_actor
from .jwt import decode_token
from .roles import STAFF_ROLES, STATS_ROLES, UserRole, UserStatus

bearer_scheme = HTTPBearer()


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def _subject(token: str) -> UUID:
    """User id from the ``sub`` claim of a verified token."""
    try:
        claims = decode_token(token)
    except jwt.ExpiredSignatureError:
        raise _unauthorized("Token has expired")
    except jwt.InvalidTokenError as exc:
        raise _unauthorized(str(exc))

    subject = claims.get("sub")
    if not subject:
        raise _unauthorized("Invalid token: missing user ID claim")
    try:
        return UUID(subject)
    except ValueError:
        raise _unauthorized("Invalid token: malformed user ID claim")


def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(bearer_scheme),
    db: Session = Depends(get_db),
) -> User:
    """Load the ACTIVE user the bearer token was issued to.

    Raises:
        HTTPException 401: bad, expired or orphaned token
        HTTPException 403: account not ACTIVE
    """
    user = db.get(User, _subject(credentials.credentials))
    if user is None:
        raise _unauthorized("User not found")
    if user.status != UserStatus.ACTIVE.value:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="User account is disabled")

    bind_actor(user.id)
    return user


def require_roles(allowed_roles: Iterable[UserRole]) -> Callable:
    """Dependency factory admitting only ``allowed_roles`` (403 otherwise)."""
    allowed = frozenset(allowed_roles)

    def role_gate(current_user: User = Depends(get_current_user)) -> User:
        try:
            role = UserRole(current_user.role)
        except ValueError:
            role = None
        if role not in allowed:
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Insufficient permissions")
        return current_user

    return role_gate


CurrentUser = Annotated[User, Depends(get_current_user)]
StaffUser = Annotated[User, Depends(require_roles(STAFF_ROLES))]
StatsUser = Annotated[User, Depends(require_roles(STATS_ROLES))]
