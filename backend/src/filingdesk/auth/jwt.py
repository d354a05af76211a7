"""Access token signing and verification.

Customers and staff log in through the identity service; this backend only
verifies the HS256 bearer tokens it issues. Claims:

    sub    user id (UUID string)
    role   CUSTOMER | TAX_ADVISOR | OPERATIONS | SUPER_ADMIN
    email  login email
    iat / exp  unix timestamps

The role claim is informational; authorization always reads the user row.
"""

from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional
from uuid import UUID

import jwt

from ..config import settings


def create_access_token(
    user_id: UUID,
    role: str,
    email: str,
    expires_in_minutes: Optional[int] = None,
) -> str:
    """Sign a token carrying the identity service's claim set.

    Used by tests and local tooling.
    """
    issued = datetime.now(timezone.utc)
    lifetime = timedelta(minutes=expires_in_minutes or settings.JWT_EXPIRY_MINUTES)
    claims = {
        "sub": str(user_id),
        "role": role,
        "email": email,
        "iat": int(issued.timestamp()),
        "exp": int((issued + lifetime).timestamp()),
    }
    return jwt.encode(claims, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


def decode_token(token: str) -> Dict[str, Any]:
    """Verify signature and expiry and return the claims.

    Raises:
        jwt.ExpiredSignatureError: token past ``exp``
        jwt.InvalidTokenError: malformed or signed with another key
    """
    return jwt.decode(
        token,
        settings.JWT_SECRET,
        algorithms=[settings.JWT_ALGORITHM],
        options={"require": ["sub", "exp"]},
    )
