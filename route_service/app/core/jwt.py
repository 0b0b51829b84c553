"""
JWT token utilities.

Tokens are issued by the gateway; this service only reads the requester's
identity (user_id, role) from them. Issuing is kept for local tooling and
tests, signed with the same shared secret.
"""

from datetime import datetime, timedelta
from typing import Optional, Dict, Any
from jose import JWTError, jwt
from route_service.app.core.config import settings
from route_service.app.models.enums import UserRole


def issue_requester_token(
    user_id: int,
    role: UserRole,
    expires_delta: Optional[timedelta] = None
) -> str:
    """
    Sign a token carrying a requester identity.

    Example payload:
        {"sub": "driver_7", "user_id": 7, "role": "DRIVER", "exp": 1234567890}
    """
    lifetime = expires_delta or timedelta(minutes=settings.access_token_expire_minutes)
    claims = {
        "sub": f"{role.value.lower()}_{user_id}",
        "user_id": user_id,
        "role": role.value,
        "exp": datetime.utcnow() + lifetime,
    }
    return jwt.encode(claims, settings.secret_key, algorithm=settings.algorithm)


def decode_access_token(token: str) -> Optional[Dict[str, Any]]:
    """
    Decode and validate a JWT access token.

    Returns:
        Decoded token payload if the signature and expiry check out, None otherwise
    """
    try:
        return jwt.decode(token, settings.secret_key, algorithms=[settings.algorithm])
    except JWTError:
        return None
