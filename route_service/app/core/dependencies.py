"""
Requester identity dependencies for FastAPI.

Authentication itself happens at the gateway. When a bearer token is
forwarded, it is decoded so that per-route access rules can be applied;
requests without a token are treated as trusted internal calls.
"""

from typing import Optional
from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from route_service.app.core.jwt import decode_access_token
from route_service.app.core.exceptions import AuthenticationError, InsufficientPermissionsError
from route_service.app.models.enums import UserRole

# HTTP Bearer security scheme (token is optional)
security = HTTPBearer(auto_error=False)


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security)
) -> Optional[dict]:
    """
    Decode the forwarded JWT, if any.

    Returns:
        Decoded token payload, or None when no token was sent

    Raises:
        AuthenticationError: 401 if a token was sent but is invalid
    """
    if credentials is None:
        return None

    payload = decode_access_token(credentials.credentials)
    if payload is None:
        raise AuthenticationError("Could not validate credentials")

    if payload.get("user_id") is None or not payload.get("role"):
        raise AuthenticationError("Invalid token payload")

    return payload


def ensure_route_access(route, current_user: Optional[dict]) -> None:
    """
    Drivers may only see routes assigned to them; everyone else sees all.

    Raises:
        InsufficientPermissionsError: 403 if a driver requests another driver's route
    """
    if current_user is None:
        return

    if current_user.get("role") == UserRole.DRIVER.value and route.driver_id != current_user.get("user_id"):
        raise InsufficientPermissionsError(
            message="Unauthorized access",
            details={"route_id": route.id}
        )
