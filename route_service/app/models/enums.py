"""
User roles enumeration.

Roles carried in gateway-issued tokens.
"""

import enum


class UserRole(str, enum.Enum):
    """
    User role enumeration.

    Roles:
        ADMIN: Full access to every route
        MANAGER: Dispatches and monitors routes
        DRIVER: May only read routes assigned to them
    """
    ADMIN = "ADMIN"
    MANAGER = "MANAGER"
    DRIVER = "DRIVER"
