"""
Middleware package

Authentication and authorization dependencies.
"""

from storeapi.middleware.auth import (
    get_current_user,
    get_current_user_id,
    AuthenticationError,
)

from storeapi.middleware.authorization import (
    Permission,
    RBACManager,
    AccessContext,
    get_access_context,
    require_permission,
)

__all__ = [
    "get_current_user",
    "get_current_user_id",
    "AuthenticationError",
    "Permission",
    "RBACManager",
    "AccessContext",
    "get_access_context",
    "require_permission",
]
