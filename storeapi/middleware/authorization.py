"""
Role based access control

Roles map to permissions; services receive an AccessContext and check the
permission an operation needs before touching any data.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional, Set
from uuid import UUID
from fastapi import Depends

from storeapi.middleware.auth import get_current_user
from storeapi.models.user import User, UserRole
from storeapi.utils.exceptions import ForbiddenException


class Permission(str, Enum):
    """
    Permissions
    """

    # Addresses
    ADDRESS_READ_OWN = "address:read:own"
    ADDRESS_READ_ALL = "address:read:all"
    ADDRESS_MANAGE_OWN = "address:manage:own"
    ADDRESS_MANAGE_ALL = "address:manage:all"

    # Geography (states, cities, localities)
    GEOGRAPHY_READ = "geography:read"
    GEOGRAPHY_MANAGE = "geography:manage"


ROLE_PERMISSIONS: dict[UserRole, Set[Permission]] = {
    UserRole.CUSTOMER: {
        Permission.ADDRESS_READ_OWN,
        Permission.ADDRESS_MANAGE_OWN,
        Permission.GEOGRAPHY_READ,
    },
    UserRole.ADMIN: {
        Permission.ADDRESS_READ_OWN,
        Permission.ADDRESS_READ_ALL,
        Permission.ADDRESS_MANAGE_OWN,
        Permission.ADDRESS_MANAGE_ALL,
        Permission.GEOGRAPHY_READ,
        Permission.GEOGRAPHY_MANAGE,
    },
    UserRole.SUPER_ADMIN: set(Permission),
}


class RBACManager:
    """
    Role to permission lookups
    """

    @staticmethod
    def get_user_permissions(role: UserRole) -> Set[Permission]:
        return ROLE_PERMISSIONS.get(role, set())

    @staticmethod
    def has_permission(user_role: UserRole, required_permission: Permission) -> bool:
        return required_permission in RBACManager.get_user_permissions(user_role)

    @staticmethod
    def has_any_permission(user_role: UserRole, required_permissions: list) -> bool:
        """
        True when the role holds at least one of the permissions (OR)
        """
        user_permissions = RBACManager.get_user_permissions(user_role)
        return any(perm in user_permissions for perm in required_permissions)


@dataclass(frozen=True)
class AccessContext:
    """
    Who is calling, and as what role

    Passed into every service so permission checks happen before execution
    and independently of the HTTP layer.
    """

    actor_id: Optional[UUID]
    role: UserRole

    @classmethod
    def for_user(cls, user: User) -> "AccessContext":
        return cls(actor_id=user.id, role=UserRole(user.role))

    @classmethod
    def system(cls) -> "AccessContext":
        """Context for trusted internal callers such as seed scripts."""
        return cls(actor_id=None, role=UserRole.SUPER_ADMIN)

    def has(self, permission: Permission) -> bool:
        return RBACManager.has_permission(self.role, permission)

    def require(self, *permissions: Permission) -> None:
        """
        Require at least one of the given permissions

        Raises:
            ForbiddenException: none of the permissions is granted
        """
        if not RBACManager.has_any_permission(self.role, list(permissions)):
            raise ForbiddenException(
                message="This action requires one of: "
                + ", ".join(p.value for p in permissions),
                permission=permissions[0].value,
            )

    def ensure_address_access(self, owner_id: Any, manage: bool = False) -> None:
        """
        Check access to the addresses of `owner_id`

        Owners need the `:own` permission; anyone else needs `:all`.

        Raises:
            ForbiddenException: access denied
        """
        own, everyone = (
            (Permission.ADDRESS_MANAGE_OWN, Permission.ADDRESS_MANAGE_ALL)
            if manage
            else (Permission.ADDRESS_READ_OWN, Permission.ADDRESS_READ_ALL)
        )

        if self.has(everyone):
            return
        if self.actor_id is not None and self.actor_id == owner_id and self.has(own):
            return

        raise ForbiddenException(
            message="You can only access your own addresses.",
            permission=everyone.value,
        )


async def get_access_context(current_user: User = Depends(get_current_user)) -> AccessContext:
    """
    FastAPI dependency building the AccessContext of the authenticated user
    """
    return AccessContext.for_user(current_user)


def require_permission(*permissions: Permission):
    """
    Dependency factory requiring one of the given permissions (OR)

    Example:
        ```python
        @router.post("/states")
        async def create_state(
            context: AccessContext = Depends(require_permission(Permission.GEOGRAPHY_MANAGE))
        ):
            ...
        ```
    """

    async def permission_checker(
        context: AccessContext = Depends(get_access_context),
    ) -> AccessContext:
        context.require(*permissions)
        return context

    return permission_checker
