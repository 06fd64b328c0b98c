"""Role-based access control.

The permission table is fixed at import time and exposed read-only; nothing
in the process can grant a role new permissions at runtime.
"""

from enum import Enum
from types import MappingProxyType

from shared.errors import ForbiddenError


class Role(Enum):
    USER = "user"
    ADMIN = "admin"


ROLE_PERMISSIONS = MappingProxyType(
    {
        Role.USER.value: frozenset(
            {
                "read:own_profile",
                "update:own_profile",
                "read:products",
                "create:cart",
                "read:own_cart",
                "update:own_cart",
                "delete:own_cart",
                "create:order",
                "read:own_orders",
                "update:own_orders",
            }
        ),
        Role.ADMIN.value: frozenset(
            {
                "read:all_users",
                "create:user",
                "update:user",
                "delete:user",
                "read:all_profiles",
                "update:all_profiles",
                "read:products",
                "create:product",
                "update:product",
                "delete:product",
                "read:all_carts",
                "read:all_orders",
                "update:all_orders",
                "delete:all_orders",
                "read:analytics",
            }
        ),
    }
)


def get_permissions(role: str) -> frozenset[str]:
    """Return every permission granted to ``role`` (empty for unknown roles)."""
    return ROLE_PERMISSIONS.get(role, frozenset())


def has_permission(role: str, permission: str) -> bool:
    return permission in get_permissions(role)


def can_access_resource(resource_owner_id: str, principal) -> bool:
    """Admins can access anything; everyone else only what they own."""
    if principal.role == Role.ADMIN.value:
        return True
    return str(principal.id) == str(resource_owner_id)


# ---------------------------------------------------------------------------
# Guards
# ---------------------------------------------------------------------------
def require_permission(principal, permission: str) -> None:
    if not has_permission(principal.role, permission):
        raise ForbiddenError(f"Permission denied. Required permission: {permission}")


def require_admin(principal) -> None:
    if principal.role != Role.ADMIN.value:
        raise ForbiddenError("Access denied. Administrator role required.")


def ensure_can_access(resource_owner_id: str, principal) -> None:
    if not can_access_resource(resource_owner_id, principal):
        raise ForbiddenError("Access denied. You can only access your own resources.")
