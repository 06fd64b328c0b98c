"""Authenticated principal.

Authentication happens upstream (API gateway / session middleware), which
forwards the caller's identity as ``X-User-Id`` and ``X-User-Role`` headers.
This module only reads that context; it never issues or verifies
credentials.
"""

from fastapi import Header, HTTPException
from pydantic import BaseModel, ConfigDict

from identity.access import Role


class Principal(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    role: str = Role.USER.value

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN.value


def _principal_from_headers(user_id: str | None, role: str | None) -> Principal | None:
    if not user_id:
        return None
    role = (role or Role.USER.value).lower()
    if role not in {r.value for r in Role}:
        raise HTTPException(status_code=401, detail=f"Unknown role: {role}")
    return Principal(id=user_id, role=role)


async def current_principal(
    x_user_id: str | None = Header(default=None),
    x_user_role: str | None = Header(default=None),
) -> Principal:
    """FastAPI dependency: the authenticated caller, or 401."""
    principal = _principal_from_headers(x_user_id, x_user_role)
    if principal is None:
        raise HTTPException(status_code=401, detail="Authentication required")
    return principal


async def optional_principal(
    x_user_id: str | None = Header(default=None),
    x_user_role: str | None = Header(default=None),
) -> Principal | None:
    """FastAPI dependency for public endpoints that personalise for signed-in callers."""
    return _principal_from_headers(x_user_id, x_user_role)
