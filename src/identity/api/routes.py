"""FastAPI endpoints for the Identity domain: admin user management."""

from fastapi import APIRouter, Depends, Query
from protean.utils.globals import current_domain

from identity.access import require_permission
from identity.api.schemas import CreateUserRequest, UpdateUserRequest, UserListResponse, UserResponse, UserSchema
from identity.principal import Principal, current_principal
from identity.user.management import CreateUser, DeleteUser, RestoreUser, ToggleUserStatus, UpdateUser
from identity.user.user import User
from shared.pagination import Pagination

user_router = APIRouter(prefix="/users", tags=["users"])


def _user_response(user_id: str, message: str | None = None) -> UserResponse:
    user = current_domain.repository_for(User).get_any(user_id)
    return UserResponse(message=message, data=UserSchema.from_user(user))


@user_router.get("", response_model=UserListResponse)
async def list_users(
    search: str | None = None,
    role: str | None = None,
    is_active: bool | None = None,
    deleted: bool = False,
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=20, ge=1, le=100),
    principal: Principal = Depends(current_principal),
) -> UserListResponse:
    require_permission(principal, "read:all_users")

    pagination = Pagination.build(page, limit, default_limit=20)
    users, total = current_domain.repository_for(User).search(
        search=search,
        role=role,
        is_active=is_active,
        deleted=deleted,
        offset=pagination.skip,
        limit=pagination.limit,
    )
    return UserListResponse(
        data=[UserSchema.from_user(u) for u in users],
        pagination=pagination.with_total(total).to_dict(),
    )


@user_router.get("/{user_id}", response_model=UserResponse)
async def get_user(user_id: str, principal: Principal = Depends(current_principal)) -> UserResponse:
    require_permission(principal, "read:all_users")
    return _user_response(user_id)


@user_router.post("", status_code=201, response_model=UserResponse)
async def create_user(body: CreateUserRequest, principal: Principal = Depends(current_principal)) -> UserResponse:
    require_permission(principal, "create:user")
    command = CreateUser(
        name=body.name,
        email=body.email,
        role=body.role,
        phone=body.phone,
        created_by=principal.id,
    )
    user_id = current_domain.process(command, asynchronous=False)
    return _user_response(user_id, "User created successfully")


@user_router.put("/{user_id}", response_model=UserResponse)
async def update_user(
    user_id: str,
    body: UpdateUserRequest,
    principal: Principal = Depends(current_principal),
) -> UserResponse:
    require_permission(principal, "update:user")
    command = UpdateUser(user_id=user_id, updated_by=principal.id, **body.model_dump(exclude_none=True))
    current_domain.process(command, asynchronous=False)
    return _user_response(user_id, "User updated successfully")


@user_router.delete("/{user_id}", response_model=UserResponse)
async def delete_user(user_id: str, principal: Principal = Depends(current_principal)) -> UserResponse:
    require_permission(principal, "delete:user")
    current_domain.process(DeleteUser(user_id=user_id, deleted_by=principal.id), asynchronous=False)
    return _user_response(user_id, "User deleted successfully")


@user_router.put("/{user_id}/restore", response_model=UserResponse)
async def restore_user(user_id: str, principal: Principal = Depends(current_principal)) -> UserResponse:
    require_permission(principal, "update:user")
    current_domain.process(RestoreUser(user_id=user_id, restored_by=principal.id), asynchronous=False)
    return _user_response(user_id, "User restored successfully")


@user_router.put("/{user_id}/toggle-status", response_model=UserResponse)
async def toggle_user_status(user_id: str, principal: Principal = Depends(current_principal)) -> UserResponse:
    require_permission(principal, "update:user")
    current_domain.process(ToggleUserStatus(user_id=user_id, updated_by=principal.id), asynchronous=False)
    return _user_response(user_id, "User status updated successfully")
