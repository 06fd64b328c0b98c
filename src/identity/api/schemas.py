"""Pydantic request/response schemas for the Identity API."""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field

from identity.user.user import User
from shared.pagination import PaginationSchema

# --- Request Schemas ---


class CreateUserRequest(BaseModel):
    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "name": "Jane Doe",
                    "email": "jane.doe@example.com",
                    "role": "user",
                    "phone": "+1-555-0123",
                }
            ]
        }
    }

    name: str = Field(..., min_length=2, max_length=50)
    email: str = Field(..., max_length=254)
    role: Literal["user", "admin"] = "user"
    phone: str | None = Field(None, max_length=20)


class UpdateUserRequest(BaseModel):
    name: str | None = Field(None, min_length=2, max_length=50)
    email: str | None = Field(None, max_length=254)
    role: Literal["user", "admin"] | None = None
    phone: str | None = Field(None, max_length=20)
    is_active: bool | None = None


# --- Response Schemas ---


class UserSchema(BaseModel):
    id: str
    name: str
    email: str
    role: str
    phone: str | None = None
    is_active: bool
    is_deleted: bool
    deleted_at: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @classmethod
    def from_user(cls, user: User) -> "UserSchema":
        return cls(
            id=str(user.id),
            name=user.name,
            email=user.email,
            role=user.role,
            phone=user.phone,
            is_active=user.is_active,
            is_deleted=user.is_deleted,
            deleted_at=user.deleted_at,
            created_at=user.created_at,
            updated_at=user.updated_at,
        )


class UserResponse(BaseModel):
    success: bool = True
    message: str | None = None
    data: UserSchema


class UserListResponse(BaseModel):
    success: bool = True
    data: list[UserSchema]
    pagination: PaginationSchema
