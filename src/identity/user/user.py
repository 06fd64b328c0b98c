"""User aggregate: storefront accounts administered by the admin console.

Credentials are issued upstream; this aggregate holds the account record
(name, email, role, status) that the principal's id refers to.
"""

import re
from datetime import UTC, datetime

from protean import Index, invariant
from protean.exceptions import ValidationError
from protean.fields import Boolean, DateTime, Identifier, String

from identity.access import Role
from shared.domain import storefront
from shared.errors import InvalidStateError, NotFoundError

_EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")

_UNSET = object()


def normalize_email(email: str) -> str:
    return email.strip().lower()


@storefront.aggregate(
    schema_name="users",
    limit=-1,
    indexes=[Index("email", unique=True), Index("role", "is_active")],
)
class User:
    name = String(required=True, min_length=2, max_length=50)
    email = String(required=True, max_length=254, unique=True)
    role = String(max_length=10, choices=Role, default=Role.USER.value)
    phone = String(max_length=20)
    is_active = Boolean(default=True)
    is_deleted = Boolean(default=False)
    deleted_at = DateTime()
    created_by = Identifier()
    updated_by = Identifier()
    created_at = DateTime()
    updated_at = DateTime()

    @invariant.post
    def email_must_be_well_formed(self):
        if self.email and not _EMAIL_PATTERN.match(self.email):
            raise ValidationError({"email": ["Please provide a valid email"]})

    @invariant.post
    def deleted_user_cannot_be_active(self):
        if self.is_deleted and self.is_active:
            raise ValidationError({"is_active": ["A deleted user cannot be active"]})

    # -------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------
    @classmethod
    def create(cls, name, email, role=None, phone=None, created_by=None):
        now = datetime.now(UTC)
        return cls(
            name=name,
            email=normalize_email(email),
            role=role or Role.USER.value,
            phone=phone,
            created_by=created_by,
            updated_by=created_by,
            created_at=now,
            updated_at=now,
        )

    # -------------------------------------------------------------------
    # Admin edits
    # -------------------------------------------------------------------
    def update_details(
        self,
        name=_UNSET,
        email=_UNSET,
        role=_UNSET,
        phone=_UNSET,
        is_active=_UNSET,
        updated_by=None,
    ):
        """Apply an admin edit; arguments left unset keep their current value."""
        if self.is_deleted:
            raise NotFoundError("User not found")

        if name is not _UNSET:
            self.name = name
        if email is not _UNSET:
            self.email = normalize_email(email)
        if role is not _UNSET:
            self.role = role
        if phone is not _UNSET:
            self.phone = phone
        if is_active is not _UNSET:
            self.is_active = is_active
        self.updated_by = updated_by
        self.updated_at = datetime.now(UTC)

    def toggle_status(self, updated_by=None):
        if self.is_deleted:
            raise NotFoundError("User not found")
        if updated_by is not None and str(updated_by) == str(self.id):
            raise InvalidStateError("You cannot deactivate your own account")

        self.is_active = not self.is_active
        self.updated_by = updated_by
        self.updated_at = datetime.now(UTC)

    # -------------------------------------------------------------------
    # Soft delete / restore
    # -------------------------------------------------------------------
    def soft_delete(self, deleted_by=None):
        if self.is_deleted:
            raise NotFoundError("User not found")
        if deleted_by is not None and str(deleted_by) == str(self.id):
            raise InvalidStateError("You cannot delete your own account")

        now = datetime.now(UTC)
        self.is_active = False
        self.is_deleted = True
        self.deleted_at = now
        self.updated_by = deleted_by
        self.updated_at = now

    def restore(self, restored_by=None):
        if not self.is_deleted:
            raise NotFoundError("Deleted user not found")

        self.is_deleted = False
        self.is_active = True
        self.deleted_at = None
        self.updated_by = restored_by
        self.updated_at = datetime.now(UTC)
