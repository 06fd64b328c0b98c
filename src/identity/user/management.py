"""User administration: commands and handler."""

from protean import handle
from protean.exceptions import ValidationError
from protean.fields import Boolean, Identifier, String
from protean.utils.globals import current_domain

from identity.domain import logger
from identity.user.user import User
from shared.domain import storefront


@storefront.command(part_of="User")
class CreateUser:
    name = String(required=True, max_length=50)
    email = String(required=True, max_length=254)
    role = String(max_length=10)
    phone = String(max_length=20)
    created_by = Identifier()


@storefront.command(part_of="User")
class UpdateUser:
    """Fields left empty keep their current value."""

    user_id = Identifier(required=True)
    name = String(max_length=50)
    email = String(max_length=254)
    role = String(max_length=10)
    phone = String(max_length=20)
    is_active = Boolean()
    updated_by = Identifier()


@storefront.command(part_of="User")
class DeleteUser:
    user_id = Identifier(required=True)
    deleted_by = Identifier()


@storefront.command(part_of="User")
class RestoreUser:
    user_id = Identifier(required=True)
    restored_by = Identifier()


@storefront.command(part_of="User")
class ToggleUserStatus:
    user_id = Identifier(required=True)
    updated_by = Identifier()


def _email_already_registered():
    return ValidationError({"email": ["User already exists with this email"]})


@storefront.command_handler(part_of=User)
class ManageUserHandler:
    @handle(CreateUser)
    def create_user(self, command):
        repo = current_domain.repository_for(User)
        if repo.email_taken(command.email):
            raise _email_already_registered()

        user = User.create(
            name=command.name,
            email=command.email,
            role=command.role,
            phone=command.phone,
            created_by=command.created_by,
        )
        repo.add(user)

        logger.info("user_created", user_id=str(user.id), role=user.role)
        return str(user.id)

    @handle(UpdateUser)
    def update_user(self, command):
        repo = current_domain.repository_for(User)
        user = repo.get_user(command.user_id)

        changes = {
            field: getattr(command, field)
            for field in ("name", "email", "role", "phone", "is_active")
            if getattr(command, field) is not None
        }
        if "email" in changes and repo.email_taken(changes["email"], exclude_id=command.user_id):
            raise _email_already_registered()

        user.update_details(updated_by=command.updated_by, **changes)
        repo.add(user)

        logger.info("user_updated", user_id=str(user.id), fields=sorted(changes))
        return str(user.id)

    @handle(DeleteUser)
    def delete_user(self, command):
        repo = current_domain.repository_for(User)
        user = repo.get_user(command.user_id)
        user.soft_delete(deleted_by=command.deleted_by)
        repo.add(user)

        logger.info("user_deleted", user_id=str(user.id))
        return str(user.id)

    @handle(RestoreUser)
    def restore_user(self, command):
        repo = current_domain.repository_for(User)
        user = repo.get_deleted(command.user_id)
        user.restore(restored_by=command.restored_by)
        repo.add(user)

        logger.info("user_restored", user_id=str(user.id))
        return str(user.id)

    @handle(ToggleUserStatus)
    def toggle_user_status(self, command):
        repo = current_domain.repository_for(User)
        user = repo.get_user(command.user_id)
        user.toggle_status(updated_by=command.updated_by)
        repo.add(user)

        logger.info("user_status_toggled", user_id=str(user.id), is_active=user.is_active)
        return str(user.id)
