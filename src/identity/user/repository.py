"""User lookups for the admin console."""

from protean.utils.query import Q

from identity.user.user import User, normalize_email
from shared.domain import storefront
from shared.errors import NotFoundError


@storefront.repository(part_of=User)
class UserRepository:
    def get_user(self, user_id: str) -> User:
        """Return a live (not soft-deleted) user."""
        user = self.get_or_none(user_id)
        if user is None or user.is_deleted:
            raise NotFoundError("User not found", user_id=user_id)
        return user

    def get_any(self, user_id: str) -> User:
        user = self.get_or_none(user_id)
        if user is None:
            raise NotFoundError("User not found", user_id=user_id)
        return user

    def get_deleted(self, user_id: str) -> User:
        user = self.get_or_none(user_id)
        if user is None or not user.is_deleted:
            raise NotFoundError("Deleted user not found", user_id=user_id)
        return user

    def email_taken(self, email: str, exclude_id: str | None = None) -> bool:
        criteria = Q(email=normalize_email(email))
        if exclude_id is not None:
            criteria &= ~Q(id=exclude_id)
        return self.exists(criteria)

    def search(self, search=None, role=None, is_active=None, deleted=False, offset=0, limit=20):
        """Newest first. Returns ``(users, total)``."""
        query = self.query.filter(is_deleted=deleted)
        if search and search.strip():
            term = search.strip()
            query = query.filter(Q(name__icontains=term) | Q(email__icontains=term))
        if role:
            query = query.filter(role=role)
        if is_active is not None:
            query = query.filter(is_active=is_active)

        results = query.order_by("-created_at").offset(offset).limit(limit).all()
        return results.items, results.total
