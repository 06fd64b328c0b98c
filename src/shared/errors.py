"""Error taxonomy shared by every bounded context.

Each error carries a stable ``kind`` that API clients can switch on, a
human-readable ``message`` suitable for display, and optional ``details``
that are merged into the error response body.
"""

from typing import Any

from protean.exceptions import ValidationError as ProteanValidationError
from pydantic import ValidationError as PydanticValidationError


class StorefrontError(Exception):
    """Base exception for business-rule violations."""

    kind = "Error"

    def __init__(self, message: str, **details: Any):
        self.message = message
        self.details = details
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        return {"error": self.kind, "message": self.message, **self.details}


class NotFoundError(StorefrontError):
    """Referenced product, cart or order does not exist (or is soft-deleted)."""

    kind = "NotFound"


class UnavailableError(StorefrontError):
    """Product exists but is inactive."""

    kind = "Unavailable"

    def __init__(self, product_id: str, message: str | None = None):
        super().__init__(message or "Product is not available", product_id=product_id)


class InsufficientStockError(StorefrontError):
    """Requested quantity exceeds current stock."""

    kind = "InsufficientStock"

    def __init__(self, product_id: str, available: int):
        self.available = available
        super().__init__(
            f"Only {available} items available in stock",
            product_id=product_id,
            available=available,
        )


class InvalidQuantityError(StorefrontError):
    kind = "InvalidQuantity"


class EmptyCartError(StorefrontError):
    kind = "EmptyCart"

    def __init__(self, message: str = "Cart is empty"):
        super().__init__(message)


class InvalidStateError(StorefrontError):
    """Illegal state transition attempted."""

    kind = "InvalidState"

    def __init__(self, message: str, current_status: str | None = None):
        if current_status is None:
            super().__init__(message)
        else:
            super().__init__(message, current_status=current_status)


class ForbiddenError(StorefrontError):
    kind = "Forbidden"


class ValidationFailedError(StorefrontError):
    """Field-level input violations, keyed by field name."""

    kind = "ValidationFailed"

    def __init__(self, errors: dict[str, list[str]]):
        self.errors = errors
        super().__init__("Validation failed", errors=errors)

    @classmethod
    def from_pydantic(cls, exc: PydanticValidationError) -> "ValidationFailedError":
        """Also accepts FastAPI's ``RequestValidationError``, which exposes the same ``errors()``."""
        errors: dict[str, list[str]] = {}
        for error in exc.errors():
            field = ".".join(str(part) for part in error["loc"]) or "__root__"
            errors.setdefault(field, []).append(error["msg"])
        return cls(errors)

    @classmethod
    def from_protean(cls, exc: ProteanValidationError) -> "ValidationFailedError":
        """Field errors raised by aggregates, value objects and commands."""
        messages = exc.messages if isinstance(exc.messages, dict) else {"__root__": [exc.messages]}
        errors: dict[str, list[str]] = {}
        for field, field_messages in messages.items():
            if not isinstance(field_messages, list):
                field_messages = [field_messages]
            errors[field] = [str(message) for message in field_messages]
        return cls(errors)


class ConcurrencyConflictError(StorefrontError):
    """The aggregate was modified by another request since it was read."""

    kind = "Conflict"
