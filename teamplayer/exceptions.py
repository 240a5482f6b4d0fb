"""Domain exceptions.

Every failure raised by the repository and auth layers derives from
``TeamPlayerError`` so callers can catch the whole family at once and still
tell the kinds apart through ``code``. A lookup that finds nothing returns
``None`` instead of raising; ``NotFoundError`` is reserved for writes.
"""

from typing import Optional


class TeamPlayerError(Exception):
    """Base exception for teamplayer errors."""

    def __init__(self, message: str, code: str = "TEAMPLAYER_ERROR"):
        self.message = message
        self.code = code
        super().__init__(message)


class ValidationError(TeamPlayerError):
    """Input is malformed or inconsistent (missing required field, bad enum value,
    dangling parent reference)."""

    def __init__(self, message: str, errors: Optional[list] = None):
        self.errors = errors or []
        super().__init__(message=message, code="VALIDATION_ERROR")


class DuplicateEntityError(TeamPlayerError):
    """A uniqueness rule would be violated (member email, username)."""

    def __init__(self, entity: str, field: str, value: str):
        self.entity = entity
        self.field = field
        self.value = value
        super().__init__(
            message=f"A {entity} with this {field} already exists",
            code="DUPLICATE_ENTITY",
        )


class NotFoundError(TeamPlayerError):
    """Update or delete targeted a row that does not exist."""

    def __init__(self, entity: str, entity_id: int):
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(
            message=f"{entity} {entity_id} not found",
            code="NOT_FOUND",
        )


class StorageError(TeamPlayerError):
    """The underlying transaction could not complete."""

    def __init__(self, message: str):
        super().__init__(message=message, code="STORAGE_FAILURE")
