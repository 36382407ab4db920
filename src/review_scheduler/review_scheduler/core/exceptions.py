from __future__ import annotations

from typing import Optional


class DomainError(Exception):
    """Base exception for business rule violations."""

    kind = "domain_error"


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""

    kind = "validation_error"


class AuthorizationError(DomainError):
    """Raised when a principal lacks permission for an action."""

    kind = "forbidden"


class NotFoundError(DomainError):
    """Raised when a referenced entity does not exist.

    The entity name is kept separately so the HTTP layer can report it.
    """

    kind = "not_found"

    def __init__(self, entity: str, entity_id: Optional[object] = None):
        self.entity = entity
        self.entity_id = entity_id
        msg = f"{entity} not found"
        if entity_id is not None:
            msg = f"{entity} {entity_id} not found"
        super().__init__(msg)


class ConflictError(DomainError):
    """Raised when an action collides with existing state (double booking, quota, completed phase)."""

    kind = "conflict"


class PreconditionFailedError(DomainError):
    """Raised when an action is attempted out of the allowed state-machine order."""

    kind = "precondition_failed"
