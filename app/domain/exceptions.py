"""Domain exceptions for the collaboration backend.

Defines exceptions raised by the scoped data access layer and its wiring.
Storage failures raised by SQLAlchemy or the driver are not wrapped: they
propagate to the caller unchanged. Presentation layer maps these exceptions
to HTTP responses in exception handlers.
"""

from typing import Any


class CollabException(Exception):
    """Base exception for all application errors.

    Attributes:
        message: Human-readable error description.
        error_code: Machine-readable error code.
        details: Additional error context (e.g. entity, field).
    """

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize the exception.

        Args:
            message: Human-readable error description.
            error_code: Optional machine-readable code; defaults to class name.
            details: Optional dict of extra context.
        """
        self.message = message
        self.error_code = error_code or self.__class__.__name__
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        """Serialize for JSON error responses."""
        return {
            "error": self.error_code,
            "message": self.message,
            "details": self.details,
        }


class RecordNotFoundError(CollabException):
    """Raised by the data client when a single-record write or *_or_raise read matches no row.

    Under a scoped client this is also what a caller sees when the row exists
    but belongs to another scope.
    """

    def __init__(self, entity: str, where: dict[str, Any] | None = None) -> None:
        """Initialize with entity type and the filter that matched nothing.

        Args:
            entity: Entity type name (e.g. 'task').
            where: The effective filter (after scoping).
        """
        super().__init__(
            f"No {entity} record found for the given filter",
            "RECORD_NOT_FOUND",
            {"entity": entity, "where": repr(where or {})},
        )


class InvalidQueryError(CollabException):
    """Raised when a filter, order or data dict names a field the entity does not have."""

    def __init__(self, entity: str, field: str, reason: str = "unknown field") -> None:
        super().__init__(
            f"Invalid query on {entity}: {reason} '{field}'",
            "INVALID_QUERY",
            {"entity": entity, "field": field},
        )


class EntityNotExposedError(CollabException, AttributeError):
    """Raised when a scoped client is asked for an entity type it does not expose.

    Subclasses AttributeError so that ``hasattr(client, "tenant")`` is False
    for entity types without a scoping strategy.
    """

    def __init__(self, entity: str, scope_kind: str) -> None:
        super().__init__(
            f"Entity '{entity}' is not exposed by {scope_kind}-scoped clients",
            "ENTITY_NOT_EXPOSED",
            {"entity": entity, "scope_kind": scope_kind},
        )


class ScopingConfigurationError(CollabException):
    """Raised at startup when a scoping strategy references a missing column or relation."""

    def __init__(self, entity: str, reason: str) -> None:
        super().__init__(
            f"Invalid scoping rule for '{entity}': {reason}",
            "SCOPING_CONFIGURATION_ERROR",
            {"entity": entity},
        )


class ClientFactoryNotConfiguredError(CollabException):
    """Raised when scoped clients are requested before the factory is registered at startup."""

    def __init__(self) -> None:
        super().__init__(
            "Scoped client factory is not configured; call set_client_factory() at startup.",
            "SERVICE_UNAVAILABLE",
        )


class SqlNotConfiguredException(CollabException):
    """Raised when an operation requires a SQL database that is not configured."""

    def __init__(self) -> None:
        super().__init__(
            message="This operation requires a SQL database that is not configured.",
            error_code="SERVICE_UNAVAILABLE",
        )
