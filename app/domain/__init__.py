"""Domain layer: enums and exceptions.

No dependencies on infrastructure or presentation. Used by the persistence
and realtime layers.
"""

from app.domain.enums import (
    ConversationType,
    EntityType,
    InvitationStatus,
    ProjectStatus,
    TaskStatus,
    TenantRole,
)
from app.domain.exceptions import (
    ClientFactoryNotConfiguredError,
    CollabException,
    EntityNotExposedError,
    InvalidQueryError,
    RecordNotFoundError,
    ScopingConfigurationError,
    SqlNotConfiguredException,
)

__all__ = [
    # Enums
    "ConversationType",
    "EntityType",
    "InvitationStatus",
    "ProjectStatus",
    "TaskStatus",
    "TenantRole",
    # Exceptions
    "ClientFactoryNotConfiguredError",
    "CollabException",
    "EntityNotExposedError",
    "InvalidQueryError",
    "RecordNotFoundError",
    "ScopingConfigurationError",
    "SqlNotConfiguredException",
]
