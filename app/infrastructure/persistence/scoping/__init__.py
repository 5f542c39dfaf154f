"""Scoping rules and the query interception that applies them."""

from app.infrastructure.persistence.scoping.extension import ScopingExtension
from app.infrastructure.persistence.scoping.rules import (
    TENANT_SCOPING_RULES,
    USER_SCOPING_RULES,
    ScopingRegistry,
)
from app.infrastructure.persistence.scoping.strategies import (
    DirectColumn,
    OrCondition,
    PersonalOrShared,
    RelationPath,
    ScopingStrategy,
)

__all__ = [
    "TENANT_SCOPING_RULES",
    "USER_SCOPING_RULES",
    "DirectColumn",
    "OrCondition",
    "PersonalOrShared",
    "RelationPath",
    "ScopingExtension",
    "ScopingRegistry",
    "ScopingStrategy",
]
