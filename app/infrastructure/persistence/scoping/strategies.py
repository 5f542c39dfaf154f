"""Scoping strategies: how an entity type's rows are tied to a scope value.

A strategy turns a bound scope value (tenant id or user id) into filter and
data rewrites for the data client. Four kinds exist:

- DirectColumn: the row carries the scope value in a column.
- RelationPath: the scope column lives on a parent reached by one or more
  many-to-one hops (comment -> task -> project).
- OrCondition: the row is visible either through a scoped parent or, when it
  has no parent, through its owner's membership in the tenant.
- PersonalOrShared: user-scoped personal rows, i.e. owned by the user and not
  linked to any project.

Strategies are immutable and shared by every scoped client.
"""

from abc import ABC, abstractmethod
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, ClassVar

from sqlalchemy import inspect as sa_inspect
from sqlalchemy.orm import RelationshipDirection

from app.domain.exceptions import ScopingConfigurationError
from app.infrastructure.persistence.client import QueryArgs
from app.infrastructure.persistence.operations import (
    FILTERED_OPERATIONS,
    UNIQUE_OPERATIONS,
    Operation,
)

Where = Mapping[str, Any]


def and_where(where: Where | None, condition: Where) -> dict[str, Any]:
    """AND a scope condition onto a caller filter without touching the caller's keys."""
    if not where:
        return dict(condition)
    return {"AND": [dict(where), dict(condition)]}


def nest(path: tuple[str, ...], condition: Where) -> dict[str, Any]:
    """Wrap condition in relation hops: nest(("task", "project"), c) -> {"task": {"project": c}}."""
    nested: dict[str, Any] = dict(condition)
    for hop in reversed(path):
        nested = {hop: nested}
    return nested


def _follow(model: type, path: tuple[str, ...], entity: str) -> type:
    """Walk many-to-one relationships from model; return the model at the end of path."""
    current = model
    for hop in path:
        relationships = sa_inspect(current).relationships
        if hop not in relationships:
            raise ScopingConfigurationError(entity, f"{current.__name__} has no relation '{hop}'")
        relationship = relationships[hop]
        if relationship.direction is not RelationshipDirection.MANYTOONE:
            raise ScopingConfigurationError(entity, f"relation '{hop}' is not many-to-one")
        current = relationship.mapper.class_
    return current


def _require_column(model: type, column: str, entity: str) -> None:
    if column not in sa_inspect(model).column_attrs:
        raise ScopingConfigurationError(entity, f"{model.__name__} has no column '{column}'")


class ScopingStrategy(ABC):
    """Rewrites data client arguments so a call only touches rows in one scope."""

    # False for strategies whose scope cannot be attached to a lookup by
    # primary key: find_unique(_or_raise), update and delete pass through.
    scopes_unique_lookups: ClassVar[bool] = True

    @abstractmethod
    def scope_condition(self, scope: str) -> dict[str, Any]:
        """Filter that holds exactly for rows visible in scope."""

    @abstractmethod
    def validate(self, model: type, entity: str) -> None:
        """Raise ScopingConfigurationError if the strategy does not fit model."""

    def apply_read_filter(self, where: Where | None, scope: str) -> dict[str, Any]:
        return and_where(where, self.scope_condition(scope))

    def apply_write_defaults(self, data: Mapping[str, Any], scope: str) -> dict[str, Any]:
        """Stamp scope onto data for a new row. Default: unchanged."""
        return dict(data)

    def apply_update_data(self, data: Mapping[str, Any], scope: str) -> dict[str, Any]:
        """Prevent an update from moving a row out of scope. Default: unchanged."""
        return dict(data)

    def apply_unique_filter(self, where: Where, scope: str) -> dict[str, Any]:
        return self.apply_read_filter(where, scope)

    def rewrite(self, operation: Operation, args: QueryArgs, scope: str) -> QueryArgs:
        """Return the arguments for operation rewritten into scope."""
        rewritten = dict(args)
        if operation in FILTERED_OPERATIONS:
            rewritten["where"] = self.apply_read_filter(args.get("where"), scope)
            if operation is Operation.UPDATE_MANY:
                rewritten["data"] = self.apply_update_data(args.get("data") or {}, scope)
        elif operation in UNIQUE_OPERATIONS:
            if self.scopes_unique_lookups:
                rewritten["where"] = self.apply_unique_filter(args.get("where") or {}, scope)
            if operation is Operation.UPDATE:
                rewritten["data"] = self.apply_update_data(args.get("data") or {}, scope)
        elif operation is Operation.CREATE:
            rewritten["data"] = self.apply_write_defaults(args.get("data") or {}, scope)
        elif operation is Operation.CREATE_MANY:
            rewritten["data"] = [
                self.apply_write_defaults(row, scope) for row in args.get("data") or ()
            ]
        elif operation is Operation.UPSERT:
            if self.scopes_unique_lookups:
                rewritten["where"] = self.apply_unique_filter(args.get("where") or {}, scope)
            rewritten["create"] = self.apply_write_defaults(args.get("create") or {}, scope)
            rewritten["update"] = self.apply_update_data(args.get("update") or {}, scope)
        return rewritten


@dataclass(frozen=True)
class DirectColumn(ScopingStrategy):
    """Scope value stored in a column of the row itself."""

    column: str = "tenant_id"

    def scope_condition(self, scope: str) -> dict[str, Any]:
        return {self.column: scope}

    def apply_read_filter(self, where: Where | None, scope: str) -> dict[str, Any]:
        # Overwrites a caller-supplied value for the column.
        return {**(where or {}), self.column: scope}

    def apply_write_defaults(self, data: Mapping[str, Any], scope: str) -> dict[str, Any]:
        return {**data, self.column: scope}

    def apply_update_data(self, data: Mapping[str, Any], scope: str) -> dict[str, Any]:
        if self.column in data:
            return {**data, self.column: scope}
        return dict(data)

    def validate(self, model: type, entity: str) -> None:
        _require_column(model, self.column, entity)


@dataclass(frozen=True)
class RelationPath(ScopingStrategy):
    """Scope column on a parent reached through many-to-one hops.

    Writes are not rewritten: the parent referenced by the written row is
    expected to have been read through a scoped client first.
    """

    path: tuple[str, ...]
    column: str = "tenant_id"

    scopes_unique_lookups: ClassVar[bool] = False

    def scope_condition(self, scope: str) -> dict[str, Any]:
        return nest(self.path, {self.column: scope})

    def validate(self, model: type, entity: str) -> None:
        if not self.path:
            raise ScopingConfigurationError(entity, "relation path is empty")
        _require_column(_follow(model, self.path, entity), self.column, entity)


@dataclass(frozen=True)
class OrCondition(ScopingStrategy):
    """Visible when linked to a scoped parent, or unlinked and owned by a member of the scope.

    The two branches are mutually exclusive: the linked branch requires the
    link to be set, the unlinked branch requires it to be NULL. With via set,
    the whole condition applies to the row reached through that relation.
    """

    linked_path: tuple[str, ...]
    link_field: str
    owner_relation: str
    membership_relation: str = "memberships"
    column: str = "tenant_id"
    via: str | None = None

    scopes_unique_lookups: ClassVar[bool] = False

    def _condition_on_target(self, scope: str) -> dict[str, Any]:
        linked = nest(self.linked_path, {self.column: scope})
        unlinked = {
            self.link_field: None,
            self.owner_relation: {self.membership_relation: {"some": {self.column: scope}}},
        }
        return {"OR": [linked, unlinked]}

    def scope_condition(self, scope: str) -> dict[str, Any]:
        condition = self._condition_on_target(scope)
        if self.via:
            return {self.via: condition}
        return condition

    def validate(self, model: type, entity: str) -> None:
        target = _follow(model, (self.via,), entity) if self.via else model
        _require_column(target, self.link_field, entity)
        _require_column(_follow(target, self.linked_path, entity), self.column, entity)
        owner = _follow(target, (self.owner_relation,), entity)
        relationships = sa_inspect(owner).relationships
        if self.membership_relation not in relationships:
            raise ScopingConfigurationError(
                entity, f"{owner.__name__} has no relation '{self.membership_relation}'"
            )
        _require_column(
            relationships[self.membership_relation].mapper.class_, self.column, entity
        )


@dataclass(frozen=True)
class PersonalOrShared(ScopingStrategy):
    """Personal rows of one user: owner is the user and the parent link is NULL.

    A caller-supplied id stays in the filter next to the forced conditions, so
    "update my note by id" narrows to that note. With via set, the row inherits
    personal scope from the row reached through that relation (a message
    through its conversation); such rows are not stamped on create.
    """

    owner_field: str
    parent_link: str = "project_id"
    via: str | None = None

    def _personal(self, scope: str) -> dict[str, Any]:
        return {self.owner_field: scope, self.parent_link: None}

    def scope_condition(self, scope: str) -> dict[str, Any]:
        if self.via:
            return {self.via: self._personal(scope)}
        return self._personal(scope)

    def apply_read_filter(self, where: Where | None, scope: str) -> dict[str, Any]:
        if self.via:
            return and_where(where, self.scope_condition(scope))
        return {**(where or {}), **self._personal(scope)}

    def apply_write_defaults(self, data: Mapping[str, Any], scope: str) -> dict[str, Any]:
        if self.via:
            return dict(data)
        return {**data, **self._personal(scope)}

    def apply_update_data(self, data: Mapping[str, Any], scope: str) -> dict[str, Any]:
        if self.via:
            return dict(data)
        forced = {k: v for k, v in self._personal(scope).items() if k in data}
        return {**data, **forced}

    def validate(self, model: type, entity: str) -> None:
        target = _follow(model, (self.via,), entity) if self.via else model
        _require_column(target, self.owner_field, entity)
        _require_column(target, self.parent_link, entity)
