"""Compile where-dicts into SQLAlchemy boolean expressions.

The data client takes filters as plain dicts so that scoping rules can
rewrite them before execution. Supported shapes:

    {"status": "done"}                          column equality
    {"project_id": None}                        IS NULL
    {"minutes": {"gte": 30, "lt": 120}}         operator dict
    {"task": {"project": {"tenant_id": t}}}     many-to-one relation (EXISTS)
    {"project": None}                           no related row
    {"memberships": {"some": {...}}}            to-many: some / none / every
    {"AND": [...], "OR": [...], "NOT": {...}}   logical combinators

Column and relation names are ORM attribute names. Unknown names raise
InvalidQueryError rather than being ignored.
"""

from collections.abc import Callable, Mapping
from typing import Any

from sqlalchemy import ColumnElement, and_, false, inspect as sa_inspect, not_, or_, true

from app.domain.exceptions import InvalidQueryError

_TO_MANY_QUANTIFIERS = frozenset({"some", "none", "every"})

_OPERATORS: dict[str, Callable[[Any, Any], ColumnElement[bool]]] = {
    "equals": lambda col, v: col.is_(None) if v is None else col == v,
    "not": lambda col, v: col.is_not(None) if v is None else col != v,
    "in": lambda col, v: col.in_(list(v)),
    "not_in": lambda col, v: col.not_in(list(v)),
    "lt": lambda col, v: col < v,
    "lte": lambda col, v: col <= v,
    "gt": lambda col, v: col > v,
    "gte": lambda col, v: col >= v,
    "contains": lambda col, v: col.contains(v, autoescape=True),
    "startswith": lambda col, v: col.startswith(v, autoescape=True),
    "endswith": lambda col, v: col.endswith(v, autoescape=True),
}


def _as_list(value: Any) -> list[Mapping[str, Any]]:
    if isinstance(value, Mapping):
        return [value]
    return list(value)


def _conjunction(clauses: list[ColumnElement[bool]]) -> ColumnElement[bool]:
    if not clauses:
        return true()
    if len(clauses) == 1:
        return clauses[0]
    return and_(*clauses)


def column_attribute(model: type, field: str) -> Any:
    """Return the mapped column attribute for field, or raise InvalidQueryError."""
    if field not in sa_inspect(model).column_attrs:
        raise InvalidQueryError(model.__name__, field)
    return getattr(model, field)


def _column_clause(model: type, field: str, value: Any) -> ColumnElement[bool]:
    col = column_attribute(model, field)
    if value is None:
        return col.is_(None)
    if isinstance(value, Mapping):
        clauses = []
        for op, operand in value.items():
            build = _OPERATORS.get(op)
            if build is None:
                raise InvalidQueryError(model.__name__, op, "unknown operator")
            clauses.append(build(col, operand))
        return _conjunction(clauses)
    return col == value


def _relation_clause(model: type, relationship: Any, value: Any) -> ColumnElement[bool]:
    attr = getattr(model, relationship.key)
    target = relationship.mapper.class_
    if relationship.uselist:
        if not isinstance(value, Mapping) or not value or not set(value) <= _TO_MANY_QUANTIFIERS:
            raise InvalidQueryError(
                model.__name__, relationship.key, "to-many filter needs some/none/every on"
            )
        clauses = []
        if "some" in value:
            clauses.append(attr.any(compile_where(target, value["some"])))
        if "none" in value:
            clauses.append(not_(attr.any(compile_where(target, value["none"]))))
        if "every" in value:
            clauses.append(not_(attr.any(not_(compile_where(target, value["every"])))))
        return _conjunction(clauses)
    if value is None:
        return not_(attr.has())
    if not isinstance(value, Mapping):
        raise InvalidQueryError(model.__name__, relationship.key, "relation filter must be a dict on")
    return attr.has(compile_where(target, value))


def compile_where(model: type, where: Mapping[str, Any] | None) -> ColumnElement[bool]:
    """Compile a where-dict for model into a single boolean SQL expression.

    An empty or missing filter compiles to TRUE.
    """
    if not where:
        return true()
    mapper = sa_inspect(model)
    clauses: list[ColumnElement[bool]] = []
    for key, value in where.items():
        if key == "AND":
            clauses.extend(compile_where(model, w) for w in _as_list(value))
        elif key == "OR":
            branches = [compile_where(model, w) for w in _as_list(value)]
            clauses.append(or_(*branches) if branches else false())
        elif key == "NOT":
            clauses.append(
                not_(_conjunction([compile_where(model, w) for w in _as_list(value)]))
            )
        elif key in mapper.relationships:
            clauses.append(_relation_clause(model, mapper.relationships[key], value))
        else:
            clauses.append(_column_clause(model, key, value))
    return _conjunction(clauses)


def compile_order_by(model: type, order_by: Any) -> list[Any]:
    """Compile {"field": "asc"|"desc"} or a list of such dicts into ORDER BY clauses."""
    if not order_by:
        return []
    clauses = []
    for item in _as_list(order_by):
        for field, direction in item.items():
            col = column_attribute(model, field)
            if direction not in ("asc", "desc"):
                raise InvalidQueryError(model.__name__, field, f"invalid sort direction {direction!r} for")
            clauses.append(col.desc() if direction == "desc" else col.asc())
    return clauses


def check_data_fields(model: type, data: Mapping[str, Any]) -> None:
    """Raise InvalidQueryError if data names anything but a mapped column."""
    columns = sa_inspect(model).column_attrs
    for field in data:
        if field not in columns:
            raise InvalidQueryError(model.__name__, field)
