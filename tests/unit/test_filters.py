"""Tests for where-dict compilation."""

import pytest
from sqlalchemy.dialects import postgresql

from app.domain.exceptions import InvalidQueryError
from app.infrastructure.persistence.filters import (
    check_data_fields,
    compile_order_by,
    compile_where,
)
from app.infrastructure.persistence.models import Comment, Project, Task, User


def _sql(expr) -> str:
    return str(expr.compile(dialect=postgresql.dialect(), compile_kwargs={"literal_binds": True}))


def test_empty_filter_is_true() -> None:
    assert _sql(compile_where(Task, None)) == "true"
    assert _sql(compile_where(Task, {})) == "true"


def test_equality_and_null() -> None:
    sql = _sql(compile_where(Task, {"status": "done", "deadline": None}))
    assert "task.status = 'done'" in sql
    assert "task.deadline IS NULL" in sql


def test_operator_dict() -> None:
    sql = _sql(compile_where(Task, {"status": {"in": ["todo", "done"], "not": "in_progress"}}))
    assert "IN ('todo', 'done')" in sql
    assert "task.status != 'in_progress'" in sql


def test_nested_relation_uses_exists() -> None:
    sql = _sql(compile_where(Comment, {"task": {"project": {"tenant_id": "t1"}}}))
    assert sql.count("EXISTS") == 2
    assert "project.tenant_id = 't1'" in sql


def test_to_many_quantifier() -> None:
    sql = _sql(compile_where(User, {"memberships": {"some": {"tenant_id": "t1"}}}))
    assert "EXISTS" in sql
    assert "membership.tenant_id = 't1'" in sql


def test_to_many_without_quantifier_rejected() -> None:
    with pytest.raises(InvalidQueryError):
        compile_where(User, {"memberships": {"tenant_id": "t1"}})


def test_logical_combinators() -> None:
    sql = _sql(compile_where(Task, {"OR": [{"status": "todo"}, {"status": "done"}], "NOT": {"title": "x"}}))
    assert " OR " in sql
    assert "NOT" in sql or "!=" in sql


def test_empty_or_matches_nothing() -> None:
    assert _sql(compile_where(Task, {"OR": []})) == "false"


def test_unknown_field_rejected() -> None:
    with pytest.raises(InvalidQueryError) as exc_info:
        compile_where(Task, {"tenant_id": "t1"})
    assert exc_info.value.details["field"] == "tenant_id"


def test_unknown_operator_rejected() -> None:
    with pytest.raises(InvalidQueryError):
        compile_where(Task, {"status": {"like": "%"}})


def test_order_by() -> None:
    clauses = compile_order_by(Project, [{"name": "asc"}, {"created_at": "desc"}])
    assert [_sql(c) for c in clauses] == ["project.name ASC", "project.created_at DESC"]
    with pytest.raises(InvalidQueryError):
        compile_order_by(Project, {"name": "sideways"})


def test_check_data_fields() -> None:
    check_data_fields(Project, {"name": "x", "tenant_id": "t1"})
    with pytest.raises(InvalidQueryError):
        check_data_fields(Project, {"project": "x"})
