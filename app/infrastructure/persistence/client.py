"""Data client: per-entity CRUD delegates over SQLAlchemy with an interception hook.

DataClient is the base storage client. Each entity type is reachable as an
attribute (client.task, client.time_entry) returning a ModelDelegate whose
methods mirror the operation names in Operation. Every call goes through
the chain of QueryExtension objects attached with extend() before the SQL
executor runs it.

Write operations each run in their own transaction and commit before the
call returns, so anything an extension does after proceed() happens after
the write is durable.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable, Mapping, Sequence
from typing import Any

from sqlalchemy import delete as sa_delete, func, select, update as sa_update
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.domain.enums import EntityType
from app.domain.exceptions import InvalidQueryError, RecordNotFoundError
from app.infrastructure.persistence.filters import (
    check_data_fields,
    column_attribute,
    compile_order_by,
    compile_where,
)
from app.infrastructure.persistence.models import MODEL_REGISTRY
from app.infrastructure.persistence.operations import Operation

logger = logging.getLogger(__name__)

QueryArgs = dict[str, Any]
Proceed = Callable[[QueryArgs], Awaitable[Any]]

_AGGREGATE_FUNCTIONS = ("sum", "avg", "min", "max")


class QueryExtension(ABC):
    """Interception hook around data client calls.

    handles() selects the (entity, operation) pairs the extension sees;
    intercept() receives the call arguments and a proceed callable that runs
    the rest of the chain. Extensions return whatever proceed returned (or
    a value derived from it).
    """

    def handles(self, entity: EntityType, operation: Operation) -> bool:
        return True

    @abstractmethod
    async def intercept(
        self,
        entity: EntityType,
        operation: Operation,
        args: QueryArgs,
        proceed: Proceed,
    ) -> Any:
        """Run around one call."""


class _SqlExecutor:
    """Executes data client operations against the database."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def run(self, entity: EntityType, model: type, operation: Operation, args: QueryArgs) -> Any:
        handler = getattr(self, f"_{operation.value}")
        return await handler(entity, model, args)

    # ---- reads ----

    def _select(self, model: type, args: QueryArgs) -> Any:
        stmt = select(model).where(compile_where(model, args.get("where")))
        order = compile_order_by(model, args.get("order_by"))
        if order:
            stmt = stmt.order_by(*order)
        if args.get("skip"):
            stmt = stmt.offset(args["skip"])
        if args.get("take") is not None:
            stmt = stmt.limit(args["take"])
        return stmt

    async def _find_many(self, entity: EntityType, model: type, args: QueryArgs) -> list[Any]:
        async with self._session_factory() as session:
            result = await session.execute(self._select(model, args))
            return list(result.scalars().all())

    async def _find_first(self, entity: EntityType, model: type, args: QueryArgs) -> Any | None:
        async with self._session_factory() as session:
            result = await session.execute(self._select(model, {**args, "take": 1}))
            return result.scalars().first()

    async def _find_first_or_raise(self, entity: EntityType, model: type, args: QueryArgs) -> Any:
        record = await self._find_first(entity, model, args)
        if record is None:
            raise RecordNotFoundError(entity.value, args.get("where"))
        return record

    async def _find_unique(self, entity: EntityType, model: type, args: QueryArgs) -> Any | None:
        async with self._session_factory() as session:
            stmt = select(model).where(compile_where(model, args.get("where")))
            result = await session.execute(stmt)
            return result.scalar_one_or_none()

    async def _find_unique_or_raise(self, entity: EntityType, model: type, args: QueryArgs) -> Any:
        record = await self._find_unique(entity, model, args)
        if record is None:
            raise RecordNotFoundError(entity.value, args.get("where"))
        return record

    async def _count(self, entity: EntityType, model: type, args: QueryArgs) -> int:
        async with self._session_factory() as session:
            stmt = (
                select(func.count())
                .select_from(model)
                .where(compile_where(model, args.get("where")))
            )
            return int((await session.execute(stmt)).scalar_one())

    def _aggregate_columns(self, model: type, args: QueryArgs) -> list[tuple[str, str | None, Any]]:
        columns: list[tuple[str, str | None, Any]] = []
        if args.get("count"):
            columns.append(("count", None, func.count().label("count")))
        for fn_name in _AGGREGATE_FUNCTIONS:
            for field in args.get(fn_name) or ():
                col = column_attribute(model, field)
                label = f"{fn_name}__{field}"
                columns.append((fn_name, field, getattr(func, fn_name)(col).label(label)))
        return columns

    @staticmethod
    def _shape_aggregate(row: Any, layout: list[tuple[str, str | None, Any]]) -> dict[str, Any]:
        shaped: dict[str, Any] = {}
        for fn_name, field, column in layout:
            value = row._mapping[column.name]
            if field is None:
                shaped[fn_name] = value
            else:
                shaped.setdefault(fn_name, {})[field] = value
        return shaped

    async def _aggregate(self, entity: EntityType, model: type, args: QueryArgs) -> dict[str, Any]:
        layout = self._aggregate_columns(model, args)
        if not layout:
            raise InvalidQueryError(entity.value, "aggregate", "nothing to compute in")
        async with self._session_factory() as session:
            stmt = (
                select(*(column for _, _, column in layout))
                .select_from(model)
                .where(compile_where(model, args.get("where")))
            )
            row = (await session.execute(stmt)).one()
        return self._shape_aggregate(row, layout)

    async def _group_by(self, entity: EntityType, model: type, args: QueryArgs) -> list[dict[str, Any]]:
        by = list(args.get("by") or ())
        if not by:
            raise InvalidQueryError(entity.value, "by", "group_by needs at least one field in")
        by_columns = [column_attribute(model, field) for field in by]
        layout = self._aggregate_columns(model, args)
        async with self._session_factory() as session:
            stmt = (
                select(*by_columns, *(column for _, _, column in layout))
                .select_from(model)
                .where(compile_where(model, args.get("where")))
                .group_by(*by_columns)
            )
            order = compile_order_by(model, args.get("order_by"))
            if order:
                stmt = stmt.order_by(*order)
            rows = (await session.execute(stmt)).all()
        groups = []
        for row in rows:
            group = {field: row._mapping[col.key] for field, col in zip(by, by_columns, strict=True)}
            group.update(self._shape_aggregate(row, layout))
            groups.append(group)
        return groups

    # ---- writes ----

    @staticmethod
    async def _load_one(session: AsyncSession, entity: EntityType, model: type, where: Any) -> Any:
        stmt = select(model).where(compile_where(model, where))
        record = (await session.execute(stmt)).scalar_one_or_none()
        if record is None:
            raise RecordNotFoundError(entity.value, where)
        return record

    @staticmethod
    def _apply(model: type, record: Any, data: Mapping[str, Any]) -> None:
        check_data_fields(model, data)
        for field, value in data.items():
            setattr(record, field, value)

    async def _create(self, entity: EntityType, model: type, args: QueryArgs) -> Any:
        data = args.get("data") or {}
        check_data_fields(model, data)
        async with self._session_factory() as session, session.begin():
            record = model(**data)
            session.add(record)
            await session.flush()
            await session.refresh(record)
        return record

    async def _create_many(self, entity: EntityType, model: type, args: QueryArgs) -> int:
        rows = list(args.get("data") or ())
        for row in rows:
            check_data_fields(model, row)
        if not rows:
            return 0
        async with self._session_factory() as session, session.begin():
            session.add_all([model(**row) for row in rows])
            await session.flush()
        return len(rows)

    async def _update(self, entity: EntityType, model: type, args: QueryArgs) -> Any:
        async with self._session_factory() as session, session.begin():
            record = await self._load_one(session, entity, model, args.get("where"))
            self._apply(model, record, args.get("data") or {})
            await session.flush()
            await session.refresh(record)
        return record

    async def _update_many(self, entity: EntityType, model: type, args: QueryArgs) -> int:
        data = args.get("data") or {}
        check_data_fields(model, data)
        if not data:
            return 0
        async with self._session_factory() as session, session.begin():
            stmt = (
                sa_update(model)
                .where(compile_where(model, args.get("where")))
                .values(**data)
                .execution_options(synchronize_session=False)
            )
            result = await session.execute(stmt)
        return int(result.rowcount or 0)

    async def _delete(self, entity: EntityType, model: type, args: QueryArgs) -> Any:
        async with self._session_factory() as session, session.begin():
            record = await self._load_one(session, entity, model, args.get("where"))
            await session.delete(record)
            await session.flush()
        return record

    async def _delete_many(self, entity: EntityType, model: type, args: QueryArgs) -> int:
        async with self._session_factory() as session, session.begin():
            stmt = (
                sa_delete(model)
                .where(compile_where(model, args.get("where")))
                .execution_options(synchronize_session=False)
            )
            result = await session.execute(stmt)
        return int(result.rowcount or 0)

    async def _upsert(self, entity: EntityType, model: type, args: QueryArgs) -> Any:
        create_data = args.get("create") or {}
        update_data = args.get("update") or {}
        check_data_fields(model, create_data)
        async with self._session_factory() as session, session.begin():
            stmt = select(model).where(compile_where(model, args.get("where")))
            record = (await session.execute(stmt)).scalar_one_or_none()
            if record is None:
                record = model(**create_data)
                session.add(record)
            else:
                self._apply(model, record, update_data)
            await session.flush()
            await session.refresh(record)
        return record


class ModelDelegate:
    """CRUD surface for one entity type. Arguments are plain dicts (see filters)."""

    def __init__(self, client: DataClient, entity: EntityType) -> None:
        self._client = client
        self.entity = entity

    def __repr__(self) -> str:
        return f"<ModelDelegate {self.entity.value}>"

    async def _call(self, operation: Operation, **args: Any) -> Any:
        clean = {k: v for k, v in args.items() if v is not None}
        return await self._client.execute(self.entity, operation, clean)

    async def find_many(
        self,
        where: Mapping[str, Any] | None = None,
        *,
        order_by: Any = None,
        skip: int | None = None,
        take: int | None = None,
    ) -> list[Any]:
        return await self._call(Operation.FIND_MANY, where=where, order_by=order_by, skip=skip, take=take)

    async def find_first(
        self, where: Mapping[str, Any] | None = None, *, order_by: Any = None
    ) -> Any | None:
        return await self._call(Operation.FIND_FIRST, where=where, order_by=order_by)

    async def find_first_or_raise(
        self, where: Mapping[str, Any] | None = None, *, order_by: Any = None
    ) -> Any:
        return await self._call(Operation.FIND_FIRST_OR_RAISE, where=where, order_by=order_by)

    async def find_unique(self, where: Mapping[str, Any]) -> Any | None:
        return await self._call(Operation.FIND_UNIQUE, where=where)

    async def find_unique_or_raise(self, where: Mapping[str, Any]) -> Any:
        return await self._call(Operation.FIND_UNIQUE_OR_RAISE, where=where)

    async def count(self, where: Mapping[str, Any] | None = None) -> int:
        return await self._call(Operation.COUNT, where=where)

    async def aggregate(
        self,
        where: Mapping[str, Any] | None = None,
        *,
        count: bool = False,
        sum: Sequence[str] | None = None,
        avg: Sequence[str] | None = None,
        min: Sequence[str] | None = None,
        max: Sequence[str] | None = None,
    ) -> dict[str, Any]:
        return await self._call(
            Operation.AGGREGATE,
            where=where,
            count=count or None,
            sum=sum,
            avg=avg,
            min=min,
            max=max,
        )

    async def group_by(
        self,
        by: Sequence[str],
        where: Mapping[str, Any] | None = None,
        *,
        count: bool = False,
        sum: Sequence[str] | None = None,
        avg: Sequence[str] | None = None,
        min: Sequence[str] | None = None,
        max: Sequence[str] | None = None,
        order_by: Any = None,
    ) -> list[dict[str, Any]]:
        return await self._call(
            Operation.GROUP_BY,
            by=list(by),
            where=where,
            count=count or None,
            sum=sum,
            avg=avg,
            min=min,
            max=max,
            order_by=order_by,
        )

    async def create(self, data: Mapping[str, Any]) -> Any:
        return await self._call(Operation.CREATE, data=dict(data))

    async def create_many(self, data: Sequence[Mapping[str, Any]]) -> int:
        return await self._call(Operation.CREATE_MANY, data=[dict(row) for row in data])

    async def update(self, where: Mapping[str, Any], data: Mapping[str, Any]) -> Any:
        return await self._call(Operation.UPDATE, where=where, data=dict(data))

    async def update_many(
        self, where: Mapping[str, Any] | None, data: Mapping[str, Any]
    ) -> int:
        return await self._call(Operation.UPDATE_MANY, where=where or {}, data=dict(data))

    async def delete(self, where: Mapping[str, Any]) -> Any:
        return await self._call(Operation.DELETE, where=where)

    async def delete_many(self, where: Mapping[str, Any] | None = None) -> int:
        return await self._call(Operation.DELETE_MANY, where=where or {})

    async def upsert(
        self,
        where: Mapping[str, Any],
        create: Mapping[str, Any],
        update: Mapping[str, Any],
    ) -> Any:
        return await self._call(
            Operation.UPSERT, where=where, create=dict(create), update=dict(update)
        )


class DataClient:
    """Base storage client. Unscoped: use directly only for platform operations.

    Scoped clients are built by extending this client (see scoped_clients);
    extend() never mutates, it returns a new client sharing the session factory.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        *,
        models: Mapping[EntityType, type] = MODEL_REGISTRY,
        extensions: tuple[QueryExtension, ...] = (),
    ) -> None:
        self._session_factory = session_factory
        self._models = models
        self._extensions = extensions
        self._executor = _SqlExecutor(session_factory)

    @property
    def session_factory(self) -> async_sessionmaker[AsyncSession]:
        return self._session_factory

    @property
    def extensions(self) -> tuple[QueryExtension, ...]:
        return self._extensions

    def extend(self, extension: QueryExtension) -> DataClient:
        """Return a client whose calls also pass through extension (outermost)."""
        return DataClient(
            self._session_factory,
            models=self._models,
            extensions=(*self._extensions, extension),
        )

    def delegate(self, entity: EntityType) -> ModelDelegate:
        if entity not in self._models:
            raise InvalidQueryError(entity.value, entity.value, "no model registered for")
        return ModelDelegate(self, entity)

    def __getattr__(self, name: str) -> ModelDelegate:
        if name.startswith("_"):
            raise AttributeError(name)
        try:
            entity = EntityType(name)
        except ValueError:
            raise AttributeError(f"DataClient has no entity '{name}'") from None
        return self.delegate(entity)

    async def execute(self, entity: EntityType, operation: Operation, args: QueryArgs) -> Any:
        """Run one operation through the extension chain, innermost first."""
        model = self._models[entity]

        async def base(call_args: QueryArgs) -> Any:
            return await self._executor.run(entity, model, operation, call_args)

        proceed: Proceed = base
        for extension in self._extensions:
            if extension.handles(entity, operation):
                proceed = _bind(extension, entity, operation, proceed)
        return await proceed(dict(args))


def _bind(
    extension: QueryExtension, entity: EntityType, operation: Operation, inner: Proceed
) -> Proceed:
    async def call(call_args: QueryArgs) -> Any:
        return await extension.intercept(entity, operation, call_args, inner)

    return call
