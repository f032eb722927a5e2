from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator, Awaitable
from contextlib import asynccontextmanager
from typing import Any, TypeVar

from sqlalchemy import select, text, update as sa_update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.orm import selectinload

from streampromo.core.errors import ConflictError, NotFoundError, SchemaError, StoreError, StoreTimeoutError
from streampromo.db.base import Base, utcnow
from streampromo.models import Discount, DiscountManager, Gift, Stream

logger = logging.getLogger(__name__)

T = TypeVar("T")

_UNIQUE_MARKERS = ("unique", "duplicate")


def _is_unique_violation(exc: IntegrityError) -> bool:
    message = str(getattr(exc, "orig", None) or exc).lower()
    return any(marker in message for marker in _UNIQUE_MARKERS)


def _relation_options(kind: type) -> list[Any]:
    if kind is Stream:
        return [selectinload(Stream.discount_managers)]
    if kind is DiscountManager:
        return [selectinload(DiscountManager.stream)]
    return [selectinload(kind.discount_manager)]


def _dangling_reference(row: Any) -> str | None:
    if isinstance(row, (Discount, Gift)) and row.discount_manager is None:
        return f"{type(row).__name__} {row.id} has no discount manager"
    if isinstance(row, DiscountManager) and row.stream is None:
        return f"DiscountManager {row.id} references missing stream {row.stream_id}"
    return None


class EntityStore:
    """Durable access to streams, discounts, gifts and their manager links.

    Wraps an ``async_sessionmaker``. Every statement is bounded by ``timeout``
    seconds; SQLAlchemy failures come out as :class:`StoreError` (or
    :class:`ConflictError` for unique violations) so callers never see driver
    exceptions.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession], *, timeout: float | None = None) -> None:
        self._session_factory = session_factory
        self._timeout = timeout

    async def _call(self, awaitable: Awaitable[T], timeout: float | None = None) -> T:
        deadline = timeout if timeout is not None else self._timeout
        if deadline is None:
            return await awaitable
        return await asyncio.wait_for(awaitable, timeout=deadline)

    async def create_schema(self) -> None:
        for table in Base.metadata.sorted_tables:
            try:
                async with self._session_factory() as session:
                    async with session.begin():
                        conn = await session.connection()
                        await conn.run_sync(table.create, checkfirst=True)
            except SQLAlchemyError as exc:
                logger.error("Error while creating %s table, Reason: %s", table.name, exc)
                raise SchemaError(table.name) from exc
            logger.info("%s table ready", table.name)

    async def ping(self, timeout: float | None = None) -> None:
        async with self.transaction() as session:
            await self._call(session.execute(text("SELECT 1")), timeout)

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[AsyncSession]:
        try:
            async with self._session_factory() as session:
                async with session.begin():
                    yield session
        except IntegrityError as exc:
            if _is_unique_violation(exc):
                raise ConflictError(str(exc.orig)) from exc
            raise StoreError(str(exc.orig)) from exc
        except asyncio.TimeoutError as exc:
            raise StoreTimeoutError("store call exceeded its deadline") from exc
        except SQLAlchemyError as exc:
            raise StoreError(str(exc)) from exc

    @asynccontextmanager
    async def _scope(self, session: AsyncSession | None) -> AsyncIterator[AsyncSession]:
        if session is not None:
            yield session
            return
        async with self.transaction() as own:
            yield own

    async def insert(self, entity: T, *, session: AsyncSession | None = None, timeout: float | None = None) -> T:
        async with self._scope(session) as scoped:
            scoped.add(entity)
            await self._call(scoped.flush([entity]), timeout)
        return entity

    async def find_all(self, kind: type[T], *, with_relation: bool = False, timeout: float | None = None) -> list[T]:
        stmt = select(kind).order_by(kind.created_at)
        if with_relation:
            stmt = stmt.options(*_relation_options(kind))
        async with self.transaction() as session:
            result = await self._call(session.execute(stmt), timeout)
            rows = list(result.scalars().all())
            if with_relation:
                for row in rows:
                    problem = _dangling_reference(row)
                    if problem:
                        logger.error("Dangling relation while listing %s: %s", kind.__name__, problem)
                        raise StoreError(problem)
        return rows

    async def find_one(
        self,
        kind: type[T],
        *,
        with_relation: bool = False,
        session: AsyncSession | None = None,
        timeout: float | None = None,
        **criteria: Any,
    ) -> T:
        stmt = select(kind)
        for key, value in criteria.items():
            if key == "code" and kind in (Discount, Gift):
                stmt = stmt.join(kind.discount_manager).where(DiscountManager.code == value)
            else:
                stmt = stmt.where(getattr(kind, key) == value)
        if with_relation:
            stmt = stmt.options(*_relation_options(kind))
        async with self._scope(session) as scoped:
            result = await self._call(scoped.execute(stmt), timeout)
            row = result.scalar_one_or_none()
        if row is None:
            raise NotFoundError(kind.__name__, criteria)
        return row

    async def update(
        self,
        kind: type[T],
        entity_id: str,
        changes: dict[str, Any],
        *,
        session: AsyncSession | None = None,
        timeout: float | None = None,
    ) -> None:
        values = {**changes, "updated_at": utcnow()}
        stmt = (
            sa_update(kind)
            .where(kind.id == entity_id)
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        async with self._scope(session) as scoped:
            result = await self._call(scoped.execute(stmt), timeout)
            if not result.rowcount:
                raise NotFoundError(kind.__name__, {"id": entity_id})

    async def increment_gift_usage(self, gift_id: str, *, timeout: float | None = None) -> bool:
        """Consume one unit of capacity; False when the gift was already full."""
        stmt = (
            sa_update(Gift)
            .where(Gift.id == gift_id, Gift.used < Gift.capacity)
            .values(used=Gift.used + 1, updated_at=utcnow())
            .execution_options(synchronize_session=False)
        )
        async with self.transaction() as session:
            result = await self._call(session.execute(stmt), timeout)
            return bool(result.rowcount)
