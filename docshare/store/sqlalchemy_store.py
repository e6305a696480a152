import asyncio
import enum
import logging
from typing import Any, Iterable, Sequence

from sqlalchemy import and_, false, or_, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from docshare.models import BaseModel
from docshare.schemas.events import ChangeEvent, EventKind

from .base import EntityStoreClient, EntityStoreError, Subscription
from .filters import And, Eq, Filter, ILike, In, Or, Order

logger = logging.getLogger(__name__)

_CLOSED = object()


class QueueSubscription(Subscription):
    """Subscription fed by a ChangeFeed through an unbounded asyncio queue."""

    def __init__(
        self, feed: "ChangeFeed", table: str, event_kinds: Iterable[EventKind]
    ):
        self.feed = feed
        self.table = table
        self.event_kinds = frozenset(event_kinds)
        self._queue: asyncio.Queue = asyncio.Queue()
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def deliver(self, event: ChangeEvent) -> None:
        if not self._closed and event.kind in self.event_kinds:
            self._queue.put_nowait(event)

    async def __anext__(self) -> ChangeEvent:
        if self._closed:
            raise StopAsyncIteration
        event = await self._queue.get()
        if event is _CLOSED or self._closed:
            raise StopAsyncIteration
        return event

    async def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self.feed.detach(self)
        self._queue.put_nowait(_CLOSED)


class ChangeFeed:
    """In-process fan-out of committed changes to the open subscriptions."""

    def __init__(self):
        self._subscribers: dict[str, set[QueueSubscription]] = {}

    def attach(self, table: str, event_kinds: Iterable[EventKind]) -> QueueSubscription:
        subscription = QueueSubscription(self, table, event_kinds)
        self._subscribers.setdefault(table, set()).add(subscription)
        logger.debug(f"Subscription attached to '{table}'")
        return subscription

    def detach(self, subscription: QueueSubscription) -> None:
        self._subscribers.get(subscription.table, set()).discard(subscription)
        logger.debug(f"Subscription detached from '{subscription.table}'")

    def publish(self, event: ChangeEvent) -> None:
        for subscription in list(self._subscribers.get(event.table, ())):
            subscription.deliver(event)

    def subscriber_count(self, table: str) -> int:
        return len(self._subscribers.get(table, ()))


class SQLAlchemyEntityStore(EntityStoreClient):
    """EntityStoreClient over SQLAlchemy's async ORM.

    Every call runs in its own session from ``session_maker``; inserts are
    published to ``feed`` once committed.
    """

    def __init__(
        self,
        session_maker: async_sessionmaker[AsyncSession],
        feed: ChangeFeed | None = None,
    ):
        self.session_maker = session_maker
        self.feed = feed or ChangeFeed()
        self._models = {
            mapper.class_.__tablename__: mapper.class_
            for mapper in BaseModel.registry.mappers
        }

    def _model_for(self, table: str):
        try:
            return self._models[table]
        except KeyError:
            raise EntityStoreError(f"Unknown table '{table}'.") from None

    def _column(self, model, name: str):
        try:
            return model.__table__.c[name]
        except KeyError:
            raise EntityStoreError(
                f"Unknown column '{name}' on '{model.__tablename__}'."
            ) from None

    def _compile(self, model, where: Filter):
        if isinstance(where, Eq):
            column = self._column(model, where.column)
            if where.value is None:
                return column.is_(None)
            return column == where.value
        if isinstance(where, In):
            if not where.values:
                return false()
            return self._column(model, where.column).in_(list(where.values))
        if isinstance(where, ILike):
            return self._column(model, where.column).ilike(where.pattern, escape="\\")
        if isinstance(where, And):
            return and_(*(self._compile(model, clause) for clause in where.clauses))
        if isinstance(where, Or):
            return or_(*(self._compile(model, clause) for clause in where.clauses))
        raise EntityStoreError(f"Unsupported filter: {where!r}")

    @staticmethod
    def _to_row(obj) -> dict[str, Any]:
        row = {}
        for column in obj.__table__.columns:
            value = getattr(obj, column.key)
            row[column.key] = value.value if isinstance(value, enum.Enum) else value
        return row

    async def query(
        self,
        table: str,
        where: Filter | None = None,
        *,
        order_by: Sequence[Order] = (),
        limit: int | None = None,
    ) -> list[dict[str, Any]]:
        model = self._model_for(table)
        stmt = select(model)
        if where is not None:
            stmt = stmt.where(self._compile(model, where))
        for order in order_by:
            column = self._column(model, order.column)
            stmt = stmt.order_by(column.asc() if order.ascending else column.desc())
        if limit is not None:
            stmt = stmt.limit(limit)

        try:
            async with self.session_maker() as session:
                result = await session.execute(stmt)
                return [self._to_row(obj) for obj in result.scalars().all()]
        except SQLAlchemyError as e:
            logger.error(f"Query on '{table}' failed: {e}", exc_info=True)
            raise EntityStoreError(f"Query on '{table}' failed.") from e

    async def insert(self, table: str, row: dict[str, Any]) -> dict[str, Any]:
        model = self._model_for(table)
        try:
            obj = model(**row)
        except TypeError as e:
            raise EntityStoreError(f"Invalid row for '{table}': {e}") from e

        try:
            async with self.session_maker() as session:
                session.add(obj)
                await session.commit()
                await session.refresh(obj)
                stored = self._to_row(obj)
        except SQLAlchemyError as e:
            logger.error(f"Insert into '{table}' failed: {e}", exc_info=True)
            raise EntityStoreError(f"Insert into '{table}' failed.") from e

        self.feed.publish(ChangeEvent(table=table, kind=EventKind.INSERT, new=stored))
        return stored

    async def update(self, table: str, where: Filter, patch: dict[str, Any]) -> int:
        model = self._model_for(table)
        stmt = update(model).where(self._compile(model, where)).values(**patch)
        try:
            async with self.session_maker() as session:
                result = await session.execute(stmt)
                await session.commit()
                return result.rowcount
        except SQLAlchemyError as e:
            logger.error(f"Update on '{table}' failed: {e}", exc_info=True)
            raise EntityStoreError(f"Update on '{table}' failed.") from e

    async def subscribe(
        self, table: str, event_kinds: Iterable[EventKind]
    ) -> Subscription:
        self._model_for(table)
        return self.feed.attach(table, event_kinds)
