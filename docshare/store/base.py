from abc import ABC, abstractmethod
from typing import Any, AsyncIterator, Iterable, Sequence

from docshare.schemas.events import ChangeEvent, EventKind

from .filters import Filter, Order


class EntityStoreError(Exception):
    """Raised by a store backend when a query, write or subscription fails."""


class Subscription(ABC):
    """Stream of change events for one table.

    Iterate with ``async for``; iteration ends once ``close()`` has been called.
    """

    def __aiter__(self) -> AsyncIterator[ChangeEvent]:
        return self

    @abstractmethod
    async def __anext__(self) -> ChangeEvent: ...

    @abstractmethod
    async def close(self) -> None:
        """Detach from the stream. Idempotent; no event is delivered afterwards."""

    @property
    @abstractmethod
    def closed(self) -> bool: ...


class EntityStoreClient(ABC):
    """Remote relational store: query, insert, update and change subscriptions.

    Rows travel as plain dicts keyed by column name.
    """

    @abstractmethod
    async def query(
        self,
        table: str,
        where: Filter | None = None,
        *,
        order_by: Sequence[Order] = (),
        limit: int | None = None,
    ) -> list[dict[str, Any]]: ...

    @abstractmethod
    async def insert(self, table: str, row: dict[str, Any]) -> dict[str, Any]:
        """Persist ``row`` and return it as stored, including generated fields."""

    @abstractmethod
    async def update(self, table: str, where: Filter, patch: dict[str, Any]) -> int:
        """Apply ``patch`` to matching rows and return how many matched."""

    @abstractmethod
    async def subscribe(
        self, table: str, event_kinds: Iterable[EventKind]
    ) -> Subscription: ...
