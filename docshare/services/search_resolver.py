import asyncio
import logging

from docshare.schemas.profile import ProfileRead
from docshare.store import (
    EntityStoreClient,
    EntityStoreError,
    ILike,
    Or,
    Order,
    escape_like,
)

from .exceptions import StoreError

logger = logging.getLogger(__name__)


class SearchResolver:
    """Resolves free text to candidate profiles for starting a conversation."""

    def __init__(self, store: EntityStoreClient):
        self.store = store

    async def search(
        self, query: str, limit: int, *, exclude_user_id: str | None = None
    ) -> list[ProfileRead]:
        """Case-insensitive substring match on email or full name, at most ``limit`` hits.

        A blank query returns an empty list without touching the store.
        """
        text = query.strip()
        if not text or limit <= 0:
            return []

        pattern = f"%{escape_like(text)}%"
        where = Or(ILike("email", pattern), ILike("full_name", pattern))
        try:
            rows = await self.store.query(
                "profiles",
                where,
                order_by=[Order("full_name"), Order("email")],
                # One extra row leaves room for the excluded profile
                limit=limit + 1 if exclude_user_id else limit,
            )
        except EntityStoreError as e:
            logger.error(
                f"Store error searching profiles for '{text}': {e}", exc_info=True
            )
            raise StoreError("Failed to search profiles due to a store error.") from e

        profiles = [
            ProfileRead.model_validate(row)
            for row in rows
            if row["id"] != exclude_user_id
        ]
        return profiles[:limit]


class DebouncedSearch:
    """Keystroke-driven search where the most recently issued query wins.

    ``submit`` waits ``delay`` seconds before querying. A newer ``submit``
    supersedes any pending or in-flight one: the superseded call returns
    ``None`` and its results never replace ``results``.
    """

    def __init__(self, resolver: SearchResolver, delay: float = 0.25):
        self.resolver = resolver
        self.delay = delay
        self.results: list[ProfileRead] = []
        self._generation = 0

    async def submit(
        self, query: str, limit: int, *, exclude_user_id: str | None = None
    ) -> list[ProfileRead] | None:
        self._generation += 1
        generation = self._generation

        if not query.strip():
            self.results = []
            return self.results

        if self.delay > 0:
            await asyncio.sleep(self.delay)
        if generation != self._generation:
            logger.debug(f"Search for '{query}' superseded before it was issued")
            return None

        results = await self.resolver.search(
            query, limit, exclude_user_id=exclude_user_id
        )
        if generation != self._generation:
            logger.debug(f"Discarding stale results for '{query}'")
            return None

        self.results = results
        return results
