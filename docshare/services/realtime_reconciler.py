"""Realtime reconciliation of the active conversation.

The reconciler holds at most one subscription to message insert events. An
event relevant to the active conversation triggers a full reload through the
``reload`` callback; nothing is merged incrementally, so the initial load stays
the source of truth and events only say "reload now".

States::

    IDLE --activate(c)--> SUBSCRIBED(c) --activate(c')--> SUBSCRIBED(c')
      ^                        |
      +------deactivate()------+

``activate`` always tears the previous subscription down before opening the
next one, and ``deactivate`` returns only once the listener and any in-flight
reload have stopped.
"""

import asyncio
import contextlib
import enum
import logging
from typing import Awaitable, Callable

from docshare.schemas.conversation import ConversationIdentity
from docshare.schemas.events import ChangeEvent, EventKind
from docshare.store import EntityStoreClient, EntityStoreError, Subscription

from .exceptions import ServiceError, StoreError

logger = logging.getLogger(__name__)

ReloadCallback = Callable[[ConversationIdentity], Awaitable[None]]


class ReconcilerState(str, enum.Enum):
    IDLE = "idle"
    SUBSCRIBED = "subscribed"


async def _cancel(task: asyncio.Task | None) -> None:
    if task is None or task.done():
        return
    task.cancel()
    with contextlib.suppress(asyncio.CancelledError):
        await task


def is_relevant(event: ChangeEvent, conversation: ConversationIdentity) -> bool:
    row = event.new
    if conversation.is_group:
        return row.get("group_id") == conversation.id
    if row.get("group_id") is not None:
        return False
    return conversation.id in (row.get("sender_id"), row.get("receiver_id"))


class RealtimeReconciler:
    def __init__(
        self,
        store: EntityStoreClient,
        reload: ReloadCallback,
        *,
        table: str = "messages",
    ):
        self.store = store
        self.reload = reload
        self.table = table
        self.state = ReconcilerState.IDLE
        self.conversation: ConversationIdentity | None = None
        self._subscription: Subscription | None = None
        self._listener: asyncio.Task | None = None
        self._reload_task: asyncio.Task | None = None
        self._reload_again = False

    async def activate(self, conversation: ConversationIdentity) -> None:
        """Tears down any open subscription, then subscribes for ``conversation``."""
        await self.deactivate()

        try:
            subscription = await self.store.subscribe(self.table, [EventKind.INSERT])
        except EntityStoreError as e:
            logger.error(
                f"Could not subscribe to '{self.table}' for {conversation.id}: {e}",
                exc_info=True,
            )
            raise StoreError("Failed to subscribe to message updates.") from e

        self._subscription = subscription
        self.conversation = conversation
        self._listener = asyncio.create_task(self._listen(subscription, conversation))
        self.state = ReconcilerState.SUBSCRIBED
        logger.info(
            f"Subscribed to '{self.table}' for {conversation.type.value} {conversation.id}"
        )

    async def deactivate(self) -> None:
        """Closes the subscription. No reload fires after this returns."""
        if self.state == ReconcilerState.IDLE:
            return

        subscription, listener = self._subscription, self._listener
        previous = self.conversation
        self._subscription = self._listener = None
        self.conversation = None
        self.state = ReconcilerState.IDLE

        # The listener goes first; once it is gone nothing can request a reload
        await _cancel(listener)
        if subscription is not None:
            await subscription.close()
        reload_task, self._reload_task = self._reload_task, None
        self._reload_again = False
        await _cancel(reload_task)

        logger.info(f"Unsubscribed from '{self.table}' for {previous.id}")

    async def _listen(
        self, subscription: Subscription, conversation: ConversationIdentity
    ) -> None:
        async for event in subscription:
            if self._subscription is not subscription:
                return
            if not is_relevant(event, conversation):
                logger.debug(f"Ignoring event unrelated to {conversation.id}")
                continue
            self._request_reload(conversation)

    def _request_reload(self, conversation: ConversationIdentity) -> None:
        if self._reload_task is not None and not self._reload_task.done():
            # One trailing reload covers every event that arrives meanwhile
            self._reload_again = True
            return
        self._reload_task = asyncio.create_task(self._run_reloads(conversation))

    async def _run_reloads(self, conversation: ConversationIdentity) -> None:
        while True:
            self._reload_again = False
            try:
                await self.reload(conversation)
            except ServiceError as e:
                logger.warning(
                    f"Reload of {conversation.id} after an event failed: {e}"
                )
            except Exception as e:
                logger.error(
                    f"Unexpected error reloading {conversation.id}: {e}", exc_info=True
                )
            if not self._reload_again:
                return
