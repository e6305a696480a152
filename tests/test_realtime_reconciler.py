import asyncio
import logging

import pytest

from docshare.schemas.conversation import ConversationIdentity
from docshare.schemas.events import ChangeEvent, EventKind
from docshare.services.exceptions import StoreError
from docshare.services.realtime_reconciler import (
    RealtimeReconciler,
    ReconcilerState,
    is_relevant,
)
from docshare.store import Subscription
from tests.test_helpers import (
    create_test_group,
    create_test_profile,
    settle,
    wait_until,
)

pytestmark = pytest.mark.asyncio

GROUP_G1 = ConversationIdentity.group("g1")
FRIEND_U2 = ConversationIdentity.friend("u2")


def message_event(**row) -> ChangeEvent:
    row.setdefault("group_id", None)
    return ChangeEvent(table="messages", kind=EventKind.INSERT, new=row)


@pytest.mark.parametrize(
    "row, conversation, expected",
    [
        ({"group_id": "g1", "sender_id": "u2"}, GROUP_G1, True),
        ({"group_id": "g2", "sender_id": "u2"}, GROUP_G1, False),
        ({"sender_id": "u2", "receiver_id": "u1"}, FRIEND_U2, True),
        ({"sender_id": "u1", "receiver_id": "u2"}, FRIEND_U2, True),
        ({"sender_id": "u3", "receiver_id": "u1"}, FRIEND_U2, False),
        ({"group_id": "g1", "sender_id": "u2"}, FRIEND_U2, False),
    ],
)
async def test_is_relevant(row, conversation, expected):
    assert is_relevant(message_event(**row), conversation) is expected


class ReloadRecorder:
    def __init__(self, delay: float = 0.0, fail: bool = False):
        self.calls: list[ConversationIdentity] = []
        self.delay = delay
        self.fail = fail

    async def __call__(self, conversation: ConversationIdentity) -> None:
        self.calls.append(conversation)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.fail:
            raise StoreError("reload failed")


def publish(store, **row) -> None:
    store.feed.publish(message_event(**row))


async def test_relevant_event_triggers_exactly_one_reload(store):
    reload = ReloadRecorder()
    reconciler = RealtimeReconciler(store, reload)
    await reconciler.activate(ConversationIdentity.group("g1"))

    publish(store, group_id="g1", sender_id="u2")
    await wait_until(lambda: len(reload.calls) == 1)
    await settle(0.05)

    assert reload.calls == [ConversationIdentity.group("g1")]
    await reconciler.deactivate()


async def test_irrelevant_event_is_ignored(store):
    reload = ReloadRecorder()
    reconciler = RealtimeReconciler(store, reload)
    await reconciler.activate(ConversationIdentity.friend("u2"))

    publish(store, sender_id="u3", receiver_id="u1")
    publish(store, group_id="g1", sender_id="u2")
    await settle(0.05)

    assert reload.calls == []
    await reconciler.deactivate()


async def test_events_during_a_reload_coalesce_into_one_more(store):
    reload = ReloadRecorder(delay=0.1)
    reconciler = RealtimeReconciler(store, reload)
    await reconciler.activate(ConversationIdentity.group("g1"))

    publish(store, group_id="g1", sender_id="u2")
    await wait_until(lambda: len(reload.calls) == 1)
    for _ in range(3):
        publish(store, group_id="g1", sender_id="u3")
    await wait_until(lambda: len(reload.calls) == 2)
    await settle(0.2)

    assert len(reload.calls) == 2
    await reconciler.deactivate()


async def test_activate_replaces_previous_subscription(store):
    reload = ReloadRecorder()
    reconciler = RealtimeReconciler(store, reload)

    await reconciler.activate(ConversationIdentity.group("g1"))
    await reconciler.activate(ConversationIdentity.friend("u3"))

    assert store.feed.subscriber_count("messages") == 1
    assert reconciler.conversation == ConversationIdentity.friend("u3")

    publish(store, group_id="g1", sender_id="u2")
    await settle(0.05)
    assert reload.calls == []
    await reconciler.deactivate()


async def test_no_reload_after_deactivate(store):
    reload = ReloadRecorder()
    reconciler = RealtimeReconciler(store, reload)
    await reconciler.activate(ConversationIdentity.group("g1"))

    await reconciler.deactivate()
    publish(store, group_id="g1", sender_id="u2")
    await settle(0.05)

    assert reload.calls == []
    assert reconciler.state == ReconcilerState.IDLE
    assert store.feed.subscriber_count("messages") == 0


async def test_deactivate_cancels_in_flight_reload(store):
    reload = ReloadRecorder(delay=1.0)
    reconciler = RealtimeReconciler(store, reload)
    await reconciler.activate(ConversationIdentity.group("g1"))

    publish(store, group_id="g1", sender_id="u2")
    await wait_until(lambda: len(reload.calls) == 1)
    await asyncio.wait_for(reconciler.deactivate(), timeout=0.5)

    assert reconciler.state == ReconcilerState.IDLE


async def test_deactivate_when_idle_is_a_no_op(store):
    reconciler = RealtimeReconciler(store, ReloadRecorder())
    await reconciler.deactivate()
    assert reconciler.state == ReconcilerState.IDLE


async def test_failed_reload_keeps_listening(store):
    reload = ReloadRecorder(fail=True)
    reconciler = RealtimeReconciler(store, reload)
    await reconciler.activate(ConversationIdentity.group("g1"))

    publish(store, group_id="g1", sender_id="u2")
    await wait_until(lambda: len(reload.calls) == 1)
    publish(store, group_id="g1", sender_id="u2")
    await wait_until(lambda: len(reload.calls) == 2)

    assert reconciler.state == ReconcilerState.SUBSCRIBED
    await reconciler.deactivate()


async def test_real_insert_reaches_the_reconciler(store):
    await create_test_profile(store, id="u1")
    await create_test_group(store, "Team", ["u1"], id="g1")
    reload = ReloadRecorder()
    reconciler = RealtimeReconciler(store, reload)
    await reconciler.activate(ConversationIdentity.group("g1"))

    await store.insert(
        "messages", {"sender_id": "u1", "group_id": "g1", "content": "hello"}
    )
    await wait_until(lambda: len(reload.calls) == 1)

    await reconciler.deactivate()


class SlowCloseSubscription(Subscription):
    """Wraps a subscription whose close() yields to the event loop before detaching."""

    def __init__(self, inner: Subscription):
        self.inner = inner

    @property
    def closed(self) -> bool:
        return self.inner.closed

    async def __anext__(self) -> ChangeEvent:
        return await self.inner.__anext__()

    async def close(self) -> None:
        await asyncio.sleep(0.01)
        await self.inner.close()


class SlowCloseStore:
    def __init__(self, inner):
        self.inner = inner

    async def subscribe(self, table, event_kinds):
        return SlowCloseSubscription(await self.inner.subscribe(table, event_kinds))


async def test_event_buffered_during_slow_close_does_not_reload(store):
    reload = ReloadRecorder(delay=0.05)
    reconciler = RealtimeReconciler(SlowCloseStore(store), reload)
    await reconciler.activate(GROUP_G1)

    publish(store, group_id="g1", sender_id="u2")
    await reconciler.deactivate()
    calls_at_teardown = len(reload.calls)
    await settle(0.2)

    assert len(reload.calls) == calls_at_teardown == 0
    assert reconciler._reload_task is None
    assert store.feed.subscriber_count("messages") == 0


async def test_unexpected_reload_error_is_logged_and_listening_continues(
    store, caplog
):
    calls = []

    async def broken_reload(conversation):
        calls.append(conversation)
        raise KeyError("sender_id")

    reconciler = RealtimeReconciler(store, broken_reload)
    await reconciler.activate(GROUP_G1)

    with caplog.at_level(logging.ERROR):
        publish(store, group_id="g1", sender_id="u2")
        await wait_until(lambda: len(calls) == 1)
        await wait_until(lambda: reconciler._reload_task.done())
    publish(store, group_id="g1", sender_id="u2")
    await wait_until(lambda: len(calls) == 2)
    await wait_until(lambda: reconciler._reload_task.done())

    assert reconciler._reload_task.exception() is None
    assert "Unexpected error reloading g1" in caplog.text
    await reconciler.deactivate()
