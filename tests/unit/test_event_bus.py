import pytest

from blogcomments.models.enums import CommentEventType
from blogcomments.models.events import CommentEvent
from blogcomments.services.event_bus import CommentEventBus


def _event(post_id="post-1", event_type=CommentEventType.UPSERTED):
    return CommentEvent(type=event_type, post_id=post_id, comment_id="c1", version=1)


def test_listeners_receive_events():
    bus = CommentEventBus()
    received = []
    bus.subscribe(received.append)

    bus.publish(_event())

    assert len(received) == 1
    assert received[0].post_id == "post-1"


def test_unsubscribe_stops_delivery():
    bus = CommentEventBus()
    received = []
    unsubscribe = bus.subscribe(received.append)

    unsubscribe()
    unsubscribe()
    bus.publish(_event())

    assert received == []


def test_failing_listener_does_not_block_others():
    bus = CommentEventBus()
    received = []

    def broken(event):
        raise RuntimeError("boom")

    bus.subscribe(broken)
    bus.subscribe(received.append)

    bus.publish(_event())

    assert len(received) == 1


@pytest.mark.asyncio
async def test_queues_are_routed_by_post():
    bus = CommentEventBus()
    post_one = bus.connect("post-1")
    post_two = bus.connect("post-2")
    everything = bus.connect()

    bus.publish(_event("post-1"))
    bus.publish(_event(None, CommentEventType.RESET))

    assert post_one.qsize() == 1
    assert post_two.qsize() == 0
    assert everything.qsize() == 2
    assert (await post_one.get()).post_id == "post-1"


@pytest.mark.asyncio
async def test_disconnect_removes_queue():
    bus = CommentEventBus()
    queue = bus.connect("post-1")

    bus.disconnect(queue, "post-1")
    bus.disconnect(queue, "post-1")
    bus.publish(_event("post-1"))

    assert queue.empty()


@pytest.mark.asyncio
async def test_store_changes_reach_connected_queue(store):
    from conftest import make_comment

    queue = store.event_bus.connect("post-1")

    store.upsert(make_comment("c1"))

    event = await queue.get()
    assert event.type == CommentEventType.UPSERTED
    assert event.comment_id == "c1"
