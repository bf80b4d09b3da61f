import asyncio
import json

from backend.event_feed import EventFeed
from backend.models import GraphUpdatedEvent, GuidesEvent


class FakeSocket:
    def __init__(self, fail=False):
        self.sent = []
        self.fail = fail

    async def send_text(self, text):
        if self.fail:
            raise RuntimeError("connection closed")
        self.sent.append(json.loads(text))


def test_publish_reaches_every_subscriber():
    feed = EventFeed()
    first, second = FakeSocket(), FakeSocket()
    feed.subscribe(first)
    feed.subscribe(second)

    event = GraphUpdatedEvent(can_undo=True, can_redo=False, is_dirty=True, node_count=2, edge_count=1)
    delivered = asyncio.run(feed.publish(event))

    assert delivered == 2
    assert first.sent == second.sent == [{
        "type": "graph_updated",
        "can_undo": True,
        "can_redo": False,
        "is_dirty": True,
        "node_count": 2,
        "edge_count": 1,
    }]


def test_failed_subscriber_is_dropped():
    feed = EventFeed()
    alive, dead = FakeSocket(), FakeSocket(fail=True)
    feed.subscribe(alive)
    feed.subscribe(dead)

    delivered = asyncio.run(feed.publish(GuidesEvent(vertical=0)))

    assert delivered == 1
    assert feed.connection_count == 1
    assert alive.sent == [{"type": "guides", "horizontal": None, "vertical": 0.0}]


def test_publish_without_subscribers():
    feed = EventFeed()

    assert asyncio.run(feed.publish(GuidesEvent())) == 0


def test_unsubscribe_is_idempotent():
    feed = EventFeed()
    socket = FakeSocket()
    feed.subscribe(socket)

    feed.unsubscribe(socket)
    feed.unsubscribe(socket)

    assert feed.connection_count == 0
