"""
Event feed - Pushes editing events to canvas clients over WebSockets.

Every connected canvas is a subscriber. Events are typed pydantic models
(see backend.models) serialized once and sent to all subscribers
concurrently; a subscriber whose send fails is dropped from the feed.

Besides events, a subscriber may send "ping" to check the connection and
gets a pong event back. Anything else it sends is ignored.
"""

import asyncio
import logging

from fastapi import WebSocket, WebSocketDisconnect
from pydantic import BaseModel

from .models import PongEvent

logger = logging.getLogger(__name__)


class EventFeed:
    """Subscriber registry for graph_updated / guides events."""

    def __init__(self):
        self._subscribers: list[WebSocket] = []

    @property
    def connection_count(self) -> int:
        return len(self._subscribers)

    def subscribe(self, websocket: WebSocket):
        self._subscribers.append(websocket)
        logger.info("Canvas subscribed (%d connected)", len(self._subscribers))

    def unsubscribe(self, websocket: WebSocket):
        if websocket in self._subscribers:
            self._subscribers.remove(websocket)
            logger.info("Canvas unsubscribed (%d connected)", len(self._subscribers))

    async def serve(self, websocket: WebSocket):
        """Run one subscriber connection until the client goes away."""
        await websocket.accept()
        self.subscribe(websocket)
        try:
            while True:
                if await websocket.receive_text() == "ping":
                    await websocket.send_text(PongEvent().model_dump_json())
        except WebSocketDisconnect as e:
            logger.debug("Canvas disconnected (code %s)", e.code)
        finally:
            self.unsubscribe(websocket)

    async def publish(self, event: BaseModel) -> int:
        """
        Send an event to every subscriber.

        Returns:
            Number of subscribers that received it
        """
        subscribers = list(self._subscribers)
        if not subscribers:
            return 0

        text = event.model_dump_json()
        results = await asyncio.gather(
            *(ws.send_text(text) for ws in subscribers),
            return_exceptions=True,
        )

        delivered = 0
        for websocket, result in zip(subscribers, results):
            if isinstance(result, Exception):
                logger.debug("Dropping subscriber after failed send: %s", result)
                self.unsubscribe(websocket)
            else:
                delivered += 1
        return delivered


# Global instance
event_feed = EventFeed()
