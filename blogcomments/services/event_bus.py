import asyncio
from typing import Callable, Optional

from blogcomments.core.logger import setup_logger
from blogcomments.models.events import CommentEvent

logger = setup_logger(__name__)

Listener = Callable[[CommentEvent], None]


class CommentEventBus:
    """Fan-out of store changes to callbacks and per-post asyncio queues.

    Publishing is synchronous; all callers share the client's single event loop.
    """

    def __init__(self) -> None:
        self._listeners: list[Listener] = []
        # None key receives events for every post
        self._queues: dict[Optional[str], set[asyncio.Queue[CommentEvent]]] = {}

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def connect(self, post_id: Optional[str] = None) -> asyncio.Queue[CommentEvent]:
        queue: asyncio.Queue[CommentEvent] = asyncio.Queue()
        self._queues.setdefault(post_id, set()).add(queue)
        return queue

    def disconnect(self, queue: asyncio.Queue[CommentEvent], post_id: Optional[str] = None) -> None:
        queues = self._queues.get(post_id)
        if not queues:
            return
        queues.discard(queue)
        if not queues:
            self._queues.pop(post_id, None)

    def publish(self, event: CommentEvent) -> None:
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception:
                logger.exception("Comment listener failed for %s", event.type.value)
        targets = list(self._queues.get(None, set()))
        if event.post_id is not None:
            targets.extend(self._queues.get(event.post_id, set()))
        for queue in targets:
            queue.put_nowait(event)
