"""In-process event bus carrying stream events from inference to the chat session."""

from collections.abc import Awaitable, Callable

from mindscribe.models.chat import StreamEvent
from mindscribe.utils.logger import get_logger

logger = get_logger(__name__)

EventHandler = Callable[[StreamEvent], Awaitable[None]]


class EventBus:
    """
    Publish/subscribe channel keyed by event type.

    Events carry no request id: subscribers attribute them on their own.
    ``publish`` awaits handlers one by one in subscription order, so a
    publisher that awaits each publish delivers events in order.
    """

    def __init__(self):
        self._subscribers: dict[type, list[EventHandler]] = {}

    def subscribe(self, event_type: type, handler: EventHandler) -> Callable[[], None]:
        """
        Subscribe to events of one type.

        Returns:
            Callable that removes the subscription
        """
        handlers = self._subscribers.setdefault(event_type, [])
        handlers.append(handler)

        def unsubscribe() -> None:
            if handler in handlers:
                handlers.remove(handler)

        return unsubscribe

    async def publish(self, event: StreamEvent) -> None:
        """Deliver an event to every subscriber of its type."""
        for handler in list(self._subscribers.get(type(event), [])):
            try:
                await handler(event)
            except Exception as e:
                logger.error(f"Error dispatching {type(event).__name__}: {e}")

    def subscriber_count(self, event_type: type) -> int:
        """Number of handlers subscribed to an event type."""
        return len(self._subscribers.get(event_type, []))
