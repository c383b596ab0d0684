"""
Event bus for Skirmish.

In-memory asyncio pub/sub for domain events. Publishing never blocks the
caller: events are queued and delivered to subscribers by a background task
that starts on the first publish inside a running event loop.
"""

import asyncio
import inspect
from collections import defaultdict
from collections.abc import Callable
from typing import Any, TypeVar

from ..structured_logging.enhanced_logging_config import get_logger
from .event_types import BaseEvent

T = TypeVar("T", bound=BaseEvent)

logger = get_logger(__name__)


class EventBus:
    """
    Pure asyncio event bus.

    Subscriber failures are logged and never reach the publisher or other
    subscribers.
    """

    def __init__(self) -> None:
        """Initialize the event bus."""
        self._subscribers: dict[type[BaseEvent], list[Callable[[BaseEvent], Any]]] = defaultdict(list)
        self._event_queue: asyncio.Queue = asyncio.Queue()
        self._running: bool = False
        self._processing_task: asyncio.Task | None = None
        self._sequence: int = 0

    def _ensure_async_processing(self) -> None:
        """Start the processing task if a loop is running and it is not started yet."""
        if self._running and self._processing_task is not None and not self._processing_task.done():
            return
        try:
            asyncio.get_running_loop()
        except RuntimeError:
            logger.debug("EventBus will start processing once an event loop is running")
            return
        self._running = True
        self._processing_task = asyncio.create_task(self._process_events_async(), name="skirmish-event-bus")
        logger.info("EventBus processing started")

    async def _process_events_async(self) -> None:
        """Deliver queued events until stopped."""
        while self._running:
            event = await self._event_queue.get()
            try:
                if event is None:
                    break
                await self._handle_event_async(event)
            except Exception as e:  # pylint: disable=broad-exception-caught  # Reason: one bad event must not stop delivery
                logger.error("Error processing event", error=str(e), error_type=type(e).__name__, exc_info=True)
            finally:
                self._event_queue.task_done()

    async def _handle_event_async(self, event: BaseEvent) -> None:
        """Call every subscriber registered for the event's type."""
        subscribers = list(self._subscribers.get(type(event), []))
        if not subscribers:
            logger.debug("No subscribers for event type", event_type=event.event_type)
            return

        async_tasks: list[tuple[str, Any]] = []
        for subscriber in subscribers:
            subscriber_name = getattr(subscriber, "__name__", "unknown")
            if inspect.iscoroutinefunction(subscriber):
                async_tasks.append((subscriber_name, subscriber(event)))
                continue
            try:
                subscriber(event)
            except Exception as e:  # pylint: disable=broad-exception-caught  # Reason: subscriber errors are isolated
                logger.error("Error in sync event subscriber", subscriber_name=subscriber_name, error=str(e))

        if async_tasks:
            results = await asyncio.gather(*(coro for _, coro in async_tasks), return_exceptions=True)
            for (subscriber_name, _), result in zip(async_tasks, results, strict=True):
                if isinstance(result, Exception):
                    logger.error(
                        "Error in async subscriber",
                        subscriber_name=subscriber_name,
                        error=str(result),
                        error_type=type(result).__name__,
                    )

    def publish(self, event: BaseEvent) -> None:
        """
        Queue an event for delivery.

        Raises:
            ValueError: If the event does not inherit from BaseEvent
        """
        if not isinstance(event, BaseEvent):
            raise ValueError("Event must inherit from BaseEvent")

        self._sequence += 1
        event.sequence_number = self._sequence
        self._ensure_async_processing()
        self._event_queue.put_nowait(event)
        logger.debug("Published event to queue", event_type=event.event_type, queue_size=self._event_queue.qsize())

    def subscribe(self, event_type: type[T], handler: Callable[[T], Any]) -> None:
        """Subscribe a handler to one event type."""
        if not issubclass(event_type, BaseEvent):
            raise ValueError("Event type must inherit from BaseEvent")
        if not callable(handler):
            raise ValueError("Handler must be callable")
        self._subscribers[event_type].append(handler)  # type: ignore[arg-type]
        logger.debug("Added subscriber for event type", event_type=event_type.__name__)

    def unsubscribe(self, event_type: type[T], handler: Callable[[T], Any]) -> bool:
        """Remove a handler, returning True when it was registered."""
        try:
            self._subscribers.get(event_type, []).remove(handler)  # type: ignore[arg-type]
            return True
        except ValueError:
            return False

    def get_subscriber_count(self, event_type: type[BaseEvent]) -> int:
        """Get the number of subscribers for a specific event type."""
        return len(self._subscribers.get(event_type, []))

    async def wait_until_idle(self) -> None:
        """Wait until every queued event has been delivered."""
        if self._processing_task is None:
            return
        await self._event_queue.join()

    async def shutdown(self) -> None:
        """Stop processing after delivering events already queued."""
        if not self._running:
            return
        self._event_queue.put_nowait(None)
        task = self._processing_task
        if task is not None:
            try:
                await asyncio.wait_for(task, timeout=2.0)
            except TimeoutError:
                task.cancel()
        self._running = False
        self._processing_task = None
        logger.info("EventBus processing stopped")
