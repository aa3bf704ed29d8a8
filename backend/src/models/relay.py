import asyncio
import itertools
import threading
from typing import Optional

from utilities import EVENTS_TOPIC, HISTORY_SIZE, REPLAY_INTERVAL, SUBSCRIBER_QUEUE_SIZE, Settings, get_logger

from .history import EventHistory
from .models import DeliveryStatus, Event, Subscriber, call_soon_in
from .registry import SubscriberRegistry
from .replay import ReplayScheduler

logger = get_logger(__name__)


def _running_task() -> Optional[asyncio.Task]:
    try:
        return asyncio.current_task()
    except RuntimeError:
        # called from a worker thread
        return None


class EventRelay:
    '''
    Owns the event history and the subscriber registry.

    ``publish`` appends to history and fans out to every live subscriber,
    ``subscribe`` registers a subscriber and starts its history replay,
    ``unsubscribe`` tears both down again.
    '''

    def __init__(
        self,
        history_size: int = HISTORY_SIZE,
        replay_interval: float = REPLAY_INTERVAL,
        subscriber_queue_size: int = SUBSCRIBER_QUEUE_SIZE,
        topic: str = EVENTS_TOPIC,
    ):
        self.topic = topic
        self.subscriber_queue_size = subscriber_queue_size
        self.history = EventHistory(history_size)
        self.registry = SubscriberRegistry()
        self.scheduler = ReplayScheduler(self.registry, replay_interval, on_failure=self._drop)

        # id allocation and history append happen together
        self._lock = threading.Lock()
        self._ids = itertools.count(1)

        # stats
        self.messages_published = 0
        self.subscribers_dropped = 0

    @classmethod
    def from_settings(cls, settings: Settings) -> "EventRelay":
        return cls(
            history_size=settings.history_size,
            replay_interval=settings.replay_interval,
            subscriber_queue_size=settings.subscriber_queue_size,
        )

    # -------------- Publishing --------------
    def publish(self, payload: str, topic: Optional[str] = None) -> Event:
        if not isinstance(payload, str):
            raise TypeError(f"payload must be str, got {type(payload).__name__}")

        with self._lock:
            event = Event(id=next(self._ids), payload=payload, topic=topic or self.topic)
            self.history.append(event)
            self.messages_published += 1

        # fan-out outside lock
        self.registry.for_each(lambda subscriber: self._dispatch(subscriber, event))
        logger.debug("event_published", event_id=event.id, subscribers=len(self.registry))
        return event

    def _dispatch(self, subscriber: Subscriber, event: Event) -> None:
        status = subscriber.deliver(event)
        if status is not DeliveryStatus.DELIVERED:
            self._drop(subscriber, status)

    # -------------- Subscribers --------------
    def subscribe(self, client_id: Optional[str] = None) -> Subscriber:
        subscriber = Subscriber(client_id, queue_size=self.subscriber_queue_size)
        previous = self.registry.displace(subscriber)
        if previous is not None:
            # already subscribed; the old stream is closed and replaced
            self._detach(previous)
            logger.info("subscriber_replaced", client_id=subscriber.client_id)

        history = self.history.snapshot()
        if history:
            try:
                self.scheduler.start(subscriber, history)
            except RuntimeError:
                # no running loop to replay on
                self._detach(subscriber)
                raise

        logger.info("subscriber_connected", client_id=subscriber.client_id, replay=len(history))
        return subscriber

    async def unsubscribe(self, subscriber: Subscriber) -> None:
        task = subscriber.replay_task
        if self._detach(subscriber):
            logger.info("subscriber_disconnected", client_id=subscriber.client_id)

        # wait for the cancelled replay so it never outlives the connection
        if task is not None and task is not _running_task():
            try:
                await task
            except asyncio.CancelledError:
                pass

    async def shutdown(self) -> None:
        for subscriber in self.registry.subscribers():
            await self.unsubscribe(subscriber)

    def _detach(self, subscriber: Subscriber) -> bool:
        removed = self.registry.remove(subscriber)
        subscriber.close()
        task = subscriber.replay_task
        if task is not None and not task.done() and task is not _running_task():
            call_soon_in(task.get_loop(), task.cancel)
        return removed

    def _drop(self, subscriber: Subscriber, status: DeliveryStatus) -> None:
        if not self._detach(subscriber):
            return
        with self._lock:
            self.subscribers_dropped += 1
        logger.warning("subscriber_dropped", client_id=subscriber.client_id, reason=status.value)

    def stats(self) -> dict:
        return {
            "messages": self.messages_published,
            "dropped": self.subscribers_dropped,
            "subscribers": len(self.registry),
            "history": len(self.history),
            "history_size": self.history.max_size,
        }
