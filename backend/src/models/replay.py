import asyncio
from typing import Callable, Optional, Sequence

from utilities import REPLAY_INTERVAL, get_logger

from .models import DeliveryStatus, Event, Subscriber
from .registry import SubscriberRegistry

logger = get_logger(__name__)

FailureCallback = Callable[[Subscriber, DeliveryStatus], None]


class ReplayScheduler:
    '''
    Feeds buffered history to a newly connected subscriber, one event per
    ``interval`` seconds.

    Each replay runs as its own task and only ever writes to the subscriber it
    was started for. Live fan-out keeps going to the same subscriber queue in
    parallel, so a replayed event can arrive after a newer live one.
    '''

    def __init__(
        self,
        registry: SubscriberRegistry,
        interval: float = REPLAY_INTERVAL,
        on_failure: Optional[FailureCallback] = None,
    ):
        self.registry = registry
        self.interval = interval
        self.on_failure = on_failure

    def start(self, subscriber: Subscriber, events: Sequence[Event]) -> asyncio.Task:
        loop = asyncio.get_running_loop()
        task = loop.create_task(
            self.replay(subscriber, events),
            name=f"replay-{subscriber.client_id}",
        )
        subscriber.replay_task = task
        return task

    async def replay(self, subscriber: Subscriber, events: Sequence[Event]) -> int:
        delivered = 0
        for event in events:
            await asyncio.sleep(self.interval)

            # disconnected mid-replay, the rest of the history is abandoned
            if not self.registry.contains(subscriber):
                logger.debug(
                    "replay_aborted",
                    client_id=subscriber.client_id,
                    delivered=delivered,
                    remaining=len(events) - delivered,
                )
                return delivered

            status = subscriber.deliver(event)
            if status is not DeliveryStatus.DELIVERED:
                if self.on_failure is not None:
                    self.on_failure(subscriber, status)
                return delivered
            delivered += 1

        logger.debug("replay_completed", client_id=subscriber.client_id, delivered=delivered)
        return delivered
