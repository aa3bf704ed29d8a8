import asyncio
import threading
from collections import deque
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Deque, Optional
from uuid import uuid4

from utilities import EVENTS_TOPIC, SUBSCRIBER_QUEUE_SIZE, now_ts


def running_loop() -> Optional[asyncio.AbstractEventLoop]:
    try:
        return asyncio.get_running_loop()
    except RuntimeError:
        return None


def call_soon_in(loop: Optional[asyncio.AbstractEventLoop], callback: Callable, *args) -> None:
    '''Run callback on loop: directly when already on it, thread-safely otherwise.'''
    if loop is None or loop is running_loop() or loop.is_closed():
        callback(*args)
    else:
        loop.call_soon_threadsafe(callback, *args)


# ------------ In-memory structures ------------
@dataclass(frozen=True)
class Event:
    ''' One published webhook payload, immutable once created.'''

    id: int
    payload: str
    topic: str = EVENTS_TOPIC
    created_at: str = field(default_factory=now_ts)


class DeliveryStatus(str, Enum):
    DELIVERED = "delivered"
    SLOW_CONSUMER = "slow_consumer"
    CLOSED = "closed"


class Subscriber:
    '''
    Represents one connected stream client.

    ``deliver`` and ``close`` may be called from any thread. The reader side
    (``async for``) belongs to one event loop, and wake-ups are always
    scheduled on that loop.
    '''

    def __init__(self, client_id: Optional[str] = None, queue_size: int = SUBSCRIBER_QUEUE_SIZE):

        # initialize fields
        self.client_id = client_id or uuid4().hex
        self.registered_at = now_ts()
        self.queue_size = queue_size

        # per subscriber event buffer
        # publisher should never wait for a slow subscriber
        # if the buffer is full the subscriber is dropped instead of blocking fan-out
        self._pending: Deque[Event] = deque()
        self._wakeup = asyncio.Event()
        # loop the reader runs on, bound on first read when created off-loop
        self._loop = running_loop()

        # history replay running for this subscriber, owned by its connection
        self.replay_task: Optional[asyncio.Task] = None
        self.connected = True

        # liveness check and enqueue happen together
        self._lock = threading.Lock()

    @property
    def backlog(self) -> int:
        with self._lock:
            return len(self._pending)

    def deliver(self, event: Event) -> DeliveryStatus:
        with self._lock:
            if not self.connected:
                return DeliveryStatus.CLOSED
            if len(self._pending) >= self.queue_size:
                return DeliveryStatus.SLOW_CONSUMER
            self._pending.append(event)
            loop = self._loop
        call_soon_in(loop, self._wakeup.set)
        return DeliveryStatus.DELIVERED

    def close(self) -> bool:
        '''Stop accepting events and end the stream. Returns False if already closed.'''
        with self._lock:
            if not self.connected:
                return False
            self.connected = False
            # pending events are dropped
            self._pending.clear()
            loop = self._loop
        call_soon_in(loop, self._wakeup.set)
        return True

    def __aiter__(self):
        return self

    async def __anext__(self) -> Event:
        while True:
            with self._lock:
                if self._loop is None:
                    self._loop = asyncio.get_running_loop()
                self._wakeup.clear()
                if self._pending:
                    return self._pending.popleft()
                if not self.connected:
                    raise StopAsyncIteration
            await self._wakeup.wait()

    def __repr__(self) -> str:
        return f"Subscriber(client_id={self.client_id!r}, connected={self.connected})"
