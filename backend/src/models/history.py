import threading
from collections import deque
from typing import Deque, List

from utilities import HISTORY_SIZE

from .models import Event


class EventHistory:
    '''
    Bounded buffer of the most recent events, oldest first.

    Appending to a full buffer evicts the oldest event. ``snapshot`` copies
    under the lock so callers can iterate while new events keep arriving.
    '''

    def __init__(self, max_size: int = HISTORY_SIZE):
        if max_size <= 0:
            raise ValueError("max_size must be positive")
        self._events: Deque[Event] = deque(maxlen=max_size)
        self._lock = threading.Lock()

    @property
    def max_size(self) -> int:
        return self._events.maxlen

    def append(self, event: Event) -> None:
        with self._lock:
            self._events.append(event)

    def snapshot(self) -> List[Event]:
        with self._lock:
            return list(self._events)

    def is_empty(self) -> bool:
        with self._lock:
            return not self._events

    def __len__(self) -> int:
        with self._lock:
            return len(self._events)
