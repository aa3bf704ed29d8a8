import threading
from typing import Callable, Dict, List, Optional

from .models import Subscriber


class SubscriberRegistry:
    ''' Live subscribers keyed by client_id, membership checked by identity.'''

    def __init__(self):
        self._subscribers: Dict[str, Subscriber] = {}
        self._lock = threading.Lock()

    def add(self, subscriber: Subscriber) -> Subscriber:
        self.displace(subscriber)
        return subscriber

    def displace(self, subscriber: Subscriber) -> Optional[Subscriber]:
        '''Register subscriber, returning whoever held its client_id before.'''
        with self._lock:
            previous = self._subscribers.get(subscriber.client_id)
            self._subscribers[subscriber.client_id] = subscriber
        return previous if previous is not subscriber else None

    def remove(self, subscriber: Subscriber) -> bool:
        with self._lock:
            if self._subscribers.get(subscriber.client_id) is not subscriber:
                return False
            del self._subscribers[subscriber.client_id]
            return True

    def contains(self, subscriber: Subscriber) -> bool:
        with self._lock:
            return self._subscribers.get(subscriber.client_id) is subscriber

    def subscribers(self) -> List[Subscriber]:
        with self._lock:
            return list(self._subscribers.values())

    def for_each(self, fn: Callable[[Subscriber], None]) -> None:
        # iterate a copy so fn may remove the subscriber it is visiting
        for subscriber in self.subscribers():
            if self.contains(subscriber):
                fn(subscriber)

    def __len__(self) -> int:
        with self._lock:
            return len(self._subscribers)
