import asyncio
from typing import List, Tuple

from models import Event, Subscriber


async def receive(subscriber: Subscriber, count: int, timeout: float = 2.0) -> List[Tuple[float, Event]]:
    """Read ``count`` events from a subscriber, each paired with its arrival time."""
    loop = asyncio.get_running_loop()
    received = []
    for _ in range(count):
        event = await asyncio.wait_for(anext(subscriber), timeout)
        received.append((loop.time(), event))
    return received


def payloads(events) -> List[str]:
    return [event.payload for event in events]


WEBHOOK_SECRET = "test-webhook-secret"
VERIFY_TOKEN = "test-verify-token"
