"""Tests for throttled history replay."""

import asyncio

import pytest

from helpers import payloads, receive
from models import DeliveryStatus, Event, ReplayScheduler, Subscriber, SubscriberRegistry

INTERVAL = 0.1


def _history(count: int):
    return [Event(id=i, payload=f"h{i}") for i in range(1, count + 1)]


@pytest.fixture
def registry() -> SubscriberRegistry:
    return SubscriberRegistry()


class TestReplayScheduler:
    async def test_replays_in_order_with_throttle(self, registry: SubscriberRegistry) -> None:
        scheduler = ReplayScheduler(registry, interval=INTERVAL)
        subscriber = registry.add(Subscriber("a"))
        history = _history(4)

        started = asyncio.get_running_loop().time()
        task = scheduler.start(subscriber, history)
        received = await receive(subscriber, 4)

        assert await task == 4
        assert subscriber.replay_task is task
        assert payloads(e for _, e in received) == ["h1", "h2", "h3", "h4"]

        times = [started] + [t for t, _ in received]
        gaps = [later - earlier for earlier, later in zip(times, times[1:])]
        assert all(gap >= INTERVAL * 0.8 for gap in gaps)

    async def test_unregistered_subscriber_gets_nothing(self, registry: SubscriberRegistry) -> None:
        scheduler = ReplayScheduler(registry, interval=0)
        subscriber = Subscriber("gone")

        assert await scheduler.replay(subscriber, _history(3)) == 0
        assert subscriber.backlog == 0

    async def test_stops_after_disconnect_mid_replay(self, registry: SubscriberRegistry) -> None:
        scheduler = ReplayScheduler(registry, interval=INTERVAL)
        subscriber = registry.add(Subscriber("a"))

        task = scheduler.start(subscriber, _history(5))
        received = await receive(subscriber, 2)
        registry.remove(subscriber)

        assert await task == 2
        assert payloads(e for _, e in received) == ["h1", "h2"]
        await asyncio.sleep(INTERVAL * 2)
        assert subscriber.backlog == 0

    async def test_empty_history(self, registry: SubscriberRegistry) -> None:
        scheduler = ReplayScheduler(registry, interval=INTERVAL)
        subscriber = registry.add(Subscriber("a"))
        assert await scheduler.replay(subscriber, []) == 0

    async def test_delivery_failure_is_reported_and_stops(self, registry: SubscriberRegistry) -> None:
        failures = []
        scheduler = ReplayScheduler(
            registry,
            interval=0,
            on_failure=lambda subscriber, status: failures.append((subscriber.client_id, status)),
        )
        subscriber = registry.add(Subscriber("slow", queue_size=1))

        assert await scheduler.replay(subscriber, _history(3)) == 1
        assert failures == [("slow", DeliveryStatus.SLOW_CONSUMER)]

    async def test_replays_run_independently(self, registry: SubscriberRegistry) -> None:
        scheduler = ReplayScheduler(registry, interval=INTERVAL)
        first = registry.add(Subscriber("first"))
        second = registry.add(Subscriber("second"))

        started = asyncio.get_running_loop().time()
        tasks = [scheduler.start(first, _history(3)), scheduler.start(second, _history(3))]
        counts = await asyncio.gather(*tasks)
        elapsed = asyncio.get_running_loop().time() - started

        assert counts == [3, 3]
        # two serialized replays would take six intervals
        assert elapsed < INTERVAL * 5
