"""Tests for appointment change notifications."""

import asyncio
import json
from datetime import UTC, date, datetime
from unittest.mock import AsyncMock
from uuid import uuid4

import pytest
import redis
import redis.asyncio as aioredis

from medibook.dependencies import get_change_notifier
from medibook.schemas.appointments import (
    AppointmentEvent,
    AppointmentEventType,
    AppointmentStatus,
)
from medibook.services.change_notifier import (
    InMemoryChangeNotifier,
    RedisChangeNotifier,
    doctor_channel,
    patient_channel,
)


@pytest.fixture
def event() -> AppointmentEvent:
    """A booking event."""
    return AppointmentEvent(
        event_type=AppointmentEventType.CREATED,
        appointment_id=uuid4(),
        doctor_id=uuid4(),
        patient_id=uuid4(),
        status=AppointmentStatus.SCHEDULED,
        date=date(2026, 11, 2),
        time_slot="10:00 AM",
        version=1,
        occurred_at=datetime.now(UTC),
    )


def test_channel_names(event: AppointmentEvent) -> None:
    """Events go to the doctor's and the patient's channel."""
    notifier = InMemoryChangeNotifier(channel_prefix="appts")

    assert notifier.channels_for(event) == [
        f"appts:doctor:{event.doctor_id}",
        f"appts:patient:{event.patient_id}",
    ]


@pytest.mark.asyncio
async def test_redis_publish(event: AppointmentEvent) -> None:
    """The JSON payload is published once per channel."""
    mock_redis = AsyncMock()
    notifier = RedisChangeNotifier(mock_redis, channel_prefix="appointments")

    await notifier.publish(event)

    channels = [call.args[0] for call in mock_redis.publish.call_args_list]
    assert channels == [
        doctor_channel(event.doctor_id, "appointments"),
        patient_channel(event.patient_id, "appointments"),
    ]
    payload = json.loads(mock_redis.publish.call_args_list[0].args[1])
    assert payload["appointment_id"] == str(event.appointment_id)
    assert payload["status"] == "scheduled"
    assert payload["version"] == 1


@pytest.mark.asyncio
async def test_redis_publish_yields_to_event_loop(event: AppointmentEvent) -> None:
    """Other tasks keep running while a slow publish is in flight."""
    ticks = 0

    async def ticker() -> None:
        nonlocal ticks
        while True:
            await asyncio.sleep(0.01)
            ticks += 1

    async def slow_publish(channel: str, payload: str) -> int:
        await asyncio.sleep(0.1)
        return 1

    mock_redis = AsyncMock()
    mock_redis.publish.side_effect = slow_publish
    notifier = RedisChangeNotifier(mock_redis)

    task = asyncio.create_task(ticker())
    try:
        await notifier.publish(event)
    finally:
        task.cancel()

    assert mock_redis.publish.await_count == 2
    assert ticks > 5


@pytest.mark.asyncio
async def test_redis_publish_retries(event: AppointmentEvent) -> None:
    """A transient failure is retried, which may deliver twice."""
    mock_redis = AsyncMock()
    mock_redis.publish.side_effect = [redis.ConnectionError("reset"), 1, 1]
    notifier = RedisChangeNotifier(mock_redis, max_attempts=2)

    await notifier.publish(event)

    assert mock_redis.publish.await_count == 3


@pytest.mark.asyncio
async def test_redis_publish_gives_up(event: AppointmentEvent) -> None:
    """Persistent failures are raised to the caller."""
    mock_redis = AsyncMock()
    mock_redis.publish.side_effect = redis.ConnectionError("down")
    notifier = RedisChangeNotifier(mock_redis, max_attempts=2)

    with pytest.raises(redis.ConnectionError):
        await notifier.publish(event)

    assert mock_redis.publish.await_count == 2


@pytest.mark.asyncio
async def test_in_memory_channel_filter(event: AppointmentEvent) -> None:
    """Subscribers only see their channel; global subscribers see everything."""
    notifier = InMemoryChangeNotifier(channel_prefix="appointments")
    everything, mine, someone_else = [], [], []

    notifier.subscribe(everything.append)
    notifier.subscribe(mine.append, doctor_channel(event.doctor_id, "appointments"))
    notifier.subscribe(someone_else.append, doctor_channel(uuid4(), "appointments"))

    await notifier.publish(event)

    assert everything == [event]
    assert mine == [event]
    assert someone_else == []


@pytest.mark.asyncio
async def test_in_memory_async_subscriber_and_unsubscribe(event: AppointmentEvent) -> None:
    """Async callbacks are awaited and unsubscribed callbacks stop receiving."""
    notifier = InMemoryChangeNotifier()
    received = []

    async def on_event(e: AppointmentEvent) -> None:
        received.append(e.appointment_id)

    unsubscribe = notifier.subscribe(on_event)
    await notifier.publish(event)
    unsubscribe()
    await notifier.publish(event)

    assert received == [event.appointment_id]


@pytest.mark.asyncio
async def test_in_memory_failing_subscriber(event: AppointmentEvent) -> None:
    """One broken subscriber does not starve the others."""
    notifier = InMemoryChangeNotifier()
    received = []

    def broken(e: AppointmentEvent) -> None:
        raise RuntimeError("view crashed")

    notifier.subscribe(broken)
    notifier.subscribe(received.append)

    await notifier.publish(event)

    assert received == [event]


def test_app_notifier_uses_asyncio_client() -> None:
    """The request-path notifier publishes through the asyncio Redis client."""
    notifier = get_change_notifier()

    assert isinstance(notifier, RedisChangeNotifier)
    assert isinstance(notifier.redis, aioredis.Redis)
