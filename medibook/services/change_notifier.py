"""Publish appointment changes to interested views."""

import inspect
from collections.abc import Awaitable, Callable
from typing import Any
from uuid import UUID

import redis
import redis.asyncio as aioredis
import structlog

from medibook.config import settings
from medibook.schemas.appointments import AppointmentEvent

logger = structlog.get_logger(__name__)

Subscriber = Callable[[AppointmentEvent], Awaitable[None] | None]


def doctor_channel(doctor_id: UUID | str, prefix: str | None = None) -> str:
    """Channel carrying every change to a doctor's calendar."""
    return f"{prefix or settings.appointment_channel_prefix}:doctor:{doctor_id}"


def patient_channel(patient_id: UUID | str, prefix: str | None = None) -> str:
    """Channel carrying every change to a patient's appointment list."""
    return f"{prefix or settings.appointment_channel_prefix}:patient:{patient_id}"


class ChangeNotifier:
    """
    Base notifier.

    Delivery is best-effort and at-least-once. Subscribers that miss an event
    reconcile by listing again.

    Events leave one process in commit order, but publishers in different
    processes race each other, so arrival order across processes is not
    guaranteed. Consumers order events for the same appointment by
    ``version``: each committed change carries a strictly greater version,
    and an event whose version is not greater than the last one applied for
    that appointment is a duplicate or a late arrival and is dropped.
    """

    def __init__(self, channel_prefix: str | None = None):
        """Initialize notifier with the channel prefix."""
        self.channel_prefix = channel_prefix or settings.appointment_channel_prefix

    def channels_for(self, event: AppointmentEvent) -> list[str]:
        """Get the channels an event is published to."""
        return [
            doctor_channel(event.doctor_id, self.channel_prefix),
            patient_channel(event.patient_id, self.channel_prefix),
        ]

    async def publish(self, event: AppointmentEvent) -> None:
        """Publish an event to every channel it belongs to."""
        raise NotImplementedError


class RedisChangeNotifier(ChangeNotifier):
    """Publishes events as JSON over Redis pub/sub."""

    def __init__(
        self,
        redis_client: aioredis.Redis,
        channel_prefix: str | None = None,
        max_attempts: int = 2,
    ):
        """Initialize notifier with an asyncio Redis client."""
        super().__init__(channel_prefix)
        self.redis = redis_client
        self.max_attempts = max_attempts

    async def publish(self, event: AppointmentEvent) -> None:
        """
        Publish event payload to the doctor and patient channels.

        Each channel is retried up to ``max_attempts`` times, so a subscriber
        may see the same event twice.

        Raises:
            redis.RedisError: If a channel could not be reached on any attempt
        """
        payload = event.model_dump_json()

        for channel in self.channels_for(event):
            for attempt in range(1, self.max_attempts + 1):
                try:
                    receivers = await self.redis.publish(channel, payload)
                    logger.debug(
                        "appointment_event_published",
                        channel=channel,
                        appointment_id=str(event.appointment_id),
                        receivers=receivers,
                    )
                    break
                except redis.RedisError as e:
                    if attempt == self.max_attempts:
                        raise
                    logger.warning(
                        "appointment_event_publish_retry",
                        channel=channel,
                        attempt=attempt,
                        error=str(e),
                    )


class InMemoryChangeNotifier(ChangeNotifier):
    """In-process notifier for embedding the scheduler and for tests."""

    def __init__(self, channel_prefix: str | None = None):
        """Initialize notifier with an empty subscriber table."""
        super().__init__(channel_prefix)
        # None subscribes to every channel
        self._subscribers: dict[str | None, list[Subscriber]] = {}

    def subscribe(self, callback: Subscriber, channel: str | None = None) -> Callable[[], None]:
        """
        Register a callback.

        Args:
            callback: Sync or async callable receiving each event
            channel: Only deliver events for this channel; all events if None

        Returns:
            Function that removes the subscription
        """
        self._subscribers.setdefault(channel, []).append(callback)

        def unsubscribe() -> None:
            self.unsubscribe(callback, channel)

        return unsubscribe

    def unsubscribe(self, callback: Subscriber, channel: str | None = None) -> None:
        """Remove a callback. Unknown callbacks are ignored."""
        callbacks = self._subscribers.get(channel, [])
        if callback in callbacks:
            callbacks.remove(callback)

    async def publish(self, event: AppointmentEvent) -> None:
        """Deliver event to matching subscribers, each callback at most once per event."""
        targets: list[Subscriber] = list(self._subscribers.get(None, []))
        for channel in self.channels_for(event):
            for callback in self._subscribers.get(channel, []):
                if callback not in targets:
                    targets.append(callback)

        for callback in targets:
            try:
                result: Any = callback(event)
                if inspect.isawaitable(result):
                    await result
            except Exception as e:
                logger.warning(
                    "appointment_subscriber_failed",
                    appointment_id=str(event.appointment_id),
                    error=str(e),
                )
