"""Broadcast channel for parsed payments.

Each subscriber gets its own bounded queue. Publishing never blocks: when a
subscriber's queue is full the oldest undelivered payment is dropped to make
room, since a fresh payment matters more than a stale one. The channel is an
ordinary object owned by whoever wires the listener to its consumers; there is
no process-wide instance.
"""

from __future__ import annotations

import queue
import threading
from collections.abc import Iterator
from types import TracebackType

import structlog

from payment_notification_parser.config import Settings
from payment_notification_parser.exceptions import ChannelClosedError
from payment_notification_parser.models import PaymentInfo

logger = structlog.get_logger()

DEFAULT_CAPACITY = 10

# Marks the end of a closed subscription's queue.
_CLOSED = object()


class Subscription:
    """A consumer's view of a ``PaymentEventChannel``."""

    def __init__(self, channel: PaymentEventChannel, capacity: int) -> None:
        self._channel = channel
        self._capacity = capacity
        # Unbounded so the close marker always fits; capacity is enforced in _offer.
        self._queue: queue.Queue[object] = queue.Queue()
        self._lock = threading.Lock()
        self._closed = False
        self.dropped = 0

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def pending(self) -> int:
        """Number of payments waiting to be consumed."""
        return self._queue.qsize() - (1 if self._closed else 0)

    def _offer(self, payment: PaymentInfo) -> bool:
        # Never block the publisher.
        with self._lock:
            if self._closed:
                return False
            while self._queue.qsize() >= self._capacity:
                try:
                    _ = self._queue.get_nowait()
                except queue.Empty:
                    break
                self.dropped += 1
                logger.warning(
                    "payment_event_dropped",
                    capacity=self._capacity,
                    dropped_total=self.dropped,
                )
            self._queue.put_nowait(payment)
            return True

    def _unwrap(self, item: object) -> PaymentInfo:
        if item is _CLOSED:
            # Put the marker back so every later get() sees it too.
            self._queue.put_nowait(_CLOSED)
            raise ChannelClosedError("subscription is closed")
        return item  # type: ignore[return-value]

    def get(self, timeout: float | None = None) -> PaymentInfo:
        """Wait for the next payment.

        Args:
            timeout: Seconds to wait. None waits until a payment arrives or
                the subscription is closed.

        Returns:
            The next payment.

        Raises:
            queue.Empty: If the timeout expires first.
            ChannelClosedError: If the subscription is closed and drained.
        """
        return self._unwrap(self._queue.get(timeout=timeout))

    def get_nowait(self) -> PaymentInfo:
        """Return the next payment without waiting.

        Raises:
            queue.Empty: If no payment is pending.
            ChannelClosedError: If the subscription is closed and drained.
        """
        return self._unwrap(self._queue.get_nowait())

    def drain(self) -> list[PaymentInfo]:
        """Return every pending payment without waiting."""
        payments: list[PaymentInfo] = []
        while True:
            try:
                payments.append(self.get_nowait())
            except (queue.Empty, ChannelClosedError):
                return payments

    def close(self) -> None:
        """Stop receiving payments. Already queued payments stay readable."""
        self._channel._unsubscribe(self)
        with self._lock:
            if self._closed:
                return
            self._closed = True
            self._queue.put_nowait(_CLOSED)

    def __iter__(self) -> Iterator[PaymentInfo]:
        while True:
            try:
                yield self.get()
            except ChannelClosedError:
                return

    def __enter__(self) -> Subscription:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()


class PaymentEventChannel:
    """Single-producer, multi-consumer broadcast of parsed payments."""

    def __init__(self, capacity: int = DEFAULT_CAPACITY) -> None:
        """Create a channel.

        Args:
            capacity: Per-subscriber buffer size.
        """
        if capacity < 1:
            raise ValueError("capacity must be at least 1")
        self.capacity = capacity
        self._subscribers: set[Subscription] = set()
        self._lock = threading.Lock()
        self._closed = False

    @classmethod
    def from_settings(cls, settings: Settings) -> PaymentEventChannel:
        return cls(capacity=settings.event_buffer_capacity)

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def subscriber_count(self) -> int:
        with self._lock:
            return len(self._subscribers)

    def subscribe(self) -> Subscription:
        """Register a new consumer.

        Raises:
            ChannelClosedError: If the channel is closed.
        """
        with self._lock:
            if self._closed:
                raise ChannelClosedError("channel is closed")
            subscription = Subscription(self, self.capacity)
            self._subscribers.add(subscription)
            count = len(self._subscribers)
        logger.debug("payment_channel_subscribed", subscriber_count=count)
        return subscription

    def _unsubscribe(self, subscription: Subscription) -> None:
        with self._lock:
            self._subscribers.discard(subscription)

    def publish(self, payment: PaymentInfo) -> int:
        """Deliver a payment to every active subscriber without blocking.

        Payments published while nobody is subscribed are discarded.

        Returns:
            Number of subscribers the payment was queued for.

        Raises:
            ChannelClosedError: If the channel is closed.
        """
        with self._lock:
            if self._closed:
                raise ChannelClosedError("channel is closed")
            subscribers = list(self._subscribers)

        delivered = sum(1 for s in subscribers if s._offer(payment))
        logger.debug("payment_published", delivered=delivered, amount=str(payment.amount))
        return delivered

    def close(self) -> None:
        """Close the channel and every subscription on it."""
        with self._lock:
            if self._closed:
                return
            self._closed = True
            subscribers = list(self._subscribers)
        for s in subscribers:
            s.close()
        logger.debug("payment_channel_closed", subscriber_count=len(subscribers))

    def __enter__(self) -> PaymentEventChannel:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()
