"""Payment notification listener.

Receives notifications from the platform's notification-delivery layer,
filters them to known payment apps, parses them on a worker pool and
publishes every successfully parsed payment on a ``PaymentEventChannel``.
"""

from __future__ import annotations

from concurrent.futures import Future, ThreadPoolExecutor
from types import TracebackType

import structlog

from payment_notification_parser.config import Settings
from payment_notification_parser.events import PaymentEventChannel
from payment_notification_parser.models import NotificationInput, ParseError, ParseResult
from payment_notification_parser.parsing.parser import PaymentNotificationParser

logger = structlog.get_logger()

# Outcomes that are routine for non-payment notifications.
_QUIET_ERRORS = frozenset(
    {ParseError.EMPTY_TEXT, ParseError.NOT_PAYMENT_RELATED, ParseError.AMOUNT_NOT_FOUND}
)


class PaymentNotificationListener:
    """Turns posted payment-app notifications into published payments.

    Each notification is handled independently; nothing is carried over
    between calls, so delivery order and duplicates do not matter.
    """

    def __init__(
        self,
        parser: PaymentNotificationParser | None = None,
        channel: PaymentEventChannel | None = None,
        settings: Settings | None = None,
    ) -> None:
        """Initialize the listener.

        Args:
            parser: Notification parser. If None, creates a new one.
            channel: Channel successful parses are published on. If None,
                creates a new one sized from settings.
            settings: Application settings. If None, uses default settings.
        """
        from payment_notification_parser.config import get_settings

        self.settings = settings or get_settings()
        self.parser = parser or PaymentNotificationParser(self.settings)
        self.channel = channel or PaymentEventChannel.from_settings(self.settings)
        self._allowed_packages = frozenset(self.settings.allowed_packages)
        self._executor: ThreadPoolExecutor | None = None
        logger.info(
            "payment_listener_initialized",
            enabled=self.settings.notification_listener_enabled,
            allowed_packages=len(self._allowed_packages),
        )

    def on_notification_posted(self, notification: NotificationInput) -> ParseResult | None:
        """Handle one posted notification synchronously.

        Args:
            notification: The posted notification.

        Returns:
            The parse result, or None when the notification was skipped
            because the feature is disabled or the app is not a payment app.
        """
        if not self.settings.notification_listener_enabled:
            logger.debug("payment_listener_disabled", source_app_id=notification.source_app_id)
            return None

        if notification.source_app_id not in self._allowed_packages:
            return None

        result = self.parser.parse(notification)

        if result.payment is not None:
            delivered = self.channel.publish(result.payment)
            logger.info(
                "payment_detected",
                source_app_id=notification.source_app_id,
                amount=str(result.payment.amount),
                type=result.payment.type.value,
                confidence=result.payment.confidence,
                delivered=delivered,
            )
        elif result.error in _QUIET_ERRORS:
            logger.debug(
                "payment_notification_ignored",
                source_app_id=notification.source_app_id,
                reason=result.error.value,
            )
        else:
            logger.warning(
                "payment_notification_failed",
                source_app_id=notification.source_app_id,
                reason=result.error.value if result.error else None,
                detail=result.detail,
            )

        return result

    def submit(self, notification: NotificationInput) -> Future[ParseResult | None]:
        """Handle a notification on the worker pool.

        Returns:
            Future resolving to the same value as ``on_notification_posted``.
            Unexpected errors surface through the future.
        """
        if self._executor is None:
            self._executor = ThreadPoolExecutor(
                max_workers=self.settings.worker_count,
                thread_name_prefix="payment-parser",
            )
        return self._executor.submit(self.on_notification_posted, notification)

    def shutdown(self, wait: bool = True) -> None:
        """Stop the worker pool.

        Args:
            wait: Whether to wait for queued notifications to finish.
        """
        if self._executor is not None:
            self._executor.shutdown(wait=wait)
            self._executor = None
        logger.info("payment_listener_stopped")

    def __enter__(self) -> PaymentNotificationListener:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.shutdown()
