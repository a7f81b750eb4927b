"""Payment Notification Parser - structured payments from payment-app notifications.

This package provides a rule-based engine that recognizes payment
notifications posted by wallet and banking apps, extracts amount, direction,
payee and payment method from their text, and broadcasts the resulting
records to in-process consumers.
"""

__version__ = "0.1.0"
__author__ = "Trickl"

from payment_notification_parser.config import Settings, get_settings
from payment_notification_parser.events import PaymentEventChannel
from payment_notification_parser.models import (
    NotificationInput,
    ParseError,
    ParseResult,
    PaymentInfo,
    PaymentSource,
    TransactionType,
)
from payment_notification_parser.parsing.parser import (
    PaymentNotificationParser,
    parse_notification,
    parse_text,
)

__all__ = [
    "NotificationInput",
    "ParseError",
    "ParseResult",
    "PaymentEventChannel",
    "PaymentInfo",
    "PaymentNotificationParser",
    "PaymentSource",
    "Settings",
    "TransactionType",
    "get_settings",
    "parse_notification",
    "parse_text",
    "__version__",
    "__author__",
]
