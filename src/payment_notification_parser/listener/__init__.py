"""Wiring between posted notifications, the parser and payment consumers."""

from .service import PaymentNotificationListener

__all__ = ["PaymentNotificationListener"]
