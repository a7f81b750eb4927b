"""In-process broadcast of parsed payments."""

from .channel import PaymentEventChannel, Subscription

__all__ = ["PaymentEventChannel", "Subscription"]
