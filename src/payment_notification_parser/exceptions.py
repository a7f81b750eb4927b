"""Custom exceptions for the payment notification parser.

Expected parse outcomes ("not a payment", "no amount") are returned as
``ParseResult`` failures and never raised. These exceptions cover faults only.
"""


class PaymentParserError(Exception):
    """Base exception for all payment notification parser errors."""


class ConfigurationError(PaymentParserError):
    """Exception raised for configuration related errors."""


class LookupTableError(ConfigurationError):
    """Exception raised when a built-in keyword or source table is inconsistent."""


class ChannelClosedError(PaymentParserError):
    """Exception raised when using a payment event channel after it was closed."""
