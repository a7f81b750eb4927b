"""Pytest configuration and shared fixtures."""

from datetime import datetime

import pytest


@pytest.fixture
def mock_settings():
    """Provide mock settings for testing."""
    from payment_notification_parser.config import Settings

    return Settings(
        log_level="DEBUG",
        debug=True,
        event_buffer_capacity=3,
        worker_count=2,
    )


@pytest.fixture
def parser(mock_settings):
    """Provide a parser built from mock settings."""
    from payment_notification_parser.parsing.parser import PaymentNotificationParser

    return PaymentNotificationParser(mock_settings)


@pytest.fixture
def channel(mock_settings):
    """Provide a payment event channel sized from mock settings."""
    from payment_notification_parser.events import PaymentEventChannel

    return PaymentEventChannel.from_settings(mock_settings)


@pytest.fixture
def wechat_notification():
    """Provide a WeChat payment notification."""
    from payment_notification_parser.models import NotificationInput

    return NotificationInput(
        source_app_id="com.tencent.mm",
        title="WeChat Pay",
        body="Payment successful ¥25.50 to Starbucks",
    )


@pytest.fixture
def bank_sms_text() -> str:
    """Provide a bank account-change notification body."""
    return "【招商银行】您尾号1234的账户于01月05日14:30在星巴克消费25.00元，余额1,000.00元"


@pytest.fixture
def posted_at() -> datetime:
    """Provide a fixed notification post time."""
    return datetime(2024, 1, 5, 14, 31)
