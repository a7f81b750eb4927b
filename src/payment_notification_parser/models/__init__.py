"""Data models for the payment notification parser.

This module contains Pydantic models for data validation and serialization.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from payment_notification_parser.models.notification import NotificationInput


class PaymentSource(str, Enum):
    """Payment application or bank that originated a payment."""

    WECHAT = "WECHAT"
    ALIPAY = "ALIPAY"
    UNIONPAY = "UNIONPAY"
    ICBC = "ICBC"
    CCB = "CCB"
    ABC = "ABC"
    BOC = "BOC"
    CMB = "CMB"
    BOCOM = "BOCOM"
    JD = "JD"
    MEITUAN = "MEITUAN"
    DOUYIN = "DOUYIN"
    UNKNOWN = "UNKNOWN"

    @property
    def display_name(self) -> str:
        """Human readable payment method label."""
        return _DISPLAY_NAMES[self]


_DISPLAY_NAMES: dict[PaymentSource, str] = {
    PaymentSource.WECHAT: "微信支付",
    PaymentSource.ALIPAY: "支付宝",
    PaymentSource.UNIONPAY: "云闪付",
    PaymentSource.ICBC: "工商银行",
    PaymentSource.CCB: "建设银行",
    PaymentSource.ABC: "农业银行",
    PaymentSource.BOC: "中国银行",
    PaymentSource.CMB: "招商银行",
    PaymentSource.BOCOM: "交通银行",
    PaymentSource.JD: "京东支付",
    PaymentSource.MEITUAN: "美团支付",
    PaymentSource.DOUYIN: "抖音支付",
    PaymentSource.UNKNOWN: "其他",
}


class TransactionType(str, Enum):
    """Direction of money movement."""

    EXPENSE = "EXPENSE"
    INCOME = "INCOME"


class ParseError(str, Enum):
    """Reasons a notification did not yield a payment."""

    EMPTY_TEXT = "EMPTY_TEXT"
    NOT_PAYMENT_RELATED = "NOT_PAYMENT_RELATED"
    AMOUNT_NOT_FOUND = "AMOUNT_NOT_FOUND"
    MALFORMED_INPUT = "MALFORMED_INPUT"


class PaymentInfo(BaseModel):
    """Structured payment extracted from a notification."""

    model_config = ConfigDict(frozen=True)

    amount: Decimal = Field(gt=0, description="Transaction amount, always positive")
    type: TransactionType = Field(description="Expense or income")
    payee: Optional[str] = Field(default=None, description="Merchant or counterparty name")
    payment_method: PaymentSource = Field(
        default=PaymentSource.UNKNOWN,
        description="App or bank the payment went through",
    )
    raw_text: str = Field(description="Notification text the record was parsed from")
    confidence: float = Field(ge=0.0, le=1.0, description="Confidence score")
    occurred_at: Optional[datetime] = Field(
        default=None,
        description="Transaction time when the text states one",
    )
    account_tail: Optional[str] = Field(
        default=None,
        description="Last digits of the card or account, when stated",
    )
    source_app_id: str = Field(default="", description="Application that posted the notification")

    @field_validator("amount")
    @classmethod
    def _quantize_amount(cls, v: Decimal) -> Decimal:
        return v.quantize(Decimal("0.01"))


class ParseResult(BaseModel):
    """Outcome of parsing one notification: a payment or a typed failure."""

    model_config = ConfigDict(frozen=True)

    payment: Optional[PaymentInfo] = Field(default=None, description="Parsed payment on success")
    error: Optional[ParseError] = Field(default=None, description="Failure reason")
    detail: Optional[str] = Field(default=None, description="Extra context for logs")

    @model_validator(mode="after")
    def _exactly_one_outcome(self) -> "ParseResult":
        if (self.payment is None) == (self.error is None):
            raise ValueError("exactly one of payment or error must be set")
        return self

    @property
    def ok(self) -> bool:
        return self.payment is not None

    @classmethod
    def success(cls, payment: PaymentInfo) -> "ParseResult":
        return cls(payment=payment)

    @classmethod
    def failure(cls, error: ParseError, detail: str | None = None) -> "ParseResult":
        return cls(error=error, detail=detail)


__all__ = [
    "NotificationInput",
    "ParseError",
    "ParseResult",
    "PaymentInfo",
    "PaymentSource",
    "TransactionType",
]
