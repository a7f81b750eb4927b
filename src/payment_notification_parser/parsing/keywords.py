"""Keyword tables and the payment keyword gate.

The phrases below were collected from representative WeChat, Alipay and bank
notifications. They are plain data: tune them against real notification
samples (``paynote batch``) or extend them through settings rather than
editing the matching code.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field

from payment_notification_parser.utils import contains_any

PAYMENT_KEYWORDS: frozenset[str] = frozenset(
    {
        # zh
        "支付成功",
        "付款成功",
        "收款成功",
        "到账",
        "消费",
        "支出",
        "收入",
        "转账",
        "红包",
        "扣款",
        "交易成功",
        "支付通知",
        "退款",
        # en
        "payment successful",
        "paid",
        "received",
        "deposit",
        "expense",
        "income",
        "transfer",
        "deducted",
        "transaction successful",
        "spent",
        "refund",
        "debited",
        "credited",
        "purchase",
    }
)

INCOME_KEYWORDS: frozenset[str] = frozenset(
    {
        "收款成功",
        "到账",
        "收入",
        "转入",
        "收到",
        "红包",
        "退款",
        "已收款",
        "转账收款",
        "返现",
        "received",
        "deposit",
        "income",
        "refund",
        "credited",
        "transfer in",
        "cashback",
    }
)

EXPENSE_KEYWORDS: frozenset[str] = frozenset(
    {
        "支付成功",
        "付款成功",
        "消费",
        "支出",
        "扣款",
        "付给",
        "支付给",
        "已付款",
        "已扣款",
        "转出",
        "payment successful",
        "paid",
        "spent",
        "deducted",
        "expense",
        "transfer out",
        "debited",
        "purchase",
        "charged",
    }
)


@dataclass(frozen=True)
class KeywordTable:
    """Keyword sets used by the gate and the direction extractor."""

    payment: frozenset[str] = field(default=PAYMENT_KEYWORDS)
    income: frozenset[str] = field(default=INCOME_KEYWORDS)
    expense: frozenset[str] = field(default=EXPENSE_KEYWORDS)

    def extended(
        self,
        *,
        payment: Iterable[str] = (),
        income: Iterable[str] = (),
        expense: Iterable[str] = (),
    ) -> KeywordTable:
        """Return a copy with extra phrases added; blank phrases are ignored."""

        def _merge(base: frozenset[str], extra: Iterable[str]) -> frozenset[str]:
            return base | {p.strip() for p in extra if p and p.strip()}

        return KeywordTable(
            payment=_merge(self.payment, payment),
            income=_merge(self.income, income),
            expense=_merge(self.expense, expense),
        )


DEFAULT_KEYWORDS = KeywordTable()


def is_payment_related(text: str, keywords: KeywordTable = DEFAULT_KEYWORDS) -> bool:
    """Cheap pre-filter deciding whether text looks like a payment at all.

    Args:
        text: Notification text.
        keywords: Keyword table to check against.

    Returns:
        True if any payment keyword occurs in the text (case-insensitive).
    """
    return contains_any(text, keywords.payment)
