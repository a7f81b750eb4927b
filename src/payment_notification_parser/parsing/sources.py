"""Mapping notification origins to payment sources.

Two lookups live here: the static application-id table used to classify the
app that posted a notification, and the brand-mention table used when the
app id alone is not conclusive (a generic banking app, or screenshot text
with no app id at all).
"""

from __future__ import annotations

from payment_notification_parser.exceptions import LookupTableError
from payment_notification_parser.models import PaymentSource
from payment_notification_parser.parsing.keywords import DEFAULT_KEYWORDS, KeywordTable

APP_ID_SOURCES: dict[str, PaymentSource] = {
    "com.tencent.mm": PaymentSource.WECHAT,
    "com.eg.android.AlipayGphone": PaymentSource.ALIPAY,
    "com.unionpay": PaymentSource.UNIONPAY,
    "com.icbc.mobile": PaymentSource.ICBC,
    "com.chinamworld.main": PaymentSource.CCB,
    "com.android.bankabc": PaymentSource.ABC,
    "com.chinaonlinepayment.boc": PaymentSource.BOC,
    "cmb.pb": PaymentSource.CMB,
    "com.bankcomm.Bankcomm": PaymentSource.BOCOM,
    "com.jingdong.app.mall": PaymentSource.JD,
    "com.sankuai.meituan": PaymentSource.MEITUAN,
    "com.ss.android.ugc.aweme": PaymentSource.DOUYIN,
}

# Ordered: wallets before banks, since a wallet notification often names the
# bank card it charged ("微信支付 ... 招商银行储蓄卡").
TEXT_SOURCE_HINTS: tuple[tuple[str, PaymentSource], ...] = (
    ("微信", PaymentSource.WECHAT),
    ("wechat", PaymentSource.WECHAT),
    ("支付宝", PaymentSource.ALIPAY),
    ("alipay", PaymentSource.ALIPAY),
    ("云闪付", PaymentSource.UNIONPAY),
    ("银联", PaymentSource.UNIONPAY),
    ("unionpay", PaymentSource.UNIONPAY),
    ("京东", PaymentSource.JD),
    ("美团", PaymentSource.MEITUAN),
    ("抖音", PaymentSource.DOUYIN),
    ("工商银行", PaymentSource.ICBC),
    ("建设银行", PaymentSource.CCB),
    ("农业银行", PaymentSource.ABC),
    ("中国银行", PaymentSource.BOC),
    ("招商银行", PaymentSource.CMB),
    ("交通银行", PaymentSource.BOCOM),
)


def classify_source(app_id: str) -> PaymentSource:
    """Classify the application that posted a notification.

    Args:
        app_id: Application/package identifier.

    Returns:
        The known source for the id, or ``PaymentSource.UNKNOWN``.
    """
    return APP_ID_SOURCES.get(app_id.strip(), PaymentSource.UNKNOWN)


def detect_source_from_text(text: str) -> PaymentSource | None:
    """Find a payment brand named in the text itself.

    Returns:
        The first brand mentioned, or None if the text names none.
    """
    folded = text.casefold()
    for phrase, source in TEXT_SOURCE_HINTS:
        if phrase in folded:
            return source
    return None


def validate_lookup_tables(keywords: KeywordTable = DEFAULT_KEYWORDS) -> None:
    """Check the built-in tables are internally consistent.

    Every source the text hints can produce must also be reachable from an app
    id, so classification is exhaustive over the sources the extractors know.

    Raises:
        LookupTableError: If a table is empty or inconsistent.
    """
    if not APP_ID_SOURCES:
        raise LookupTableError("application id table is empty")

    for app_id, source in APP_ID_SOURCES.items():
        if not isinstance(source, PaymentSource) or source is PaymentSource.UNKNOWN:
            raise LookupTableError(f"invalid source for application id {app_id!r}: {source!r}")

    classified = set(APP_ID_SOURCES.values())
    missing = {source for _, source in TEXT_SOURCE_HINTS} - classified
    if missing:
        names = ", ".join(sorted(s.value for s in missing))
        raise LookupTableError(f"text hints name sources with no application id: {names}")

    for name in ("payment", "income", "expense"):
        if not getattr(keywords, name):
            raise LookupTableError(f"{name} keyword table is empty")
