"""Payment notification parser.

Turns the text of a payment-app notification into a ``PaymentInfo`` record or
a typed ``ParseError``. The parser is stateless after construction and every
expected failure is returned, never raised, so it is safe to call from any
number of worker threads at once.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Any

import structlog
from pydantic import ValidationError

from payment_notification_parser.config import Settings
from payment_notification_parser.models import (
    NotificationInput,
    ParseError,
    ParseResult,
    PaymentInfo,
    PaymentSource,
    TransactionType,
)
from payment_notification_parser.parsing.extractors import AmountMatch, TimeMatch, build_extractors
from payment_notification_parser.parsing.keywords import DEFAULT_KEYWORDS, KeywordTable, is_payment_related
from payment_notification_parser.parsing.sources import classify_source, validate_lookup_tables
from payment_notification_parser.utils import normalize_text

logger = structlog.get_logger()

# Confidence contributions per field.
AMOUNT_WITH_MARKER_WEIGHT = 0.4
AMOUNT_WITHOUT_MARKER_WEIGHT = 0.25
DIRECTION_EXPLICIT_WEIGHT = 0.3
DIRECTION_DEFAULTED_WEIGHT = 0.1
PAYEE_WEIGHT = 0.2
KNOWN_SOURCE_WEIGHT = 0.1


def compute_confidence(
    *,
    amount: AmountMatch,
    direction_explicit: bool,
    has_payee: bool,
    payment_method: PaymentSource,
) -> float:
    """Score how much of the record was extracted unambiguously.

    Returns:
        Weighted sum of the extracted fields, capped at 1.0.
    """

    score = AMOUNT_WITH_MARKER_WEIGHT if amount.has_marker else AMOUNT_WITHOUT_MARKER_WEIGHT
    score += DIRECTION_EXPLICIT_WEIGHT if direction_explicit else DIRECTION_DEFAULTED_WEIGHT
    if has_payee:
        score += PAYEE_WEIGHT
    if payment_method is not PaymentSource.UNKNOWN:
        score += KNOWN_SOURCE_WEIGHT
    return round(min(score, 1.0), 2)


class PaymentNotificationParser:
    """Rule-based extraction of payments from notification text.

    The parser runs the keyword gate, classifies the posting app, runs every
    registered field extractor against the normalized text and merges the
    results into one scored record.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        keywords: KeywordTable | None = None,
    ) -> None:
        """Initialize the parser.

        Args:
            settings: Application settings. If None, uses default settings.
            keywords: Base keyword table. Extra keywords from settings are
                merged on top of it.

        Raises:
            LookupTableError: If the built-in lookup tables are inconsistent.
        """
        from payment_notification_parser.config import get_settings

        self.settings = settings or get_settings()
        self.keywords = (keywords or DEFAULT_KEYWORDS).extended(
            payment=self.settings.extra_payment_keywords,
            income=self.settings.extra_income_keywords,
            expense=self.settings.extra_expense_keywords,
        )
        validate_lookup_tables(self.keywords)
        self.extractors = build_extractors(self.keywords, Decimal(self.settings.max_amount))

    def parse_notification(
        self,
        source_app_id: str,
        title: str,
        content: str,
        big_text: str = "",
        *,
        posted_at: datetime | None = None,
    ) -> ParseResult:
        """Parse the raw fields of one posted notification.

        Args:
            source_app_id: Identifier of the application that posted it.
            title: Notification title.
            content: Notification text.
            big_text: Expanded notification text, if any.
            posted_at: When the notification was posted.

        Returns:
            ParseResult with the payment, or the reason there is none.
        """
        try:
            notification = NotificationInput(
                source_app_id=source_app_id,
                title=title,
                body=content,
                expanded_body=big_text,
                posted_at=posted_at,
            )
        except ValidationError as e:
            logger.debug("notification_malformed", error_count=e.error_count())
            return ParseResult.failure(ParseError.MALFORMED_INPUT, detail=str(e))

        return self.parse(notification)

    def parse_text(
        self,
        text: str,
        source_app_id: str = "",
        *,
        posted_at: datetime | None = None,
    ) -> ParseResult:
        """Parse free-form text, e.g. recognized from a payment screenshot.

        Args:
            text: The text to parse.
            source_app_id: Originating application, if known.
            posted_at: When the text was captured; anchors year-less timestamps.

        Returns:
            ParseResult with the payment, or the reason there is none.
        """
        return self.parse_notification(source_app_id, "", text, posted_at=posted_at)

    def parse(self, notification: NotificationInput) -> ParseResult:
        """Parse a validated notification.

        Args:
            notification: The notification to parse.

        Returns:
            ParseResult with the payment, or the reason there is none.
        """
        raw_text = notification.full_text
        if not raw_text.strip():
            return self._fail(notification, ParseError.EMPTY_TEXT)

        text = normalize_text(raw_text)
        if not is_payment_related(text, self.keywords):
            return self._fail(notification, ParseError.NOT_PAYMENT_RELATED)

        source = classify_source(notification.source_app_id)
        fields: dict[str, Any] = {name: extract(text) for name, extract in self.extractors.items()}

        amount: AmountMatch | None = fields["amount"]
        if amount is None:
            return self._fail(notification, ParseError.AMOUNT_NOT_FOUND)

        direction: TransactionType | None = fields["direction"]
        payee: str | None = fields["payee"]

        payment_method = source
        if payment_method is PaymentSource.UNKNOWN:
            payment_method = fields["source_hint"] or PaymentSource.UNKNOWN

        occurred_at = None
        time_match: TimeMatch | None = fields["time"]
        if time_match is not None:
            occurred_at = time_match.resolve(notification.posted_at)

        payment = PaymentInfo(
            amount=amount.value,
            type=direction or TransactionType.EXPENSE,
            payee=payee,
            payment_method=payment_method,
            raw_text=raw_text,
            confidence=compute_confidence(
                amount=amount,
                direction_explicit=direction is not None,
                has_payee=payee is not None,
                payment_method=payment_method,
            ),
            occurred_at=occurred_at,
            account_tail=fields["account_tail"],
            source_app_id=notification.source_app_id,
        )

        logger.debug(
            "notification_parsed",
            source_app_id=notification.source_app_id,
            amount=str(payment.amount),
            type=payment.type.value,
            payment_method=payment.payment_method.value,
            confidence=payment.confidence,
        )
        return ParseResult.success(payment)

    @staticmethod
    def _fail(notification: NotificationInput, error: ParseError) -> ParseResult:
        logger.debug(
            "notification_rejected",
            source_app_id=notification.source_app_id,
            reason=error.value,
        )
        return ParseResult.failure(error)


_default_parser: PaymentNotificationParser | None = None


def _get_default_parser() -> PaymentNotificationParser:
    global _default_parser
    if _default_parser is None:
        _default_parser = PaymentNotificationParser()
    return _default_parser


def parse_notification(
    source_app_id: str,
    title: str,
    content: str,
    big_text: str = "",
    *,
    posted_at: datetime | None = None,
) -> ParseResult:
    """Parse one notification with a parser built from default settings."""
    return _get_default_parser().parse_notification(
        source_app_id, title, content, big_text, posted_at=posted_at
    )


def parse_text(
    text: str,
    source_app_id: str = "",
    *,
    posted_at: datetime | None = None,
) -> ParseResult:
    """Parse free-form payment text with a parser built from default settings."""
    return _get_default_parser().parse_text(text, source_app_id, posted_at=posted_at)
