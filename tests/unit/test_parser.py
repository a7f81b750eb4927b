"""Unit tests for the payment notification parser."""

from datetime import datetime
from decimal import Decimal

import pytest

from payment_notification_parser.config import Settings
from payment_notification_parser.exceptions import LookupTableError
from payment_notification_parser.models import (
    ParseError,
    PaymentSource,
    TransactionType,
)
from payment_notification_parser.parsing import parser as parser_module
from payment_notification_parser.parsing.extractors import AmountMatch
from payment_notification_parser.parsing.keywords import KeywordTable
from payment_notification_parser.parsing.parser import (
    PaymentNotificationParser,
    compute_confidence,
)


class TestParseNotificationScenarios:
    """End-to-end scenarios for parse_notification."""

    def test_wechat_payment(self, parser: PaymentNotificationParser) -> None:
        """Test a WeChat expense with merchant."""
        result = parser.parse_notification(
            "com.tencent.mm", "", "Payment successful ¥25.50 to Starbucks"
        )

        assert result.ok is True
        payment = result.payment
        assert payment.amount == Decimal("25.50")
        assert payment.type is TransactionType.EXPENSE
        assert payment.payee == "Starbucks"
        assert payment.payment_method is PaymentSource.WECHAT
        assert payment.confidence >= 0.9
        assert payment.raw_text == "Payment successful ¥25.50 to Starbucks"
        assert payment.source_app_id == "com.tencent.mm"

    def test_verification_code_is_not_a_payment(self, parser: PaymentNotificationParser) -> None:
        """Test that a verification code notification is rejected by the gate."""
        result = parser.parse_notification("com.tencent.mm", "", "Verification code: 283910")

        assert result.ok is False
        assert result.error is ParseError.NOT_PAYMENT_RELATED

    def test_alipay_income(self, parser: PaymentNotificationParser) -> None:
        """Test an Alipay income without merchant."""
        result = parser.parse_notification("com.eg.android.AlipayGphone", "", "Received ¥100.00")

        assert result.ok is True
        payment = result.payment
        assert payment.amount == Decimal("100.00")
        assert payment.type is TransactionType.INCOME
        assert payment.payee is None
        assert payment.payment_method is PaymentSource.ALIPAY
        assert payment.confidence == pytest.approx(0.8)

    def test_payment_phrase_without_amount(self, parser: PaymentNotificationParser) -> None:
        """Test that a payment phrase with no number fails on the amount."""
        result = parser.parse_notification("com.tencent.mm", "微信支付", "支付成功")

        assert result.error is ParseError.AMOUNT_NOT_FOUND

    def test_bank_sms(
        self,
        parser: PaymentNotificationParser,
        bank_sms_text: str,
        posted_at: datetime,
    ) -> None:
        """Test a bank account-change notification with every field present."""
        result = parser.parse_notification("cmb.pb", "招商银行", bank_sms_text, posted_at=posted_at)

        payment = result.payment
        assert payment.amount == Decimal("25.00")
        assert payment.type is TransactionType.EXPENSE
        assert payment.payee == "星巴克"
        assert payment.payment_method is PaymentSource.CMB
        assert payment.account_tail == "1234"
        assert payment.occurred_at == datetime(2024, 1, 5, 14, 30)
        assert payment.confidence == 1.0

    def test_full_width_text(self, parser: PaymentNotificationParser) -> None:
        """Test that full-width digits and currency signs are understood."""
        result = parser.parse_notification("com.tencent.mm", "微信支付", "支付成功 ￥２５．５０")

        assert result.payment.amount == Decimal("25.50")
        assert "￥２５．５０" in result.payment.raw_text


class TestParseFailures:
    """Test suite for typed parse failures."""

    @pytest.mark.parametrize(
        ("title", "content", "big_text"),
        [("", "", ""), ("   ", "", ""), ("", "\n\t", "  ")],
    )
    def test_blank_text(
        self, parser: PaymentNotificationParser, title: str, content: str, big_text: str
    ) -> None:
        """Test that blank text fails with EMPTY_TEXT."""
        result = parser.parse_notification("com.tencent.mm", title, content, big_text)

        assert result.error is ParseError.EMPTY_TEXT

    @pytest.mark.parametrize(
        "content",
        ["Your package has shipped", "张三: 晚上见", "Meeting at 10:30, room 4.02"],
    )
    def test_no_keywords(self, parser: PaymentNotificationParser, content: str) -> None:
        """Test that text without payment keywords fails with NOT_PAYMENT_RELATED."""
        result = parser.parse_notification("com.tencent.mm", "", content)

        assert result.error is ParseError.NOT_PAYMENT_RELATED

    @pytest.mark.parametrize(
        "content",
        ["收款成功", "Transfer completed", "Payment successful, thank you"],
    )
    def test_no_numeric_token(self, parser: PaymentNotificationParser, content: str) -> None:
        """Test that gated text without numbers fails with AMOUNT_NOT_FOUND."""
        result = parser.parse_notification("com.tencent.mm", "", content)

        assert result.error is ParseError.AMOUNT_NOT_FOUND

    def test_none_text_is_malformed(self, parser: PaymentNotificationParser) -> None:
        """Test that None in place of text fails with MALFORMED_INPUT."""
        result = parser.parse_notification("com.tencent.mm", None, "支付成功 ¥5.00")  # type: ignore[arg-type]

        assert result.error is ParseError.MALFORMED_INPUT
        assert result.detail

    def test_non_string_app_id_is_malformed(self, parser: PaymentNotificationParser) -> None:
        """Test that a non-string app id fails with MALFORMED_INPUT."""
        result = parser.parse_notification(123, "", "支付成功 ¥5.00")  # type: ignore[arg-type]

        assert result.error is ParseError.MALFORMED_INPUT


class TestParseProperties:
    """Invariants that hold across inputs."""

    def test_idempotent(self, parser: PaymentNotificationParser) -> None:
        """Test that parsing twice yields identical payments."""
        args = ("com.tencent.mm", "微信支付", "Payment successful ¥25.50 to Starbucks")

        first = parser.parse_notification(*args)
        second = parser.parse_notification(*args)

        assert first == second
        assert first.payment == second.payment

    def test_adding_merchant_never_lowers_confidence(
        self, parser: PaymentNotificationParser
    ) -> None:
        """Test confidence monotonicity when a merchant marker is added."""
        without = parser.parse_notification("com.tencent.mm", "", "Paid ¥30.00")
        with_merchant = parser.parse_notification("com.tencent.mm", "", "Paid ¥30.00 to Luckin Coffee")

        assert with_merchant.payment.payee == "Luckin Coffee"
        assert with_merchant.payment.confidence >= without.payment.confidence

    def test_conflicting_direction_is_expense(self, parser: PaymentNotificationParser) -> None:
        """Test that received plus deducted resolves to EXPENSE."""
        result = parser.parse_notification(
            "com.tencent.mm", "", "Received ¥50.00 and deducted ¥1.00 service fee"
        )

        assert result.payment.type is TransactionType.EXPENSE

    def test_unknown_app_still_parses(self, parser: PaymentNotificationParser) -> None:
        """Test that an unrecognized app keeps amount and merchant."""
        result = parser.parse_notification("com.example.bank", "", "Paid ¥42.00 to Cafe Nero")

        payment = result.payment
        assert payment.payment_method is PaymentSource.UNKNOWN
        assert payment.amount == Decimal("42.00")
        assert payment.payee == "Cafe Nero"
        assert payment.confidence == pytest.approx(0.9)

    def test_action_text_is_not_a_payee(self, parser: PaymentNotificationParser) -> None:
        """Test that notification action text does not count as a merchant."""
        result = parser.parse_notification(
            "com.tencent.mm", "", "Payment successful ¥25.50. Tap to view details"
        )

        assert result.payment.payee is None
        assert result.payment.confidence == pytest.approx(0.8)

    def test_amount_paid_beats_list_price(self, parser: PaymentNotificationParser) -> None:
        """Test that the symbol-marked amount paid is used over the order total."""
        result = parser.parse_notification(
            "com.eg.android.AlipayGphone", "", "支付成功 订单金额100.00元 实付¥90.00"
        )

        assert result.payment.amount == Decimal("90.00")

    def test_year_less_time_rolls_back_over_new_year(
        self, parser: PaymentNotificationParser
    ) -> None:
        """Test that a late-December time seen on 1 January is last year."""
        result = parser.parse_notification(
            "cmb.pb", "", "12-31 23:59 消费¥15.00", posted_at=datetime(2025, 1, 1, 0, 5)
        )

        assert result.payment.occurred_at == datetime(2024, 12, 31, 23, 59)

    def test_text_hint_fills_unknown_source(self, parser: PaymentNotificationParser) -> None:
        """Test that a brand named in the text replaces UNKNOWN."""
        result = parser.parse_notification("com.example.launcher", "支付宝", "收款成功 ¥8.00")

        assert result.payment.payment_method is PaymentSource.ALIPAY

    def test_text_hint_does_not_override_known_app(self, parser: PaymentNotificationParser) -> None:
        """Test that the classified app wins over a brand mention."""
        result = parser.parse_notification("com.tencent.mm", "", "招商银行储蓄卡 支付成功 ¥8.00")

        assert result.payment.payment_method is PaymentSource.WECHAT

    def test_defaulted_direction_lowers_confidence(self, parser: PaymentNotificationParser) -> None:
        """Test an unmarked amount with no direction and no source."""
        result = parser.parse_text("Transaction successful 88.80")

        payment = result.payment
        assert payment.type is TransactionType.EXPENSE
        assert payment.confidence == pytest.approx(0.35)


class TestParseText:
    """Test suite for free-form text parsing."""

    def test_screenshot_text(self, parser: PaymentNotificationParser, bank_sms_text: str) -> None:
        """Test parsing text with no app id."""
        result = parser.parse_text(bank_sms_text)

        payment = result.payment
        assert payment.payment_method is PaymentSource.CMB
        assert payment.payee == "星巴克"
        assert payment.source_app_id == ""

    def test_year_less_time_needs_posted_at(
        self, parser: PaymentNotificationParser, bank_sms_text: str, posted_at: datetime
    ) -> None:
        """Test that a year-less time resolves only against a capture time."""
        assert parser.parse_text(bank_sms_text).payment.occurred_at is None

        anchored = parser.parse_text(bank_sms_text, posted_at=posted_at)

        assert anchored.payment.occurred_at == datetime(2024, 1, 5, 14, 30)

    def test_full_timestamp_without_posted_at(self, parser: PaymentNotificationParser) -> None:
        """Test that a timestamp with a year resolves without a capture time."""
        result = parser.parse_text("交易时间 2024-01-05 14:30:15 支付成功 ¥9.90")

        assert result.payment.occurred_at == datetime(2024, 1, 5, 14, 30, 15)

    def test_module_level_helpers(self) -> None:
        """Test the module-level convenience functions."""
        result = parser_module.parse_notification("com.tencent.mm", "", "支付成功 ¥5.00")

        assert result.payment.amount == Decimal("5.00")
        assert parser_module.parse_text("Verification code: 283910").error is (
            ParseError.NOT_PAYMENT_RELATED
        )


class TestParserConfiguration:
    """Test suite for parser configuration."""

    def test_extra_keywords_from_settings(self) -> None:
        """Test that extra keywords from settings reach the gate and direction."""
        settings = Settings(extra_payment_keywords=["到帐"], extra_income_keywords=["到帐"])
        parser = PaymentNotificationParser(settings)

        result = parser.parse_notification("cmb.pb", "", "工资到帐 ¥8,000.00")

        assert result.payment.amount == Decimal("8000.00")
        assert result.payment.type is TransactionType.INCOME

    def test_max_amount_from_settings(self) -> None:
        """Test that the configured upper bound applies."""
        parser = PaymentNotificationParser(Settings(max_amount=Decimal("100")))

        result = parser.parse_notification("com.tencent.mm", "", "支付成功 ¥500.00")

        assert result.error is ParseError.AMOUNT_NOT_FOUND

    def test_inconsistent_tables_abort_construction(self, mock_settings: Settings) -> None:
        """Test that an unusable keyword table raises instead of parsing."""
        with pytest.raises(LookupTableError):
            PaymentNotificationParser(mock_settings, keywords=KeywordTable(expense=frozenset()))


class TestComputeConfidence:
    """Test suite for compute_confidence."""

    @pytest.mark.parametrize(
        ("has_marker", "explicit", "has_payee", "source", "expected"),
        [
            (True, True, True, PaymentSource.WECHAT, 1.0),
            (True, True, False, PaymentSource.WECHAT, 0.8),
            (True, False, False, PaymentSource.UNKNOWN, 0.5),
            (False, True, True, PaymentSource.UNKNOWN, 0.75),
            (False, False, False, PaymentSource.UNKNOWN, 0.35),
        ],
    )
    def test_weights(
        self,
        has_marker: bool,
        explicit: bool,
        has_payee: bool,
        source: PaymentSource,
        expected: float,
    ) -> None:
        """Test the weighted sum of extracted fields."""
        amount = AmountMatch(value=Decimal("1.00"), has_marker=has_marker, position=0)

        score = compute_confidence(
            amount=amount,
            direction_explicit=explicit,
            has_payee=has_payee,
            payment_method=source,
        )

        assert score == pytest.approx(expected)
        assert 0.0 <= score <= 1.0
