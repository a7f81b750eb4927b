"""Field extractors for payment notification text.

Each extractor is a pure function of the (normalized) notification text and
never looks at another extractor's output, so the parser can run them in any
order and keep whatever subset succeeds. ``build_extractors`` assembles the
name -> function registry the parser iterates over.
"""

from __future__ import annotations

import re
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from datetime import datetime, tzinfo
from decimal import Decimal, InvalidOperation
from functools import partial
from types import MappingProxyType
from typing import Any

from payment_notification_parser.models import TransactionType
from payment_notification_parser.parsing.keywords import DEFAULT_KEYWORDS, KeywordTable
from payment_notification_parser.parsing.sources import detect_source_from_text
from payment_notification_parser.utils import contains_any

Extractor = Callable[[str], Any]

DEFAULT_MAX_AMOUNT = Decimal("1000000")

_CURRENCY_SYMBOLS = "¥$€£₹"

# ---------------------------------------------------------------------------
# Amount
# ---------------------------------------------------------------------------

# Thousands-grouped or plain integer part, up to two decimals. The lookarounds
# keep us from starting or stopping in the middle of a longer number.
_NUMBER_RE = re.compile(
    r"(?<![\d.])(?<!\d,)"
    r"(?:\d{1,3}(?:,\d{3})+|\d+)(?:\.\d{1,2})?"
    r"(?!\d)(?!\.\d)(?!,\d{3})"
)

_SYMBOL_PREFIX_RE = re.compile(
    rf"(?:[{_CURRENCY_SYMBOLS}]|rmb|cny|usd)\s*:?\s*[+-]?\s*$",
    re.IGNORECASE,
)
_LABEL_PREFIX_RE = re.compile(
    r"(?:付款金额|支付金额|金额|实付|amount)\s*:?\s*[+-]?\s*$",
    re.IGNORECASE,
)
_PREFIX_WINDOW = 16

_SUFFIX_MARKER_RE = re.compile(r"\s*(?:元|块|yuan\b|rmb\b|cny\b|usd\b)", re.IGNORECASE)

# Marker strength, strongest first.
_RANK_SYMBOL = 0
_RANK_WORD_OR_LABEL = 1


@dataclass(frozen=True)
class AmountMatch:
    """An amount found in text."""

    value: Decimal
    has_marker: bool
    position: int


def _to_decimal(token: str) -> Decimal | None:
    try:
        return Decimal(token.replace(",", ""))
    except InvalidOperation:
        return None


def _marker_rank(text: str, start: int, end: int) -> int | None:
    window_start = max(0, start - _PREFIX_WINDOW)
    if _SYMBOL_PREFIX_RE.search(text, window_start, start):
        return _RANK_SYMBOL
    if _LABEL_PREFIX_RE.search(text, window_start, start):
        return _RANK_WORD_OR_LABEL
    if _SUFFIX_MARKER_RE.match(text, end):
        return _RANK_WORD_OR_LABEL
    return None


def extract_amount(text: str, max_amount: Decimal = DEFAULT_MAX_AMOUNT) -> AmountMatch | None:
    """Locate the transaction amount.

    Candidates are ranked by their marker. The first amount after a currency
    symbol or code wins; otherwise the first one with a currency word or an
    amount label; otherwise the first number with a decimal point. Bare
    integers with no marker (verification codes, dates, card digits) are
    never treated as amounts.

    Args:
        text: Normalized notification text.
        max_amount: Exclusive upper bound; larger numbers are not amounts.

    Returns:
        The chosen amount, or None if no candidate qualifies.
    """

    labelled: AmountMatch | None = None
    fallback: AmountMatch | None = None
    for m in _NUMBER_RE.finditer(text):
        token = m.group(0)
        value = _to_decimal(token)
        if value is None or value <= 0 or value >= max_amount:
            continue

        rank = _marker_rank(text, m.start(), m.end())
        if rank == _RANK_SYMBOL:
            return AmountMatch(value=value, has_marker=True, position=m.start())
        if rank == _RANK_WORD_OR_LABEL:
            if labelled is None:
                labelled = AmountMatch(value=value, has_marker=True, position=m.start())
        elif fallback is None and "." in token:
            fallback = AmountMatch(value=value, has_marker=False, position=m.start())

    return labelled or fallback


# ---------------------------------------------------------------------------
# Direction
# ---------------------------------------------------------------------------

# A sign directly in front of an amount ("+¥5.00", "-25.00"), not a date dash.
_SIGN_RE = re.compile(rf"(?:^|[\s:(])([+-])\s*[{_CURRENCY_SYMBOLS}]?\s*\d")


def extract_direction(text: str, keywords: KeywordTable = DEFAULT_KEYWORDS) -> TransactionType | None:
    """Decide whether money went out or came in.

    Expense keywords win over income keywords when both appear. With no
    keyword at all, an explicit +/- sign in front of the amount decides.

    Returns:
        The transaction type, or None when the text gives no indication.
    """

    if contains_any(text, keywords.expense):
        return TransactionType.EXPENSE
    if contains_any(text, keywords.income):
        return TransactionType.INCOME

    signs = {m.group(1) for m in _SIGN_RE.finditer(text)}
    if signs == {"+"}:
        return TransactionType.INCOME
    if signs == {"-"}:
        return TransactionType.EXPENSE
    return None


# ---------------------------------------------------------------------------
# Payee
# ---------------------------------------------------------------------------

_MAX_PAYEE_LENGTH = 30

# Characters that end a name. CJK names never contain spaces, English ones may.
_CJK_DELIMS = rf"\s,.;:!?，。；：！？、\"'“”‘’「」『』【】\[\]()（）<>《》|/\\{_CURRENCY_SYMBOLS}\d"
_EN_DELIMS = rf",.;:!?，。；：！？、\"“”「」『』【】\[\]()（）<>《》|/\\{_CURRENCY_SYMBOLS}\d"

_PAYEE_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(
        rf"(?:(?:付款给|转账给|支付给|向|来自|收到)\s*)+[\"“「【]?"
        rf"(?P<name>[^{_CJK_DELIMS}]+?)"
        rf"(?=的|转账|付款|支付|收款|消费|[{_CJK_DELIMS}]|$)"
    ),
    # Bank SMS: "...于01月05日在星巴克消费25.00元"
    re.compile(rf"在(?P<name>[^{_CJK_DELIMS}]{{2,30}}?)(?=消费|支付|付款)"),
    re.compile(rf"(?:商户名称|商户|店铺|商家|收款方)\s*:?\s*(?P<name>[^{_CJK_DELIMS}]+)"),
    re.compile(
        rf"\b(?:merchant|payee)\s*:\s*(?P<name>[^{_EN_DELIMS}]+?)(?=\s*[{_EN_DELIMS}]|$)",
        re.IGNORECASE,
    ),
    re.compile(
        rf"\b(?:to|at|from)\s+(?P<name>[^{_EN_DELIMS}]+?)"
        rf"(?=\s+(?:on|via|with|using|for|at|from|to|ending)\b|\s*[{_EN_DELIMS}]|$)",
        re.IGNORECASE,
    ),
    re.compile(r"【(?P<name>[^】]+)】"),
    re.compile(r"\[(?P<name>[^\]]+)\]"),
)

_GENERIC_PAYEES = frozenset(
    {
        "支付",
        "付款",
        "收款",
        "成功",
        "通知",
        "你",
        "您",
        "红包",
        "一笔",
        "you",
        "your",
        "me",
        "your account",
    }
)

# Notification action text ("Tap to view details") is not a counterparty.
_UI_ACTION_WORDS = frozenset({"view", "check", "see", "open", "details", "tap", "more"})


def _is_usable_payee(name: str) -> bool:
    if not name or len(name) > _MAX_PAYEE_LENGTH:
        return False
    folded = name.casefold()
    if folded in _GENERIC_PAYEES or folded.startswith("your "):
        return False
    if folded.split()[0] in _UI_ACTION_WORDS:
        return False
    return True


def extract_payee(text: str) -> str | None:
    """Find the merchant or counterparty named after an introducing marker.

    Markers are tried in order (CJK introducers, bank "在...消费" phrasing,
    labels, English introducers, bracketed names); within a marker the first
    usable occurrence wins.

    Returns:
        The trimmed name, or None if no marker yields a usable name.
    """

    for pattern in _PAYEE_PATTERNS:
        for m in pattern.finditer(text):
            name = m.group("name").strip()
            if _is_usable_payee(name):
                return name
    return None


# ---------------------------------------------------------------------------
# Time
# ---------------------------------------------------------------------------

_CLOCK = r"\s*(?P<hour>\d{1,2}):(?P<minute>\d{2})(?::(?P<second>\d{2}))?(?!\d)"

_TIME_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(rf"(?<!\d)(?P<year>\d{{4}})[-/年](?P<month>\d{{1,2}})[-/月](?P<day>\d{{1,2}})日?{_CLOCK}"),
    re.compile(rf"(?<![\d/-])(?P<month>\d{{1,2}})[-/月](?P<day>\d{{1,2}})日?{_CLOCK}"),
)

# End of a leap year; validates year-less dates such as 02-29 without rolling back.
_VALIDATION_REFERENCE = datetime(2000, 12, 31, 23, 59, 59)


@dataclass(frozen=True)
class TimeMatch:
    """A timestamp stated in the text; ``year`` is None when the text omits it."""

    year: int | None
    month: int
    day: int
    hour: int
    minute: int
    second: int = 0

    def resolve(self, reference: datetime | None) -> datetime | None:
        """Build a datetime in the time zone of ``reference``.

        A missing year is taken from ``reference``, or from the year before
        when that would put the time after ``reference`` ("12-31 23:59" seen
        on 1 January). Without a reference a year-less match does not resolve.
        """

        tz = reference.tzinfo if reference is not None else None
        if self.year is not None:
            return self._build(self.year, tz)
        if reference is None:
            return None

        resolved = self._build(reference.year, tz)
        if resolved is not None and resolved > reference:
            resolved = self._build(reference.year - 1, tz)
        return resolved

    def _build(self, year: int, tz: tzinfo | None) -> datetime | None:
        try:
            return datetime(
                year, self.month, self.day, self.hour, self.minute, self.second, tzinfo=tz
            )
        except ValueError:
            return None


def extract_time(text: str) -> TimeMatch | None:
    """Find the first valid date-and-time in the text."""

    for pattern in _TIME_PATTERNS:
        for m in pattern.finditer(text):
            year = m.groupdict().get("year")
            candidate = TimeMatch(
                year=int(year) if year else None,
                month=int(m.group("month")),
                day=int(m.group("day")),
                hour=int(m.group("hour")),
                minute=int(m.group("minute")),
                second=int(m.group("second") or 0),
            )
            if candidate.resolve(_VALIDATION_REFERENCE) is not None:
                return candidate
    return None


# ---------------------------------------------------------------------------
# Account tail
# ---------------------------------------------------------------------------

_ACCOUNT_TAIL_RE = re.compile(
    r"(?:尾号|末四位|尾数|ending(?:\s+in)?|\*{2,})\s*:?\s*(?P<tail>\d{4})(?!\d)",
    re.IGNORECASE,
)


def extract_account_tail(text: str) -> str | None:
    """Return the last four digits of the card or account, when stated."""

    m = _ACCOUNT_TAIL_RE.search(text)
    return m.group("tail") if m else None


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------


def build_extractors(
    keywords: KeywordTable = DEFAULT_KEYWORDS,
    max_amount: Decimal = DEFAULT_MAX_AMOUNT,
) -> Mapping[str, Extractor]:
    """Assemble the extractor registry.

    Args:
        keywords: Keyword table for the direction extractor.
        max_amount: Upper bound for the amount extractor.

    Returns:
        Read-only mapping of field name to extractor.
    """

    return MappingProxyType(
        {
            "amount": partial(extract_amount, max_amount=max_amount),
            "direction": partial(extract_direction, keywords=keywords),
            "payee": extract_payee,
            "time": extract_time,
            "account_tail": extract_account_tail,
            "source_hint": detect_source_from_text,
        }
    )


EXTRACTORS = build_extractors()
