"""Rule-based extraction of payments from notification text.

This package holds the keyword gate, the source classifier and the field
extractors. The parser that combines them lives in
``payment_notification_parser.parsing.parser``.
"""

from .extractors import EXTRACTORS, AmountMatch, TimeMatch, build_extractors
from .keywords import DEFAULT_KEYWORDS, KeywordTable, is_payment_related
from .sources import classify_source, detect_source_from_text

__all__ = [
    "AmountMatch",
    "DEFAULT_KEYWORDS",
    "EXTRACTORS",
    "KeywordTable",
    "TimeMatch",
    "build_extractors",
    "classify_source",
    "detect_source_from_text",
    "is_payment_related",
]
