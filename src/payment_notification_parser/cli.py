"""Command-line interface for the payment notification parser.

Parses notification samples by hand, which is how the keyword tables get
tuned against real notifications.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from collections import Counter
from pathlib import Path
from typing import Any

import structlog

from payment_notification_parser import __version__
from payment_notification_parser.config import get_settings
from payment_notification_parser.models import ParseResult
from payment_notification_parser.parsing.parser import PaymentNotificationParser

logger = structlog.get_logger()


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="paynote", description="Payment Notification Parser")
    subparsers = parser.add_subparsers(dest="command", required=True)

    parse_parser = subparsers.add_parser("parse", help="Parse a single notification")
    parse_parser.add_argument(
        "--app-id",
        default="",
        help="Identifier of the app that posted the notification (e.g. com.tencent.mm)",
    )
    parse_parser.add_argument("--title", default="", help="Notification title")
    parse_parser.add_argument("--content", default="", help="Notification text")
    parse_parser.add_argument("--big-text", default="", help="Expanded notification text")

    batch_parser = subparsers.add_parser(
        "batch",
        help="Parse notifications from a JSON Lines file and summarize outcomes",
    )
    batch_parser.add_argument(
        "path",
        type=Path,
        help="JSON Lines file with source_app_id, title, body and expanded_body keys",
    )
    batch_parser.add_argument(
        "--quiet",
        action="store_true",
        help="Only print the summary",
    )

    return parser


def _result_to_json(result: ParseResult) -> str:
    return result.model_dump_json(exclude_none=True)


def _outcome(result: ParseResult) -> str:
    if result.ok:
        return "PARSED"
    return result.error.value if result.error else "UNKNOWN"


def _cmd_parse(args: argparse.Namespace, notification_parser: PaymentNotificationParser) -> int:
    result = notification_parser.parse_notification(
        args.app_id, args.title, args.content, args.big_text
    )
    print(_result_to_json(result))
    return 0 if result.ok else 1


def _cmd_batch(args: argparse.Namespace, notification_parser: PaymentNotificationParser) -> int:
    path: Path = args.path
    if not path.exists():
        logger.error("batch_file_not_found", path=str(path))
        return 2

    outcomes: Counter[str] = Counter()
    with path.open(encoding="utf-8") as fh:
        for line_no, line in enumerate(fh, start=1):
            line = line.strip()
            if not line:
                continue
            try:
                record: dict[str, Any] = json.loads(line)
            except json.JSONDecodeError as e:
                logger.warning("batch_line_invalid_json", line=line_no, error=str(e))
                outcomes["INVALID_JSON"] += 1
                continue
            if not isinstance(record, dict):
                logger.warning("batch_line_not_an_object", line=line_no)
                outcomes["INVALID_JSON"] += 1
                continue

            result = notification_parser.parse_notification(
                record.get("source_app_id", ""),
                record.get("title", ""),
                record.get("body", ""),
                record.get("expanded_body", ""),
            )
            outcomes[_outcome(result)] += 1
            if not args.quiet:
                print(_result_to_json(result))

    total = sum(outcomes.values())
    print(f"Processed {total} notifications")
    for outcome, count in outcomes.most_common():
        print(f"- {outcome}: {count}")
    return 0


def main(args: list[str] | None = None) -> int:
    """Main entry point for the paynote CLI.

    Args:
        args: Command-line arguments. If None, uses sys.argv.

    Returns:
        Exit code (0 for success, non-zero for failure).
    """
    if args is None:
        args = sys.argv[1:]

    settings = get_settings()

    # Configure logging
    structlog.configure(
        wrapper_class=structlog.make_filtering_bound_logger(
            getattr(logging, settings.log_level.upper(), logging.INFO)
        ),
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
    )

    logger.info("paynote_started", version=__version__, debug=settings.debug)

    parser = _build_parser()
    parsed = parser.parse_args(args)
    notification_parser = PaymentNotificationParser(settings)

    if parsed.command == "parse":
        return _cmd_parse(parsed, notification_parser)
    if parsed.command == "batch":
        return _cmd_batch(parsed, notification_parser)

    logger.error("unknown_command", command=parsed.command)
    return 2


if __name__ == "__main__":
    sys.exit(main())
