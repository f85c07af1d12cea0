"""annual_summary.py

Print a year-in-review summary for a set of chat logs.

Logs are passed explicitly as LABEL=PATH pairs:

    python annual_summary.py ~/st-data --year 2024 \\
        --chat "Alice=chats/Alice/Alice - 2024-01-02.jsonl" \\
        --group "Tavern=group chats/1700000000000.jsonl" \\
        --output summary.json
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from datetime import datetime
from typing import Any

from annual_report import TOP_WORDS_LIMIT, generate_annual_report, static_sources
from report_errors import MissingRootError, ReportGenerationError

WEEKDAY_NAMES = ["Sun", "Mon", "Tue", "Wed", "Thu", "Fri", "Sat"]


def _parse_source(value: str) -> tuple[str, str]:
    """Split a LABEL=PATH argument."""
    label, sep, path = value.partition("=")
    if not sep or not label or not path:
        raise argparse.ArgumentTypeError(f"expected LABEL=PATH, got {value!r}")
    return label, path


def _configure_logging(verbosity: int) -> None:
    level = logging.WARNING
    if verbosity == 1:
        level = logging.INFO
    elif verbosity > 1:
        level = logging.DEBUG
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")


def print_summary_report(report: dict[str, Any], top: int = 5) -> None:
    """Print a human-readable annual summary to stdout.

    Args:
        report: Report dict from ``generate_annual_report``.
        top: How many partners and words to list.
    """
    print(f"\n{'=' * 60}")
    print(f"Annual Chat Summary {report['year']}")
    print(f"{'=' * 60}")
    print(f"Total Sessions: {report['total_sessions']:,}")
    print(f"Total Messages: {report['total_messages']:,}")
    print(f"  Sent by you: {report['human_messages']:,}")
    print(f"  Received:    {report['other_messages']:,}")
    if report["total_tokens"]:
        print(f"Total Tokens: {report['total_tokens']:,}")
    print(f"Active Days: {report['active_days']:,}")
    print(f"Longest Streak: {report['longest_streak']:,} days")
    print(f"Average Message Length: {report['average_message_length']:,} chars")

    peak = report["peak_day"]
    if peak["date"]:
        print(f"Peak Day: {peak['date']} ({peak['count']:,} messages)")

    if report["total_messages"]:
        busiest_hour = max(range(24), key=lambda h: report["hourly"][h])
        busiest_weekday = max(range(7), key=lambda d: report["weekday"][d])
        print(f"Busiest Hour: {busiest_hour:02d}:00")
        print(f"Busiest Weekday: {WEEKDAY_NAMES[busiest_weekday]}")

    first_chat = report["first_chat"]
    if first_chat:
        print(f"\nFirst Chat: {first_chat['date']} with {first_chat['partner']}")
        print(f"  {first_chat['message']}")

    longest = report["longest_message"]
    if longest["length"]:
        print(f"\nLongest Message: {longest['length']:,} chars on {longest['date']}")

    if report["partners"]:
        print(f"\nTop {top} Partners:")
        for partner in report["partners"][:top]:
            print(
                f"  {partner['name']}: {partner['message_count']:,} messages "
                f"in {partner['session_count']:,} sessions"
            )

    if report["word_frequency"]:
        print(f"\nTop {top} Words:")
        for entry in report["word_frequency"][:top]:
            print(f"  {entry['word']}: {entry['count']:,}")

    print(f"{'=' * 60}")


def main(argv: list[str] | None = None) -> None:
    """CLI entry point for generating an annual chat summary."""
    parser = argparse.ArgumentParser(description="Summarize a year of chat logs")
    parser.add_argument("root", nargs="?", default="",
                        help="User data root directory (used as the cache key)")
    parser.add_argument("--year", "-y", type=int, default=datetime.now().year,
                        help="Calendar year to summarize (default: current year)")
    parser.add_argument("--chat", "-c", action="append", default=[], type=_parse_source,
                        metavar="LABEL=PATH", help="Partner chat log; may be repeated")
    parser.add_argument("--group", "-g", action="append", default=[], type=_parse_source,
                        metavar="NAME=PATH", help="Group chat log; may be repeated")
    parser.add_argument("--top-words", type=int, default=TOP_WORDS_LIMIT,
                        help=f"Number of words to keep (default: {TOP_WORDS_LIMIT})")
    parser.add_argument("--output", "-o", help="Write the full report as JSON to this file")
    parser.add_argument("--verbose", "-v", action="count", default=0,
                        help="Increase log verbosity (-v info, -vv debug)")
    args = parser.parse_args(argv)

    _configure_logging(args.verbose)

    try:
        report = generate_annual_report(
            args.root,
            args.year,
            static_sources(args.chat, args.group),
            top_words=args.top_words,
        )
    except MissingRootError as e:
        parser.error(str(e))
    except ReportGenerationError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    if args.output:
        try:
            with open(args.output, "w", encoding="utf-8") as f:
                json.dump(report, f, indent=2, ensure_ascii=False)
        except OSError as e:
            parser.error(f"Failed to write output file: {e}")

    print_summary_report(report)
    if args.output:
        print(f"\nFull report saved to {args.output}")


if __name__ == "__main__":
    main()
