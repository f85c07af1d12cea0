"""Annual chat summary: single-pass aggregation over a year of chat logs.

Scans every chat log supplied by a log-source enumerator, keeps the
messages that fall inside the target calendar year, and folds them into
one JSON-serializable report (totals, histograms, per-partner rankings,
streaks, records and word frequencies).
"""

from __future__ import annotations

import logging
from collections import Counter
from collections.abc import Callable, Iterable
from datetime import date, datetime, timedelta
from typing import Any, NamedTuple

from chat_log import MessageRecord, iter_messages
from report_cache import ReportCache, default_cache
from report_errors import MissingRootError, ReportGenerationError
from timestamps import normalize_timestamp, year_bounds
from tokenizer import tokenize_and_count

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Config
# ---------------------------------------------------------------------------
TOP_WORDS_LIMIT = 200
FIRST_CHAT_EXCERPT = 200
LONGEST_MESSAGE_EXCERPT = 500
GROUP_LABEL_PREFIX = "[group] "


class LogSources(NamedTuple):
    """Chat logs to scan: (label, path) pairs for partners and for groups."""

    chats: list[tuple[str, str]]
    groups: list[tuple[str, str]]


LogEnumerator = Callable[[str], LogSources]


def static_sources(
    chats: Iterable[tuple[str, str]] = (),
    groups: Iterable[tuple[str, str]] = (),
) -> LogEnumerator:
    """Build an enumerator that returns the same fixed sources for any root."""
    sources = LogSources(list(chats), list(groups))

    def enumerate_sources(root: str) -> LogSources:
        return sources

    return enumerate_sources


def group_label(name: str) -> str:
    return f"{GROUP_LABEL_PREFIX}{name}"


# ---------------------------------------------------------------------------
# Accumulation
# ---------------------------------------------------------------------------

def _init_report_state(year: int) -> dict:
    """Create a fresh running-state accumulator for one report."""
    return {
        "year": year,
        "total_sessions": 0,
        "total_messages": 0,
        "human_messages": 0,
        "other_messages": 0,
        "total_tokens": 0,
        "total_human_chars": 0,
        "total_other_chars": 0,
        "hourly": [0] * 24,
        "weekday": [0] * 7,
        "monthly": [0] * 12,
        "daily": {},
        "word_frequency": Counter(),
        "human_lengths": [],
        "first_chat": None,
        "longest_message": {"length": 0, "content": "", "date": None},
        "partners": {},
    }


def _init_partner_bucket(name: str) -> dict:
    """Create a zeroed per-partner aggregate."""
    return {
        "name": name,
        "message_count": 0,
        "human_message_count": 0,
        "other_message_count": 0,
        "session_count": 0,
        "first_message_at": None,
        "last_message_at": None,
    }


def _non_whitespace_length(text: str) -> int:
    return len("".join(text.split()))


def _accumulate_human_message(state: dict, text: str, when: datetime) -> None:
    """Fold a human-authored message's text into lengths, words and records."""
    length = len(text)
    state["human_messages"] += 1
    state["human_lengths"].append(length)
    state["word_frequency"].update(tokenize_and_count(text))
    state["total_human_chars"] += _non_whitespace_length(text)

    if length > state["longest_message"]["length"]:
        state["longest_message"] = {
            "length": length,
            "content": text[:LONGEST_MESSAGE_EXCERPT],
            "date": when.isoformat(),
        }


def _accumulate_partner(
    state: dict, label: str, is_user: bool, when: datetime,
) -> None:
    """Create-or-update the partner aggregate for *label*."""
    partner = state["partners"].get(label)
    if partner is None:
        partner = _init_partner_bucket(label)
        state["partners"][label] = partner

    partner["message_count"] += 1
    if is_user:
        partner["human_message_count"] += 1
    else:
        partner["other_message_count"] += 1

    first = partner["first_message_at"]
    if first is None or when < datetime.fromisoformat(first):
        partner["first_message_at"] = when.isoformat()
    last = partner["last_message_at"]
    if last is None or when > datetime.fromisoformat(last):
        partner["last_message_at"] = when.isoformat()


def _accumulate_first_chat(
    state: dict, label: str, text: str, when: datetime,
) -> None:
    first_chat = state["first_chat"]
    if first_chat is None or when < datetime.fromisoformat(first_chat["date"]):
        state["first_chat"] = {
            "partner": label,
            "date": when.isoformat(),
            "message": text[:FIRST_CHAT_EXCERPT],
        }


def _accumulate_message(
    state: dict, label: str, message: MessageRecord, when: datetime,
) -> None:
    """Fold one in-year message into every running statistic.

    Args:
        state: Running accumulator from ``_init_report_state``.  Modified
            in place.
        label: Partner label the message belongs to.
        message: The message as read from the log.
        when: The message's normalized timestamp, already checked to lie
            inside the target year.
    """
    state["total_messages"] += 1

    if message.is_user:
        _accumulate_human_message(state, message.text, when)
    else:
        state["other_messages"] += 1
        state["total_other_chars"] += _non_whitespace_length(message.text)

    if message.token_count:
        state["total_tokens"] += message.token_count

    state["hourly"][when.hour] += 1
    state["weekday"][(when.weekday() + 1) % 7] += 1  # 0=Sunday
    state["monthly"][when.month - 1] += 1

    day_key = when.date().isoformat()
    state["daily"][day_key] = state["daily"].get(day_key, 0) + 1

    _accumulate_partner(state, label, message.is_user, when)
    _accumulate_first_chat(state, label, message.text, when)


def scan_log_file(
    state: dict,
    label: str,
    path: str,
    year_start: datetime,
    year_end: datetime,
) -> int:
    """Scan one chat log and fold its in-year messages into *state*.

    The file counts as a session for its partner only if at least one of
    its messages falls inside the year.

    Args:
        state: Running accumulator.  Modified in place.
        label: Partner label for every message in this file.
        path: Filesystem path of the ``.jsonl`` log.
        year_start: Inclusive start of the target year.
        year_end: Inclusive end of the target year.

    Returns:
        Number of in-year messages the file contributed.
    """
    in_year = 0
    for message in iter_messages(path):
        when = normalize_timestamp(message.timestamp_raw)
        if when is None or when < year_start or when > year_end:
            continue
        in_year += 1
        _accumulate_message(state, label, message, when)

    if in_year:
        state["total_sessions"] += 1
        state["partners"][label]["session_count"] += 1
    else:
        logger.debug("No messages from %d in %s", state["year"], path)
    return in_year


# ---------------------------------------------------------------------------
# Finalization
# ---------------------------------------------------------------------------

def compute_longest_streak(day_keys: Iterable[str]) -> int:
    """Return the longest run of consecutive calendar days.

    Args:
        day_keys: ISO ``YYYY-MM-DD`` date strings, in any order.

    Returns:
        Length of the longest run in which each day is exactly one day
        after the previous one.  0 when *day_keys* is empty.
    """
    days = sorted(date.fromisoformat(key) for key in set(day_keys))
    if not days:
        return 0

    current = 1
    longest = 1
    for prev, curr in zip(days, days[1:]):
        if curr - prev == timedelta(days=1):
            current += 1
            longest = max(longest, current)
        else:
            current = 1
    return longest


def find_peak_day(daily_counts: dict[str, int]) -> dict[str, Any]:
    """Return the busiest day as ``{"date", "count"}``.

    Days are scanned in ascending date order and only a strictly larger
    count replaces the current peak, so ties go to the earliest date.
    """
    peak: dict[str, Any] = {"date": None, "count": 0}
    for day_key in sorted(daily_counts):
        count = daily_counts[day_key]
        if count > peak["count"]:
            peak = {"date": day_key, "count": count}
    return peak


def _finalize_partners(partners: dict[str, dict]) -> list[dict]:
    """Add per-session averages and rank partners by message count."""
    ranked = []
    for partner in partners.values():
        if partner["session_count"] > 0:
            partner["average_turns_per_session"] = round(
                partner["message_count"] / partner["session_count"]
            )
        ranked.append(partner)
    ranked.sort(key=lambda p: p["message_count"], reverse=True)
    return ranked


def _finalize_report(
    state: dict,
    top_words: int = TOP_WORDS_LIMIT,
    generated_at: datetime | None = None,
) -> dict[str, Any]:
    """Derive the final report fields from the running state.

    Returns:
        The serializable report dict.
    """
    daily = state["daily"]
    lengths = state["human_lengths"]

    return {
        "year": state["year"],
        "generated_at": (generated_at or datetime.now()).isoformat(),
        "total_sessions": state["total_sessions"],
        "total_messages": state["total_messages"],
        "human_messages": state["human_messages"],
        "other_messages": state["other_messages"],
        "total_tokens": state["total_tokens"],
        "hourly": state["hourly"],
        "weekday": state["weekday"],
        "monthly": state["monthly"],
        "total_human_chars": state["total_human_chars"],
        "total_other_chars": state["total_other_chars"],
        "first_chat": state["first_chat"],
        "longest_message": state["longest_message"],
        "peak_day": find_peak_day(daily),
        "longest_streak": compute_longest_streak(daily.keys()),
        "partners": _finalize_partners(state["partners"]),
        "word_frequency": [
            {"word": word, "count": count}
            for word, count in state["word_frequency"].most_common(top_words)
        ],
        "daily_stats": [
            {"date": day_key, "count": daily[day_key]} for day_key in sorted(daily)
        ],
        "average_message_length": round(sum(lengths) / len(lengths)) if lengths else 0,
        "active_days": sum(1 for count in daily.values() if count > 0),
    }


def build_annual_report(
    chat_sources: Iterable[tuple[str, str]],
    group_sources: Iterable[tuple[str, str]],
    year: int,
    top_words: int = TOP_WORDS_LIMIT,
    generated_at: datetime | None = None,
) -> dict[str, Any]:
    """Scan every chat log once and build the annual report.

    Partner chats are scanned before group chats; each file is read in
    file order, so "first seen" tie-breaks are reproducible.

    Args:
        chat_sources: ``(partner_name, log_path)`` pairs.
        group_sources: ``(group_name, log_path)`` pairs.  Their messages
            are attributed to the label ``"[group] {group_name}"``.
        year: Calendar year to summarize.
        top_words: Maximum number of entries in ``word_frequency``.
        generated_at: Timestamp recorded in the report.  Defaults to now.

    Returns:
        Dict with keys: year, generated_at, total_sessions,
        total_messages, human_messages, other_messages, total_tokens,
        hourly (24), weekday (7, 0=Sunday), monthly (12),
        total_human_chars, total_other_chars, first_chat,
        longest_message, peak_day, longest_streak, partners,
        word_frequency, daily_stats, average_message_length, active_days.
    """
    year_start, year_end = year_bounds(year)
    state = _init_report_state(year)

    for name, path in chat_sources:
        scan_log_file(state, name, path, year_start, year_end)
    for name, path in group_sources:
        scan_log_file(state, group_label(name), path, year_start, year_end)

    return _finalize_report(state, top_words=top_words, generated_at=generated_at)


# ---------------------------------------------------------------------------
# Request boundary
# ---------------------------------------------------------------------------

def _resolve_year(year: int | str | None) -> int:
    """Return *year* as an int, falling back to the current year."""
    try:
        resolved = int(year) if year else 0
    except (TypeError, ValueError):
        logger.warning("Invalid year %r, using the current year", year)
        resolved = 0
    return resolved or datetime.now().year


def generate_annual_report(
    root: str | None,
    year: int | str | None,
    enumerate_sources: LogEnumerator,
    cache: ReportCache | None = None,
    top_words: int = TOP_WORDS_LIMIT,
) -> dict[str, Any]:
    """Return the annual report for *root* and *year*, using the cache.

    This is the one entry point callers need.  A fresh cached report is
    returned as-is; otherwise the logs are enumerated and scanned, and
    the finished report is cached.  Nothing is cached when generation
    fails.

    Args:
        root: The user's data root directory.
        year: Calendar year to summarize.  ``None``, empty or invalid
            values mean the current year.
        enumerate_sources: Callable mapping *root* to the LogSources to
            scan.
        cache: Report cache to use.  Defaults to the process-wide
            ``report_cache.default_cache``.
        top_words: Maximum number of entries in ``word_frequency``.  The
            cache is keyed by root and year only, so this is ignored
            when a fresh cached report is returned.

    Returns:
        The report dict described in ``build_annual_report``.

    Raises:
        MissingRootError: If *root* is empty or None.
        ReportGenerationError: If enumeration or scanning fails
            unexpectedly.
    """
    if not root:
        raise MissingRootError()

    year = _resolve_year(year)
    if cache is None:
        cache = default_cache

    cached = cache.get(root, year)
    if cached is not None:
        logger.debug("Cache hit for %s (%d)", root, year)
        return cached

    logger.info("Generating summary for year %d", year)
    try:
        sources = enumerate_sources(root)
        logger.info(
            "Found %d partner chats and %d group chats to analyze",
            len(sources.chats), len(sources.groups),
        )
        report = build_annual_report(
            sources.chats, sources.groups, year, top_words=top_words,
        )
    except Exception as e:
        logger.exception("Error generating summary for %s (%d)", root, year)
        raise ReportGenerationError(root, year, e) from e

    cache.put(root, year, report)
    return report
