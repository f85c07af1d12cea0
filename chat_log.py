"""Streaming reader for JSON Lines chat logs.

Each line of a chat log is one JSON object.  The first object may be a
file-level metadata header (it carries a ``chat_metadata`` key); every
other object is a message.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Iterator
from typing import Any, NamedTuple

from timestamps import first_timestamp

logger = logging.getLogger(__name__)

METADATA_MARKER = "chat_metadata"


class MessageRecord(NamedTuple):
    """One message read from a chat log."""

    is_user: bool
    text: str
    timestamp_raw: Any
    token_count: int | None = None


def _iter_parsed_lines(path: str) -> Iterator[dict]:
    """Yield every line of *path* that parses to a JSON object.

    Blank and malformed lines are skipped.  I/O errors are logged and end
    the iteration without raising.
    """
    try:
        with open(path, "r", encoding="utf-8", errors="replace") as f:
            for line_no, line in enumerate(f, 1):
                if not line.strip():
                    continue
                try:
                    parsed = json.loads(line)
                except json.JSONDecodeError:
                    logger.debug("Skipping malformed line %d in %s", line_no, path)
                    continue
                if not isinstance(parsed, dict):
                    logger.debug("Skipping non-object line %d in %s", line_no, path)
                    continue
                yield parsed
    except OSError as e:
        logger.warning("Could not read chat log %s: %s", path, e)


def iter_log_records(path: str) -> Iterator[dict]:
    """Yield the raw message records of a chat log in file order.

    The first successfully parsed record is dropped when it is a metadata
    header.

    Args:
        path: Filesystem path to a ``.jsonl`` chat log.

    Yields:
        Message record dicts.  A missing or unreadable file yields nothing.
    """
    first = True
    for record in _iter_parsed_lines(path):
        if first:
            first = False
            if METADATA_MARKER in record:
                logger.debug(
                    "Chat log %s: metadata for %r", path, record.get("character_name"),
                )
                continue
        yield record


def _token_count(record: dict) -> int | None:
    extra = record.get("extra")
    if not isinstance(extra, dict):
        return None
    count = extra.get("token_count")
    if isinstance(count, bool) or not isinstance(count, (int, float)) or count <= 0:
        return None
    return int(count)


def message_from_record(record: dict) -> MessageRecord:
    """Build a MessageRecord from a raw log record.

    Only a literal ``true`` in ``is_user`` marks a human message.  A
    missing or non-string ``mes`` becomes the empty string.
    """
    text = record.get("mes")
    return MessageRecord(
        is_user=record.get("is_user") is True,
        text=text if isinstance(text, str) else "",
        timestamp_raw=first_timestamp(record),
        token_count=_token_count(record),
    )


def iter_messages(path: str) -> Iterator[MessageRecord]:
    """Stream the messages of one chat log as MessageRecords."""
    for record in iter_log_records(path):
        yield message_from_record(record)
