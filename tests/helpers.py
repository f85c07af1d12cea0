"""Shared test helpers for annual summary tests.

Regular functions (not fixtures) that can be imported by any test module.
"""

from __future__ import annotations

import json
from pathlib import Path


def make_message(
    when: str | float | None,
    text: str = "hello",
    is_user: bool = True,
    token_count: int | None = None,
    field: str = "send_date",
) -> dict:
    """Build a minimal chat-log message record.

    Args:
        when: Timestamp value stored under *field* (naive ISO string,
            epoch number, or humanized string).
        text: Message text (``mes``).
        is_user: Whether the human sent the message.
        token_count: Optional ``extra.token_count``.
        field: Which timestamp field to populate.
    """
    record: dict = {"name": "User" if is_user else "Bot", "is_user": is_user, "mes": text}
    if when is not None:
        record[field] = when
    if token_count is not None:
        record["extra"] = {"token_count": token_count}
    return record


def write_jsonl(path: Path, records: list, metadata: bool = True) -> str:
    """Write *records* as a JSON Lines chat log and return its path.

    Args:
        path: Destination file.
        records: Objects to write, one per line.  Plain strings are
            written verbatim so tests can inject malformed lines.
        metadata: Prepend a ``chat_metadata`` header line.
    """
    lines = []
    if metadata:
        lines.append(json.dumps({"user_name": "User", "character_name": "Bot",
                                 "chat_metadata": {}}))
    for record in records:
        lines.append(record if isinstance(record, str) else json.dumps(record, ensure_ascii=False))
    path.write_text("\n".join(lines) + "\n", encoding="utf-8")
    return str(path)


class FakeClock:
    """Manually advanced clock for cache TTL tests."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def advance(self, seconds: float) -> None:
        self.now += seconds

    def __call__(self) -> float:
        return self.now
