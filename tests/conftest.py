"""Shared fixtures for annual summary tests."""

from __future__ import annotations

import pytest

from helpers import FakeClock, write_jsonl
from report_cache import ReportCache


@pytest.fixture()
def write_log(tmp_path):
    """Factory writing a JSONL chat log under tmp_path and returning its path."""
    counter = {"n": 0}

    def _write(records: list, metadata: bool = True, name: str | None = None) -> str:
        counter["n"] += 1
        filename = name or f"chat-{counter['n']}.jsonl"
        return write_jsonl(tmp_path / filename, records, metadata=metadata)

    return _write


@pytest.fixture()
def clock():
    return FakeClock()


@pytest.fixture()
def cache(clock):
    """An isolated report cache driven by the fake clock."""
    return ReportCache(ttl_seconds=300, clock=clock)
