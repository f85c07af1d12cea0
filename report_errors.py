"""Errors raised at the annual-report request boundary."""

from __future__ import annotations


class ReportError(Exception):
    """Base class for failures reported to the caller of generate_annual_report."""


class MissingRootError(ReportError):
    """The user data root was not supplied, so no report can be generated."""

    def __init__(self, message: str = "User data path not found"):
        super().__init__(message)


class ReportGenerationError(ReportError):
    """An unexpected failure happened while scanning logs or building the report."""

    def __init__(self, root: str, year: int, cause: Exception):
        self.root = root
        self.year = year
        self.cause = cause
        super().__init__(f"Failed to generate annual summary for {year}: {cause}")
