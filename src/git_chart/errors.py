from __future__ import annotations


class GitChartError(Exception):
    """Base class for errors that abort a git-chart run."""


class InvalidDateFormat(GitChartError, ValueError):
    pass


class InvalidDateRange(GitChartError, ValueError):
    pass


class SourceReadFailure(GitChartError):
    """The commit source failed before the history was fully read."""


class ConsistencyViolation(GitChartError, AssertionError):
    """Bucket totals and author totals disagree. Always a bug, never user error."""


class OutputWriteFailure(GitChartError):
    """The chart or summary file could not be written."""
