"""
Application-specific exceptions for the scrape pipeline.

Anything raised while running a single job is caught at the job boundary
and turned into a ``failed`` status; these classes exist so logs and
outcomes say which stage went wrong.
"""

from __future__ import annotations


class ScrapePipelineError(Exception):
    """Base class for all pipeline errors."""


class FetchError(ScrapePipelineError):
    """Network, transport or non-success HTTP status while fetching a page."""

    def __init__(self, url: str, message: str, status_code: int | None = None):
        self.url = url
        self.status_code = status_code
        super().__init__(f"Failed to fetch {url}: {message}")


class ExtractionError(ScrapePipelineError):
    """No extraction pass produced output of the expected shape."""


class InvalidJobTransition(ScrapePipelineError, ValueError):
    """A scrape job status change outside the job state machine."""

    def __init__(self, job_id: int | None, current: str, requested: str):
        self.job_id = job_id
        self.current = current
        self.requested = requested
        super().__init__(
            f"Job {job_id} cannot move from '{current}' to '{requested}'"
        )


class OddsPulseDisabledError(ScrapePipelineError):
    """An odds push arrived while the push path is switched off."""
