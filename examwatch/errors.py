"""
Error types raised while talking to the booking portal.

Every error an enrichment task can run into derives from ScrapeError, which
is what the orchestrator catches to degrade a single record.
"""

from __future__ import annotations

from typing import Any


class ScrapeError(RuntimeError):
    pass


class FetchError(ScrapeError):
    """Transport failure or non-success HTTP status."""


class TooManyRedirects(FetchError):
    pass


class ParseError(ScrapeError):
    """The response body could not be read as HTML."""


class NoSubmissionTarget(ScrapeError):
    """The listing has no search form (or the form has no action)."""


class NoMatch(ScrapeError):
    """The appointment is not (or no longer) part of a fresh listing."""

    def __init__(self, record: Any) -> None:
        super().__init__(f"no listing row for {record.date_time!r} at {record.location!r}")
        self.record = record


class SubmissionError(ScrapeError):
    pass


class ConversationReused(ScrapeError):
    """A single-use portal session was opened twice, reused, or shared."""
