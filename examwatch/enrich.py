"""
Concurrent enrichment of summary records.

One task per record, each in its own Conversation:

    open conversation -> fetch listing -> match row -> submit -> parse detail

A failing step ends the task as "degraded": the record is kept with its
listing fields only. Nothing is retried. Tasks write into a pre-sized list
at their own index, so results need no locking and keep input order.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Any, Callable, List, Optional, Sequence, Tuple

from examwatch.config import DEFAULT_FLOW, FlowConfig
from examwatch.conversation import Conversation, new_session
from examwatch.detail import parse_detail
from examwatch.errors import ScrapeError
from examwatch.match import match_control
from examwatch.model import EnrichedRecord, SummaryRecord
from examwatch.submit import submit_detail

log = logging.getLogger(__name__)


@dataclass
class EnrichmentReport:
    records: List[EnrichedRecord]
    # (input index, error) for every degraded task
    failures: List[Tuple[int, ScrapeError]] = field(default_factory=list)

    @property
    def degraded_count(self) -> int:
        return len(self.failures)


def enrich_one(
    summary: SummaryRecord,
    flow: FlowConfig = DEFAULT_FLOW,
    session_factory: Callable[[], Any] = new_session,
) -> EnrichedRecord:
    """
    Fetch the detail attributes of one appointment in a fresh conversation.

    Raises ScrapeError subclasses; enrich_all turns them into degraded records.
    """
    with Conversation(flow, session_factory) as conversation:
        listing, action = conversation.open()
        control = match_control(summary, listing, flow)
        detail = submit_detail(conversation, listing, action, control)
        details = parse_detail(detail, flow.vocabulary)

    return EnrichedRecord.from_summary(summary, details)


def enrich_all(
    summaries: Sequence[SummaryRecord],
    flow: FlowConfig = DEFAULT_FLOW,
    session_factory: Callable[[], Any] = new_session,
) -> EnrichmentReport:
    """
    Enrich all records with at most `flow.workers` conversations at a time.

    The result always has one record per input record, in input order.
    """
    total = len(summaries)
    slots: List[Optional[EnrichedRecord]] = [None] * total
    errors: List[Optional[ScrapeError]] = [None] * total

    def task(index: int) -> None:
        summary = summaries[index]
        log.debug("Fetching details %d/%d: %s at %s", index + 1, total, summary.date_time, summary.location)
        try:
            slots[index] = enrich_one(summary, flow, session_factory)
        except ScrapeError as exc:
            log.warning(
                "Details %d/%d (%s at %s) degraded: %s: %s",
                index + 1,
                total,
                summary.date_time,
                summary.location,
                type(exc).__name__,
                exc,
            )
            errors[index] = exc
            slots[index] = EnrichedRecord.from_summary(summary)

    with ThreadPoolExecutor(max_workers=max(1, flow.workers)) as pool:
        futures = [pool.submit(task, i) for i in range(total)]
    # leaving the pool joins all tasks; result() re-raises programming errors
    for future in futures:
        future.result()

    missing = [i for i, slot in enumerate(slots) if slot is None]
    if missing:
        raise RuntimeError(f"enrichment tasks left no record for indices {missing}")
    records: List[EnrichedRecord] = [slot for slot in slots if slot is not None]

    failures = [(i, err) for i, err in enumerate(errors) if err is not None]
    log.info("Enriched %d appointments (%d degraded)", total, len(failures))
    return EnrichmentReport(records=records, failures=failures)
