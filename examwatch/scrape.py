from __future__ import annotations

import logging
from typing import Any, Callable, Dict, Tuple

from examwatch.config import DEFAULT_FLOW, FlowConfig
from examwatch.conversation import Conversation, new_session
from examwatch.enrich import EnrichmentReport, enrich_all
from examwatch.extract import extract_summaries
from examwatch.output import build_output

log = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Core logic
# ---------------------------------------------------------------------------


def run_scrape(
    flow: FlowConfig = DEFAULT_FLOW,
    session_factory: Callable[[], Any] = new_session,
) -> Tuple[Dict[str, Any], EnrichmentReport]:
    """
    Scrape the listing, enrich every appointment, return (output, report).

    Errors while loading the initial listing propagate: without a listing
    there is nothing to enrich. Per-appointment errors only degrade that
    appointment and show up in report.failures.
    """
    with Conversation(flow, session_factory) as conversation:
        listing, _action = conversation.open()
    summaries = extract_summaries(listing, flow.vocabulary)

    log.info("Found %d appointments, fetching details with %d workers", len(summaries), flow.workers)

    report = enrich_all(summaries, flow, session_factory)
    return build_output(report.records), report


def scrape(
    flow: FlowConfig = DEFAULT_FLOW,
    session_factory: Callable[[], Any] = new_session,
) -> Dict[str, Any]:
    output, _report = run_scrape(flow, session_factory)
    return output
