"""
CLI (Command Line Interface).

    examwatch scrape [--out FILE] [--store DIR]   scrape + enrich, write JSON
    examwatch store <file.json> [--data-dir DIR]  keep a snapshot if it changed
    examwatch diff <old.json> <new.json>          report appointment changes
    examwatch show <file.json>                    print a snapshot as a table
    examwatch forms                               list the forms of the listing page

Note:
- scrape writes the JSON document to stdout unless --out is given
- log output goes to stderr (-v for debug, -q for warnings only)
"""

from __future__ import annotations

import argparse
import dataclasses
import logging
import sys
from pathlib import Path
from typing import Any, Dict

from rich import box
from rich.console import Console
from rich.table import Table

from examwatch.config import DEFAULT_FLOW, FlowConfig
from examwatch.conversation import Conversation
from examwatch.diff import diff_snapshots, render_diff
from examwatch.errors import ScrapeError
from examwatch.forms import inspect_forms
from examwatch.model import DETAIL_FIELDS
from examwatch.output import dumps_output
from examwatch.scrape import run_scrape
from examwatch.storage import load_snapshot, store_snapshot

log = logging.getLogger(__name__)


def _setup_logging(verbose: bool, quiet: bool) -> None:
    level = logging.INFO
    if verbose:
        level = logging.DEBUG
    elif quiet:
        level = logging.WARNING
    logging.basicConfig(level=level, format="%(asctime)s | %(levelname)s | %(message)s", stream=sys.stderr)


def _flow_from_args(args: argparse.Namespace) -> FlowConfig:
    """
    Apply command line overrides to the default flow configuration.
    """
    overrides: Dict[str, Any] = {}
    if getattr(args, "workers", None) is not None:
        overrides["workers"] = max(1, args.workers)
    if getattr(args, "timeout", None) is not None:
        # 0 disables the timeout
        overrides["timeout"] = args.timeout if args.timeout > 0 else None
    if getattr(args, "listing_url", None):
        overrides["listing_url"] = args.listing_url
    return dataclasses.replace(DEFAULT_FLOW, **overrides)


def _cmd_scrape(args: argparse.Namespace) -> int:
    """
    Scrape, enrich and write the JSON document (optionally also store it).
    """
    flow = _flow_from_args(args)
    try:
        output, report = run_scrape(flow)
    except ScrapeError as exc:
        print(f"Error: could not load the appointment listing: {exc}", file=sys.stderr)
        return 1

    text = dumps_output(output)
    if args.out:
        out_path = Path(args.out)
        out_path.parent.mkdir(parents=True, exist_ok=True)
        out_path.write_text(text, encoding="utf-8")
        print(f"Wrote {output['total_count']} appointments ({report.degraded_count} without details) to: {out_path}")
    else:
        print(text)

    if args.store:
        stored = store_snapshot(output, args.store)
        if stored is None:
            log.info("No changes since the latest snapshot, nothing stored")
        else:
            log.info("Stored snapshot: %s", stored)

    return 0


def _cmd_store(args: argparse.Namespace) -> int:
    """
    Store an existing JSON document as a snapshot.
    """
    output = load_snapshot(args.file)
    if output is None:
        print(f"Not a snapshot file: {args.file}")
        return 1

    stored = store_snapshot(output, args.data_dir)
    if stored is None:
        print("No changes since the latest snapshot.")
    else:
        print(f"Stored: {stored}")
    return 0


def _cmd_diff(args: argparse.Namespace) -> int:
    """
    Print the change report between two snapshots.
    """
    new = load_snapshot(args.new)
    if new is None:
        print(f"Error: new file {args.new} does not exist or is not a snapshot")
        return 1

    old = load_snapshot(args.old)
    diff = diff_snapshots(old, new) if old is not None else None
    print(render_diff(diff, limit=args.limit))
    return 0


def _cmd_show(args: argparse.Namespace) -> int:
    """
    Print a snapshot as a table.
    """
    data = load_snapshot(args.file)
    if data is None:
        print(f"Not a snapshot file: {args.file}")
        return 1

    table = Table(box=box.SIMPLE_HEAVY)
    for title in ("Termin", "Prüfungslokal", "Ort", "Bezirk", "Status", "Raum", "Teilnehmer"):
        table.add_column(title)

    for appt in data["exam_appointments"]:
        participants = ""
        if appt.get("current_participants") or appt.get("max_participants"):
            participants = f"{appt.get('current_participants', '?')}/{appt.get('max_participants', '?')}"
        enriched = any(appt.get(name) for name in DETAIL_FIELDS)
        table.add_row(
            appt.get("date_time", ""),
            appt.get("location", ""),
            appt.get("city", ""),
            appt.get("region", ""),
            appt.get("status", ""),
            appt.get("room", ""),
            participants,
            style=None if enriched else "dim",
        )

    console = Console()
    console.print(table)
    console.print(f"{data.get('total_count', len(data['exam_appointments']))} appointments")
    return 0


def _cmd_forms(args: argparse.Namespace) -> int:
    """
    Fetch the listing page and list its forms.
    """
    flow = _flow_from_args(args)
    try:
        with Conversation(flow) as conversation:
            listing = conversation.fetch_listing()
    except ScrapeError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    forms = inspect_forms(listing)
    if not forms:
        print("No forms found.")
        return 0

    table = Table(box=box.SIMPLE_HEAVY)
    for title in ("#", "ID", "Action", "Method", "Enctype", "Submit buttons"):
        table.add_column(title)
    for i, form in enumerate(forms):
        table.add_row(str(i), form.id, form.action, form.method, form.enctype, str(form.submit_buttons))
    Console().print(table)
    return 0


def build_parser() -> argparse.ArgumentParser:
    """
    Build the argparse CLI parser with sub-commands.
    """
    parser = argparse.ArgumentParser(prog="examwatch", description="Fishing exam appointment scraper")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    parser.add_argument("-q", "--quiet", action="store_true", help="Only log warnings and errors")
    sub = parser.add_subparsers(dest="command", required=True)

    p_scrape = sub.add_parser("scrape", help="Scrape and enrich all appointments")
    p_scrape.add_argument("--out", "-o", type=str, default="", help="Output JSON file (default: stdout)")
    p_scrape.add_argument("--store", type=str, default="", help="Also store a snapshot in this data directory")
    p_scrape.add_argument("--workers", "-w", type=int, default=None, help="Concurrent portal sessions (default 10)")
    p_scrape.add_argument("--timeout", type=float, default=None, help="Seconds per request, 0 = no timeout")
    p_scrape.add_argument("--listing-url", type=str, default="", help="Override the listing URL")

    p_store = sub.add_parser("store", help="Store a JSON document as snapshot if it changed")
    p_store.add_argument("file", type=str, help="Scrape output JSON")
    p_store.add_argument("--data-dir", type=str, default=None, help="Snapshot directory")

    p_diff = sub.add_parser("diff", help="Report changes between two snapshots")
    p_diff.add_argument("old", type=str, help="Previous snapshot")
    p_diff.add_argument("new", type=str, help="Current snapshot")
    p_diff.add_argument("--limit", type=int, default=10, help="Lines per section")

    p_show = sub.add_parser("show", help="Print a snapshot as a table")
    p_show.add_argument("file", type=str, help="Snapshot JSON")

    p_forms = sub.add_parser("forms", help="List the forms of the listing page")
    p_forms.add_argument("--timeout", type=float, default=None, help="Seconds per request, 0 = no timeout")
    p_forms.add_argument("--listing-url", type=str, default="", help="Override the listing URL")

    return parser


def main(argv: list[str] | None = None) -> None:
    """
    CLI entry point. Parses args, dispatches to command handlers,
    and exits via SystemExit with a return code.
    """
    parser = build_parser()
    args = parser.parse_args(argv)
    _setup_logging(args.verbose, args.quiet)

    if args.command == "scrape":
        raise SystemExit(_cmd_scrape(args))
    if args.command == "store":
        raise SystemExit(_cmd_store(args))
    if args.command == "diff":
        raise SystemExit(_cmd_diff(args))
    if args.command == "show":
        raise SystemExit(_cmd_show(args))
    if args.command == "forms":
        raise SystemExit(_cmd_forms(args))

    raise SystemExit(2)
