"""
Persistent storage of scrape snapshots.

This module manages the data directory:

    data/exam-data-YYYY-MM-DD_HH-MM-SS.json   one file per changed snapshot
    data/latest.json                          copy of the newest snapshot

A snapshot file holds a one-element list: the scrape output plus
"scraped_at". A new file is only written when the content hash of the
appointments differs from latest.json, so repeated runs without changes
leave the directory untouched.
"""

from __future__ import annotations

import hashlib
import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional

LATEST_NAME = "latest.json"
SNAPSHOT_PREFIX = "exam-data-"


def _default_data_dir() -> Path:
    """
    Return the default data directory inside the package.

    A function instead of a constant so tests can pass their own directory.
    """
    base_dir = Path(__file__).resolve().parent
    return base_dir / "data"


def content_hash(output: Dict[str, Any]) -> str:
    """
    sha256 over the canonical JSON of appointments and count.

    scraped_at and other bookkeeping keys are not part of the hash.
    """
    payload = {
        "exam_appointments": output.get("exam_appointments", []),
        "total_count": output.get("total_count", 0),
    }
    canonical = json.dumps(payload, ensure_ascii=False, sort_keys=True, separators=(",", ":"))
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()


def load_snapshot(path: str | Path) -> Optional[Dict[str, Any]]:
    """
    Load a snapshot (bare output object or one-element list).

    Returns None if the file does not exist or is not a snapshot.
    """
    snapshot_path = Path(path)
    if not snapshot_path.exists():
        return None

    try:
        data = json.loads(snapshot_path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError, UnicodeDecodeError):
        return None

    if isinstance(data, list):
        data = data[0] if data else None
    if not isinstance(data, dict) or not isinstance(data.get("exam_appointments"), list):
        return None
    return data


def snapshot_name(now: datetime) -> str:
    return f"{SNAPSHOT_PREFIX}{now.strftime('%Y-%m-%d_%H-%M-%S')}.json"


def store_snapshot(
    output: Dict[str, Any],
    data_dir: str | Path | None = None,
    now: Optional[datetime] = None,
) -> Optional[Path]:
    """
    Persist `output` unless it equals the latest snapshot.

    Returns the path of the new snapshot file, or None when nothing changed.
    """
    directory = Path(data_dir) if data_dir is not None else _default_data_dir()
    directory.mkdir(parents=True, exist_ok=True)

    latest_path = directory / LATEST_NAME
    previous = load_snapshot(latest_path)
    if previous is not None and content_hash(previous) == content_hash(output):
        return None

    stamp = now if now is not None else datetime.now(timezone.utc)
    record = dict(output)
    record["scraped_at"] = stamp.isoformat()
    text = json.dumps([record], ensure_ascii=False, indent=2)

    out_path = directory / snapshot_name(stamp)
    out_path.write_text(text, encoding="utf-8")
    latest_path.write_text(text, encoding="utf-8")
    return out_path
