"""
Change report between two snapshots.

Appointments are compared as (date_time, location, city, status):
- added:   present only in the new snapshot
- removed: present only in the old snapshot
- status changed: same (date_time, location, city), different status

A status change therefore also shows up once as added and once as removed.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

AppointmentKey = Tuple[str, str, str, str]


@dataclass
class SnapshotDiff:
    added: List[AppointmentKey] = field(default_factory=list)
    removed: List[AppointmentKey] = field(default_factory=list)
    # (date_time, location, city, old_status, new_status)
    status_changed: List[Tuple[str, str, str, str, str]] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not (self.added or self.removed or self.status_changed)


def _keys(snapshot: Dict[str, Any]) -> List[AppointmentKey]:
    out = set()
    for appt in snapshot.get("exam_appointments", []):
        out.add(
            (
                str(appt.get("date_time", "")),
                str(appt.get("location", "")),
                str(appt.get("city", "")),
                str(appt.get("status", "")),
            )
        )
    return sorted(out)


def diff_snapshots(old: Dict[str, Any], new: Dict[str, Any]) -> SnapshotDiff:
    old_keys = _keys(old)
    new_keys = _keys(new)
    old_set, new_set = set(old_keys), set(new_keys)

    diff = SnapshotDiff(
        added=[k for k in new_keys if k not in old_set],
        removed=[k for k in old_keys if k not in new_set],
    )

    new_status: Dict[Tuple[str, str, str], List[str]] = {}
    for date_time, location, city, status in new_keys:
        new_status.setdefault((date_time, location, city), []).append(status)

    for date_time, location, city, status in old_keys:
        for other in new_status.get((date_time, location, city), []):
            if other != status:
                diff.status_changed.append((date_time, location, city, status, other))

    return diff


def _line(key: AppointmentKey) -> str:
    return " | ".join(key)


def _section(title: str, lines: List[str], limit: int) -> List[str]:
    out = [title]
    out.extend(lines[:limit])
    if len(lines) > limit:
        out.append(f"... and {len(lines) - limit} more")
    out.append("")
    return out


def render_diff(diff: Optional[SnapshotDiff], limit: int = 10) -> str:
    """
    Human-readable report. `diff=None` means there is no previous snapshot.
    """
    if diff is None:
        return "Initial data load - no previous version to compare"
    if diff.is_empty:
        return "No changes detected between files"

    out: List[str] = ["Changes detected between versions:", ""]
    if diff.added:
        out += _section(f"New appointments ({len(diff.added)}):", [_line(k) for k in diff.added], limit)
    if diff.removed:
        out += _section(f"Removed appointments ({len(diff.removed)}):", [_line(k) for k in diff.removed], limit)
    if diff.status_changed:
        changes = [f"{d} | {loc} | {city}: {old} -> {new}" for d, loc, city, old, new in diff.status_changed]
        out += _section("Status changes:", changes, limit)

    out.append(f"Summary: {len(diff.added)} new, {len(diff.removed)} removed appointments")
    return "\n".join(out)
