"""
Central data model definitions used across the project.

This module defines the canonical structure of appointment records so that:
- the listing extractor, the enrichment tasks and the output writer share
  the same field names
- the JSON snapshot layout is defined in exactly one place
"""

from __future__ import annotations

from dataclasses import dataclass, fields
from typing import Any, Dict, Optional, Tuple


# JSON names of the detail attributes, in output order
DETAIL_FIELDS: Tuple[str, ...] = (
    "exam_venue",
    "room",
    "postal_code",
    "street",
    "house_number",
    "exam_date",
    "exam_start_time",
    "headphones",
    "wheelchair_accessible",
    "min_participants",
    "max_participants",
    "current_participants",
    "detail_status",
)


@dataclass(frozen=True)
class SummaryRecord:
    """
    One row of the appointment listing.

    (date_time, location) identifies the row within one listing snapshot.
    """

    date_time: str
    location: str
    city: str
    region: str
    status: str = ""

    @property
    def key(self) -> Tuple[str, str]:
        return (self.date_time, self.location)


@dataclass(frozen=True)
class EnrichedRecord:
    """
    A summary record plus the attributes read from its detail page.

    All detail attributes are optional. A record without any of them is a
    degraded result: its enrichment failed and only the listing data is known.
    """

    date_time: str
    location: str
    city: str
    region: str
    status: str = ""

    exam_venue: Optional[str] = None
    room: Optional[str] = None
    postal_code: Optional[str] = None
    street: Optional[str] = None
    house_number: Optional[str] = None
    exam_date: Optional[str] = None
    exam_start_time: Optional[str] = None
    headphones: Optional[str] = None
    wheelchair_accessible: Optional[str] = None
    min_participants: Optional[str] = None
    max_participants: Optional[str] = None
    current_participants: Optional[str] = None
    detail_status: Optional[str] = None

    @classmethod
    def from_summary(cls, summary: SummaryRecord, details: Optional[Dict[str, str]] = None) -> "EnrichedRecord":
        values: Dict[str, Any] = {
            "date_time": summary.date_time,
            "location": summary.location,
            "city": summary.city,
            "region": summary.region,
            "status": summary.status,
        }
        for name, value in (details or {}).items():
            if name in DETAIL_FIELDS:
                values[name] = value
        return cls(**values)

    @property
    def is_degraded(self) -> bool:
        return all(getattr(self, name) is None for name in DETAIL_FIELDS)


def record_to_dict(record: EnrichedRecord) -> Dict[str, str]:
    """
    Convert a record into its JSON object.

    Detail attributes without a value are left out entirely, so degraded
    records carry the five listing fields only.
    """
    out: Dict[str, str] = {}
    for f in fields(record):
        value = getattr(record, f.name)
        if f.name in DETAIL_FIELDS and not value:
            continue
        out[f.name] = value
    return out
