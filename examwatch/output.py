"""
Final ordering and JSON serialization of the appointment list.

Order: date/time ascending (unparseable values first), then location, then
status. Same input always gives byte-identical JSON.
"""

from __future__ import annotations

import json
from datetime import datetime
from typing import Any, Dict, Iterable, List, Tuple

from examwatch.model import EnrichedRecord, record_to_dict

# listing format, e.g. "25.10.2025, 08:00"
DATE_TIME_FORMAT = "%d.%m.%Y, %H:%M"


def parse_date_time(value: str) -> datetime:
    """
    Parse a listing date/time. Invalid values map to datetime.min.
    """
    try:
        return datetime.strptime(value.strip(), DATE_TIME_FORMAT)
    except ValueError:
        return datetime.min


def sort_key(record: EnrichedRecord) -> Tuple[datetime, str, str]:
    return (parse_date_time(record.date_time), record.location, record.status)


def sort_records(records: Iterable[EnrichedRecord]) -> List[EnrichedRecord]:
    return sorted(records, key=sort_key)


def build_output(records: Iterable[EnrichedRecord]) -> Dict[str, Any]:
    ordered = sort_records(records)
    return {
        "exam_appointments": [record_to_dict(r) for r in ordered],
        "total_count": len(ordered),
    }


def dumps_output(output: Dict[str, Any]) -> str:
    return json.dumps(output, ensure_ascii=False, indent=2)
