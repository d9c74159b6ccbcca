"""
Status Taxonomy
Canonical dose-status vocabulary and classifier for backend status strings
"""

from typing import Any, Dict, FrozenSet
from enum import Enum


class DoseStatus(str, Enum):
    """Canonical status of a dose event. Closed set."""
    TAKEN = "taken"
    SKIPPED = "skipped"
    MISSED = "missed"
    PENDING = "pending"
    OTHER = "other"


# Extend a group by adding synonyms, never by adding a status.
STATUS_SYNONYMS: Dict[DoseStatus, FrozenSet[str]] = {
    DoseStatus.TAKEN: frozenset({
        "taken", "done", "completed", "success", "checkin", "checked_in"
    }),
    DoseStatus.SKIPPED: frozenset({"skipped", "skip"}),
    DoseStatus.MISSED: frozenset({
        "missed", "late", "overdue", "expired", "not_taken"
    }),
    DoseStatus.PENDING: frozenset({
        "pending", "scheduled", "upcoming", "planned"
    }),
}

_LOOKUP: Dict[str, DoseStatus] = {
    synonym: status
    for status, synonyms in STATUS_SYNONYMS.items()
    for synonym in synonyms
}


def classify(raw_status: Any) -> DoseStatus:
    """
    Classify a free-text backend status.

    Case-insensitive and whitespace-trimmed. Unknown values, including None
    and non-strings, resolve to DoseStatus.OTHER; this never raises.
    """
    if not isinstance(raw_status, str):
        return DoseStatus.OTHER
    return _LOOKUP.get(raw_status.strip().lower(), DoseStatus.OTHER)
