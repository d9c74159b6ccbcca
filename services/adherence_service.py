"""
Adherence Service
Aggregates intake records into adherence reports and merges reports across profiles
"""

import logging
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple
from dataclasses import dataclass, field

from config import adherence_config
from schemas.intake import IntakeRecord
from services.status_taxonomy import DoseStatus, classify


logger = logging.getLogger(__name__)


# Display-label sources for missed doses, in precedence order
LABEL_SOURCES: Tuple[Tuple[str, ...], ...] = (
    ("drug_name",),
    ("medicine_name",),
    ("medication_name",),
    ("regimen_name",),
    ("regimen", "name"),
    ("drug", "name"),
    ("drug_product", "brand_name"),
    ("drug_product", "name"),
)


@dataclass
class MissedMedication:
    """Missed-dose count for one medication label"""
    label: str
    count: int

    def to_dict(self) -> Dict[str, Any]:
        return {"label": self.label, "count": self.count}


@dataclass
class AdherenceReport:
    """
    Adherence summary for one window.

    total_scheduled includes doses whose status classified as OTHER
    (other_count); they weigh on the rate without counting as taken.
    """
    taken_count: int = 0
    skipped_count: int = 0
    missed_count: int = 0
    pending_count: int = 0
    other_count: int = 0
    total_scheduled: int = 0
    adherence_rate: int = 0
    top_missed: List[MissedMedication] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "taken_count": self.taken_count,
            "skipped_count": self.skipped_count,
            "missed_count": self.missed_count,
            "pending_count": self.pending_count,
            "other_count": self.other_count,
            "total_scheduled": self.total_scheduled,
            "adherence_rate": self.adherence_rate,
            "top_missed": [m.to_dict() for m in self.top_missed],
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "AdherenceReport":
        """
        Build a report from a stats payload, e.g. a backend-computed summary.
        Accepts ``most_missed`` entries keyed by ``name`` as well.
        """
        taken = int(data.get("taken_count") or 0)
        skipped = int(data.get("skipped_count") or 0)
        missed = int(data.get("missed_count") or 0)
        pending = int(data.get("pending_count") or 0)
        bucketed = taken + skipped + missed + pending
        total = max(int(data.get("total_scheduled") or 0), bucketed)

        entries = data.get("top_missed")
        if entries is None:
            entries = data.get("most_missed") or []
        top_missed = [
            MissedMedication(
                label=str(entry.get("label") or entry.get("name") or adherence_config.UNKNOWN_LABEL),
                count=int(entry.get("count") or 0),
            )
            for entry in entries
        ]

        return cls(
            taken_count=taken,
            skipped_count=skipped,
            missed_count=missed,
            pending_count=pending,
            other_count=total - bucketed,
            total_scheduled=total,
            adherence_rate=adherence_rate(taken, total),
            top_missed=top_missed,
        )


def adherence_rate(taken: int, total: int) -> int:
    """Percentage of taken doses, rounded half up; 0 when nothing is scheduled"""
    if total <= 0:
        return 0
    # Integer form of floor(taken * 100 / total + 0.5)
    return (taken * 200 + total) // (2 * total)


def _lookup(record: IntakeRecord, path: Tuple[str, ...]) -> Any:
    value = record.get_field(path[0])
    for key in path[1:]:
        if isinstance(value, Mapping):
            value = value.get(key)
        else:
            value = getattr(value, key, None)
    return value


def resolve_label(record: IntakeRecord) -> str:
    """Display name for a record: first non-empty label source, else "Unknown" """
    for path in LABEL_SOURCES:
        value = _lookup(record, path)
        if value is None:
            continue
        text = str(value).strip()
        if text:
            return text
    return adherence_config.UNKNOWN_LABEL


def _rank_missed(counts: Dict[str, int], limit: int) -> List[MissedMedication]:
    # sorted() is stable, so equal counts keep first-seen (insertion) order
    ranked = sorted(counts.items(), key=lambda item: -item[1])
    return [MissedMedication(label=label, count=count) for label, count in ranked[:limit]]


def aggregate(
    records: Iterable[IntakeRecord],
    top_n: int = adherence_config.TOP_MISSED_LIMIT
) -> AdherenceReport:
    """
    Summarize intake records into an adherence report.

    Args:
        records: Flat list of already-unwrapped intake records
        top_n: Number of most-missed labels to keep

    Returns:
        AdherenceReport; all zeros when there are no records
    """
    tally = {status: 0 for status in DoseStatus}
    missed_by_label: Dict[str, int] = {}

    for record in records:
        status = classify(record.raw_status)
        tally[status] += 1
        if status is DoseStatus.MISSED:
            label = resolve_label(record)
            missed_by_label[label] = missed_by_label.get(label, 0) + 1

    total = sum(tally.values())
    return AdherenceReport(
        taken_count=tally[DoseStatus.TAKEN],
        skipped_count=tally[DoseStatus.SKIPPED],
        missed_count=tally[DoseStatus.MISSED],
        pending_count=tally[DoseStatus.PENDING],
        other_count=tally[DoseStatus.OTHER],
        total_scheduled=total,
        adherence_rate=adherence_rate(tally[DoseStatus.TAKEN], total),
        top_missed=_rank_missed(missed_by_label, top_n),
    )


def aggregate_across_profiles(
    reports: Iterable[AdherenceReport],
    top_n: int = adherence_config.TOP_MISSED_LIMIT
) -> AdherenceReport:
    """
    Merge per-profile reports into one.

    Counts are summed and the rate is re-derived from the summed totals
    rather than averaged. Missed labels are merged by name and re-ranked.
    """
    combined = AdherenceReport()
    missed_by_label: Dict[str, int] = {}

    for report in reports:
        combined.taken_count += report.taken_count
        combined.skipped_count += report.skipped_count
        combined.missed_count += report.missed_count
        combined.pending_count += report.pending_count
        combined.other_count += report.other_count
        combined.total_scheduled += report.total_scheduled
        for entry in report.top_missed:
            missed_by_label[entry.label] = missed_by_label.get(entry.label, 0) + entry.count

    combined.adherence_rate = adherence_rate(combined.taken_count, combined.total_scheduled)
    combined.top_missed = _rank_missed(missed_by_label, top_n)
    return combined


class AdherenceService:
    """
    Service for adherence aggregation

    Pure computation over records the caller has already fetched; it never
    performs I/O itself.
    """

    def __init__(self, top_missed_limit: Optional[int] = None):
        self.top_missed_limit = top_missed_limit or adherence_config.TOP_MISSED_LIMIT

    def build_report(self, records: Sequence[IntakeRecord]) -> AdherenceReport:
        """Aggregate one profile's records"""
        report = aggregate(records, top_n=self.top_missed_limit)
        if report.other_count:
            logger.debug(
                f"{report.other_count} of {report.total_scheduled} intake records "
                f"have an unrecognised status"
            )
        return report

    def combine_reports(self, reports: Sequence[AdherenceReport]) -> AdherenceReport:
        """Fan-in step for per-profile reports fetched in parallel"""
        return aggregate_across_profiles(reports, top_n=self.top_missed_limit)


# Singleton instance
adherence_service = AdherenceService()
