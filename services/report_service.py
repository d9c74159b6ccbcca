"""
Report Service
Compliance reports for one or several patient profiles
"""

import asyncio
import logging
from typing import Dict, List, Optional, Sequence, Union
from datetime import datetime

from config import adherence_config
from services.adherence_service import AdherenceReport, AdherenceService, adherence_service
from services.time_range import Boundary, TimeWindow, from_explicit, resolve
from tools.intake_client import IntakeClient


logger = logging.getLogger(__name__)

ProfileId = Union[int, str]


class ComplianceReportService:
    """
    Fetches intake records and summarizes them

    Fetch errors propagate; an empty report only ever means the backend
    returned no records for the window.
    """

    def __init__(
        self,
        intake_client: IntakeClient,
        aggregator: Optional[AdherenceService] = None
    ):
        self.intake_client = intake_client
        self.aggregator = aggregator or adherence_service

    async def get_report_for_window(self, profile_id: ProfileId, window: TimeWindow) -> AdherenceReport:
        records = await self.intake_client.fetch(profile_id, window)
        report = self.aggregator.build_report(records)
        logger.info(
            f"Profile {profile_id}: {report.adherence_rate}% adherence "
            f"over {report.total_scheduled} doses"
        )
        return report

    async def get_profile_report(
        self,
        profile_id: ProfileId,
        period: str = adherence_config.DEFAULT_PERIOD,
        now: Optional[datetime] = None
    ) -> AdherenceReport:
        """Report for a named period ("day", "week", "month") containing now"""
        return await self.get_report_for_window(profile_id, resolve(period, now))

    async def get_report_for_range(
        self,
        profile_id: ProfileId,
        from_: Boundary,
        to: Boundary
    ) -> AdherenceReport:
        """Report for an explicit range; date-only bounds cover whole days"""
        return await self.get_report_for_window(profile_id, from_explicit(from_, to))

    async def get_profile_reports(
        self,
        profile_ids: Sequence[ProfileId],
        period: str = adherence_config.DEFAULT_PERIOD,
        now: Optional[datetime] = None
    ) -> Dict[ProfileId, AdherenceReport]:
        """Fetch every profile's window concurrently"""
        window = resolve(period, now)
        reports: List[AdherenceReport] = await asyncio.gather(
            *(self.get_report_for_window(pid, window) for pid in profile_ids)
        )
        return dict(zip(profile_ids, reports))

    async def get_combined_report(
        self,
        profile_ids: Sequence[ProfileId],
        period: str = adherence_config.DEFAULT_PERIOD,
        now: Optional[datetime] = None
    ) -> AdherenceReport:
        """One report across several profiles, rate weighted by each profile's doses"""
        reports = await self.get_profile_reports(profile_ids, period, now)
        return self.aggregator.combine_reports(list(reports.values()))
