"""
Intake Record Source
Fetches medication intake events for a profile and window
"""

import logging
from typing import TYPE_CHECKING, List, Optional, Union

from schemas.intake import IntakeRecord
from tools.api_client import ApiClient
from tools.payloads import pick_array

if TYPE_CHECKING:
    from services.time_range import TimeWindow


logger = logging.getLogger(__name__)

PATH_INTAKE = "/medication-intake-events"


class IntakeClient:
    """REST adapter for /medication-intake-events"""

    def __init__(self, api: ApiClient):
        self.api = api

    async def fetch(
        self,
        profile_id: Union[int, str],
        window: "TimeWindow",
        status: Optional[str] = None,
        regimen_id: Optional[Union[int, str]] = None
    ) -> List[IntakeRecord]:
        """
        Fetch intake events for a profile within an inclusive window.

        Returns:
            Flat list of records regardless of how the backend wrapped them
        """
        if profile_id is None or profile_id == "":
            raise ValueError("profile_id is required")

        params = {
            "profile_id": profile_id,
            **window.to_query_params(),
            "status": status,
            "regimen_id": regimen_id,
        }

        res = await self.api.get(PATH_INTAKE, params=params)
        rows = pick_array(res)
        records = [IntakeRecord.model_validate(row) for row in rows if isinstance(row, dict)]

        logger.info(f"Fetched {len(records)} intake events for profile {profile_id}")
        return records
