"""
Intake Schemas
Pydantic model for medication intake events returned by the backend
"""

from typing import Optional, Any, Union
from datetime import datetime
from pydantic import BaseModel, Field, ConfigDict, field_validator


class IntakeRecord(BaseModel):
    """
    One scheduled-or-actual dose event.

    The core only reads these. Backend fields that are not declared here
    (drug_name, regimen, drug_product, ...) are kept as extra attributes so
    display labels can be derived from them.
    """
    id: Optional[Union[int, str]] = None
    profile_id: Optional[Union[int, str]] = None
    regimen_id: Optional[Union[int, str]] = None
    scheduled_time: Optional[datetime] = None
    taken_time: Optional[datetime] = None
    raw_status: Optional[str] = Field(default=None, alias="status")

    model_config = ConfigDict(extra="allow", populate_by_name=True, frozen=True)

    @field_validator("raw_status", mode="before")
    @classmethod
    def _stringify_status(cls, value: Any) -> Optional[str]:
        if value is None:
            return None
        return str(value)

    def get_field(self, name: str) -> Any:
        """Return a declared or extra backend field, or None"""
        if name in type(self).model_fields:
            return getattr(self, name)
        return (self.model_extra or {}).get(name)
