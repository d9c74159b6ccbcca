"""
Device Schemas
Locally cached push-device registration
"""

from typing import Optional, Any
from datetime import datetime, timezone
from enum import Enum
from pydantic import BaseModel, Field, ConfigDict, AliasChoices, field_validator


class DevicePlatform(str, Enum):
    """Platforms accepted by the push-device registry"""
    ANDROID = "android"
    IOS = "ios"
    OTHER = "other"


def normalize_platform(value: Any) -> DevicePlatform:
    """Map an OS name (e.g. sys.platform or an SDK value) to a registry platform"""
    if isinstance(value, DevicePlatform):
        return value
    name = str(value or "").strip().lower()
    if name == "android":
        return DevicePlatform.ANDROID
    if name in ("ios", "iphoneos", "ipados"):
        return DevicePlatform.IOS
    return DevicePlatform.OTHER


class DeviceRegistration(BaseModel):
    """This device's push registration as last seen by the client"""
    token: str = Field(..., min_length=1)
    server_device_id: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("server_device_id", "deviceId"),
    )
    platform: DevicePlatform = DevicePlatform.OTHER
    updated_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        validation_alias=AliasChoices("updated_at", "updatedAt"),
    )

    model_config = ConfigDict(populate_by_name=True)

    @field_validator("server_device_id", mode="before")
    @classmethod
    def _stringify_id(cls, value: Any) -> Optional[str]:
        if value is None or value == "":
            return None
        return str(value)

    @field_validator("platform", mode="before")
    @classmethod
    def _normalize_platform(cls, value: Any) -> DevicePlatform:
        return normalize_platform(value)
