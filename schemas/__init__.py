"""
Schemas Module
Pydantic models for backend payloads and locally persisted records
"""

from schemas.intake import IntakeRecord
from schemas.device import DevicePlatform, DeviceRegistration, normalize_platform


__all__ = [
    "IntakeRecord",
    "DevicePlatform",
    "DeviceRegistration",
    "normalize_platform",
]
