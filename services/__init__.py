"""
Services Module
Adherence aggregation, time windows and device registration for DoseKeeper
"""

from services.status_taxonomy import DoseStatus, classify
from services.time_range import TimeWindow, InvalidRangeError, resolve, from_explicit
from services.adherence_service import (
    AdherenceReport,
    MissedMedication,
    AdherenceService,
    adherence_service,
    aggregate,
    aggregate_across_profiles,
)
from services.registry_store import RegistryStore
from services.device_registry import DeviceRegistry, RegistrationResult, RegistrationState
from services.report_service import ComplianceReportService


__all__ = [
    # Status taxonomy
    "DoseStatus",
    "classify",
    # Time windows
    "TimeWindow",
    "InvalidRangeError",
    "resolve",
    "from_explicit",
    # Aggregation
    "AdherenceReport",
    "MissedMedication",
    "AdherenceService",
    "adherence_service",
    "aggregate",
    "aggregate_across_profiles",
    # Device registry
    "RegistryStore",
    "DeviceRegistry",
    "RegistrationResult",
    "RegistrationState",
    # Reports
    "ComplianceReportService",
]
