"""
Tools Package
Backend REST adapters for DoseKeeper
"""

from .api_client import ApiClient, ApiError, UpstreamUnavailable
from .payloads import pick_array, pick_object
from .intake_client import IntakeClient
from .push_device_client import PushDeviceClient


__all__ = [
    "ApiClient",
    "ApiError",
    "UpstreamUnavailable",
    "pick_array",
    "pick_object",
    "IntakeClient",
    "PushDeviceClient",
]
