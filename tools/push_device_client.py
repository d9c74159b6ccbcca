"""
Push Device Client
REST adapter for the server-side push-device registry
"""

import logging
from typing import Any, Dict, List, Optional, Union
from urllib.parse import quote

from schemas.device import DevicePlatform
from tools.api_client import ApiClient
from tools.payloads import pick_array, pick_object, first_present


logger = logging.getLogger(__name__)

PATH_PUSH_DEVICES = "/push-devices"


def device_id_of(device: Dict[str, Any]) -> Optional[str]:
    """Server id of a device entry (``id`` or ``device_id``)"""
    value = first_present(device, "id", "device_id")
    return str(value) if value is not None else None


def device_token_of(device: Dict[str, Any]) -> Optional[str]:
    """Push token of a device entry (``device_token`` or ``token``)"""
    return first_present(device, "device_token", "token")


class PushDeviceClient:
    """Register, list and delete push devices"""

    def __init__(self, api: ApiClient):
        self.api = api

    async def register(self, platform: Union[DevicePlatform, str], token: str) -> Dict[str, Any]:
        """
        Register or refresh this device's token.

        POST /push-devices {device_platform, device_token}

        Returns:
            The push_device object, unwrapped
        """
        platform_value = platform.value if isinstance(platform, DevicePlatform) else platform
        if not platform_value:
            raise ValueError("device_platform is required")
        if not token:
            raise ValueError("device_token is required")

        res = await self.api.post(
            PATH_PUSH_DEVICES,
            {"device_platform": platform_value, "device_token": token}
        )
        return pick_object(res, key="push_device")

    async def list_devices(self) -> List[Dict[str, Any]]:
        """GET /push-devices"""
        res = await self.api.get(PATH_PUSH_DEVICES)
        return [d for d in pick_array(res) if isinstance(d, dict)]

    async def delete(self, device_id: Union[int, str]) -> None:
        """DELETE /push-devices/{device_id}"""
        if device_id is None or device_id == "":
            raise ValueError("device_id is required")
        await self.api.delete(f"{PATH_PUSH_DEVICES}/{quote(str(device_id), safe='')}")
        logger.debug(f"Deleted push device {device_id}")
