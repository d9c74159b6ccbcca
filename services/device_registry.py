"""
Device Registry
Keeps this device's push registration reconciled with the server-side registry
"""

import asyncio
import inspect
import logging
from typing import Any, Awaitable, Callable, Dict, Optional, Protocol, Union
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum

from schemas.device import DevicePlatform, DeviceRegistration, normalize_platform
from services.registry_store import RegistryStore
from tools.api_client import ApiError, UpstreamUnavailable
from tools.push_device_client import PushDeviceClient, device_id_of, device_token_of


logger = logging.getLogger(__name__)

TokenProvider = Callable[[], Union[Optional[str], Awaitable[Optional[str]]]]

UPSTREAM_ERRORS = (ApiError, UpstreamUnavailable)


class RegistrationState(str, Enum):
    """Lifecycle of this device's push registration"""
    UNREGISTERED = "unregistered"
    REGISTERING = "registering"
    REGISTERED = "registered"
    REVOKING = "revoking"


@dataclass
class RegistrationResult:
    """Outcome of ensure_registered. upstream_error is set when server sync failed."""
    granted: bool
    token: Optional[str] = None
    server_device_id: Optional[str] = None
    upstream_error: Optional[str] = None

    @property
    def synced(self) -> bool:
        return self.granted and self.server_device_id is not None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "granted": self.granted,
            "token": self.token,
            "server_device_id": self.server_device_id,
            "upstream_error": self.upstream_error,
        }


class PushTokenSource(Protocol):
    """Platform push-token API"""

    async def prepare(self) -> None:
        """One-time OS setup (e.g. Android notification channel)"""

    async def obtain_token(self) -> Optional[str]:
        """Device push token, or None when permission is denied"""


class DeviceRegistry:
    """
    Owner of the local DeviceRegistration cache.

    The server device list is authoritative; the local record is a hint used
    to find our server entry again. Upstream failures never propagate: they
    are reported in the result and logged. Register and revoke hold a lock
    across their read-modify-write of the cache.
    """

    def __init__(
        self,
        devices: PushDeviceClient,
        store: RegistryStore,
        clock: Optional[Callable[[], datetime]] = None
    ):
        self.devices = devices
        self.store = store
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self._lock = asyncio.Lock()
        self.state = (
            RegistrationState.REGISTERED if store.read() is not None
            else RegistrationState.UNREGISTERED
        )

    def current(self) -> Optional[DeviceRegistration]:
        """Cached registration, if any"""
        return self.store.read()

    async def ensure_registered(
        self,
        platform: Union[DevicePlatform, str],
        obtain_token: TokenProvider
    ) -> RegistrationResult:
        """
        Obtain a push token and register it with the server.

        Args:
            platform: "android", "ios" or anything else ("other")
            obtain_token: Sync or async callable returning a token or None

        Returns:
            RegistrationResult; granted=False when no token was obtained
        """
        platform = normalize_platform(platform)

        token = obtain_token()
        if inspect.isawaitable(token):
            token = await token

        if not token:
            logger.info("Push permission denied or no device token available")
            return RegistrationResult(granted=False)

        async with self._lock:
            previous_state = self.state
            self.state = RegistrationState.REGISTERING
            try:
                result = await self._register(platform, token)
            except BaseException:
                # Abandoned mid-flight: cache untouched, state restored
                self.state = previous_state
                raise
            self.state = RegistrationState.REGISTERED

        return result

    async def _register(self, platform: DevicePlatform, token: str) -> RegistrationResult:
        cached = await self._run_store(self.store.read)

        try:
            device = await self.devices.register(platform, token)
        except UPSTREAM_ERRORS as e:
            logger.warning(f"Could not register push token with server: {e}")
            if cached is None or cached.token != token:
                await self._retire_stale(cached, token)
                # Bare token so a later revoke can find the server entry by token
                await self._run_store(self.store.write, DeviceRegistration(
                    token=token,
                    server_device_id=None,
                    platform=platform,
                    updated_at=self._clock()
                ))
            return RegistrationResult(granted=True, token=token, upstream_error=str(e))

        server_device_id = device_id_of(device)
        if cached is None or cached.server_device_id != server_device_id:
            await self._retire_stale(cached, token)
        await self._run_store(self.store.write, DeviceRegistration(
            token=token,
            server_device_id=server_device_id,
            platform=platform,
            updated_at=self._clock()
        ))

        logger.info(f"Registered push device {server_device_id} ({platform.value})")
        return RegistrationResult(granted=True, token=token, server_device_id=server_device_id)

    async def _retire_stale(self, cached: Optional[DeviceRegistration], token: str) -> None:
        """Delete the server entry of a previous token before its cache record is replaced"""
        if cached is None or cached.token == token:
            return
        if not await self._delete_on_server(cached):
            logger.warning(
                f"Previous push device {cached.server_device_id or '(unresolved)'} "
                f"was not removed from server"
            )

    async def ensure_registered_with(
        self,
        source: PushTokenSource,
        platform: Union[DevicePlatform, str]
    ) -> RegistrationResult:
        """Run the token source's OS setup, then ensure_registered"""
        try:
            await source.prepare()
        except Exception as e:
            logger.warning(f"Push token source setup failed: {e}")
        return await self.ensure_registered(platform, source.obtain_token)

    async def revoke_current(self) -> bool:
        """
        Delete this device's server registration and clear the local cache.

        Returns:
            True when the server entry was deleted; False when it could not be
            resolved or reached. The local cache is cleared either way.
        """
        async with self._lock:
            cached = await self._run_store(self.store.read)
            if cached is None:
                logger.info("No cached push registration to revoke")
                self.state = RegistrationState.UNREGISTERED
                return False

            previous_state = self.state
            self.state = RegistrationState.REVOKING
            try:
                revoked = await self._delete_on_server(cached)
            except BaseException:
                self.state = previous_state
                raise

            await self._run_store(self.store.clear)
            self.state = RegistrationState.UNREGISTERED
            return revoked

    async def _delete_on_server(self, cached: DeviceRegistration) -> bool:
        device_id = cached.server_device_id
        if device_id is None:
            try:
                device_id = await self._resolve_device_id(cached.token)
            except UPSTREAM_ERRORS as e:
                logger.warning(f"Could not list push devices: {e}")
                return False
        if device_id is None:
            logger.warning("No server push device matches the cached token")
            return False

        try:
            await self.devices.delete(device_id)
        except ApiError as e:
            if e.status == 404:
                logger.info(f"Push device {device_id} already absent on server")
                return True
            logger.warning(f"Push device revoke rejected: {e}")
            return False
        except UpstreamUnavailable as e:
            logger.warning(f"Push device revoke failed: {e}")
            return False

        logger.info(f"Deleted push device {device_id}")
        return True

    async def _resolve_device_id(self, token: str) -> Optional[str]:
        for device in await self.devices.list_devices():
            if device_token_of(device) == token:
                return device_id_of(device)
        return None

    async def _run_store(self, func: Callable[..., Any], *args: Any) -> Any:
        """Run a blocking local-store call in the default executor"""
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, func, *args)
