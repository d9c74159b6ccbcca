"""
Backend API Client
Shared async HTTP client for the DoseKeeper backend
"""

import logging
from typing import Any, Dict, Optional

import httpx

from config import settings


logger = logging.getLogger(__name__)


class UpstreamUnavailable(Exception):
    """Backend could not be reached or failed on its side (network, timeout, 5xx)"""

    def __init__(self, message: str, status: Optional[int] = None):
        super().__init__(message)
        self.status = status


class ApiError(Exception):
    """Backend rejected the request (4xx)"""

    def __init__(self, message: str, status: int, data: Any = None):
        super().__init__(message)
        self.status = status
        self.data = data


def _error_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        body = None
    if isinstance(body, dict):
        message = body.get("message") or body.get("error")
        if message:
            return str(message)
    return f"HTTP {response.status_code}"


class ApiClient:
    """
    Thin wrapper around httpx.AsyncClient

    Returns decoded JSON bodies (None for empty responses) and maps failures
    onto ApiError / UpstreamUnavailable.
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        access_token: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        if base_url is None:
            base_url = f"{settings.API_BASE_URL.rstrip('/')}{settings.API_PREFIX}"
        self.base_url = base_url.rstrip("/")
        self.access_token = access_token if access_token is not None else settings.API_ACCESS_TOKEN
        self.timeout = timeout or settings.API_TIMEOUT_SECONDS
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client"""
        if self._client is None or self._client.is_closed:
            headers = {
                "Content-Type": "application/json",
                "Accept": "application/json",
            }
            if self.access_token:
                headers["Authorization"] = f"Bearer {self.access_token}"
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.timeout,
                headers=headers,
                transport=self._transport
            )
        return self._client

    async def close(self):
        """Close the HTTP client"""
        if self._client and not self._client.is_closed:
            await self._client.aclose()
        self._client = None

    async def request(
        self,
        method: str,
        path: str,
        params: Optional[Dict[str, Any]] = None,
        json: Any = None
    ) -> Any:
        """Send a request and return the decoded body"""
        client = await self._get_client()
        if params:
            params = {k: v for k, v in params.items() if v is not None and v != ""}

        try:
            response = await client.request(method, path, params=params or None, json=json)
        except httpx.HTTPError as e:
            logger.error(f"[Network Error] {method} {self.base_url}{path}: {e}")
            raise UpstreamUnavailable(f"Cannot reach server: {e}") from e

        logger.debug(f"[{response.status_code}] {method} {path}")

        if response.status_code >= 500:
            message = _error_message(response)
            logger.error(f"[API Error {response.status_code}] {message}")
            raise UpstreamUnavailable(message, status=response.status_code)

        if response.status_code >= 400:
            try:
                data = response.json()
            except ValueError:
                data = None
            raise ApiError(_error_message(response), status=response.status_code, data=data)

        if response.status_code == 204 or not response.content:
            return None
        try:
            return response.json()
        except ValueError as e:
            raise UpstreamUnavailable(f"Invalid JSON from {path}: {e}", status=response.status_code) from e

    async def get(self, path: str, params: Optional[Dict[str, Any]] = None) -> Any:
        return await self.request("GET", path, params=params)

    async def post(self, path: str, data: Any = None) -> Any:
        return await self.request("POST", path, json=data if data is not None else {})

    async def patch(self, path: str, data: Any = None) -> Any:
        return await self.request("PATCH", path, json=data if data is not None else {})

    async def delete(self, path: str) -> Any:
        return await self.request("DELETE", path)
