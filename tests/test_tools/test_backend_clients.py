"""
Tests for the intake and push-device REST adapters
"""

import json
from datetime import datetime, timezone

import httpx
import pytest

from schemas.device import DevicePlatform
from services.status_taxonomy import DoseStatus, classify
from services.time_range import from_explicit
from tools.api_client import ApiClient
from tools.intake_client import IntakeClient
from tools.push_device_client import PushDeviceClient, device_id_of, device_token_of


class Recorder:
    """MockTransport handler replaying canned responses and recording requests"""

    def __init__(self, *responses: httpx.Response):
        self.responses = list(responses)
        self.requests = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self.responses.pop(0)


def _api(recorder: Recorder) -> ApiClient:
    return ApiClient(base_url="https://api.test/api/v1", transport=httpx.MockTransport(recorder))


# =============================================================================
# IntakeClient
# =============================================================================

class TestIntakeClient:

    @pytest.mark.asyncio
    async def test_fetch_builds_query_and_unwraps(self):
        recorder = Recorder(httpx.Response(200, json={"data": {"data": [
            {"id": 1, "profile_id": 7, "status": "taken", "scheduled_time": "2025-03-01T08:00:00Z",
             "taken_time": "2025-03-01T08:05:00Z", "drug_name": "Panadol"},
            {"id": 2, "profile_id": 7, "status": "missed", "regimen": {"name": "Night"}},
        ]}}))
        client = IntakeClient(_api(recorder))

        records = await client.fetch(7, from_explicit("2025-03-01", "2025-03-07"))

        params = dict(recorder.requests[0].url.params)
        assert recorder.requests[0].url.path == "/api/v1/medication-intake-events"
        assert params == {
            "profile_id": "7",
            "from_datetime": "2025-03-01T00:00:00.000Z",
            "to_datetime": "2025-03-07T23:59:59.000Z",
        }
        assert [r.id for r in records] == [1, 2]
        assert records[0].taken_time == datetime(2025, 3, 1, 8, 5, tzinfo=timezone.utc)
        assert classify(records[1].raw_status) is DoseStatus.MISSED
        assert records[1].get_field("regimen") == {"name": "Night"}

    @pytest.mark.asyncio
    async def test_fetch_bare_array_and_filters(self):
        recorder = Recorder(httpx.Response(200, json=[{"id": "a", "status": "pending"}, "junk"]))
        client = IntakeClient(_api(recorder))

        records = await client.fetch("p1", from_explicit("2025-03-01", "2025-03-01"), status="pending", regimen_id=3)

        params = dict(recorder.requests[0].url.params)
        assert params["status"] == "pending"
        assert params["regimen_id"] == "3"
        assert len(records) == 1

    @pytest.mark.asyncio
    async def test_fetch_requires_profile(self):
        client = IntakeClient(_api(Recorder()))
        with pytest.raises(ValueError):
            await client.fetch("", from_explicit("2025-03-01", "2025-03-01"))


# =============================================================================
# PushDeviceClient
# =============================================================================

class TestPushDeviceClient:

    @pytest.mark.asyncio
    async def test_register(self):
        recorder = Recorder(httpx.Response(201, json={"data": {"push_device": {"id": 9, "device_token": "tok"}}}))
        client = PushDeviceClient(_api(recorder))

        device = await client.register(DevicePlatform.ANDROID, "tok")

        request = recorder.requests[0]
        assert request.method == "POST"
        assert request.url.path == "/api/v1/push-devices"
        assert json.loads(request.content) == {"device_platform": "android", "device_token": "tok"}
        assert device_id_of(device) == "9"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("platform,token", [("", "tok"), ("ios", ""), ("ios", None)])
    async def test_register_validates(self, platform, token):
        client = PushDeviceClient(_api(Recorder()))
        with pytest.raises(ValueError):
            await client.register(platform, token)

    @pytest.mark.asyncio
    async def test_list_devices(self):
        recorder = Recorder(httpx.Response(200, json={"data": [{"id": 1, "token": "a"}, None]}))
        client = PushDeviceClient(_api(recorder))

        devices = await client.list_devices()

        assert devices == [{"id": 1, "token": "a"}]
        assert device_token_of(devices[0]) == "a"

    @pytest.mark.asyncio
    async def test_delete_escapes_id(self):
        recorder = Recorder(httpx.Response(204))
        client = PushDeviceClient(_api(recorder))

        await client.delete("a/b")

        assert recorder.requests[0].method == "DELETE"
        assert recorder.requests[0].url.raw_path == b"/api/v1/push-devices/a%2Fb"

    @pytest.mark.asyncio
    async def test_delete_requires_id(self):
        client = PushDeviceClient(_api(Recorder()))
        with pytest.raises(ValueError):
            await client.delete("")
