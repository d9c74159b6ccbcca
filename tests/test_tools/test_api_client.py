"""
Tests for the backend API client and response unwrapping
"""

import json

import httpx
import pytest

from tools.api_client import ApiClient, ApiError, UpstreamUnavailable
from tools.payloads import first_present, pick_array, pick_object


def _client(handler) -> ApiClient:
    return ApiClient(
        base_url="https://api.test/api/v1",
        access_token="secret",
        timeout=5,
        transport=httpx.MockTransport(handler)
    )


class TestApiClient:

    @pytest.mark.asyncio
    async def test_get_sends_auth_and_drops_empty_params(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["url"] = request.url
            seen["auth"] = request.headers.get("Authorization")
            return httpx.Response(200, json={"ok": True})

        api = _client(handler)
        body = await api.get("/things", params={"a": 1, "b": None, "c": ""})
        await api.close()

        assert body == {"ok": True}
        assert seen["url"].path == "/api/v1/things"
        assert dict(seen["url"].params) == {"a": "1"}
        assert seen["auth"] == "Bearer secret"

    @pytest.mark.asyncio
    async def test_post_sends_json(self):
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.method == "POST"
            return httpx.Response(201, json=json.loads(request.content))

        api = _client(handler)
        assert await api.post("/echo", {"x": 1}) == {"x": 1}
        await api.close()

    @pytest.mark.asyncio
    async def test_no_content_returns_none(self):
        api = _client(lambda request: httpx.Response(204))
        assert await api.delete("/things/1") is None
        await api.close()

    @pytest.mark.asyncio
    async def test_client_error_raises_api_error_with_message(self):
        api = _client(lambda request: httpx.Response(422, json={"message": "device_token is invalid"}))

        with pytest.raises(ApiError) as exc_info:
            await api.post("/push-devices", {})
        await api.close()

        assert exc_info.value.status == 422
        assert str(exc_info.value) == "device_token is invalid"
        assert exc_info.value.data == {"message": "device_token is invalid"}

    @pytest.mark.asyncio
    async def test_server_error_is_upstream_unavailable(self):
        api = _client(lambda request: httpx.Response(503, json={"error": "maintenance"}))

        with pytest.raises(UpstreamUnavailable) as exc_info:
            await api.get("/things")
        await api.close()

        assert exc_info.value.status == 503
        assert str(exc_info.value) == "maintenance"

    @pytest.mark.asyncio
    async def test_network_error_is_upstream_unavailable(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        api = _client(handler)
        with pytest.raises(UpstreamUnavailable):
            await api.get("/things")
        await api.close()

    @pytest.mark.asyncio
    async def test_invalid_json_is_upstream_unavailable(self):
        api = _client(lambda request: httpx.Response(200, content=b"<html>"))
        with pytest.raises(UpstreamUnavailable):
            await api.get("/things")
        await api.close()

    @pytest.mark.asyncio
    async def test_client_recreated_after_close(self):
        api = _client(lambda request: httpx.Response(200, json=[]))
        await api.get("/a")
        await api.close()
        assert await api.get("/a") == []
        await api.close()


class TestPayloadHelpers:

    @pytest.mark.parametrize("res", [
        [{"id": 1}],
        {"data": [{"id": 1}]},
        {"data": {"data": [{"id": 1}]}},
        {"items": [{"id": 1}]},
        {"data": {"items": [{"id": 1}]}},
    ])
    def test_pick_array_shapes(self, res):
        assert pick_array(res) == [{"id": 1}]

    @pytest.mark.parametrize("res", [None, {}, {"data": None}, {"data": {"id": 1}}, "text"])
    def test_pick_array_fallback(self, res):
        assert pick_array(res) == []

    @pytest.mark.parametrize("res", [
        {"id": 5},
        {"data": {"id": 5}},
        {"push_device": {"id": 5}},
        {"data": {"push_device": {"id": 5}}},
    ])
    def test_pick_object_shapes(self, res):
        assert pick_object(res, key="push_device") == {"id": 5}

    def test_pick_object_non_object(self):
        assert pick_object(None) == {}
        assert pick_object([1, 2]) == {}

    def test_first_present(self):
        assert first_present({"id": "", "device_id": 0}, "id", "device_id") == 0
        assert first_present({}, "id") is None
