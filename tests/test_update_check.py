"""Unit tests for the release update check (create_modernfw_app.update_check)."""

from __future__ import annotations

import httpx
import pytest

from create_modernfw_app.update_check import check_for_update, is_newer, parse_release

pytestmark = pytest.mark.unit

REGISTRY = "https://pypi.example.com/pypi"


def _transport(status: int = 200, payload=None, content: bytes | None = None) -> httpx.MockTransport:
    def handler(request: httpx.Request) -> httpx.Response:
        assert str(request.url) == f"{REGISTRY}/create-modernfw-app/json"
        if content is not None:
            return httpx.Response(status, content=content)
        return httpx.Response(status, json=payload)

    return httpx.MockTransport(handler)


class TestVersionComparison:
    @pytest.mark.parametrize(
        ("version", "expected"),
        [("1.2.3", (1, 2, 3)), ("v2.0", (2, 0)), ("0.4.0rc1", (0, 4, 0)), ("nightly", None)],
    )
    def test_parse_release(self, version, expected):
        assert parse_release(version) == expected

    @pytest.mark.parametrize(
        ("candidate", "current", "expected"),
        [
            ("0.4.0", "0.3.0", True),
            ("0.3.1", "0.3.0", True),
            ("1.0", "0.9.9", True),
            ("0.3.0", "0.3.0", False),
            ("0.3", "0.3.0", False),
            ("0.2.9", "0.3.0", False),
            ("garbage", "0.3.0", False),
        ],
    )
    def test_is_newer(self, candidate, current, expected):
        assert is_newer(candidate, current) is expected


class TestCheckForUpdate:
    @pytest.mark.asyncio
    async def test_newer_release(self):
        transport = _transport(payload={"info": {"version": "9.0.0"}})
        assert await check_for_update(REGISTRY, "0.3.0", transport=transport) == "9.0.0"

    @pytest.mark.asyncio
    async def test_up_to_date(self):
        transport = _transport(payload={"info": {"version": "0.3.0"}})
        assert await check_for_update(REGISTRY, "0.3.0", transport=transport) is None

    @pytest.mark.asyncio
    async def test_trailing_slash_in_registry(self):
        transport = _transport(payload={"info": {"version": "1.0.0"}})
        assert await check_for_update(REGISTRY + "/", "0.3.0", transport=transport) == "1.0.0"

    @pytest.mark.asyncio
    async def test_not_found(self):
        assert await check_for_update(REGISTRY, "0.3.0", transport=_transport(status=404)) is None

    @pytest.mark.asyncio
    async def test_invalid_json(self):
        transport = _transport(content=b"<html>")
        assert await check_for_update(REGISTRY, "0.3.0", transport=transport) is None

    @pytest.mark.asyncio
    async def test_unexpected_payload(self):
        transport = _transport(payload={"releases": {}})
        assert await check_for_update(REGISTRY, "0.3.0", transport=transport) is None

    @pytest.mark.asyncio
    async def test_network_error(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectTimeout("timed out", request=request)

        transport = httpx.MockTransport(handler)
        assert await check_for_update(REGISTRY, "0.3.0", transport=transport) is None

    @pytest.mark.asyncio
    async def test_malformed_registry_url(self):
        assert await check_for_update("http://[::1", "0.3.0", timeout=1.0) is None
