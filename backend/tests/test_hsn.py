# tests/test_hsn.py
"""
Tests for HSN code lookup: the GST portal client and the cached API.
"""

import httpx
import pytest

from shiv_accounts.core.config import settings
from shiv_accounts.services import hsn_client
from shiv_accounts.services.hsn_client import HsnLookupError, fetch_hsn_codes

API = settings.API_V1_STR


def _mock_portal(monkeypatch, handler):
    """Route the client's requests to `handler` instead of the network"""
    real_client = httpx.AsyncClient

    def client_factory(*args, **kwargs):
        kwargs["transport"] = httpx.MockTransport(handler)
        return real_client(*args, **kwargs)

    monkeypatch.setattr(hsn_client.httpx, "AsyncClient", client_factory)


# =============================================================================
# Portal client
# =============================================================================

class TestPortalClient:

    async def test_maps_rows(self, monkeypatch):
        seen = {}

        def handler(request):
            seen.update(request.url.params)
            return httpx.Response(200, json={"data": [{"c": "8471", "n": "Computers"}, {"c": "", "n": "blank"}]})

        _mock_portal(monkeypatch, handler)
        rows = await fetch_hsn_codes("8471", "byCode", "P")
        assert rows == [{"code": "8471", "description": "Computers", "category": "PRODUCT"}]
        assert seen == {"inputText": "8471", "selectedType": "byCode", "category": "P"}

    async def test_no_data(self, monkeypatch):
        _mock_portal(monkeypatch, lambda request: httpx.Response(200, json={"data": []}))
        assert await fetch_hsn_codes("0000") == []

    async def test_timeout(self, monkeypatch):
        def handler(request):
            raise httpx.ReadTimeout("timed out", request=request)

        _mock_portal(monkeypatch, handler)
        with pytest.raises(HsnLookupError) as exc:
            await fetch_hsn_codes("8471")
        assert exc.value.status_code == 408

    @pytest.mark.parametrize("status,expected", [(404, 404), (500, 502), (503, 502)])
    async def test_http_errors(self, monkeypatch, status, expected):
        _mock_portal(monkeypatch, lambda request: httpx.Response(status))
        with pytest.raises(HsnLookupError) as exc:
            await fetch_hsn_codes("8471")
        assert exc.value.status_code == expected

    async def test_invalid_json(self, monkeypatch):
        _mock_portal(monkeypatch, lambda request: httpx.Response(200, text="<html>maintenance</html>"))
        with pytest.raises(HsnLookupError) as exc:
            await fetch_hsn_codes("8471")
        assert exc.value.status_code == 502


# =============================================================================
# Cached API
# =============================================================================

class TestHsnApi:

    async def test_search_hits_cache(self, client, admin_headers, monkeypatch):
        async def fail(*args, **kwargs):
            raise AssertionError("portal must not be called for cached codes")

        monkeypatch.setattr(hsn_client, "fetch_hsn_codes", fail)
        response = await client.get(f"{API}/hsn/search", headers=admin_headers, params={"input_text": "9401"})
        assert response.status_code == 200
        assert response.json()["source"] == "cache"
        assert response.json()["data"][0]["code"] == "9401"

    async def test_search_falls_back_to_portal_and_caches(self, client, admin_headers, monkeypatch):
        calls = []

        async def fake_fetch(input_text, selected_type="byCode", category=None, timeout=None):
            calls.append((input_text, selected_type, category))
            return [{"code": "8471", "description": "Automatic data processing machines", "category": "PRODUCT"}]

        monkeypatch.setattr(hsn_client, "fetch_hsn_codes", fake_fetch)
        response = await client.get(f"{API}/hsn/search", headers=admin_headers, params={
            "input_text": "8471", "category": "P",
        })
        assert response.status_code == 200
        assert response.json()["source"] == "api"
        assert calls == [("8471", "byCode", "P")]

        cached = await client.get(f"{API}/hsn/code/8471", headers=admin_headers)
        assert cached.status_code == 200
        assert cached.json()["category"] == "PRODUCT"

    async def test_search_nothing_found(self, client, admin_headers, monkeypatch):
        async def empty(*args, **kwargs):
            return []

        monkeypatch.setattr(hsn_client, "fetch_hsn_codes", empty)
        response = await client.get(f"{API}/hsn/search", headers=admin_headers, params={"input_text": "zzzz"})
        assert response.status_code == 404

    async def test_search_portal_timeout(self, client, admin_headers, monkeypatch):
        async def timeout(*args, **kwargs):
            raise HsnLookupError(408, "HSN API request timeout")

        monkeypatch.setattr(hsn_client, "fetch_hsn_codes", timeout)
        response = await client.get(f"{API}/hsn/search", headers=admin_headers, params={"input_text": "zzzz"})
        assert response.status_code == 408

    async def test_search_rejects_unknown_type(self, client, admin_headers):
        response = await client.get(f"{API}/hsn/search", headers=admin_headers, params={
            "input_text": "94", "selected_type": "byName",
        })
        assert response.status_code == 422

    async def test_validate(self, client, admin_headers, monkeypatch):
        async def fake_fetch(input_text, selected_type="byCode", category=None, timeout=None):
            assert timeout == settings.HSN_VALIDATE_TIMEOUT
            return [{"code": input_text, "description": "Found on portal", "category": "GENERAL"}]

        monkeypatch.setattr(hsn_client, "fetch_hsn_codes", fake_fetch)

        cached = await client.post(f"{API}/hsn/validate", headers=admin_headers, json={"code": "9403"})
        assert cached.json()["source"] == "cache"
        assert cached.json()["is_valid"] is True

        portal = await client.post(f"{API}/hsn/validate", headers=admin_headers, json={"code": "7308"})
        assert portal.json()["source"] == "api"
        assert portal.json()["is_valid"] is True

    async def test_validate_when_portal_is_down(self, client, admin_headers, monkeypatch):
        async def down(*args, **kwargs):
            raise HsnLookupError(502, "HSN API unavailable")

        monkeypatch.setattr(hsn_client, "fetch_hsn_codes", down)
        response = await client.post(f"{API}/hsn/validate", headers=admin_headers, json={"code": "7308"})
        assert response.status_code == 200
        assert response.json() == {
            "code": "7308", "description": None, "category": None, "is_valid": False, "source": "api_error",
        }

    async def test_cached_listing_stats_and_clear(self, client, admin_headers, user_headers):
        listing = await client.get(f"{API}/hsn/cached", headers=admin_headers)
        assert listing.json()["total"] == 3

        stats = await client.get(f"{API}/hsn/stats", headers=admin_headers)
        assert stats.json()["total_codes"] == 3

        forbidden = await client.delete(f"{API}/hsn/cache", headers=user_headers)
        assert forbidden.status_code == 403

        cleared = await client.delete(f"{API}/hsn/cache", headers=admin_headers)
        assert cleared.json()["deleted"] == 3
        assert (await client.get(f"{API}/hsn/cached", headers=admin_headers)).json()["total"] == 0
