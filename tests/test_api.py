from unittest import mock
from urllib.parse import parse_qs

import pytest
import responses

from ipcheck.api import create_app, is_valid_ip, main
from ipcheck.service import IPLOCATION_NET_URL, IPService

PAYLOAD = {
    "isProxy": False,
    "source": "ip2location",
    "res": {
        "ipNumber": "134744072",
        "ipVersion": 4,
        "ipAddress": "8.8.8.8",
        "latitude": 37.4,
        "longitude": -122.1,
        "countryName": "United States of America",
        "countryCode": "US",
        "isp": "Example ISP",
        "cityName": "Mountain View",
        "regionName": "California",
    },
}


@pytest.fixture
def mocked():
    with responses.RequestsMock(assert_all_requests_are_fired=False) as rsps:
        yield rsps


@pytest.fixture
def client():
    app = create_app(IPService())
    return app.test_client()


def _sent_form(call):
    return {key: values[0] for key, values in parse_qs(call.request.body).items()}


@pytest.mark.parametrize(
    "ip, expected",
    [
        ("8.8.8.8", True),
        ("::1", True),
        ("2001:db8::1", True),
        ("::ffff:1.2.3.4", True),
        ("999.1.1.1", False),
        ("abc", False),
        ("", False),
        ("fe80::1%eth0", False),
        (None, False),
    ],
)
def test_is_valid_ip(ip, expected):
    assert is_valid_ip(ip) is expected


@pytest.mark.parametrize("path", ["/health", "/api/v1/health"])
def test_health(client, path):
    resp = client.get(path)
    assert resp.status_code == 200
    assert resp.get_json() == {"status": "healthy", "service": "IP Check API", "version": "1.0.0"}


def test_post_lookup_success(client, mocked):
    mocked.add(responses.POST, IPLOCATION_NET_URL, json=PAYLOAD, status=200)
    resp = client.post("/api/v1/ip/lookup", json={"ip": "8.8.8.8"})
    assert resp.status_code == 200
    body = resp.get_json()
    assert body["success"] is True
    assert body["data"]["ipAddress"] == "8.8.8.8"
    assert body["data"]["countryCode"] == "US"
    assert body["data"]["cityName"] == "Mountain View"
    assert body["data"]["latitude"] == 37.4
    assert _sent_form(mocked.calls[0]) == {"ip": "8.8.8.8", "ipv": "4", "source": "ip2location"}


def test_post_lookup_with_ipv6_type(client, mocked):
    mocked.add(responses.POST, IPLOCATION_NET_URL, json=PAYLOAD, status=200)
    resp = client.post("/api/v1/ip/lookup", json={"ip": "2001:db8::1", "ipv_type": "6"})
    assert resp.status_code == 200
    assert _sent_form(mocked.calls[0])["ipv"] == "6"


def test_post_lookup_invalid_json(client):
    resp = client.post("/api/v1/ip/lookup", data="not json", content_type="application/json")
    assert resp.status_code == 400
    assert resp.get_json()["error"] == "Invalid request format"
    assert "details" in resp.get_json()


def test_post_lookup_missing_ip(client):
    resp = client.post("/api/v1/ip/lookup", json={})
    assert resp.status_code == 400
    assert resp.get_json()["error"] == "Invalid request format"


def test_post_lookup_invalid_ip(client):
    resp = client.post("/api/v1/ip/lookup", json={"ip": "not-an-ip"})
    assert resp.status_code == 400
    assert resp.get_json() == {"error": "Invalid IP address format"}


def test_post_lookup_bad_ipv_type(client):
    resp = client.post("/api/v1/ip/lookup", json={"ip": "8.8.8.8", "ipv_type": "5"})
    assert resp.status_code == 400
    assert resp.get_json() == {"error": "IPV type must be '4' or '6'"}


def test_post_lookup_provider_failure(client, mocked):
    mocked.add(responses.POST, IPLOCATION_NET_URL, status=500)
    resp = client.post("/api/v1/ip/lookup", json={"ip": "8.8.8.8"})
    assert resp.status_code == 500
    body = resp.get_json()
    assert body["error"] == "Failed to retrieve IP information"
    assert body["details"] == "all providers failed to fetch IP information"


def test_get_lookup_requires_ip(client):
    resp = client.get("/api/v1/ip/lookup")
    assert resp.status_code == 400
    assert resp.get_json() == {"error": "IP parameter is required"}


def test_get_lookup_invalid_ip(client):
    resp = client.get("/api/v1/ip/lookup?ip=300.0.0.1")
    assert resp.status_code == 400
    assert resp.get_json() == {"error": "Invalid IP address format"}


def test_get_lookup_empty_ipv_type_rejected(client):
    resp = client.get("/api/v1/ip/lookup?ip=8.8.8.8&ipv_type=")
    assert resp.status_code == 400
    assert resp.get_json() == {"error": "IPV type must be '4' or '6'"}


def test_get_lookup_passes_ipv_type(client, mocked):
    mocked.add(responses.POST, IPLOCATION_NET_URL, json=PAYLOAD, status=200)
    resp = client.get("/api/v1/ip/lookup?ip=8.8.8.8&ipv_type=6")
    assert resp.status_code == 200
    assert resp.get_json()["data"]["isp"] == "Example ISP"
    assert _sent_form(mocked.calls[0])["ipv"] == "6"


def test_lookup_is_cached_and_cache_can_be_cleared(client, mocked):
    mocked.add(responses.POST, IPLOCATION_NET_URL, json=PAYLOAD, status=200)
    first = client.get("/api/v1/ip/lookup?ip=8.8.8.8")
    second = client.post("/api/v1/ip/lookup", json={"ip": "8.8.8.8"})
    assert first.get_json()["data"] == second.get_json()["data"]
    assert len(mocked.calls) == 1

    stats = client.get("/api/v1/cache/stats").get_json()
    assert stats["success"] is True
    assert stats["data"]["total_entries"] == 1
    entry = stats["data"]["entries"][0]
    assert entry["ip"] == "8.8.8.8"
    assert entry["expired"] is False
    assert entry["expires_at"] - entry["cached_at"] == 3600

    cleared = client.delete("/api/v1/cache")
    assert cleared.get_json() == {"success": True, "message": "Cache cleared successfully"}
    stats = client.get("/api/v1/cache/stats").get_json()
    assert stats["data"] == {"total_entries": 0, "entries": []}


def test_list_providers(client):
    resp = client.get("/api/v1/providers")
    assert resp.status_code == 200
    assert resp.get_json() == {
        "success": True,
        "data": [{"name": "iplocation.net", "url": IPLOCATION_NET_URL, "enabled": True}],
    }


def test_disable_and_enable_provider(client, mocked):
    mocked.add(responses.POST, IPLOCATION_NET_URL, json=PAYLOAD, status=200)
    resp = client.put("/api/v1/providers/enable", json={"name": "iplocation.net", "enabled": False})
    assert resp.status_code == 200
    assert resp.get_json()["message"] == "Provider iplocation.net disabled successfully"
    assert client.get("/api/v1/providers").get_json()["data"][0]["enabled"] is False

    failed = client.get("/api/v1/ip/lookup?ip=8.8.8.8")
    assert failed.status_code == 500
    assert failed.get_json()["details"] == "no enabled providers available"
    assert len(mocked.calls) == 0

    resp = client.put("/api/v1/providers/enable", json={"name": "iplocation.net", "enabled": True})
    assert resp.get_json()["message"] == "Provider iplocation.net enabled successfully"
    assert client.get("/api/v1/ip/lookup?ip=8.8.8.8").status_code == 200


def test_enable_unknown_provider(client):
    resp = client.put("/api/v1/providers/enable", json={"name": "nowhere", "enabled": True})
    assert resp.status_code == 404
    body = resp.get_json()
    assert body["error"] == "Provider not found"
    assert body["details"] == "provider nowhere not found"


def test_enable_provider_requires_name(client):
    resp = client.put("/api/v1/providers/enable", json={"enabled": True})
    assert resp.status_code == 400
    assert resp.get_json()["error"] == "Invalid request format"


def test_enable_provider_rejects_non_bool(client):
    resp = client.put("/api/v1/providers/enable", json={"name": "iplocation.net", "enabled": "yes"})
    assert resp.status_code == 400
    assert client.get("/api/v1/providers").get_json()["data"][0]["enabled"] is True


def test_options_preflight(client):
    resp = client.open("/api/v1/ip/lookup", method="OPTIONS")
    assert resp.status_code == 204
    assert resp.headers["Access-Control-Allow-Origin"] == "*"
    assert resp.headers["Access-Control-Allow-Methods"] == "GET, POST, PUT, DELETE, OPTIONS"


def test_cors_headers_on_normal_response(client):
    resp = client.get("/health")
    assert resp.headers["Access-Control-Allow-Origin"] == "*"
    assert resp.headers["Access-Control-Allow-Headers"] == "Content-Type, Authorization"


def test_main_runs_app_on_requested_port():
    with mock.patch("flask.Flask.run") as run:
        assert main(["--port", "9000"]) == 0
    run.assert_called_once_with(host="0.0.0.0", port=9000)


def test_main_reports_start_failure():
    with mock.patch("flask.Flask.run", side_effect=OSError("address in use")) as run:
        assert main([]) == 1
    run.assert_called_once_with(host="0.0.0.0", port=8080)