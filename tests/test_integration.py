"""
End-to-end tests against a proxy started as a separate process.
See tests/configs/integration.yml
"""

import http.client

import pytest
import requests

from tests.conftest import captured_header_names, relay_path, start_proxy, stop_proxy

PORT = 8152
BASE = f"http://127.0.0.1:{PORT}"


@pytest.fixture(scope="module")
def proxy():
    proc = start_proxy("tests/configs/integration.yml", PORT)
    yield
    stop_proxy(proc)


def raw_get(path: str) -> tuple[int, bytes]:
    conn = http.client.HTTPConnection("127.0.0.1", PORT, timeout=10)
    try:
        # http.client sends the path verbatim, so broken escapes reach the proxy as-is
        conn.request("GET", path)
        response = conn.getresponse()
        return response.status, response.read()
    finally:
        conn.close()


def test_health(proxy):
    response = requests.get(f"{BASE}/health", timeout=10)
    assert response.status_code == 200
    assert response.headers["Content-Type"] == "application/json"
    assert response.content == b'{"status":"ok"}'


def test_relay(proxy, origin):
    response = requests.get(
        BASE + relay_path(f"{origin.base_url}/ping"),
        headers={"X-Real-IP": "1.2.3.4", "X-Forwarded-For": "1.2.3.4"},
        timeout=10,
    )
    assert response.status_code == 200
    assert response.text == "pong"
    assert "uvicorn" not in response.headers.get("Server", "")
    names = captured_header_names(origin)
    assert "x-real-ip" not in names and "x-forwarded-for" not in names
    headers = {k.lower(): v for k, v in origin.captured["headers"]}
    assert headers["host"] == origin.base_url.split("//")[1]


def test_redirect(proxy, origin):
    response = requests.get(
        BASE + relay_path(f"{origin.base_url}/redirect"), allow_redirects=False, timeout=10
    )
    assert response.status_code == 302
    assert response.headers["Location"] == "http://example.invalid/elsewhere"


def test_error_bodies(proxy):
    assert raw_get("/?foo=bar") == (400, b"Missing 'url' parameter")
    assert raw_get("/?url=%ZZ") == (400, b"Invalid URL encoding")
    assert raw_get("/?url=not-a-url") == (500, b"Invalid request")
    assert raw_get("/?url=http%3A%2F%2F127.0.0.1%3A1%2F") == (502, b"Request failed")


def test_header_bytes_are_forwarded_verbatim(proxy, origin):
    conn = http.client.HTTPConnection("127.0.0.1", PORT, timeout=10)
    try:
        conn.putrequest("GET", relay_path(f"{origin.base_url}/ping"), skip_accept_encoding=True)
        conn.putheader("X-Legacy", b"caf\xe9")
        conn.endheaders()
        response = conn.getresponse()
        assert (response.status, response.read()) == (200, b"pong")
    finally:
        conn.close()
    headers = {k.lower(): v for k, v in origin.captured["headers"]}
    assert headers["x-legacy"].encode("latin-1") == b"caf\xe9"


def test_encoded_query_marker_in_path(proxy, origin):
    assert raw_get("/a%3Fb" + relay_path(f"{origin.base_url}/ping")[1:]) == (200, b"pong")
