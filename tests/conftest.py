import gzip
import signal
import socket
import subprocess
import sys
from dataclasses import dataclass
from http.server import BaseHTTPRequestHandler, HTTPServer
from threading import Thread
from typing import Any
from urllib.parse import quote

import pytest
import requests
from fastapi.testclient import TestClient
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from relay_proxy import Config, bootstrap, create_app


@dataclass
class ServerFixture:
    port: int
    process: Any


def wait_for_server(url, timeout=10):
    session = requests.Session()
    session.mount("http://", HTTPAdapter(max_retries=Retry(total=20, backoff_factor=0.05)))
    session.get(url, timeout=timeout)


def start_proxy(config_path: str, port: int):
    proc = subprocess.Popen(
        [sys.executable, "-m", "relay_proxy", "--config", config_path, "--env", ""]
    )
    wait_for_server(f"http://127.0.0.1:{port}/health")
    return proc


def stop_proxy(proc):
    proc.send_signal(signal.SIGTERM)
    proc.wait()


def free_port() -> int:
    with socket.socket() as s:
        s.bind(("127.0.0.1", 0))
        return s.getsockname()[1]


def relay_path(target_url: str) -> str:
    return "/?url=" + quote(target_url, safe="")


GZIPPED_TEXT = b"compressed payload " * 20


class OriginHandler(BaseHTTPRequestHandler):
    """Origin server recording the last request it received."""

    captured = {}

    def _handle(self):
        body = b""
        if length := int(self.headers.get("Content-Length") or 0):
            body = self.rfile.read(length)
        OriginHandler.captured = {
            "method": self.command,
            "path": self.path,
            "headers": list(self.headers.items()),
            "body": body,
        }
        path = self.path.split("?")[0]
        if path == "/ping":
            self._reply(200, b"pong", [("Content-Type", "text/plain"), ("X-Origin", "yes")])
        elif path == "/redirect":
            self._reply(302, b"moved", [("Location", "http://example.invalid/elsewhere")])
        elif path == "/cookies":
            self._reply(200, b"", [("Set-Cookie", "a=1"), ("Set-Cookie", "b=2")])
        elif path == "/gzip":
            self._reply(200, gzip.compress(GZIPPED_TEXT), [("Content-Encoding", "gzip")])
        elif path == "/echo":
            self._reply(201, body, [("Content-Type", "application/octet-stream")])
        else:
            self._reply(404, b"not found", [])

    def _reply(self, status: int, body: bytes, headers: list):
        self.send_response(status)
        for name, value in headers:
            self.send_header(name, value)
        self.send_header("Content-Length", str(len(body)))
        self.end_headers()
        if self.command != "HEAD":
            self.wfile.write(body)

    do_GET = do_POST = do_PUT = do_DELETE = do_PATCH = do_HEAD = do_OPTIONS = _handle

    def log_message(self, *_):
        pass


@pytest.fixture(scope="session")
def origin():
    server = HTTPServer(("127.0.0.1", 0), OriginHandler)
    Thread(target=server.serve_forever, daemon=True).start()
    OriginHandler.base_url = f"http://127.0.0.1:{server.server_port}"
    yield OriginHandler
    server.shutdown()


@pytest.fixture
def client():
    env = bootstrap(Config(), env_file=None)
    with TestClient(create_app(env)) as test_client:
        yield test_client


def captured_header_names(handler) -> set[str]:
    return {name.lower() for name, _ in handler.captured["headers"]}
