"""
Turns an inbound request into an outbound request description.
Nothing here touches the network: every rejection happens before the relay starts.
"""

import re
from typing import Iterable, Tuple
from urllib.parse import unquote_to_bytes, urlsplit

import httpx
from starlette.requests import Request

from .base_types import HeaderList, OutboundRequest
from .errors import InvalidEncodingError, InvalidTargetError, MissingParameterError

URL_PREFIX = "url="

DENY_HEADERS = frozenset(
    {
        "x-forwarded-for",
        "x-real-ip",
        "x-forwarded-proto",
        "x-forwarded-host",
    }
)

_BROKEN_ESCAPE = re.compile(r"%(?![0-9A-Fa-f]{2})")


def extract_target_url(raw_query: str) -> str:
    """
    Decode the target URL from a raw query string of the form ``url=<percent-encoded-url>``.

    Everything after the prefix is the payload, including any ``&key=value`` pairs,
    so those end up inside the decoded URL.
    """
    if len(raw_query) <= len(URL_PREFIX) or not raw_query.startswith(URL_PREFIX):
        raise MissingParameterError()
    encoded = raw_query[len(URL_PREFIX):]
    if _BROKEN_ESCAPE.search(encoded):
        raise InvalidEncodingError()
    try:
        return unquote_to_bytes(encoded.replace("+", " ")).decode("utf-8")
    except UnicodeDecodeError as e:
        raise InvalidEncodingError(e) from e


def build_outbound_request(method: str, target_url: str, body=None) -> OutboundRequest:
    """
    Bind method and body to the target URL.
    Only absolute http(s) URLs with a host are accepted.
    """
    try:
        url = httpx.URL(target_url)
    except httpx.InvalidURL as e:
        raise InvalidTargetError(e) from e
    if url.scheme not in ("http", "https") or not url.host:
        raise InvalidTargetError()
    return OutboundRequest(method=method, url=target_url, body=body)


def target_host(target_url: str) -> str:
    """Host component (with explicit port, without credentials) of the target URL."""
    return urlsplit(target_url).netloc.rpartition("@")[2]


def host_header(target_url: str) -> bytes:
    """Host header value for the target. Internationalized hosts are sent IDNA-encoded."""
    host = target_host(target_url)
    try:
        return host.encode("ascii")
    except UnicodeEncodeError:
        url = httpx.URL(target_url)
        return url.raw_host + (b":%d" % url.port if url.port else b"")


def filter_headers(
    inbound_headers: Iterable[Tuple[bytes, bytes]],
    target_url: str,
    deny_headers: Iterable[str] = DENY_HEADERS,
) -> HeaderList:
    """
    Copy raw inbound header pairs except the deny-listed ones (case-insensitive),
    then overwrite Host with the target's host.
    Values are kept as received bytes, repeated headers keep their order.
    """
    deny = {name.lower().encode("latin-1") for name in deny_headers}
    deny.add(b"host")
    headers = [(name, value) for name, value in inbound_headers if name.lower() not in deny]
    headers.append((b"Host", host_header(target_url)))
    return headers


def raw_query(request: Request) -> str:
    """Query string exactly as received, independent of the path and Host header."""
    return request.scope.get("query_string", b"").decode("latin-1")


def has_body(request: Request) -> bool:
    return "content-length" in request.headers or "transfer-encoding" in request.headers


def translate(request: Request, deny_headers: Iterable[str] = DENY_HEADERS) -> OutboundRequest:
    """Build the outbound request for an inbound one or raise a RelayError."""
    target_url = extract_target_url(raw_query(request))
    outbound = build_outbound_request(
        request.method,
        target_url,
        request.stream() if has_body(request) else None,
    )
    outbound.headers = filter_headers(request.headers.raw, target_url, deny_headers)
    return outbound
