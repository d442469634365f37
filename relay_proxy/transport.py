"""
Relay transport: a fresh, non-pooled HTTP client per relayed request.

Connections are never reused, so no connection-level state crosses
between unrelated callers sharing the proxy process.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional

import httpx
from starlette.responses import StreamingResponse

from .base_types import OutboundRequest
from .errors import UpstreamFailure

# Framing is re-applied by the inbound server on its own hop.
FRAMING_HEADERS = frozenset({b"transfer-encoding"})


@dataclass(frozen=True)
class TransportConfig:
    """
    Per-request transport behavior.

    Args:
        verify_tls: Validate upstream certificates. Disabled: the operator
            is trusted to target known hosts.
        timeout: Overall time budget for the exchange, body streaming included.
        response_header_timeout: Max wait between sending the request and
            receiving response headers, also bounds every body read.
        connect_timeout: TCP/TLS connect budget, defaults to the overall timeout.
        idle_connection_timeout: Upper bound on idle connection retention.
    """

    verify_tls: bool = False
    timeout: float = 30.0
    response_header_timeout: float = 30.0
    connect_timeout: Optional[float] = None
    idle_connection_timeout: float = 1.0

    def httpx_timeout(self) -> httpx.Timeout:
        return httpx.Timeout(
            self.timeout,
            connect=self.connect_timeout if self.connect_timeout is not None else self.timeout,
            read=self.response_header_timeout,
        )


def new_transport(config: TransportConfig) -> httpx.AsyncClient:
    """
    Build a client that is used for exactly one request and then closed.
    Keep-alive is disabled, redirects are not followed and no proxy
    settings are taken from the environment.
    """
    return httpx.AsyncClient(
        verify=config.verify_tls,
        follow_redirects=False,
        trust_env=False,
        timeout=config.httpx_timeout(),
        limits=httpx.Limits(
            max_keepalive_connections=0,
            keepalive_expiry=config.idle_connection_timeout,
        ),
    )


def deadline_after(seconds: float) -> float:
    return asyncio.get_running_loop().time() + seconds


def _remaining(deadline: float) -> float:
    return max(deadline - asyncio.get_running_loop().time(), 0.0)


async def relay(
    outbound: OutboundRequest,
    client: httpx.AsyncClient,
    deadline: float,
) -> httpx.Response:
    """
    Issue the outbound request and return once response headers arrive.
    Redirects are returned as-is. Any network, TLS or timeout error is
    reported as a single UpstreamFailure.
    """
    headers = [(k, v) for k, v in outbound.headers if k.lower() != b"connection"]
    headers.append((b"Connection", b"close"))
    # httpx.Request is used directly so that no client default headers are merged in
    request = httpx.Request(
        outbound.method,
        outbound.url,
        headers=headers,
        content=outbound.body,
        extensions={"timeout": client.timeout.as_dict()},
    )
    try:
        return await asyncio.wait_for(client.send(request, stream=True), _remaining(deadline))
    except (httpx.HTTPError, asyncio.TimeoutError) as e:
        raise UpstreamFailure(e) from e


def stream_response(
    upstream: httpx.Response,
    client: httpx.AsyncClient,
    deadline: float,
    on_close: Optional[Callable[[Optional[Exception]], Awaitable[None]]] = None,
) -> StreamingResponse:
    """
    Relay origin status, headers and raw body bytes to the caller.
    The body is streamed as it arrives, the upstream response and its client
    are closed once it is drained or the caller goes away.
    """

    async def body():
        error = None
        chunks = upstream.aiter_raw()
        try:
            while True:
                try:
                    chunk = await asyncio.wait_for(chunks.__anext__(), _remaining(deadline))
                except StopAsyncIteration:
                    break
                yield chunk
        except (httpx.HTTPError, asyncio.TimeoutError) as e:
            # Status line is already out, the stream can only be cut short
            logging.warning("Relay of %s aborted while streaming: %r", upstream.url, e)
            error = e
        finally:
            await upstream.aclose()
            await client.aclose()
            if on_close:
                await on_close(error)

    response = StreamingResponse(body(), status_code=upstream.status_code)
    response.raw_headers = [
        (name.lower(), value)
        for name, value in upstream.headers.raw
        if name.lower() not in FRAMING_HEADERS
    ]
    return response
