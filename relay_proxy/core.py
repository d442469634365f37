"""
Relay path: inbound request -> translator -> transport -> streamed response.
No state is shared between requests apart from the Env built at startup.
"""

import asyncio
import inspect
import logging
import time
from typing import Iterable, Optional

from starlette.requests import Request
from starlette.responses import Response

from .base_types import RequestContext
from .bootstrap import Env
from .errors import RelayError
from .translator import raw_query, translate
from .transport import deadline_after, new_transport, relay, stream_response
from .utils import get_client_ip


async def _run_loggers(ctx: RequestContext, loggers: Iterable) -> None:
    for logger in loggers:
        try:
            result = logger(ctx)
            if inspect.isawaitable(result):
                await result
        except Exception as e:  # pylint: disable=broad-exception-caught
            logging.error("Error in request logger %r: %s", logger, e, exc_info=True)


async def log_non_blocking(ctx: RequestContext, env: Env) -> Optional[asyncio.Task]:
    """Schedule request loggers without delaying the caller."""
    if not env.loggers:
        return None
    task = asyncio.create_task(_run_loggers(ctx, env.loggers))
    env.log_tasks.add(task)
    task.add_done_callback(env.log_tasks.discard)
    return task


async def _finish(ctx: RequestContext, env: Env, started: float) -> None:
    ctx.duration = time.monotonic() - started
    logging.info(
        "%s %s -> %s completed in %.3fs",
        ctx.method,
        ctx.target_url or "-",
        ctx.status_code,
        ctx.duration,
    )
    await log_non_blocking(ctx, env)


async def proxy(request: Request) -> Response:
    """Relay the request to the URL given in its query string."""
    env: Env = request.app.state.env
    transport_config = env.config.transport
    started = time.monotonic()
    ctx = RequestContext(
        http_request=request,
        method=request.method,
        remote_addr=get_client_ip(request),
    )
    try:
        outbound = translate(request, env.config.deny_headers)
        ctx.target_url = outbound.url
        logging.debug("Relaying %s %s, headers: %s", outbound.method, outbound.url, outbound.headers)
        client = new_transport(transport_config)
        deadline = deadline_after(transport_config.timeout)
        try:
            upstream = await relay(outbound, client, deadline)
        except BaseException:
            await client.aclose()
            raise
    except RelayError as e:
        ctx.error = e.kind
        ctx.status_code = e.status_code
        logging.warning(
            "%s %s rejected with %s: %r",
            ctx.method,
            ctx.target_url or raw_query(request),
            e.status_code,
            e.cause,
        )
        await _finish(ctx, env, started)
        raise

    ctx.status_code = upstream.status_code

    async def on_close(error: Optional[Exception]) -> None:
        if error:
            ctx.extra["stream_error"] = repr(error)
        await _finish(ctx, env, started)

    return stream_response(upstream, client, deadline, on_close)
