"""
# Request Log Configuration Example

This example shows a Python configuration for relay-proxy that keeps a JSON
log of every relayed request and prints slow ones to the console.

Steps to run:
1. Save this script as `request_log_config.py`.
2. Optionally create a `.env` file with `FC_SERVER_PORT=<port>`.
3. Run relay-proxy with this configuration:
```bash
relay-proxy --config request_log_config.py
```
"""

import logging

from dotenv import load_dotenv

from relay_proxy.base_types import RequestContext
from relay_proxy.config import Config
from relay_proxy.loggers import BaseLogger, JsonLogWriter
from relay_proxy.transport import TransportConfig

load_dotenv(".env")

SLOW_REQUEST_SECONDS = 2.0


def report_slow(ctx: RequestContext) -> None:
    if ctx.duration and ctx.duration > SLOW_REQUEST_SECONDS:
        logging.warning(f"Slow relay: {ctx.method} {ctx.target_url} took {ctx.duration:.2f}s")


config = Config(
    transport=TransportConfig(timeout=60, response_header_timeout=20, connect_timeout=5),
    loggers=[
        BaseLogger(log_writer=JsonLogWriter("logs/requests.jsonl")),
        report_slow,
    ],
)
