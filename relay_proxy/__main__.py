"""
Command-line entry point: relay-proxy / python -m relay_proxy
"""

import argparse
import logging

import uvicorn

from .app import create_app
from .bootstrap import bootstrap


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="relay-proxy",
        description="Transparent single-hop HTTP relay: /?url=<percent-encoded-url>",
    )
    parser.add_argument("--config", help="Configuration file (.toml, .json, .yml, .py)")
    parser.add_argument("--env", default=".env", help="Path to .env file")
    parser.add_argument("--host", help="Override listening host")
    parser.add_argument("--port", type=int, help="Override listening port")
    parser.add_argument("--debug", action="store_true", help="Verbose logging")
    return parser.parse_args(argv)


def cli(argv=None) -> None:
    args = parse_args(argv)
    overrides = {
        k: v
        for k, v in (("host", args.host), ("port", args.port), ("debug", args.debug or None))
        if v is not None
    }
    env = bootstrap(args.config, env_file=args.env, overrides=overrides)
    config = env.config
    logging.info("Relay-Proxy listening on %s:%s", config.host, config.port)
    uvicorn.run(
        create_app(env),
        host=config.host,
        port=config.port,
        log_level="debug" if config.debug else "info",
        timeout_keep_alive=int(config.keep_alive_timeout),
        h11_max_incomplete_event_size=config.max_header_bytes,
        proxy_headers=False,
        server_header=False,
        date_header=False,
    )


if __name__ == "__main__":
    cli()
