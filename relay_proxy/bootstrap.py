"""Startup wiring: environment, configuration, logging and request loggers."""

import asyncio
import logging
import os
from dataclasses import dataclass, field
from typing import Any, Optional

import dotenv

from .config import Config
from .loggers import BaseLogger
from .utils import resolve_instance_or_callable


@dataclass(frozen=True)
class Env:
    """Everything a running proxy needs, built once at startup."""

    config: Config
    loggers: tuple[Any, ...] = field(default_factory=tuple)
    # In-flight request logging tasks, referenced until they finish
    log_tasks: set[asyncio.Task] = field(default_factory=set, repr=False, compare=False)


def setup_logging(debug: bool = False) -> None:
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    # Outbound client chatter is only useful while debugging
    for name in ("httpx", "httpcore"):
        logging.getLogger(name).setLevel(logging.DEBUG if debug else logging.WARNING)


def bootstrap(
    config: Config | str | os.PathLike | None = None,
    env_file: Optional[str | os.PathLike] = ".env",
    overrides: Optional[dict] = None,
) -> Env:
    if env_file and os.path.exists(env_file):
        dotenv.load_dotenv(env_file, override=True)
    if not isinstance(config, Config):
        config = Config.load(config) if config else Config()
    if overrides:
        config = config.model_copy(update=overrides)
    setup_logging(config.debug)
    loggers = tuple(
        resolve_instance_or_callable(item, allow_types=[BaseLogger], debug_name="logger")
        for item in config.loggers
    )
    logging.debug("Bootstrapped with config: %s", config)
    return Env(config=config, loggers=loggers)
