"""Common helpers for Relay-Proxy."""

import importlib
import json
import logging
import os
from datetime import date, datetime
from enum import Enum
from typing import Any, Optional

from starlette.requests import Request


def resolve_instance_or_callable(
    item: Any,
    allow_types: Optional[list[type]] = None,
    debug_name: str = "item",
) -> Any:
    """
    Resolve config entries that may be given as:
        - None
        - an instance of one of allow_types
        - a callable
        - a dotted path to a callable / class
        - a dict with "class" key and constructor kwargs
    """
    if item is None or item == "":
        return None
    if isinstance(item, dict):
        if "class" not in item:
            raise ValueError(f"'class' key is missing in {debug_name} config: {item}")
        kwargs = dict(item)
        cls = resolve_callable(kwargs.pop("class"))
        return cls(**kwargs)
    if isinstance(item, str):
        return resolve_callable(item)
    if allow_types and isinstance(item, tuple(allow_types)):
        return item
    if callable(item):
        return item
    raise ValueError(f"Invalid {debug_name} config value: {item!r}")


def resolve_callable(path: str) -> Any:
    module_name, _, attr = path.rpartition(".")
    if not module_name:
        raise ValueError(f"Not a dotted path: {path}")
    return getattr(importlib.import_module(module_name), attr)


def replace_env_strings_recursive(data: Any) -> Any:
    """Replace 'env:NAME' string values with environment variables, recursively."""
    if isinstance(data, dict):
        return {k: replace_env_strings_recursive(v) for k, v in data.items()}
    if isinstance(data, list):
        return [replace_env_strings_recursive(i) for i in data]
    if isinstance(data, str) and data.startswith("env:"):
        name = data[4:]
        if name not in os.environ:
            logging.warning("Environment variable %s is not set", name)
        return os.environ.get(name, "")
    return data


def get_client_ip(request: Request) -> str:
    """
    Socket peer of the caller, for logging only.
    Forwarding headers are caller-supplied and never trusted here.
    """
    if request.client:
        return request.client.host
    return "unknown"


class CustomJsonEncoder(json.JSONEncoder):
    def default(self, o):
        if isinstance(o, (datetime, date)):
            return o.isoformat()
        if isinstance(o, Enum):
            return o.name
        if hasattr(o, "model_dump"):
            return o.model_dump(mode="json")
        if hasattr(o, "__dict__"):
            return o.__dict__
        return str(o)
