"""
Configuration of Relay-Proxy.
"""

import importlib.util
import json
import os
import tomllib
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, Field, field_validator

from .transport import TransportConfig
from .translator import DENY_HEADERS
from .utils import replace_env_strings_recursive

PORT_ENV_VAR = "FC_SERVER_PORT"
DEFAULT_PORT = 9000


def default_port() -> int:
    return int(os.getenv(PORT_ENV_VAR) or DEFAULT_PORT)


class Config(BaseModel):
    """
    Relay-Proxy configuration, immutable once constructed.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    host: str = "0.0.0.0"
    port: int = Field(default_factory=default_port)
    debug: bool = False
    transport: TransportConfig = Field(default_factory=TransportConfig)
    deny_headers: frozenset[str] = Field(default=DENY_HEADERS)
    # Inbound server bounds
    keep_alive_timeout: float = 30.0
    max_header_bytes: int = 1 << 16
    cors: bool = Field(default=False, description="Answer CORS preflights, allow any origin")
    loggers: list[Any] = Field(default_factory=list)

    @field_validator("deny_headers", mode="before")
    @classmethod
    def _lowercase_headers(cls, value):
        return frozenset(str(name).lower() for name in value)

    @staticmethod
    def _load_python(path: Path) -> "Config":
        spec = importlib.util.spec_from_file_location("relay_proxy_config", path)
        module = importlib.util.module_from_spec(spec)
        spec.loader.exec_module(module)
        config = getattr(module, "config", None)
        if not isinstance(config, Config):
            raise ValueError(f"{path} must define a module-level 'config' of type Config")
        return config

    @staticmethod
    def load(config_path: str | os.PathLike) -> "Config":
        path = Path(config_path)
        match path.suffix.lower():
            case ".py":
                return Config._load_python(path)
            case ".toml":
                data = tomllib.loads(path.read_text(encoding="utf-8"))
            case ".json":
                data = json.loads(path.read_text(encoding="utf-8"))
            case ".yml" | ".yaml":
                data = yaml.safe_load(path.read_text(encoding="utf-8"))
            case _:
                raise ValueError(f"Unsupported configuration file format: {path.suffix}")
        return Config(**replace_env_strings_recursive(data or {}))
