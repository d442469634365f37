"""Base types used in Relay-Proxy."""

import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import AsyncIterator, List, Optional, Tuple

from starlette.requests import Request

from .errors import RelayErrorKind

HeaderList = List[Tuple[bytes, bytes]]


@dataclass
class OutboundRequest:
    """
    Request to be issued against the target origin.
    The body is the inbound stream itself, it is never buffered.
    """

    method: str
    url: str
    headers: HeaderList = field(default_factory=list)
    body: Optional[AsyncIterator[bytes]] = field(default=None, repr=False)

    @property
    def host(self) -> str:
        return next((v for k, v in self.headers if k.lower() == b"host"), b"").decode("latin-1")


@dataclass
class RequestContext:  # pylint: disable=too-many-instance-attributes
    """
    Stores information about a single relay cycle for usage in request loggers.
    """

    id: Optional[str] = field(default_factory=lambda: str(uuid.uuid4()))
    http_request: Optional[Request] = field(default=None)
    method: Optional[str] = field(default=None)
    target_url: Optional[str] = field(default=None)
    status_code: Optional[int] = field(default=None)
    error: Optional[RelayErrorKind] = field(default=None)
    remote_addr: Optional[str] = field(default=None)
    created_at: Optional[datetime] = field(default_factory=datetime.now)
    duration: Optional[float] = field(default=None)
    extra: dict = field(default_factory=dict)

    def to_dict(self) -> dict:
        """Export as dictionary."""
        data = self.__dict__.copy()
        del data["http_request"]
        if self.error:
            data["error"] = self.error.name
        return data
