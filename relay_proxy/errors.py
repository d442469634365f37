from enum import Enum

from fastapi import FastAPI, Request
from fastapi.responses import PlainTextResponse


class RelayErrorKind(Enum):
    """
    Closed set of relay failures, each bound to a status code and a fixed body.
    """

    MISSING_PARAMETER = (400, "Missing 'url' parameter")
    INVALID_ENCODING = (400, "Invalid URL encoding")
    INVALID_TARGET = (500, "Invalid request")
    UPSTREAM_FAILURE = (502, "Request failed")

    @property
    def status_code(self) -> int:
        return self.value[0]

    @property
    def message(self) -> str:
        return self.value[1]


class RelayError(Exception):
    """
    Raised at the point a relay failure is detected.
    The response body is always the fixed message of the error kind,
    the underlying cause is kept only for logging.
    """

    def __init__(self, kind: RelayErrorKind, cause: Exception | None = None):
        super().__init__(kind.message)
        self.kind = kind
        self.cause = cause

    @property
    def status_code(self) -> int:
        return self.kind.status_code

    @classmethod
    def register(cls, app: FastAPI) -> None:
        """Register exception handler with FastAPI app."""
        app.add_exception_handler(cls, cls._handler)

    @staticmethod
    async def _handler(request: Request, exc: "RelayError") -> PlainTextResponse:
        return PlainTextResponse(
            exc.kind.message,
            status_code=exc.kind.status_code,
            headers={"X-Content-Type-Options": "nosniff"},
        )


class MissingParameterError(RelayError):
    def __init__(self, cause: Exception | None = None):
        super().__init__(RelayErrorKind.MISSING_PARAMETER, cause)


class InvalidEncodingError(RelayError):
    def __init__(self, cause: Exception | None = None):
        super().__init__(RelayErrorKind.INVALID_ENCODING, cause)


class InvalidTargetError(RelayError):
    def __init__(self, cause: Exception | None = None):
        super().__init__(RelayErrorKind.INVALID_TARGET, cause)


class UpstreamFailure(RelayError):
    def __init__(self, cause: Exception | None = None):
        super().__init__(RelayErrorKind.UPSTREAM_FAILURE, cause)
