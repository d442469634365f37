from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse

from .bootstrap import Env
from .core import proxy
from .errors import RelayError


async def health(request: Request) -> JSONResponse:
    return JSONResponse({"status": "ok"})


def create_app(env: Env) -> FastAPI:
    """
    Build the ASGI application.
    Routes are registered without method restrictions: any method on /health
    is a health check, any method on any other path is relayed.
    """
    # Docs routes would shadow relayed paths
    app = FastAPI(title="Relay-Proxy", docs_url=None, redoc_url=None, openapi_url=None)
    app.state.env = env
    RelayError.register(app)
    if env.config.cors:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=["*"],
            allow_methods=["*"],
            allow_headers=["*"],
        )
    app.add_route("/health", health, include_in_schema=False)
    app.add_route("/{path:path}", proxy, include_in_schema=False)
    return app
