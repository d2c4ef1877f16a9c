from __future__ import annotations

import os

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from tokenledger.api.errors import ApiError
from tokenledger.api.routes_public import public_router
from tokenledger.api.security import RequestSizeLimitMiddleware
from tokenledger.api.structured_logging import RequestLogMiddleware
from tokenledger.runtime.executor_boot import build_executor as _build_executor


def build_executor():
    """Build a TokenExecutor for API runtime.

    This wrapper exists so tests can monkeypatch `tokenledger.api.app.build_executor`
    without reaching into runtime modules.
    """
    return _build_executor()


async def _api_error_handler(request: Request, exc: ApiError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content=exc.to_json())


def create_app(*, boot_runtime: bool = True) -> FastAPI:
    """Create the FastAPI application.

    boot_runtime:
      - True (default): load config + attach executor
      - False: keep lightweight for unit tests / import-time validation
    """
    mode = os.environ.get("TOKENLEDGER_MODE", "prod").strip().lower()

    # Disable docs in production.
    if mode == "prod":
        app = FastAPI(title="Token Ledger API", docs_url=None, redoc_url=None, openapi_url=None)
    else:
        app = FastAPI(title="Token Ledger API")

    app.state.executor = build_executor() if boot_runtime else None

    app.add_exception_handler(ApiError, _api_error_handler)

    # Middleware runs outermost-last-added: request logging wraps the size limiter.
    app.add_middleware(RequestSizeLimitMiddleware)
    app.add_middleware(RequestLogMiddleware)

    app.include_router(public_router)

    return app
