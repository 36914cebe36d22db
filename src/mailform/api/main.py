from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.status import HTTP_422_UNPROCESSABLE_ENTITY, HTTP_500_INTERNAL_SERVER_ERROR

from .. import __version__
from ..config import load_env_files
from .http_logging import install_http_logging
from .routes.builder import router as builder_router
from .routes.health import router as health_router
from .routes.renderer import router as renderer_router
from .utils import error_response, new_request_id

logger = logging.getLogger("mailform.api")


def create_app() -> FastAPI:
    # Load `.env` + `.env.local` when present (local dev convenience).
    load_env_files()

    api_v1_prefix = "/v1"

    app = FastAPI(title="mailform-builder", version=__version__)
    install_http_logging(app)

    @app.exception_handler(RequestValidationError)
    async def _validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        request_id = new_request_id("val")
        logger.info("422 validation_error requestId=%s path=%s errors=%s", request_id, request.url.path, exc.errors())
        return error_response(
            HTTP_422_UNPROCESSABLE_ENTITY,
            "validation_error",
            "Request body did not match expected schema.",
            request_id=request_id,
        )

    @app.exception_handler(Exception)
    async def _unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
        request_id = new_request_id("err")
        logger.exception("500 internal_error requestId=%s path=%s", request_id, request.url.path)
        return error_response(
            HTTP_500_INTERNAL_SERVER_ERROR,
            "internal_error",
            "Unhandled server error.",
            request_id=request_id,
        )

    # Unversioned health is convenient for deployments and uptime checks.
    app.include_router(health_router)

    app.include_router(builder_router, prefix=api_v1_prefix)
    app.include_router(renderer_router, prefix=api_v1_prefix)

    # Legacy (unversioned) endpoints for backward compatibility.
    app.include_router(builder_router, include_in_schema=False)
    app.include_router(renderer_router, include_in_schema=False)
    return app


app = create_app()
