from __future__ import annotations

import logging
import time
import uuid
from typing import Any, Dict, Optional

from fastapi.responses import JSONResponse
from pydantic import ValidationError
from starlette.status import HTTP_422_UNPROCESSABLE_ENTITY

logger = logging.getLogger("mailform.api")


def new_request_id(prefix: str) -> str:
    return f"{prefix}_{int(time.time() * 1000)}_{uuid.uuid4().hex[:8]}"


def error_response(
    status_code: int,
    error: str,
    message: str,
    *,
    request_id: Optional[str] = None,
    **extra: Any,
) -> JSONResponse:
    content: Dict[str, Any] = {"ok": False, "error": error, "message": message}
    if request_id:
        content["requestId"] = request_id
    content.update(extra)
    return JSONResponse(status_code=status_code, content=content)


def validation_error_response(exc: ValidationError) -> JSONResponse:
    request_id = new_request_id("val")
    logger.info("422 validation_error requestId=%s errors=%s", request_id, exc.errors(include_url=False))
    return error_response(
        HTTP_422_UNPROCESSABLE_ENTITY,
        "validation_error",
        "Request body did not match expected schema.",
        request_id=request_id,
        details=exc.errors(include_url=False, include_context=False),
    )
