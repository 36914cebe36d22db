from __future__ import annotations

import json
import logging
import time
import uuid
from typing import Any, Dict, Optional

from starlette.types import ASGIApp, Message, Receive, Scope, Send

from ..config import get_settings

logger = logging.getLogger("mailform.http")


def _header(scope: Scope, name: bytes) -> Optional[str]:
    for k, v in scope.get("headers") or []:
        if k.lower() == name:
            return v.decode("latin-1", errors="replace")
    return None


def _body_preview(buf: bytes, truncated: bool) -> Any:
    text = buf.decode("utf-8", errors="replace")
    if not truncated:
        try:
            return json.loads(text) if text else ""
        except ValueError:
            return text
    return text + "...<truncated>"


class HttpLoggingMiddleware:
    """Log one JSON line per HTTP request: method, path, status, duration and the request body head."""

    def __init__(self, app: ASGIApp, *, max_body_bytes: int) -> None:
        self.app = app
        self.max_body_bytes = max(0, max_body_bytes)

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope.get("type") != "http":
            await self.app(scope, receive, send)
            return

        started_at = time.perf_counter()
        request_id = _header(scope, b"x-request-id") or uuid.uuid4().hex[:12]
        body = bytearray()
        truncated = False
        status: Optional[int] = None

        async def receive_wrapped() -> Message:
            nonlocal truncated
            message = await receive()
            if message.get("type") == "http.request" and self.max_body_bytes:
                chunk = message.get("body") or b""
                room = self.max_body_bytes - len(body)
                if room > 0:
                    body.extend(chunk[:room])
                if len(chunk) > max(room, 0):
                    truncated = True
            return message

        async def send_wrapped(message: Message) -> None:
            nonlocal status
            if message.get("type") == "http.response.start":
                status = int(message.get("status") or 0)
            await send(message)

        err: Optional[BaseException] = None
        try:
            await self.app(scope, receive_wrapped, send_wrapped)
        except BaseException as e:  # noqa: BLE001 - log then re-raise
            err = e
            raise
        finally:
            record: Dict[str, Any] = {
                "id": request_id,
                "method": str(scope.get("method") or "").upper(),
                "path": str(scope.get("path") or ""),
                "status": status,
                "dur_ms": int((time.perf_counter() - started_at) * 1000),
            }
            if self.max_body_bytes:
                record["body"] = _body_preview(bytes(body), truncated)
            if err is not None:
                record["error"] = {"type": type(err).__name__, "message": str(err)}
            logger.info(json.dumps(record, ensure_ascii=False, separators=(",", ":"), default=str))


def install_http_logging(app: Any) -> bool:
    """
    Enable request logging via env vars.

    - `MAILFORM_HTTP_LOG=1` enables the middleware
    - `MAILFORM_HTTP_LOG_BODY_MAX_BYTES=2048` caps request body bytes captured (0 = no body)
    """
    settings = get_settings()
    if not settings.http_log:
        return False
    app.add_middleware(HttpLoggingMiddleware, max_body_bytes=settings.http_log_body_max_bytes)
    return True
