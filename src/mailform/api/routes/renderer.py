from __future__ import annotations

from typing import Any, Dict

from fastapi import APIRouter, Body
from pydantic import ValidationError
from starlette.status import HTTP_400_BAD_REQUEST

from ...builder.preview import PreviewSession, build_preview
from ...errors import MalformedSchemaError
from ..models import LoadArtifactsRequest, PreviewRequest
from ..utils import error_response, validation_error_response

router = APIRouter(prefix="/renderer", tags=["renderer"])


@router.post("/load")
def load(payload: Dict[str, Any] = Body(default_factory=dict)) -> Any:
    """
    Load the exported artifacts.

    Responds 400 with `missing_artifact` (naming the absent file) or `malformed_schema`.
    """
    try:
        parsed = LoadArtifactsRequest.model_validate(payload)
    except ValidationError as exc:
        return validation_error_response(exc)

    session = PreviewSession()
    status = session.load(parsed.files)
    if not status.ok:
        return error_response(HTTP_400_BAD_REQUEST, status.error or "load_failed", status.message)
    artifacts = session.artifacts
    return {
        "ok": True,
        "message": status.message,
        "schema": artifacts.schema,
        "uiSchema": artifacts.ui_schema,
        "template": artifacts.template,
    }


@router.post("/preview")
def preview(payload: Dict[str, Any] = Body(default_factory=dict)) -> Any:
    """
    Recompute the active form and the rendered template for the current values.

    Responds 400 with `malformed_schema` when the schema cannot drive a form.
    """
    try:
        parsed = PreviewRequest.model_validate(payload)
    except ValidationError as exc:
        return validation_error_response(exc)

    try:
        state = build_preview(parsed.schema_doc, parsed.template, parsed.values)
    except MalformedSchemaError as e:
        return error_response(HTTP_400_BAD_REQUEST, "malformed_schema", str(e))
    return {
        "ok": True,
        "html": state.html,
        "activeSchema": state.active_schema,
        "requiredFields": state.required,
        "hiddenFields": state.hidden,
        "errors": state.errors,
    }
