from __future__ import annotations

from typing import Any, Dict

from fastapi import APIRouter, Body
from pydantic import ValidationError
from starlette.status import HTTP_422_UNPROCESSABLE_ENTITY

from ...bundle import build_export
from ...errors import EmptyFormSchemaError
from ...form_planning.derivation import derive_form_schema
from ..models import BlocksRequest
from ..utils import error_response, validation_error_response

router = APIRouter(prefix="/builder", tags=["builder"])


@router.post("/schema")
def schema(payload: Dict[str, Any] = Body(default_factory=dict)) -> Any:
    """Derive the form-description for a block list without exporting anything."""
    try:
        parsed = BlocksRequest.model_validate(payload)
    except ValidationError as exc:
        return validation_error_response(exc)

    derivation = derive_form_schema(parsed.blocks)
    return {
        "ok": True,
        "schema": derivation.to_json_schema(),
        "uiSchema": derivation.ui_schema,
        "fieldCount": len(derivation.properties),
    }


@router.post("/export")
def export(payload: Dict[str, Any] = Body(default_factory=dict)) -> Any:
    """
    Produce `template.html` and `schema.json` for a block list.

    Refused with `empty_schema` (and no files) when the layout has no dynamic fields.
    """
    try:
        parsed = BlocksRequest.model_validate(payload)
    except ValidationError as exc:
        return validation_error_response(exc)

    try:
        bundle = build_export(parsed.blocks)
    except EmptyFormSchemaError as e:
        return error_response(HTTP_422_UNPROCESSABLE_ENTITY, "empty_schema", str(e), level="warning")
    return {"ok": True, "files": bundle.files(), "fieldCount": bundle.field_count}
