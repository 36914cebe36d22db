from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional

from ..bundle import LoadedArtifacts, load_artifacts
from ..errors import MalformedSchemaError, MissingArtifactError
from ..form_planning.visibility import active_fields, active_schema, check_form_schema, validate_submission
from ..rendering.template_engine import render_template

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LoadStatus:
    ok: bool
    error: Optional[str] = None
    message: str = ""


@dataclass
class PreviewState:
    html: str
    active_schema: Dict[str, Any]
    required: List[str] = field(default_factory=list)
    hidden: List[str] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)


class PreviewSession:
    """
    Data-entry side: load the exported artifacts, then recompute the active form and the
    rendered template on every change of submitted values.
    """

    def __init__(self) -> None:
        self.artifacts: Optional[LoadedArtifacts] = None
        self.values: Dict[str, Any] = {}

    @property
    def loaded(self) -> bool:
        return self.artifacts is not None

    def load(self, files: Mapping[str, str]) -> LoadStatus:
        """Never raises; problems come back as a status and leave the session untouched."""
        try:
            artifacts = load_artifacts(files)
        except MissingArtifactError as e:
            logger.info("artifact missing: %s (got %s)", e.artifact, sorted(files))
            return LoadStatus(ok=False, error="missing_artifact", message=str(e))
        except MalformedSchemaError as e:
            logger.info("schema rejected: %s", e)
            return LoadStatus(ok=False, error="malformed_schema", message=str(e))
        self.artifacts = artifacts
        self.values = {}
        return LoadStatus(ok=True, message="Both files loaded successfully.")

    def update(self, values: Optional[Mapping[str, Any]] = None) -> PreviewState:
        if self.artifacts is None:
            raise RuntimeError("load() the schema and template first")
        if values is not None:
            self.values = dict(values)
        return build_preview(self.artifacts.schema, self.artifacts.template, self.values)


def build_preview(schema: Mapping[str, Any], template: str, values: Optional[Mapping[str, Any]]) -> PreviewState:
    """Raises MalformedSchemaError when `schema` is not a usable form-description."""
    schema = check_form_schema(schema)
    vals = dict(values or {})
    required, hidden = active_fields(schema, vals)
    live = active_schema(schema, vals)
    # Hidden fields render as if never answered.
    visible_values = {k: v for k, v in vals.items() if k not in hidden}
    return PreviewState(
        html=render_template(template, visible_values),
        active_schema=live,
        required=[k for k in live["properties"] if k in required],
        hidden=sorted(hidden),
        errors=validate_submission(schema, vals),
    )


__all__ = ["LoadStatus", "PreviewSession", "PreviewState", "build_preview"]
