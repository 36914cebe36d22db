"""
Email layout builder core.

Turns an ordered list of content blocks into two artifacts: an HTML template with
`{{placeholder}}` markers and a JSON form-description that drives a data-entry form.
The renderer side loads both back, evaluates conditional visibility and fills the
template with submitted values.

- Library package: `src/mailform/`
- HTTP entrypoint: `mailform.api.main:app`
"""

from __future__ import annotations

__version__ = "0.1.0"

from .bundle import ExportBundle, LoadedArtifacts, build_export, load_artifacts
from .form_planning.derivation import FormDerivation, derive_form_schema
from .form_planning.visibility import active_fields, active_schema, evaluate_visibility, validate_submission
from .identifiers import normalize_identifier
from .placeholders import extract_inline_variables, substitute_labels_with_identifiers
from .rendering.html_export import build_template_html
from .rendering.template_engine import render_template

__all__ = [
    "__version__",
    "ExportBundle",
    "FormDerivation",
    "LoadedArtifacts",
    "active_fields",
    "active_schema",
    "build_export",
    "build_template_html",
    "derive_form_schema",
    "evaluate_visibility",
    "extract_inline_variables",
    "load_artifacts",
    "normalize_identifier",
    "render_template",
    "substitute_labels_with_identifiers",
    "validate_submission",
]
