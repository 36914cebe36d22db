from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional, Sequence

from .config import get_settings
from .errors import EmptyFormSchemaError, MalformedSchemaError, MissingArtifactError
from .form_planning.derivation import FormDerivation, derive_form_schema
from .form_planning.visibility import check_form_schema
from .rendering.html_export import build_template_html
from .schemas.blocks import parse_blocks

logger = logging.getLogger(__name__)

TEMPLATE_FILENAME = "template.html"
SCHEMA_FILENAME = "schema.json"

# Browsers add " (2)" style suffixes to repeated downloads.
_SCHEMA_NAME_RE = re.compile(r"^schema(\s*\(\d+\))?\.json$")
_TEMPLATE_NAME_RE = re.compile(r"^template(\s*\(\d+\))?\.html$")


@dataclass
class ExportBundle:
    template_html: str
    schema: Dict[str, Any]
    ui_schema: Dict[str, Any] = field(default_factory=dict)

    @property
    def field_count(self) -> int:
        return len(self.schema.get("properties") or {})

    def schema_document(self) -> Dict[str, Any]:
        doc = dict(self.schema)
        if self.ui_schema:
            doc["uiSchema"] = self.ui_schema
        return doc

    def files(self) -> Dict[str, str]:
        """File name -> text, ready to be written or downloaded."""
        return {
            TEMPLATE_FILENAME: self.template_html,
            SCHEMA_FILENAME: json.dumps(self.schema_document(), ensure_ascii=False, indent=2),
        }


@dataclass
class LoadedArtifacts:
    schema: Dict[str, Any]
    template: str
    ui_schema: Dict[str, Any] = field(default_factory=dict)
    schema_filename: str = SCHEMA_FILENAME
    template_filename: str = TEMPLATE_FILENAME


def build_export(blocks: Sequence[Any], *, derivation: Optional[FormDerivation] = None) -> ExportBundle:
    """
    Derive the form-description and the template for a block list.

    Raises EmptyFormSchemaError when no dynamic field can be derived; nothing is produced then.
    """
    typed = parse_blocks(blocks)
    if derivation is None:
        derivation = derive_form_schema(typed)
    if derivation.is_empty:
        raise EmptyFormSchemaError(
            "No dynamic fields found. Add at least one dynamic field with a variable name before exporting."
        )
    if get_settings().debug:
        logger.info(
            "export blocks=%d properties=%s required=%s",
            len(typed),
            list(derivation.properties),
            derivation.required,
        )
    return ExportBundle(
        template_html=build_template_html(typed, derivation),
        schema=derivation.to_json_schema(),
        ui_schema=dict(derivation.ui_schema),
    )


def match_artifact_names(names: Sequence[str]) -> Dict[str, Optional[str]]:
    """Pick the schema and template file names out of an upload (first match wins)."""
    schema_name = next((n for n in names if _SCHEMA_NAME_RE.match(n)), None)
    template_name = next((n for n in names if _TEMPLATE_NAME_RE.match(n)), None)
    return {"schema": schema_name, "template": template_name}


def parse_schema_document(text: str) -> Dict[str, Any]:
    try:
        doc = json.loads(text)
    except (TypeError, ValueError) as e:
        raise MalformedSchemaError(f"Failed to load {SCHEMA_FILENAME}: invalid JSON ({e})") from e
    try:
        check_form_schema(doc)
    except MalformedSchemaError as e:
        raise MalformedSchemaError(f"Failed to load {SCHEMA_FILENAME}: {e}") from e
    return doc


def load_artifacts(files: Mapping[str, str]) -> LoadedArtifacts:
    """
    Load the two exported artifacts back from `{file name: text}`.

    The schema file is checked first; either one missing raises MissingArtifactError naming it.
    """
    names = match_artifact_names(list(files))
    schema_name = names["schema"]
    template_name = names["template"]
    if schema_name is None:
        raise MissingArtifactError(SCHEMA_FILENAME)
    if template_name is None:
        raise MissingArtifactError(TEMPLATE_FILENAME)

    doc = parse_schema_document(files[schema_name])
    ui_schema = doc.pop("uiSchema", None)
    return LoadedArtifacts(
        schema=doc,
        template=str(files[template_name] or ""),
        ui_schema=ui_schema if isinstance(ui_schema, dict) else {},
        schema_filename=schema_name,
        template_filename=template_name,
    )


__all__ = [
    "ExportBundle",
    "LoadedArtifacts",
    "SCHEMA_FILENAME",
    "TEMPLATE_FILENAME",
    "build_export",
    "load_artifacts",
    "match_artifact_names",
    "parse_schema_document",
]
