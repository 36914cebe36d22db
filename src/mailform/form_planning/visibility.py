from __future__ import annotations

import copy
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Set, Tuple

import jsonschema
from jsonschema.exceptions import SchemaError

from ..errors import MalformedSchemaError

_MISSING = object()
_APPLIED_KEYS = {"properties", "required", "dependencies", "uiSchema"}


@dataclass(frozen=True)
class VisibilityResult:
    shown: Set[str] = field(default_factory=set)
    hidden: Set[str] = field(default_factory=set)
    dependent: Set[str] = field(default_factory=set)


def _clauses(dependencies: Any) -> List[Tuple[str, Any, List[str]]]:
    """Flatten `{parent: {oneOf: [{properties: {parent: {const}}, required: [...]}]}}`."""
    out: List[Tuple[str, Any, List[str]]] = []
    if not isinstance(dependencies, Mapping):
        return out
    for parent, dep in dependencies.items():
        branches = dep.get("oneOf") if isinstance(dep, Mapping) else None
        if not isinstance(branches, list):
            continue
        for branch in branches:
            if not isinstance(branch, Mapping):
                continue
            props = branch.get("properties") if isinstance(branch.get("properties"), Mapping) else {}
            cond = props.get(parent) if isinstance(props.get(parent), Mapping) else {}
            expected = cond.get("const", _MISSING)
            names = [str(n) for n in (branch.get("required") or []) if str(n or "").strip()]
            out.append((str(parent), expected, names))
    return out


def check_form_schema(schema: Any) -> Dict[str, Any]:
    """
    Reject a form-description the evaluator and validator cannot work with.

    Returns the document without its `uiSchema`. Raises MalformedSchemaError when it is not a
    JSON object, `properties` is not an object, `required` is not a list of field names, or
    it is not a valid draft-7 schema (unknown `type` names and the like).
    """
    if not isinstance(schema, Mapping):
        raise MalformedSchemaError("expected a JSON object")
    doc = {k: v for k, v in schema.items() if k != "uiSchema"}
    if not isinstance(doc.get("properties", {}), Mapping):
        raise MalformedSchemaError("`properties` must be an object")
    required = doc.get("required", [])
    if not isinstance(required, list) or not all(isinstance(n, str) for n in required):
        raise MalformedSchemaError("`required` must be a list of field names")
    try:
        jsonschema.Draft7Validator.check_schema(doc)
    except SchemaError as e:
        path = "/".join(str(p) for p in e.absolute_path) or "<root>"
        raise MalformedSchemaError(f"invalid JSON schema at {path}: {e.message}") from e
    return doc


def evaluate_visibility(dependencies: Any, values: Optional[Mapping[str, Any]]) -> VisibilityResult:
    """
    Decide which dependent fields are live for the submitted values.

    Single hop only: a clause compares the parent's current value to its expected value by
    exact equality, whether or not the parent itself is hidden by another clause. A parent
    with no submitted value satisfies no clause, so its dependents start hidden.
    """
    vals = values or {}
    dependent: Set[str] = set()
    shown: Set[str] = set()
    for parent, expected, names in _clauses(dependencies):
        dependent.update(names)
        if expected is _MISSING:
            continue
        current = vals.get(parent, _MISSING)
        if current is not _MISSING and current == expected and type(current) is type(expected):
            shown.update(names)
    return VisibilityResult(shown=shown, hidden=dependent - shown, dependent=dependent)


def active_fields(schema: Mapping[str, Any], values: Optional[Mapping[str, Any]]) -> Tuple[Set[str], Set[str]]:
    """Return `(currently_required, hidden)` for a form-description and the current values."""
    vis = evaluate_visibility(schema.get("dependencies"), values)
    base = {str(n) for n in (schema.get("required") or [])}
    required = (base | vis.shown) - vis.hidden
    return required, set(vis.hidden)


def active_schema(schema: Mapping[str, Any], values: Optional[Mapping[str, Any]]) -> Dict[str, Any]:
    """
    The subset of the form-description to present right now.

    Hidden properties are removed, `required` becomes the currently required set (in property
    order) and `dependencies` is dropped since it has been applied.
    """
    required, hidden = active_fields(schema, values)
    props = schema.get("properties") if isinstance(schema.get("properties"), Mapping) else {}
    out: Dict[str, Any] = {k: copy.deepcopy(v) for k, v in schema.items() if k not in _APPLIED_KEYS}
    out["type"] = "object"
    out["properties"] = {k: copy.deepcopy(v) for k, v in props.items() if k not in hidden}
    out["required"] = [k for k in out["properties"] if k in required]
    return out


def _format_error(err: jsonschema.exceptions.ValidationError) -> str:
    path = "/".join(str(p) for p in err.absolute_path) or "<root>"
    return f"{path}: {err.message}"


def validate_submission(schema: Mapping[str, Any], values: Optional[Mapping[str, Any]]) -> List[str]:
    """
    Validate submitted values against the active schema (JSON Schema draft 7).

    Values of hidden fields are ignored. Returns error messages sorted by path; empty when valid.
    """
    vals = dict(values or {})
    live = active_schema(schema, vals)
    for name in list(vals):
        if name not in live["properties"]:
            vals.pop(name)
    # Empty strings count as unanswered.
    for name in list(vals):
        if vals[name] is None or vals[name] == "":
            vals.pop(name)
    validator = jsonschema.Draft7Validator(live)
    errors = sorted(validator.iter_errors(vals), key=lambda e: [str(p) for p in e.absolute_path])
    return [_format_error(e) for e in errors]


__all__ = [
    "VisibilityResult",
    "active_fields",
    "active_schema",
    "check_form_schema",
    "evaluate_visibility",
    "validate_submission",
]
