from __future__ import annotations

from .derivation import BlockBinding, FormDerivation, derive_form_schema
from .visibility import VisibilityResult, active_fields, active_schema, evaluate_visibility, validate_submission

__all__ = [
    "BlockBinding",
    "FormDerivation",
    "VisibilityResult",
    "active_fields",
    "active_schema",
    "derive_form_schema",
    "evaluate_visibility",
    "validate_submission",
]
