from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Dict, Iterable, List, Set

from .identifiers import normalize_identifier

# No nested braces: `{{{raw}}}` yields the inner `{{raw}}`.
_PLACEHOLDER_RE = re.compile(r"\{\{([^{}]*?)\}\}")


@dataclass(frozen=True)
class InlineVariable:
    label: str
    identifier: str


def extract_inline_variables(text: str) -> List[InlineVariable]:
    """
    Find the distinct `{{label}}` markers in free text.

    Labels are trimmed and compared exactly; first-seen order is kept and repeats are dropped.
    """
    out: List[InlineVariable] = []
    seen: Set[str] = set()
    for m in _PLACEHOLDER_RE.finditer(str(text or "")):
        label = m.group(1).strip()
        if not label or label in seen:
            continue
        seen.add(label)
        out.append(InlineVariable(label=label, identifier=normalize_identifier(label)))
    return out


def substitute_labels_with_identifiers(text: str, mappings: Iterable[InlineVariable]) -> str:
    """
    Rewrite every literal `{{label}}` into `{{identifier}}`.

    Done in a single pass over the text, so an identifier written for one label is never
    picked up again by another mapping.
    """
    by_label: Dict[str, str] = {}
    for mapping in mappings:
        by_label.setdefault(mapping.label, mapping.identifier)
    if not by_label:
        return str(text or "")

    def _swap(m: re.Match) -> str:
        ident = by_label.get(m.group(1).strip())
        if ident is None:
            return m.group(0)
        return "{{" + ident + "}}"

    return _PLACEHOLDER_RE.sub(_swap, str(text or ""))


__all__ = ["InlineVariable", "extract_inline_variables", "substitute_labels_with_identifiers"]
