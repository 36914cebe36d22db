from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from functools import lru_cache
from typing import Any, List, Mapping, Optional, Sequence, Tuple, Union

from ..config import get_settings
from ..errors import TemplateSyntaxError

logger = logging.getLogger(__name__)

_TAG_RE = re.compile(r"\{\{\{\s*(.*?)\s*\}\}\}|\{\{(.*?)\}\}", re.S)
_EACH_RE = re.compile(r"^#each\s+(\S+)$")

_ESCAPES = {
    "&": "&amp;",
    "<": "&lt;",
    ">": "&gt;",
    '"': "&quot;",
    "'": "&#x27;",
    "`": "&#x60;",
    "=": "&#x3D;",
}
_ESCAPE_RE = re.compile("[&<>\"'`=]")


def escape_html(text: str) -> str:
    return _ESCAPE_RE.sub(lambda m: _ESCAPES[m.group(0)], text)


@dataclass(frozen=True)
class Text:
    text: str


@dataclass(frozen=True)
class Var:
    path: str
    escape: bool = True


@dataclass(frozen=True)
class Each:
    path: str
    body: Tuple["Node", ...]


Node = Union[Text, Var, Each]


@dataclass(frozen=True)
class _Frame:
    value: Any
    index: Optional[int] = None


@lru_cache(maxsize=64)
def compile_template(template: str) -> Tuple[Node, ...]:
    """
    Parse a template into a node tree.

    Supported: `{{path}}`, `{{{path}}}`, `{{#each path}}...{{/each}}` (nestable) and
    `{{! comments }}`. Anything else inside `{{# }}`/`{{/ }}` raises TemplateSyntaxError,
    as do unbalanced loop markers.
    """
    root: List[Node] = []
    stack: List[Tuple[str, List[Node]]] = []
    current = root
    pos = 0
    for m in _TAG_RE.finditer(template):
        if m.start() > pos:
            current.append(Text(template[pos : m.start()]))
        pos = m.end()

        raw = m.group(1)
        if raw is not None:
            current.append(Var(raw, escape=False))
            continue

        tag = m.group(2).strip()
        if tag.startswith("!"):
            continue
        if tag.startswith("#"):
            each = _EACH_RE.match(tag)
            if not each:
                raise TemplateSyntaxError(f"Unsupported block helper: {{{{{tag}}}}}")
            stack.append((each.group(1), current))
            current = []
            continue
        if tag.startswith("/"):
            if tag[1:].strip() != "each":
                raise TemplateSyntaxError(f"Unsupported closing tag: {{{{{tag}}}}}")
            if not stack:
                raise TemplateSyntaxError("{{/each}} without a matching {{#each}}")
            path, parent = stack.pop()
            parent.append(Each(path, tuple(current)))
            current = parent
            continue
        current.append(Var(tag))

    if stack:
        raise TemplateSyntaxError(f"Unclosed {{{{#each {stack[-1][0]}}}}}")
    if pos < len(template):
        current.append(Text(template[pos:]))
    return tuple(root)


def _lookup(value: Any, parts: Sequence[str]) -> Any:
    for part in parts:
        if isinstance(value, Mapping) and part in value:
            value = value[part]
        else:
            return None
    return value


def _resolve(path: str, frames: Sequence[_Frame]) -> Any:
    depth = len(frames) - 1
    while path.startswith("../"):
        path = path[3:]
        depth = max(0, depth - 1)
    frame = frames[depth]
    if path == "@index":
        return frame.index
    if path in ("this", "."):
        return frame.value
    if path.startswith("this."):
        path = path[5:]
    if not path:
        return None
    return _lookup(frame.value, path.split("."))


def format_value(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, (list, tuple)):
        return ",".join(format_value(v) for v in value)
    if isinstance(value, Mapping):
        return ""
    return str(value)


def _render(nodes: Sequence[Node], frames: List[_Frame], out: List[str]) -> None:
    for node in nodes:
        if isinstance(node, Text):
            out.append(node.text)
        elif isinstance(node, Var):
            text = format_value(_resolve(node.path, frames))
            out.append(escape_html(text) if node.escape else text)
        else:
            items = _resolve(node.path, frames)
            if not isinstance(items, (list, tuple)):
                continue
            for i, item in enumerate(items):
                frames.append(_Frame(item, i))
                try:
                    _render(node.body, frames, out)
                finally:
                    frames.pop()


def render_compiled(nodes: Sequence[Node], values: Optional[Mapping[str, Any]]) -> str:
    out: List[str] = []
    _render(nodes, [_Frame(dict(values or {}))], out)
    return "".join(out)


def render_template(template: str, values: Optional[Mapping[str, Any]], *, error_html: Optional[str] = None) -> str:
    """
    Substitute submitted values into a template.

    Never raises: a failure is logged and replaced by a fixed error fragment so a live preview
    keeps working while the template is broken. Substituted values are not scanned again.
    """
    try:
        return render_compiled(compile_template(str(template or "")), values)
    except Exception as e:
        logger.warning("template render failed: %s", e)
        return error_html if error_html is not None else get_settings().render_error_html


__all__ = [
    "Each",
    "Text",
    "Var",
    "compile_template",
    "escape_html",
    "format_value",
    "render_compiled",
    "render_template",
]
