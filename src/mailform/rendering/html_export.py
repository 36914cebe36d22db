from __future__ import annotations

import html
from typing import Any, List, Optional, Sequence, Tuple

from ..form_planning.derivation import BlockBinding, FormDerivation, derive_form_schema
from ..placeholders import substitute_labels_with_identifiers
from ..schemas.blocks import (
    Block,
    ButtonBlock,
    CheckboxGroupBlock,
    DividerBlock,
    HeadingBlock,
    ImageBlock,
    ListBlock,
    RadioGroupBlock,
    SpacerBlock,
    TableBlock,
    TextBlock,
    parse_blocks,
)

DOCUMENT_HEAD = """<!DOCTYPE html>
<html lang="en">
<head>
  <meta charset="UTF-8">
  <meta name="viewport" content="width=device-width, initial-scale=1.0">
  <title>Email Template</title>
  <style>
    body {
      font-family: Arial, sans-serif;
      margin: 0;
      padding: 20px;
      background-color: #f4f4f4;
    }
    .email-container {
      max-width: 600px;
      margin: 0 auto;
      background-color: #ffffff;
      padding: 20px;
    }
  </style>
</head>
<body>
  <div class="email-container">
"""

DOCUMENT_TAIL = """  </div>
</body>
</html>"""

_CELL_STYLE = "border: 1px solid #ddd; padding: 8px; text-align: left;"


def _style(*pairs: Tuple[str, Optional[str]]) -> str:
    return "; ".join(f"{k}: {v}" for k, v in pairs if v) + ";"


def _placeholder(name: str, *, raw: bool = False) -> str:
    return "{{{" + name + "}}}" if raw else "{{" + name + "}}"


def _text(block: TextBlock, binding: BlockBinding) -> str:
    s = block.styles
    if binding.identifier:
        content = _placeholder(binding.identifier)
    else:
        content = substitute_labels_with_identifiers(block.content, binding.inline)
    style = _style(
        ("font-size", s.font_size or "16px"),
        ("color", s.color or "#000000"),
        ("text-align", s.text_align or "left"),
        ("padding", s.padding or "10px"),
    )
    return f'    <div style="{style}">\n      {content}\n    </div>\n'


def _image(block: ImageBlock, binding: BlockBinding) -> str:
    src = _placeholder(binding.identifier) if binding.identifier else html.escape(block.content, quote=True)
    return (
        '    <div style="text-align: center; padding: 10px;">\n'
        f'      <img src="{src}" alt="Email image" style="max-width: 100%; height: auto;" />\n'
        "    </div>\n"
    )


def _button(block: ButtonBlock, binding: BlockBinding) -> str:
    s = block.styles
    label = _placeholder(binding.identifier) if binding.identifier else block.content
    style = _style(
        ("display", "inline-block"),
        ("font-size", s.font_size or "16px"),
        ("color", s.color or "#ffffff"),
        ("background-color", s.background_color or "#007bff"),
        ("padding", s.padding or "10px 20px"),
        ("text-decoration", "none"),
        ("border-radius", "4px"),
    )
    return (
        '    <div style="text-align: center; padding: 10px;">\n'
        f'      <a href="#" style="{style}">\n'
        f"        {label}\n"
        "      </a>\n"
        "    </div>\n"
    )


def _heading(block: HeadingBlock, binding: BlockBinding) -> str:
    s = block.styles
    level = s.level or "h2"
    content = _placeholder(binding.identifier) if binding.identifier else block.content
    style = _style(
        ("font-size", s.font_size or "24px"),
        ("color", s.color or "#111827"),
        ("text-align", s.text_align or "left"),
        ("padding", s.padding or "10px"),
        ("font-weight", s.font_weight or "700"),
        ("margin", "0"),
    )
    return f'    <{level} style="{style}">{content}</{level}>\n'


def _list(block: ListBlock, binding: BlockBinding) -> str:
    s = block.styles
    tag = s.list_type or "ul"
    if binding.items:
        items = [_placeholder(name) for name in binding.items]
    else:
        items = list(block.list_items)
    items_html = "".join(f"<li>{item}</li>" for item in items)
    style = _style(
        ("font-size", s.font_size or "16px"),
        ("color", s.color or "#333333"),
        ("padding", s.padding or "10px"),
        ("list-style-type", s.list_style or "disc"),
        ("margin", "0"),
        ("padding-left", "20px"),
    )
    return f'    <{tag} style="{style}">{items_html}</{tag}>\n'


def _spacer(block: SpacerBlock) -> str:
    out = f'    <div style="height: {int(block.height)}px;"></div>\n'
    if block.show_line:
        out += '    <hr style="margin: 0; border: none; border-top: 1px solid #ddd;" />\n'
    return out


def _table(block: TableBlock, binding: BlockBinding) -> str:
    if not binding.identifier:
        return ""
    head = "".join(
        f'<th style="{_CELL_STYLE}">{html.escape(col.label or name)}</th>'
        for col, name in zip(block.columns, binding.columns)
    )
    cells = "".join(f'<td style="{_CELL_STYLE}">{{{{this.{name}}}}}</td>' for name in binding.columns)
    return (
        '    <table style="width: 100%; border-collapse: collapse; margin: 10px 0;">\n'
        f"      <thead><tr>{head}</tr></thead>\n"
        "      <tbody>\n"
        f"        {{{{#each {binding.identifier}}}}}\n"
        f"        <tr>{cells}</tr>\n"
        "        {{/each}}\n"
        "      </tbody>\n"
        "    </table>\n"
    )


def _checkbox_group(binding: BlockBinding) -> str:
    if not binding.identifier:
        return ""
    return (
        '    <div style="padding: 10px;">\n'
        f"      <ul>{{{{#each {binding.identifier}}}}}<li>{{{{this}}}}</li>{{{{/each}}}}</ul>\n"
        "    </div>\n"
    )


def _radio_group(binding: BlockBinding) -> str:
    if not binding.identifier:
        return ""
    return f'    <div style="padding: 10px;">{_placeholder(binding.identifier, raw=True)}</div>\n'


def render_block(block: Block, binding: BlockBinding) -> str:
    if isinstance(block, TextBlock):
        return _text(block, binding)
    if isinstance(block, ImageBlock):
        return _image(block, binding)
    if isinstance(block, ButtonBlock):
        return _button(block, binding)
    if isinstance(block, DividerBlock):
        return '    <hr style="margin: 20px 0; border: none; border-top: 1px solid #ddd;" />\n'
    if isinstance(block, SpacerBlock):
        return _spacer(block)
    if isinstance(block, HeadingBlock):
        return _heading(block, binding)
    if isinstance(block, ListBlock):
        return _list(block, binding)
    if isinstance(block, TableBlock):
        return _table(block, binding)
    if isinstance(block, CheckboxGroupBlock):
        return _checkbox_group(binding)
    if isinstance(block, RadioGroupBlock):
        return _radio_group(binding)
    return ""


def build_template_html(blocks: Sequence[Any], derivation: Optional[FormDerivation] = None) -> str:
    """
    Build the exported `template.html`.

    Placeholders use the identifiers recorded by `derive_form_schema`, so pass the derivation
    used for `schema.json` when you have one; it is recomputed otherwise.
    """
    typed = parse_blocks(blocks)
    if derivation is None:
        derivation = derive_form_schema(typed)
    parts: List[str] = [DOCUMENT_HEAD]
    for block, binding in zip(typed, derivation.bindings):
        parts.append(render_block(block, binding))
    parts.append(DOCUMENT_TAIL)
    return "".join(parts)


__all__ = ["DOCUMENT_HEAD", "DOCUMENT_TAIL", "build_template_html", "render_block"]
