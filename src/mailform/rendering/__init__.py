from __future__ import annotations

from .html_export import build_template_html
from .template_engine import compile_template, escape_html, render_template

__all__ = ["build_template_html", "compile_template", "escape_html", "render_template"]
