from __future__ import annotations

from .preview import LoadStatus, PreviewSession, PreviewState, build_preview
from .session import EditingSession

__all__ = ["EditingSession", "LoadStatus", "PreviewSession", "PreviewState", "build_preview"]
