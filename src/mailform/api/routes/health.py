from __future__ import annotations

import time
from typing import Any, Dict

from fastapi import APIRouter

from ... import __version__
from ...config import get_settings
from ...schemas.blocks import BLOCK_TYPES

router = APIRouter(tags=["health"])


@router.get("/health")
async def health() -> Dict[str, Any]:
    """Liveness plus what this build accepts: its version and the block kinds it derives."""
    settings = get_settings()
    return {
        "ok": True,
        "service": "mailform-builder",
        "version": __version__,
        "blockTypes": list(BLOCK_TYPES),
        "disambiguateIdentifiers": settings.disambiguate_identifiers,
        "ts": int(time.time() * 1000),
    }
