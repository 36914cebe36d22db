from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path

from dotenv import load_dotenv

DEFAULT_RENDER_ERROR_HTML = "<p>Template rendering error</p>"


def _env_bool(name: str, default: bool = False) -> bool:
    v = (os.getenv(name) or "").strip().lower()
    if not v:
        return default
    return v in {"1", "true", "yes", "y", "on"}


def _env_int(name: str, default: int) -> int:
    raw = (os.getenv(name) or "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


@dataclass(frozen=True)
class Settings:
    render_error_html: str = DEFAULT_RENDER_ERROR_HTML
    disambiguate_identifiers: bool = True
    debug: bool = False
    http_log: bool = False
    http_log_body_max_bytes: int = 2048


def load_env_files(root: Path | None = None) -> None:
    """
    Load `.env` + `.env.local` when present (local dev convenience).

    Values already set in the process environment win.
    """
    base = root or Path.cwd()
    load_dotenv(base / ".env", override=False)
    load_dotenv(base / ".env.local", override=False)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings(
        render_error_html=os.getenv("MAILFORM_RENDER_ERROR_HTML") or DEFAULT_RENDER_ERROR_HTML,
        disambiguate_identifiers=_env_bool("MAILFORM_DISAMBIGUATE_IDENTIFIERS", default=True),
        debug=_env_bool("MAILFORM_DEBUG", default=False),
        http_log=_env_bool("MAILFORM_HTTP_LOG", default=False),
        http_log_body_max_bytes=max(0, _env_int("MAILFORM_HTTP_LOG_BODY_MAX_BYTES", 2048)),
    )


__all__ = ["DEFAULT_RENDER_ERROR_HTML", "Settings", "get_settings", "load_env_files"]
