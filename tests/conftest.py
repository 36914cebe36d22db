from __future__ import annotations

import sys
from pathlib import Path

import pytest


_REPO_ROOT = Path(__file__).resolve().parents[1]
_SRC = _REPO_ROOT / "src"
if _SRC.exists():
    sys.path.insert(0, str(_SRC))


@pytest.fixture(autouse=True)
def _fresh_settings(monkeypatch):
    """Each test sees default settings unless it sets MAILFORM_* itself."""
    from mailform.config import get_settings

    for name in (
        "MAILFORM_RENDER_ERROR_HTML",
        "MAILFORM_DISAMBIGUATE_IDENTIFIERS",
        "MAILFORM_DEBUG",
        "MAILFORM_HTTP_LOG",
        "MAILFORM_HTTP_LOG_BODY_MAX_BYTES",
    ):
        monkeypatch.delenv(name, raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def table_block():
    return {
        "id": "block-1",
        "type": "table",
        "tableVariableName": "order_items",
        "tableLabel": "Order items",
        "columns": [
            {"id": "col-1", "label": "Product", "variableName": "product", "type": "text"},
            {"id": "col-2", "label": "Price", "variableName": "price", "type": "number"},
        ],
    }


@pytest.fixture
def dependent_blocks():
    return [
        {
            "id": "block-1",
            "type": "text",
            "content": "",
            "isDynamic": True,
            "dynamicField": {
                "variableName": "has_pet",
                "fieldLabel": "Has pet",
                "fieldType": "select",
                "options": ["yes", "no"],
                "required": True,
            },
        },
        {
            "id": "block-2",
            "type": "text",
            "content": "",
            "isDynamic": True,
            "dynamicField": {
                "variableName": "pet_name",
                "fieldLabel": "Pet name",
                "required": True,
                "dependency": {"parentVariable": "has_pet", "expectedValue": "yes"},
            },
        },
    ]
