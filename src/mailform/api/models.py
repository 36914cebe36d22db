from __future__ import annotations

from typing import Any, Dict, List

from pydantic import BaseModel, ConfigDict, Field, model_validator

from ..schemas.blocks import Block


class BlocksRequest(BaseModel):
    """Body for the builder routes: the ordered block list of a layout."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    blocks: List[Block] = Field(default_factory=list)


class LoadArtifactsRequest(BaseModel):
    """
    Body for `POST /v1/renderer/load`: uploaded file names mapped to their text.

    Also accepts a list of `{name, content}` objects.
    """

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    files: Dict[str, str] = Field(default_factory=dict)

    @model_validator(mode="before")
    @classmethod
    def _accept_file_list(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        files = data.get("files")
        if isinstance(files, list):
            out = dict(data)
            out["files"] = {
                str(f.get("name") or ""): str(f.get("content") or "")
                for f in files
                if isinstance(f, dict) and f.get("name")
            }
            return out
        return data


class PreviewRequest(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    schema_doc: Dict[str, Any] = Field(default_factory=dict, alias="schema")
    template: str = ""
    values: Dict[str, Any] = Field(default_factory=dict, alias="formData")

    @model_validator(mode="before")
    @classmethod
    def _accept_values_key(cls, data: Any) -> Any:
        # `values` is accepted as a synonym for `formData`.
        if isinstance(data, dict) and "formData" not in data and "values" in data:
            out = dict(data)
            out["formData"] = out.pop("values")
            return out
        return data
