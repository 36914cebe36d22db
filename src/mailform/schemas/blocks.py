from __future__ import annotations

from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter

BlockType = Literal[
    "text",
    "image",
    "button",
    "divider",
    "spacer",
    "heading",
    "list",
    "table",
    "checkbox-group",
    "radio-group",
]

# Field types for dynamic fields
FieldType = Literal["text", "number", "email", "select", "checkbox", "textarea"]

# Column types for table blocks
ColumnType = Literal["text", "number", "email", "select"]

BLOCK_TYPES: tuple = BlockType.__args__


class _WireModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class SelectOption(_WireModel):
    label: str = ""  # what the manager sees
    value: str = ""  # what goes into the email


class TableColumn(_WireModel):
    id: str = ""
    label: str = ""
    variable_name: str = Field(default="", alias="variableName")
    type: ColumnType = "text"
    options: List[SelectOption] = Field(default_factory=list)


class FieldDependency(_WireModel):
    parent_variable: str = Field(default="", alias="parentVariable")
    expected_value: str = Field(default="", alias="expectedValue")

    @property
    def is_complete(self) -> bool:
        return bool(self.parent_variable.strip() and self.expected_value.strip())


class DynamicField(_WireModel):
    variable_name: str = Field(default="", alias="variableName")
    field_label: str = Field(default="", alias="fieldLabel")
    field_type: FieldType = Field(default="text", alias="fieldType")
    required: bool = False
    options: List[str] = Field(default_factory=list)
    default_value: Optional[Union[bool, int, float, str]] = Field(default=None, alias="defaultValue")
    dependency: Optional[FieldDependency] = None


class BlockStyles(_WireModel):
    font_size: Optional[str] = Field(default=None, alias="fontSize")
    color: Optional[str] = None
    text_align: Optional[Literal["left", "center", "right"]] = Field(default=None, alias="textAlign")
    padding: Optional[str] = None
    background_color: Optional[str] = Field(default=None, alias="backgroundColor")
    font_weight: Optional[str] = Field(default=None, alias="fontWeight")
    level: Optional[Literal["h1", "h2", "h3", "h4", "h5", "h6"]] = None
    list_type: Optional[Literal["ul", "ol"]] = Field(default=None, alias="listType")
    list_style: Optional[str] = Field(default=None, alias="listStyle")


class _BlockBase(_WireModel):
    id: str = ""
    content: str = ""
    is_dynamic: bool = Field(default=False, alias="isDynamic")
    dynamic_field: Optional[DynamicField] = Field(default=None, alias="dynamicField")
    styles: BlockStyles = Field(default_factory=BlockStyles)

    @property
    def variable_name(self) -> str:
        if self.dynamic_field is None:
            return ""
        return self.dynamic_field.variable_name.strip()

    @property
    def has_dynamic_field(self) -> bool:
        """True when the block is dynamic and carries a usable field descriptor."""
        return bool(self.is_dynamic and self.dynamic_field is not None and self.variable_name)


class TextBlock(_BlockBase):
    type: Literal["text"] = "text"


class ImageBlock(_BlockBase):
    type: Literal["image"] = "image"


class ButtonBlock(_BlockBase):
    type: Literal["button"] = "button"


class DividerBlock(_BlockBase):
    type: Literal["divider"] = "divider"


class SpacerBlock(_BlockBase):
    type: Literal["spacer"] = "spacer"
    height: int = Field(default=30, ge=0)
    show_line: bool = Field(default=False, alias="showLine")


class HeadingBlock(_BlockBase):
    type: Literal["heading"] = "heading"


class ListBlock(_BlockBase):
    type: Literal["list"] = "list"
    list_items: List[str] = Field(default_factory=list, alias="listItems")


class TableBlock(_BlockBase):
    type: Literal["table"] = "table"
    columns: List[TableColumn] = Field(default_factory=list)
    table_variable_name: str = Field(default="", alias="tableVariableName")
    table_label: str = Field(default="", alias="tableLabel")


class CheckboxGroupBlock(_BlockBase):
    type: Literal["checkbox-group"] = "checkbox-group"
    is_dynamic: bool = Field(default=True, alias="isDynamic")
    group_options: List[SelectOption] = Field(default_factory=list, alias="groupOptions")


class RadioGroupBlock(_BlockBase):
    type: Literal["radio-group"] = "radio-group"
    is_dynamic: bool = Field(default=True, alias="isDynamic")
    group_options: List[SelectOption] = Field(default_factory=list, alias="groupOptions")


Block = Annotated[
    Union[
        TextBlock,
        ImageBlock,
        ButtonBlock,
        DividerBlock,
        SpacerBlock,
        HeadingBlock,
        ListBlock,
        TableBlock,
        CheckboxGroupBlock,
        RadioGroupBlock,
    ],
    Field(discriminator="type"),
]

ChoiceGroupBlock = Union[CheckboxGroupBlock, RadioGroupBlock]

_BLOCK_LIST_ADAPTER = TypeAdapter(List[Block])
_BLOCK_ADAPTER = TypeAdapter(Block)


def parse_block(data: Any) -> Block:
    if isinstance(data, BaseModel):
        return data  # type: ignore[return-value]
    return _BLOCK_ADAPTER.validate_python(data)


def parse_blocks(data: Any) -> List[Block]:
    """Validate a JSON-ish block list (camelCase or snake_case keys) into typed blocks."""
    if data is None:
        return []
    items = list(data)
    if all(isinstance(b, BaseModel) for b in items):
        return items
    return _BLOCK_LIST_ADAPTER.validate_python([b.model_dump(by_alias=True) if isinstance(b, BaseModel) else b for b in items])


def dump_blocks(blocks: List[Block]) -> List[Dict[str, Any]]:
    return [b.model_dump(by_alias=True, exclude_none=True) for b in blocks]


__all__ = [
    "BLOCK_TYPES",
    "Block",
    "BlockStyles",
    "BlockType",
    "ButtonBlock",
    "CheckboxGroupBlock",
    "ChoiceGroupBlock",
    "ColumnType",
    "DividerBlock",
    "DynamicField",
    "FieldDependency",
    "FieldType",
    "HeadingBlock",
    "ImageBlock",
    "ListBlock",
    "RadioGroupBlock",
    "SelectOption",
    "SpacerBlock",
    "TableBlock",
    "TableColumn",
    "TextBlock",
    "parse_block",
    "parse_blocks",
    "dump_blocks",
]
