from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Tuple

from ..config import get_settings
from ..identifiers import IdentifierLedger, normalize_identifier
from ..placeholders import InlineVariable, extract_inline_variables
from ..schemas.blocks import (
    Block,
    CheckboxGroupBlock,
    DynamicField,
    ListBlock,
    RadioGroupBlock,
    SelectOption,
    TableBlock,
    TableColumn,
    TextBlock,
    parse_blocks,
)

logger = logging.getLogger(__name__)

DEFAULT_TABLE_VARIABLE = "table_data"

WIDGET_CHECKBOXES = "checkboxes"
WIDGET_RADIO = "radio"


@dataclass
class BlockBinding:
    """
    Final identifiers one block contributed, parallel to the block list.

    The template exporter reads these so placeholders always match the schema keys, including
    ledger suffixes.
    """

    identifier: str = ""
    items: List[str] = field(default_factory=list)
    columns: List[str] = field(default_factory=list)
    inline: List[InlineVariable] = field(default_factory=list)


@dataclass
class FormDerivation:
    properties: Dict[str, Dict[str, Any]] = field(default_factory=dict)
    required: List[str] = field(default_factory=list)
    dependencies: Dict[str, Dict[str, Any]] = field(default_factory=dict)
    ui_schema: Dict[str, Dict[str, str]] = field(default_factory=dict)
    bindings: List[BlockBinding] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.properties

    def to_json_schema(self) -> Dict[str, Any]:
        schema: Dict[str, Any] = {
            "type": "object",
            "properties": self.properties,
            "required": self.required,
        }
        if self.dependencies:
            schema["dependencies"] = self.dependencies
        return schema

    def to_document(self) -> Dict[str, Any]:
        """The exported `schema.json` document: the JSON schema plus a sibling `uiSchema`."""
        doc = self.to_json_schema()
        if self.ui_schema:
            doc["uiSchema"] = self.ui_schema
        return doc


def _schema_type(field_type: str) -> str:
    if field_type == "number":
        return "number"
    if field_type == "checkbox":
        return "boolean"
    return "string"


def _clean_options(options: Sequence[SelectOption]) -> List[SelectOption]:
    return [o for o in options if str(o.value or "").strip()]


def _enum_pair(options: Sequence[SelectOption]) -> Tuple[List[str], List[str]]:
    values = [o.value for o in options]
    labels = [o.label or o.value for o in options]
    return values, labels


def _field_property(df: DynamicField) -> Dict[str, Any]:
    prop: Dict[str, Any] = {
        "type": _schema_type(df.field_type),
        "title": df.field_label or df.variable_name.strip(),
    }
    if df.field_type == "select":
        options = [o for o in df.options if str(o or "").strip()]
        if options:
            prop["enum"] = options
    if df.field_type == "email":
        prop["format"] = "email"
    if df.default_value is not None and df.default_value != "":
        prop["default"] = df.default_value
    return prop


def _column_property(col: TableColumn) -> Dict[str, Any]:
    prop: Dict[str, Any] = {"type": "number" if col.type == "number" else "string"}
    if col.label:
        prop["title"] = col.label
    if col.type == "select":
        options = _clean_options(col.options)
        if options:
            prop["enum"], prop["enumNames"] = _enum_pair(options)
    if col.type == "email":
        prop["format"] = "email"
    return prop


def _column_names(columns: Sequence[TableColumn]) -> List[str]:
    ledger = IdentifierLedger()
    names: List[str] = []
    for i, col in enumerate(columns):
        base = col.variable_name.strip() or normalize_identifier(col.label)
        names.append(ledger.claim(base, i))
    return names


class _Builder:
    def __init__(self, *, disambiguate: bool) -> None:
        self.ledger = IdentifierLedger(disambiguate=disambiguate)
        self.result = FormDerivation()
        # parent -> expected value -> dependent field names (insertion ordered)
        self._clauses: Dict[str, Dict[str, List[str]]] = {}
        # explicit variable name -> identifier its first field block was given
        self._parents: Dict[str, str] = {}

    def add_property(self, name: str, prop: Dict[str, Any]) -> None:
        self.result.properties[name] = prop

    def add_requirement(self, name: str, df: Optional[DynamicField]) -> None:
        if df is None:
            return
        dep = df.dependency
        if dep is not None and dep.is_complete:
            parent = dep.parent_variable.strip()
            by_value = self._clauses.setdefault(self._parents.get(parent, parent), {})
            names = by_value.setdefault(dep.expected_value, [])
            if name not in names:
                names.append(name)
            return
        if df.required and name not in self.result.required:
            self.result.required.append(name)

    def finish(self) -> FormDerivation:
        deps: Dict[str, Dict[str, Any]] = {}
        for parent, by_value in self._clauses.items():
            deps[parent] = {
                "oneOf": [
                    {"properties": {parent: {"const": value}}, "required": list(names)}
                    for value, names in by_value.items()
                ]
            }
        self.result.dependencies = deps
        return self.result

    def _field_name(self, base: str, owner: Any) -> str:
        ident = self.ledger.claim(base, owner)
        self._parents.setdefault(base, ident)
        return ident

    def reserve(self, block: Block, owner: Any) -> None:
        """Claim the names a block states explicitly, ahead of any inline label."""
        if isinstance(block, (CheckboxGroupBlock, RadioGroupBlock)):
            if block.dynamic_field is not None and block.variable_name and _clean_options(block.group_options):
                self._field_name(block.variable_name, owner)
        elif isinstance(block, TableBlock):
            if block.columns:
                self.ledger.claim(block.table_variable_name.strip() or DEFAULT_TABLE_VARIABLE, owner)
        elif isinstance(block, ListBlock) and block.has_dynamic_field:
            for n in range(1, len(block.list_items) + 1):
                self.ledger.claim(f"{block.variable_name}_item_{n}", (owner, n))
        elif block.has_dynamic_field:
            self._field_name(block.variable_name, owner)

    # -- per kind ---------------------------------------------------------------------------

    def text(self, block: TextBlock, binding: BlockBinding) -> None:
        for var in extract_inline_variables(block.content):
            ident = self.ledger.claim(var.identifier, ("inline", var.label))
            binding.inline.append(InlineVariable(label=var.label, identifier=ident))
            if ident not in self.result.properties:
                self.add_property(ident, {"type": "string", "title": var.label})

    def dynamic(self, block: Block, owner: Any, binding: BlockBinding) -> None:
        df = block.dynamic_field
        if df is None:
            return
        ident = self._field_name(block.variable_name, owner)
        binding.identifier = ident
        self.add_property(ident, _field_property(df))
        self.add_requirement(ident, df)

    def list_items(self, block: ListBlock, owner: Any, binding: BlockBinding) -> None:
        df = block.dynamic_field
        if df is None:
            return
        binding.identifier = block.variable_name
        title = df.field_label or block.variable_name
        for n, item in enumerate(block.list_items, start=1):
            ident = self.ledger.claim(f"{block.variable_name}_item_{n}", (owner, n))
            binding.items.append(ident)
            prop: Dict[str, Any] = {"type": "string", "title": f"{title} ({n})"}
            if item:
                prop["default"] = item
            self.add_property(ident, prop)
            self.add_requirement(ident, df)

    def choice_group(self, block: Any, owner: Any, binding: BlockBinding) -> None:
        df = block.dynamic_field
        options = _clean_options(block.group_options)
        if df is None or not block.variable_name or not options:
            return
        values, labels = _enum_pair(options)
        title = df.field_label or block.content or block.variable_name
        ident = self._field_name(block.variable_name, owner)
        binding.identifier = ident
        if isinstance(block, CheckboxGroupBlock):
            prop: Dict[str, Any] = {
                "type": "array",
                "title": title,
                "items": {"type": "string", "enum": values, "enumNames": labels},
                "uniqueItems": True,
            }
            widget = WIDGET_CHECKBOXES
        else:
            prop = {"type": "string", "title": title, "enum": values, "enumNames": labels}
            widget = WIDGET_RADIO
        self.add_property(ident, prop)
        self.result.ui_schema[ident] = {"ui:widget": widget}
        self.add_requirement(ident, df)

    def table(self, block: TableBlock, owner: Any, binding: BlockBinding) -> None:
        if not block.columns:
            return
        base = block.table_variable_name.strip() or DEFAULT_TABLE_VARIABLE
        ident = self.ledger.claim(base, owner)
        names = _column_names(block.columns)
        binding.identifier = ident
        binding.columns = names
        self.add_property(
            ident,
            {
                "type": "array",
                "title": block.table_label or ident,
                "items": {
                    "type": "object",
                    "properties": {name: _column_property(col) for name, col in zip(names, block.columns)},
                },
            },
        )


def derive_form_schema(blocks: Sequence[Any], *, disambiguate: Optional[bool] = None) -> FormDerivation:
    """
    Walk the block list in order and derive the form-description.

    Total: blocks that cannot contribute a field (dynamic flag without a usable field, choice
    groups without options, tables without columns) are skipped. Identifier collisions between
    different owners are suffixed (`_2`, `_3`, ...) unless `disambiguate` is off. Explicitly named
    fields are claimed before any inline label, and a dependency gates on whatever identifier
    its parent field block ended up with.
    """
    typed = parse_blocks(blocks)
    if disambiguate is None:
        disambiguate = get_settings().disambiguate_identifiers
    b = _Builder(disambiguate=disambiguate)
    # Explicit names win over inline labels regardless of block order.
    for index, block in enumerate(typed):
        b.reserve(block, ("block", index))

    for index, block in enumerate(typed):
        binding = BlockBinding()
        b.result.bindings.append(binding)
        owner = ("block", index)
        if isinstance(block, (CheckboxGroupBlock, RadioGroupBlock)):
            b.choice_group(block, owner, binding)
        elif isinstance(block, TableBlock):
            b.table(block, owner, binding)
        elif isinstance(block, ListBlock) and block.has_dynamic_field:
            b.list_items(block, owner, binding)
        elif block.has_dynamic_field:
            b.dynamic(block, owner, binding)
        elif isinstance(block, TextBlock):
            b.text(block, binding)
        elif block.is_dynamic:
            logger.debug("skipping dynamic %s block %r without a variable name", block.type, block.id)

    return b.finish()


__all__ = [
    "BlockBinding",
    "DEFAULT_TABLE_VARIABLE",
    "FormDerivation",
    "WIDGET_CHECKBOXES",
    "WIDGET_RADIO",
    "derive_form_schema",
]
