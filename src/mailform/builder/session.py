from __future__ import annotations

from typing import Any, Dict, Iterable, List, Optional, Sequence, Set, Tuple, Union

from ..bundle import ExportBundle, build_export
from ..errors import BlockNotFoundError
from ..form_planning.derivation import FormDerivation, derive_form_schema
from ..identifiers import SequentialIds, normalize_identifier, sanitize_variable_name
from ..schemas.blocks import (
    BLOCK_TYPES,
    Block,
    BlockStyles,
    CheckboxGroupBlock,
    DynamicField,
    FieldDependency,
    RadioGroupBlock,
    SelectOption,
    TableBlock,
    TableColumn,
    TextBlock,
    parse_block,
    parse_blocks,
)

_GROUP_TYPES = ("checkbox-group", "radio-group")

OptionInput = Union[SelectOption, Dict[str, Any], Tuple[str, str], str]


def _default_block_data(kind: str) -> Dict[str, Any]:
    if kind == "text":
        return {
            "content": "Enter your text here",
            "styles": {"fontSize": "16px", "color": "#000000", "textAlign": "left", "padding": "10px"},
        }
    if kind == "image":
        return {"content": "https://via.placeholder.com/600x200"}
    if kind == "button":
        return {
            "content": "Click me",
            "styles": {"fontSize": "16px", "color": "#ffffff", "backgroundColor": "#007bff", "padding": "10px 20px"},
        }
    if kind == "heading":
        return {"content": "Heading", "styles": {"level": "h2"}}
    if kind == "list":
        return {"listItems": ["Item 1", "Item 2", "Item 3"], "styles": {"listType": "ul", "listStyle": "disc"}}
    if kind == "spacer":
        return {"height": 30, "showLine": False}
    if kind in _GROUP_TYPES:
        return {
            "isDynamic": True,
            "dynamicField": {"variableName": "", "fieldLabel": "", "fieldType": "select"},
            "groupOptions": [
                {"label": "Option 1", "value": "option_1"},
                {"label": "Option 2", "value": "option_2"},
            ],
        }
    return {}


def _coerce_option(opt: OptionInput) -> SelectOption:
    if isinstance(opt, SelectOption):
        return opt
    if isinstance(opt, dict):
        return SelectOption.model_validate(opt)
    if isinstance(opt, tuple):
        label, value = opt
        return SelectOption(label=label, value=value)
    label = str(opt).strip()
    return SelectOption(label=label, value=normalize_identifier(label))


class EditingSession:
    """
    Layout editing state for one administrator session.

    Owns the ordered block list plus presentation-layer state that does not belong on a Block:
    which variable names were typed by hand (and must no longer follow their labels) and the
    counter used to mint block/column ids.
    """

    def __init__(self, blocks: Optional[Sequence[Any]] = None) -> None:
        self._blocks: List[Block] = parse_blocks(blocks or [])
        self._ids = SequentialIds()
        self._manual_names: Set[str] = set()
        self._manual_columns: Set[Tuple[str, str]] = set()

    @property
    def blocks(self) -> List[Block]:
        return list(self._blocks)

    # -- lookup -----------------------------------------------------------------------------

    def _index(self, block_id: str) -> int:
        for i, b in enumerate(self._blocks):
            if b.id == block_id:
                return i
        raise BlockNotFoundError(block_id)

    def get_block(self, block_id: str) -> Block:
        return self._blocks[self._index(block_id)]

    def _replace(self, block_id: str, **update: Any) -> Block:
        i = self._index(block_id)
        new = self._blocks[i].model_copy(update=update)
        self._blocks[i] = new
        return new

    def _new_id(self, prefix: str) -> str:
        taken = {b.id for b in self._blocks}
        while True:
            candidate = self._ids.next(prefix)
            if candidate not in taken:
                return candidate

    # -- list operations --------------------------------------------------------------------

    def add_block(self, kind: str) -> Block:
        if kind not in BLOCK_TYPES:
            raise ValueError(f"Unknown block type: {kind}")
        data = {"type": kind, "id": self._new_id("block"), **_default_block_data(kind)}
        if kind == "table":
            data["tableVariableName"] = self._ids.next("table", sep="_")
            data["tableLabel"] = "Table"
        block = parse_block(data)
        self._blocks.append(block)
        return block

    def update_block(self, block_id: str, **changes: Any) -> Block:
        """Apply field changes (snake_case names) with full validation."""
        if "type" in changes or "id" in changes:
            raise ValueError("Block type and id cannot be changed")
        i = self._index(block_id)
        current = self._blocks[i]
        data = current.model_dump()
        data.update(changes)
        if changes.get("dynamic_field") is not None and "is_dynamic" not in changes:
            data["is_dynamic"] = True
        # A block carries a dynamic field exactly when it is dynamic.
        if not data.get("is_dynamic"):
            if current.type in _GROUP_TYPES:
                raise ValueError("Choice groups are always dynamic")
            if current.dynamic_field is not None:
                self._manual_names.discard(block_id)
            data["dynamic_field"] = None
        elif data.get("dynamic_field") is None:
            data["dynamic_field"] = DynamicField().model_dump()
        block = parse_block(data)
        self._blocks[i] = block
        return block

    def delete_block(self, block_id: str) -> None:
        i = self._index(block_id)
        del self._blocks[i]
        self._manual_names.discard(block_id)
        self._manual_columns = {k for k in self._manual_columns if k[0] != block_id}

    def move_block(self, block_id: str, index: int) -> None:
        i = self._index(block_id)
        block = self._blocks.pop(i)
        index = max(0, min(int(index), len(self._blocks)))
        self._blocks.insert(index, block)

    def reorder(self, block_ids: Iterable[str]) -> None:
        order = list(block_ids)
        current = [b.id for b in self._blocks]
        if sorted(order) != sorted(current):
            raise ValueError("reorder() needs every block id exactly once")
        by_id = {b.id: b for b in self._blocks}
        self._blocks = [by_id[bid] for bid in order]

    # -- dynamic fields ---------------------------------------------------------------------

    def set_dynamic(self, block_id: str, enabled: bool) -> Block:
        block = self.get_block(block_id)
        if block.type in _GROUP_TYPES:
            if not enabled:
                raise ValueError("Choice groups are always dynamic")
            return block
        if enabled:
            field = block.dynamic_field or DynamicField()
            return self._replace(block_id, is_dynamic=True, dynamic_field=field)
        self._manual_names.discard(block_id)
        return self._replace(block_id, is_dynamic=False, dynamic_field=None)

    def _field(self, block_id: str) -> DynamicField:
        block = self.get_block(block_id)
        if block.dynamic_field is None:
            raise ValueError(f"Block {block_id} has no dynamic field")
        return block.dynamic_field

    def _set_field(self, block_id: str, **update: Any) -> Block:
        field = self._field(block_id).model_copy(update=update)
        return self._replace(block_id, dynamic_field=field)

    def set_field_label(self, block_id: str, label: str) -> Block:
        """Set the human label; the variable name follows it until it is edited by hand."""
        update: Dict[str, Any] = {"field_label": label}
        if block_id not in self._manual_names:
            update["variable_name"] = normalize_identifier(label) if str(label or "").strip() else ""
        return self._set_field(block_id, **update)

    def set_variable_name(self, block_id: str, value: str) -> Block:
        name = sanitize_variable_name(value)
        if name:
            self._manual_names.add(block_id)
            return self._set_field(block_id, variable_name=name)
        # Clearing the name hands it back to the label.
        self._manual_names.discard(block_id)
        label = self._field(block_id).field_label
        return self._set_field(block_id, variable_name=normalize_identifier(label) if label.strip() else "")

    def is_variable_name_manual(self, block_id: str) -> bool:
        return block_id in self._manual_names

    def set_field_type(self, block_id: str, field_type: str) -> Block:
        field = DynamicField.model_validate({**self._field(block_id).model_dump(), "field_type": field_type})
        return self._replace(block_id, dynamic_field=field)

    def set_required(self, block_id: str, required: bool) -> Block:
        return self._set_field(block_id, required=bool(required))

    def set_field_options(self, block_id: str, options_text: str) -> Block:
        options = [o.strip() for o in str(options_text or "").split(",") if o.strip()]
        return self._set_field(block_id, options=options)

    def set_dependency(self, block_id: str, parent_variable: str, expected_value: str) -> Block:
        parent = str(parent_variable or "").strip()
        expected = str(expected_value or "")
        if not parent and not expected:
            return self._set_field(block_id, dependency=None)
        return self._set_field(block_id, dependency=FieldDependency(parent_variable=parent, expected_value=expected))

    def set_group_options(self, block_id: str, options: Iterable[OptionInput]) -> Block:
        block = self.get_block(block_id)
        if not isinstance(block, (CheckboxGroupBlock, RadioGroupBlock)):
            raise ValueError(f"Block {block_id} is not a choice group")
        return self._replace(block_id, group_options=[_coerce_option(o) for o in options])

    # -- tables -----------------------------------------------------------------------------

    def _table(self, block_id: str) -> TableBlock:
        block = self.get_block(block_id)
        if not isinstance(block, TableBlock):
            raise ValueError(f"Block {block_id} is not a table")
        return block

    def set_table_label(self, block_id: str, label: str) -> Block:
        self._table(block_id)
        update: Dict[str, Any] = {"table_label": label}
        if block_id not in self._manual_names and str(label or "").strip():
            update["table_variable_name"] = normalize_identifier(label)
        return self._replace(block_id, **update)

    def set_table_variable_name(self, block_id: str, value: str) -> Block:
        self._table(block_id)
        name = sanitize_variable_name(value)
        if name:
            self._manual_names.add(block_id)
        else:
            self._manual_names.discard(block_id)
        return self._replace(block_id, table_variable_name=name)

    def add_table_column(
        self,
        block_id: str,
        label: str = "",
        column_type: str = "text",
        options: Optional[Iterable[OptionInput]] = None,
    ) -> TableColumn:
        table = self._table(block_id)
        col_id = self._ids.next("col")
        name = normalize_identifier(label) if str(label or "").strip() else f"column_{len(table.columns) + 1}"
        column = TableColumn.model_validate(
            {
                "id": col_id,
                "label": label,
                "variable_name": name,
                "type": column_type,
                "options": [_coerce_option(o) for o in (options or [])],
            }
        )
        self._replace(block_id, columns=[*table.columns, column])
        return column

    def update_table_column(
        self,
        block_id: str,
        column_id: str,
        *,
        label: Optional[str] = None,
        column_type: Optional[str] = None,
        variable_name: Optional[str] = None,
        options: Optional[Iterable[OptionInput]] = None,
    ) -> TableColumn:
        table = self._table(block_id)
        key = (block_id, column_id)
        columns = list(table.columns)
        for i, col in enumerate(columns):
            if col.id != column_id:
                continue
            data = col.model_dump()
            if label is not None:
                data["label"] = label
                if key not in self._manual_columns and label.strip():
                    data["variable_name"] = normalize_identifier(label)
            if variable_name is not None:
                data["variable_name"] = sanitize_variable_name(variable_name)
                self._manual_columns.add(key)
            if column_type is not None:
                data["type"] = column_type
            if options is not None:
                data["options"] = [_coerce_option(o).model_dump() for o in options]
            columns[i] = TableColumn.model_validate(data)
            self._replace(block_id, columns=columns)
            return columns[i]
        raise KeyError(column_id)

    def remove_table_column(self, block_id: str, column_id: str) -> Block:
        table = self._table(block_id)
        self._manual_columns.discard((block_id, column_id))
        return self._replace(block_id, columns=[c for c in table.columns if c.id != column_id])

    # -- text -------------------------------------------------------------------------------

    def insert_inline_variable(self, block_id: str, label: str) -> Block:
        block = self.get_block(block_id)
        if not isinstance(block, TextBlock):
            raise ValueError(f"Block {block_id} is not a text block")
        label = str(label or "").strip()
        if not label:
            return block
        marker = f'<span class="inline-variable" contenteditable="false">{{{{{label}}}}}</span>'
        return self._replace(block_id, content=block.content + marker)

    def set_styles(self, block_id: str, **styles: Any) -> Block:
        block = self.get_block(block_id)
        merged = BlockStyles.model_validate({**block.styles.model_dump(), **styles})
        return self._replace(block_id, styles=merged)

    # -- outputs ----------------------------------------------------------------------------

    def derive(self) -> FormDerivation:
        return derive_form_schema(self._blocks)

    def export(self) -> ExportBundle:
        return build_export(self._blocks)


__all__ = ["EditingSession"]
