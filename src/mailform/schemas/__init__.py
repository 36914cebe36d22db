from __future__ import annotations

from .blocks import (
    BLOCK_TYPES,
    Block,
    BlockStyles,
    DynamicField,
    FieldDependency,
    SelectOption,
    TableColumn,
    dump_blocks,
    parse_block,
    parse_blocks,
)

__all__ = [
    "BLOCK_TYPES",
    "Block",
    "BlockStyles",
    "DynamicField",
    "FieldDependency",
    "SelectOption",
    "TableColumn",
    "dump_blocks",
    "parse_block",
    "parse_blocks",
]
