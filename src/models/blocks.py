"""
Block node models

One node dataclass per block extension, all tagged with a BlockKind so the
block scanner and the renderers can dispatch on a closed set of kinds.
"""

from enum import Enum
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from .attributes import AttributeRecord


class BlockKind(Enum):
    """
    Block types added on top of the baseline Markdown grammar

    The declaration order is the order in which the block scanner tries them.
    """
    ASCII_TABLE = "asciiTable"
    DIV_BLOCK = "divBlock"
    TABULATOR = "tabulator"
    DEFINITION_LIST = "definitionList"
    ORDERED_LIST = "orderedList"


@dataclass
class AsciiTableNode:
    """
    A '|===' table as captured by consume()

    Attributes:
        lines: Raw source lines between the opening and closing '|==='
        args: Caption/attribute text following the opening '|==='
        start_line: Index of the opening line (for error reporting)
        cells: Grid built at render time, cells[row][col] -> source text
        row_attributes: Attribute strings of rows declared via '|--- {: ...}'
    """
    lines: List[str]
    args: str = ""
    start_line: int = 0
    cells: List[Dict[int, str]] = field(default_factory=list)
    row_attributes: Dict[int, str] = field(default_factory=dict)
    kind: BlockKind = BlockKind.ASCII_TABLE

    @property
    def row_count(self) -> int:
        return len(self.cells)

    @property
    def column_count(self) -> int:
        cols = [max(row) + 1 for row in self.cells if row]
        return max(cols) if cols else 0


@dataclass
class DivBlockNode:
    """
    A fenced div block ('@@@ .cls', '%%% <span', ...)

    Attributes:
        marker: Fence character
        fence_length: Number of fence characters (3-10)
        attributes: Parsed attribute descriptor of the opening fence
        content: Shielded content (or raw content for '!html' blocks)
        is_literal: Content is shown as-is, no markdown applied
        is_inline: Content was compiled as inline-level markdown
        is_foreign: Opening fence was followed by '{' (non-mdp block)
    """
    marker: str
    fence_length: int
    attributes: AttributeRecord
    content: str = ""
    is_literal: bool = False
    is_inline: bool = False
    is_foreign: bool = False
    kind: BlockKind = BlockKind.DIV_BLOCK

    @property
    def tag(self) -> str:
        return self.attributes.tag

    @property
    def language(self) -> str:
        return self.attributes.lang

    @property
    def is_html(self) -> bool:
        return self.attributes.is_html


@dataclass
class TabulatorNode:
    """
    Rows of '>>'-separated cells

    Attributes:
        rows: rows[r][c] -> cell source text
        column_widths: Explicit width per column index, e.g. {1: '8em'}
    """
    rows: List[List[str]] = field(default_factory=list)
    column_widths: Dict[int, str] = field(default_factory=dict)
    kind: BlockKind = BlockKind.TABULATOR


@dataclass
class DefinitionListNode:
    """
    Term/description pairs

    Attributes:
        entries: (term, description) pairs, description lines newline-joined
        attributes: Raw '{: ...}' descriptor preceding the list, if any
    """
    entries: List[Tuple[str, str]] = field(default_factory=list)
    attributes: str = ""
    kind: BlockKind = BlockKind.DEFINITION_LIST


@dataclass
class OrderedListNode:
    """
    Numbered list, optionally with a 'N!.' start override

    Attributes:
        items: Item text without the 'N.' / 'N!.' prefix
        start: Explicit start number, None if not given
    """
    items: List[str] = field(default_factory=list)
    start: Optional[int] = None
    kind: BlockKind = BlockKind.ORDERED_LIST
