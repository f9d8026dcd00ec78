"""
mdplus - MarkdownPlus compiler

Markdown superset with div blocks, ASCII tables, tabulators, definition
lists, extra inline markers, icons and '{: ...}' attribute annotations.
"""

__version__ = "1.0.0"

from .compiler import DocumentCompiler
from .collaborators import LocalFiles, MacroTable, NullMacros, PageContext, Permission, Visitor
from .errors import (
    MarkdownPlusError,
    BlockStructureError,
    RecursionLimitError,
    IncludeError,
    IconNotFoundError,
    IconFormatError,
)
from .log import LOG, state_connectToLogger

__all__ = [
    "DocumentCompiler",
    "LocalFiles",
    "MacroTable",
    "NullMacros",
    "PageContext",
    "Permission",
    "Visitor",
    "MarkdownPlusError",
    "BlockStructureError",
    "RecursionLimitError",
    "IncludeError",
    "IconNotFoundError",
    "IconFormatError",
    "LOG",
    "state_connectToLogger",
    "__version__",
]
