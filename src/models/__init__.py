"""
Models package for mdplus

Contains data structures and type definitions for the compilation pipeline.
"""

from .state import ProgramState, pipeline
from .context import CompileContext, ShieldKind, ShieldFragment
from .attributes import AttributeRecord, SKIP_TAG
from .blocks import (
    BlockKind,
    AsciiTableNode,
    DivBlockNode,
    TabulatorNode,
    DefinitionListNode,
    OrderedListNode,
)
from .inline import InlineKind, InlineMarker, INLINE_MARKERS

__all__ = [
    "ProgramState",
    "pipeline",
    "CompileContext",
    "ShieldKind",
    "ShieldFragment",
    "AttributeRecord",
    "SKIP_TAG",
    "BlockKind",
    "AsciiTableNode",
    "DivBlockNode",
    "TabulatorNode",
    "DefinitionListNode",
    "OrderedListNode",
    "InlineKind",
    "InlineMarker",
    "INLINE_MARKERS",
]
