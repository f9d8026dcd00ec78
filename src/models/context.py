"""
Compile context and shield work-item models

CompileContext is the immutable per-call state handed to every parsing and
rendering step. ShieldFragment is the pending-work item created when shield
placeholders are collected for resolution.
"""

from enum import Enum
from dataclasses import dataclass, field, replace
from typing import Optional, Tuple


@dataclass(frozen=True)
class CompileContext:
    """
    Per-call compile state (read-only)

    One context is created for each compile() / compileParagraph() call.
    Nested compiles (table cells, deferred markdown, list items) derive a
    child context so that the recursion depth is always explicit.

    Attributes:
        remove_comments: Strip C-style comments and the __END__ marker
        is_paragraph: True when compiling inline-level content only
        section_id: Identifier substituted for '#this' / '.this' in css fields
        language: Active document language used by '!lang=' filtering
        depth: Nesting depth, 0 for the top-level call

    Example:
        >>> ctx = CompileContext(language='en')
        >>> ctx.child(is_paragraph=True).depth
        1
    """
    remove_comments: bool = True
    is_paragraph: bool = False
    section_id: str = ""
    language: str = ""
    depth: int = 0

    def child(self, **changes) -> "CompileContext":
        """
        Derive the context of a nested compile

        Args:
            **changes: Fields to override in the child context

        Returns:
            New CompileContext one level deeper
        """
        return replace(self, depth=self.depth + 1, **changes)


class ShieldKind(Enum):
    """
    Kinds of shielded fragments

    BLOCK and INLINE payloads are restored verbatim; MARKDOWN payloads are
    compiled (block mode) when restored.
    """
    BLOCK = "block"
    INLINE = "inline"
    MARKDOWN = "md"

    @property
    def is_literal(self) -> bool:
        return self is not ShieldKind.MARKDOWN


@dataclass
class ShieldFragment:
    """
    A placeholder found in text, queued for resolution

    Attributes:
        kind: Shield kind of the placeholder
        payload: Base64 payload as found in the placeholder
        span: (start, end) of the placeholder in the scanned text
        depth: Compile depth of the text the placeholder was found in
        parent: Fragment whose resolution produced the scanned text, if any
        resolved: Replacement text once resolved
    """
    kind: ShieldKind
    payload: str
    span: Tuple[int, int]
    depth: int = 0
    parent: Optional["ShieldFragment"] = None
    resolved: Optional[str] = field(default=None)
