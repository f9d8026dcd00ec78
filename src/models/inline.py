"""
Inline marker models

Declares the inline kinds and the marker table the inline extension set is
built from.
"""

import re
from enum import Enum
from dataclasses import dataclass
from typing import List


class InlineKind(Enum):
    """Inline element types handled by the inline extension set"""
    STRIKE = "strike"
    SUBSCRIPT = "subscript"
    SUPERSCRIPT = "superscript"
    KBD = "kbd"
    MARK = "mark"
    INSERT = "insert"
    UNDERLINE = "underline"
    SAMP = "samp"
    ICON = "icon"
    IMAGE = "image"
    LINK = "link"
    TEXT = "text"


@dataclass(frozen=True)
class InlineMarker:
    """
    Specification of a symmetric inline marker

    Attributes:
        kind: Inline kind produced
        marker: Opening marker text
        closing: Regex matched at the opening position; group 1 is the inner text
        tag: HTML element rendered
        priority: Python-Markdown inline pattern priority (higher runs first)
        opener: Regex of the opening marker, defaults to the escaped marker
    """
    kind: InlineKind
    marker: str
    closing: str
    tag: str
    priority: int
    opener: str = ""

    @property
    def opener_pattern(self) -> str:
        return self.opener or re.escape(self.marker)

    @property
    def name(self) -> str:
        return f"mdp_{self.kind.value}"

    def closing_compile(self) -> "re.Pattern[str]":
        return re.compile(self.closing, re.DOTALL)


INLINE_MARKERS: List[InlineMarker] = [
    InlineMarker(InlineKind.SAMP,        "``", r"``(?!`)(.+?)``(?!`)", "samp", 195, r"(?<!`)``(?!`)"),
    InlineMarker(InlineKind.STRIKE,      "~~", r"~~(.+?)~~",           "del",  75),
    InlineMarker(InlineKind.SUBSCRIPT,   "~",  r"~([^~]{1,9}?)~",      "sub",  74),
    InlineMarker(InlineKind.KBD,         "^^", r"\^\^(.{1,5}?)\^\^",   "kbd",  73),
    InlineMarker(InlineKind.SUPERSCRIPT, "^",  r"\^([^\^]{1,20}?)\^",  "sup",  72),
    InlineMarker(InlineKind.MARK,        "==", r"==(.+?)==",           "mark", 71),
    InlineMarker(InlineKind.INSERT,      "++", r"\+\+(.+?)\+\+",       "ins",  69),
    InlineMarker(InlineKind.UNDERLINE,   "__", r"__(.+?)__",           "u",    61),
]
