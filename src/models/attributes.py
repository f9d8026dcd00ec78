"""
Attribute record model

Result of parsing a '{: ... }' attribute descriptor.
"""

from dataclasses import dataclass, field
from typing import Dict, Optional


SKIP_TAG = "skip"


@dataclass
class AttributeRecord:
    """
    Structured attributes parsed from an attribute descriptor

    Attributes:
        tag: Element name from '<tag', or 'skip' when the element must be omitted
        id: Element id from '#id'
        cls: Space-joined class names from '.cls'
        style: Raw CSS collected from 'key:value' tokens and meta commands
        misc_attrs: Other HTML attributes from 'key=value' tokens (insertion order)
        quotes: Quote character used for each misc attribute value
        text: Free text collected from quoted strings and bare words
        literal: True if '!literal' was given, None if unset
        inline: True if '!inline' was given, None if unset
        lang: Language code from '!lang='
        is_html: True if '!html' was given (raw passthrough)

    Example:
        >>> rec = AttributeRecord(id='x', cls='a b')
        >>> rec.html_attrs
        " id='x' class='a b'"
    """
    tag: str = ""
    id: str = ""
    cls: str = ""
    style: str = ""
    misc_attrs: Dict[str, str] = field(default_factory=dict)
    quotes: Dict[str, str] = field(default_factory=dict)
    text: str = ""
    literal: Optional[bool] = None
    inline: Optional[bool] = None
    lang: str = ""
    is_html: bool = False

    @property
    def is_skipped(self) -> bool:
        return self.tag == SKIP_TAG

    @property
    def html_attrs(self) -> str:
        """
        Ready-to-splice HTML attribute string

        Order is id, class, style, then misc attributes. Each part is only
        present when non-empty and starts with a space.
        """
        out = ""
        if self.id:
            out += f" id='{self.id}'"
        if self.cls:
            out += f" class='{self.cls}'"
        if self.style:
            out += f" style='{self.style}'"
        for key, value in self.misc_attrs.items():
            quote = self.quotes.get(key, "'")
            out += f" {key}={quote}{value}{quote}"
        return out

    @property
    def attr_map(self) -> Dict[str, str]:
        """Attributes as a mapping, same order as html_attrs"""
        out: Dict[str, str] = {}
        if self.id:
            out["id"] = self.id
        if self.cls:
            out["class"] = self.cls
        if self.style:
            out["style"] = self.style
        out.update(self.misc_attrs)
        return out
