"""
Attribute descriptor parser

Turns the '{: ... }' mini-language into an AttributeRecord. The scan is a
small left-to-right tokenizer: each token is recognized by its lead
character, consumed with an anchored match at the current position, and
applied to the record. Nothing here raises; tokens that fit no rule become
free text.

Token forms:
    <tag        element name ('>' optional)
    #id         element id (last one wins)
    .cls        class, '.a.b' adds both
    key:value   CSS declaration, value may be quoted
    key=value   HTML attribute, value may be quoted
    !cmd[=arg]  meta command (literal, inline, html, lang, off, visible,
                showfrom, showtill, user, role)
    'text'      free text, as are bare words

Example:
    >>> rec = AttributeParser().parse("<aside #note .box.wide color:red; aria-live=polite")
    >>> rec.tag, rec.id, rec.cls
    ('aside', 'note', 'box wide')
    >>> rec.html_attrs
    " id='note' class='box wide' style='color:red;' aria-live='polite'"
"""

import re
from datetime import datetime
from typing import Callable, Optional

from ..models.attributes import AttributeRecord, SKIP_TAG
from .collaborators import Permission, PermissionEvaluator
from .log import LOG


_STYLE_RE = re.compile(r"([\w-]+):\s*")
_ATTR_RE = re.compile(r"([\w-]+)=\s*")
_QUOTED_RE = re.compile(r"(['\"])(.*?)\1")
_STYLE_VALUE_RE = re.compile(r"[^\s;]+;?")
_ATTR_VALUE_RE = re.compile(r"[^\s'\"]+")
_WORD_RE = re.compile(r"\S+")
_TAG_RE = re.compile(r"<(\w[\w-]*)>?")
_NAME_RE = re.compile(r"[\w-]+")
_META_RE = re.compile(r"!([\w-]+)(?:\s*[=:]\s*(\S+))?")

HIDDEN_STYLE = "display:none;"


class AttributeParser:
    """
    Tokenizer for attribute descriptors

    Args:
        language: Active document language, used by '!lang='
        permission: Evaluator for '!user=', '!role=' and '!visible=' queries
        now: Clock used by '!showfrom' and '!showtill'
    """

    def __init__(
        self,
        language: str = "",
        permission: Optional[PermissionEvaluator] = None,
        now: Optional[Callable[[], datetime]] = None,
    ) -> None:
        self.language = language
        self.permission = permission or Permission()
        self.now = now or datetime.now

    def parse(self, text: str) -> AttributeRecord:
        """
        Parse an attribute descriptor

        Args:
            text: Descriptor body without the surrounding '{:' and '}'

        Returns:
            The populated AttributeRecord
        """
        record = AttributeRecord()
        text = (text or "").replace("&lt;", "<")
        pos = 0
        while pos < len(text):
            char = text[pos]
            if char.isspace():
                pos += 1
            elif char.isalpha():
                pos = self.word_consume(text, pos, record)
            elif char == "<":
                pos = self.tag_consume(text, pos, record)
            elif char in "#.":
                pos = self.selector_consume(text, pos, record)
            elif char == "!":
                pos = self.meta_consume(text, pos, record)
            elif char in "'\"":
                pos = self.quoted_consume(text, pos, record)
            else:
                pos = self.text_consume(text, pos, record)

        record.style = record.style.strip()
        return record

    def word_consume(self, text: str, pos: int, record: AttributeRecord) -> int:
        """A token starting with a letter: style, attribute or plain word"""
        style = _STYLE_RE.match(text, pos)
        if style and not text.startswith("//", style.end(1) + 1):
            pos = style.end()
            quoted = _QUOTED_RE.match(text, pos)
            if quoted:
                record.style += f"{style.group(1)}:{quoted.group(2)}; "
                return quoted.end()
            value = _STYLE_VALUE_RE.match(text, pos)
            if value:
                record.style += f"{style.group(1)}:{value.group(0).rstrip(';')}; "
                return value.end()
            return pos

        attr = _ATTR_RE.match(text, pos)
        if attr:
            pos = attr.end()
            quoted = _QUOTED_RE.match(text, pos)
            if quoted:
                record.misc_attrs[attr.group(1)] = quoted.group(2)
                record.quotes[attr.group(1)] = quoted.group(1)
                return quoted.end()
            value = _ATTR_VALUE_RE.match(text, pos)
            if value:
                record.misc_attrs[attr.group(1)] = value.group(0)
                record.quotes[attr.group(1)] = "'"
                return value.end()
            return pos

        return self.text_consume(text, pos, record)

    def tag_consume(self, text: str, pos: int, record: AttributeRecord) -> int:
        match = _TAG_RE.match(text, pos)
        if not match:
            return self.text_consume(text, pos, record)
        record.tag = match.group(1)
        return match.end()

    def selector_consume(self, text: str, pos: int, record: AttributeRecord) -> int:
        name = _NAME_RE.match(text, pos + 1)
        if not name:
            return self.text_consume(text, pos, record)
        if text[pos] == "#":
            record.id = name.group(0)
        else:
            record.cls = f"{record.cls} {name.group(0)}" if record.cls else name.group(0)
        return name.end()

    def quoted_consume(self, text: str, pos: int, record: AttributeRecord) -> int:
        quoted = _QUOTED_RE.match(text, pos)
        if not quoted:
            # unterminated: the rest is text
            self.text_append(record, text[pos + 1:].strip())
            return len(text)
        self.text_append(record, quoted.group(2))
        return quoted.end()

    def text_consume(self, text: str, pos: int, record: AttributeRecord) -> int:
        word = _WORD_RE.match(text, pos)
        if not word:
            return pos + 1
        self.text_append(record, word.group(0))
        return word.end()

    def text_append(self, record: AttributeRecord, text: str) -> None:
        if text:
            record.text = f"{record.text} {text}" if record.text else text

    def meta_consume(self, text: str, pos: int, record: AttributeRecord) -> int:
        match = _META_RE.match(text, pos)
        if not match:
            return self.text_consume(text, pos, record)
        self.meta_apply(match.group(1).lower(), match.group(2) or "", record)
        return match.end()

    def meta_apply(self, command: str, arg: str, record: AttributeRecord) -> None:
        """
        Apply one '!command' to the record

        Unknown commands are ignored.
        """
        if command == "literal":
            record.literal = arg.lower() != "false"

        elif command == "inline":
            record.inline = arg.lower() != "false"

        elif command == "html":
            record.is_html = True

        elif command == "lang":
            record.lang = arg
            if arg in ("skip", "none") or arg != self.language:
                record.tag = SKIP_TAG

        elif command == "off":
            self.hidden_set(record)

        elif command in ("visible", "visibility"):
            if not arg or arg.lower() == "true":
                return
            if arg.lower() == "false":
                self.hidden_set(record)
            elif not self.permission.evaluate(arg):
                record.tag = SKIP_TAG

        elif command in ("user", "role"):
            if not self.permission.evaluate(f"{command}={arg}"):
                record.tag = SKIP_TAG

        elif command in ("showtill", "showfrom"):
            moment = self.datetime_parse(arg)
            if moment is None:
                return
            now = self.now()
            if moment.tzinfo is not None:
                moment = moment.astimezone().replace(tzinfo=None)
            if now.tzinfo is not None:
                now = now.astimezone().replace(tzinfo=None)
            expired = now > moment if command == "showtill" else now < moment
            if expired:
                record.tag = SKIP_TAG
                self.hidden_set(record)

    def hidden_set(self, record: AttributeRecord) -> None:
        record.style += HIDDEN_STYLE + " "

    def datetime_parse(self, value: str) -> Optional[datetime]:
        try:
            return datetime.fromisoformat(value)
        except ValueError:
            LOG(f"Ignoring unparseable date '{value}'", level=2)
            return None
