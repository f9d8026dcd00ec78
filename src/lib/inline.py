"""
Inline extension set

Python-Markdown inline processors for the symmetric markers (strike,
subscript, superscript, kbd, mark, insert, underline, samp), icons, and
the reworked image and link syntax.

Marker processors match only the opening marker. handleMatch() then looks
for the closing part at that position; if there is none, the opening marker
is returned as plain text covering exactly the marker length, so scanning
resumes right behind it and the marker is never re-interpreted.
"""

import re
import xml.etree.ElementTree as etree
from typing import TYPE_CHECKING, Optional, Tuple, Union

from markdown.inlinepatterns import InlineProcessor

from ..models.inline import INLINE_MARKERS, InlineMarker
from .errors import IconNotFoundError
from .log import LOG

if TYPE_CHECKING:
    from markdown import Markdown
    from .compiler import DocumentCompiler


MatchResult = Tuple[Union[etree.Element, str, None], Optional[int], Optional[int]]

ICON_PRIORITY = 65

_IMAGE_CAPTIONED_RE = re.compile(r"""!\[(.+?)\]\(((.+?)(["'])(.+?)\4)\s*\)""")
_IMAGE_RE = re.compile(r"!\[(.+?)\]\((.+?)\)")
_LINK_RE = re.compile(r"\[([^\]]+)\]\(([^)]+)\)")
_ICON_RE = re.compile(r":(\w+):")
_QUOTED_RE = re.compile(r"""^(["'])(.+)\1\s*$""")


def quotes_strip(text: str) -> str:
    """Remove one pair of matching surrounding quotes"""
    match = _QUOTED_RE.match(text)
    return match.group(2) if match else text


def quotes_escape(text: str) -> str:
    return text.replace('"', "&quot;").replace("'", "&apos;")


def argument_quote(text: str) -> str:
    """Quote a macro argument value with a quote character it does not contain"""
    quote = "'" if "'" not in text else '"'
    return f"{quote}{text}{quote}"


class MarkerInlineProcessor(InlineProcessor):
    """
    One symmetric marker, e.g. '~~strike~~' -> <del>

    The inner text stays subject to the lower-priority inline patterns.
    """

    def __init__(self, marker: InlineMarker, md: "Markdown") -> None:
        super().__init__(marker.opener_pattern, md)
        self.marker = marker
        self.closing = marker.closing_compile()

    def handleMatch(self, m: "re.Match[str]", data: str) -> MatchResult:
        closed = self.closing.match(data, m.start(0))
        if not closed:
            LOG(f"Unclosed '{self.marker.marker}' kept as text", level=3)
            return self.marker.marker, m.start(0), m.start(0) + len(self.marker.marker)
        element = etree.Element(self.marker.tag)
        element.text = closed.group(1)
        return element, m.start(0), closed.end(0)


class IconInlineProcessor(InlineProcessor):
    """':name:' references to known icons"""

    def __init__(self, pattern: str, md: "Markdown", compiler: "DocumentCompiler") -> None:
        super().__init__(pattern, md)
        self.compiler = compiler

    def handleMatch(self, m: "re.Match[str]", data: str) -> MatchResult:
        closed = _ICON_RE.match(data, m.start(0))
        registry = self.compiler.icons
        strict = self.compiler.settings.strict_icons
        if closed and registry.exists(closed.group(1)):
            html = registry.icon_render(closed.group(1), self.compiler.page)
            return self.md.htmlStash.store(html), m.start(0), closed.end(0)
        if closed and strict:
            raise IconNotFoundError(f"Error: icon '{closed.group(1)}' not found.")
        return ":", m.start(0), m.start(0) + 1


class ImageInlineProcessor(InlineProcessor):
    """
    '![alt](src "caption")' images

    A src without '/' is a file of the current page. The 'img' macro gets
    the first chance to render; otherwise a <figure> is produced when there
    is a caption and a bare <img> when there is none.
    """

    def __init__(self, pattern: str, md: "Markdown", compiler: "DocumentCompiler") -> None:
        super().__init__(pattern, md)
        self.compiler = compiler

    def handleMatch(self, m: "re.Match[str]", data: str) -> MatchResult:
        match = _IMAGE_CAPTIONED_RE.match(data, m.start(0)) or _IMAGE_RE.match(data, m.start(0))
        if not match:
            return None, None, None

        alt = quotes_strip(match.group(1))
        src = quotes_strip(match.group(2))
        caption = ""
        split = re.match(r"^(.*?)\s+(.*)", src)
        if split:
            src = quotes_strip(split.group(1))
            caption = quotes_strip(split.group(2))
        if "/" not in src:
            src = self.compiler.page.file_url(src)

        inx = self.compiler.index_next("image")
        args = f"src:'{src}', alt:'{quotes_escape(alt)}', caption:'{quotes_escape(caption)}', inx:{inx}"
        html = self.compiler.macros.macro_try("img", args)
        if html is not None:
            return self.md.htmlStash.store(html), match.start(0), match.end(0)

        image = etree.Element("img")
        image.set("src", src)
        image.set("alt", alt)
        if not caption:
            return image, match.start(0), match.end(0)
        figure = etree.Element("figure")
        figure.append(image)
        figcaption = etree.SubElement(figure, "figcaption")
        figcaption.text = caption
        # stashed as block-level html, a figure alone in its paragraph loses the <p>
        return self.md.htmlStash.store(self.md.serializer(figure)), match.start(0), match.end(0)


class LinkInlineProcessor(InlineProcessor):
    """
    '[text](url "title")' links

    The 'link' macro gets the first chance to render.
    """

    def __init__(self, pattern: str, md: "Markdown", compiler: "DocumentCompiler") -> None:
        super().__init__(pattern, md)
        self.compiler = compiler

    def handleMatch(self, m: "re.Match[str]", data: str) -> MatchResult:
        match = _LINK_RE.match(data, m.start(0))
        if not match:
            return None, None, None

        text, target = match.group(1), match.group(2).strip()
        title = ""
        split = re.match(r"(.*?)\s+(.*)", target)
        if split:
            target, title = split.group(1), split.group(2).strip("\"'")
        url = target.strip("\"'")

        args = f"url:'{url}', text:{argument_quote(text)}, title:{argument_quote(title)}"
        html = self.compiler.macros.macro_try("link", args)
        if html is not None:
            return self.md.htmlStash.store(html), match.start(0), match.end(0)

        anchor = etree.Element("a")
        anchor.set("href", url)
        if title:
            anchor.set("title", title)
        anchor.text = text
        return anchor, match.start(0), match.end(0)


def inlineProcessors_register(md: "Markdown", compiler: "DocumentCompiler") -> None:
    """
    Register the inline extension set with an engine

    Image and link take over the baseline 'image_link' and 'link' slots.
    """
    for marker in INLINE_MARKERS:
        md.inlinePatterns.register(MarkerInlineProcessor(marker, md), marker.name, marker.priority)
    if compiler.settings.enable_icons:
        md.inlinePatterns.register(
            IconInlineProcessor(r":(?=\w+:)", md, compiler), "mdp_icon", ICON_PRIORITY
        )
    md.inlinePatterns.register(ImageInlineProcessor(r"\!\[", md, compiler), "image_link", 150)
    md.inlinePatterns.register(LinkInlineProcessor(r"(?<!\!)\[", md, compiler), "link", 160)
