"""
HTML-level postprocessing

Runs on the baseline engine's output:

    1. '<p>{{ ... }}</p>' -> '{{ ... }}'
    2. kirbytags '(link: ...)', '(image: ...)', ... via the macro dispatcher
    3. code blocks: Pygments highlighting, optional inline compilation
    4. typographic substitutions (optional)
    5. removal of a single enclosing <p> (on request)
    6. '{: ...}' attribute injection
    7. shield resolution
    8. removal of <literal> wrappers
    9. '@#N;' -> '&#N;'
"""

import html as htmllib
import re
from typing import TYPE_CHECKING, Optional

from pygments import highlight
from pygments.formatters import HtmlFormatter
from pygments.lexer import Lexer
from pygments.lexers import TextLexer, get_lexer_by_name
from pygments.util import ClassNotFound

from ..models.context import CompileContext, ShieldKind
from .lexer import MarkdownPlusLexer
from .log import LOG
from .smartypants import smartypants

if TYPE_CHECKING:
    from .compiler import DocumentCompiler


KIRBYTAG_NAMES = "date|email|file|gist|image|link|tel|twitter|video"

_MACRO_PARAGRAPH_RE = re.compile(r"<p>(\{\{.*?\}\})</p>", re.DOTALL)
_KIRBYTAG_RE = re.compile(rf"\(({KIRBYTAG_NAMES}):.*?\)", re.DOTALL)
_KIRBY_LINK_RE = re.compile(r"""^\(link:\s*["']?([^\s"']+)["']?(.*)\)""", re.DOTALL)
_KIRBY_IMAGE_RE = re.compile(r"""^\(image:\s*["']?([^\s"']+)["']?(.*)\)""", re.DOTALL)
_CODE_BLOCK_RE = re.compile(
    r'<pre><code(?: class="language-([^"]+)")?>(.*?)</code></pre>', re.DOTALL
)
_BARE_CODE_RE = re.compile(r"<code>(.*?)</code>", re.DOTALL)
_P_OPEN_RE = re.compile(r"<p[\s>]")
_P_WRAPPER_RE = re.compile(r"^(\s*)<p>(.*)</p>(\s*)$", re.DOTALL)
_LEADING_DESCRIPTOR_RE = re.compile(r"^\s*(?<!\\)\{:(.*?)\}\s*(.*)", re.DOTALL)
_HAS_TAG_RE = re.compile(r"(?<!\\)<\w+")
_DESCRIPTOR_LINE_RE = re.compile(r"^<p>\s*\{:(.*?)\}\s*</p>$")
_INLINE_DESCRIPTOR_RE = re.compile(r"(.*)\{:(.*?)\}(.*)")
_FIRST_TAG_RE = re.compile(r"<([a-zA-Z][\w-]*)([^>]*?)(\s*/?)>")
_ESCAPED_CHAR_RE = re.compile(r"@#(\d+);")

MDPLUS_LANGUAGES = ("mdplus", "markdownplus")


class Postprocessor:
    """
    Output-to-output pass behind the baseline engine

    Args:
        compiler: Owning compiler (settings, macros, shields, nested compilation)
    """

    def __init__(self, compiler: "DocumentCompiler") -> None:
        self.compiler = compiler

    def run(self, html: str, context: CompileContext, omit_p_wrapper: bool = False) -> str:
        settings = self.compiler.settings
        html = _MACRO_PARAGRAPH_RE.sub(r"\1", html)
        html = self.kirbytags_expand(html)
        if settings.compile_code_blocks:
            html = self.codeElements_compile(html, context)
        html = self.codeBlocks_process(html)
        if settings.enable_smartypants:
            html = smartypants(html)
        if omit_p_wrapper:
            html = self.pWrapper_remove(html)
        html = self.attributes_inject(html, context)
        html = self.compiler.shields.unshield(html, depth=context.depth)
        html = html.replace("<literal>", "").replace("</literal>", "")
        return _ESCAPED_CHAR_RE.sub(r"&#\1;", html)

    def kirbytags_expand(self, html: str) -> str:
        """
        Expand '(name: ...)' tags not belonging to a '{{ macro(...) }}' call

        'link' and 'image' go to the 'link' and 'img' macros, everything
        else (and whatever these decline) to the dispatcher's tag_expand().
        Tags nobody handles stay as they are.
        """
        macros = self.compiler.macros
        for match in _KIRBYTAG_RE.finditer(html):
            tag = match.group(0)
            if re.search(r"\{\{\s*[\w-]+" + re.escape(tag), html):
                continue
            value = re.sub(r"<[^>]*>", "", tag.replace("\n", " "))

            result: Optional[str] = None
            link = _KIRBY_LINK_RE.match(value)
            image = _KIRBY_IMAGE_RE.match(value)
            if link:
                result = macros.macro_try("link", self.macroArgs_make(f"url:'{link.group(1)}'{link.group(2)}"))
            elif image:
                result = macros.macro_try("img", self.macroArgs_make(f"src:'{image.group(1)}'{image.group(2)}"))
            if result is None:
                result = macros.tag_expand(value)
            if result is None:
                LOG(f"Kirbytag left unexpanded: {value}", level=3)
                continue
            html = html.replace(tag, result)
        return html

    @staticmethod
    def macroArgs_make(args: str) -> str:
        """Insert commas between 'key:' arguments unless there are any already"""
        if "," not in args:
            args = re.sub(r"(\s\w+:)", r",\1", args)
        return args

    def codeElements_compile(self, html: str, context: CompileContext) -> str:
        """Inline-compile the content of bare <code> elements"""
        def element_compile(match: "re.Match[str]") -> str:
            inner = self.compiler.compile_nested(
                match.group(1), context, omit_p_wrapper=True, paragraph=True
            )
            return f"<code>{inner}</code>"
        return _BARE_CODE_RE.sub(element_compile, html)

    def codeBlocks_process(self, html: str) -> str:
        """
        Highlight fenced code blocks and shield every <pre> block

        Shielded blocks are out of reach for the attribute injection and
        the typographic substitutions.
        """
        settings = self.compiler.settings
        shields = self.compiler.shields

        def block_process(match: "re.Match[str]") -> str:
            language, code = match.group(1), match.group(2)
            if language and settings.highlight_code_blocks:
                block = self.code_highlight(htmllib.unescape(code), language)
            else:
                block = match.group(0)
            return shields.shield(block, ShieldKind.BLOCK)

        return _CODE_BLOCK_RE.sub(block_process, html)

    def code_highlight(self, code: str, language: str) -> str:
        lexer: Lexer
        try:
            if language.lower() in MDPLUS_LANGUAGES:
                lexer = MarkdownPlusLexer()
            else:
                lexer = get_lexer_by_name(language)
        except ClassNotFound:
            LOG(f"No lexer for '{language}', using plain text", level=2)
            lexer = TextLexer()
        formatter = HtmlFormatter(style=self.compiler.settings.pygments_style, noclasses=True)
        return highlight(code, lexer, formatter).strip()

    @staticmethod
    def pWrapper_remove(html: str) -> str:
        """Remove the enclosing <p> of output consisting of exactly one paragraph"""
        if len(_P_OPEN_RE.findall(html)) != 1:
            return html
        return _P_WRAPPER_RE.sub(r"\1\2\3", html)

    def attributes_inject(self, html: str, context: CompileContext) -> str:
        """
        Apply '{: ...}' descriptors found in rendered HTML

        - output starting with a descriptor is wrapped in a span (paragraph
          context) or div carrying the attributes
        - a paragraph consisting of a descriptor applies to the first tag of
          the next line
        - a descriptor inside a line applies to the first tag of that line
        """
        if "{:" not in html:
            return html
        wrapper = "span" if context.is_paragraph else "div"

        leading = _LEADING_DESCRIPTOR_RE.match(html)
        if leading:
            record = self.compiler.attributes_parse(leading.group(1), context)
            if record.is_skipped:
                return ""
            return f"<{wrapper}{record.html_attrs}>{leading.group(2)}</{wrapper}>"
        if not _HAS_TAG_RE.search(html):
            html = f"<{wrapper}>{html}</{wrapper}>"

        out = []
        pending: Optional[str] = None
        for line in html.split("\n"):
            if pending is not None:
                out.append(self.attributes_apply(line, pending, context))
                pending = None
                continue

            descriptor = _DESCRIPTOR_LINE_RE.match(line)
            if descriptor:
                pending = descriptor.group(1)
                continue

            inline = _INLINE_DESCRIPTOR_RE.match(line)
            if inline:
                line = inline.group(1) + inline.group(3)
                if _FIRST_TAG_RE.search(line):
                    line = self.attributes_apply(line, inline.group(2), context)
                else:
                    pending = inline.group(2)
            out.append(line)
        return "\n".join(out)

    def attributes_apply(self, line: str, descriptor: str, context: CompileContext) -> str:
        """
        Merge a descriptor into the first opening tag of line

        id replaces an existing id, class and style are prepended to existing
        values, other attributes are added when not present. A 'skip' result
        drops the line.
        """
        tag = _FIRST_TAG_RE.search(line)
        if not tag:
            return line
        record = self.compiler.attributes_parse(descriptor, context)
        if record.is_skipped:
            return ""

        attrs = tag.group(2)
        if record.id:
            attrs = re.sub(r"""\sid=(['"]).*?\1""", "", attrs) + f" id='{record.id}'"
        if record.cls:
            if "class=" in attrs:
                attrs = re.sub(r"""(class=['"])""", lambda m: f"{m.group(1)}{record.cls} ", attrs, count=1)
            else:
                attrs += f" class='{record.cls}'"
        if record.style:
            style = record.style.rstrip("; ") + ";"
            if "style=" in attrs:
                attrs = re.sub(r"""(style=['"])""", lambda m: f"{m.group(1)}{style} ", attrs, count=1)
            else:
                attrs += f" style='{style}'"
        for key, value in record.misc_attrs.items():
            if f"{key}=" not in attrs:
                quote = record.quotes.get(key, "'")
                attrs += f" {key}={quote}{value}{quote}"

        element = f"<{tag.group(1)}{attrs}{tag.group(3)}>"
        return line[:tag.start()] + element + line[tag.end():]
