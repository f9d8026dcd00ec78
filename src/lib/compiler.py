"""
MarkdownPlus document compiler

Compiles MarkdownPlus source to HTML in three stages:

    Preprocessor (text) -> Python-Markdown engine (+ MarkdownPlus extension)
        -> Postprocessor (HTML)

Block renderers and the shield codec call back into the compiler for
nested content (table cells, list items, deferred markdown). Each nested
call runs on a child CompileContext one level deeper and on a fresh
engine; the depth is bounded by settings.max_recursion_depth.
"""

from datetime import datetime
from typing import Callable, Dict, Optional

from ..config.settings import AppSettings, appsettings
from ..models.attributes import AttributeRecord
from ..models.context import CompileContext, ShieldFragment
from .attributes import AttributeParser
from .collaborators import (
    FileResolver,
    LocalFiles,
    MacroDispatcher,
    NullMacros,
    PageContext,
    Permission,
    PermissionEvaluator,
)
from .engine import engine_build, inline_convert
from .errors import RecursionLimitError
from .icons import IconRegistry
from .log import LOG
from .postprocessor import Postprocessor
from .preprocessor import Preprocessor
from .shield import ShieldCodec


class DocumentCompiler:
    """
    Compiles MarkdownPlus documents to HTML

    One compiler serves one page: counters (tables, tabulators, images),
    the abbreviation table and the icon memo live as long as the instance
    and are shared by all nested compiles. Instances are not meant to be
    used from several threads at once.

    Args:
        page: Page the output is for (language, root, body-end sink)
        files: Resolver for includes and the abbreviations file
        permission: Evaluator for '!user=', '!role=', '!visible=' queries
        macros: Optional 'img' / 'link' macros and kirbytag expansion
        settings: Configuration, defaults to the global appsettings
        now: Clock for '!showfrom' / '!showtill'
        verbosity: Logging verbosity when connected to the logger

    Example:
        >>> compiler = DocumentCompiler()
        >>> compiler.compile('Some ~~old~~ text', omit_p_wrapper=True)
        'Some <del>old</del> text'
    """

    def __init__(
        self,
        page: Optional[PageContext] = None,
        files: Optional[FileResolver] = None,
        permission: Optional[PermissionEvaluator] = None,
        macros: Optional[MacroDispatcher] = None,
        settings: Optional[AppSettings] = None,
        now: Optional[Callable[[], datetime]] = None,
        verbosity: int = 0,
    ) -> None:
        self.settings = settings or appsettings
        self.page = page or PageContext()
        self.files = files or LocalFiles()
        self.permission = permission or Permission()
        self.macros = macros or NullMacros()
        self.now = now or datetime.now
        self.verbosity = verbosity

        self.counters: Dict[str, int] = {}
        self.icons = IconRegistry(self.settings.iconPaths_get())
        self.shields = ShieldCodec(self.settings, compile_markdown=self.markdown_resolve)
        self.preprocessor = Preprocessor(self)
        self.postprocessor = Postprocessor(self)
        self.abbreviations: Dict[str, str] = self.preprocessor.abbreviationsFile_load()

    def compile(
        self,
        text: str,
        omit_p_wrapper: bool = False,
        section_id: str = "",
        remove_comments: bool = True,
    ) -> str:
        """
        Compile a document

        Args:
            text: MarkdownPlus source
            omit_p_wrapper: Drop the <p> around single-paragraph output
            section_id: Replaces '#this' / '.this' in css frontmatter fields
            remove_comments: Strip C-style comments and the __END__ marker

        Returns:
            HTML, '' for empty input
        """
        if not text or not text.strip():
            return ""
        context = CompileContext(
            remove_comments=remove_comments,
            section_id=section_id,
            language=self.page.language,
        )
        return self.document_compile(text, context, omit_p_wrapper)

    def compileParagraph(self, text: str, omit_p_wrapper: bool = False) -> str:
        """
        Compile inline-level content (no block structure)

        Args:
            text: MarkdownPlus source of a paragraph
            omit_p_wrapper: Drop an enclosing <p>

        Returns:
            HTML, '' for blank input
        """
        if not text or not text.strip():
            return ""
        context = CompileContext(is_paragraph=True, language=self.page.language)
        return self.document_compile(text, context, omit_p_wrapper)

    def compile_nested(
        self,
        text: str,
        context: CompileContext,
        omit_p_wrapper: bool = False,
        paragraph: bool = False,
    ) -> str:
        """
        Compile content embedded in the document being compiled

        Args:
            text: Nested MarkdownPlus source
            context: Context of the enclosing compile
            omit_p_wrapper: Drop the <p> around single-paragraph output
            paragraph: Compile as inline-level content

        Returns:
            HTML

        Raises:
            RecursionLimitError: nesting deeper than max_recursion_depth
        """
        child = context.child(is_paragraph=paragraph)
        if child.depth > self.settings.max_recursion_depth:
            raise RecursionLimitError(
                f"Error: nested compilation exceeds depth {self.settings.max_recursion_depth}"
            )
        if not text.strip():
            return ""
        return self.document_compile(text, child, omit_p_wrapper)

    def document_compile(self, text: str, context: CompileContext, omit_p_wrapper: bool) -> str:
        LOG(
            f"Compiling {len(text)} chars (depth {context.depth}, "
            f"{'paragraph' if context.is_paragraph else 'block'})",
            level=2 if context.depth == 0 else 3,
        )
        source = self.preprocessor.run(text, context)
        md = engine_build(self, context)
        if context.is_paragraph:
            html = inline_convert(md, source)
        else:
            html = md.convert(source)
        return self.postprocessor.run(html, context, omit_p_wrapper)

    def markdown_resolve(self, text: str, fragment: ShieldFragment) -> str:
        """Compile the payload of a deferred markdown shield"""
        context = CompileContext(language=self.page.language, depth=fragment.depth)
        return self.compile_nested(text, context)

    def index_next(self, kind: str) -> int:
        """
        Next value of a per-compiler counter

        Args:
            kind: Counter name ('table', 'tabulator', 'image')

        Returns:
            1 on first call, incremented on each further call
        """
        self.counters[kind] = self.counters.get(kind, 0) + 1
        return self.counters[kind]

    def attributes_parse(self, text: str, context: CompileContext) -> AttributeRecord:
        parser = AttributeParser(
            language=context.language, permission=self.permission, now=self.now
        )
        return parser.parse(text)

    def bodyEndInjections_get(self) -> str:
        return "\n".join(self.page.body_end_injections)
