"""
Text-level preprocessing

Runs on the raw MarkdownPlus source before the baseline engine sees it:

    1. C-style comments and the __END__ marker
    2. frontmatter fields ('key: value' followed by a '----' line)
    3. abbreviations ('*[KEY]: expansion')
    4. backslash escapes -> '@#ord;' (turned into '&#ord;' after postprocessing)
    5. '(include: ...)' instructions
    6. engine quirks: blank line before lists, bare HTML lines kept raw
    7. line breaks ('\\' at line end, ' BR ')
    8. blank lines around lone '{{ ... }}' lines
"""

import html
import re
from pathlib import Path
from typing import TYPE_CHECKING, Dict, List

import yaml

from ..models.context import CompileContext, ShieldKind
from .errors import IncludeError
from .log import LOG
from .textutil import (
    arguments_parse,
    cStyleComments_remove,
    codeSpans_split,
    fencedCode_split,
    fileEnd_zap,
    htmlComments_remove,
)

if TYPE_CHECKING:
    from .compiler import DocumentCompiler


_FRONTMATTER_RE = re.compile(r"^\s*(\w+):([^\n]*)\n----\n")
_ABBREVIATION_RE = re.compile(r"^\*\[(.+?)\]:[ \t]*(.*?)(\n|$)", re.MULTILINE)
_INCLUDE_RE = re.compile(r"\(include:(.*?)\)")
_ESCAPED_CHAR_RE = re.compile(r"@#(\d+);")
_BODY_RE = re.compile(r"<body[^>]*>(.*?)(</body>|$)", re.DOTALL | re.IGNORECASE)
_LINE_BREAK_RE = re.compile(r"\\\n|\s(?<!\\)BR\s")
_PLACEHOLDER_LINE_RE = re.compile(r"(\n\{\{.*?\}\}\n)")
_AUTOLINK_RE = re.compile(r"^<([a-zA-Z][\w+.-]*:[^>\s]*|[^@>\s]+@[^@>\s]+\.\w+)>$")


def prose_apply(text: str, function) -> str:
    """Apply function to the parts of text outside fenced code"""
    return "".join(
        segment if is_code else function(segment)
        for is_code, segment in fencedCode_split(text)
    )


class Preprocessor:
    """
    Source-to-source pass in front of the baseline engine

    Args:
        compiler: Owning compiler (page context, files, abbreviations, shields)
    """

    def __init__(self, compiler: "DocumentCompiler") -> None:
        self.compiler = compiler

    def run(self, text: str, context: CompileContext) -> str:
        if context.remove_comments:
            text = cStyleComments_remove(text)
            text = fileEnd_zap(text)
        text = self.frontmatter_extract(text, context)
        text = self.abbreviations_apply(text)
        text = self.escapes_shield(text)
        text = self.includes_expand(text)
        text = self.engineQuirks_fix(text)
        text = prose_apply(text, lambda s: _LINE_BREAK_RE.sub("<br>\n", s))
        return _PLACEHOLDER_LINE_RE.sub(r"\n\1\n", text)

    def frontmatter_extract(self, text: str, context: CompileContext) -> str:
        """Move leading 'key: value' / '----' blocks into the page fields"""
        match = _FRONTMATTER_RE.match(text)
        while match:
            key, value = match.group(1), match.group(2).strip()
            if "css" in key and context.section_id:
                value = value.replace("#this", f"#{context.section_id}")
                value = value.replace(".this", f".{context.section_id}")
            self.compiler.page.field_append(key, value)
            LOG(f"Frontmatter field '{key}' extracted", level=2)
            text = text[match.end():]
            match = _FRONTMATTER_RE.match(text)
        return text

    def abbreviationsFile_load(self) -> Dict[str, str]:
        """
        Read the site-wide abbreviations file

        Returns:
            KEY -> expansion mapping, empty if the file is missing or not a mapping
        """
        name = self.compiler.settings.abbreviations_file
        files = self.compiler.files
        if not name or not files.exists(name):
            return {}
        try:
            table = yaml.safe_load(files.read(name))
        except yaml.YAMLError as e:
            LOG(f"Ignoring malformed abbreviations file '{name}': {e}", level=2)
            return {}
        if not isinstance(table, dict):
            return {}
        return {str(key): str(value) for key, value in table.items()}

    def abbreviations_apply(self, text: str) -> str:
        """Register '*[KEY]: value' definitions and wrap every KEY in <abbr>"""
        abbreviations = self.compiler.abbreviations
        for match in _ABBREVIATION_RE.finditer(text):
            abbreviations[match.group(1)] = match.group(2).strip()
        text = _ABBREVIATION_RE.sub("", text)
        if not abbreviations:
            return text

        keys = sorted(abbreviations, key=len, reverse=True)
        pattern = re.compile(
            r"(<abbr\b[^>]*>.*?</abbr>)|\b(" + "|".join(re.escape(k) for k in keys) + r")\b"
        )

        def abbreviation_wrap(match: "re.Match[str]") -> str:
            if match.group(1):
                return match.group(1)
            key = match.group(2)
            return f"<abbr title='{html.escape(abbreviations[key])}'>{key}</abbr>"

        return prose_apply(text, lambda s: pattern.sub(abbreviation_wrap, s))

    def escapes_shield(self, text: str) -> str:
        r"""
        Replace '\c' by '@#ord(c);' outside code

        A backslash in front of a newline is left for the line break step.
        """
        def prose_escape(segment: str) -> str:
            out = []
            for is_code, chunk in codeSpans_split(segment):
                if not is_code:
                    chunk = re.sub(r"\\([^\n])", lambda m: f"@#{ord(m.group(1))};", chunk)
                out.append(chunk)
            return "".join(out)

        return prose_apply(text, prose_escape)

    def includes_expand(self, text: str) -> str:
        if "(include:" not in text:
            return text
        return prose_apply(text, lambda s: _INCLUDE_RE.sub(lambda m: self.include_render(m.group(1)), s))

    def include_render(self, argument_string: str) -> str:
        """
        Expand one include instruction

        Args:
            argument_string: Text between '(include:' and ')', e.g.
                "chapters/ exclude:'^x' wrapperTag:article class:toc"

        Returns:
            Shielded file contents, '' when nothing matches

        Raises:
            IncludeError: a matching file could not be read
        """
        positional, options = arguments_parse(_ESCAPED_CHAR_RE.sub(
            lambda m: chr(int(m.group(1))), argument_string
        ))
        if not positional:
            return ""
        target = str(positional[0]).strip()

        if target.startswith("http"):
            return f"\n<iframe src='{target}' class=\"mdp-iframe\"></iframe>\n"

        if "/" not in target:
            target = str(Path(self.compiler.page.root) / target)
        exclude = options.get("exclude")
        paths = self.compiler.files.resolve(target, None if exclude is None else str(exclude))
        if not paths:
            LOG(f"Include '{target}': no files found", level=2)
            return ""

        literal = bool(options.get("literal", False))
        contents = [self.file_read(path) for path in paths]
        LOG(f"Include '{target}': {len(paths)} file(s)", level=2)

        if literal:
            source = html.escape("".join(contents))
            return self.compiler.shields.shield(f"<pre>{source}</pre>", ShieldKind.BLOCK)

        out = "".join(
            self.includedFile_shield(path, cStyleComments_remove(content)) + "\n"
            for path, content in zip(paths, contents)
        )
        if len(paths) > 1:
            tag = options.get("wrapperTag", "section")
            cls = f"mdp-section-{len(paths)} {options.get('class', '')}".strip()
            return f"\n\n<{tag} class=\"{cls}\">\n{out}</{tag}>\n\n"
        return f"\n\n{out}\n\n"

    def file_read(self, path: Path) -> str:
        try:
            return self.compiler.files.read(path)
        except OSError as e:
            raise IncludeError(f"Error: unable to read '{path}' for including: {e}") from e

    def includedFile_shield(self, path: Path, content: str) -> str:
        shields = self.compiler.shields
        extension = Path(path).suffix.lower()
        if extension == ".txt":
            return shields.shield(f"<pre>{content}</pre>", ShieldKind.BLOCK)
        if extension == ".html":
            content = htmlComments_remove(content)
            body = _BODY_RE.search(content)
            if body:
                content = body.group(1)
            return shields.shield(content, ShieldKind.BLOCK)
        if extension == ".md":
            return shields.shield(content, ShieldKind.MARKDOWN)
        return shields.shield(content, ShieldKind.BLOCK)

    def engineQuirks_fix(self, text: str) -> str:
        """
        Adapt the source to the baseline engine

        Lists directly following a prose line get a separating blank line;
        a line that is a bare HTML tag sequence is wrapped in <literal> so
        the engine passes it through untouched.
        """
        def lines_fix(segment: str) -> str:
            lines: List[str] = segment.split("\n")
            for i, line in enumerate(lines):
                if not line:
                    continue
                previous = lines[i - 1] if i else ""
                if line.startswith("- "):
                    if previous and re.match(r"^[^\-\s]", previous):
                        lines[i - 1] += "\n"
                elif re.match(r"^\d+!?\.", line):
                    if previous and not re.match(r"^\d+!?\.", previous):
                        lines[i - 1] += "\n"
                elif self.is_bareHtml(line):
                    lines[i] = f"<literal>{line}</literal>"
            return "\n".join(lines)

        return prose_apply(text, lines_fix)

    @staticmethod
    def is_bareHtml(line: str) -> bool:
        if not (line.startswith("<") and line.endswith(">")):
            return False
        return not (line.startswith("<literal>") or _AUTOLINK_RE.match(line))
