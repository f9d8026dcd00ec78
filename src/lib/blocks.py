"""
Block extension set

Five block types layered on top of the baseline grammar. Each extension
exposes the same three-step contract:

    identify(lines, index) -> bool
    consume(lines, index)  -> (node, last_index)   # last_index is inclusive
    render(node)           -> html

BlockScanPreprocessor drives them as a Python-Markdown preprocessor: it walks
the line array once, skips fenced code, asks the extensions in their fixed
order whether they start at the current line and replaces every consumed
block by a stashed HTML placeholder. Extensions are bound to the compiler
(counters, nested compilation, shields) and to the compile context of the
engine run they belong to.

Supported blocks:

    |=== Caption {: .cls}       AsciiTable
    |# Head 1 | Head 2
    |---
    | cell | cell
    |===

    @@@ .note                   DivBlock (fence chars from settings.divblock_chars)
    content
    @@@

    Name  8em>> Value           Tabulator

    term                        DefinitionList
    : description

    5!. first                   OrderedList ('N!.' sets the start number)
    6. second
"""

import re
from typing import TYPE_CHECKING, Any, List, Optional, Tuple

from markdown.preprocessors import Preprocessor

from ..models.attributes import AttributeRecord
from ..models.blocks import (
    AsciiTableNode,
    BlockKind,
    DefinitionListNode,
    DivBlockNode,
    OrderedListNode,
    TabulatorNode,
)
from ..models.context import CompileContext, ShieldKind
from .errors import BlockStructureError
from .log import LOG
from .textutil import FENCE_RE, length_toPx

if TYPE_CHECKING:
    from markdown import Markdown
    from .compiler import DocumentCompiler


INLINE_ELEMENTS = frozenset(
    "a abbr acronym b bdo big br button cite code dfn em i img input kbd label map "
    "object output q samp script select small span strong sub sup textarea time tt "
    "var skip".split()
)

SINGLETON_TAGS = frozenset(
    "img input br hr meta embed link source track wbr col area".split()
)


class BlockExtension:
    """Base of all block extensions"""

    kind: BlockKind

    def __init__(self, compiler: "DocumentCompiler", context: CompileContext) -> None:
        self.compiler = compiler
        self.context = context

    def identify(self, lines: List[str], index: int) -> bool:
        raise NotImplementedError

    def consume(self, lines: List[str], index: int) -> Tuple[Any, int]:
        raise NotImplementedError

    def render(self, node: Any) -> str:
        raise NotImplementedError

    @staticmethod
    def blankTail_drop(body: List[str]) -> int:
        """Drop trailing blank lines from body, returning how many went"""
        count = 0
        while body and not body[-1].strip():
            body.pop()
            count += 1
        return count

    def attributes_parse(self, text: str) -> AttributeRecord:
        return self.compiler.attributes_parse(text, self.context)

    def compile_block(self, text: str, omit_p_wrapper: bool = False) -> str:
        return self.compiler.compile_nested(text, self.context, omit_p_wrapper=omit_p_wrapper)

    def compile_inline(self, text: str) -> str:
        return self.compiler.compile_nested(text, self.context, omit_p_wrapper=True, paragraph=True)

    def language_excluded(self, record: AttributeRecord) -> bool:
        return record.is_skipped or bool(record.lang and record.lang != self.context.language)


class AsciiTable(BlockExtension):
    """Tables fenced by '|===' lines"""

    kind = BlockKind.ASCII_TABLE

    def identify(self, lines: List[str], index: int) -> bool:
        return lines[index].startswith("|===")

    def consume(self, lines: List[str], index: int) -> Tuple[AsciiTableNode, int]:
        args = ""
        match = re.match(r"^\|===*\s+(.*)$", lines[index])
        if match:
            args = match.group(1)

        body: List[str] = []
        i = index + 1
        while i < len(lines):
            if lines[i].startswith("|==="):
                break
            body.append(lines[i])
            i += 1
        if i == len(lines):
            # unclosed, runs to the end of input but leaves its blank tail
            i -= self.blankTail_drop(body) + 1
        return AsciiTableNode(lines=body, args=args, start_line=index), min(i, len(lines) - 1)

    def grid_build(self, node: AsciiTableNode) -> None:
        """
        Fill node.cells and node.row_attributes from the source lines

        Raises:
            BlockStructureError: text line before any cell was opened
        """
        cells = [{}]
        row_attributes = {}
        col = -1
        for offset, line in enumerate(node.lines):
            if line.startswith("|---"):
                rest = line[4:].lstrip(" -")
                if rest:
                    descriptor = re.search(r"\{:(.*)\}", rest.strip())
                    if descriptor:
                        rest = descriptor.group(1)
                    row_attributes[len(cells)] = self.attributes_parse(rest).html_attrs
                cells.append({})
                col = -1
                continue

            if line.startswith("|"):
                for cell in re.split(r"(?<!\\)\|", line[1:]):
                    col += 1
                    cells[-1][col] = cell.strip().replace("\\|", "|")
                continue

            if col < 0:
                if not line.strip():
                    continue
                raise BlockStructureError(
                    "Error in AsciiTable: cell definition needs leading '|'",
                    line_number=node.start_line + offset + 2,
                    line=line,
                )
            cells[-1][col] += "\n" + line

        node.cells = cells
        node.row_attributes = row_attributes

    def caption_prepare(self, args: str) -> Optional[Tuple[str, str]]:
        """
        Caption element and table attributes

        Returns:
            (caption_html, html_attrs), None when the table is suppressed
        """
        args = re.sub(r"\{:(.*?)\}", r"\1", args.strip())
        record = self.attributes_parse(args) if args else AttributeRecord()
        if self.language_excluded(record):
            return None

        inx = self.compiler.index_next("table")
        cls = f"mdp-table mdp-table-{inx}"
        if record.cls:
            cls += f" {record.cls}"
        table_attrs = AttributeRecord(
            id=record.id or f"mdp-table-{inx}",
            cls=cls,
            style=record.style,
            misc_attrs=record.misc_attrs,
            quotes=record.quotes,
        )
        caption = f"\t  <caption>{record.text}</caption>\n" if record.text else ""
        return caption, table_attrs.html_attrs

    def render(self, node: AsciiTableNode) -> str:
        self.grid_build(node)
        prepared = self.caption_prepare(node.args)
        if prepared is None:
            return ""
        caption, attrs = prepared
        n_cols = node.column_count
        table = node.cells

        out = f"<table{attrs}>\n{caption}"
        row = 0
        if table[0].get(0, "").startswith("#"):
            row = 1
            table[0][0] = table[0][0][1:].strip()
            out += "  <thead>\n    <tr>\n"
            for col in range(n_cols):
                cell = self.compile_inline(table[0].get(col, ""))
                out += f"\t\t<th class='mdp-col-{col + 1}'>{cell}</th>\n"
            out += "    </tr>\n  </thead>\n"

        out += "  <tbody>\n"
        for row in range(row, node.row_count):
            out += f"\t<tr{node.row_attributes.get(row, '')}>\n"
            colspan = 1
            for col in range(n_cols):
                cell = table[row].get(col, "")
                if cell == ">":
                    colspan += 1
                    continue
                if cell:
                    cell = self.compile_block(cell, omit_p_wrapper=True).strip()
                span = f" colspan='{colspan}'" if colspan > 1 else ""
                out += f"\t\t<td class='mdp-row-{row + 1} mdp-col-{col + 1}'{span}>{cell}</td>\n"
                colspan = 1
            out += "\t</tr>\n"
        out += "  </tbody>\n"
        out += "</table><!-- /asciiTable -->\n"
        return out


class DivBlock(BlockExtension):
    """Fenced containers: '@@@ <tag #id .cls !meta' ... '@@@'"""

    kind = BlockKind.DIV_BLOCK

    @property
    def chars(self) -> str:
        return self.compiler.settings.divblock_chars

    def opener_match(self, line: str) -> Optional["re.Match[str]"]:
        marker = line[:1]
        if not marker or marker not in self.chars:
            return None
        return re.match(rf"^({re.escape(marker)}{{3,10}})\s+(\S.*)$", line)

    def identify(self, lines: List[str], index: int) -> bool:
        return self.opener_match(lines[index]) is not None

    def consume(self, lines: List[str], index: int) -> Tuple[DivBlockNode, int]:
        """
        Collect the block up to its closing fence

        A closing fence has the same marker and length as the opening one.
        For mdp-style blocks the first such fence ends the block; when it
        carries text it opens the next sibling block instead, so the scan
        steps back one line. Foreign blocks ('@@@ {...}') count nested
        fences with text as openers.
        """
        line = lines[index].rstrip()
        marker = line[0]
        pattern = re.escape(marker) + "{3,10}"
        match = re.match(rf"({pattern})(.*)", line)
        if not match:
            raise BlockStructureError(
                f"Error in Markdown source line {index + 1}: {line}",
                line_number=index + 1,
                line=line,
            )
        fence, rest = match.group(1), match.group(2).strip()
        is_foreign = rest.startswith("{")
        depth = 1 if is_foreign else 0
        if is_foreign:
            rest = rest.replace("{", "").replace("}", "").strip()

        record = self.attributes_parse(rest)
        is_inline_tag = record.tag in INLINE_ELEMENTS
        is_literal = record.literal if record.literal is not None else is_inline_tag
        is_inline = bool(record.inline) or is_inline_tag

        body = [record.text] if record.text else []
        i = index + 1
        while i < len(lines):
            candidate = re.match(rf"^({pattern})\s*(.*)", lines[i])
            if candidate and candidate.group(1) == fence:
                if candidate.group(2).strip():
                    if not is_foreign:
                        i -= 1
                        break
                    depth += 1
                else:
                    depth -= 1
                    if depth < 1:
                        break
            body.append(lines[i])
            i += 1
        if i == len(lines):
            i -= self.blankTail_drop(body) + 1
        last = min(i, len(lines) - 1)

        node = DivBlockNode(
            marker=marker,
            fence_length=len(fence),
            attributes=record,
            is_literal=is_literal or record.is_html,
            is_inline=is_inline,
            is_foreign=is_foreign,
        )
        if body:
            node.content = self.content_shield(node, "".join(f"{b}\n" for b in body))
        LOG(f"DivBlock <{record.tag or 'div'}> at line {index + 1}", level=2)
        return node, last

    def content_shield(self, node: DivBlockNode, content: str) -> str:
        shields = self.compiler.shields
        if node.is_literal:
            return shields.shield(content, ShieldKind.BLOCK)
        if node.is_inline:
            content = self.embedded_expand(content)
            html = self.compile_inline(content)
            return shields.shield(html, ShieldKind.INLINE)
        return shields.shield(content, ShieldKind.MARKDOWN)

    def embedded_expand(self, text: str) -> str:
        """Render div blocks nested in inline content to HTML in place"""
        out: List[str] = []
        body: Optional[List[str]] = None
        fence = ""
        opener = ""
        record = AttributeRecord()
        for line in text.split("\n"):
            if body is None:
                match = self.opener_match(line)
                if match:
                    fence, opener, body = match.group(1), line, []
                    record = self.attributes_parse(match.group(2))
                else:
                    out.append(line)
                continue

            if line.startswith(fence) and not line[len(fence):].startswith(fence[0]):
                inner = "\n".join(body)
                if not self.language_excluded(record):
                    if record.inline:
                        html = self.compile_inline(inner)
                    else:
                        html = self.compile_block(inner, omit_p_wrapper=True)
                    tag = record.tag or "div"
                    closing = "" if tag in SINGLETON_TAGS else f"</{tag}>"
                    out.append(f"<{tag}{record.html_attrs}>\n{html}\n{closing}")
                body = None
            else:
                body.append(line)

        if body is not None:
            out.append(opener)
            out.extend(body)
        return "\n".join(out)

    def render(self, node: DivBlockNode) -> str:
        record = node.attributes
        if self.language_excluded(record):
            return ""
        out = node.content
        if node.is_html:
            return out

        attrs = record.html_attrs
        if not node.tag and not attrs:
            return f"{out}\n\n"

        tag = node.tag or "div"
        closing = "" if tag in SINGLETON_TAGS else f"</{tag}>"
        if node.is_inline:
            return f"<{tag}{attrs}>{out}{closing}"
        return f"\n\n<{tag}{attrs}>\n{out}\n{closing}<!-- {tag}{attrs} -->\n\n\n"


class Tabulator(BlockExtension):
    """
    Column layout from '>>' separators

    'Name  8em>> Value' gives two cells; the width written in front of a
    '>>' is the width of the column it closes.
    """

    kind = BlockKind.TABULATOR

    IDENTIFY_RE = re.compile(r"(\s\s|\t)([.\d]{1,6}[\w%]{1,2})?>>[\s\t]")
    SPLIT_RE = re.compile(r"[\s\t]*([.\d]{1,6}[\w%]{1,2})?>>[\s\t]")

    def identify(self, lines: List[str], index: int) -> bool:
        return bool(self.IDENTIFY_RE.search(lines[index]))

    def consume(self, lines: List[str], index: int) -> Tuple[TabulatorNode, int]:
        node = TabulatorNode()
        i = index
        while i < len(lines):
            line = lines[i]
            separators = list(self.SPLIT_RE.finditer(line))
            if separators:
                row: List[str] = []
                pos = 0
                for col, separator in enumerate(separators):
                    row.append(line[pos:separator.start()])
                    if separator.group(1):
                        node.column_widths[col] = separator.group(1)
                    pos = separator.end()
                row.append(line[pos:])
                node.rows.append(row)
            elif not line.strip():
                break
            else:
                node.rows[-1][-1] += "\n" + line
            i += 1
        return node, i - 1

    def render(self, node: TabulatorNode) -> str:
        inx = self.compiler.index_next("tabulator")
        default_width = self.compiler.settings.default_tabulator_width

        out = ""
        for r, cells in enumerate(node.rows, start=1):
            last = len(cells) - 1
            line = ""
            for c, cell in enumerate(cells):
                html = self.compile_inline(cell.strip())
                if c == last:
                    offset = sum(
                        length_toPx(node.column_widths.get(k, default_width)) for k in range(c)
                    )
                    style = f" style='max-width: calc(100% - {offset:g}px);'" if c else ""
                    line += f"<div class='tt{c + 1} tt-last'{style}>{html}</div>"
                else:
                    line += f"<div class='tt{c + 1}'>{html}</div>"
            out += f"<div class='mdp-tabulator-wrapper mdp-tabulator-wrapper-{r}'>\n{line}\n</div>\n"

        style = "".join(
            f"--tt{col + 1}-width: {width}; " for col, width in sorted(node.column_widths.items())
        ).strip()
        style_attr = f" style='{style}'" if style else ""
        return (
            f"<div class='mdp-tabulator-outer-wrapper mdp-tabulator-outer-wrapper-{inx}'{style_attr}>\n"
            f"{out}</div><!-- /mdp-tabulator-outer-wrapper-{inx} -->\n"
        )


class DefinitionList(BlockExtension):
    """Terms followed by ': description' lines"""

    kind = BlockKind.DEFINITION_LIST

    DESCRIPTION_RE = re.compile(r"^:(\s|$)")
    ATTRIBUTES_RE = re.compile(r"^\{:(.*?)\}$")

    def is_description(self, lines: List[str], index: int) -> bool:
        return index < len(lines) and bool(self.DESCRIPTION_RE.match(lines[index]))

    def is_term(self, lines: List[str], index: int) -> bool:
        line = lines[index]
        return bool(line.strip()) and not line.startswith(":") and self.is_description(lines, index + 1)

    def identify(self, lines: List[str], index: int) -> bool:
        if self.ATTRIBUTES_RE.match(lines[index]):
            return index + 1 < len(lines) and self.is_term(lines, index + 1)
        return self.is_term(lines, index)

    def consume(self, lines: List[str], index: int) -> Tuple[DefinitionListNode, int]:
        node = DefinitionListNode()
        attributes = self.ATTRIBUTES_RE.match(lines[index])
        if attributes:
            node.attributes = attributes.group(1)
            index += 1

        last = index - 1
        blank = 0
        i = index
        while i < len(lines):
            if not lines[i].strip():
                blank += 1
                if blank > 1:
                    break
                i += 1
                continue
            if not self.is_term(lines, i):
                break
            term = lines[i]
            descriptions = []
            while self.is_description(lines, i + 1):
                i += 1
                descriptions.append(self.DESCRIPTION_RE.sub("", lines[i], count=1))
            node.entries.append((term, "\n".join(descriptions)))
            last = i
            blank = 0
            i += 1
        return node, last

    def render(self, node: DefinitionListNode) -> str:
        record = self.attributes_parse(node.attributes) if node.attributes else AttributeRecord()
        if self.language_excluded(record):
            return ""
        out = ""
        for term, description in node.entries:
            dt = self.compile_inline(term).strip()
            out += f"\t<dt>{dt}</dt>\n"
            dd = self.compile_block(description)
            out += f"\t<dd>\n{dd}\n\t</dd>\n\n"
        out = self.compiler.postprocessor.attributes_inject(out, self.context)
        return f"\n<dl{record.html_attrs}>\n{out}</dl>\n\n"


class OrderedList(BlockExtension):
    """'N.' lists where 'N!.' sets the start number"""

    kind = BlockKind.ORDERED_LIST

    ITEM_RE = re.compile(r"^(\d+)(!?)\.\s*(.*)")

    def identify(self, lines: List[str], index: int) -> bool:
        return bool(re.match(r"^\d+!?\.\s", lines[index]))

    def consume(self, lines: List[str], index: int) -> Tuple[OrderedListNode, int]:
        node = OrderedListNode()
        i = index
        while i < len(lines):
            match = self.ITEM_RE.match(lines[i])
            if not match:
                break
            number, bang, text = match.groups()
            if bang and node.start is None:
                node.start = int(number)
            node.items.append(text)
            i += 1
        return node, i - 1

    def render(self, node: OrderedListNode) -> str:
        start = f" start='{node.start}'" if node.start is not None else ""
        items = "".join(
            f"<li>{self.compile_block(item, omit_p_wrapper=True).strip()}</li>\n"
            for item in node.items
        )
        return f"<ol{start}>\n{items}</ol>\n"


BLOCK_EXTENSIONS = (AsciiTable, DivBlock, Tabulator, DefinitionList, OrderedList)


class BlockExtensionSet:
    """
    The block extensions in their fixed priority order

    Args:
        compiler: Compiler providing counters, shields and nested compilation
        context: Compile context of the current engine run
    """

    def __init__(self, compiler: "DocumentCompiler", context: CompileContext) -> None:
        self.extensions: List[BlockExtension] = [
            extension(compiler, context) for extension in BLOCK_EXTENSIONS
        ]

    def __iter__(self):
        return iter(self.extensions)

    def identify(self, lines: List[str], index: int) -> Optional[BlockExtension]:
        """First extension claiming the block starting at lines[index]"""
        for extension in self.extensions:
            if extension.identify(lines, index):
                return extension
        return None


class BlockScanPreprocessor(Preprocessor):
    """
    Replace extension blocks by stashed HTML

    Runs before the baseline fenced-code and raw-HTML preprocessors. Lines
    inside backtick or tilde code fences are passed through untouched.
    """

    def __init__(self, md: "Markdown", blocks: BlockExtensionSet) -> None:
        super().__init__(md)
        self.blocks = blocks

    def run(self, lines: List[str]) -> List[str]:
        out: List[str] = []
        fence = ""
        i = 0
        while i < len(lines):
            line = lines[i]
            opening = FENCE_RE.match(line)
            if fence:
                out.append(line)
                if opening and opening.group(1)[0] == fence[0] and len(opening.group(1)) >= len(fence):
                    fence = ""
                i += 1
                continue
            if opening:
                fence = opening.group(1)
                out.append(line)
                i += 1
                continue

            extension = self.blocks.identify(lines, i)
            if extension is None:
                out.append(line)
                i += 1
                continue

            node, last = extension.consume(lines, i)
            LOG(f"{extension.kind.value} block at lines {i + 1}-{last + 1}", level=2)
            html = extension.render(node).strip()
            if html:
                out.extend(["", self.md.htmlStash.store(html), ""])
            i = max(last, i) + 1
        return out
