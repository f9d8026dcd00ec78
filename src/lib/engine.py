"""
Baseline engine wiring

Builds the Python-Markdown engine a compile call runs on: the configured
baseline extensions plus the MarkdownPlus extension, which registers the
block scan preprocessor and the inline extension set. A fresh engine is
built for every call; engines hold per-run state (HTML stash, references)
and are never shared between nested compiles.
"""

import xml.etree.ElementTree as etree
from typing import TYPE_CHECKING

import markdown
from markdown.extensions import Extension

from ..models.context import CompileContext
from .blocks import BlockExtensionSet, BlockScanPreprocessor
from .inline import inlineProcessors_register

if TYPE_CHECKING:
    from .compiler import DocumentCompiler


BLOCK_SCAN_PRIORITY = 27
LITERAL_TAG = "literal"


class MarkdownPlusExtension(Extension):
    """
    Python-Markdown extension carrying the MarkdownPlus block and inline sets

    Args:
        compiler: Compiler the extensions call back into
        context: Context of the compile call the engine is built for
    """

    def __init__(self, compiler: "DocumentCompiler", context: CompileContext, **kwargs) -> None:
        self.compiler = compiler
        self.context = context
        super().__init__(**kwargs)

    def extendMarkdown(self, md: markdown.Markdown) -> None:
        md.block_level_elements.extend(self.compiler.shields.block_level_tags)
        md.block_level_elements.append(LITERAL_TAG)
        if not self.context.is_paragraph:
            blocks = BlockExtensionSet(self.compiler, self.context)
            md.preprocessors.register(
                BlockScanPreprocessor(md, blocks), "mdp_blocks", BLOCK_SCAN_PRIORITY
            )
        inlineProcessors_register(md, self.compiler)


def engine_build(compiler: "DocumentCompiler", context: CompileContext) -> markdown.Markdown:
    """
    Create the engine for one compile call

    Args:
        compiler: Owning compiler (settings, shields, counters)
        context: Compile context of the call

    Returns:
        Configured markdown.Markdown instance
    """
    extension = MarkdownPlusExtension(compiler, context)
    return markdown.Markdown(
        extensions=[*compiler.settings.baseline_extensions, extension],
        output_format="html",
    )


def inline_convert(md: markdown.Markdown, text: str) -> str:
    """
    Run only the inline stage of an engine over text

    The text is put into a single span element, the tree processors and
    postprocessors of md run as in a full conversion and the span's content
    is returned. No block-level structure is recognised.

    Args:
        md: Engine built by engine_build()
        text: Inline markdown

    Returns:
        HTML fragment without an enclosing element
    """
    root = etree.Element("div")
    span = etree.SubElement(root, "span")
    span.text = text

    for treeprocessor in md.treeprocessors:
        new_root = treeprocessor.run(root)
        if new_root is not None:
            root = new_root

    if not len(root):
        return ""
    # the root may have been replaced, the span is still its first child
    span = root[0]
    span.tail = None
    output = md.serializer(span)
    if output.startswith("<span>") and output.endswith("</span>"):
        output = output[len("<span>"):-len("</span>")]

    for postprocessor in md.postprocessors:
        output = postprocessor.run(output)
    return output.strip()
