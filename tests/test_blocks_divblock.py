"""
Div block tests

Tests fenced '@@@' / '%%%' containers: attributes, literal and inline
modes, language filtering, raw HTML passthrough, foreign blocks and the
recursion limit of nested compilation.
"""

import pytest

from mdplus.lib.collaborators import PageContext
from mdplus.lib.errors import RecursionLimitError


class TestDivBlock:
    """Test basic div blocks"""

    def test_class_and_markdown_content(self, compiler):
        """Content is compiled as markdown inside the div"""
        html = compiler.compile("@@@ .note\nSome **bold** text\n@@@\n")
        assert "<div class='note'>" in html
        assert "<p>Some <strong>bold</strong> text</p>" in html
        assert html.index("<div class='note'>") < html.index("<p>Some")

    def test_tag_and_id(self, compiler):
        """'<aside #side' selects the element and its id"""
        html = compiler.compile("@@@ <aside #side\ncontent\n@@@\n")
        assert "<aside id='side'>" in html
        assert "</aside>" in html

    def test_percent_fence(self, compiler):
        """'%%%' is a fence character as well"""
        html = compiler.compile("%%% .box\ninside\n%%%\n")
        assert "<div class='box'>" in html

    def test_configured_fence_characters(self, compiler_make):
        """Only the configured characters open blocks"""
        compiler = compiler_make(divblock_chars="@")
        html = compiler.compile("%%% .box\ninside\n%%%\n")
        assert "<div class='box'>" not in html

    def test_consecutive_blocks(self, compiler):
        """A fence with text closes the block and opens the next one"""
        html = compiler.compile("@@@ .a\none\n@@@ .b\ntwo\n@@@\n")
        assert "<div class='a'>" in html
        assert "<div class='b'>" in html
        assert html.index("one") < html.index("<div class='b'>")

    def test_nested_blocks_with_longer_fence(self, compiler):
        """Blocks with different fence lengths nest"""
        html = compiler.compile("@@@@ .outer\n@@@ .inner\ntext\n@@@\n@@@@\n")
        assert html.index("<div class='outer'>") < html.index("<div class='inner'>")
        assert "<p>text</p>" in html

    def test_unclosed_block_at_end(self, compiler):
        """A block without closing fence runs to the end and stays out of <p>"""
        html = compiler.compile("intro\n\n@@@ .a\nno close\n")
        assert "<p>intro</p>" in html
        assert "<p><div" not in html
        assert "<p>no close</p>" in html
        assert html.count("<p>") == 2


class TestDivBlockModes:
    """Test literal, inline and raw HTML blocks"""

    def test_literal_keeps_source(self, compiler):
        """'!literal' content is not compiled"""
        html = compiler.compile("@@@ .raw !literal\n**not bold**\n@@@\n")
        assert "**not bold**" in html
        assert "<strong>" not in html

    def test_inline_element_is_literal(self, compiler):
        """Inline elements default to literal content"""
        html = compiler.compile("@@@ <span .x\nhello *there*\n@@@\n")
        assert "<span class='x'>hello *there*" in html
        assert "<em>" not in html

    def test_inline_mode_compiles_paragraph(self, compiler):
        """'!inline' compiles the content without block structure"""
        html = compiler.compile("@@@ .x !inline\nhello *there*\n@@@\n")
        assert "<div class='x'>hello <em>there</em></div>" in html

    def test_html_passthrough(self, compiler):
        """'!html' emits the content raw, without wrapper"""
        html = compiler.compile("@@@ !html\n<b>raw</b>\n@@@\n")
        assert "<b>raw</b>" in html
        assert "<div" not in html

    def test_language_mismatch_removed(self, compiler_make):
        """Blocks for another language are dropped"""
        compiler = compiler_make(page=PageContext(language="en"))
        html = compiler.compile("@@@ .x !lang=de\nGerman\n@@@\n\n@@@ .y !lang=en\nEnglish\n@@@\n")
        assert "German" not in html
        assert "English" in html

    def test_without_attributes_no_wrapper(self, compiler):
        """A block without tag or attributes adds no element"""
        html = compiler.compile("@@@ !literal=false\nplain\n@@@\n")
        assert "<div" not in html
        assert "plain" in html


class TestForeignBlocks:
    """Test '@@@ {...}' blocks"""

    def test_foreign_block_counts_nested_openers(self, compiler):
        """Nested fences with text belong to the foreign block"""
        source = "@@@ {.outer}\n@@@ .inner\ntext\n@@@\n@@@\nafter\n"
        html = compiler.compile(source)
        assert html.index("<div class='outer'>") < html.index("<div class='inner'>")
        assert html.index("<div class='inner'>") < html.index("after")


class TestRecursionLimit:
    """Test the nesting bound"""

    def test_nested_compile_over_limit(self, compiler_make):
        """Nesting deeper than max_recursion_depth raises"""
        compiler = compiler_make(max_recursion_depth=0)
        with pytest.raises(RecursionLimitError):
            compiler.compile("|===\n| x\n|===\n")

    def test_nesting_within_limit(self, compiler_make):
        """Nesting up to the limit compiles"""
        compiler = compiler_make(max_recursion_depth=2)
        html = compiler.compile("|===\n| x\n|===\n")
        assert "<td class='mdp-row-1 mdp-col-1'>x</td>" in html
