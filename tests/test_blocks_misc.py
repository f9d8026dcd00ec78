"""
Tabulator, definition list and ordered list tests
"""

import re

from mdplus.lib.blocks import DefinitionList, OrderedList, Tabulator
from mdplus.models.context import CompileContext


def squash(html: str) -> str:
    return re.sub(r"\s+", " ", html).strip()


class TestTabulator:
    """Test '>>' column layouts"""

    def test_explicit_width(self, compiler):
        """The width in front of '>>' sets the width of the closed column"""
        html = compiler.compile("Name  8em>> Value\n")
        assert "<div class='mdp-tabulator-outer-wrapper mdp-tabulator-outer-wrapper-1' style='--tt1-width: 8em;'>" in html
        assert "<div class='mdp-tabulator-wrapper mdp-tabulator-wrapper-1'>" in html
        assert "<div class='tt1'>Name</div>" in html
        assert "<div class='tt2 tt-last' style='max-width: calc(100% - 96px);'>Value</div>" in html

    def test_default_width(self, compiler):
        """Columns without width use the configured default"""
        html = compiler.compile("A  >> B\n")
        assert "max-width: calc(100% - 72px)" in html
        assert "--tt1-width" not in html

    def test_rows_and_inline_markup(self, compiler):
        """Each line is a row, cells are compiled inline"""
        html = compiler.compile("One  >> **1**\nTwo  >> 2\n")
        assert "mdp-tabulator-wrapper-1" in html
        assert "mdp-tabulator-wrapper-2" in html
        assert "<strong>1</strong>" in html

    def test_consume_collects_widths(self, compiler):
        """consume() records widths per column and stops at a blank line"""
        tabulator = Tabulator(compiler, CompileContext())
        lines = ["a  2cm>> b  3em>> c", "", "after"]
        node, last = tabulator.consume(lines, 0)
        assert last == 0
        assert node.rows == [["a", "b", "c"]]
        assert node.column_widths == {0: "2cm", 1: "3em"}


class TestDefinitionList:
    """Test term / ': description' lists"""

    def test_terms_and_descriptions(self, compiler):
        """Terms become <dt>, descriptions compiled <dd>"""
        html = compiler.compile("Apple\n: A red fruit\n\nBanana\n: A *yellow* fruit\n")
        flat = squash(html)
        assert "<dl>" in flat
        assert "<dt>Apple</dt> <dd> <p>A red fruit</p> </dd>" in flat
        assert "<dt>Banana</dt> <dd> <p>A <em>yellow</em> fruit</p> </dd>" in flat
        assert flat.count("<dl") == 1

    def test_attributes_line(self, compiler):
        """A '{: ...}' line in front of the list applies to <dl>"""
        html = compiler.compile("{: .fruits}\nApple\n: red\n")
        assert "<dl class='fruits'>" in html

    def test_two_blank_lines_end_list(self, compiler):
        """Two blank lines start a new list"""
        html = compiler.compile("Apple\n: red\n\n\nCherry\n: dark\n")
        assert html.count("<dl") == 2

    def test_consume_inclusive_last_index(self, compiler):
        """consume() reports the index of the last consumed line"""
        definitions = DefinitionList(compiler, CompileContext())
        lines = ["Term", ": one", ": two", "", "text"]
        assert definitions.identify(lines, 0)
        node, last = definitions.consume(lines, 0)
        assert last == 2
        assert node.entries == [("Term", "one\ntwo")]


class TestOrderedList:
    """Test 'N.' lists with 'N!.' start override"""

    def test_start_number(self, compiler):
        """'3!.' starts the list at 3"""
        html = compiler.compile("3!. three\n4. four\n")
        assert "<ol start='3'>" in html
        assert "<li>three</li>" in html
        assert "<li>four</li>" in html

    def test_plain_list(self, compiler):
        """Lists without '!' have no start attribute"""
        html = compiler.compile("1. one\n2. two\n")
        assert "<ol>" in html
        assert "start=" not in html

    def test_list_after_paragraph(self, compiler):
        """A list directly below a paragraph line is still a list"""
        html = compiler.compile("Intro\n5!. five\n")
        assert "<p>Intro</p>" in html
        assert "<ol start='5'>" in html

    def test_consume(self, compiler):
        """consume() stops at the first non-item line"""
        ordered = OrderedList(compiler, CompileContext())
        node, last = ordered.consume(["2!. b", "3. c", "text"], 0)
        assert last == 1
        assert node.start == 2
        assert node.items == ["b", "c"]
