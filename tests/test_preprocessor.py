"""
Preprocessor tests

Tests comment removal, frontmatter, abbreviations, escapes, includes,
engine quirk fixes and line breaks.
"""

from pathlib import Path

import pytest

from mdplus.lib.collaborators import LocalFiles, PageContext
from mdplus.lib.errors import IncludeError
from mdplus.lib.preprocessor import Preprocessor


class TestComments:
    """Test C-style comments and the __END__ marker"""

    def test_block_comment_removed(self, compiler):
        """/* ... */ is removed"""
        html = compiler.compile("Text /* hidden */ shown")
        assert "hidden" not in html
        assert "shown" in html

    def test_line_comment_removed(self, compiler):
        """A line starting with // is removed"""
        html = compiler.compile("// note to self\nVisible")
        assert "note to self" not in html
        assert "<p>Visible</p>" in html

    def test_url_kept(self, compiler):
        """'//' inside a URL is not a comment"""
        html = compiler.compile("Visit http://example.org today")
        assert "http://example.org today" in html

    def test_comments_kept_on_request(self, compiler):
        """remove_comments=False leaves comments alone"""
        html = compiler.compile("Text // kept", remove_comments=False)
        assert "// kept" in html

    def test_end_marker(self, compiler):
        """Everything after __END__ is dropped"""
        html = compiler.compile("Before\n__END__\nAfter")
        assert "Before" in html
        assert "After" not in html

    def test_fenced_code_untouched(self, compiler):
        """Comments inside fenced code stay"""
        html = compiler.compile("```\na = 1 // one\n```\n")
        assert "// one" in html


class TestFrontmatter:
    """Test 'key: value' / '----' fields"""

    def test_fields_collected(self, compiler):
        """Fields go to the page, the body is compiled"""
        html = compiler.compile("title: Hello\n----\nBody")
        assert compiler.page.fields == {"title": "Hello"}
        assert html.strip() == "<p>Body</p>"

    def test_css_this_replaced(self, compiler):
        """'#this' in css fields becomes the section id"""
        compiler.compile("css: #this { color: red; }\n----\nBody", section_id="sec")
        assert compiler.page.fields["css"] == "#sec { color: red; }"

    def test_repeated_fields_appended(self, compiler):
        """A field given twice accumulates its values"""
        compiler.compile("css: a;\n----\ncss: b;\n----\nBody")
        assert compiler.page.fields["css"] == "a;b;"


class TestAbbreviations:
    """Test '*[KEY]: expansion' definitions"""

    def test_definition_applied(self, compiler):
        """Defined keys are wrapped in <abbr>"""
        html = compiler.compile("*[HTML]: Hyper Text Markup Language\nWe like HTML.")
        assert "<abbr title='Hyper Text Markup Language'>HTML</abbr>" in html
        assert "*[HTML]" not in html

    def test_whole_words_only(self, compiler):
        """Keys inside longer words are left alone"""
        html = compiler.compile("*[CSS]: Cascading Style Sheets\nCSSOM and CSS")
        assert html.count("<abbr") == 1

    def test_code_untouched(self, compiler):
        """Fenced code is not abbreviated"""
        html = compiler.compile("*[API]: Interface\n```\nAPI\n```\n")
        assert "<abbr" not in html

    def test_abbreviations_file(self, tmp_path, compiler_make):
        """The site-wide file is loaded as a YAML mapping"""
        (tmp_path / "abbr.yaml").write_text("WWW: World Wide Web\n")
        compiler = compiler_make(files=LocalFiles(tmp_path), abbreviations_file="abbr.yaml")
        html = compiler.compile("The WWW.")
        assert "<abbr title='World Wide Web'>WWW</abbr>" in html

    def test_malformed_abbreviations_file(self, tmp_path, compiler_make):
        """A file that is no mapping is ignored"""
        (tmp_path / "abbr.yaml").write_text("- just\n- a list\n")
        compiler = compiler_make(files=LocalFiles(tmp_path), abbreviations_file="abbr.yaml")
        assert compiler.abbreviations == {}


class TestEscapes:
    """Test backslash escapes"""

    def test_escape_becomes_entity(self, compiler):
        r"""'\*' ends up as a numeric entity"""
        html = compiler.compile("a \\*b\\* c", omit_p_wrapper=True)
        assert html == "a &#42;b&#42; c"

    def test_code_span_untouched(self, compiler):
        """Backslashes in code spans stay"""
        html = compiler.compile("`a\\*b`", omit_p_wrapper=True)
        assert html == "<code>a\\*b</code>"


class TestIncludes:
    """Test '(include: ...)' instructions"""

    @pytest.fixture
    def site(self, tmp_path):
        (tmp_path / "part.md").write_text("Included *text*\n")
        (tmp_path / "code.md").write_text("<b>x</b>\n")
        (tmp_path / "notes.txt").write_text("plain notes\n")
        chapters = tmp_path / "chap"
        chapters.mkdir()
        (chapters / "a.md").write_text("Chapter A\n")
        (chapters / "b.md").write_text("Chapter B\n")
        (chapters / "_draft.md").write_text("Draft\n")
        return tmp_path

    def test_markdown_file(self, site, compiler_make):
        """.md files are compiled"""
        compiler = compiler_make(files=LocalFiles(site))
        html = compiler.compile("(include: part.md)")
        assert "<p>Included <em>text</em></p>" in html

    def test_text_file(self, site, compiler_make):
        """.txt files are shown preformatted"""
        compiler = compiler_make(files=LocalFiles(site))
        html = compiler.compile("(include: notes.txt)")
        assert "<pre>plain notes\n</pre>" in html

    def test_missing_file(self, site, compiler_make):
        """An include without matching files produces nothing"""
        compiler = compiler_make(files=LocalFiles(site))
        html = compiler.compile("Start\n\n(include: nothing.md)")
        assert "include" not in html
        assert "<p>Start</p>" in html

    def test_literal(self, site, compiler_make):
        """'literal:true' shows the escaped source"""
        compiler = compiler_make(files=LocalFiles(site))
        html = compiler.compile("(include: code.md literal:true)")
        assert "<pre>&lt;b&gt;x&lt;/b&gt;\n</pre>" in html

    def test_directory_with_wrapper(self, site, compiler_make):
        """Directories include all files in a section, skipping '_' files"""
        compiler = compiler_make(files=LocalFiles(site))
        html = compiler.compile("(include: chap/)")
        assert '<section class="mdp-section-2">' in html
        assert "Chapter A" in html
        assert "Chapter B" in html
        assert "Draft" not in html
        assert html.index("Chapter A") < html.index("Chapter B")

    def test_wrapper_tag_and_class(self, site, compiler_make):
        """'wrapperTag:' and 'class:' shape the wrapper"""
        compiler = compiler_make(files=LocalFiles(site))
        html = compiler.compile("(include: chap/ wrapperTag:article class:toc)")
        assert '<article class="mdp-section-2 toc">' in html

    def test_bare_name_relative_to_page(self, site, compiler_make):
        """A name without '/' is looked up next to the page"""
        compiler = compiler_make(page=PageContext(root=Path("chap")), files=LocalFiles(site))
        html = compiler.compile("(include: a.md)")
        assert "Chapter A" in html

    def test_remote_target(self, compiler):
        """http targets become an iframe"""
        html = compiler.compile("(include: https://example.com/page)")
        assert "<iframe src='https://example.com/page' class=\"mdp-iframe\"></iframe>" in html

    def test_unreadable_file(self, compiler_make):
        """Read failures raise IncludeError"""

        class BrokenFiles:
            def resolve(self, pattern, exclude=None):
                return [Path("x.md")]

            def read(self, path):
                raise OSError("disk on fire")

            def exists(self, path):
                return False

        compiler = compiler_make(files=BrokenFiles())
        with pytest.raises(IncludeError, match="x.md"):
            compiler.compile("(include: x.md)")


class TestEngineQuirks:
    """Test the source adaptations for the baseline engine"""

    @pytest.fixture
    def preprocessor(self, compiler):
        return Preprocessor(compiler)

    def test_bare_html_wrapped(self, preprocessor):
        """Bare HTML lines are wrapped in <literal>"""
        assert preprocessor.engineQuirks_fix("<div>\nText") == "<literal><div></literal>\nText"

    def test_autolink_not_wrapped(self, preprocessor):
        """Autolinks are left for the engine"""
        assert preprocessor.engineQuirks_fix("<https://example.com>") == "<https://example.com>"

    def test_blank_line_before_list(self, preprocessor):
        """A list directly below prose gets a blank line"""
        assert preprocessor.engineQuirks_fix("Intro\n- a\n- b") == "Intro\n\n- a\n- b"

    def test_raw_html_survives(self, compiler):
        """Bare HTML lines pass the engine unchanged"""
        html = compiler.compile("<div class=\"box\">\n\n*text*\n\n</div>")
        assert '<div class="box">' in html
        assert "<literal>" not in html


class TestLineBreaks:
    """Test explicit line breaks"""

    def test_backslash_at_line_end(self, compiler):
        """A trailing backslash breaks the line"""
        html = compiler.compile("one\\\ntwo")
        assert "one<br>" in html
        assert "two" in html

    def test_br_marker(self, compiler):
        """' BR ' breaks the line"""
        html = compiler.compile("one BR two")
        assert "one<br>" in html
        assert "BR" not in html
