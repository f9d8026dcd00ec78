"""
End-to-end compilation tests

Tests the full pipeline: MarkdownPlus source → Preprocessor → engine with
block and inline extensions → Postprocessor → HTML, and the CLI stages that
turn a directory of sources into .html files.
"""

import pytest
from pathlib import Path

from mdplus.__main__ import env_check, results_report, source_compile, sources_compile
from mdplus.lib.collaborators import LocalFiles, PageContext
from mdplus.models import ProgramState, pipeline


DOCUMENT = """\
title: Release notes
----
css: #this .lead { color: navy; }
----
*[API]: Application Programming Interface

# Release notes

The new API is ~~slow~~ ++fast++. {: .lead}

@@@ .note
Upgrade with ^^Ctrl^^+^^U^^ :check:
@@@

|=== Versions
|# Version | Date
|---
| 1.0 | 2021
|===

Speed  8em>> Value

Term
: Description

3!. third
4. fourth

```python
print(1)
```

/* not shown */
__END__
ignored
"""


class TestDocumentCompilation:
    """Test a complete document"""

    def test_all_features(self, compiler_make):
        """Every construct of a document ends up in the output"""
        compiler = compiler_make(page=PageContext(language="en"))
        html = compiler.compile(DOCUMENT, section_id="news")

        assert compiler.page.fields["title"] == "Release notes"
        assert compiler.page.fields["css"] == "#news .lead { color: navy; }"

        assert "<h1>Release notes</h1>" in html
        assert "<abbr title='Application Programming Interface'>API</abbr>" in html
        assert "<p class='lead'>" in html
        assert "<del>slow</del>" in html
        assert "<ins>fast</ins>" in html
        assert "<div class='note'>" in html
        assert "<kbd>Ctrl</kbd>" in html
        assert "pfy-iconsrc-check" in html
        assert "<caption>Versions</caption>" in html
        assert "<th class='mdp-col-2'>Date</th>" in html
        assert "mdp-tabulator-outer-wrapper-1" in html
        assert "<dt>Term</dt>" in html
        assert "<ol start='3'>" in html
        assert 'class="highlight"' in html
        assert "not shown" not in html
        assert "ignored" not in html
        assert "mdp-md-shield" not in html
        assert "mdp-block-shield" not in html
        assert "<literal>" not in html

    def test_body_end_injections(self, compiler):
        """Icon symbols are collected for the end of the page body"""
        compiler.compile(":check: and :check:")
        injections = compiler.bodyEndInjections_get()
        assert injections.count("<symbol id='pfy-iconsrc-check'>") == 1

    def test_nested_structures(self, compiler):
        """Tables inside div blocks compile at the right depth"""
        html = compiler.compile("@@@ .box\n|===\n| *cell*\n|===\n@@@\n")
        assert html.index("<div class='box'>") < html.index("<table")
        assert "<em>cell</em>" in html


class TestCommandLineStages:
    """Test the pipeline stages of the CLI"""

    @pytest.fixture
    def sources(self, tmp_path):
        inputdir = tmp_path / "in"
        inputdir.mkdir()
        (inputdir / "index.md").write_text("# Home\n\n(include: parts/intro.md)\n")
        (inputdir / "other.md").write_text("Other ~~page~~ :check:\n")
        (inputdir / "parts").mkdir()
        (inputdir / "parts" / "intro.md").write_text("Welcome *in*\n")
        return inputdir

    def test_source_compile(self, sources, tmp_path):
        """A source is compiled to <stem>.html in the output directory"""
        outputdir = tmp_path / "out"
        outputdir.mkdir()
        state = ProgramState(inputdir=sources, outputdir=outputdir)
        output_file = source_compile(sources / "index.md", state)

        assert output_file == outputdir / "index.html"
        html = output_file.read_text()
        assert "<h1>Home</h1>" in html
        assert "<p>Welcome <em>in</em></p>" in html

    def test_injections_appended(self, sources, tmp_path):
        """Body-end injections are appended to the page"""
        outputdir = tmp_path / "out"
        outputdir.mkdir()
        state = ProgramState(inputdir=sources, outputdir=outputdir)
        html = source_compile(sources / "other.md", state).read_text()
        assert "<del>page</del>" in html
        assert html.rstrip().endswith("</symbol></svg>")

    def test_pipeline(self, sources, tmp_path):
        """env_check, sources_compile and results_report compile every source"""
        state = ProgramState(inputdir=sources, outputdir=tmp_path / "out", verbosity=0)
        final = pipeline(state, env_check, sources_compile, results_report)

        assert final.envOK
        assert [p.name for p in final.sourceFiles] == ["index.md", "other.md"]
        assert final.compileResult["status"] is True
        assert (tmp_path / "out" / "index.html").is_file()
        assert (tmp_path / "out" / "other.html").is_file()

    def test_single_input_file(self, sources, tmp_path):
        """--inputFile restricts compilation to one source"""
        state = ProgramState(inputdir=sources, outputdir=tmp_path / "out", inputFile="other.md")
        state = env_check(state)
        assert state.sourceFiles == [sources / "other.md"]

    def test_no_sources_exits(self, tmp_path):
        """A directory without sources ends the program"""
        empty = tmp_path / "empty"
        empty.mkdir()
        state = ProgramState(inputdir=empty, outputdir=tmp_path / "out")
        with pytest.raises(SystemExit) as exc:
            env_check(state)
        assert exc.value.code == 1

    def test_library_use_without_cli(self, sources):
        """The compiler can be used directly with a file resolver"""
        from mdplus.lib import DocumentCompiler

        compiler = DocumentCompiler(files=LocalFiles(sources), page=PageContext(root=Path(".")))
        html = compiler.compile("(include: parts/intro.md)")
        assert "Welcome" in html
