#!/usr/bin/env python3
"""
mdplus - MarkdownPlus compiler

Compiles MarkdownPlus sources, a superset of Markdown, to HTML fragments.

As an aside, this codebase leverages the ChRIS "plugin" concept/pattern as
general purpose python app development framework.

MarkdownPlus adds to Markdown:
    - Div blocks: '@@@ .note' ... '@@@' fenced containers with attributes
    - ASCII tables: '|===' fenced tables with row/column spans and captions
    - Tabulators: 'Name  8em>> Value' column layouts
    - Definition lists and 'N!.' ordered lists with explicit start
    - Inline markers: ~~strike~~, ~sub~, ^sup^, ^^kbd^^, ==mark==, ++ins++, __u__
    - Attribute annotations: '{: #id .class color:red !lang=en}'
    - Includes, frontmatter fields, abbreviations and icons

Usage:
    mdplus inputdir/ outputdir/ [--inputFile page.md] [--pattern '*.md']

    Every selected source is compiled to outputdir/<stem>.html.

Examples:
    # Compile all .md files of a directory
    mdplus pages/ html/

    # A single file, German language variant, verbose
    mdplus pages/ html/ --inputFile intro.md --language de -vv
"""

import sys
from pathlib import Path
from argparse import ArgumentParser, Namespace, ArgumentDefaultsHelpFormatter

from chris_plugin import chris_plugin
from .lib import DocumentCompiler, LocalFiles, PageContext, MarkdownPlusError, __version__, LOG, state_connectToLogger
from .models import ProgramState, pipeline


DISPLAY_TITLE = r"""
                  _       _
   _ __ ___   __| |_ __ | |_   _ ___
  | '_ ` _ \ / _` | '_ \| | | | / __|
  | | | | | | (_| | |_) | | |_| \__ \
  |_| |_| |_|\__,_| .__/|_|\__,_|___/
                  |_|
  MarkdownPlus compiler
"""

# Define CLI arguments
parser = ArgumentParser(
    description="mdplus - MarkdownPlus to HTML compiler",
    formatter_class=ArgumentDefaultsHelpFormatter,
)

parser.add_argument(
    "--inputFile",
    default="",
    type=str,
    help="Single source file (relative to inputdir); overrides --pattern",
)

parser.add_argument(
    "--pattern",
    default="*.md",
    type=str,
    help="Glob selecting the source files in inputdir",
)

parser.add_argument(
    "--language",
    default="",
    type=str,
    help="Active language code for '!lang=' filtering",
)

parser.add_argument(
    "--sectionId",
    default="",
    type=str,
    help="Section identifier replacing '#this' / '.this' in css frontmatter",
)

parser.add_argument(
    "--keepComments",
    action="store_true",
    help="Keep C-style comments and text after __END__",
)

parser.add_argument(
    "-v",
    "--verbosity",
    action="count",
    default=1,
    help="Increase output verbosity (can be repeated: -v, -vv, -vvv)",
)

parser.add_argument("-V", "--version", action="version", version=f"%(prog)s {__version__}")


def env_check(inputstate: ProgramState) -> ProgramState:
    """
    Validate environment and resolve the source files.

    Args:
        inputstate: Initial program state with CLI options

    Returns:
        ProgramState with added fields:
            - sourceFiles: Sources to compile
            - envOK: True if environment is valid

    Exits:
        1 if no source file is found
    """

    state = inputstate.copy()

    if state.verbosity >= 2:
        LOG(DISPLAY_TITLE, level=2)

    LOG("Checking environment...", level=2)

    if state.inputFile:
        input_file = state.inputdir / state.inputFile
        if not input_file.is_file():
            print(f"Error: Input file not found: {input_file}", file=sys.stderr)
            state.envOK = False
            sys.exit(1)
        state.sourceFiles = [input_file]
    else:
        state.sourceFiles = sorted(p for p in state.inputdir.glob(state.pattern) if p.is_file())

    if not state.sourceFiles:
        print(f"Error: No sources matching '{state.pattern}' in {state.inputdir}", file=sys.stderr)
        state.envOK = False
        sys.exit(1)

    LOG(f"Sources: {', '.join(p.name for p in state.sourceFiles)}", level=2)

    state.outputdir.mkdir(parents=True, exist_ok=True)
    LOG(f"Output directory: {state.outputdir}", level=2)

    state.envOK = True
    return state


def source_compile(source_file: Path, state: ProgramState) -> Path:
    """
    Compile one source file and write the HTML next to the others.

    Each file gets its own DocumentCompiler, so counters and frontmatter
    fields do not leak between pages.

    Args:
        source_file: MarkdownPlus source
        state: Program state with output directory and compile options

    Returns:
        Path of the written .html file
    """
    page = PageContext(language=state.language, root=source_file.parent.relative_to(state.inputdir))
    compiler = DocumentCompiler(
        page=page,
        files=LocalFiles(state.inputdir),
        verbosity=state.verbosity,
    )
    html = compiler.compile(
        source_file.read_text(encoding="utf-8"),
        section_id=state.sectionId,
        remove_comments=not state.keepComments,
    )
    injections = compiler.bodyEndInjections_get()
    if injections:
        html = f"{html}\n{injections}\n"

    output_file = state.outputdir / f"{source_file.stem}.html"
    output_file.write_text(html, encoding="utf-8")
    LOG(f"Wrote {output_file} ({len(html)} chars)", level=2)
    return output_file


def sources_compile(inputstate: ProgramState) -> ProgramState:
    """
    Compile all selected sources to HTML.

    Args:
        inputstate: Program state with sourceFiles resolved

    Returns:
        ProgramState with added field:
            - compileResult: Dict containing:
                - status: bool (compilation success)
                - output_files: List[str] (written .html files)

    Exits:
        1 on read errors or MarkdownPlus errors
    """

    state = inputstate.copy()

    LOG("Compiling sources...", level=1)

    output_files = []
    for source_file in state.sourceFiles:
        LOG(f"Compiling {source_file.name}", level=1)
        try:
            output_files.append(str(source_compile(source_file, state)))
        except OSError as e:
            print(f"Error reading input file: {e}", file=sys.stderr)
            sys.exit(1)
        except MarkdownPlusError as e:
            print(f"Compilation error in {source_file.name}: {e}", file=sys.stderr)
            if state.verbosity >= 3:
                import traceback

                traceback.print_exc()
            sys.exit(1)

    state.compileResult = {
        "status": True,
        "output_files": output_files,
    }
    return state


def results_report(inputstate: ProgramState) -> ProgramState:
    """
    Display compilation results to user.

    Args:
        inputstate: Program state with compileResult populated

    Returns:
        ProgramState unchanged (terminal pipeline stage)

    Exits:
        1 if compileResult is None
    """
    state: ProgramState = inputstate.copy()
    if not state.compileResult:
        print("Error: Compilation failed", file=sys.stderr)
        sys.exit(1)

    if state.verbosity >= 1:
        LOG("\n✓ Compilation successful!", level=1)
        LOG(f"  Files: {len(state.compileResult['output_files'])}", level=1)
        for output_file in state.compileResult["output_files"]:
            LOG(f"  Output: {output_file}", level=1)
    return state


@chris_plugin(
    parser=parser,
    title="mdplus - MarkdownPlus compiler",
    category="Utility",
    min_memory_limit="100Mi",
    min_cpu_limit="500m",
)
def main(options: Namespace, inputdir: Path, outputdir: Path):
    """
    Main entry point - compile MarkdownPlus sources to HTML.

    Orchestrates the compilation pipeline:
        1. env_check: Resolve sources, create output directory
        2. sources_compile: Compile each source to <stem>.html
        3. results_report: Display results to user

    Args:
        options: CLI arguments from argparse
            - inputFile: str - Single source file name
            - pattern: str - Glob for source files
            - language: str - Active language code
            - sectionId: str - Section identifier for css fields
            - keepComments: bool - Keep C-style comments
            - verbosity: int - Logging verbosity level (1-3)
        inputdir: Directory containing MarkdownPlus sources
        outputdir: Directory where the HTML files will be written

    Note:
        This function is wrapped by @chris_plugin which handles CLI
        argument parsing and invokes this function with parsed values.
    """

    state: ProgramState = ProgramState.state_createFromNamespace(
        options=options, inputdir=inputdir, outputdir=outputdir
    )

    # Connect state to logger for entire pipeline
    state_connectToLogger(state)

    # Execute compilation pipeline
    pipeline(state, env_check, sources_compile, results_report)


if __name__ == "__main__":
    main()  # type: ignore  # @chris_plugin decorator transforms signature
