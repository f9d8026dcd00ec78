"""
Exceptions raised by the MarkdownPlus compiler

Only structural problems in the source abort a compile. Everything else
(unknown icons, missing includes, undecodable shields) degrades silently.
"""

from typing import Optional


class MarkdownPlusError(Exception):
    """Base class of all mdplus errors"""


class BlockStructureError(MarkdownPlusError, SyntaxError):
    """
    Malformed block structure (table cell without leading '|', broken fence)

    Message layout follows the parser errors:

        Error in AsciiTable: cell definition needs leading '|'
        Line 4
        Context: some text
    """

    def __init__(self, message: str, line_number: Optional[int] = None, line: str = "") -> None:
        self.message = message
        self.line_number = line_number
        self.line = line
        text = f"\n{message}"
        if line_number is not None:
            text += f"\nLine {line_number}"
        if line:
            text += f"\nContext: {line}"
        super().__init__(text)


class RecursionLimitError(MarkdownPlusError):
    """Nested compilation went deeper than max_recursion_depth"""


class IncludeError(MarkdownPlusError):
    """An include target exists but could not be read"""


class IconNotFoundError(MarkdownPlusError, KeyError):
    """Unknown icon name in strict mode"""

    def __str__(self) -> str:
        return str(self.args[0]) if self.args else ""


class IconFormatError(MarkdownPlusError):
    """SVG icon file without an <svg> root element"""
