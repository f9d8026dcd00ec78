"""
mdplus - MarkdownPlus compiler

Compiles MarkdownPlus, a superset of Markdown, to HTML.
"""

__version__ = "1.0.0"

from .lib import DocumentCompiler, PageContext, MarkdownPlusError, LOG, state_connectToLogger

__all__ = ["DocumentCompiler", "PageContext", "MarkdownPlusError", "LOG", "state_connectToLogger", "__version__"]
