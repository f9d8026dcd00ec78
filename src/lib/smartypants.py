"""
Typographic substitutions

Replaces ASCII sequences with their typographic counterparts ('->' becomes
an arrow, '--' an en dash, ...). Works on rendered HTML parsed with
BeautifulSoup: only text nodes are touched, and nothing inside tt, raw,
code, pre, samp, kbd, script or style elements. The result is serialized
with named entities, so the arrow comes out as '&rarr;'.
"""

import re
from typing import List, Pattern, Tuple

from bs4 import BeautifulSoup, NavigableString
from bs4.dammit import EntitySubstitution
from bs4.element import PreformattedString
from bs4.formatter import HTMLFormatter


SUBSTITUTIONS: List[Tuple[Pattern[str], str]] = [
    (re.compile(pattern), replacement) for pattern, replacement in [
        (r"(?<!-)->", "→"),
        (r"(?<!=)=>", "⇒"),
        (r"(?<!!)<-(?!-)", "←"),
        (r"(?<!=)<=", "⇐"),
        (r"(?<!\.)\.\.\.(?!\.)", "…"),
        (r"(?<!-)---(?!-)", "—"),
        (r"(?<![-!])--(?![->])", "–"),
        (r"(?<!<)<<(?!<)", "«"),
        (r"(?<!>)>>(?!>)", "»"),
        (r"\bEURO\b", "€"),
        (r"(?<!\d)1/4(?!\d)", "¼"),
        (r"(?<!\d)1/2(?!\d)", "½"),
        (r"(?<!\d)3/4(?!\d)", "¾"),
        (r"(?<!\d)0/00(?!\d)", "‰"),
        (r"(?<!,),,(?!,)", "„"),
        (r"(?<!')''(?!')", "”"),
        (r"(?<!`)``(?!`)", "“"),
        (r"(?<!~)~~(?!~)", "≈"),
        (r"\bINFINITY\b", "∞"),
    ]
]

SKIP_ELEMENTS = frozenset("tt raw code pre samp kbd script style".split())

# <literal> wraps single lines of bare HTML that may open an element without
# closing it; as comments they pass the parser without restructuring
LITERAL_TAGS = (("<literal>", "<!--mdp-literal-->"), ("</literal>", "<!--/mdp-literal-->"))


class _OutputFormatter(HTMLFormatter):
    """Named entities in text, attribute values only get '&' escaped"""

    def attribute_value(self, value: str) -> str:
        return value.replace("&", "&amp;")


OUTPUT_FORMATTER = _OutputFormatter(
    entity_substitution=EntitySubstitution.substitute_html,
    void_element_close_prefix=None,
)


def text_substitute(text: str) -> str:
    for pattern, replacement in SUBSTITUTIONS:
        text = pattern.sub(replacement, text)
    return text


def _is_skipped(node: NavigableString) -> bool:
    return any(parent.name in SKIP_ELEMENTS for parent in node.parents)


def smartypants(html: str) -> str:
    """
    Apply the substitution table to the text content of html

    Args:
        html: Rendered HTML

    Returns:
        HTML with substitutions applied to text nodes outside skipped
        elements; attribute values and comments are left alone

    Example:
        >>> smartypants('<p>a -&gt; b</p><code>a -&gt; b</code>')
        '<p>a &rarr; b</p><code>a -&gt; b</code>'
    """
    for tag, comment in LITERAL_TAGS:
        html = html.replace(tag, comment)
    soup = BeautifulSoup(html, "html.parser")
    # collect first, replace_with() detaches nodes from the iteration
    for node in list(soup.find_all(string=True)):
        if isinstance(node, PreformattedString) or _is_skipped(node):
            continue
        text = str(node)
        substituted = text_substitute(text)
        if substituted != text:
            node.replace_with(substituted)
    html = soup.decode(formatter=OUTPUT_FORMATTER)
    for tag, comment in LITERAL_TAGS:
        html = html.replace(comment, tag)
    return html
