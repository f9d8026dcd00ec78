"""
Text helpers shared by the pre- and postprocessor

Comment stripping, the __END__ marker, code-fence aware splitting, CSS length
conversion and the relaxed 'key:value' argument strings used by includes and
macros.
"""

import re
from typing import Any, Dict, List, Tuple

import yaml


FENCE_RE = re.compile(r"^\s{0,3}(`{3,}|~{3,})")
CODE_SPAN_RE = re.compile(r"(?<![`\\])(`+)(?!`)(.+?)(?<!`)\1(?!`)", re.DOTALL)

_BLOCK_COMMENT_RE = re.compile(r"(?<![^\s])/\*.*?\*/", re.DOTALL)
_LINE_COMMENT_FULL_RE = re.compile(r"^[ \t]*//[^\n]*(\n|$)", re.MULTILINE)
_LINE_COMMENT_TAIL_RE = re.compile(r"(?<=\s)//[^\n]*")
_HTML_COMMENT_RE = re.compile(r"<!--.*?(-->|$)", re.DOTALL)
_ARGUMENT_RE = re.compile(
    r"""\s*(?:([\w-]+)\s*:(?!//)\s*)?('[^']*'|"[^"]*"|[^\s,]+)\s*,?"""
)

PX_PER_UNIT: Dict[str, float] = {
    "in": 96.0,
    "cm": 37.7952755906,
    "mm": 3.779527559,
    "em": 12.0,
    "ch": 6.0,
    "pt": 1.3333333333,
    "px": 1.0,
}


def fencedCode_split(text: str) -> List[Tuple[bool, str]]:
    """
    Split text into alternating prose and fenced-code segments

    Fence lines belong to the code segment. Joining all segment texts
    reproduces the input exactly.

    Args:
        text: Markdown source

    Returns:
        List of (is_code, segment_text)

    Example:
        >>> fencedCode_split("a\\n```\\nx\\n```\\nb")
        [(False, 'a\\n'), (True, '```\\nx\\n```\\n'), (False, 'b')]
    """
    segments: List[Tuple[bool, str]] = []
    buffer: List[str] = []
    in_fence = False
    fence_char = ""
    fence_len = 0

    lines = text.split("\n")
    for i, line in enumerate(lines):
        piece = line + ("\n" if i < len(lines) - 1 else "")
        match = FENCE_RE.match(line)
        if match and not in_fence:
            if buffer:
                segments.append((False, "".join(buffer)))
            buffer = [piece]
            in_fence = True
            fence_char = match.group(1)[0]
            fence_len = len(match.group(1))
            continue
        buffer.append(piece)
        if in_fence and match and match.group(1)[0] == fence_char and len(match.group(1)) >= fence_len:
            segments.append((True, "".join(buffer)))
            buffer = []
            in_fence = False
    if buffer:
        segments.append((in_fence, "".join(buffer)))
    return segments


def codeSpans_split(text: str) -> List[Tuple[bool, str]]:
    """Split prose into (is_code, chunk) pairs around backtick code spans"""
    segments: List[Tuple[bool, str]] = []
    pos = 0
    for match in CODE_SPAN_RE.finditer(text):
        if match.start() > pos:
            segments.append((False, text[pos:match.start()]))
        segments.append((True, match.group(0)))
        pos = match.end()
    if pos < len(text):
        segments.append((False, text[pos:]))
    return segments


def cStyleComments_remove(text: str) -> str:
    r"""
    Remove /* ... */ and // comments outside of fenced code

    A comment opener must follow whitespace or start a line, so 'http://'
    and escaped '\//' survive.
    """
    out = []
    for is_code, segment in fencedCode_split(text):
        if not is_code:
            segment = _BLOCK_COMMENT_RE.sub("", segment)
            segment = _LINE_COMMENT_FULL_RE.sub("", segment)
            segment = _LINE_COMMENT_TAIL_RE.sub("", segment)
        out.append(segment)
    return "".join(out)


def fileEnd_zap(text: str) -> str:
    """Drop everything following a line consisting of '__END__'"""
    if text.startswith("__END__\n"):
        return ""
    pos = text.find("\n__END__\n")
    if pos < 0:
        return text
    return text[:pos + 1]


def htmlComments_remove(text: str) -> str:
    """Remove <!-- --> comments, an unterminated comment runs to the end"""
    return _HTML_COMMENT_RE.sub("", text)


def length_toPx(value: str) -> float:
    """
    Convert a CSS length to pixels

    Args:
        value: Length such as '6em', '2.5cm' or '120px'

    Returns:
        Pixel equivalent, 0.0 for unknown units or unparseable input

    Example:
        >>> length_toPx('6em')
        72.0
    """
    match = re.search(r"([\d.]+)(\w*)", value)
    if not match:
        return 0.0
    try:
        number = float(match.group(1))
    except ValueError:
        return 0.0
    return number * PX_PER_UNIT.get(match.group(2), 0.0)


def value_typed(value: str) -> Any:
    """Unquote a value or give it its YAML scalar type ('true' -> True, '3' -> 3)"""
    if len(value) >= 2 and value[0] == value[-1] and value[0] in "'\"":
        return value[1:-1]
    try:
        typed = yaml.safe_load(value)
    except yaml.YAMLError:
        return value
    if isinstance(typed, (bool, int, float)):
        return typed
    return value


def arguments_parse(text: str) -> Tuple[List[Any], Dict[str, Any]]:
    """
    Parse a relaxed argument string

    Arguments are separated by whitespace or commas. 'key: value' pairs go to
    the options mapping, everything else is positional. Values may be quoted.

    Args:
        text: Argument string, e.g. "intro.md literal:true class:'a b'"

    Returns:
        (positional, options)

    Example:
        >>> arguments_parse("intro.md literal:true")
        (['intro.md'], {'literal': True})
    """
    positional: List[Any] = []
    options: Dict[str, Any] = {}
    pos = 0
    text = text.strip()
    while pos < len(text):
        match = _ARGUMENT_RE.match(text, pos)
        if not match or match.end() == pos:
            break
        key, value = match.group(1), match.group(2)
        if key:
            options[key] = value_typed(value)
        else:
            positional.append(value_typed(value))
        pos = match.end()
    return positional, options


def explode_trim(separator: str, text: str) -> List[str]:
    """Split on any of the separator characters, trim, drop empty parts"""
    parts = re.split("[" + re.escape(separator) + "]", text)
    return [p.strip() for p in parts if p.strip()]
