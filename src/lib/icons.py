"""
Icon registry for ':name:' references

Icons are image files found in an ordered list of directories; the file
name without extension is the icon name and the first directory providing
a name wins. SVG icons are emitted as a '<use>' reference while their body
goes, once per name, into a hidden '<symbol>' sprite injected at the end
of the page body.
"""

import re
from pathlib import Path
from typing import Dict, Iterable, Optional

from .collaborators import PageContext
from .errors import IconFormatError, IconNotFoundError
from .log import LOG


ICON_EXTENSIONS = ("jpg", "gif", "png", "svg")

_SVG_RE = re.compile(r"(<svg.*?>)(.*)</svg>", re.DOTALL)


class IconRegistry:
    """
    Icon name to file table plus the rendered-SVG memo

    Args:
        paths: Directories to search, in priority order

    Example:
        >>> registry = IconRegistry([Path('site/icons')])
        >>> registry.exists('nope')
        False
    """

    def __init__(self, paths: Iterable[Path]) -> None:
        self.icons: Dict[str, Path] = {}
        self.svg_memo: Dict[str, str] = {}
        for directory in paths:
            directory = Path(directory)
            if not directory.is_dir():
                continue
            for extension in ICON_EXTENSIONS:
                for icon_file in sorted(directory.glob(f"*.{extension}")):
                    self.icons.setdefault(icon_file.stem, icon_file)
        LOG(f"Icon table built: {len(self.icons)} icons", level=2)

    def exists(self, name: str) -> bool:
        icon_file = self.icons.get(name)
        return icon_file is not None and icon_file.is_file()

    def icon_render(
        self,
        name: str,
        page: PageContext,
        title: str = "",
        strict: bool = False,
    ) -> str:
        """
        Render an icon

        Args:
            name: Icon name, optionally ':name:' and/or 'name/title text'
            page: Receives the SVG symbol definition
            title: Tooltip, overridden by a '/title' suffix of name
            strict: Raise IconNotFoundError for unknown names

        Returns:
            Icon HTML, or name unchanged if the icon is unknown
        """
        original = name
        colon = re.match(r"^:(.*?):(.*)", name)
        if colon:
            name = colon.group(1) + colon.group(2)
        if "/" in name:
            name, title = name.split("/", 1)

        title_attr = f" title='{title}'" if title else ""
        if not self.exists(name):
            if strict:
                raise IconNotFoundError(f"Error: icon '{name}' not found.")
            LOG(f"Unknown icon '{name}' left as is", level=2)
            return original

        icon_file = self.icons[name]
        if icon_file.suffix.lower() == ".svg":
            return f"<span class='mdp-icon'{title_attr}>{self.svg_render(name, icon_file, page)}</span>"
        return f"<span class='mdp-icon'{title_attr}><img src='{icon_file}' alt=''></span>"

    def svg_render(self, name: str, icon_file: Path, page: Optional[PageContext]) -> str:
        """'<use>' reference to the icon's symbol, defining the symbol on first use"""
        if name in self.svg_memo:
            return self.svg_memo[name]

        source = icon_file.read_text(encoding="utf-8").replace("\n", "")
        match = _SVG_RE.search(source)
        if not match:
            raise IconFormatError(f"Error in code of icon '{name}'")
        svg_open, svg_body = match.group(1), match.group(2)
        icon_id = f"pfy-iconsrc-{name}"

        reference = f"{svg_open}<use href='#{icon_id}' /></svg>"
        hidden = '<svg style="display:none" aria-hidden="true" focusable="false"' + svg_open[4:]
        if page is not None:
            page.bodyEnd_inject(f"{hidden}<symbol id='{icon_id}'>{svg_body}</symbol></svg>")
        self.svg_memo[name] = reference
        return reference
