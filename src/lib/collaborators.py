"""
Host collaborators of the compiler

The compiler talks to its environment through four small interfaces:

- FileResolver: resolve/read files for includes and the abbreviations file
- PermissionEvaluator: answers '!user=', '!role=' and '!visible=' queries
- PageContext: language, page root/url, frontmatter fields, body-end sink
- MacroDispatcher: optional 'img'/'link' macros and kirbytag expansion

Each comes with a default implementation good enough for standalone use.
"""

import glob
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Dict, List, Optional, Protocol, Union

from .log import LOG


PathLike = Union[str, Path]

DEFAULT_EXCLUDE = r"^[-_#]"


class FileResolver(Protocol):
    def resolve(self, pattern: str, exclude: Optional[str] = None) -> List[Path]: ...

    def read(self, path: PathLike) -> str: ...

    def exists(self, path: PathLike) -> bool: ...


class PermissionEvaluator(Protocol):
    def evaluate(self, query: str) -> bool: ...


class MacroDispatcher(Protocol):
    def macro_try(self, name: str, args: str) -> Optional[str]: ...

    def tag_expand(self, text: str) -> Optional[str]: ...


def braces_expand(pattern: str) -> List[str]:
    """
    Expand '{a,b}' alternatives of a glob pattern

    Example:
        >>> braces_expand('icons/*.{png,svg}')
        ['icons/*.png', 'icons/*.svg']
    """
    match = re.search(r"\{([^{}]*)\}", pattern)
    if not match:
        return [pattern]
    expanded: List[str] = []
    for alternative in match.group(1).split(","):
        expanded.extend(braces_expand(pattern[:match.start()] + alternative + pattern[match.end():]))
    return expanded


class LocalFiles:
    """
    File resolver on the local file system

    Relative paths are taken relative to 'root'.
    """

    def __init__(self, root: Optional[PathLike] = None) -> None:
        self.root = Path(root) if root is not None else Path(".")

    def path_resolve(self, name: PathLike) -> Path:
        path = Path(name)
        return path if path.is_absolute() else self.root / path

    def resolve(self, pattern: str, exclude: Optional[str] = None) -> List[Path]:
        """
        Resolve a file name, directory or glob pattern to a sorted file list

        Directory entries whose name starts with a character matched by
        'exclude' (default: '-', '_' or '#') are skipped.

        Args:
            pattern: File, directory or glob (brace alternatives allowed)
            exclude: Regex applied to the first character of each basename

        Returns:
            Matching paths, empty if nothing matches
        """
        path = self.path_resolve(pattern)
        if path.is_file():
            return [path]
        if path.is_dir():
            path = path / "*"

        rule = re.compile(exclude if exclude is not None else DEFAULT_EXCLUDE)
        found: List[Path] = []
        for alternative in braces_expand(str(path)):
            for name in sorted(glob.glob(alternative)):
                candidate = Path(name)
                if rule.pattern and rule.search(candidate.name[:1]):
                    continue
                if candidate.is_file() and candidate not in found:
                    found.append(candidate)
        return found

    def read(self, path: PathLike) -> str:
        return self.path_resolve(path).read_text(encoding="utf-8")

    def exists(self, path: PathLike) -> bool:
        return self.path_resolve(path).exists()


@dataclass
class Visitor:
    """The user a page is rendered for"""
    name: str = ""
    email: str = ""
    role: str = ""
    logged_in: bool = False
    is_localhost: bool = False


class Permission:
    """
    Default permission evaluator

    Query language (case-insensitive):
        nobody / noone          never
        anybody / anyone        always
        ...localhost...         granted for local visitors
        notloggedin / anon      visitor not logged in
        ...loggedin...          visitor logged in
        user=NAME               logged-in visitor called NAME
                                ('user=loggedin', 'user=anon' as above)
        role=NAME               logged-in visitor with role NAME
        NAME                    matches name, email or role of logged-in visitor
    """

    def __init__(self, visitor: Optional[Visitor] = None, allow_on_localhost: bool = True) -> None:
        self.visitor = visitor or Visitor()
        self.allow_on_localhost = allow_on_localhost

    def evaluate(self, query: str) -> bool:
        if not query:
            return False
        query = query.strip().lower()

        if query in ("nobody", "noone"):
            return False
        if query in ("anybody", "anyone"):
            return True

        if "localhost" in query and self.visitor.is_localhost and self.allow_on_localhost:
            return True

        visitor = self.visitor
        name = visitor.name.lower()
        email = visitor.email.lower()
        role = visitor.role.lower()
        logged_in = visitor.logged_in

        if query in ("notloggedin", "anon"):
            return not logged_in
        if "loggedin" in query and not query.startswith(("user=", "role=")):
            return logged_in

        user = re.match(r"^user=([\w.@-]+)", query)
        if user:
            if user.group(1) in (name, "loggedin"):
                return logged_in
            if user.group(1) == "anon":
                return not logged_in
            return False

        role_match = re.match(r"^role=([\w-]+)", query)
        if role_match:
            return logged_in and role_match.group(1) == role

        if query in (name, email, role):
            return logged_in
        return False


@dataclass
class PageContext:
    """
    The page a document is compiled for

    Attributes:
        language: Active language code for '!lang=' filtering
        root: Directory of the page, used for bare include/image file names
        url: Public URL of the page directory ('' leaves file names as they are)
        fields: Frontmatter fields accumulated while compiling
        body_end_injections: HTML to be appended before </body>
    """
    language: str = ""
    root: Path = field(default_factory=lambda: Path("."))
    url: str = ""
    fields: Dict[str, str] = field(default_factory=dict)
    body_end_injections: List[str] = field(default_factory=list)

    def field_append(self, key: str, value: str) -> None:
        self.fields[key] = self.fields.get(key, "") + value

    def bodyEnd_inject(self, html: str) -> None:
        if html not in self.body_end_injections:
            self.body_end_injections.append(html)

    def file_url(self, name: str) -> str:
        """URL of a file living next to the page"""
        if not self.url:
            return name
        return f"{self.url.rstrip('/')}/{name}"


class NullMacros:
    """Macro dispatcher that handles nothing"""

    def macro_try(self, name: str, args: str) -> Optional[str]:
        return None

    def tag_expand(self, text: str) -> Optional[str]:
        return None


class MacroTable:
    """
    Macro dispatcher backed by plain callables

    Example:
        >>> macros = MacroTable({'link': lambda args: f'<a data-args="{args}"></a>'})
        >>> macros.macro_try('img', "src:'x.png'") is None
        True
    """

    def __init__(
        self,
        macros: Optional[Dict[str, Callable[[str], str]]] = None,
        tag_expander: Optional[Callable[[str], Optional[str]]] = None,
    ) -> None:
        self.macros = dict(macros or {})
        self.tag_expander = tag_expander

    def macro_try(self, name: str, args: str) -> Optional[str]:
        handler = self.macros.get(name)
        if handler is None:
            return None
        LOG(f"Macro '{name}' called with: {args}", level=3)
        return handler(args)

    def tag_expand(self, text: str) -> Optional[str]:
        if self.tag_expander is None:
            return None
        return self.tag_expander(text)
