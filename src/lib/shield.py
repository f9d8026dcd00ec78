"""
Shield codec

Fragments that must survive the baseline engine untouched are replaced by
placeholder elements carrying the base64 encoded fragment in an attribute:

    <mdp-block-shield data="PGI+aGk8L2I+"></mdp-block-shield>

'block' and 'inline' payloads are restored verbatim, 'md' payloads are
compiled (block mode) when restored. Restoration happens once, at the end of
postprocessing, and is the only place a payload is ever decoded.
"""

import base64
import binascii
import re
from typing import Callable, List, Optional, Union

from ..config.settings import AppSettings, appsettings
from ..models.context import ShieldFragment, ShieldKind
from .log import LOG


class ShieldCodec:
    """
    Encode fragments into placeholders and resolve them again

    Args:
        settings: Provides the placeholder tag names
        compile_markdown: Callback compiling deferred markdown, called with
            the decoded text and the fragment being resolved

    Example:
        >>> codec = ShieldCodec()
        >>> codec.unshield(codec.shield('<b>x</b>', ShieldKind.BLOCK))
        '<b>x</b>'
    """

    def __init__(
        self,
        settings: Optional[AppSettings] = None,
        compile_markdown: Optional[Callable[[str, ShieldFragment], str]] = None,
    ) -> None:
        self.settings = settings or appsettings
        self.compile_markdown = compile_markdown
        self.tags = {kind: self.settings.shieldTag_make(kind.value) for kind in ShieldKind}
        self.kinds = {tag: kind for kind, tag in self.tags.items()}

        names = "|".join(re.escape(tag) for tag in self.tags.values())
        self._placeholder_re = re.compile(
            rf'<({names})\s+data="([^"]*)"\s*>\s*</\1>'
        )
        self._escaped_re = re.compile(
            rf'&lt;(/?)({names})((?:\s+data=(?:&quot;|")[^"&]*(?:&quot;|"))?)\s*&gt;'
        )

    @property
    def block_level_tags(self) -> List[str]:
        """Placeholder tags that stand for whole blocks"""
        return [self.tags[ShieldKind.BLOCK], self.tags[ShieldKind.MARKDOWN]]

    def shield(self, text: str, kind: Union[ShieldKind, str] = ShieldKind.BLOCK) -> str:
        """
        Wrap text in a placeholder of the given kind

        Args:
            text: Fragment to protect
            kind: ShieldKind or its value ('block', 'inline', 'md')

        Returns:
            Placeholder element
        """
        kind = ShieldKind(kind)
        payload = base64.b64encode(text.encode("utf-8")).decode("ascii")
        tag = self.tags[kind]
        return f'<{tag} data="{payload}"></{tag}>'

    def contains(self, text: str) -> bool:
        return any(tag in text for tag in self.kinds)

    def escapes_normalize(self, text: str) -> str:
        """Undo HTML escaping the engine may have applied to placeholder tags"""
        def unescape(match: "re.Match[str]") -> str:
            attrs = match.group(3).replace("&quot;", '"')
            return f"<{match.group(1)}{match.group(2)}{attrs}>"
        return self._escaped_re.sub(unescape, text)

    def fragments_collect(
        self, text: str, depth: int = 0, parent: Optional[ShieldFragment] = None
    ) -> List[ShieldFragment]:
        """Queue every placeholder found in text"""
        return [
            ShieldFragment(
                kind=self.kinds[match.group(1)],
                payload=match.group(2),
                span=match.span(),
                depth=depth,
                parent=parent,
            )
            for match in self._placeholder_re.finditer(text)
        ]

    def unshield(
        self,
        text: str,
        also_decode_literal: bool = True,
        depth: int = 0,
        parent: Optional[ShieldFragment] = None,
    ) -> str:
        """
        Resolve all placeholders in text

        Literal fragments are resolved before deferred markdown. Every
        replacement is spliced in by source position, so resolved text is
        never scanned for placeholders again.

        Args:
            text: HTML containing placeholders
            also_decode_literal: Restore 'block' and 'inline' payloads too;
                'md' payloads are compiled in any case
            depth: Compile depth of text
            parent: Fragment text was produced from, if any

        Returns:
            Text with placeholders replaced
        """
        if not self.contains(text):
            return text
        text = self.escapes_normalize(text)
        pending = self.fragments_collect(text, depth, parent)
        if not pending:
            return text

        if also_decode_literal:
            for fragment in pending:
                if fragment.kind.is_literal:
                    fragment.resolved = self.payload_decode(fragment.payload)

        for fragment in pending:
            if fragment.kind is ShieldKind.MARKDOWN:
                fragment.resolved = self.markdown_resolve(fragment)

        out = []
        pos = 0
        for fragment in pending:
            start, end = fragment.span
            out.append(text[pos:start])
            out.append(text[start:end] if fragment.resolved is None else fragment.resolved)
            pos = end
        out.append(text[pos:])
        return "".join(out)

    def markdown_resolve(self, fragment: ShieldFragment) -> str:
        source = self.payload_decode(fragment.payload)
        LOG(f"Resolving deferred markdown at depth {fragment.depth}", level=3)
        if self.compile_markdown is None:
            return source
        return self.compile_markdown(source, fragment)

    @staticmethod
    def payload_decode(payload: str) -> str:
        """
        Best-effort base64 decoding

        Missing padding is repaired; undecodable input yields an empty
        string and invalid UTF-8 sequences are replaced.
        """
        payload = re.sub(r"[^A-Za-z0-9+/]", "", payload)
        payload += "=" * (-len(payload) % 4)
        try:
            raw = base64.b64decode(payload)
        except (binascii.Error, ValueError):
            LOG("Undecodable shield payload dropped", level=2)
            return ""
        return raw.decode("utf-8", errors="replace")
