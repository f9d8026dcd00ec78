"""
Shield codec tests

Tests placeholder encoding, literal restoration, deferred markdown
resolution and best-effort decoding of damaged payloads.
"""

import base64

from mdplus.lib.shield import ShieldCodec
from mdplus.models.context import ShieldKind


class TestShieldRoundTrip:
    """Test shield() followed by unshield()"""

    def test_block_round_trip(self):
        """Block payloads come back verbatim"""
        codec = ShieldCodec()
        text = "<b>bold</b> & *not markdown*"
        assert codec.unshield(codec.shield(text, ShieldKind.BLOCK)) == text

    def test_inline_round_trip_unicode(self):
        """Inline payloads survive non-ASCII text"""
        codec = ShieldCodec()
        text = "Grüße → ∞"
        assert codec.unshield(codec.shield(text, "inline")) == text

    def test_placeholder_format(self):
        """Payload travels in the data attribute of a prefixed tag"""
        codec = ShieldCodec()
        shielded = codec.shield("x", ShieldKind.MARKDOWN)
        assert shielded == '<mdp-md-shield data="eA=="></mdp-md-shield>'

    def test_text_without_placeholders_unchanged(self):
        """Text without placeholders is returned as is"""
        codec = ShieldCodec()
        assert codec.unshield("<p>plain</p>") == "<p>plain</p>"

    def test_surrounding_text_kept(self):
        """Only the placeholder is replaced"""
        codec = ShieldCodec()
        html = f"<p>before {codec.shield('<i>x</i>', ShieldKind.INLINE)} after</p>"
        assert codec.unshield(html) == "<p>before <i>x</i> after</p>"


class TestMarkdownResolution:
    """Test deferred markdown fragments"""

    def test_markdown_compiled_by_callback(self):
        """'md' payloads go through the compile callback"""
        calls = []

        def compile_markdown(text, fragment):
            calls.append((text, fragment.depth))
            return f"<p>{text}</p>"

        codec = ShieldCodec(compile_markdown=compile_markdown)
        html = codec.unshield(codec.shield("hello", ShieldKind.MARKDOWN), depth=2)
        assert html == "<p>hello</p>"
        assert calls == [("hello", 2)]

    def test_markdown_compiled_without_literal_decoding(self):
        """'md' payloads are compiled even when literal decoding is off"""
        codec = ShieldCodec(compile_markdown=lambda text, fragment: text.upper())
        block = codec.shield("keep", ShieldKind.BLOCK)
        md = codec.shield("done", ShieldKind.MARKDOWN)
        html = codec.unshield(f"{block}{md}", also_decode_literal=False)
        assert html == f"{block}DONE"

    def test_decoded_literal_not_rescanned(self):
        """A placeholder inside a literal payload is not resolved again"""
        codec = ShieldCodec(compile_markdown=lambda text, fragment: "COMPILED")
        inner = codec.shield("inner", ShieldKind.MARKDOWN)
        outer = codec.shield(inner, ShieldKind.BLOCK)
        assert codec.unshield(outer) == inner


class TestDamagedInput:
    """Test escaped tags and malformed payloads"""

    def test_escaped_placeholder_normalised(self):
        """HTML-escaped placeholders are recognised"""
        codec = ShieldCodec()
        payload = base64.b64encode(b"<hr>").decode("ascii")
        escaped = f"&lt;mdp-block-shield data=&quot;{payload}&quot;&gt;&lt;/mdp-block-shield&gt;"
        assert codec.unshield(escaped) == "<hr>"

    def test_missing_padding_repaired(self):
        """Payloads without '=' padding still decode"""
        assert ShieldCodec.payload_decode("eA") == "x"

    def test_garbage_payload_gives_empty_string(self):
        """Undecodable payloads yield '' instead of raising"""
        assert ShieldCodec.payload_decode("a") == ""

    def test_invalid_utf8_replaced(self):
        """Invalid UTF-8 is replaced, not raised"""
        payload = base64.b64encode(b"ok\xff").decode("ascii")
        assert ShieldCodec.payload_decode(payload) == "ok�"
