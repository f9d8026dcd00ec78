"""
Icon registry tests

Tests icon discovery, SVG symbol rendering with body-end injection,
raster icons and the unknown-icon policies.
"""

import pytest

from mdplus.lib.collaborators import PageContext
from mdplus.lib.errors import IconFormatError, IconNotFoundError
from mdplus.lib.icons import IconRegistry


STAR_SVG = '<svg xmlns="http://www.w3.org/2000/svg" viewBox="0 0 24 24">\n<path d="M1 1h2"/>\n</svg>\n'


@pytest.fixture
def icon_dir(tmp_path):
    directory = tmp_path / "icons"
    directory.mkdir()
    (directory / "star.svg").write_text(STAR_SVG)
    (directory / "logo.png").write_bytes(b"\x89PNG")
    (directory / "broken.svg").write_text("<div>no svg here</div>")
    return directory


class TestIconDiscovery:
    """Test the name to file table"""

    def test_icons_found(self, icon_dir):
        """Every supported file in the directory becomes an icon"""
        registry = IconRegistry([icon_dir])
        assert registry.exists("star")
        assert registry.exists("logo")
        assert not registry.exists("moon")

    def test_missing_directory_ignored(self, tmp_path):
        """Directories that do not exist are skipped"""
        registry = IconRegistry([tmp_path / "nowhere"])
        assert registry.icons == {}

    def test_first_directory_wins(self, icon_dir, tmp_path):
        """A name provided by several directories comes from the first"""
        other = tmp_path / "other"
        other.mkdir()
        (other / "star.svg").write_text(STAR_SVG)
        registry = IconRegistry([other, icon_dir])
        assert registry.icons["star"] == other / "star.svg"


class TestIconRendering:
    """Test icon_render() output"""

    def test_svg_icon_references_symbol(self, icon_dir):
        """SVG icons render as a <use> reference inside a span"""
        page = PageContext()
        html = IconRegistry([icon_dir]).icon_render("star", page)
        assert html.startswith("<span class='mdp-icon'><svg")
        assert "<use href='#pfy-iconsrc-star' /></svg></span>" in html

    def test_svg_symbol_injected_once(self, icon_dir):
        """The symbol definition is pushed to the page once per name"""
        page = PageContext()
        registry = IconRegistry([icon_dir])
        first = registry.icon_render(":star:", page)
        second = registry.icon_render("star", page)
        assert first == second
        assert len(page.body_end_injections) == 1
        sprite = page.body_end_injections[0]
        assert sprite.startswith('<svg style="display:none" aria-hidden="true" focusable="false"')
        assert "<symbol id='pfy-iconsrc-star'><path d=\"M1 1h2\"/></symbol></svg>" in sprite

    def test_title_suffix(self, icon_dir):
        """'name/title' adds a tooltip"""
        html = IconRegistry([icon_dir]).icon_render("star/Favourite", PageContext())
        assert html.startswith("<span class='mdp-icon' title='Favourite'>")

    def test_raster_icon(self, icon_dir):
        """Raster icons render as <img>"""
        html = IconRegistry([icon_dir]).icon_render("logo", PageContext())
        assert html.startswith("<span class='mdp-icon'><img src='")
        assert "logo.png' alt=''></span>" in html

    def test_unknown_icon_literal(self, icon_dir):
        """Unknown names come back unchanged"""
        assert IconRegistry([icon_dir]).icon_render(":moon:", PageContext()) == ":moon:"

    def test_unknown_icon_strict(self, icon_dir):
        """Strict mode raises for unknown names"""
        with pytest.raises(IconNotFoundError, match="moon"):
            IconRegistry([icon_dir]).icon_render("moon", PageContext(), strict=True)

    def test_svg_without_root(self, icon_dir):
        """An SVG file without <svg> element is a format error"""
        with pytest.raises(IconFormatError, match="broken"):
            IconRegistry([icon_dir]).icon_render("broken", PageContext())
