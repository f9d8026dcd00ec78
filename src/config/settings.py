"""
Application settings and configuration

Uses pydantic-settings for type-safe configuration via environment variables.
All settings use MDPLUS_ prefix (e.g., MDPLUS_DIVBLOCK_CHARS='@%:').

Settings can also be loaded from a .env file in the project root.
"""

from pathlib import Path
from typing import List

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


PACKAGE_ROOT = Path(__file__).resolve().parent.parent


class AppSettings(BaseSettings):
    """
    Application configuration via environment variables.

    Environment variables use MDPLUS_ prefix.

    Examples:
        MDPLUS_DIVBLOCK_CHARS=@%
        MDPLUS_ICONS_PATH=site/assets/icons,site/custom/icons
        MDPLUS_ENABLE_SMARTYPANTS=true
    """

    model_config = SettingsConfigDict(
        env_prefix="MDPLUS_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Block configuration
    divblock_chars: str = Field(
        default="@%",
        description="Characters that may open a div block fence (repeated 3 to 10 times)",
    )

    default_tabulator_width: str = Field(
        default="6em",
        description="Width assumed for tabulator columns without an explicit width",
    )

    # Inline configuration
    enable_icons: bool = Field(
        default=True,
        description="Recognize ':name:' icon references",
    )

    icons_path: str = Field(
        default="",
        description="Comma separated icon directories, searched before the bundled icons",
    )

    strict_icons: bool = Field(
        default=False,
        description="Raise on unknown icon names instead of rendering them literally",
    )

    # Postprocessing configuration
    enable_smartypants: bool = Field(
        default=False,
        description="Apply typographic substitutions (arrows, dashes, quotes, ...)",
    )

    compile_code_blocks: bool = Field(
        default=False,
        description="Run inline compilation on the content of bare <code> elements",
    )

    highlight_code_blocks: bool = Field(
        default=True,
        description="Highlight fenced code blocks that declare a language",
    )

    pygments_style: str = Field(
        default="default",
        description="Pygments style used for highlighted code blocks",
    )

    # Preprocessing configuration
    abbreviations_file: str = Field(
        default="site/custom/variables/abbreviations.txt",
        description="File with 'KEY: expansion' lines applied to every document",
    )

    # Engine configuration
    baseline_extensions: List[str] = Field(
        default_factory=lambda: ["fenced_code"],
        description="Python-Markdown extensions loaded into the baseline engine",
    )

    max_recursion_depth: int = Field(
        default=32,
        description="Maximum nesting depth of recursive compilation",
    )

    shield_tag_prefix: str = Field(
        default="mdp",
        description="Prefix of shield placeholder tag names",
    )

    def shieldTag_make(self, kind: str) -> str:
        """
        Tag name used for shield placeholders of the given kind.

        Args:
            kind: Shield kind value ('block', 'inline' or 'md')

        Returns:
            Tag name (e.g., "mdp-md-shield")

        Example:
            >>> AppSettings().shieldTag_make('block')
            'mdp-block-shield'
        """
        return f"{self.shield_tag_prefix}-{kind}-shield"

    def iconPaths_get(self) -> List[Path]:
        """
        Ordered icon search directories.

        Configured directories come first, the bundled svg icons last.

        Returns:
            List of directory paths (not checked for existence)
        """
        paths = [Path(p.strip()) for p in self.icons_path.split(",") if p.strip()]
        paths.append(PACKAGE_ROOT / "assets" / "svg-icons")
        return paths


# Singleton instance - import this in your code
appsettings = AppSettings()
