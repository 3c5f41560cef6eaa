"""
Render settings and configuration

Uses pydantic-settings for type-safe configuration via environment variables.
All settings use MDPRESS_ prefix (e.g., MDPRESS_CREATE_TOC=false).

Settings can also be loaded from a .env file in the project root, or from a
YAML profile with settings_load().
"""

from pathlib import Path
from typing import Literal, Optional, Union

import yaml
from pydantic import Field, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from ..lib.errors import SettingsError


class RenderSettings(BaseSettings):
    """
    Rendering configuration via environment variables.

    Environment variables use MDPRESS_ prefix.

    Examples:
        MDPRESS_TARGET_WIDTH=1000
        MDPRESS_CONVERT_TABLE_TO_PNG=true
        MDPRESS_TOC_NUMBERING=bulleted
    """

    model_config = SettingsConfigDict(
        env_prefix="MDPRESS_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Rasterization
    asset_directory: str = Field(
        default="assets",
        description="Directory (relative to the output root) for rasterized widget images",
    )

    custom_width: bool = Field(
        default=False,
        description="Pass target_width to the rasterizer instead of letting it measure",
    )

    target_width: int = Field(
        default=680,
        gt=0,
        description="Width in pixels of rasterized widgets when custom_width is on",
    )

    image_scale: float = Field(
        default=2.0,
        gt=0,
        description="Device pixel ratio used when rasterizing",
    )

    smoothing: bool = Field(
        default=True,
        description="Enable image smoothing when resizing rasterized widgets",
    )

    use_dark_theme: bool = Field(
        default=False,
        description="Rasterize with the dark theme (code fences flagged with * force light)",
    )

    general_font_family: str = Field(
        default="sans-serif",
        description="Font family for rasterized text widgets",
    )

    code_font_family: str = Field(
        default="monospace",
        description="Font family for rasterized code widgets",
    )

    use_code_block_language_for_caption: bool = Field(
        default=False,
        description="Caption rasterized code fences with their language when no caption is given",
    )

    # Conversion toggles
    convert_code_to_png: bool = Field(
        default=False,
        description="Rasterize code fences of supported languages (the ! flag inverts this)",
    )

    convert_table_to_png: bool = Field(
        default=False,
        description="Rasterize tables instead of rendering them natively",
    )

    convert_math_to_png: bool = Field(
        default=True,
        description="Rasterize math blocks",
    )

    convert_callout_to_png: bool = Field(
        default=True,
        description="Rasterize callouts",
    )

    native_tables: bool = Field(
        default=True,
        description="A native table form is available as a fallback",
    )

    native_math: bool = Field(
        default=True,
        description="A native math form is available as a fallback",
    )

    # Document structure
    create_toc: bool = Field(
        default=True,
        description="Build a table of contents from the headings",
    )

    toc_numbering: Literal["numeric", "bulleted"] = Field(
        default="numeric",
        description="TOC markdown style: numeric (1.2.) or bulleted (-)",
    )

    toc_title: str = Field(
        default="Table of Contents",
        description="Title line of the rendered TOC",
    )

    split_title: bool = Field(
        default=True,
        description="Classify a leading H1 (and following heading) as title/subtitle",
    )

    strip_comments: bool = Field(
        default=True,
        description="Remove %%comment%% spans before segmentation",
    )

    highlight_code: bool = Field(
        default=True,
        description="Wrap native code fence tokens in highlight spans",
    )


def settings_load(path: Union[str, Path], **overrides: object) -> RenderSettings:
    """
    Load a YAML settings profile.

    Keys in the profile are RenderSettings field names; keyword overrides
    take precedence over the profile. Environment variables still apply to
    fields neither sets.

    Args:
        path: YAML file holding a mapping of settings
        **overrides: Field values that win over the profile

    Returns:
        Validated RenderSettings

    Raises:
        SettingsError: The file cannot be read, is not a YAML mapping, or
            holds invalid values

    Example:
        >>> settings = settings_load("profile.yaml", create_toc=False)
    """
    profile = Path(path)
    try:
        data = yaml.safe_load(profile.read_text(encoding="utf-8"))
    except OSError as e:
        raise SettingsError(f"Cannot read settings file {profile}: {e}") from e
    except yaml.YAMLError as e:
        raise SettingsError(f"Invalid YAML in settings file {profile}: {e}") from e

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise SettingsError(f"Settings file {profile} must hold a mapping, not {type(data).__name__}")

    try:
        return RenderSettings(**{**data, **overrides})
    except ValidationError as e:
        raise SettingsError(f"Invalid settings in {profile}: {e}") from e


def settings_resolve(path: Optional[Union[str, Path]] = None) -> RenderSettings:
    """Return the profile at ``path`` if given, otherwise the default settings"""
    if path is None:
        return appsettings
    return settings_load(path)


# Singleton instance - import this in your code
appsettings = RenderSettings()
