"""
Orchestration entry points

Ties the stages together for callers: comment stripping, segmentation and
rendering. The Segmenter, Scanner and Renderer never touch files; reading a
document goes through a ContentSource here.

Example:
    >>> result = render("# Notes\\n\\nSome **bold** text.")
    >>> result.canonical_markdown
    '# Notes\\n\\nSome **bold** text.'
"""

import asyncio
from pathlib import Path
from typing import List, Optional, Union

from ..config.settings import RenderSettings, appsettings
from ..models.blocks import Block
from ..models.render import RenderIssue, RenderResult
from .collaborators import ContentSource, FileContentSource, HostBuffer, ImageRasterizer
from .log import LOG, WARN
from .renderer import Renderer
from .segmenter import blocks_segment
from .text import comments_strip


def document_load(path: Union[str, Path], source: Optional[ContentSource] = None) -> str:
    """Read a document through ``source`` (the local file system by default)"""
    source = source if source is not None else FileContentSource()
    text = source.document_read(path)
    LOG(f"Read {len(text)} characters from {path}", level=2)
    return text


def document_prepare(text: str, settings: Optional[RenderSettings] = None) -> str:
    """Apply the text-level preprocessing selected by ``settings``"""
    settings = settings if settings is not None else appsettings
    if settings.strip_comments:
        stripped = comments_strip(text)
        if len(stripped) != len(text):
            LOG(f"Stripped {len(text) - len(stripped)} characters of comments", level=3)
        return stripped
    return text


def document_segment(text: str, settings: Optional[RenderSettings] = None) -> List[Block]:
    """
    Preprocess and segment a document

    Args:
        text: Markdown document
        settings: Render configuration (defaults to ``appsettings``)

    Returns:
        Blocks in document order
    """
    return blocks_segment(document_prepare(text, settings))


async def document_render(
    text: str,
    settings: Optional[RenderSettings] = None,
    rasterizer: Optional[ImageRasterizer] = None,
    host: Optional[HostBuffer] = None,
) -> RenderResult:
    """
    Segment and render a document

    Args:
        text: Markdown document
        settings: Render configuration (defaults to ``appsettings``)
        rasterizer: Image collaborator; None renders everything natively
        host: Host buffer to stage excerpts in around rasterization

    Returns:
        RenderResult; a document that cannot be segmented renders empty
        with one "segmentation" issue
    """
    settings = settings if settings is not None else appsettings
    try:
        blocks = document_segment(text, settings)
    except Exception as e:
        WARN(f"Segmenting the document failed: {e}")
        result = await Renderer([], settings, rasterizer=rasterizer, host=host).render()
        result.issues.append(
            RenderIssue(kind="segmentation", line_start=0, line_end=text.count("\n"), message=str(e))
        )
        return result
    return await Renderer(blocks, settings, rasterizer=rasterizer, host=host).render()


def render(
    text: str,
    settings: Optional[RenderSettings] = None,
    rasterizer: Optional[ImageRasterizer] = None,
    host: Optional[HostBuffer] = None,
) -> RenderResult:
    """Synchronous wrapper around document_render()"""
    return asyncio.run(document_render(text, settings, rasterizer=rasterizer, host=host))
