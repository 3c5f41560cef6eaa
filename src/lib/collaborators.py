"""
External collaborator interfaces

The engine reaches the outside world only through the handles defined here,
passed in explicitly by the caller:

- ContentSource: file access, used by the orchestration layer only
- ImageRasterizer: turns an element into a raster image asset
- HostBuffer: an editor buffer staged around each rasterization

Default implementations cover the file system, the no-rasterizer case, a
recording rasterizer for dry runs and tests, and an in-memory buffer.
"""

from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from pathlib import Path
from typing import AsyncIterator, Dict, List, Optional, Protocol, Union, runtime_checkable

from ..models.elements import Element
from .log import LOG


@dataclass(frozen=True)
class ImageSize:
    """Measured size of a rasterized asset, in pixels"""
    width: int
    height: int


@dataclass
class RasterRequest:
    """
    One call made to a RecordingRasterizer

    Attributes:
        element: Element handed over for rasterization
        asset_path: Where the image would be persisted
        target_width: Requested width, None to let the rasterizer measure
        scale: Device pixel ratio
        smoothing: Image smoothing on/off
        style_hook: Styling options (theme, fonts)
    """
    element: Element
    asset_path: str
    target_width: Optional[int]
    scale: float
    smoothing: bool
    style_hook: Dict[str, str] = field(default_factory=dict)


@runtime_checkable
class ContentSource(Protocol):
    def document_read(self, path: Union[str, Path]) -> str:
        ...

    def binary_read(self, path: Union[str, Path]) -> bytes:
        ...


@runtime_checkable
class ImageRasterizer(Protocol):
    async def image_render(
        self,
        element: Element,
        asset_path: str,
        target_width: Optional[int],
        scale: float,
        smoothing: bool,
        style_hook: Dict[str, str],
    ) -> Optional[ImageSize]:
        """
        Rasterize ``element`` and persist it at ``asset_path``

        Returns:
            The image size, or None on failure (raising is also allowed)
        """
        ...


@runtime_checkable
class HostBuffer(Protocol):
    def content_get(self) -> str:
        ...

    def content_set(self, text: str) -> None:
        ...

    def refresh(self) -> None:
        ...

    def range_get(self, line_start: int, line_end: int) -> str:
        ...


class FileContentSource:
    """ContentSource over the local file system, optionally rooted at a directory"""

    def __init__(self, root: Optional[Path] = None) -> None:
        self.root = root

    def path_resolve(self, path: Union[str, Path]) -> Path:
        resolved = Path(path)
        if self.root is not None and not resolved.is_absolute():
            resolved = self.root / resolved
        return resolved

    def document_read(self, path: Union[str, Path]) -> str:
        return self.path_resolve(path).read_text(encoding="utf-8")

    def binary_read(self, path: Union[str, Path]) -> bytes:
        return self.path_resolve(path).read_bytes()


class NullRasterizer:
    """Rasterizer that never produces an image"""

    async def image_render(
        self,
        element: Element,
        asset_path: str,
        target_width: Optional[int],
        scale: float,
        smoothing: bool,
        style_hook: Dict[str, str],
    ) -> Optional[ImageSize]:
        return None


class RecordingRasterizer:
    """
    Rasterizer that records every request and reports a fixed size

    Nothing is written to disk; ``requests`` lists what a real rasterizer
    would have been asked to produce.

    Example:
        >>> rasterizer = RecordingRasterizer(ImageSize(640, 120))
        >>> result = render(text, settings, rasterizer=rasterizer)
        >>> [request.asset_path for request in rasterizer.requests]
        ['/assets/math-widget-4-6.png']
    """

    def __init__(self, size: ImageSize = ImageSize(680, 240)) -> None:
        self.size = size
        self.requests: List[RasterRequest] = []

    async def image_render(
        self,
        element: Element,
        asset_path: str,
        target_width: Optional[int],
        scale: float,
        smoothing: bool,
        style_hook: Dict[str, str],
    ) -> Optional[ImageSize]:
        self.requests.append(
            RasterRequest(
                element=element,
                asset_path=asset_path,
                target_width=target_width,
                scale=scale,
                smoothing=smoothing,
                style_hook=dict(style_hook),
            )
        )
        return self.size


class MemoryHostBuffer:
    """
    In-memory HostBuffer

    Attributes:
        text: Current buffer content
        refresh_count: Number of refresh() calls
        history: Every content set through content_set(), in order
    """

    def __init__(self, text: str = "") -> None:
        self.text = text
        self.refresh_count = 0
        self.history: List[str] = []

    def content_get(self) -> str:
        return self.text

    def content_set(self, text: str) -> None:
        self.text = text
        self.history.append(text)

    def refresh(self) -> None:
        self.refresh_count += 1

    def range_get(self, line_start: int, line_end: int) -> str:
        """Lines ``line_start`` to ``line_end`` inclusive, newline-terminated"""
        lines = self.text.replace("\r\n", "\n").split("\n")
        return "".join(line + "\n" for line in lines[line_start: line_end + 1])


@asynccontextmanager
async def buffer_staged(host: Optional[HostBuffer], excerpt: str) -> AsyncIterator[None]:
    """
    Stage ``excerpt`` in the host buffer for the duration of the block

    The original content is restored (and the host refreshed) afterwards,
    also when the body raises. With no host this does nothing.
    """
    if host is None:
        yield
        return

    original = host.content_get()
    host.content_set(excerpt)
    host.refresh()
    LOG(f"Staged {len(excerpt)} characters in host buffer", level=3)
    try:
        yield
    finally:
        if host.content_get() != original:
            host.content_set(original)
            host.refresh()
