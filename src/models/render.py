"""
Render result data models

The Renderer returns a single RenderResult carrying both parallel artifacts
(element tree and canonical markdown) together with the document metadata
split out for publishing callers and the per-block issues met on the way.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional

from .elements import Element


@dataclass
class ImageRef:
    """
    Image located in the document

    Attributes:
        url: Image source as written (or the rasterized asset path)
        alt: Alternative text
        caption: Figure caption, may be empty
        width: Width in pixels, when known
        height: Height in pixels, when known
    """
    url: str
    alt: str = ""
    caption: str = ""
    width: Optional[int] = None
    height: Optional[int] = None


@dataclass
class DocumentParts:
    """
    Title / subtitle / main image decomposition of a document

    ``content`` is the canonical markdown with the title, subtitle and main
    image removed, which is what publishing adapters upload as the body.
    """
    title: Optional[str] = None
    subtitle: Optional[str] = None
    main_image: Optional[ImageRef] = None
    content: str = ""


@dataclass
class RenderIssue:
    """
    Non-fatal per-block problem

    Attributes:
        kind: Short machine-readable category ("rasterization", "handler")
        line_start: First source line of the offending block
        line_end: Last source line of the offending block
        message: Human-readable description
    """
    kind: str
    line_start: int
    line_end: int
    message: str


@dataclass
class TOCNode:
    """
    One entry of the heading outline

    Attributes:
        level: Heading level (1..6)
        text: Plain heading text, or None for a synthesised placeholder level
        anchor: Display id ``{index-path}-{slug}``
        number: 1-based index path from the root (e.g. [1, 2])
        children: Nested entries in document order
    """
    level: int
    text: Optional[str] = None
    anchor: str = ""
    number: List[int] = field(default_factory=list)
    children: List["TOCNode"] = field(default_factory=list)

    @property
    def is_placeholder(self) -> bool:
        return self.text is None


@dataclass
class RenderResult:
    """
    Output of one render pass

    Attributes:
        element_tree: ``<article>`` root holding the rendered blocks
        canonical_markdown: Re-serialised markdown
        document: Title / subtitle / main image / body decomposition
        toc: Root TOC entries
        toc_markdown: Rendered TOC text, empty when the TOC is disabled
        toc_element: Rendered TOC element, None when disabled or empty
        footnotes: Footnote id -> display number
        issues: Non-fatal per-block problems
    """
    element_tree: Element
    canonical_markdown: str
    document: DocumentParts = field(default_factory=DocumentParts)
    toc: List[TOCNode] = field(default_factory=list)
    toc_markdown: str = ""
    toc_element: Optional[Element] = None
    footnotes: Dict[str, int] = field(default_factory=dict)
    issues: List[RenderIssue] = field(default_factory=list)

    def tree_withToc(self) -> Element:
        """
        Return the element tree with the TOC inserted after the title

        The TOC goes directly after the leading ``h1`` (and the subtitle
        heading, when present); without a title it goes first.
        """
        if self.toc_element is None:
            return self.element_tree

        children = list(self.element_tree.children)
        position = 0
        for index, child in enumerate(children):
            if isinstance(child, Element) and child.attr("class") == "md-title":
                position = index + 1
            elif isinstance(child, Element) and child.attr("class") == "md-subtitle":
                position = index + 1
                break
        children.insert(position, self.toc_element)
        return self.element_tree.with_children(children)
