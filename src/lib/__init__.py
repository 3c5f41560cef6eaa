"""
mdpress - Markdown to publishable document engine

Segments markdown into blocks, scans inline markup and renders an element
tree plus canonical markdown, with footnote and TOC resolution.
"""

__version__ = "1.0.0"

from .segmenter import BlockSegmenter, blocks_segment
from .scanner import InlineScanner, tokens_scan
from .renderer import Renderer
from .resolver import FootnoteTable, TOCBuilder
from .engine import document_load, document_render, document_segment, render
from .log import LOG, WARN, state_connectToLogger

__all__ = [
    "BlockSegmenter",
    "blocks_segment",
    "InlineScanner",
    "tokens_scan",
    "Renderer",
    "FootnoteTable",
    "TOCBuilder",
    "document_load",
    "document_render",
    "document_segment",
    "render",
    "LOG",
    "WARN",
    "state_connectToLogger",
    "__version__",
]
