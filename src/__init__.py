"""
mdpress - Markdown to publishable document engine

Turns an extended markdown dialect (callouts, footnotes, block anchors, math,
wiki links) into an element tree and canonical markdown for publishing.
"""

__version__ = "1.0.0"

from .lib import Renderer, blocks_segment, tokens_scan, document_render, render, LOG, state_connectToLogger

__all__ = [
    "Renderer",
    "blocks_segment",
    "tokens_scan",
    "document_render",
    "render",
    "LOG",
    "state_connectToLogger",
    "__version__",
]
