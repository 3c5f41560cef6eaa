"""
Models package for mdpress

Contains the data structures passed between segmentation, scanning and
rendering, plus the CLI program state.
"""

from .state import ProgramState, pipeline
from .blocks import Block, BlockKind, QuoteKind
from .tokens import Token, TokenKind, Dimensions
from .elements import Element, Text, Node, element, html_render, text_content
from .render import DocumentParts, ImageRef, RenderIssue, RenderResult, TOCNode

__all__ = [
    "ProgramState",
    "pipeline",
    "Block",
    "BlockKind",
    "QuoteKind",
    "Token",
    "TokenKind",
    "Dimensions",
    "Element",
    "Text",
    "Node",
    "element",
    "html_render",
    "text_content",
    "DocumentParts",
    "ImageRef",
    "RenderIssue",
    "RenderResult",
    "TOCNode",
]
