"""
Block-level data models

Blocks are the line-range-scoped units produced by the BlockSegmenter. Every
block carries its originating line range, its raw inner text (grammar markers
stripped) and an optional explicit anchor id.
"""

from enum import Enum
from dataclasses import dataclass, field
from typing import ClassVar, List, Optional


class BlockKind(Enum):
    """
    Tag of a Block variant

    Used by the Renderer to dispatch each block to its handler.
    """
    CONTENT = "content"
    HEADING = "heading"
    LIST = "list"
    HORIZONTAL_RULE = "horizontalRule"
    CODE_BLOCK = "codeBlock"
    CODE = "code"
    TABLE = "table"
    QUOTE = "quote"
    CALLOUT = "callout"
    FOOTNOTE = "footnote"
    MATH = "math"
    BREAK = "break"


class QuoteKind(Enum):
    """Flavour of a quote block: ``>`` or ``>>``"""
    BLOCKQUOTE = "blockquote"
    PULLQUOTE = "pullquote"


@dataclass
class Block:
    """
    Common fields of every block variant

    Attributes:
        line_start: 0-based index of the first source line of the block
        line_end: 0-based index of the last source line (inclusive)
        content: Raw inner text with grammar markers stripped
        id: Explicit anchor name (without the leading ``^``), if any
    """
    kind: ClassVar[BlockKind]

    line_start: int
    line_end: int
    content: str = ""
    id: Optional[str] = None


@dataclass
class ContentBlock(Block):
    """A paragraph of inline-scannable text"""
    kind: ClassVar[BlockKind] = BlockKind.CONTENT


@dataclass
class HeadingBlock(Block):
    kind: ClassVar[BlockKind] = BlockKind.HEADING

    level: int = 1


@dataclass
class ListBlock(Block):
    """
    One or more consecutive list items of the same ordinality

    ``content`` holds the items joined by newlines.
    """
    kind: ClassVar[BlockKind] = BlockKind.LIST

    ordered: bool = False

    def items(self) -> List[str]:
        return self.content.split("\n")


@dataclass
class HorizontalRuleBlock(Block):
    kind: ClassVar[BlockKind] = BlockKind.HORIZONTAL_RULE


@dataclass
class CodeBlock(Block):
    """
    Fenced code block

    Attributes:
        language: Raw fence info-string before any modifier flags
        caption: Text following the modifier flags (may be empty)
        to_png: ``!`` modifier present
        use_light_theme: ``*`` modifier present

    Example:
        The fence ```` ```python!* Fig. 1 ```` yields
        CodeBlock(language="python", caption="Fig. 1", to_png=True,
                  use_light_theme=True, ...)
    """
    kind: ClassVar[BlockKind] = BlockKind.CODE_BLOCK

    language: str = ""
    caption: str = ""
    to_png: bool = False
    use_light_theme: bool = False


@dataclass
class IndentedCodeBlock(Block):
    """A single tab- or four-space-indented code line"""
    kind: ClassVar[BlockKind] = BlockKind.CODE


@dataclass
class TableBlock(Block):
    """Pipe table; ``body[0]`` is the header row"""
    kind: ClassVar[BlockKind] = BlockKind.TABLE

    body: List[List[str]] = field(default_factory=list)


@dataclass
class QuoteBlock(Block):
    kind: ClassVar[BlockKind] = BlockKind.QUOTE

    quote_kind: QuoteKind = QuoteKind.BLOCKQUOTE


@dataclass
class CalloutBlock(Block):
    """
    Blockquote opened by ``[!name]``

    Attributes:
        name: Callout type (e.g. "note", "warning")
        title: Text after the ``[!name]`` marker on the first line
    """
    kind: ClassVar[BlockKind] = BlockKind.CALLOUT

    name: str = ""
    title: str = ""


@dataclass
class FootnoteBlock(Block):
    """Footnote definition ``[^id]: text``; ``id`` is the definition label"""
    kind: ClassVar[BlockKind] = BlockKind.FOOTNOTE


@dataclass
class MathBlock(Block):
    kind: ClassVar[BlockKind] = BlockKind.MATH


@dataclass
class BreakBlock(Block):
    """Run of ``count`` blank lines"""
    kind: ClassVar[BlockKind] = BlockKind.BREAK

    count: int = 1
