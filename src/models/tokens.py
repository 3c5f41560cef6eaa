"""
Inline token data models

Tokens are the character-range-scoped units produced by the InlineScanner for
the text of one block. Strong/Em/Strike/Mark are paired markers: the opening
and the closing marker are separate token instances of the same variant,
distinguished by ``opening``.
"""

from enum import Enum
from dataclasses import dataclass, field
from typing import ClassVar, Optional


class TokenKind(Enum):
    TEXT = "text"
    STRONG = "strong"
    EM = "em"
    STRIKE = "del"
    MARK = "mark"
    CODE = "code"
    MATH = "math"
    LINK = "link"
    IMAGE = "image"
    FOOTNOTE_REF = "footnoteRef"
    BREAK = "break"


@dataclass(frozen=True)
class Dimensions:
    """
    Image size parsed from a ``|W`` or ``|WxH`` suffix

    Attributes:
        width: Width in pixels
        height: Height in pixels, or None when only the width was given
    """
    width: int
    height: Optional[int] = None


@dataclass
class Token:
    kind: ClassVar[TokenKind]


@dataclass
class TextToken(Token):
    kind: ClassVar[TokenKind] = TokenKind.TEXT

    text: str = ""


@dataclass
class PairedToken(Token):
    """
    Base for emphasis-like markers

    Attributes:
        opening: True for the opening marker, False for the closing one
        marker: Source characters of the marker ("**", "_", "~~", ...)
        implicit: True when the scanner synthesised the marker (end-of-line
                  close, close-and-reopen) rather than reading it

    ``marker`` and ``implicit`` do not take part in equality.
    """
    opening: bool = True
    marker: str = field(default="", compare=False)
    implicit: bool = field(default=False, compare=False)

    def closer(self, implicit: bool = False) -> "PairedToken":
        """Return the closing counterpart of this marker"""
        return type(self)(opening=False, marker=self.marker, implicit=implicit)

    def opener(self, implicit: bool = False) -> "PairedToken":
        """Return a fresh opening marker of the same variant"""
        return type(self)(opening=True, marker=self.marker, implicit=implicit)


@dataclass
class StrongToken(PairedToken):
    kind: ClassVar[TokenKind] = TokenKind.STRONG


@dataclass
class EmToken(PairedToken):
    kind: ClassVar[TokenKind] = TokenKind.EM


@dataclass
class StrikeToken(PairedToken):
    kind: ClassVar[TokenKind] = TokenKind.STRIKE


@dataclass
class MarkToken(PairedToken):
    kind: ClassVar[TokenKind] = TokenKind.MARK


@dataclass
class CodeToken(Token):
    kind: ClassVar[TokenKind] = TokenKind.CODE

    content: str = ""


@dataclass
class MathToken(Token):
    kind: ClassVar[TokenKind] = TokenKind.MATH

    content: str = ""


@dataclass
class LinkToken(Token):
    kind: ClassVar[TokenKind] = TokenKind.LINK

    url: str = ""
    text: str = ""


@dataclass
class ImageToken(Token):
    """
    Image reference

    Attributes:
        url: Image source
        alt: Alternative text (dimension suffix removed)
        caption: Caption text from the quoted title, or empty
        dimensions: Parsed ``|WxH`` suffix, if present
    """
    kind: ClassVar[TokenKind] = TokenKind.IMAGE

    url: str = ""
    alt: str = ""
    caption: str = ""
    dimensions: Optional[Dimensions] = None


@dataclass
class FootnoteRefToken(Token):
    kind: ClassVar[TokenKind] = TokenKind.FOOTNOTE_REF

    id: str = ""


@dataclass
class BreakToken(Token):
    kind: ClassVar[TokenKind] = TokenKind.BREAK
