"""
Inline scanner for mdpress markdown

Turns the text of one block into an ordered list of inline tokens.

Each line is scanned character by character. Literal text collects in a
buffer that is flushed into a TextToken whenever another token is emitted.
Paired markers (strong, em, strike, mark) live on an open-token stack:

- toggling a marker that is already open closes it; closing a marker that is
  not innermost first closes every marker opened after it, then re-opens
  those in their original order
- markers still open at the end of a line are closed there, innermost
  first, and (with ``carry``) re-opened at the start of the next line
- a marker whose adjacency check fails is kept as literal text

Example:
    >>> [token.kind.value for token in tokens_scan("**bold *and italic* text**")]
    ['strong', 'text', 'em', 'text', 'em', 'text', 'strong']
"""

import string
from typing import Callable, Dict, List, Optional, Tuple, Type

from ..models.tokens import (
    BreakToken,
    CodeToken,
    EmToken,
    FootnoteRefToken,
    ImageToken,
    LinkToken,
    MarkToken,
    MathToken,
    PairedToken,
    StrikeToken,
    StrongToken,
    TextToken,
    Token,
)
from .text import alt_splitDimensions


ESCAPABLE = set(string.punctuation)
CAPTION_QUOTES = "\"'`"
DOUBLE_MARKERS: Dict[str, Type[PairedToken]] = {"~": StrikeToken, "=": MarkToken}


def run_length(text: str, pos: int, char: str) -> int:
    """Length of the run of ``char`` starting at ``pos``"""
    end = pos
    while end < len(text) and text[end] == char:
        end += 1
    return end - pos


class InlineScanner:
    """
    Character scanner for one block's content

    Attributes:
        lines: Content split into lines
        code: Treat every line as literal text
        carry: Re-open markers closed at the end of a line on the next line
        tokens: Output token list
        buffer: Pending literal text of the current line
        open_tokens: Paired markers opened and not yet closed on this line
    """

    def __init__(self, content: str, code: bool = False, carry: bool = False) -> None:
        self.lines = content.split("\n")
        self.code = code
        self.carry = carry
        self.tokens: List[Token] = []
        self.buffer: List[str] = []
        self.open_tokens: List[PairedToken] = []
        self.line = ""
        self.pos = 0

        self.handlers: Dict[str, Callable[[], bool]] = {
            "\\": self.escape_scan,
            "*": self.emphasis_scan,
            "_": self.emphasis_scan,
            "~": self.double_scan,
            "=": self.double_scan,
            "`": self.code_scan,
            "$": self.math_scan,
            "!": self.bang_scan,
            "[": self.bracket_scan,
        }

    def scan(self) -> List[Token]:
        """
        Scan all lines

        Returns:
            Tokens in scan order, lines separated by BreakToken
        """
        carried: List[PairedToken] = []
        for index, line in enumerate(self.lines):
            if index:
                self.tokens.append(BreakToken())

            if self.code:
                if line:
                    self.tokens.append(TextToken(text=line))
                continue

            self.line = line
            self.pos = 0
            if line:
                for token in carried:
                    self.marker_open(token.opener(implicit=True))
                carried = []

            self.line_scan()
            closed = self.line_close()
            if self.carry:
                carried.extend(closed)
        return self.tokens

    # ------------------------------------------------------------------
    # Output helpers
    # ------------------------------------------------------------------

    def buffer_flush(self) -> None:
        if self.buffer:
            self.tokens.append(TextToken(text="".join(self.buffer)))
            self.buffer = []

    def token_emit(self, token: Token) -> None:
        self.buffer_flush()
        self.tokens.append(token)

    def marker_open(self, token: PairedToken) -> None:
        self.token_emit(token)
        self.open_tokens.append(token)

    def marker_index(self, token_type: Type[PairedToken]) -> int:
        """Stack index of the innermost open marker of ``token_type``, or -1"""
        for index in range(len(self.open_tokens) - 1, -1, -1):
            if type(self.open_tokens[index]) is token_type:
                return index
        return -1

    def marker_close(self, token_type: Type[PairedToken], marker: str) -> None:
        """
        Close the innermost open marker of ``token_type``

        Markers opened after it are closed first and re-opened afterwards,
        so that the emitted stream stays properly nested.
        """
        index = self.marker_index(token_type)
        intermediate = self.open_tokens[index + 1:]

        for token in reversed(intermediate):
            self.token_emit(token.closer(implicit=True))
        self.token_emit(token_type(opening=False, marker=marker))

        del self.open_tokens[index:]
        for token in intermediate:
            self.marker_open(token.opener(implicit=True))

    def marker_toggle(
        self, token_type: Type[PairedToken], marker: str, can_open: bool, can_close: bool
    ) -> None:
        if self.marker_index(token_type) != -1:
            if can_close:
                self.marker_close(token_type, marker)
            else:
                self.buffer.append(marker)
        elif can_open:
            self.marker_open(token_type(opening=True, marker=marker))
        else:
            self.buffer.append(marker)

    def line_close(self) -> List[PairedToken]:
        """Close every marker still open at the end of the line"""
        closed = list(self.open_tokens)
        for token in reversed(closed):
            self.token_emit(token.closer(implicit=True))
        self.buffer_flush()
        self.open_tokens = []
        return closed

    # ------------------------------------------------------------------
    # Character handlers
    # ------------------------------------------------------------------

    def line_scan(self) -> None:
        while self.pos < len(self.line):
            char = self.line[self.pos]
            handler = self.handlers.get(char)
            if handler is None or not handler():
                self.buffer.append(char)
                self.pos += 1

    def char_at(self, pos: int) -> str:
        return self.line[pos] if 0 <= pos < len(self.line) else ""

    def escape_scan(self) -> bool:
        following = self.char_at(self.pos + 1)
        if not following or following not in ESCAPABLE:
            return False
        self.buffer.append(following)
        self.pos += 2
        return True

    def adjacency_check(self, start: int, end: int, intraword: bool) -> Tuple[bool, bool]:
        """
        Whether a marker run spanning ``[start, end)`` may open and close

        Opening needs a non-space character after the run and closing a
        non-space character before it. With ``intraword`` (underscores) the
        run must also not touch a letter or digit on the outer side.
        """
        before = self.char_at(start - 1)
        after = self.char_at(end)
        can_open = bool(after) and not after.isspace()
        can_close = bool(before) and not before.isspace()
        if intraword:
            can_open = can_open and not before.isalnum()
            can_close = can_close and not after.isalnum()
        return can_open, can_close

    def emphasis_scan(self) -> bool:
        """
        Resolve a run of ``*`` or ``_``

        The run is split into groups of three followed by a final group of
        ``n % 3`` (three when divisible). A group of three toggles strong and
        em, two toggles strong, one toggles em.
        """
        char = self.line[self.pos]
        run = run_length(self.line, self.pos, char)
        can_open, can_close = self.adjacency_check(self.pos, self.pos + run, char == "_")
        self.pos += run

        final = run % 3 or 3
        groups = [3] * ((run - final) // 3) + [final]
        for group in groups:
            self.emphasisGroup_apply(group, char, can_open, can_close)
        return True

    def emphasisGroup_apply(self, size: int, char: str, can_open: bool, can_close: bool) -> None:
        if size == 2:
            self.marker_toggle(StrongToken, char * 2, can_open, can_close)
            return
        if size == 1:
            self.marker_toggle(EmToken, char, can_open, can_close)
            return

        # Close innermost first, then open strong outside em
        open_types = [
            token_type
            for token_type in (EmToken, StrongToken)
            if self.marker_index(token_type) != -1
        ]
        open_types.sort(key=self.marker_index, reverse=True)
        closed_types = [
            token_type for token_type in (StrongToken, EmToken) if token_type not in open_types
        ]
        for token_type in open_types + closed_types:
            marker = char * 2 if token_type is StrongToken else char
            self.marker_toggle(token_type, marker, can_open, can_close)

    def double_scan(self) -> bool:
        """Toggle strike (``~~``) or mark (``==``); other run lengths are literal"""
        char = self.line[self.pos]
        run = run_length(self.line, self.pos, char)
        if run != 2:
            self.buffer.append(char * run)
            self.pos += run
            return True
        can_open, can_close = self.adjacency_check(self.pos, self.pos + run, False)
        self.pos += run
        self.marker_toggle(DOUBLE_MARKERS[char], char * 2, can_open, can_close)
        return True

    def code_scan(self) -> bool:
        """Code span closed by a backtick run of exactly the same length"""
        run = run_length(self.line, self.pos, "`")
        search = self.pos + run
        while search < len(self.line):
            close = self.line.find("`", search)
            if close == -1:
                break
            close_run = run_length(self.line, close, "`")
            if close_run == run:
                self.token_emit(CodeToken(content=self.line[self.pos + run: close]))
                self.pos = close + run
                return True
            search = close + close_run

        self.buffer.append("`" * run)
        self.pos += run
        return True

    def math_scan(self) -> bool:
        """
        Inline math ``$...$`` or ``$$...$$`` on one line

        Single-dollar math needs a non-space character after the opener and
        before the closer.
        """
        if self.line.startswith("$$", self.pos):
            close = self.line.find("$$", self.pos + 2)
            if close == -1:
                self.buffer.append("$$")
                self.pos += 2
                return True
            self.token_emit(MathToken(content=self.line[self.pos + 2: close]))
            self.pos = close + 2
            return True

        following = self.char_at(self.pos + 1)
        if not following or following.isspace():
            return False
        cursor = self.pos + 1
        while cursor < len(self.line):
            char = self.line[cursor]
            if char == "\\":
                cursor += 2
                continue
            if char == "$" and not self.line[cursor - 1].isspace():
                self.token_emit(MathToken(content=self.line[self.pos + 1: cursor]))
                self.pos = cursor + 1
                return True
            cursor += 1
        return False

    def bang_scan(self) -> bool:
        """``![`` opens an image; ``![^`` is a literal ``!`` before a footnote reference"""
        if self.char_at(self.pos + 1) != "[" or self.char_at(self.pos + 2) == "^":
            return False
        return self.reference_scan(self.pos + 1, image=True)

    def bracket_scan(self) -> bool:
        return self.reference_scan(self.pos, image=False)

    def reference_scan(self, bracket: int, image: bool) -> bool:
        """
        Scan a link, image, wiki link or footnote reference at ``bracket``

        On failure the opening ``[`` (or ``![``) is kept as literal text and
        scanning resumes right after it.
        """
        token: Optional[Token] = None
        end = -1

        if self.char_at(bracket + 1) == "[":
            token, end = self.wiki_scan(bracket, image)
        elif self.char_at(bracket + 1) == "^":
            close = self.line.find("]", bracket + 2)
            if close > bracket + 2:
                token, end = FootnoteRefToken(id=self.line[bracket + 2: close]), close + 1
        else:
            token, end = self.inline_scan(bracket, image)

        if token is None:
            self.buffer.append(self.line[self.pos: bracket + 1])
            self.pos = bracket + 1
            return True

        self.token_emit(token)
        self.pos = end
        return True

    def wiki_scan(self, bracket: int, image: bool) -> Tuple[Optional[Token], int]:
        """``[[target]]``, ``[[target|label]]`` and ``![[target|WxH]]``"""
        close = self.line.find("]]", bracket + 2)
        if close == -1:
            return None, -1
        inner = self.line[bracket + 2: close]

        if image:
            target, dimensions = alt_splitDimensions(inner)
            return ImageToken(url=target, alt=target, dimensions=dimensions), close + 2

        target, _, label = inner.partition("|")
        text = (label or target).replace("^", "")
        return LinkToken(url=target, text=text), close + 2

    def inline_scan(self, bracket: int, image: bool) -> Tuple[Optional[Token], int]:
        """``[text](url)`` and ``![alt|WxH](url "caption")``"""
        close_bracket = self.line.find("]", bracket + 1)
        if close_bracket == -1 or self.char_at(close_bracket + 1) != "(":
            return None, -1
        inner = self.line[bracket + 1: close_bracket]
        target_start = close_bracket + 2

        caption = ""
        cursor = target_start
        while cursor < len(self.line) and self.line[cursor] != ")":
            if image and self.line[cursor] in CAPTION_QUOTES:
                break
            cursor += 1
        url_part = self.line[target_start:cursor]

        if image and self.char_at(cursor) and self.char_at(cursor) in CAPTION_QUOTES:
            quote = self.line[cursor]
            caption_end = self.line.find(quote, cursor + 1)
            if caption_end == -1:
                return None, -1
            caption = self.line[cursor + 1: caption_end]
            cursor = self.line.find(")", caption_end + 1)

        if cursor == -1 or self.char_at(cursor) != ")":
            return None, -1

        words = url_part.split()
        url = words[0] if words else ""
        if image:
            alt, dimensions = alt_splitDimensions(inner)
            return ImageToken(url=url, alt=alt, caption=caption, dimensions=dimensions), cursor + 1
        return LinkToken(url=url, text=inner.replace("^", "")), cursor + 1


def tokens_scan(content: str, code: bool = False, carry: bool = False) -> List[Token]:
    """
    Scan block content into inline tokens

    Args:
        content: Block text, possibly spanning several lines
        code: Treat the content as literal code text
        carry: Re-open markers left open at a line end on the next line

    Returns:
        Tokens in scan order
    """
    return InlineScanner(content, code=code, carry=carry).scan()
